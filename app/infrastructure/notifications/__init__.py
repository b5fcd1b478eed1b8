from app.infrastructure.notifications.notifier import EmailAndInAppNotifier
from app.infrastructure.notifications.smtp_mailer import SmtpMailer

__all__ = ["EmailAndInAppNotifier", "SmtpMailer"]
