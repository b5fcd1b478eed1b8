import logging

from app.application.interfaces.clock import Clock
from app.application.interfaces.notification_repo import NotificationRepo
from app.application.interfaces.notifier import NotificationEvent, Notifier
from app.application.interfaces.user_directory import UserDirectory
from app.domain.entities.booking import Booking
from app.domain.entities.notification import Notification
from app.infrastructure.notifications.templates import render


class EmailAndInAppNotifier(Notifier):
    """
    Emails the user and stores an in-app notification for each booking event.

    Delivery failures are logged and swallowed so that payment processing
    never depends on the mail relay or the notification store.
    """

    def __init__(
        self,
        user_directory: UserDirectory,
        mailer,
        notification_repo: NotificationRepo,
        clock: Clock,
        brand_name: str = "Nesterlify",
    ) -> None:
        self._user_directory = user_directory
        self._mailer = mailer
        self._notification_repo = notification_repo
        self._clock = clock
        self._brand_name = brand_name
        self._logger = logging.getLogger(__name__)

    async def notify(self, booking: Booking, event: NotificationEvent) -> None:
        log_context = {"order_id": booking.order_id, "notification_event": event.value}
        try:
            contact = await self._user_directory.get_contact(booking.user_id)
        except Exception:
            self._logger.exception("User lookup for notification failed", extra=log_context)
            contact = None

        rendered = render(booking, event, contact.first_name if contact else None, self._brand_name)

        if contact and contact.email:
            try:
                await self._mailer.send(contact.email, rendered.subject, rendered.html, rendered.text)
            except Exception:
                self._logger.exception("Sending notification email failed", extra=log_context)
        else:
            self._logger.info("No email on file, skipping email notification", extra=log_context)

        try:
            await self._notification_repo.create(
                Notification(
                    user_id=booking.user_id,
                    title=rendered.title,
                    message=rendered.message,
                    category=booking.booking_type.value,
                    created_at=self._clock.now(),
                )
            )
        except Exception:
            self._logger.exception("Storing in-app notification failed", extra=log_context)
