import asyncio
import logging
import smtplib
from email.message import EmailMessage

from app.config import Settings


class SmtpMailer:
    """
    Sends HTML mail through an SMTP relay.

    smtplib blocks, so each send runs in a worker thread. Without a
    configured host the mailer only logs what it would have sent.
    """

    def __init__(
        self,
        host: str | None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        use_tls: bool = True,
        timeout_seconds: float = 20.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender or username
        self._use_tls = use_tls
        self._timeout = timeout_seconds
        self._logger = logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender=settings.smtp_from,
            use_tls=settings.smtp_use_tls,
        )

    @property
    def enabled(self) -> bool:
        return bool(self._host and self._sender)

    def build_message(self, to: str, subject: str, html: str, text: str | None = None) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._sender or ""
        msg["To"] = to
        msg.set_content(text or subject)
        msg.add_alternative(html, subtype="html")
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            if self._use_tls:
                server.starttls()
            if self._username and self._password:
                server.login(self._username, self._password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        if not self.enabled:
            self._logger.info("SMTP not configured, skipping email", extra={"to": to, "subject": subject})
            return
        await asyncio.to_thread(self._send_sync, self.build_message(to, subject, html, text))
