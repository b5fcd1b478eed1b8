from dataclasses import dataclass


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str
    text: str | None = None


class InMemoryMailer:
    """Records outgoing mail instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[SentEmail] = []

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        self.sent.append(SentEmail(to=to, subject=subject, html=html, text=text))
