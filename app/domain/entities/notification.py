"""Notification entity - in-app notification shown to a user."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4


@dataclass
class Notification:
    """In-app notification; `category` is the booking type it relates to."""

    user_id: str
    title: str
    message: str
    category: str
    id: str = field(default_factory=lambda: uuid4().hex)
    read: bool = False
    created_at: datetime | None = None

    def mark_read(self) -> None:
        self.read = True
