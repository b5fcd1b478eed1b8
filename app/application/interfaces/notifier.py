from abc import ABC, abstractmethod
from enum import Enum

from app.domain.entities.booking import Booking


class NotificationEvent(str, Enum):
    ORDER_INITIATED = "ORDER_INITIATED"
    PAYMENT_SUCCEEDED = "PAYMENT_SUCCEEDED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"


class Notifier(ABC):
    @abstractmethod
    async def notify(self, booking: Booking, event: NotificationEvent) -> None:
        """
        Sends the email and in-app notification for a booking event.

        Fire-and-forget: implementations log delivery failures and never raise.
        """
        pass
