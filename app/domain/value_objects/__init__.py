"""Value Objects of the bookings domain."""

from app.domain.value_objects.money import Money
from app.domain.value_objects.order_id import OrderId

__all__ = [
    "Money",
    "OrderId",
]
