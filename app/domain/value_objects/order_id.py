"""Value Object OrderId - merchant-side transaction id shared with gateways."""

import secrets
from dataclasses import dataclass


@dataclass(frozen=True)
class OrderId:
    """
    Unique merchant order id.

    Generated before any gateway call and embedded in every gateway request
    (`merchantTradeNo` / `order_id`), so it is also the booking lookup key.
    Format: ``ORD-`` followed by 16 upper-case hex characters.
    """

    value: str

    PREFIX = "ORD-"
    HEX_LENGTH = 16
    MAX_LENGTH = 64

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("order_id cannot be empty")
        if len(self.value) > self.MAX_LENGTH:
            raise ValueError(f"order_id exceeds {self.MAX_LENGTH} characters: {len(self.value)}")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> "OrderId":
        return cls(value=f"{cls.PREFIX}{secrets.token_hex(cls.HEX_LENGTH // 2).upper()}")
