"""Value Object Money - an amount together with its currency."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary amount.

    Crypto settlement currencies (USDT, BTC, ...) are longer than ISO 4217
    codes, so the currency code accepts 2 to 10 alphanumeric characters.

    Attributes:
        amount: Decimal amount, strictly positive for chargeable orders.
        currency_code: Upper-cased currency code.
    """

    amount: Decimal
    currency_code: str

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except InvalidOperation as exc:
                raise ValueError(f"amount is not a number: {self.amount}") from exc

        code = (self.currency_code or "").strip().upper()
        if not 2 <= len(code) <= 10 or not code.isalnum():
            raise ValueError(f"currency_code must be 2-10 alphanumeric characters: {self.currency_code}")
        object.__setattr__(self, "currency_code", code)

        if not self.amount.is_finite() or self.amount <= 0:
            raise ValueError(f"amount must be positive: {self.amount}")

    def quantized(self, places: int) -> Decimal:
        """Rounds the amount half-up to a fixed number of decimal places."""
        return self.amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)

    def to_fixed(self, places: int) -> str:
        """Fixed-point string, as gateways expect in order payloads."""
        return f"{self.quantized(places):.{places}f}"

    def __str__(self) -> str:
        return f"{self.amount} {self.currency_code}"
