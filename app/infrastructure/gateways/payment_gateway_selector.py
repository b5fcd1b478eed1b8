from typing import Iterable, Iterator

from app.application.interfaces.payment_gateway import PaymentGateway
from app.domain.errors import UnknownGatewayError


class PaymentGatewaySelector:
    """Enabled payment gateways, addressable by route name or payment method."""

    def __init__(self, gateways: Iterable[PaymentGateway] = ()):
        self._by_name: dict[str, PaymentGateway] = {}
        for gateway in gateways:
            self.register(gateway)

    def register(self, gateway: PaymentGateway) -> None:
        self._by_name[gateway.name] = gateway

    def for_name(self, name: str) -> PaymentGateway:
        gateway = self._by_name.get((name or "").lower())
        if gateway is None:
            raise UnknownGatewayError(name)
        return gateway

    def for_payment_method(self, payment_method: str) -> PaymentGateway | None:
        for gateway in self._by_name.values():
            if gateway.payment_method == payment_method:
                return gateway
        return None

    def pollable(self) -> list[PaymentGateway]:
        return [gateway for gateway in self._by_name.values() if gateway.supports_polling]

    def names(self) -> list[str]:
        return list(self._by_name)

    def __iter__(self) -> Iterator[PaymentGateway]:
        return iter(list(self._by_name.values()))
