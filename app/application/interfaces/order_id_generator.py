"""OrderIdGenerator port - merchant order id generation."""

from abc import ABC, abstractmethod

from app.domain.value_objects.order_id import OrderId


class OrderIdGenerator(ABC):
    """
    Generates merchant order ids.

    Lets tests inject predictable ids.
    """

    @abstractmethod
    def generate(self) -> str:
        """
        Returns a new unique order id.

        Returns:
            String such as ``ORD-9F2C4A7B1D3E5F60``.
        """
        raise NotImplementedError


class RandomOrderIdGenerator(OrderIdGenerator):
    """Cryptographically random ids."""

    def generate(self) -> str:
        return str(OrderId.generate())


class FakeOrderIdGenerator(OrderIdGenerator):
    """
    Fake generator for tests.

    Produces sequential ids with a fixed prefix.
    """

    def __init__(self, prefix: str = "ORD-TEST"):
        self._prefix = prefix
        self._counter = 0
        self._next_id: str | None = None

    def generate(self) -> str:
        if self._next_id:
            order_id, self._next_id = self._next_id, None
            return order_id
        self._counter += 1
        return f"{self._prefix}{self._counter:06d}"

    def set_next_id(self, order_id: str) -> None:
        """
        Forces the id returned by the next call.

        Args:
            order_id: Id to return once.
        """
        self._next_id = order_id
