import unittest
from decimal import Decimal

from app.domain.value_objects.money import Money
from app.domain.value_objects.order_id import OrderId


class TestMoney(unittest.TestCase):
    def test_normalizes_amount_and_currency(self):
        money = Money(amount="25.5", currency_code=" usdt ")

        self.assertEqual(money.amount, Decimal("25.5"))
        self.assertEqual(money.currency_code, "USDT")

    def test_rejects_non_positive_amounts(self):
        for amount in ("0", "-1", "NaN"):
            with self.assertRaises(ValueError):
                Money(amount=amount, currency_code="USD")

    def test_rejects_malformed_currency(self):
        with self.assertRaises(ValueError):
            Money(amount="1", currency_code="U$")

    def test_fixed_point_rendering_rounds_half_up(self):
        money = Money(amount=Decimal("10.005"), currency_code="USD")

        self.assertEqual(money.to_fixed(2), "10.01")
        self.assertEqual(money.to_fixed(8), "10.00500000")
        self.assertEqual(money.quantized(1), Decimal("10.0"))


class TestOrderId(unittest.TestCase):
    def test_generated_ids_have_prefix_and_are_unique(self):
        ids = {str(OrderId.generate()) for _ in range(50)}

        self.assertEqual(len(ids), 50)
        for value in ids:
            self.assertTrue(value.startswith("ORD-"))
            self.assertEqual(len(value), len("ORD-") + OrderId.HEX_LENGTH)

    def test_rejects_empty_value(self):
        with self.assertRaises(ValueError):
            OrderId("")
