import hashlib
import hmac
import json
import unittest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from app.application.interfaces.clock import FakeClock
from app.application.interfaces.payment_gateway import GatewayOrderRequest, GatewayStatus
from app.domain.errors import GatewayError
from app.domain.value_objects.money import Money
from app.infrastructure.circuit_breaker import reset_breakers
from app.infrastructure.gateways.gate_pay_gateway import GatePayGateway


class TestGatePayGateway(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_breakers()
        self.clock = FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
        self.gateway = GatePayGateway(
            client_id="gate-client",
            api_key="gate-secret",
            merchant_user_id="123456",
            chain="TRX",
            full_curr_type="USDT_TRX",
            return_url="https://shop.example/return",
            cancel_url="https://shop.example/cancel",
            base_url="https://gate.test",
            clock=self.clock,
        )
        self.request = GatewayOrderRequest(
            order_id="ORD-0002",
            amount=Money(Decimal("95"), "EUR"),
            booking_type="car",
            user_id="user-1",
        )

    def mock_post(self, mock_client_cls, body, status_code=200):
        mock_resp = MagicMock()
        mock_resp.status_code = status_code
        mock_resp.json.return_value = body

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = mock_resp
        mock_client_cls.return_value = mock_client
        return mock_client

    def test_signing_key_is_api_key_with_trailing_equals(self):
        expected = hmac.new(b"gate-secret=", b"1\nn\nbody\n", hashlib.sha512).hexdigest()

        self.assertEqual(self.gateway.sign("1", "n", "body"), expected)

    def test_order_payload(self):
        payload = self.gateway.build_order_payload(self.request)

        self.assertEqual(payload["orderAmount"], "95.00000000")
        self.assertEqual(payload["currency"], "USDT")
        self.assertEqual(payload["goods"], {
            "goodsType": "02",
            "goodsName": "car - ORD-0002",
            "goodsDetail": "Order No: ORD-0002",
        })
        self.assertEqual(payload["orderExpireTime"], self.clock.epoch_millis() + 3_600_000)
        self.assertEqual(payload["merchantUserId"], 123456)
        self.assertEqual(payload["chain"], "TRX")
        self.assertEqual(payload["fullCurrType"], "USDT_TRX")

    @patch("httpx.AsyncClient")
    async def test_create_order_uses_location_as_checkout_url(self, mock_client_cls):
        mock_client = self.mock_post(
            mock_client_cls,
            {"status": "SUCCESS", "code": "000000", "data": {"prepayId": "50620368071692288", "location": "https://gate.io/pay/x"}},
        )

        order = await self.gateway.create_order(self.request)

        self.assertEqual(order.gateway_order_id, "50620368071692288")
        self.assertEqual(order.checkout_url, "https://gate.io/pay/x")
        args, kwargs = mock_client.post.call_args
        self.assertEqual(args[0], "https://gate.test/v1/pay/checkout/order")
        headers = kwargs["headers"]
        self.assertEqual(headers["X-GatePay-Certificate-ClientId"], "gate-client")
        self.assertEqual(len(headers["X-GatePay-Nonce"]), 16)
        self.assertEqual(
            headers["X-GatePay-Signature"],
            self.gateway.sign(headers["X-GatePay-Timestamp"], headers["X-GatePay-Nonce"], kwargs["content"]),
        )

    @patch("httpx.AsyncClient")
    async def test_client_error_surfaces_message(self, mock_client_cls):
        self.mock_post(mock_client_cls, {"status": "FAIL", "errorMessage": "invalid signature"}, status_code=400)

        with self.assertRaises(GatewayError) as ctx:
            await self.gateway.create_order(self.request)

        self.assertIn("invalid signature", ctx.exception.message)

    @patch("httpx.AsyncClient")
    async def test_query_reads_payment_status_from_data(self, mock_client_cls):
        self.mock_post(
            mock_client_cls,
            {"status": "SUCCESS", "data": {"status": "PAY_SUCCESS", "transactionId": "tx-1"}},
        )

        result = await self.gateway.query_order_status("ORD-0002")

        self.assertEqual(result.status, GatewayStatus.SUCCESS)
        self.assertEqual(result.raw_status, "PAY_SUCCESS")
        self.assertEqual(result.gateway_payment_id, "tx-1")

    @patch("httpx.AsyncClient")
    async def test_query_unknown_status_maps_to_none(self, mock_client_cls):
        self.mock_post(mock_client_cls, {"status": "SUCCESS", "data": {"status": "BLOCKED"}})

        result = await self.gateway.query_order_status("ORD-0002")

        self.assertIsNone(result.status)
        self.assertEqual(result.raw_status, "BLOCKED")

    @patch("httpx.AsyncClient")
    async def test_close_order(self, mock_client_cls):
        mock_client = self.mock_post(mock_client_cls, {"status": "SUCCESS", "data": {"result": "SUCCESS"}})

        await self.gateway.close_order("ORD-0002")

        args, kwargs = mock_client.post.call_args
        self.assertEqual(args[0], "https://gate.test/v1/pay/order/close")
        self.assertEqual(json.loads(kwargs["content"]), {"merchantTradeNo": "ORD-0002"})

    def test_verify_and_parse_webhook(self):
        body = json.dumps(
            {
                "bizType": "PAY",
                "bizId": "50620368071692288",
                "bizStatus": "PAY_SUCCESS",
                "data": json.dumps({"merchantTradeNo": "ORD-0002", "transactionId": "tx-9"}),
            }
        ).encode()
        timestamp = str(self.clock.epoch_millis())
        headers = {
            "x-gatepay-timestamp": timestamp,
            "x-gatepay-nonce": "n0nce",
            "x-gatepay-signature": self.gateway.sign(timestamp, "n0nce", body.decode()),
        }

        self.assertTrue(self.gateway.verify_webhook_signature(headers, body))
        event = self.gateway.parse_webhook_event(body)
        self.assertEqual(event.order_id, "ORD-0002")
        self.assertEqual(event.status, GatewayStatus.SUCCESS)
        self.assertEqual(event.gateway_payment_id, "tx-9")

    def test_verify_handles_non_utf8_body(self):
        body = b'{"bizStatus":"\xff"}'
        timestamp = str(self.clock.epoch_millis())
        headers = {
            "x-gatepay-timestamp": timestamp,
            "x-gatepay-nonce": "n0nce",
            "x-gatepay-signature": "0" * 128,
        }

        self.assertFalse(self.gateway.verify_webhook_signature(headers, body))
        headers["x-gatepay-signature"] = self.gateway.sign(timestamp, "n0nce", body)
        self.assertTrue(self.gateway.verify_webhook_signature(headers, body))

    def test_verify_rejects_missing_headers(self):
        self.assertFalse(self.gateway.verify_webhook_signature({"x-gatepay-signature": "abc"}, b"{}"))

    def test_gatepay_is_the_only_polled_gateway(self):
        self.assertTrue(self.gateway.supports_polling)
        self.assertEqual(self.gateway.normalize_status("TIMEOUT"), GatewayStatus.FAILED)
        self.assertEqual(self.gateway.normalize_status("PROCESS"), GatewayStatus.PENDING)


if __name__ == "__main__":
    unittest.main()
