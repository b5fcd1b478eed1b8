from typing import Dict

from app.application.interfaces.clock import Clock
from app.application.interfaces.payment_gateway import PaymentGateway
from app.config import Settings
from app.domain.errors import UnknownGatewayError
from app.infrastructure.gateways.binance_pay_gateway import BinancePayGateway
from app.infrastructure.gateways.gate_pay_gateway import GatePayGateway
from app.infrastructure.gateways.now_payments_gateway import NowPaymentsGateway
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector


class PaymentGatewayFactory:
    """Builds the real gateway adapters from settings, one instance per gateway."""

    def __init__(self, settings: Settings, clock: Clock | None = None):
        self.settings = settings
        self._clock = clock
        self._adapters: Dict[str, PaymentGateway] = {}

    def get_adapter(self, gateway_name: str) -> PaymentGateway:
        name = (gateway_name or "").lower()
        if name in self._adapters:
            return self._adapters[name]
        s = self.settings

        if name == "binance":
            adapter: PaymentGateway = BinancePayGateway(
                api_key=s.binance_api_key or "",
                secret_key=s.binance_secret_key or "",
                webhook_secret=s.binance_webhook_secret,
                return_url=s.binance_return_url or "",
                cancel_url=s.binance_cancel_url or "",
                webhook_url=s.binance_webhook_url or "",
                settlement_currency=s.binance_settlement_currency,
                base_url=s.binance_base_url,
                timeout_seconds=s.gateway_timeout_seconds,
                query_timeout_seconds=s.gateway_query_timeout_seconds,
                webhook_tolerance_seconds=s.webhook_tolerance_seconds,
                clock=self._clock,
            )
        elif name == "gatepay":
            adapter = GatePayGateway(
                client_id=s.gatepay_client_id or "",
                api_key=s.gatepay_api_key or "",
                merchant_user_id=s.gatepay_merchant_user_id,
                chain=s.gatepay_chain or "",
                full_curr_type=s.gatepay_full_curr_type or "",
                return_url=s.gatepay_return_url or "",
                cancel_url=s.gatepay_cancel_url or "",
                settlement_currency=s.gatepay_settlement_currency,
                base_url=s.gatepay_base_url,
                timeout_seconds=s.gateway_timeout_seconds,
                query_timeout_seconds=s.gateway_query_timeout_seconds,
                webhook_tolerance_seconds=s.webhook_tolerance_seconds,
                clock=self._clock,
            )
        elif name == "nowpayments":
            adapter = NowPaymentsGateway(
                api_key=s.nowpayments_api_key or "",
                ipn_secret=s.nowpayments_ipn_secret or "",
                webhook_url=s.nowpayments_webhook_url or "",
                base_url=s.nowpayments_base_url,
                timeout_seconds=s.gateway_timeout_seconds,
                query_timeout_seconds=s.gateway_query_timeout_seconds,
                clock=self._clock,
            )
        else:
            raise UnknownGatewayError(gateway_name)

        self._adapters[name] = adapter
        return adapter

    def build_selector(self) -> PaymentGatewaySelector:
        return PaymentGatewaySelector(self.get_adapter(name) for name in self.settings.enabled_gateways)
