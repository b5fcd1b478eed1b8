from functools import lru_cache
from typing import Any

from fastapi import Header

from app.api.deps import get_session_maker
from app.application.interfaces.clock import SystemClock
from app.application.interfaces.order_id_generator import RandomOrderIdGenerator
from app.application.use_cases.booking_processor import BookingProcessor, TransferBillingProfile
from app.application.use_cases.create_order import CreateOrderUseCase
from app.application.use_cases.get_payment_status import GetPaymentStatusUseCase, ListGatewayCurrenciesUseCase
from app.application.use_cases.list_user_bookings import GetUserBookingUseCase, ListUserBookingsUseCase
from app.application.use_cases.reconcile_payment import ReconciliationEngine
from app.application.use_cases.sweep_pending_payments import SweepPendingPaymentsUseCase
from app.config import Settings, get_settings
from app.domain.entities.booking import PaymentMethod
from app.infrastructure.db.repositories.booking_repo_sql import BookingRepoSQL
from app.infrastructure.db.repositories.notification_repo_sql import NotificationRepoSQL
from app.infrastructure.db.repositories.user_directory_sql import UserDirectorySQL
from app.infrastructure.gateways.factory import PaymentGatewayFactory
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector
from app.infrastructure.in_memory import (
    InMemoryBookingRepo,
    InMemoryMailer,
    InMemoryNotificationRepo,
    InMemoryUserDirectory,
    StubFlightOrderProvider,
    StubPaymentGateway,
    StubStayBookingProvider,
    StubTransferOrderProvider,
)
from app.infrastructure.notifications import EmailAndInAppNotifier, SmtpMailer
from app.infrastructure.providers import (
    AmadeusClient,
    AmadeusFlightOrderProvider,
    AmadeusTransferOrderProvider,
    DuffelStaysProvider,
)


def stub_gateway_selector(settings: Settings) -> PaymentGatewaySelector:
    """Offline gateways that behave like the real ones where it matters to reconciliation."""
    stubs = {
        "binance": StubPaymentGateway(
            "binance", PaymentMethod.BINANCE_PAY.value, acks_failed_payments_with_fail=True
        ),
        "gatepay": StubPaymentGateway(
            "gatepay", PaymentMethod.GATE_PAY.value, supports_polling=True, acks_failed_payments_with_fail=True
        ),
        "nowpayments": StubPaymentGateway(
            "nowpayments", PaymentMethod.NOW_PAYMENTS.value, require_pay_currency=True
        ),
    }
    return PaymentGatewaySelector(stubs[name] for name in settings.enabled_gateways)


def billing_profile(settings: Settings) -> TransferBillingProfile:
    return TransferBillingProfile(
        address_line=settings.billing_address_line,
        zip_code=settings.billing_address_zip,
        country_code=settings.billing_address_country_code,
        city_name=settings.billing_address_city_name,
        method_of_payment=settings.payment_method_of_payment,
        card_number=settings.payment_credit_card_number,
        card_holder_name=settings.payment_credit_card_holder_name,
        card_vendor_code=settings.payment_credit_card_vendor_code,
        card_expiry_date=settings.payment_credit_card_expiry_date,
        card_cvv=settings.payment_credit_card_cvv,
    )


def build_components(settings: Settings, **overrides: Any) -> dict[str, Any]:
    """
    Wires repositories, gateways and providers for the configured mode.

    Keyword overrides replace any component by name (tests inject fakes).
    """
    clock = overrides.get("clock") or SystemClock()
    if settings.use_in_memory:
        components: dict[str, Any] = {
            "booking_repo": InMemoryBookingRepo(),
            "notification_repo": InMemoryNotificationRepo(),
            "user_directory": InMemoryUserDirectory(),
            "gateway_selector": stub_gateway_selector(settings),
            "flight_provider": StubFlightOrderProvider(),
            "transfer_provider": StubTransferOrderProvider(),
            "stay_provider": StubStayBookingProvider(),
            "mailer": InMemoryMailer(),
        }
    else:
        session_maker = get_session_maker()
        amadeus = AmadeusClient(
            client_id=settings.amadeus_client_id or "",
            client_secret=settings.amadeus_client_secret or "",
            base_url=settings.amadeus_base_url,
            timeout_seconds=settings.provider_timeout_seconds,
        )
        components = {
            "booking_repo": BookingRepoSQL(session_maker),
            "notification_repo": NotificationRepoSQL(session_maker),
            "user_directory": UserDirectorySQL(session_maker),
            "gateway_selector": PaymentGatewayFactory(settings, clock=clock).build_selector(),
            "flight_provider": AmadeusFlightOrderProvider(amadeus),
            "transfer_provider": AmadeusTransferOrderProvider(amadeus),
            "stay_provider": DuffelStaysProvider(
                token=settings.duffel_token or "",
                base_url=settings.duffel_base_url,
                api_version=settings.duffel_version,
                timeout_seconds=settings.provider_timeout_seconds,
            ),
            "mailer": SmtpMailer.from_settings(settings),
        }
    components["clock"] = clock
    components["order_id_generator"] = RandomOrderIdGenerator()
    components.update(overrides)
    return components


def build_use_cases(settings: Settings, components: dict[str, Any]) -> dict[str, Any]:
    booking_repo = components["booking_repo"]
    gateway_selector = components["gateway_selector"]
    clock = components["clock"]

    notifier = components.get("notifier") or EmailAndInAppNotifier(
        user_directory=components["user_directory"],
        mailer=components["mailer"],
        notification_repo=components["notification_repo"],
        clock=clock,
        brand_name=settings.brand_name,
    )
    processor = BookingProcessor(
        booking_repo=booking_repo,
        clock=clock,
        flight_provider=components["flight_provider"],
        transfer_provider=components["transfer_provider"],
        stay_provider=components["stay_provider"],
        billing_profile=billing_profile(settings),
    )
    engine = ReconciliationEngine(
        booking_repo=booking_repo,
        booking_processor=processor,
        notifier=notifier,
        gateway_selector=gateway_selector,
        clock=clock,
    )
    return {
        "create_order": CreateOrderUseCase(
            booking_processor=processor,
            booking_repo=booking_repo,
            gateway_selector=gateway_selector,
            order_id_generator=components["order_id_generator"],
            user_directory=components["user_directory"],
            notifier=notifier,
            clock=clock,
        ),
        "reconcile_payment": engine,
        "get_payment_status": GetPaymentStatusUseCase(booking_repo, gateway_selector),
        "list_currencies": ListGatewayCurrenciesUseCase(gateway_selector),
        "sweep_pending_payments": SweepPendingPaymentsUseCase(
            booking_repo=booking_repo,
            gateway_selector=gateway_selector,
            reconciliation_engine=engine,
            clock=clock,
            pending_window_minutes=settings.pending_window_minutes,
            commit_claim_timeout_minutes=settings.commit_claim_timeout_minutes,
        ),
        "list_user_bookings": ListUserBookingsUseCase(booking_repo),
        "get_user_booking": GetUserBookingUseCase(booking_repo),
    }


@lru_cache(maxsize=1)
def get_container() -> dict[str, Any]:
    settings = get_settings()
    components = build_components(settings)
    return {
        "settings": settings,
        "components": components,
        "use_cases": build_use_cases(settings, components),
    }


def get_use_cases() -> dict[str, Any]:
    return get_container()["use_cases"]


def get_current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str | None:
    """User id set by the upstream auth layer; use cases reject a missing one with 401."""
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None
