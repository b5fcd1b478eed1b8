"""
Shared fixtures.

Everything runs in in-memory mode: in-memory repositories, stub payment
gateways and stub travel providers, a fixed clock and sequential order ids.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import build_components, build_use_cases, get_container, get_use_cases
from app.application.dtos.order_dto import CreateOrderCommand
from app.application.interfaces.clock import FakeClock
from app.application.interfaces.order_id_generator import FakeOrderIdGenerator
from app.config import Settings
from app.infrastructure.circuit_breaker import reset_breakers
from app.infrastructure.in_memory import StubPaymentGateway
from app.main import app

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
USER_ID = "user-1"


@pytest.fixture(autouse=True)
def closed_breakers():
    reset_breakers()
    yield
    reset_breakers()


# ============================================================================
# WIRING
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, use_in_memory=True, sweeper_enabled=False, database_url=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def container(settings, clock) -> dict:
    components = build_components(settings, clock=clock, order_id_generator=FakeOrderIdGenerator())
    components["user_directory"].add(USER_ID, email="ada@example.com", first_name="Ada")
    return {
        "settings": settings,
        "components": components,
        "use_cases": build_use_cases(settings, components),
    }


@pytest.fixture
def components(container) -> dict:
    return container["components"]


@pytest.fixture
def use_cases(container) -> dict:
    return container["use_cases"]


@pytest.fixture
def client(container):
    app.dependency_overrides[get_use_cases] = lambda: container["use_cases"]
    app.dependency_overrides[get_container] = lambda: container
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# BOOKING PAYLOADS
# ============================================================================


@pytest.fixture
def flight_fields() -> dict:
    return {
        "amount": "420.50",
        "currency": "USD",
        "booking_type": "flight",
        "flight_offers": [
            {
                "id": "1",
                "itineraries": [
                    {
                        "segments": [
                            {
                                "departure": {"iataCode": "JFK", "at": "2026-04-01T10:00:00"},
                                "arrival": {"iataCode": "LHR", "at": "2026-04-01T22:00:00"},
                                "carrierCode": "BA",
                                "number": "178",
                            }
                        ]
                    }
                ],
                "price": {"total": "420.50", "currency": "USD"},
            }
        ],
        "travelers": [
            {
                "id": "1",
                "dateOfBirth": "1990-01-01",
                "name": {"firstName": "Ada", "lastName": "Lovelace"},
                "gender": "female",
                "contact": {
                    "emailAddress": "ada@example.com",
                    "phones": [{"countryCallingCode": "44", "number": "7700900000"}],
                },
                "documents": [
                    {"number": "P1234567", "expiryDate": "2030-01-01", "issuanceCountry": "GB", "nationality": "GB"}
                ],
            }
        ],
    }


@pytest.fixture
def car_fields() -> dict:
    return {
        "amount": "95.00",
        "currency": "EUR",
        "booking_type": "car",
        "car_offer_id": "5976726751",
        "passengers": [
            {
                "firstName": "Grace",
                "lastName": "Hopper",
                "title": "MS",
                "contacts": {"phoneNumber": "+33 1 23 45 67 89", "email": "grace@example.com"},
            }
        ],
        "note": "Flight lands at 10:40",
        "start_connected_segment": {"transportationType": "FLIGHT", "transportationNumber": "AF380"},
    }


@pytest.fixture
def hotel_fields() -> dict:
    return {
        "amount": "310.00",
        "currency": "GBP",
        "booking_type": "hotel",
        "quote_id": "quo_0000AS0NZdKjjnnHZmSUbI",
        "guests": [{"given_name": "Alan", "family_name": "Turing"}],
        "email": "alan@example.com",
        "phone_number": "+442080160509",
        "stay_special_requests": "Late check-in",
    }


@pytest.fixture
def vacation_fields() -> dict:
    return {
        "amount": "1200",
        "currency": "USD",
        "booking_type": "vacation",
        "package": {"name": "Lisbon Getaway", "nights": 4},
    }


# ============================================================================
# HELPERS
# ============================================================================


@pytest.fixture
def place_order(use_cases):
    """Creates a pending booking through the order use case."""

    async def _place(fields: dict, gateway: str = "binance", user_id: str = USER_ID, **extra):
        data = {**fields, **extra}
        data["amount"] = Decimal(str(data["amount"]))
        return await use_cases["create_order"].execute(
            gateway_name=gateway,
            user_id=user_id,
            command=CreateOrderCommand(**data),
        )

    return _place


@pytest.fixture
def signed_webhook():
    """Builds a stub webhook body and its signature header."""

    def _sign(gateway: StubPaymentGateway, order_id: str, payment_status: str, payment_id: str = "pay-1"):
        raw = json.dumps(
            {"order_id": order_id, "payment_id": payment_id, "payment_status": payment_status}
        ).encode()
        return raw, {StubPaymentGateway.SIGNATURE_HEADER: gateway.sign_body(raw)}

    return _sign
