from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.application.interfaces.clock import FakeClock
from app.application.interfaces.notifier import NotificationEvent
from app.domain.entities.booking import Booking, PaymentDetails
from app.domain.entities.booking_details import BookingType, FlightDetails, HotelDetails
from app.infrastructure.in_memory import InMemoryMailer, InMemoryNotificationRepo, InMemoryUserDirectory
from app.infrastructure.notifications import EmailAndInAppNotifier
from app.infrastructure.notifications.templates import render


FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_booking(user_id="user-1", details=None, booking_type=BookingType.FLIGHT) -> Booking:
    details = details or FlightDetails(
        flight_offers=(
            {
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
                ]
            },
        ),
        travelers=({"id": "1"},),
        flight_order_id="eJzTd9f",
    )
    return Booking(
        user_id=user_id,
        booking_type=booking_type,
        details=details,
        payment=PaymentDetails(
            transaction_id="ORD-00000000000000AA",
            payment_method="Binance Pay",
            amount=Decimal("420.50"),
            currency="USD",
        ),
    )


@pytest.fixture
def directory():
    directory = InMemoryUserDirectory()
    directory.add("user-1", email="ada@example.com", first_name="Ada")
    return directory


@pytest.fixture
def mailer():
    return InMemoryMailer()


@pytest.fixture
def notifications():
    return InMemoryNotificationRepo()


@pytest.fixture
def notifier(directory, mailer, notifications):
    return EmailAndInAppNotifier(directory, mailer, notifications, FakeClock(FIXED_NOW), brand_name="Nesterlify")


async def test_emails_and_stores_notification(notifier, mailer, notifications):
    await notifier.notify(make_booking(), NotificationEvent.PAYMENT_SUCCEEDED)

    assert len(mailer.sent) == 1
    email = mailer.sent[0]
    assert email.to == "ada@example.com"
    assert email.subject == "Payment Successful - Booking Confirmed"
    assert "Dear Ada" in email.html
    assert "JFK" in email.html and "LHR" in email.html

    stored = await notifications.list_by_user("user-1")
    assert [n.title for n in stored] == ["Payment Successful"]
    assert stored[0].category == "flight"
    assert stored[0].created_at == FIXED_NOW


async def test_without_email_only_stores_notification(notifier, mailer, notifications):
    await notifier.notify(make_booking(user_id="user-2"), NotificationEvent.ORDER_INITIATED)

    assert mailer.sent == []
    stored = await notifications.list_by_user("user-2")
    assert [n.title for n in stored] == ["FLIGHT - Booking Initiated"]


async def test_mailer_failure_still_stores_notification(directory, notifications):
    broken_mailer = AsyncMock()
    broken_mailer.send.side_effect = ConnectionRefusedError("relay down")
    notifier = EmailAndInAppNotifier(directory, broken_mailer, notifications, FakeClock(FIXED_NOW))

    await notifier.notify(make_booking(), NotificationEvent.PAYMENT_FAILED)

    broken_mailer.send.assert_awaited_once()
    stored = await notifications.list_by_user("user-1")
    assert [n.title for n in stored] == ["FLIGHT - Booking Failed"]


async def test_store_failure_is_not_raised(directory, mailer):
    broken_repo = AsyncMock()
    broken_repo.create.side_effect = RuntimeError("database unavailable")
    notifier = EmailAndInAppNotifier(directory, mailer, broken_repo, FakeClock(FIXED_NOW))

    await notifier.notify(make_booking(), NotificationEvent.BOOKING_CANCELLED)

    assert len(mailer.sent) == 1


def test_render_escapes_user_supplied_values():
    booking = make_booking(
        booking_type=BookingType.HOTEL,
        details=HotelDetails(
            quote_id="quo_1",
            guests=({"given_name": "Alan"},),
            email="alan@example.com",
            phone_number="+442080160509",
            accommodation_name="<script>alert(1)</script> Inn",
        ),
    )

    rendered = render(booking, NotificationEvent.PAYMENT_SUCCEEDED, "<b>Alan</b>", "Nesterlify")

    assert "<script>" not in rendered.html
    assert "&lt;script&gt;" in rendered.html
    assert "Dear &lt;b&gt;Alan&lt;/b&gt;" in rendered.html
    assert "Hotel Details" in rendered.html


def test_render_cancelled_without_first_name():
    rendered = render(make_booking(), NotificationEvent.BOOKING_CANCELLED, None, "Nesterlify")

    assert rendered.title == "FLIGHT - Booking Cancelled"
    assert rendered.text.startswith("Dear Customer,")
    assert "ORD-00000000000000AA" in rendered.message
