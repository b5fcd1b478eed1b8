from decimal import Decimal

import pytest

from app.application.use_cases.booking_processor import BookingProcessor, TransferBillingProfile
from app.domain.entities.booking import BookingStatus, PaymentMethod
from app.domain.entities.booking_details import CarDetails, FlightDetails, HotelDetails, VacationDetails
from app.domain.errors import BookingNotFoundError, ProviderError, ValidationError
from app.infrastructure.in_memory import (
    InMemoryBookingRepo,
    StubFlightOrderProvider,
    StubStayBookingProvider,
    StubTransferOrderProvider,
)

BILLING = TransferBillingProfile(
    address_line="1 Rue de Rivoli",
    zip_code="75001",
    country_code="FR",
    city_name="Paris",
    card_number="4111111111111111",
    card_holder_name="NESTERLIFY LTD",
    card_vendor_code="VI",
    card_expiry_date="2030-12",
    card_cvv="123",
)


@pytest.fixture
def repo():
    return InMemoryBookingRepo()


@pytest.fixture
def providers():
    return {
        "flight_provider": StubFlightOrderProvider(),
        "transfer_provider": StubTransferOrderProvider(),
        "stay_provider": StubStayBookingProvider(),
    }


@pytest.fixture
def processor(repo, providers, clock):
    return BookingProcessor(booking_repo=repo, clock=clock, billing_profile=BILLING, **providers)


def payload_of(fields: dict) -> dict:
    return {k: v for k, v in fields.items() if k not in ("amount", "currency", "booking_type")}


async def create(processor, fields, order_id="ORD-1"):
    return await processor.create_pending_booking(
        user_id="user-1",
        order_id=order_id,
        booking_type=fields["booking_type"],
        payload=payload_of(fields),
        amount=Decimal(fields["amount"]),
        currency=fields["currency"],
        payment_method=PaymentMethod.GATE_PAY.value,
    )


class TestCreatePendingBooking:
    async def test_flight_booking_is_stored_pending(self, processor, repo, flight_fields, clock):
        booking = await create(processor, flight_fields)

        stored = await repo.get_by_transaction_id("ORD-1")
        assert stored is not None
        assert stored.booking_status == BookingStatus.PENDING
        assert stored.payment.amount == Decimal("420.50")
        assert stored.payment.payment_method == "Gate Pay"
        assert stored.created_at == clock.now()
        assert isinstance(booking.details, FlightDetails)
        traveler = booking.details.travelers[0]
        assert traveler["contact"]["email"] == "ada@example.com"
        assert traveler["contact"]["phones"][0]["deviceType"] == "MOBILE"
        assert traveler["documents"][0]["documentType"] == "PASSPORT"

    async def test_flight_traveler_without_last_name_is_rejected(self, processor, repo, flight_fields):
        flight_fields["travelers"][0]["name"].pop("lastName")

        with pytest.raises(ValidationError) as exc_info:
            await create(processor, flight_fields)

        assert exc_info.value.field == "travelers"
        assert repo.bookings == {}

    async def test_flight_offer_without_itineraries_is_rejected(self, processor, flight_fields):
        flight_fields["flight_offers"][0].pop("itineraries")

        with pytest.raises(ValidationError):
            await create(processor, flight_fields)

    async def test_car_passenger_without_email_is_rejected(self, processor, repo, car_fields):
        car_fields["passengers"][0]["contacts"].pop("email")

        with pytest.raises(ValidationError) as exc_info:
            await create(processor, car_fields)

        assert exc_info.value.field == "passengers"
        assert repo.bookings == {}

    async def test_car_note_defaults_when_missing(self, processor, car_fields):
        car_fields.pop("note")

        booking = await create(processor, car_fields)

        assert isinstance(booking.details, CarDetails)
        assert booking.details.note == "No special requests"
        assert booking.details.passengers[0]["id"] == "1"

    async def test_hotel_requires_phone_number(self, processor, hotel_fields):
        hotel_fields["phone_number"] = "  "

        with pytest.raises(ValidationError) as exc_info:
            await create(processor, hotel_fields)

        assert exc_info.value.field == "phone_number"

    async def test_vacation_requires_package(self, processor, vacation_fields):
        vacation_fields["package"] = {}

        with pytest.raises(ValidationError):
            await create(processor, vacation_fields)

    async def test_unknown_booking_type_is_rejected(self, processor, vacation_fields):
        vacation_fields["booking_type"] = "cruise"

        with pytest.raises(ValidationError) as exc_info:
            await create(processor, vacation_fields)

        assert exc_info.value.field == "booking_type"

    async def test_non_positive_amount_is_rejected(self, processor, vacation_fields):
        vacation_fields["amount"] = "0"

        with pytest.raises(ValidationError):
            await create(processor, vacation_fields)


class TestCommit:
    async def test_flight_commit_sends_upper_cased_names(self, processor, providers, flight_fields):
        await create(processor, flight_fields)

        result = await processor.commit("ORD-1")

        order = providers["flight_provider"].orders[0]
        assert order["type"] == "flight-order"
        assert order["flightOffers"][0]["type"] == "flight-offer"
        assert order["travelers"][0]["name"] == {"firstName": "ADA", "lastName": "LOVELACE"}
        assert order["travelers"][0]["gender"] == "FEMALE"
        assert result.details.flight_order_id == result.provider_reference
        assert result.details.flight_order_id

    async def test_flight_commit_without_records_fails(self, processor, providers, flight_fields):
        await create(processor, flight_fields)

        async def no_records(order):
            return {"id": "x", "associatedRecords": []}

        providers["flight_provider"].create_flight_order = no_records

        with pytest.raises(ProviderError):
            await processor.commit("ORD-1")

    async def test_flight_commit_without_order_id_fails(self, processor, providers, flight_fields):
        await create(processor, flight_fields)

        async def no_id(order):
            return {"type": "flight-order", "associatedRecords": [{"reference": "ABC123"}]}

        providers["flight_provider"].create_flight_order = no_id

        with pytest.raises(ProviderError) as exc_info:
            await processor.commit("ORD-1")

        assert exc_info.value.provider == "amadeus"
        assert "flight order id missing" in exc_info.value.message

    async def test_car_commit_attaches_billing_and_transfer_details(self, processor, providers, car_fields):
        await create(processor, car_fields)

        result = await processor.commit("ORD-1")

        offer_id, order = providers["transfer_provider"].orders[0]
        assert offer_id == "5976726751"
        passenger = order["data"]["passengers"][0]
        assert passenger["billingAddress"] == {
            "line": "1 Rue de Rivoli",
            "zip": "75001",
            "countryCode": "FR",
            "cityName": "Paris",
        }
        assert order["data"]["payment"]["creditCard"]["vendorCode"] == "VI"
        assert order["data"]["startConnectedSegment"]["transportationNumber"] == "AF380"
        assert result.details.confirm_nbr
        assert result.details.service_provider["name"] == "Stub Transfers"

    async def test_car_commit_surfaces_provider_error_detail(self, processor, providers, car_fields):
        await create(processor, car_fields)
        providers["transfer_provider"].error = "Offer expired"

        with pytest.raises(ProviderError) as exc_info:
            await processor.commit("ORD-1")

        assert "Offer expired" in exc_info.value.message

    async def test_hotel_commit_maps_accommodation(self, processor, providers, hotel_fields):
        await create(processor, hotel_fields)

        result = await processor.commit("ORD-1")

        request = providers["stay_provider"].bookings[0]
        assert request["accommodation_special_requests"] == "Late check-in"
        details = result.details
        assert isinstance(details, HotelDetails)
        assert details.booking_id.startswith("bok_")
        assert details.check_in_information == {
            "check_out_before_time": "11:00",
            "check_in_before_time": "23:00",
            "check_in_after_time": "15:00",
        }
        assert details.address["city_name"] == "Lisbon"
        assert details.accommodation_name == "Stub Hotel"

    async def test_vacation_commit_confirms_locally(self, processor, vacation_fields):
        await create(processor, vacation_fields)

        result = await processor.commit("ORD-1")

        assert isinstance(result.details, VacationDetails)
        assert result.details.confirmed is True
        assert result.provider_reference is None

    async def test_unexpected_provider_failure_becomes_provider_error(self, processor, providers, hotel_fields):
        await create(processor, hotel_fields)

        async def broken(booking):
            raise RuntimeError("socket closed")

        providers["stay_provider"].create_stay_booking = broken

        with pytest.raises(ProviderError) as exc_info:
            await processor.commit("ORD-1")

        assert exc_info.value.provider == "duffel"

    async def test_commit_does_not_change_the_stored_booking(self, processor, repo, vacation_fields):
        await create(processor, vacation_fields)

        await processor.commit("ORD-1")

        stored = await repo.get_by_transaction_id("ORD-1")
        assert stored.booking_status == BookingStatus.PENDING
        assert stored.version == 0

    async def test_commit_unknown_order(self, processor):
        with pytest.raises(BookingNotFoundError):
            await processor.commit("ORD-missing")
