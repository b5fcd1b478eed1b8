import logging
from copy import deepcopy
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.travel_provider import (
    FlightOrderProvider,
    StayBookingProvider,
    TransferOrderProvider,
)
from app.domain.entities.booking import Booking, PaymentDetails
from app.domain.entities.booking_details import (
    BookingDetails,
    BookingType,
    CarDetails,
    FlightDetails,
    HotelDetails,
    VacationDetails,
)
from app.domain.errors import BookingNotFoundError, ProviderError, ValidationError

PROVIDER_BY_TYPE = {
    BookingType.FLIGHT: "amadeus",
    BookingType.CAR: "amadeus",
    BookingType.HOTEL: "duffel",
    BookingType.VACATION: "internal",
}


@dataclass(frozen=True)
class TransferBillingProfile:
    """Merchant billing address and card sent with every transfer order."""

    address_line: str | None = None
    zip_code: str | None = None
    country_code: str | None = None
    city_name: str | None = None
    method_of_payment: str = "CREDIT_CARD"
    card_number: str | None = None
    card_holder_name: str | None = None
    card_vendor_code: str | None = None
    card_expiry_date: str | None = None
    card_cvv: str | None = None

    def billing_address(self) -> dict[str, Any]:
        return {
            "line": self.address_line,
            "zip": self.zip_code,
            "countryCode": self.country_code,
            "cityName": self.city_name,
        }

    def payment(self) -> dict[str, Any]:
        return {
            "methodOfPayment": self.method_of_payment,
            "creditCard": {
                "number": self.card_number,
                "holderName": self.card_holder_name,
                "vendorCode": self.card_vendor_code,
                "expiryDate": self.card_expiry_date,
                "cvv": self.card_cvv,
            },
        }


@dataclass
class CommitResult:
    order_id: str
    details: BookingDetails
    provider_reference: str | None = None


def _non_empty_list(payload: dict[str, Any], field: str) -> list[Any]:
    value = payload.get(field)
    if not isinstance(value, list) or not value:
        raise ValidationError(field, "must be a non-empty list")
    return value


def _required_text(payload: dict[str, Any], field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    return value.strip()


class BookingProcessor:
    """
    Validates booking payloads into pending bookings and performs the
    provider commit once payment is confirmed.

    The commit step never marks a booking successful: it returns the updated
    details and the caller persists them.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        clock: Clock,
        flight_provider: FlightOrderProvider,
        transfer_provider: TransferOrderProvider,
        stay_provider: StayBookingProvider,
        billing_profile: TransferBillingProfile | None = None,
    ) -> None:
        self._booking_repo = booking_repo
        self._clock = clock
        self._flight_provider = flight_provider
        self._transfer_provider = transfer_provider
        self._stay_provider = stay_provider
        self._billing_profile = billing_profile or TransferBillingProfile()
        self._logger = logging.getLogger(__name__)

    # === Pending booking ===

    async def create_pending_booking(
        self,
        user_id: str,
        order_id: str,
        booking_type: BookingType | str,
        payload: dict[str, Any],
        amount: Decimal,
        currency: str,
        payment_method: str,
    ) -> Booking:
        booking_type = self._parse_booking_type(booking_type)
        details = self.build_details(booking_type, payload)
        try:
            amount = Decimal(str(amount))
        except InvalidOperation as exc:
            raise ValidationError("amount", "must be a number") from exc
        if not amount.is_finite() or amount <= 0:
            raise ValidationError("amount", "must be positive")
        if not currency or not currency.strip():
            raise ValidationError("currency", "is required")

        now = self._clock.now()
        booking = Booking(
            user_id=user_id,
            booking_type=booking_type,
            details=details,
            payment=PaymentDetails(
                transaction_id=order_id,
                payment_method=payment_method,
                amount=amount,
                currency=currency.strip().upper(),
            ),
            created_at=now,
            updated_at=now,
        )
        await self._booking_repo.create(booking)
        self._logger.info(
            "Pending booking created",
            extra={
                "order_id": order_id,
                "booking_id": booking.id,
                "booking_type": booking_type.value,
                "payment_method": payment_method,
            },
        )
        return booking

    @staticmethod
    def _parse_booking_type(booking_type: BookingType | str) -> BookingType:
        try:
            return BookingType(booking_type)
        except ValueError as exc:
            raise ValidationError("booking_type", f"unsupported booking type '{booking_type}'") from exc

    def build_details(self, booking_type: BookingType, payload: dict[str, Any]) -> BookingDetails:
        if booking_type == BookingType.FLIGHT:
            return self._flight_details(payload)
        if booking_type == BookingType.CAR:
            return self._car_details(payload)
        if booking_type == BookingType.HOTEL:
            return self._hotel_details(payload)
        return self._vacation_details(payload)

    def _flight_details(self, payload: dict[str, Any]) -> FlightDetails:
        offers = _non_empty_list(payload, "flight_offers")
        for index, offer in enumerate(offers, start=1):
            if not isinstance(offer, dict) or not offer.get("itineraries"):
                raise ValidationError("flight_offers", f"offer {index} has no itineraries")
        travelers = _non_empty_list(payload, "travelers")
        for index, traveler in enumerate(travelers, start=1):
            name = traveler.get("name") if isinstance(traveler, dict) else None
            if not isinstance(name, dict) or not name.get("firstName") or not name.get("lastName"):
                raise ValidationError("travelers", f"traveler {index} needs name.firstName and name.lastName")
        return FlightDetails(
            flight_offers=tuple(deepcopy(offers)),
            travelers=tuple(self._normalize_traveler(t) for t in travelers),
        )

    @staticmethod
    def _normalize_traveler(traveler: dict[str, Any]) -> dict[str, Any]:
        contact = traveler.get("contact") or {}
        return {
            "id": traveler.get("id"),
            "dateOfBirth": traveler.get("dateOfBirth"),
            "name": {
                "firstName": traveler["name"]["firstName"],
                "lastName": traveler["name"]["lastName"],
            },
            "gender": traveler.get("gender"),
            "contact": {
                "email": contact.get("email") or contact.get("emailAddress") or "",
                "phones": [
                    {
                        "deviceType": phone.get("deviceType") or "MOBILE",
                        "countryCallingCode": phone.get("countryCallingCode") or "1",
                        "number": phone.get("number") or "",
                    }
                    for phone in contact.get("phones") or []
                ],
            },
            "documents": [
                {
                    "documentType": doc.get("documentType") or "PASSPORT",
                    "number": doc.get("number") or "",
                    "expiryDate": doc.get("expiryDate") or "",
                    "nationality": doc.get("nationality") or "",
                    "issuanceLocation": doc.get("issuanceLocation") or doc.get("issuanceCountry") or "",
                    "issuanceDate": doc.get("issuanceDate") or "",
                    "issuanceCountry": doc.get("issuanceCountry") or "",
                    "validityCountry": doc.get("validityCountry") or doc.get("issuanceCountry") or "",
                    "holder": doc.get("holder", True),
                }
                for doc in traveler.get("documents") or []
            ],
        }

    def _car_details(self, payload: dict[str, Any]) -> CarDetails:
        car_offer_id = _required_text(payload, "car_offer_id")
        passengers = _non_empty_list(payload, "passengers")
        normalized = []
        for index, passenger in enumerate(passengers, start=1):
            contacts = passenger.get("contacts") if isinstance(passenger, dict) else None
            if (
                not isinstance(contacts, dict)
                or not passenger.get("firstName")
                or not passenger.get("lastName")
                or not passenger.get("title")
                or not contacts.get("phoneNumber")
                or not contacts.get("email")
            ):
                raise ValidationError(
                    "passengers",
                    f"passenger {index} needs firstName, lastName, title, "
                    "contacts.phoneNumber and contacts.email",
                )
            normalized.append(
                {
                    "id": str(index),
                    "firstName": passenger["firstName"],
                    "lastName": passenger["lastName"],
                    "title": passenger["title"],
                    "contacts": {
                        "phoneNumber": contacts["phoneNumber"],
                        "email": contacts["email"],
                    },
                }
            )
        return CarDetails(
            car_offer_id=car_offer_id,
            passengers=tuple(normalized),
            note=payload.get("note") or "No special requests",
            start_connected_segment=deepcopy(payload.get("start_connected_segment")),
            end_connected_segment=deepcopy(payload.get("end_connected_segment")),
        )

    def _hotel_details(self, payload: dict[str, Any]) -> HotelDetails:
        quote_id = _required_text(payload, "quote_id")
        guests = _non_empty_list(payload, "guests")
        for index, guest in enumerate(guests, start=1):
            if not isinstance(guest, dict) or not guest.get("given_name") or not guest.get("family_name"):
                raise ValidationError("guests", f"guest {index} needs given_name and family_name")
        return HotelDetails(
            quote_id=quote_id,
            guests=tuple({"given_name": g["given_name"], "family_name": g["family_name"]} for g in guests),
            email=_required_text(payload, "email"),
            phone_number=_required_text(payload, "phone_number"),
            stay_special_requests=payload.get("stay_special_requests"),
        )

    def _vacation_details(self, payload: dict[str, Any]) -> VacationDetails:
        package = payload.get("package")
        if not isinstance(package, dict) or not package:
            raise ValidationError("package", "must be a non-empty object")
        return VacationDetails(package=deepcopy(package))

    # === Commit ===

    async def commit(self, order_id: str) -> CommitResult:
        """
        Books the paid product with its provider.

        Raises:
            BookingNotFoundError: no booking for `order_id`.
            ProviderError: explicit provider rejection or any failure calling it.
        """
        booking = await self._booking_repo.get_by_transaction_id(order_id)
        if not booking:
            raise BookingNotFoundError(order_id)

        details = booking.details
        try:
            if isinstance(details, FlightDetails):
                committed = await self.commit_flight(details)
                reference = committed.flight_order_id
            elif isinstance(details, CarDetails):
                committed = await self.commit_car(details)
                reference = committed.confirm_nbr
            elif isinstance(details, HotelDetails):
                committed = await self.commit_hotel(details)
                reference = committed.booking_id
            else:
                committed = await self.commit_vacation(details)
                reference = None
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(PROVIDER_BY_TYPE[booking.booking_type], str(exc) or type(exc).__name__) from exc

        self._logger.info(
            "Provider commit succeeded",
            extra={
                "order_id": order_id,
                "booking_type": booking.booking_type.value,
                "provider_reference": reference,
            },
        )
        return CommitResult(order_id=order_id, details=committed, provider_reference=reference)

    def build_flight_order(self, details: FlightDetails) -> dict[str, Any]:
        offers = [
            {**deepcopy(offer), "id": str(index), "type": "flight-offer"}
            for index, offer in enumerate(details.flight_offers, start=1)
        ]
        travelers = [
            {
                "id": traveler.get("id"),
                "dateOfBirth": traveler.get("dateOfBirth"),
                "name": {
                    "firstName": traveler["name"]["firstName"].upper(),
                    "lastName": traveler["name"]["lastName"].upper(),
                },
                "gender": (traveler.get("gender") or "").upper(),
                "contact": {
                    "emailAddress": traveler["contact"]["email"],
                    "phones": deepcopy(traveler["contact"]["phones"]),
                },
                "documents": deepcopy(traveler.get("documents") or []),
            }
            for traveler in details.travelers
        ]
        return {"type": "flight-order", "flightOffers": offers, "travelers": travelers}

    async def commit_flight(self, details: FlightDetails) -> FlightDetails:
        data = await self._flight_provider.create_flight_order(self.build_flight_order(details))
        if not data or not data.get("associatedRecords"):
            raise ProviderError("amadeus", "flight order returned no associated records")
        if not data.get("id"):
            raise ProviderError("amadeus", "flight order id missing from response")
        return replace(details, flight_order_id=str(data["id"]))

    def build_transfer_order(self, details: CarDetails) -> dict[str, Any]:
        billing_address = self._billing_profile.billing_address()
        return {
            "data": {
                "note": details.note or "No special requests",
                "passengers": [
                    {
                        "firstName": passenger["firstName"],
                        "lastName": passenger["lastName"],
                        "title": passenger["title"],
                        "contacts": dict(passenger["contacts"]),
                        "billingAddress": dict(billing_address),
                    }
                    for passenger in details.passengers
                ],
                "payment": self._billing_profile.payment(),
                "startConnectedSegment": deepcopy(details.start_connected_segment),
            }
        }

    async def commit_car(self, details: CarDetails) -> CarDetails:
        response = await self._transfer_provider.create_transfer_order(
            details.car_offer_id, self.build_transfer_order(details)
        )
        errors = response.get("errors")
        if errors:
            raise ProviderError("amadeus", errors[0].get("detail") or "transfer order rejected")
        transfers = (response.get("data") or {}).get("transfers") or []
        if not transfers:
            raise ProviderError("amadeus", "transfer order returned no transfers")
        transfer = transfers[0]
        return replace(
            details,
            confirm_nbr=transfer.get("confirmNbr"),
            transfer_type=transfer.get("transferType"),
            distance=transfer.get("distance"),
            start=transfer.get("start"),
            end=transfer.get("end"),
            vehicle=transfer.get("vehicle"),
            service_provider=(transfer.get("partnerInfo") or {}).get("serviceProvider")
            or transfer.get("serviceProvider"),
            quotation=transfer.get("quotation"),
        )

    def build_stay_booking(self, details: HotelDetails) -> dict[str, Any]:
        request = {
            "quote_id": details.quote_id,
            "phone_number": details.phone_number,
            "guests": [dict(guest) for guest in details.guests],
            "email": details.email,
        }
        if details.stay_special_requests:
            request["accommodation_special_requests"] = details.stay_special_requests
        return request

    async def commit_hotel(self, details: HotelDetails) -> HotelDetails:
        data = await self._stay_provider.create_stay_booking(self.build_stay_booking(details))
        if not data or not data.get("id"):
            raise ProviderError("duffel", "stay booking returned no booking id")
        accommodation = data.get("accommodation") or {}
        check_in = accommodation.get("check_in_information") or {}
        address = accommodation.get("address") or (accommodation.get("location") or {}).get("address") or {}
        return replace(
            details,
            booking_id=data["id"],
            check_in_date=data.get("check_in_date"),
            check_out_date=data.get("check_out_date"),
            rooms=data.get("rooms"),
            check_in_information={
                "check_out_before_time": check_in.get("check_out_before_time") or "",
                "check_in_before_time": check_in.get("check_in_before_time") or "",
                "check_in_after_time": check_in.get("check_in_after_time") or "",
            },
            accommodation_name=accommodation.get("name"),
            address={
                "line_one": address.get("line_one") or "",
                "city_name": address.get("city_name") or "",
                "country_code": address.get("country_code") or "",
                "postal_code": address.get("postal_code") or "",
            },
        )

    async def commit_vacation(self, details: VacationDetails) -> VacationDetails:
        """Vacation packages have no external provider; confirming is local."""
        return replace(details, confirmed=True)
