"""Subjects, in-app texts and HTML bodies for booking notifications."""

from dataclasses import dataclass
from html import escape

from app.application.interfaces.notifier import NotificationEvent
from app.domain.entities.booking import Booking
from app.domain.entities.booking_details import CarDetails, FlightDetails, HotelDetails, VacationDetails

BOX = '<div style="margin-bottom: 20px; padding: 15px; background-color: #f8f9fa; border-radius: 8px;">'
LINE = '<p style="margin: 5px 0;"><strong>{label}:</strong> {value}</p>'


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    title: str
    message: str
    html: str
    text: str


def _line(label: str, value) -> str:
    return LINE.format(label=label, value=escape(str(value if value not in (None, "") else "N/A")))


def _box(heading: str, lines: list[str]) -> str:
    return f'{BOX}<h3 style="margin-top: 0; color: #333;">{heading}</h3>{"".join(lines)}</div>'


def _flight_section(details: FlightDetails) -> str:
    lines = [_line("Booking Reference", details.flight_order_id or "Pending")]
    try:
        segments = details.flight_offers[0]["itineraries"][0]["segments"]
        first, last = segments[0], segments[-1]
        lines += [
            _line("From", f'{first["departure"]["iataCode"]} at {first["departure"].get("at", "")}'),
            _line("To", f'{last["arrival"]["iataCode"]} at {last["arrival"].get("at", "")}'),
            _line("Airline", f'{first.get("carrierCode", "")} {first.get("number", "")}'.strip()),
        ]
    except (IndexError, KeyError, TypeError):
        pass
    lines.append(_line("Travelers", len(details.travelers)))
    return _box("Flight Details", lines)


def _hotel_section(details: HotelDetails) -> str:
    address = details.address or {}
    location = ", ".join(
        part for part in (address.get("line_one"), address.get("city_name"), address.get("country_code")) if part
    )
    return _box(
        "Hotel Details",
        [
            _line("Hotel Name", details.accommodation_name),
            _line("Address", location),
            _line("Booking Reference", details.booking_id or "Pending"),
            _line("Check-in", details.check_in_date),
            _line("Check-out", details.check_out_date),
            _line("Guests", len(details.guests)),
            _line("Rooms", details.rooms or 1),
        ],
    )


def _car_section(details: CarDetails) -> str:
    start = details.start or {}
    end = details.end or {}
    vehicle = details.vehicle or {}
    provider = details.service_provider or {}
    return _box(
        "Car Transfer Details",
        [
            _line("Confirmation Number", details.confirm_nbr or "Pending"),
            _line("Service Provider", provider.get("name")),
            _line("Pickup", start.get("locationCode") or (start.get("address") or {}).get("cityName")),
            _line("Time", start.get("dateTime")),
            _line("Dropoff", (end.get("address") or {}).get("cityName") or end.get("locationCode")),
            _line("Vehicle", vehicle.get("description") or "Standard Car"),
            _line("Passengers", len(details.passengers)),
            _line("Note", details.note or "None"),
        ],
    )


def _vacation_section(details: VacationDetails) -> str:
    return _box("Vacation Details", [_line("Package", details.package.get("name") or "Vacation Package")])


def details_section(booking: Booking) -> str:
    details = booking.details
    if isinstance(details, FlightDetails):
        return _flight_section(details)
    if isinstance(details, HotelDetails):
        return _hotel_section(details)
    if isinstance(details, CarDetails):
        return _car_section(details)
    return _vacation_section(details)


def _wrap(heading: str, greeting: str, paragraphs: list[str], brand: str) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #333;">'
        f'<h2 style="color: #2c3e50; text-align: center;">{heading}</h2>'
        f"<p>Dear {escape(greeting)},</p>{body}"
        '<div style="margin-top: 30px; border-top: 1px solid #eee; padding-top: 20px; font-size: 12px; color: #777;">'
        f"<p>Best regards,<br>The {escape(brand)} Team</p></div></div>"
    )


def render(booking: Booking, event: NotificationEvent, first_name: str | None, brand: str) -> RenderedMessage:
    greeting = first_name or "Customer"
    booking_type = booking.booking_type.value
    order_id = booking.order_id
    order = f"<strong>{escape(order_id)}</strong>"

    if event == NotificationEvent.ORDER_INITIATED:
        title = f"{booking_type.upper()} - Booking Initiated"
        message = (
            f"Your {booking_type} booking with order ID {order_id} has been successfully initiated, "
            "please proceed with payment."
        )
        paragraphs = [
            f"Your {booking_type} booking has been successfully initiated, please proceed with payment. "
            f"Your order ID is {order}.",
            "Thank you for choosing our service.",
        ]
        subject = title
    elif event == NotificationEvent.PAYMENT_SUCCEEDED:
        title = "Payment Successful"
        subject = "Payment Successful - Booking Confirmed"
        message = f"Your payment for {booking_type} booking with order ID {order_id} has been successfully processed."
        paragraphs = [
            f"Your payment for <strong>{booking_type}</strong> booking with Order ID {order} "
            "has been successfully processed.",
            details_section(booking),
            f"Thank you for choosing {escape(brand)} for your travel needs.",
        ]
    elif event == NotificationEvent.PAYMENT_FAILED:
        title = f"{booking_type.upper()} - Booking Failed"
        subject = title
        message = f"Your {booking_type} booking with order ID {order_id} has failed."
        paragraphs = [
            f"Your {booking_type} booking with order ID {order} could not be completed.",
            "Please try again or contact support.",
        ]
    else:
        title = f"{booking_type.upper()} - Booking Cancelled"
        subject = title
        message = (
            f"Your {booking_type} booking with order ID {order_id} was cancelled because "
            "payment was not received in time."
        )
        paragraphs = [
            f"We did not receive payment for your {booking_type} booking with order ID {order} in time, "
            "so it has been cancelled.",
            "You are welcome to place a new booking at any time.",
        ]

    text = f"Dear {greeting},\n\n{message}\n\nBest regards,\nThe {brand} Team"
    return RenderedMessage(
        subject=subject,
        title=title,
        message=message,
        html=_wrap(title, greeting, paragraphs, brand),
        text=text,
    )
