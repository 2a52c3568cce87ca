"""Booking error taxonomy.

Every error carries a stable ``code`` used by the API layer. All of them
abort the enclosing unit of work.
"""

from __future__ import annotations

from apps.locks.exceptions import InvalidRange, PinGatewayError


class BookingError(Exception):
    code = "booking_error"

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.context = context


class InvalidDateFormat(BookingError):
    """Invalid date or time format."""

    code = "invalid_date_format"


class EndBeforeStart(BookingError):
    """End date must be after start date."""

    code = "end_before_start"


class InvalidExtensionRange(BookingError):
    """New end date must be after current end date."""

    code = "invalid_extension_range"


class InvalidBookingMetadata(BookingError):
    """Missing booking details in payment metadata."""

    code = "invalid_booking_metadata"


class BoxNotFound(BookingError):
    code = "box_not_found"


class BoxUnavailable(BookingError):
    """Box is already booked for the requested dates."""

    code = "box_unavailable"


class LocationNotFound(BookingError):
    code = "location_not_found"


class BookingNotFound(BookingError):
    code = "booking_not_found"


class PaymentNotFound(BookingError):
    code = "payment_not_found"


class DuplicateBooking(BookingError):
    """Payment already has a booking."""

    code = "duplicate_booking"


class DataIntegrityError(BookingError):
    """A write did not read back as written."""

    code = "data_integrity_error"


class SequenceExhausted(BookingError):
    """No display code sequence numbers left for today."""

    code = "sequence_exhausted"


class Unauthorized(BookingError):
    """You do not own this booking."""

    code = "unauthorized"


class CannotExtend(BookingError):
    code = "cannot_extend"


class CannotCancel(BookingError):
    code = "cannot_cancel"


class CannotReturn(BookingError):
    code = "cannot_return"


class IncompleteReturn(BookingError):
    """The return must be confirmed and carry all three photos."""

    code = "incomplete_return"


class NoAlternativeBoxes(BookingError):
    """No alternative boxes of the same model exist at this location."""

    code = "no_alternative_boxes"


class NoAvailableAlternative(BookingError):
    """All alternative boxes at this location are booked for that period."""

    code = "no_available_alternative"


NOT_FOUND_ERRORS = (BoxNotFound, LocationNotFound, BookingNotFound, PaymentNotFound)


def http_status_for(exc: Exception) -> int:
    """HTTP status the API answers with for a booking or lock gateway error."""
    if isinstance(exc, NOT_FOUND_ERRORS):
        return 404
    if isinstance(exc, Unauthorized):
        return 403
    if isinstance(exc, (DuplicateBooking, BoxUnavailable)):
        return 409
    if isinstance(exc, PinGatewayError) and not isinstance(exc, InvalidRange):
        return 502
    return 400
