# Utility functions for booking functionality
import re
from datetime import date, datetime
from .error_utils import InvalidInputError, BookingNotFoundError

DATE_FORMAT = "%Y-%m-%d"

# Booking ids are the YYYY-MM-DD date, a dash, then the slot with its colon turned into a dash. Ex: 2024-06-08-09-00
BOOKING_ID_PATTERN = re.compile(r'^(?P<date>\d{4}-\d{2}-\d{2})-(?P<slot>.+)$')


def require_field(value, name: str) -> str:
    """
    Checks a required request field is a non-empty string.

    Returns the value unchanged, raises InvalidInputError otherwise.
    """
    if not isinstance(value, str) or not value:
        raise InvalidInputError(f"{name} is required")
    return value


def parse_date_key(date_key: str) -> date:
    """
    Helper function that turns a YYYY-MM-DD date key into a date object.

    Input: date key string.
        Note: only the exact YYYY-MM-DD format is accepted, strptime alone would also take "2024-6-8".

    Returns: date object for the given key.
    """
    require_field(date_key, "Date")
    try:
        parsed = datetime.strptime(date_key, DATE_FORMAT).date()
    except ValueError:
        raise InvalidInputError(f"Invalid date '{date_key}', expected YYYY-MM-DD format")
    if parsed.strftime(DATE_FORMAT) != date_key:
        raise InvalidInputError(f"Invalid date '{date_key}', expected YYYY-MM-DD format")
    return parsed


def encode_booking_id(date_key: str, slot: str) -> str:
    """
    Builds the external reference for a booking: the date's dashes are kept and the colon in the time is replaced by a dash.

    Ex: ("2024-06-08", "09:00") -> "2024-06-08-09-00"
    """
    return f"{date_key}-{slot.replace(':', '-', 1)}"


def decode_booking_id(booking_id: str) -> tuple[str, str]:
    """
    Reverses encode_booking_id. The date is the leading YYYY-MM-DD, everything after the next dash is the slot with its first dash turned back into a colon.

    Returns: (date, slot) tuple.

    Raises BookingNotFoundError when the id doesn't start with a date followed by a slot, since no stored booking can match it.
    """
    match = BOOKING_ID_PATTERN.match(booking_id or '')
    if not match:
        raise BookingNotFoundError(f"Booking '{booking_id}' not found")
    return match.group('date'), match.group('slot').replace('-', ':', 1)


def client_display_name(client) -> str:
    """
    Name used when logging who made a booking. The client field is free-form so accept a dict with a name, a plain string, or nothing.
    """
    if isinstance(client, dict):
        name = client.get('name')
        if isinstance(name, str) and name.strip():
            return name.strip()
    elif isinstance(client, str) and client.strip():
        return client.strip()
    return 'anonymous'
