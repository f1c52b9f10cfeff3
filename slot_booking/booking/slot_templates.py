# Slot templates for each day of the week
from .booking_utils import parse_date_key

# Default weekday slots, split around the lunch break
DEFAULT_SLOTS = ('08:00', '09:00', '10:00', '11:00', '14:00', '15:00', '16:00', '17:00')
# Saturday slots are at least an hour long, mornings only
SATURDAY_SLOTS = ('09:00', '10:00', '11:00', '12:00')

# datetime.weekday() value for Saturday
SATURDAY = 5


def slots_for_date(date: str) -> tuple[str, ...]:
    """
    Resolves the ordered slot template for a given date.

    Input: date string in YYYY-MM-DD format.

    Returns: the Saturday template on Saturdays, the default template on every other day (Sunday included).

    Raises InvalidInputError if the date can't be parsed.
    """
    if parse_date_key(date).weekday() == SATURDAY:
        return SATURDAY_SLOTS
    return DEFAULT_SLOTS
