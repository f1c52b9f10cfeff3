# Custom exceptions to be used throughout the project.

class BookingError(Exception):
    """
    Base class for errors raised by the booking store. The message is what gets returned to the caller in the JSON error body.
    """
    # By default Exception class takes a tuple of arguments
    def __init__(self, message="Booking error", *args):
        super().__init__(message, *args)
        self.message = message


class InvalidInputError(BookingError):
    """
    To be raised when a request is missing a required field or carries a value the store can't work with.
    May be raised under the following circumstances:
        1. Date or slot missing / empty
        2. Date not in YYYY-MM-DD format or not a real calendar date
        3. Slot not part of the template for that day of the week
    """


class SlotAlreadyBookedError(BookingError):
    """To be raised when the slot is already in the date's booking set."""


class BookingNotFoundError(BookingError):
    """To be raised when a cancel target can't be decoded or isn't booked."""


class PersistenceError(BookingError):
    """
    To be raised when the data file can't be read or written. Details go to the log, the caller only gets a generic message.
    """
