import logging
import threading
from dataclasses import dataclass
from typing import Dict, List
from .booking_utils import require_field, encode_booking_id, decode_booking_id, client_display_name
from .error_utils import InvalidInputError, SlotAlreadyBookedError, BookingNotFoundError, PersistenceError
from .persistence import StorePersistence
from .slot_templates import slots_for_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Booking:
    """
    A single booked slot on a date. The id is derived from the pair so it never has to be stored.
    """
    date: str
    slot: str

    @property
    def id(self) -> str:
        return encode_booking_id(self.date, self.slot)

    def to_dict(self) -> Dict[str, str]:
        return {"date": self.date, "slot": self.slot, "id": self.id}


class BookingStore:
    """
    Owns the mapping of dates to booked slots and prevents double-booking.

    Every operation loads the full store from the persistence adapter, works on that copy and, for mutations, saves it back before returning.
    A single lock serializes all operations so two requests can't both see a slot as free and book it.
    """

    def __init__(self, persistence: StorePersistence):
        self.persistence = persistence
        self._lock = threading.Lock()

    def get_availability(self, date: str) -> Dict[str, object]:
        """
        Returns: dict with the date, the template slots still free (template order) and the booked slots (booking order).
        """
        # Validate before touching the store
        template = slots_for_date(date)
        with self._lock:
            booked = list(self.persistence.load().get(date, []))
        available = [slot for slot in template if slot not in booked]
        return {"date": date, "available": available, "booked": booked}

    def book(self, date: str, slot: str, client=None, vehicle=None) -> Booking:
        """
        Books a slot on a date. client and vehicle are only used for the log line, they aren't stored.

        Raises InvalidInputError, SlotAlreadyBookedError, or PersistenceError if the save fails.
        """
        require_field(date, "Date")
        require_field(slot, "Slot")
        if slot not in slots_for_date(date):
            raise InvalidInputError(f"Slot {slot} is not offered on {date}")

        with self._lock:
            store = self.persistence.load()
            booked = store.setdefault(date, [])
            if slot in booked:
                logger.info("Booking refused, %s at %s is already booked", date, slot)
                raise SlotAlreadyBookedError("This slot is already booked")
            booked.append(slot)
            if not self.persistence.save(store):
                raise PersistenceError("Error while saving the booking")

        if vehicle:
            logger.info("Booking: %s at %s by %s (vehicle: %s)", date, slot, client_display_name(client), vehicle)
        else:
            logger.info("Booking: %s at %s by %s", date, slot, client_display_name(client))
        return Booking(date, slot)

    def list_bookings(self) -> List[Booking]:
        """Flattens the store into bookings, by date then by booking order within the date."""
        with self._lock:
            store = self.persistence.load()
        return [Booking(date, slot) for date, slots in store.items() for slot in slots]

    def cancel(self, booking_id: str) -> Booking:
        """
        Cancels the booking behind an id. The date entry is removed once its last slot is cancelled.

        Raises BookingNotFoundError, or PersistenceError if the save fails.
        """
        date, slot = decode_booking_id(booking_id)
        with self._lock:
            store = self.persistence.load()
            # Match on the id so any slot label listed by list_bookings can be cancelled
            stored_slot = next((s for s in store.get(date, []) if encode_booking_id(date, s) == booking_id), None)
            if stored_slot is None:
                logger.info("Cancel refused, no booking for %s at %s", date, slot)
                raise BookingNotFoundError("Booking not found")
            slot = stored_slot
            store[date].remove(slot)
            if not store[date]:
                del store[date]
            if not self.persistence.save(store):
                raise PersistenceError("Error while deleting the booking")

        logger.info("Booking cancelled: %s at %s", date, slot)
        return Booking(date, slot)
