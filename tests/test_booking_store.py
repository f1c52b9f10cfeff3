import unittest
import os
import sys
import threading
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from slot_booking.booking.booking_store import BookingStore, Booking
from slot_booking.booking.persistence import MemoryPersistence
from slot_booking.booking.slot_templates import DEFAULT_SLOTS, SATURDAY_SLOTS
from slot_booking.booking import error_utils


class BookingStoreTest(unittest.TestCase):
    def setUp(self):
        self.persistence = MemoryPersistence()
        self.store = BookingStore(self.persistence)

    def test_availability_uses_day_template(self):
        # 2024-06-08 is a Saturday, 2024-06-09 a Sunday
        self.assertEqual(self.store.get_availability("2024-06-08")['available'], list(SATURDAY_SLOTS))
        self.assertEqual(self.store.get_availability("2024-06-09")['available'], list(DEFAULT_SLOTS))
        self.assertEqual(self.store.get_availability("2024-06-12")['available'], list(DEFAULT_SLOTS))

    def test_availability_requires_date(self):
        for date in (None, ""):
            with self.assertRaises(error_utils.InvalidInputError):
                self.store.get_availability(date)

    def test_availability_is_idempotent(self):
        self.store.book("2024-06-12", "14:00")
        first = self.store.get_availability("2024-06-12")
        second = self.store.get_availability("2024-06-12")
        self.assertEqual(first, second)
        self.assertEqual(self.persistence.save_count, 1)

    def test_book_returns_booking(self):
        booking = self.store.book("2024-06-12", "08:00", client={"name": "Sam"})
        self.assertEqual(booking, Booking("2024-06-12", "08:00"))
        self.assertEqual(self.persistence.load(), {"2024-06-12": ["08:00"]})

    def test_double_booking_refused(self):
        self.store.book("2024-06-12", "08:00")
        self.store.book("2024-06-12", "09:00")
        with self.assertRaises(error_utils.SlotAlreadyBookedError):
            self.store.book("2024-06-12", "08:00")
        self.assertEqual(self.persistence.load(), {"2024-06-12": ["08:00", "09:00"]})
        self.assertEqual(self.persistence.save_count, 2)

    def test_book_requires_fields(self):
        with self.assertRaises(error_utils.InvalidInputError):
            self.store.book("", "08:00")
        with self.assertRaises(error_utils.InvalidInputError):
            self.store.book("2024-06-12", None)
        self.assertEqual(self.persistence.save_count, 0)

    def test_book_rejects_slot_outside_template(self):
        with self.assertRaises(error_utils.InvalidInputError):
            self.store.book("2024-06-08", "08:00")
        with self.assertRaises(error_utils.InvalidInputError):
            self.store.book("2024-06-12", "12:00")
        self.assertEqual(self.persistence.load(), {})

    def test_book_rejects_invalid_date(self):
        with self.assertRaises(error_utils.InvalidInputError):
            self.store.book("2024-02-30", "08:00")

    def test_cancel_round_trip(self):
        booking = self.store.book("2024-06-08", "11:00")
        cancelled = self.store.cancel(booking.id)
        self.assertEqual(cancelled, booking)
        self.assertIn("11:00", self.store.get_availability("2024-06-08")['available'])
        self.assertEqual(self.store.list_bookings(), [])
        # Last slot cancelled, date entry pruned
        self.assertEqual(self.persistence.load(), {})

    def test_cancel_keeps_remaining_slots(self):
        self.store.book("2024-06-08", "09:00")
        self.store.book("2024-06-08", "10:00")
        self.store.cancel("2024-06-08-09-00")
        self.assertEqual(self.persistence.load(), {"2024-06-08": ["10:00"]})

    def test_cancel_not_found(self):
        self.store.book("2024-06-08", "09:00")
        for booking_id in ("2024-06-08-10-00", "2024-06-09-09-00", "2024-06-08", "nonsense"):
            with self.assertRaises(error_utils.BookingNotFoundError):
                self.store.cancel(booking_id)
        self.assertEqual(self.persistence.load(), {"2024-06-08": ["09:00"]})

    def test_cancel_listed_free_form_slots(self):
        # Older data files hold slots that aren't in HH:MM form
        persistence = MemoryPersistence({"2024-06-10": ["9:00", "morning", "9-30"], "2024-06-11": ["10:00"]})
        store = BookingStore(persistence)
        for booking in store.list_bookings():
            self.assertEqual(store.cancel(booking.id), booking)
        self.assertEqual(store.list_bookings(), [])
        self.assertEqual(persistence.load(), {})

    def test_list_bookings_order(self):
        persistence = MemoryPersistence({"2024-06-12": ["15:00", "08:00"], "2024-06-08": ["12:00"]})
        store = BookingStore(persistence)
        self.assertEqual([b.to_dict() for b in store.list_bookings()], [
            {"date": "2024-06-12", "slot": "15:00", "id": "2024-06-12-15-00"},
            {"date": "2024-06-12", "slot": "08:00", "id": "2024-06-12-08-00"},
            {"date": "2024-06-08", "slot": "12:00", "id": "2024-06-08-12-00"},
        ])

    def test_failed_save_not_reported_as_success(self):
        self.store.book("2024-06-12", "08:00")
        self.persistence.fail_writes = True
        with self.assertRaises(error_utils.PersistenceError):
            self.store.book("2024-06-12", "09:00")
        with self.assertRaises(error_utils.PersistenceError):
            self.store.cancel("2024-06-12-08-00")
        self.assertEqual(self.store.get_availability("2024-06-12")['booked'], ["08:00"])

    def test_concurrent_bookings_single_winner(self):
        results = []

        def attempt():
            try:
                self.store.book("2024-06-12", "16:00")
                results.append("booked")
            except error_utils.SlotAlreadyBookedError:
                results.append("conflict")

        threads = [threading.Thread(target=attempt) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(results.count("booked"), 1)
        self.assertEqual(results.count("conflict"), 9)
        self.assertEqual(self.persistence.load(), {"2024-06-12": ["16:00"]})


if __name__ == '__main__':
    unittest.main()
