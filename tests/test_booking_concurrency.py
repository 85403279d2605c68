# Overview: Threaded double-booking test against a file-backed SQLite database.

"""
Two requests race to book overlapping windows for the same customer.

The in-memory test database shares one connection, so this suite builds
its own app on a temporary file where every thread gets a real
connection and SQLite's writer lock is in play.
"""

import os
import tempfile
import threading
import unittest
from datetime import datetime, timedelta

from aftercare import create_app
from aftercare.domain.result import BOOKING_CONFLICT
from aftercare.extensions import db
from aftercare.models import AppointmentRecord, BookingSubject
from aftercare.services import appointment_service
from aftercare.time_utils import utcnow


class DoubleBookingTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "booking.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "BOOKING_RETRY_ATTEMPTS": 8,
            "BOOKING_RETRY_BACKOFF": 0.01,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

        day = utcnow().date() + timedelta(days=2)
        self.day = datetime(day.year, day.month, day.day)

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _race(self, windows, user_ids):
        results = []
        errors = []
        lock = threading.Lock()
        barrier = threading.Barrier(len(windows))

        def worker(user_id, start_hour, start_minute, end_hour, end_minute):
            with self.app.app_context():
                try:
                    barrier.wait()
                    result = appointment_service.book_appointment(
                        user_id=user_id,
                        type="consultation",
                        start_at=self.day.replace(hour=start_hour, minute=start_minute),
                        end_at=self.day.replace(hour=end_hour, minute=end_minute),
                    )
                    with lock:
                        results.append(result)
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        threads = [
            threading.Thread(target=worker, args=(user_id, *window))
            for user_id, window in zip(user_ids, windows)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertFalse(errors)
        return results

    def test_overlapping_bookings_for_one_customer(self):
        results = self._race([(10, 0, 11, 0), (10, 30, 11, 30)], ["U1", "U1"])

        booked = [r for r in results if r.ok]
        refused = [r for r in results if not r.ok]
        self.assertEqual(len(booked), 1)
        self.assertEqual(len(refused), 1)
        self.assertEqual(refused[0].error.kind, BOOKING_CONFLICT)

        with self.app.app_context():
            self.assertEqual(db.session.query(AppointmentRecord).count(), 1)
            self.assertEqual(appointment_service.find_overlaps(), [])

    def test_identical_windows_for_one_customer(self):
        results = self._race([(9, 0, 10, 0)] * 4, ["U1"] * 4)

        self.assertEqual(sum(1 for r in results if r.ok), 1)
        self.assertTrue(all(r.error.kind == BOOKING_CONFLICT for r in results if not r.ok))
        with self.app.app_context():
            self.assertEqual(db.session.query(AppointmentRecord).count(), 1)

    def test_different_customers_do_not_block_each_other(self):
        results = self._race([(10, 0, 11, 0), (10, 0, 11, 0)], ["U1", "U2"])

        self.assertTrue(all(r.ok for r in results))
        with self.app.app_context():
            self.assertEqual(db.session.query(BookingSubject).count(), 2)


if __name__ == "__main__":
    unittest.main()
