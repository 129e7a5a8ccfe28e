import threading
import unittest
from datetime import date, datetime, timedelta
from unittest import mock

from barbershop.accounts import find_by_email
from barbershop.booking import generate_slots
from barbershop.models import Appointment
from support import ApiTestCase, future_day


class AvailabilityTests(ApiTestCase):
    def test_empty_day_returns_all_twenty_slots(self) -> None:
        response = self.client.get(
            "/api/appointments/available-slots",
            params={"service_id": self.service_id(), "date": "2025-06-10"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["available"], generate_slots())
        self.assertEqual(body["occupied"], [])
        self.assertEqual(body["total_available"], 20)

    def test_missing_or_malformed_query_is_rejected(self) -> None:
        service_id = self.service_id()
        for params in (
            {"service_id": service_id},
            {"date": future_day()},
            {"service_id": service_id, "date": "10/06/2025"},
            {"service_id": service_id, "date": "2025-13-01"},
        ):
            with self.subTest(params=params):
                response = self.client.get("/api/appointments/available-slots", params=params)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["code"], "invalid_request")

    def test_booking_hides_slot_only_for_that_barber(self) -> None:
        _, headers = self.customer()
        barber_one = self.create_barber("Carlos")
        barber_two = self.create_barber("Diego")
        day = future_day()
        service_id = self.service_id("Haircut")

        booked = self.book(headers, barber_id=barber_one, date=day, time="09:00")
        self.assertEqual(booked.status_code, 201, booked.text)

        same_barber = self.client.get(
            "/api/appointments/available-slots",
            params={"service_id": service_id, "date": day, "barber_id": barber_one},
        ).json()
        self.assertNotIn("09:00", same_barber["available"])
        self.assertEqual(same_barber["occupied"], ["09:00"])
        self.assertEqual(same_barber["total_available"], 19)

        other_barber = self.client.get(
            "/api/appointments/available-slots",
            params={"service_id": service_id, "date": day, "barber_id": barber_two},
        ).json()
        self.assertIn("09:00", other_barber["available"])
        self.assertEqual(other_barber["total_available"], 20)


class BookingTests(ApiTestCase):
    def test_created_appointment_reads_back_with_joined_fields(self) -> None:
        email, headers = self.customer()
        barber_id = self.create_barber("Carlos")
        day = future_day()

        created = self.book(headers, barber_id=barber_id, date=day, time="10:30", notes="short sides")
        self.assertEqual(created.status_code, 201, created.text)
        appointment = created.json()["appointment"]
        self.assertEqual(appointment["service_name"], "Haircut")
        self.assertEqual(appointment["service_price"], 30.0)
        self.assertEqual(appointment["barber_name"], "Carlos")
        self.assertEqual(appointment["status"], "scheduled")

        me = self.client.get("/api/users/me", headers=headers).json()["user"]
        listed = self.client.get(f"/api/appointments/user/{me['id']}", headers=headers)
        self.assertEqual(listed.status_code, 200)
        rows = listed.json()["appointments"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["date_time"], f"{day} 10:30:00")
        self.assertEqual(rows[0]["service_name"], "Haircut")
        self.assertEqual(rows[0]["service_price"], 30.0)
        self.assertEqual(rows[0]["barber_name"], "Carlos")
        self.assertEqual(rows[0]["notes"], "short sides")
        self.assertEqual(rows[0]["client_email"], email)

    def test_missing_fields_are_reported(self) -> None:
        _, headers = self.customer()
        response = self.client.post(
            "/api/appointments",
            json={"service_id": self.service_id(), "date": future_day()},
            headers=headers,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "missing_fields")

    def test_past_date_time_is_always_rejected(self) -> None:
        _, headers = self.customer()
        barber_id = self.create_barber()
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        for fields in (
            {"date": "2025-06-10", "time": "09:00"},
            {"date": yesterday, "time": "18:30"},
            {"date": yesterday, "time": "09:00", "barber_id": barber_id},
        ):
            with self.subTest(fields=fields):
                response = self.book(headers, **fields)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["code"], "past_date_time")

    def test_time_off_the_grid_is_rejected(self) -> None:
        _, headers = self.customer()
        response = self.book(headers, time="09:15")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "invalid_request")

    def test_same_barber_and_slot_conflicts(self) -> None:
        _, first = self.customer()
        _, second = self.customer()
        barber_id = self.create_barber()

        self.assertEqual(self.book(first, barber_id=barber_id).status_code, 201)
        conflict = self.book(second, barber_id=barber_id)
        self.assertEqual(conflict.status_code, 409)
        self.assertEqual(conflict.json()["code"], "slot_conflict")

    def test_canceled_slot_can_be_booked_again(self) -> None:
        _, first = self.customer()
        _, second = self.customer()
        barber_id = self.create_barber()

        booked = self.book(first, barber_id=barber_id).json()["appointment"]
        cancel = self.client.put(f"/api/appointments/{booked['id']}/cancel", headers=first)
        self.assertEqual(cancel.status_code, 200)

        rebooked = self.book(second, barber_id=barber_id)
        self.assertEqual(rebooked.status_code, 201, rebooked.text)

    def test_racing_insert_is_rejected_by_storage_index(self) -> None:
        _, first = self.customer()
        _, second = self.customer()
        barber_id = self.create_barber()

        self.assertEqual(self.book(first, barber_id=barber_id).status_code, 201)
        # Simulate a request that ran its pre-check before the first insert landed.
        with mock.patch("barbershop.booking.find_conflict", return_value=None):
            raced = self.book(second, barber_id=barber_id)
        self.assertEqual(raced.status_code, 409)
        self.assertEqual(raced.json()["code"], "slot_conflict")

        with self.db() as db:
            live = (
                db.query(Appointment)
                .filter(Appointment.barber_id == barber_id, Appointment.status != "canceled")
                .count()
            )
        self.assertEqual(live, 1)

    def test_concurrent_bookings_for_one_slot_leave_one_winner(self) -> None:
        barber_id = self.create_barber()
        customers = [self.customer()[1] for _ in range(8)]
        payload = {
            "service_id": self.service_id(),
            "barber_id": barber_id,
            "date": future_day(),
            "time": "12:00",
        }
        barrier = threading.Barrier(len(customers))
        statuses = []
        lock = threading.Lock()

        def book(headers: dict) -> None:
            barrier.wait()
            response = self.client.post("/api/appointments", json=payload, headers=headers)
            with lock:
                statuses.append(response.status_code)

        threads = [threading.Thread(target=book, args=(headers,)) for headers in customers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(statuses), [201] + [409] * (len(customers) - 1))
        with self.db() as db:
            live = db.query(Appointment).filter(Appointment.barber_id == barber_id).count()
        self.assertEqual(live, 1)

    def test_customer_cannot_book_for_someone_else(self) -> None:
        _, headers = self.customer()
        other_email, _ = self.customer()
        with self.db() as db:
            other_id = find_by_email(db, other_email).id
        response = self.book(headers, user_id=other_id)
        self.assertEqual(response.status_code, 403)

        admin_booking = self.book(self.admin_headers(), user_id=other_id)
        self.assertEqual(admin_booking.status_code, 201, admin_booking.text)
        self.assertEqual(admin_booking.json()["appointment"]["user_id"], other_id)


class AppointmentOwnershipTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        _, self.owner = self.customer()
        _, self.stranger = self.customer()
        self.admin = self.admin_headers()
        self.barber_id = self.create_barber()
        created = self.book(self.owner, barber_id=self.barber_id)
        self.assertEqual(created.status_code, 201, created.text)
        self.appointment_id = created.json()["appointment"]["id"]

    def test_cancel_is_idempotent_for_owner_and_admin(self) -> None:
        for headers in (self.owner, self.owner, self.admin):
            response = self.client.put(f"/api/appointments/{self.appointment_id}/cancel", headers=headers)
            self.assertEqual(response.status_code, 200, response.text)
            self.assertEqual(response.json()["appointment"]["status"], "canceled")

    def test_stranger_is_forbidden_everywhere(self) -> None:
        path = f"/api/appointments/{self.appointment_id}"
        self.assertEqual(self.client.put(f"{path}/cancel", headers=self.stranger).status_code, 403)
        self.assertEqual(
            self.client.put(path, json={"notes": "mine now"}, headers=self.stranger).status_code,
            403,
        )
        self.assertEqual(
            self.client.put(f"{path}/status", json={"status": "canceled"}, headers=self.stranger).status_code,
            403,
        )
        self.assertEqual(self.client.delete(path, headers=self.stranger).status_code, 403)

    def test_owner_and_admin_can_update(self) -> None:
        path = f"/api/appointments/{self.appointment_id}"
        owner_update = self.client.put(path, json={"notes": "owner note", "time": "11:00"}, headers=self.owner)
        self.assertEqual(owner_update.status_code, 200, owner_update.text)
        self.assertEqual(owner_update.json()["appointment"]["time"], "11:00")

        admin_update = self.client.put(path, json={"notes": "admin note"}, headers=self.admin)
        self.assertEqual(admin_update.status_code, 200, admin_update.text)
        self.assertEqual(admin_update.json()["appointment"]["notes"], "admin note")

    def test_update_into_taken_slot_conflicts(self) -> None:
        _, other = self.customer()
        taken = self.book(other, barber_id=self.barber_id, time="14:00")
        self.assertEqual(taken.status_code, 201)

        response = self.client.put(
            f"/api/appointments/{self.appointment_id}",
            json={"time": "14:00"},
            headers=self.owner,
        )
        self.assertEqual(response.status_code, 409)

    def test_missing_appointment_is_not_found(self) -> None:
        response = self.client.put("/api/appointments/9999/cancel", headers=self.owner)
        self.assertEqual(response.status_code, 404)

    def test_delete_requires_terminal_status(self) -> None:
        path = f"/api/appointments/{self.appointment_id}"
        blocked = self.client.delete(path, headers=self.owner)
        self.assertEqual(blocked.status_code, 409)

        self.client.put(f"{path}/cancel", headers=self.owner)
        deleted = self.client.delete(path, headers=self.owner)
        self.assertEqual(deleted.status_code, 200, deleted.text)
        self.assertEqual(self.client.get("/api/appointments", headers=self.owner).json()["appointments"], [])

    def test_status_transitions_are_validated(self) -> None:
        path = f"/api/appointments/{self.appointment_id}/status"
        unknown = self.client.put(path, json={"status": "pending"}, headers=self.owner)
        self.assertEqual(unknown.status_code, 400)

        finalized = self.client.put(path, json={"status": "finalizado"}, headers=self.admin)
        self.assertEqual(finalized.status_code, 200)
        self.assertEqual(finalized.json()["appointment"]["stored_status"], "finalized")

        reopened = self.client.put(path, json={"status": "scheduled"}, headers=self.admin)
        self.assertEqual(reopened.status_code, 409)
        self.assertEqual(reopened.json()["code"], "invalid_status_transition")

    def test_listing_scopes_by_role(self) -> None:
        self.book(self.stranger, barber_id=self.barber_id, time="15:00")

        own = self.client.get("/api/appointments", headers=self.owner).json()["appointments"]
        self.assertEqual([row["id"] for row in own], [self.appointment_id])

        everything = self.client.get("/api/appointments", headers=self.admin).json()["appointments"]
        self.assertEqual(len(everything), 2)

        admin_view = self.client.get("/api/appointments/admin", headers=self.admin)
        self.assertEqual(admin_view.status_code, 200)
        self.assertEqual(self.client.get("/api/appointments/admin", headers=self.owner).status_code, 403)

        owner_id = own[0]["user_id"]
        self.assertEqual(
            self.client.get(f"/api/appointments/user/{owner_id}", headers=self.stranger).status_code,
            403,
        )

    def test_past_scheduled_rows_are_presented_as_finalized(self) -> None:
        with self.db() as db:
            appointment = db.get(Appointment, self.appointment_id)
            appointment.scheduled_at = datetime.now().replace(second=0, microsecond=0) - timedelta(days=1)
            db.commit()

        row = self.client.get("/api/appointments", headers=self.owner).json()["appointments"][0]
        self.assertEqual(row["status"], "finalized")
        self.assertEqual(row["stored_status"], "scheduled")

    def test_finalized_or_canceled_rows_cannot_be_rescheduled(self) -> None:
        with self.db() as db:
            appointment = db.get(Appointment, self.appointment_id)
            appointment.scheduled_at = datetime.now().replace(second=0, microsecond=0) - timedelta(days=1)
            db.commit()

        path = f"/api/appointments/{self.appointment_id}"
        moved = self.client.put(path, json={"date": future_day(5)}, headers=self.owner)
        self.assertEqual(moved.status_code, 409)
        self.assertEqual(moved.json()["code"], "invalid_status_transition")

        row = self.client.get("/api/appointments", headers=self.owner).json()["appointments"][0]
        self.assertEqual(row["status"], "finalized")

        _, other = self.customer()
        canceled = self.book(other, barber_id=self.barber_id, time="16:00").json()["appointment"]
        self.client.put(f"/api/appointments/{canceled['id']}/cancel", headers=other)
        moved_canceled = self.client.put(
            f"/api/appointments/{canceled['id']}",
            json={"time": "16:30"},
            headers=other,
        )
        self.assertEqual(moved_canceled.status_code, 409)

    def test_admin_status_and_delete_endpoints(self) -> None:
        status = self.client.put(
            f"/api/appointments/admin/{self.appointment_id}/status",
            json={"status": "canceled"},
            headers=self.admin,
        )
        self.assertEqual(status.status_code, 200)
        deleted = self.client.delete(f"/api/appointments/admin/{self.appointment_id}", headers=self.admin)
        self.assertEqual(deleted.status_code, 200)


if __name__ == "__main__":
    unittest.main()
