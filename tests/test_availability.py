"""
Tests for destination calendars: reads, upserts, bulk edits and blocking.
"""

from datetime import date, timedelta

from app.models import Availability

API = "/api/v1/availability"


def future(days: int) -> date:
    return date.today() + timedelta(days=days)


class TestCalendarReads:
    def test_default_range_starts_today(self, client, db, destination):
        """Past days fall outside the default window"""
        db.add_all(
            [
                Availability(destination_id=destination.id, date=future(-3), available_slots=5),
                Availability(destination_id=destination.id, date=future(3), available_slots=5),
            ]
        )
        db.commit()

        response = client.get(f"{API}/destination/{destination.id}")

        assert response.status_code == 200
        assert [row["date"] for row in response.json()["data"]] == [future(3).isoformat()]

    def test_short_path_is_an_alias(self, client, db, destination):
        db.add(Availability(destination_id=destination.id, date=future(3), available_slots=2))
        db.commit()

        long_form = client.get(f"{API}/destination/{destination.id}").json()
        short_form = client.get(f"{API}/{destination.id}").json()

        assert long_form["data"] == short_form["data"]

    def test_derived_fields(self, client, db, destination):
        db.add(
            Availability(
                destination_id=destination.id, date=future(5), available_slots=3, booked_slots=3
            )
        )
        db.commit()

        row = client.get(f"{API}/destination/{destination.id}").json()["data"][0]

        assert row["isAvailable"] is False
        assert row["remainingSlots"] == 0

    def test_unknown_destination(self, client):
        response = client.get(f"{API}/destination/999")

        assert response.status_code == 404


class TestAdminCalendar:
    def test_upsert_creates_then_updates(self, client, db, admin_headers, destination):
        payload = {"destinationId": destination.id, "date": str(future(10)), "availableSlots": 4}

        first = client.post(API, json=payload, headers=admin_headers)
        second = client.post(
            API, json={**payload, "availableSlots": 8, "priceOverride": 250}, headers=admin_headers
        )

        assert first.status_code == second.status_code == 201
        assert db.query(Availability).count() == 1
        assert second.json()["data"]["availableSlots"] == 8
        assert second.json()["data"]["priceOverride"] == 250

    def test_bulk_update_covers_inclusive_range(self, client, db, admin_headers, destination):
        response = client.post(
            f"{API}/bulk-update",
            json={
                "destinationId": destination.id,
                "dateRange": {"startDate": str(future(1)), "endDate": str(future(7))},
                "availableSlots": 6,
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["updatedCount"] == 7
        assert response.json()["message"] == "Availability updated for 7 dates"
        assert db.query(Availability).count() == 7

    def test_bulk_update_rejects_inverted_range(self, client, admin_headers, destination):
        response = client.post(
            f"{API}/bulk-update",
            json={
                "destinationId": destination.id,
                "dateRange": {"startDate": str(future(7)), "endDate": str(future(1))},
                "availableSlots": 6,
            },
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Start date must be before end date"

    def test_block_and_unblock_single_row(self, client, db, admin_headers, destination):
        row = Availability(destination_id=destination.id, date=future(2), available_slots=5)
        db.add(row)
        db.commit()

        blocked = client.put(
            f"{API}/{row.id}/block", json={"blockReason": "Private event"}, headers=admin_headers
        )
        assert blocked.json()["data"]["isBlocked"] is True
        assert blocked.json()["data"]["blockReason"] == "Private event"

        unblocked = client.put(f"{API}/{row.id}/unblock", headers=admin_headers)
        assert unblocked.json()["data"]["isBlocked"] is False
        assert unblocked.json()["data"]["blockReason"] is None

    def test_block_many_dates_by_destination(self, client, db, admin_headers, destination):
        """Days without a row are created blocked"""
        dates = [str(future(20)), str(future(21))]

        response = client.put(
            f"{API}/{destination.id}/block",
            json={"dates": dates, "isBlocked": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Blocked 2 date(s) successfully"
        rows = db.query(Availability).all()
        assert len(rows) == 2
        assert all(r.is_blocked for r in rows)

    def test_bulk_slots_requires_dates(self, client, admin_headers, destination):
        response = client.put(
            f"{API}/{destination.id}/bulk",
            json={"dates": [], "totalSlots": 5},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Dates array is required"

    def test_bulk_slots_requires_positive_total(self, client, admin_headers, destination):
        response = client.put(
            f"{API}/{destination.id}/bulk",
            json={"dates": [str(future(4))], "totalSlots": 0},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Total slots must be a positive number"

    def test_bulk_slots(self, client, db, admin_headers, destination):
        response = client.put(
            f"{API}/{destination.id}/bulk",
            json={"dates": [str(future(4)), str(future(5))], "totalSlots": 12},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert {r.available_slots for r in db.query(Availability).all()} == {12}
