"""
Tests for the merchant portal: onboarding, activity submission, earnings and
per-day availability.
"""

from datetime import date, timedelta

import pytest

from app.models import ActivityAvailability, ActivityBooking

API = "/api/v1/merchant"


def future(days: int) -> date:
    return date.today() + timedelta(days=days)


def activity_payload(**overrides):
    payload = {
        "title": "Dhow Cruise",
        "description": "Dinner cruise along the creek",
        "location": "Dubai Marina",
        "price": 220,
        "photos": ["https://img.example.com/dhow.jpg"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_activity_booking(db, customer, approved_activity):
    day = ActivityAvailability(
        activity_id=approved_activity.id, date=future(10), available_slots=10
    )
    db.add(day)
    db.commit()
    counter = {"n": 0}

    def factory(amount=150, payment_status="completed", **extra):
        counter["n"] += 1
        values = {
            "user_id": customer.id,
            "activity_id": approved_activity.id,
            "availability_id": day.id,
            "booking_reference": f"ACT-20250101-T{counter['n']:04d}",
            "status": "payment_completed" if payment_status == "completed" else "pending_payment",
            "amount": amount,
            "triply_commission": round(amount * 0.2, 2),
            "merchant_amount": round(amount * 0.8, 2),
            "payment_status": payment_status,
            "selected_date": day.date,
            "customer_name": "Omar Haddad",
            "customer_email": "customer@example.com",
        }
        values.update(extra)
        booking = ActivityBooking(**values)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return factory


class TestRegistration:
    def test_customer_becomes_merchant(self, client, db, customer, customer_headers):
        response = client.post(f"{API}/register", headers=customer_headers)

        assert response.status_code == 201
        assert response.json()["message"] == (
            "Successfully registered as merchant. You can now submit activities."
        )
        assert response.json()["data"] == {"role": "merchant"}
        db.refresh(customer)
        assert customer.role == "merchant"

    def test_already_a_merchant(self, client, merchant_headers):
        response = client.post(f"{API}/register", headers=merchant_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "You are already registered as a merchant"

    def test_admin_cannot_register(self, client, admin_headers):
        response = client.post(f"{API}/register", headers=admin_headers)

        assert response.status_code == 400


class TestActivities:
    def test_submit_waits_for_approval(self, client, merchant_headers):
        response = client.post(
            f"{API}/activities",
            json=activity_payload(currency="usd"),
            headers=merchant_headers,
        )

        assert response.status_code == 201
        assert response.json()["message"] == (
            "Activity submitted successfully. Waiting for admin approval."
        )
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["currency"] == "USD"
        assert "merchant" not in data

    def test_submit_requires_merchant_role(self, client, customer_headers):
        response = client.post(f"{API}/activities", json=activity_payload(), headers=customer_headers)

        assert response.status_code == 403

    def test_photos_are_required(self, client, merchant_headers):
        response = client.post(
            f"{API}/activities", json=activity_payload(photos=[]), headers=merchant_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_at_most_three_photos(self, client, merchant_headers):
        photos = [f"https://img.example.com/{n}.jpg" for n in range(4)]

        response = client.post(
            f"{API}/activities", json=activity_payload(photos=photos), headers=merchant_headers
        )

        assert response.status_code == 400

    def test_photos_must_be_urls(self, client, merchant_headers):
        response = client.post(
            f"{API}/activities",
            json=activity_payload(photos=["dhow.jpg"]),
            headers=merchant_headers,
        )

        assert response.status_code == 400

    def test_list_own_activities(self, client, make_user, headers_for, merchant_headers, approved_activity):
        rival = make_user("merchant")
        client.post(f"{API}/activities", json=activity_payload(), headers=headers_for(rival))

        response = client.get(f"{API}/activities", headers=merchant_headers)

        assert [a["title"] for a in response.json()["data"]] == ["Desert Safari"]


class TestEarnings:
    def test_dashboard(self, client, db, merchant_headers, make_activity_booking):
        make_activity_booking(amount=150)
        make_activity_booking(amount=300, merchant_payout_status="paid")
        make_activity_booking(amount=500, payment_status="pending")

        response = client.get(f"{API}/dashboard", headers=merchant_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["stats"] == {
            "totalEarnings": 360,
            "pendingPayouts": 120,
            "paidOut": 240,
            "totalBookings": 2,
            "completedBookings": 2,
            "totalActivities": 1,
            "approvedActivities": 1,
        }
        assert data["activitiesWithStats"][0]["bookingsCount"] == 2
        assert len(data["recentBookings"]) == 3
        assert data["recentBookings"][0]["activityTitle"] == "Desert Safari"

    def test_bookings_filtered_by_status(self, client, merchant_headers, make_activity_booking):
        make_activity_booking()
        make_activity_booking(payment_status="pending")

        response = client.get(
            f"{API}/bookings", params={"status": "pending_payment"}, headers=merchant_headers
        )

        body = response.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["customer"]["email"] == "customer@example.com"
        assert body["data"][0]["payment"]["merchantAmount"] == 120

    def test_other_merchants_bookings_hidden(self, client, make_user, headers_for, make_activity_booking):
        make_activity_booking()
        rival = make_user("merchant")

        response = client.get(f"{API}/bookings", headers=headers_for(rival))

        assert response.json()["data"] == []


class TestAvailability:
    def test_block_creates_missing_days(self, client, db, merchant_headers, approved_activity):
        response = client.put(
            f"{API}/activities/{approved_activity.id}/availability/block",
            json={"dates": [str(future(3)), str(future(4))], "isBlocked": True},
            headers=merchant_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Blocked 2 date(s) successfully"
        rows = db.query(ActivityAvailability).all()
        assert len(rows) == 2
        assert not any(r.is_available for r in rows)

    def test_unblock(self, client, db, merchant_headers, approved_activity):
        day = ActivityAvailability(
            activity_id=approved_activity.id, date=future(3), available_slots=4, is_available=False
        )
        db.add(day)
        db.commit()

        response = client.put(
            f"{API}/activities/{approved_activity.id}/availability/block",
            json={"dates": [str(future(3))], "isBlocked": False},
            headers=merchant_headers,
        )

        assert response.json()["message"] == "Unblocked 1 date(s) successfully"
        db.refresh(day)
        assert day.is_available is True

    def test_block_requires_dates(self, client, merchant_headers, approved_activity):
        response = client.put(
            f"{API}/activities/{approved_activity.id}/availability/block",
            json={"dates": []},
            headers=merchant_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Dates array is required"

    def test_slots_accepts_short_alias(self, client, db, merchant_headers, approved_activity):
        response = client.put(
            f"{API}/activities/{approved_activity.id}/availability/slots",
            json={"dates": [str(future(6))], "slots": 8, "price": 175},
            headers=merchant_headers,
        )

        assert response.json()["message"] == "Updated slots for 1 date(s) successfully"
        row = db.query(ActivityAvailability).one()
        assert row.available_slots == 8
        assert row.price == 175

    def test_slots_must_be_positive(self, client, merchant_headers, approved_activity):
        response = client.put(
            f"{API}/activities/{approved_activity.id}/availability/slots",
            json={"dates": [str(future(6))], "totalSlots": 0},
            headers=merchant_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Total slots must be a positive number"

    def test_foreign_activity(self, client, make_user, headers_for, approved_activity):
        rival = make_user("merchant")

        response = client.put(
            f"{API}/activities/{approved_activity.id}/availability/block",
            json={"dates": [str(future(3))]},
            headers=headers_for(rival),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Activity not found or access denied"

    def test_read_with_range(self, client, merchant_headers, approved_activity):
        client.put(
            f"{API}/activities/{approved_activity.id}/availability/slots",
            json={"dates": [str(future(2)), str(future(40))], "totalSlots": 5},
            headers=merchant_headers,
        )

        response = client.get(
            f"{API}/activities/{approved_activity.id}/availability",
            params={"startDate": str(future(1)), "endDate": str(future(30))},
            headers=merchant_headers,
        )

        data = response.json()["data"]
        assert [row["date"] for row in data["availability"]] == [str(future(2))]
        assert data["dateRange"] == {"start": str(future(1)), "end": str(future(30))}
