"""
Tests for the public activity catalogue, inquiries and stand-alone bookings.
"""

from datetime import date, timedelta

from app.models import Activity, ActivityAvailability, ActivityInquiry

API = "/api/v1/activities"


def future(days: int) -> date:
    return date.today() + timedelta(days=days)


def booking_payload(**overrides):
    payload = {
        "selectedDate": str(future(14)),
        "numberOfParticipants": 2,
        "customerName": "Omar Haddad",
        "customerEmail": "customer@example.com",
    }
    payload.update(overrides)
    return payload


class TestCatalogue:
    def test_only_approved_are_listed(self, client, db, merchant, approved_activity):
        db.add(
            Activity(
                merchant_id=merchant.id,
                title="Unreviewed Tour",
                description="Still pending",
                location="Dubai",
                price=80,
                photos=["https://img.example.com/x.jpg"],
                status="pending",
            )
        )
        db.commit()

        response = client.get(API)

        body = response.json()
        assert [a["title"] for a in body["data"]] == ["Desert Safari"]
        assert body["meta"]["limit"] == 12
        assert body["data"][0]["merchant"]["firstName"] == "Karim"

    def test_country_filter_matches_cities(self, client, approved_activity):
        """Dubai activities show up under the UAE"""
        response = client.get(API, params={"location": "UAE"})

        assert response.json()["meta"]["total"] == 1

    def test_search(self, client, approved_activity):
        assert client.get(API, params={"search": "dune"}).json()["meta"]["total"] == 1
        assert client.get(API, params={"search": "scuba"}).json()["meta"]["total"] == 0

    def test_get_one(self, client, approved_activity):
        response = client.get(f"{API}/{approved_activity.id}")

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 150

    def test_pending_activity_is_not_found(self, client, db, approved_activity):
        approved_activity.status = "pending"
        db.commit()

        response = client.get(f"{API}/{approved_activity.id}")

        assert response.status_code == 404
        assert response.json()["message"] == "Activity not found"

    def test_availability_defaults_to_ninety_days(self, client, db, approved_activity):
        db.add_all(
            [
                ActivityAvailability(
                    activity_id=approved_activity.id, date=future(5), available_slots=4
                ),
                ActivityAvailability(
                    activity_id=approved_activity.id, date=future(120), available_slots=4
                ),
            ]
        )
        db.commit()

        response = client.get(f"{API}/{approved_activity.id}/availability")

        data = response.json()["data"]
        assert [row["date"] for row in data["availability"]] == [str(future(5))]
        assert data["dateRange"] == {"start": str(date.today()), "end": str(future(90))}


class TestInquiries:
    def test_inquiry_notifies_everyone(self, client, db, admin, approved_activity, outbox):
        response = client.post(
            f"{API}/{approved_activity.id}/inquire",
            json={
                "customerName": "Huda",
                "customerEmail": "Huda@Example.com",
                "message": "Is there a family package?",
                "preferredDate": str(future(9)),
            },
        )

        assert response.status_code == 201
        assert response.json()["message"] == (
            "Inquiry submitted successfully. You will be contacted shortly."
        )
        assert response.json()["data"]["notifications"] == {
            "merchantNotified": True,
            "adminsNotified": 1,
            "customerNotified": True,
        }
        assert {mail["to"] for mail in outbox} == {
            "merchant@example.com",
            "admin@example.com",
            "huda@example.com",
        }
        assert db.query(ActivityInquiry).count() == 1

    def test_inquiry_requires_message(self, client, approved_activity):
        response = client.post(
            f"{API}/{approved_activity.id}/inquire",
            json={"customerName": "Huda", "customerEmail": "huda@example.com", "message": ""},
        )

        assert response.status_code == 400

    def test_inquiry_for_unknown_activity(self, client):
        response = client.post(
            f"{API}/999/inquire",
            json={"customerName": "Huda", "customerEmail": "huda@example.com", "message": "Hi"},
        )

        assert response.status_code == 404


class TestBooking:
    def test_book_reserves_slots(self, client, db, customer_headers, approved_activity):
        response = client.post(
            f"{API}/{approved_activity.id}/book", json=booking_payload(), headers=customer_headers
        )

        assert response.status_code == 201
        assert response.json()["message"] == (
            "Booking created successfully. Please proceed to payment."
        )
        data = response.json()["data"]
        assert data["bookingReference"].startswith("ACT-")
        assert data["status"] == "pending_payment"
        assert data["payment"]["amount"] == 300
        assert data["payment"]["triplyCommission"] == 60
        assert data["payment"]["merchantAmount"] == 240
        assert data["isAddOn"] is False
        day = db.query(ActivityAvailability).one()
        assert day.booked_slots == 2

    def test_day_price_overrides_activity_price(self, client, db, customer_headers, approved_activity):
        db.add(
            ActivityAvailability(
                activity_id=approved_activity.id, date=future(14), available_slots=6, price=200
            )
        )
        db.commit()

        response = client.post(
            f"{API}/{approved_activity.id}/book", json=booking_payload(), headers=customer_headers
        )

        assert response.json()["data"]["payment"]["amount"] == 400

    def test_requires_login(self, client, approved_activity):
        response = client.post(f"{API}/{approved_activity.id}/book", json=booking_payload())

        assert response.status_code == 401

    def test_past_date(self, client, customer_headers, approved_activity):
        response = client.post(
            f"{API}/{approved_activity.id}/book",
            json=booking_payload(selectedDate=str(future(-1))),
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot book activities in the past"

    def test_blocked_date(self, client, db, customer_headers, approved_activity):
        db.add(
            ActivityAvailability(
                activity_id=approved_activity.id,
                date=future(14),
                available_slots=6,
                is_available=False,
            )
        )
        db.commit()

        response = client.post(
            f"{API}/{approved_activity.id}/book", json=booking_payload(), headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "This date is not available for booking"

    def test_not_enough_slots(self, client, db, customer_headers, approved_activity):
        db.add(
            ActivityAvailability(
                activity_id=approved_activity.id, date=future(14), available_slots=3, booked_slots=2
            )
        )
        db.commit()

        response = client.post(
            f"{API}/{approved_activity.id}/book", json=booking_payload(), headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only 1 slot(s) available. You requested 2."

    def test_unapproved_activity(self, client, db, customer_headers, approved_activity):
        approved_activity.status = "rejected"
        db.commit()

        response = client.post(
            f"{API}/{approved_activity.id}/book", json=booking_payload(), headers=customer_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Activity not found or not available"


class TestBookingLookup:
    def test_owner_and_admin_can_read(
        self, client, customer_headers, admin_headers, approved_activity
    ):
        created = client.post(
            f"{API}/{approved_activity.id}/book", json=booking_payload(), headers=customer_headers
        ).json()["data"]

        mine = client.get(f"{API}/bookings/{created['id']}", headers=customer_headers)
        as_admin = client.get(f"{API}/bookings/{created['id']}", headers=admin_headers)

        assert mine.status_code == as_admin.status_code == 200
        assert mine.json()["data"]["activity"]["title"] == "Desert Safari"

    def test_other_users_booking_is_hidden(
        self, client, make_user, headers_for, customer_headers, approved_activity
    ):
        created = client.post(
            f"{API}/{approved_activity.id}/book", json=booking_payload(), headers=customer_headers
        ).json()["data"]
        stranger = make_user()

        response = client.get(f"{API}/bookings/{created['id']}", headers=headers_for(stranger))

        assert response.status_code == 404
        assert response.json()["message"] == "Activity booking not found"
