"""
Tests for the deposit booking lifecycle:
pending_deposit -> deposit_paid -> dates_selected -> confirmed | rejected | cancelled
"""

from datetime import date, datetime, timedelta

from app.models import ActivityBooking, Availability, Booking

API = "/api/v1/bookings"


def future(days: int) -> date:
    return date.today() + timedelta(days=days)


class TestCreateBooking:
    """POST /bookings"""

    def test_create_returns_pending_booking_and_client_secret(
        self, client, db, gateway, customer_headers, destination
    ):
        response = client.post(
            API,
            json={"destinationId": destination.id, "numberOfTravellers": 2},
            headers=customer_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["booking"]["status"] == "pending_deposit"
        assert data["booking"]["depositAmount"] == 199
        assert data["booking"]["bookingReference"].startswith("TRP-")
        assert data["payment"]["clientSecret"] == "pi_test_1_secret"

        intent = gateway.intents["pi_test_1"]
        assert intent["amount"] == 19900
        assert intent["metadata"]["bookingId"] == str(data["booking"]["id"])

        booking = db.query(Booking).one()
        assert booking.transaction_id == "pi_test_1"
        assert booking.payment_status == "pending"

    def test_referral_discount_reduces_deposit(
        self, client, make_user, headers_for, gateway, destination
    ):
        user = make_user(discount_amount=19.9)

        response = client.post(
            API, json={"destinationId": destination.id}, headers=headers_for(user)
        )

        assert response.json()["data"]["booking"]["depositAmount"] == 179.1
        assert gateway.intents["pi_test_1"]["amount"] == 17910

    def test_inactive_destination(self, client, db, customer_headers, destination):
        destination.is_active = False
        db.commit()

        response = client.post(
            API, json={"destinationId": destination.id}, headers=customer_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Destination not found or not available"

    def test_affiliate_code_is_recorded(
        self, client, db, customer_headers, destination, affiliate, affiliate_code
    ):
        response = client.post(
            API,
            json={"destinationId": destination.id, "affiliateCode": "lina-test01"},
            headers=customer_headers,
        )

        assert response.status_code == 201
        booking = db.query(Booking).one()
        assert booking.affiliate_code == "LINA-TEST01"
        assert booking.affiliate_id == affiliate.id

    def test_unknown_affiliate_code(self, client, customer_headers, destination):
        response = client.post(
            API,
            json={"destinationId": destination.id, "affiliateCode": "BOGUS"},
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid affiliate code"

    def test_own_affiliate_code_rejected(
        self, client, affiliate_headers, destination, affiliate_code
    ):
        response = client.post(
            API,
            json={"destinationId": destination.id, "affiliateCode": affiliate_code.code},
            headers=affiliate_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot use your own affiliate code"

    def test_gateway_failure_leaves_no_booking(
        self, client, db, gateway, customer_headers, destination
    ):
        gateway.fail = True

        response = client.post(
            API, json={"destinationId": destination.id}, headers=customer_headers
        )

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to create payment. Please try again."
        assert db.query(Booking).count() == 0

    def test_add_on_activities_are_charged_with_the_deposit(
        self, client, db, gateway, customer_headers, destination, approved_activity
    ):
        response = client.post(
            API,
            json={
                "destinationId": destination.id,
                "activities": [
                    {
                        "activityId": approved_activity.id,
                        "date": str(future(30)),
                        "participants": 2,
                    }
                ],
            },
            headers=customer_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["booking"]["activityAmount"] == 300
        assert data["booking"]["totalAmount"] == 499
        assert data["booking"]["hasActivities"] is True
        assert gateway.intents["pi_test_1"]["amount"] == 49900

        add_on = db.query(ActivityBooking).one()
        assert add_on.is_add_on is True
        assert add_on.linked_destination_booking_id == data["booking"]["id"]
        assert add_on.triply_commission == 60
        assert add_on.merchant_amount == 240
        assert add_on.availability.booked_slots == 0

    def test_add_on_must_be_approved(
        self, client, db, customer_headers, destination, approved_activity
    ):
        approved_activity.status = "pending"
        db.commit()

        response = client.post(
            API,
            json={
                "destinationId": destination.id,
                "activities": [{"activityId": approved_activity.id, "date": str(future(30))}],
            },
            headers=customer_headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == (
            f"Activity {approved_activity.id} not found or not approved"
        )
        assert db.query(Booking).count() == 0


class TestCustomerBookings:
    def test_my_bookings_only_lists_own(
        self, client, customer, customer_headers, make_user, make_booking
    ):
        make_booking(customer)
        make_booking(customer, status="pending_deposit")
        make_booking(make_user())

        response = client.get(f"{API}/my-bookings", headers=customer_headers)

        body = response.json()
        assert body["meta"]["total"] == 2
        assert all(b["userId"] == customer.id for b in body["data"])
        assert "adminNotes" not in body["data"][0]

    def test_my_bookings_status_filter(self, client, customer, customer_headers, make_booking):
        make_booking(customer)
        make_booking(customer, status="pending_deposit")

        response = client.get(
            f"{API}/my-bookings", params={"status": "pending_deposit"}, headers=customer_headers
        )

        assert response.json()["meta"]["total"] == 1

    def test_other_users_booking_is_hidden(self, client, make_user, headers_for, make_booking):
        booking = make_booking(make_user())

        response = client.get(f"{API}/{booking.id}", headers=headers_for(make_user()))

        assert response.status_code == 404

    def test_admin_sees_any_booking_with_notes(
        self, client, customer, admin_headers, make_booking
    ):
        booking = make_booking(customer, admin_notes="VIP")

        response = client.get(f"{API}/{booking.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["adminNotes"] == "VIP"


class TestSelectDates:
    """PUT /bookings/{id}/select-dates"""

    def test_select_dates(self, client, db, customer, customer_headers, admin, make_booking, outbox):
        booking = make_booking(customer)

        response = client.put(
            f"{API}/{booking.id}/select-dates",
            json={"startDate": str(future(40)), "endDate": str(future(45))},
            headers=customer_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "dates_selected"
        db.refresh(booking)
        assert booking.travel_start_date == future(40)
        # Customer and every admin are told
        assert {m["to"] for m in outbox} == {"customer@example.com", "admin@example.com"}

    def test_requires_paid_deposit(self, client, customer, customer_headers, make_booking):
        booking = make_booking(customer, status="pending_deposit")

        response = client.put(
            f"{API}/{booking.id}/select-dates",
            json={"startDate": str(future(40)), "endDate": str(future(45))},
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Cannot select dates for this booking. Deposit must be paid first."
        )

    def test_past_start_date_rejected(self, client, customer, customer_headers, make_booking):
        booking = make_booking(customer)

        response = client.put(
            f"{API}/{booking.id}/select-dates",
            json={"startDate": str(future(-1)), "endDate": str(future(3))},
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "Start date cannot be in the past"

    def test_end_must_follow_start(self, client, customer, customer_headers, make_booking):
        booking = make_booking(customer)

        response = client.put(
            f"{API}/{booking.id}/select-dates",
            json={"startDate": str(future(10)), "endDate": str(future(10))},
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "End date must be after start date"

    def test_expired_calendar(self, client, customer, customer_headers, make_booking):
        booking = make_booking(
            customer, calendar_unlocked_until=datetime.utcnow() - timedelta(days=1)
        )

        response = client.put(
            f"{API}/{booking.id}/select-dates",
            json={"startDate": str(future(40)), "endDate": str(future(45))},
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Calendar access has expired. Please contact support."

    def test_blocked_dates_need_flexibility(
        self, client, db, customer, customer_headers, destination, make_booking
    ):
        booking = make_booking(customer)
        db.add_all(
            [
                Availability(
                    destination_id=destination.id, date=future(41), available_slots=5, is_blocked=True
                ),
                Availability(
                    destination_id=destination.id,
                    date=future(42),
                    available_slots=2,
                    booked_slots=2,
                ),
            ]
        )
        db.commit()
        payload = {"startDate": str(future(40)), "endDate": str(future(45))}

        strict = client.put(
            f"{API}/{booking.id}/select-dates", json=payload, headers=customer_headers
        )
        assert strict.status_code == 400
        assert strict.json()["message"] == (
            "Selected dates are not fully available. 1 date(s) are blocked and "
            "1 date(s) are fully booked. Please choose different dates or enable flexible dates."
        )

        flexible = client.put(
            f"{API}/{booking.id}/select-dates",
            json={**payload, "isFlexible": True},
            headers=customer_headers,
        )
        assert flexible.status_code == 200
        assert flexible.json()["data"]["travelDates"]["isFlexible"] is True


class TestCancel:
    def test_cancel_paid_booking(self, client, customer, customer_headers, make_booking):
        booking = make_booking(customer)

        response = client.put(f"{API}/{booking.id}/cancel", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

    def test_confirmed_booking_cannot_be_cancelled(
        self, client, customer, customer_headers, make_booking
    ):
        booking = make_booking(customer, status="confirmed")

        response = client.put(f"{API}/{booking.id}/cancel", headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "This booking cannot be cancelled"


class TestAdminReview:
    def test_confirm_books_calendar_slots(
        self, client, db, customer, admin_headers, destination, make_booking, outbox
    ):
        booking = make_booking(
            customer,
            status="dates_selected",
            travel_start_date=future(40),
            travel_end_date=future(41),
        )
        day = Availability(destination_id=destination.id, date=future(40), available_slots=3)
        db.add(day)
        db.commit()

        response = client.put(f"{API}/admin/{booking.id}/confirm", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmed"
        db.refresh(day)
        assert day.booked_slots == 1
        assert outbox[-1]["subject"] == f"Booking Confirmed - {booking.booking_reference}"

    def test_confirm_requires_dates(self, client, customer, admin_headers, make_booking):
        booking = make_booking(customer)

        response = client.put(f"{API}/admin/{booking.id}/confirm", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Booking must have dates selected before confirmation"

    def test_reject_with_reason_alias(self, client, db, customer, admin_headers, make_booking):
        booking = make_booking(customer, status="dates_selected")

        response = client.put(
            f"{API}/admin/{booking.id}/reject",
            json={"reason": "Resort closed for renovation"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        db.refresh(booking)
        assert booking.status == "rejected"
        assert booking.rejection_reason == "Resort closed for renovation"

    def test_reject_requires_reason(self, client, customer, admin_headers, make_booking):
        booking = make_booking(customer)

        response = client.put(
            f"{API}/admin/{booking.id}/reject", json={"reason": "  "}, headers=admin_headers
        )

        assert response.status_code == 400

    def test_confirmed_booking_cannot_be_rejected(
        self, client, customer, admin_headers, make_booking
    ):
        booking = make_booking(customer, status="confirmed")

        response = client.put(
            f"{API}/admin/{booking.id}/reject", json={"reason": "No"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "This booking cannot be rejected"

    def test_update_dates_requires_open_days(
        self, client, db, customer, admin_headers, destination, make_booking
    ):
        booking = make_booking(customer)
        db.add(Availability(destination_id=destination.id, date=future(50), available_slots=4))
        db.commit()
        url = f"{API}/admin/{booking.id}/update-dates"

        missing_day = client.put(
            url,
            json={"startDate": str(future(50)), "endDate": str(future(51))},
            headers=admin_headers,
        )
        assert missing_day.status_code == 400

        single_day = client.put(
            url,
            json={"startDate": str(future(50)), "endDate": str(future(50))},
            headers=admin_headers,
        )
        assert single_day.status_code == 200
        assert single_day.json()["data"]["status"] == "dates_selected"

    def test_update_notes(self, client, customer, admin_headers, make_booking):
        booking = make_booking(customer)

        response = client.put(
            f"{API}/admin/{booking.id}/notes",
            json={"adminNotes": "Prefers beach villa"},
            headers=admin_headers,
        )

        assert response.json()["data"]["adminNotes"] == "Prefers beach villa"

    def test_admin_list_filters(self, client, customer, admin_headers, make_booking):
        make_booking(customer, status="confirmed")
        make_booking(customer, affiliate_code="LINA-TEST01")

        by_status = client.get(
            f"{API}/admin/all", params={"status": "confirmed"}, headers=admin_headers
        )
        by_code = client.get(
            f"{API}/admin/all", params={"affiliateCode": "LINA-TEST01"}, headers=admin_headers
        )

        assert by_status.json()["meta"]["total"] == 1
        assert by_code.json()["meta"]["total"] == 1

    def test_admin_routes_reject_customers(self, client, customer_headers):
        response = client.get(f"{API}/admin/all", headers=customer_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to perform this action"

    def test_export_csv(self, client, customer, admin_headers, make_booking):
        booking = make_booking(customer)

        response = client.get(f"{API}/admin/export", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=bookings-report-" in response.headers["content-disposition"]
        lines = response.text.strip().split("\n")
        assert lines[0].startswith("bookingReference,customerName,customerEmail,destination")
        assert lines[1].startswith(f"{booking.booking_reference},Omar Haddad,customer@example.com")

    def test_export_json(self, client, customer, admin_headers, make_booking):
        make_booking(customer)

        response = client.get(f"{API}/admin/export", params={"format": "json"}, headers=admin_headers)

        rows = response.json()["data"]
        assert rows[0]["destination"] == "Maldives Escape"
