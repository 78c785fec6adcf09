"""
Tests for deposit payments, commissions, refunds and the Stripe webhook.
"""

import json
import time
from datetime import date, timedelta

import pytest

from app.domain.payments import router as payments_router
from app.domain.payments.service import commission_for
from app.models import (
    ActivityAvailability,
    ActivityBooking,
    AffiliateCode,
    Booking,
    Commission,
    EmailLog,
)
from app.webhook_security import build_stripe_signature_header

API = "/api/v1/payments"
WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(payments_router, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


def start_booking(client, headers, destination, **extra) -> dict:
    response = client.post(
        "/api/v1/bookings", json={"destinationId": destination.id, **extra}, headers=headers
    )
    assert response.status_code == 201
    return response.json()["data"]


def confirm(client, headers, booking_id, intent_id):
    return client.post(
        f"{API}/confirm",
        json={"bookingId": booking_id, "paymentIntentId": intent_id},
        headers=headers,
    )


def post_event(client, event: dict, secret: str, signature: str = None):
    payload = json.dumps(event).encode()
    header = signature or build_stripe_signature_header(payload, secret)
    return client.post(
        f"{API}/webhook",
        content=payload,
        headers={"Stripe-Signature": header, "Content-Type": "application/json"},
    )


def intent_event(event_type: str, intent_id: str, metadata: dict) -> dict:
    return {
        "id": "evt_1",
        "type": event_type,
        "data": {
            "object": {
                "id": intent_id,
                "metadata": metadata,
                "last_payment_error": {"message": "Your card was declined."},
            }
        },
    }


def book_activity(client, headers, activity, participants=1) -> int:
    response = client.post(
        f"/api/v1/activities/{activity.id}/book",
        json={
            "selectedDate": str(date.today() + timedelta(days=5)),
            "numberOfParticipants": participants,
            "customerName": "Omar Haddad",
            "customerEmail": "customer@example.com",
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


class TestCommissionAmount:
    def test_percentage(self):
        code = AffiliateCode(commission_type="percentage", commission_rate=15)
        assert commission_for(code, 199) == 29.85

    def test_fixed(self):
        code = AffiliateCode(commission_type="fixed", commission_rate=0, fixed_amount=50)
        assert commission_for(code, 199) == 50


class TestDepositPayment:
    def test_create_intent_for_pending_booking(
        self, client, gateway, customer_headers, destination
    ):
        booking = start_booking(client, customer_headers, destination)["booking"]

        response = client.post(
            f"{API}/create-intent", json={"bookingId": booking["id"]}, headers=customer_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["paymentIntentId"] == "pi_test_2"
        assert data["amount"] == 199
        assert data["currency"] == "AED"

    def test_create_intent_after_payment_rejected(
        self, client, customer, customer_headers, make_booking
    ):
        booking = make_booking(customer)

        response = client.post(
            f"{API}/create-intent", json={"bookingId": booking.id}, headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Payment has already been processed for this booking"

    def test_confirm_unpaid_intent(self, client, customer_headers, destination):
        data = start_booking(client, customer_headers, destination)

        response = confirm(
            client, customer_headers, data["booking"]["id"], data["payment"]["paymentIntentId"]
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Payment has not been completed"

    def test_confirm_marks_deposit_paid_and_unlocks_calendar(
        self, client, db, gateway, customer_headers, destination, outbox
    ):
        data = start_booking(client, customer_headers, destination)
        intent_id = data["payment"]["paymentIntentId"]
        gateway.succeed(intent_id)

        response = confirm(client, customer_headers, data["booking"]["id"], intent_id)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "deposit_paid"
        booking = db.get(Booking, data["booking"]["id"])
        assert booking.payment_status == "completed"
        assert booking.paid_at is not None
        unlocked_days = (booking.calendar_unlocked_until - booking.paid_at).days
        assert unlocked_days == 365
        assert outbox[-1]["subject"] == f"Deposit Confirmed - {booking.booking_reference}"

    def test_confirm_rejects_intent_of_another_booking(
        self, client, gateway, customer_headers, destination
    ):
        first = start_booking(client, customer_headers, destination)
        second = start_booking(client, customer_headers, destination)
        gateway.succeed(first["payment"]["paymentIntentId"])

        response = confirm(
            client,
            customer_headers,
            second["booking"]["id"],
            first["payment"]["paymentIntentId"],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Payment does not belong to this booking"

    def test_confirm_rejects_activity_intent_on_a_deposit(
        self, client, db, gateway, customer_headers, destination, approved_activity
    ):
        """An intent naming only an activity booking cannot pay a deposit"""
        data = start_booking(client, customer_headers, destination)
        activity_booking_id = book_activity(client, customer_headers, approved_activity)
        intent = client.post(
            f"{API}/activity-bookings/{activity_booking_id}/create-intent",
            headers=customer_headers,
        ).json()["data"]
        gateway.succeed(intent["paymentIntentId"])

        response = confirm(
            client, customer_headers, data["booking"]["id"], intent["paymentIntentId"]
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Payment does not belong to this booking"
        booking = db.get(Booking, data["booking"]["id"])
        assert booking.status == "pending_deposit"
        assert booking.calendar_unlocked_until is None

    def test_confirm_rejects_underpaid_intent(
        self, client, db, gateway, customer_headers, destination
    ):
        data = start_booking(client, customer_headers, destination)
        gateway.intents["pi_cheap"] = {
            "id": "pi_cheap",
            "amount": 100,
            "currency": "aed",
            "status": "succeeded",
            "metadata": {"bookingId": str(data["booking"]["id"])},
        }

        response = confirm(client, customer_headers, data["booking"]["id"], "pi_cheap")

        assert response.status_code == 400
        assert response.json()["message"] == "Payment amount does not match booking"
        assert db.get(Booking, data["booking"]["id"]).payment_status == "pending"

    def test_add_ons_are_settled_with_the_deposit(
        self, client, db, gateway, customer_headers, destination, approved_activity
    ):
        data = start_booking(
            client,
            customer_headers,
            destination,
            activities=[
                {"activityId": approved_activity.id, "date": str(date.today() + timedelta(days=9))}
            ],
        )
        intent_id = data["payment"]["paymentIntentId"]
        gateway.succeed(intent_id)

        confirm(client, customer_headers, data["booking"]["id"], intent_id)

        add_on = db.query(ActivityBooking).one()
        assert add_on.status == "payment_completed"
        assert add_on.payment_status == "completed"
        assert add_on.transaction_id == intent_id

    def test_payment_details(self, client, customer, customer_headers, make_booking):
        booking = make_booking(customer, transaction_id="pi_abc")

        response = client.get(f"{API}/booking/{booking.id}", headers=customer_headers)

        assert response.json()["data"]["depositPayment"]["transactionId"] == "pi_abc"


class TestCommissions:
    def test_affiliate_commission_created_once(
        self, client, db, gateway, customer_headers, destination, affiliate, affiliate_code, outbox
    ):
        data = start_booking(
            client, customer_headers, destination, affiliateCode=affiliate_code.code
        )
        intent_id = data["payment"]["paymentIntentId"]
        gateway.succeed(intent_id)

        confirm(client, customer_headers, data["booking"]["id"], intent_id)
        confirm(client, customer_headers, data["booking"]["id"], intent_id)

        commission = db.query(Commission).one()
        assert commission.affiliate_id == affiliate.id
        assert commission.commission_amount == 19.9
        assert commission.status == "pending"
        assert commission.kind == "affiliate"
        db.refresh(affiliate_code)
        assert affiliate_code.usage_count == 1
        assert affiliate_code.total_earnings == 19.9
        # The repeat confirmation sends nothing
        assert db.query(EmailLog).filter(EmailLog.email_type == "deposit_confirmation").count() == 1

    def test_referral_commission_for_referred_customer(
        self, client, db, gateway, make_user, headers_for, destination
    ):
        referrer = make_user()
        db.add(
            AffiliateCode(
                affiliate_id=referrer.id,
                code="REF-CODE01",
                commission_rate=10,
                is_active=True,
                can_share_referral=True,
            )
        )
        db.commit()
        friend = make_user(referred_by=referrer.id, referral_code="REF-CODE01")

        data = start_booking(client, headers_for(friend), destination)
        intent_id = data["payment"]["paymentIntentId"]
        gateway.succeed(intent_id)
        confirm(client, headers_for(friend), data["booking"]["id"], intent_id)

        commission = db.query(Commission).one()
        assert commission.kind == "referral"
        assert commission.affiliate_id == referrer.id
        assert commission.referred_user_id == friend.id

    def test_no_commission_without_code_or_referrer(
        self, client, db, gateway, customer_headers, destination
    ):
        data = start_booking(client, customer_headers, destination)
        intent_id = data["payment"]["paymentIntentId"]
        gateway.succeed(intent_id)

        confirm(client, customer_headers, data["booking"]["id"], intent_id)

        assert db.query(Commission).count() == 0


class TestRefunds:
    def test_admin_refund(self, client, db, gateway, customer, admin_headers, make_booking):
        booking = make_booking(customer, transaction_id="pi_paid")

        response = client.post(
            f"{API}/booking/{booking.id}/refund",
            json={"reason": "Customer request"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["paymentStatus"] == "refunded"
        assert response.json()["data"]["status"] == "cancelled"
        assert gateway.refunds[0]["paymentIntent"] == "pi_paid"

    def test_refund_requires_completed_payment(
        self, client, customer, admin_headers, make_booking
    ):
        booking = make_booking(customer, status="pending_deposit")

        response = client.post(
            f"{API}/booking/{booking.id}/refund", json={}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "No payment found to refund"

    def test_refund_is_admin_only(self, client, customer, customer_headers, make_booking):
        booking = make_booking(customer, transaction_id="pi_paid")

        response = client.post(
            f"{API}/booking/{booking.id}/refund", json={}, headers=customer_headers
        )

        assert response.status_code == 403


class TestActivityBookingPayments:
    def test_create_and_confirm(self, client, db, gateway, customer, customer_headers, approved_activity):
        booked = client.post(
            f"/api/v1/activities/{approved_activity.id}/book",
            json={
                "selectedDate": str(date.today() + timedelta(days=5)),
                "numberOfParticipants": 2,
                "customerName": "Omar Haddad",
                "customerEmail": "customer@example.com",
            },
            headers=customer_headers,
        )
        booking_id = booked.json()["data"]["id"]

        intent = client.post(
            f"{API}/activity-bookings/{booking_id}/create-intent", headers=customer_headers
        )
        intent_id = intent.json()["data"]["paymentIntentId"]
        assert intent.json()["data"]["amount"] == 300
        gateway.succeed(intent_id)

        response = client.post(
            f"{API}/activity-bookings/{booking_id}/confirm",
            json={"paymentIntentId": intent_id},
            headers=customer_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "payment_completed"
        assert response.json()["data"]["payment"]["paymentStatus"] == "completed"

    def test_unknown_activity_booking(self, client, customer_headers):
        response = client.post(
            f"{API}/activity-bookings/999/create-intent", headers=customer_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Activity booking not found"


class TestWebhook:
    def test_missing_signature(self, client, webhook_secret):
        response = client.post(f"{API}/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json()["message"] == "No signature provided"

    def test_wrong_signature(self, client, webhook_secret):
        event = intent_event("payment_intent.succeeded", "pi_x", {})

        response = post_event(client, event, "whsec_other")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid signature"

    def test_stale_signature(self, client, webhook_secret):
        payload = json.dumps(intent_event("payment_intent.succeeded", "pi_x", {})).encode()
        old = int(time.time()) - 3600
        header = build_stripe_signature_header(payload, webhook_secret, timestamp=old)

        response = client.post(
            f"{API}/webhook", content=payload, headers={"Stripe-Signature": header}
        )

        assert response.status_code == 400

    def test_succeeded_event_pays_deposit(
        self, client, db, customer, make_booking, webhook_secret, outbox
    ):
        booking = make_booking(customer, status="pending_deposit")
        event = intent_event("payment_intent.succeeded", "pi_hook", {"bookingId": str(booking.id)})

        response = post_event(client, event, webhook_secret)

        assert response.status_code == 200
        assert response.json() == {"received": True}
        db.refresh(booking)
        assert booking.status == "deposit_paid"
        assert booking.transaction_id == "pi_hook"
        assert len(outbox) == 1

    def test_failed_event_marks_payment_failed(
        self, client, db, customer, make_booking, webhook_secret
    ):
        booking = make_booking(customer, status="pending_deposit")
        event = intent_event(
            "payment_intent.payment_failed", "pi_hook", {"bookingId": str(booking.id)}
        )

        post_event(client, event, webhook_secret)

        db.refresh(booking)
        assert booking.payment_status == "failed"
        assert booking.status == "pending_deposit"

    def test_late_failure_does_not_undo_payment(
        self, client, db, customer, make_booking, webhook_secret
    ):
        """Stripe may deliver a failure for an earlier attempt after the success"""
        booking = make_booking(customer, status="pending_deposit")
        metadata = {"bookingId": str(booking.id)}
        paid = intent_event("payment_intent.succeeded", "pi_ok", metadata)
        post_event(client, paid, webhook_secret)

        for intent_id in ("pi_old", "pi_ok"):
            response = post_event(
                client,
                intent_event("payment_intent.payment_failed", intent_id, metadata),
                webhook_secret,
            )
            assert response.status_code == 200

        db.refresh(booking)
        assert booking.status == "deposit_paid"
        assert booking.payment_status == "completed"
        assert booking.transaction_id == "pi_ok"

    def test_failure_of_superseded_intent_is_ignored(
        self, client, db, customer, make_booking, webhook_secret
    ):
        booking = make_booking(customer, status="pending_deposit", transaction_id="pi_new")
        event = intent_event(
            "payment_intent.payment_failed", "pi_old", {"bookingId": str(booking.id)}
        )

        post_event(client, event, webhook_secret)

        db.refresh(booking)
        assert booking.payment_status == "pending"
        assert booking.transaction_id == "pi_new"

    def test_activity_failure_releases_slots(
        self, client, db, gateway, customer_headers, approved_activity, webhook_secret
    ):
        booking_id = book_activity(client, customer_headers, approved_activity, participants=2)
        intent_id = client.post(
            f"{API}/activity-bookings/{booking_id}/create-intent", headers=customer_headers
        ).json()["data"]["paymentIntentId"]
        day = db.query(ActivityAvailability).one()
        assert day.booked_slots == 2
        event = intent_event(
            "payment_intent.payment_failed", intent_id, {"activityBookingId": str(booking_id)}
        )

        post_event(client, event, webhook_secret)
        post_event(client, event, webhook_secret)

        booking = db.get(ActivityBooking, booking_id)
        db.refresh(booking)
        db.refresh(day)
        assert booking.status == "cancelled"
        assert booking.payment_status == "failed"
        assert day.booked_slots == 0

    @pytest.mark.parametrize("key", ["bookingId", "activityBookingId"])
    def test_malformed_booking_id_is_acknowledged(self, client, webhook_secret, key):
        event = intent_event("payment_intent.succeeded", "pi_hook", {key: "not-a-number"})

        response = post_event(client, event, webhook_secret)

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_unknown_booking_is_acknowledged(self, client, webhook_secret):
        event = intent_event("payment_intent.succeeded", "pi_hook", {"bookingId": "4242"})

        response = post_event(client, event, webhook_secret)

        assert response.status_code == 200

    def test_unhandled_event_type(self, client, webhook_secret):
        response = post_event(client, {"type": "charge.refunded", "data": {}}, webhook_secret)

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_activity_booking_event(
        self, client, db, customer, customer_headers, approved_activity, webhook_secret
    ):
        booked = client.post(
            f"/api/v1/activities/{approved_activity.id}/book",
            json={
                "selectedDate": str(date.today() + timedelta(days=5)),
                "numberOfParticipants": 1,
                "customerName": "Omar Haddad",
                "customerEmail": "customer@example.com",
            },
            headers=customer_headers,
        )
        booking_id = booked.json()["data"]["id"]
        event = intent_event(
            "payment_intent.succeeded", "pi_act", {"activityBookingId": str(booking_id)}
        )

        post_event(client, event, webhook_secret)

        booking = db.get(ActivityBooking, booking_id)
        assert booking.payment_status == "completed"
        assert booking.status == "payment_completed"
