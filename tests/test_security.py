"""
Tests for tokens, references, webhook signatures and CSV reports.
"""

import re
import time
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from app.security_utils import (
    TokenError,
    create_access_token,
    create_refresh_token,
    generate_affiliate_code,
    generate_booking_reference,
    generate_email_verification_token,
    generate_password_reset_token,
    verify_access_token,
    verify_email_verification_token,
    verify_password_reset_token,
    verify_refresh_token,
)
from app.services.report_service import to_csv
from app.webhook_security import (
    WebhookSignatureError,
    build_stripe_signature_header,
    verify_stripe_signature,
)

USER = SimpleNamespace(id=7, email="omar@example.com", role="user")


class TestJwt:
    def test_access_token_round_trip(self):
        payload = verify_access_token(create_access_token(USER))

        assert payload["userId"] == 7
        assert payload["role"] == "user"

    def test_refresh_token_is_not_an_access_token(self):
        with pytest.raises(TokenError):
            verify_access_token(create_refresh_token(USER))

    def test_access_token_is_not_a_refresh_token(self):
        with pytest.raises(TokenError):
            verify_refresh_token(create_access_token(USER))

    def test_expired_access_token(self):
        token = create_access_token(USER, expires_delta=timedelta(seconds=-5))

        with pytest.raises(TokenError, match="Token expired"):
            verify_access_token(token)


class TestOneTimeTokens:
    def test_verification_token(self):
        assert verify_email_verification_token(generate_email_verification_token(7)) == 7

    def test_tokens_are_bound_to_their_purpose(self):
        """A verification link cannot be replayed as a password reset"""
        assert verify_password_reset_token(generate_email_verification_token(7)) is None
        assert verify_email_verification_token(generate_password_reset_token(7)) is None

    def test_tampered_token(self):
        assert verify_password_reset_token(generate_password_reset_token(7) + "x") is None


class TestReferences:
    def test_booking_reference_format(self):
        reference = generate_booking_reference()

        assert re.fullmatch(r"TRP-\d{8}-[A-Z0-9]{5}", reference)

    def test_affiliate_code_prefix(self):
        assert re.fullmatch(r"OMA-[A-Z0-9]{6}", generate_affiliate_code("oma"))
        assert generate_affiliate_code().startswith("AFF-")


class TestStripeSignatures:
    PAYLOAD = b'{"type":"payment_intent.succeeded"}'

    def test_valid_signature(self):
        header = build_stripe_signature_header(self.PAYLOAD, "whsec_abc")

        verify_stripe_signature(self.PAYLOAD, header, "whsec_abc")

    def test_any_matching_v1_is_accepted(self):
        good = build_stripe_signature_header(self.PAYLOAD, "whsec_abc")
        header = f"{good.split(',')[0]},v1=deadbeef,{good.split(',')[1]}"

        verify_stripe_signature(self.PAYLOAD, header, "whsec_abc")

    def test_body_tampering(self):
        header = build_stripe_signature_header(self.PAYLOAD, "whsec_abc")

        with pytest.raises(WebhookSignatureError, match="Invalid signature"):
            verify_stripe_signature(self.PAYLOAD + b" ", header, "whsec_abc")

    def test_replay_window(self):
        header = build_stripe_signature_header(
            self.PAYLOAD, "whsec_abc", timestamp=int(time.time()) - 301
        )

        with pytest.raises(WebhookSignatureError):
            verify_stripe_signature(self.PAYLOAD, header, "whsec_abc")

    @pytest.mark.parametrize("header", ["", None])
    def test_missing_header(self, header):
        with pytest.raises(WebhookSignatureError, match="No signature provided"):
            verify_stripe_signature(self.PAYLOAD, header, "whsec_abc")

    def test_malformed_header(self):
        with pytest.raises(WebhookSignatureError):
            verify_stripe_signature(self.PAYLOAD, "garbage", "whsec_abc")


class TestCsv:
    def test_quoting(self):
        content = to_csv(
            [{"name": 'Sara "Sam" Haddad', "city": "Dubai, UAE", "notes": "line1\nline2"}],
            ["name", "city", "notes"],
        )

        assert content == 'name,city,notes\n"Sara ""Sam"" Haddad","Dubai, UAE","line1\nline2"\n'

    def test_empty_dataset_is_header_only(self):
        assert to_csv([], ["a", "b"]) == "a,b\n"

    def test_dates_and_blanks(self):
        content = to_csv([{"day": date(2025, 4, 1), "missing": None}], ["day", "missing"])

        assert content.splitlines()[1] == "2025-04-01,"
