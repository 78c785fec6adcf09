"""
Shared fixtures for the TRIPLY API test suite.

Every test gets a fresh in-memory SQLite database, a fake Stripe gateway and
an outbox that captures emails instead of delivering them.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import email_service, rate_limiter  # noqa: E402
from app.database import Base, build_engine, get_db  # noqa: E402
from app.domain.payments.stripe_service import (  # noqa: E402
    PaymentGatewayError,
    get_payment_gateway,
    to_minor_units,
)
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Activity,
    AffiliateCode,
    Booking,
    Destination,
    User,
)
from app.security_utils import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "Password123"


class FakeGateway:
    """In-memory stand-in for StripePaymentsService"""

    def __init__(self):
        self.intents: dict[str, dict] = {}
        self.refunds: list[dict] = []
        self.fail = False

    async def create_payment_intent(self, amount, currency, metadata=None):
        if self.fail:
            raise PaymentGatewayError("card processor unavailable")
        intent_id = f"pi_test_{len(self.intents) + 1}"
        self.intents[intent_id] = {
            "id": intent_id,
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "status": "requires_payment_method",
            "metadata": {k: str(v) for k, v in (metadata or {}).items()},
        }
        return {"clientSecret": f"{intent_id}_secret", "paymentIntentId": intent_id}

    async def retrieve_payment_intent(self, payment_intent_id):
        if payment_intent_id not in self.intents:
            raise PaymentGatewayError("No such payment_intent")
        return self.intents[payment_intent_id]

    async def create_refund(self, payment_intent_id, metadata=None):
        if self.fail:
            raise PaymentGatewayError("refund failed")
        refund = {"id": f"re_{len(self.refunds) + 1}", "status": "succeeded"}
        self.refunds.append({"paymentIntent": payment_intent_id, **refund})
        return refund

    def succeed(self, payment_intent_id):
        self.intents[payment_intent_id]["status"] = "succeeded"


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow; hash the shared test password once"""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def outbox(monkeypatch):
    """Emails handed to the transport: [{to, subject, html}]"""
    sent = []

    def capture(to, subject, html_content):
        sent.append({"to": to, "subject": subject, "html": html_content})
        return {"id": f"email_{len(sent)}"}

    monkeypatch.setattr(email_service, "deliver_email", capture)
    return sent


@pytest.fixture
def client(session_factory, gateway, outbox, monkeypatch):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", False)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    # No context manager: the lifespan would touch the configured database and Redis
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# DATA FACTORIES
# ============================================================================


@pytest.fixture
def make_user(db, password_hash):
    counter = {"n": 0}

    def factory(role="user", email=None, first_name="Sara", last_name="Haddad", **extra):
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_email_verified=True,
            **extra,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def customer(make_user):
    return make_user("user", email="customer@example.com", first_name="Omar")


@pytest.fixture
def admin(make_user):
    return make_user("admin", email="admin@example.com", first_name="Admin")


@pytest.fixture
def affiliate(make_user):
    return make_user("affiliate", email="affiliate@example.com", first_name="Lina")


@pytest.fixture
def merchant(make_user):
    return make_user("merchant", email="merchant@example.com", first_name="Karim")


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def affiliate_headers(affiliate):
    return auth_headers(affiliate)


@pytest.fixture
def merchant_headers(merchant):
    return auth_headers(merchant)


@pytest.fixture
def destination(db):
    destination = Destination(
        name={"en": "Maldives Escape", "ar": "جزر المالديف"},
        description={"en": "Overwater villas and reefs"},
        slug="maldives-escape",
        country="Maldives",
        region="Asia",
        deposit_amount=199,
        currency="AED",
        duration_days=5,
        duration_nights=4,
        is_active=True,
    )
    db.add(destination)
    db.commit()
    db.refresh(destination)
    return destination


@pytest.fixture
def affiliate_code(db, affiliate):
    code = AffiliateCode(
        affiliate_id=affiliate.id,
        code="LINA-TEST01",
        commission_rate=10,
        commission_type="percentage",
        is_active=True,
    )
    db.add(code)
    db.commit()
    db.refresh(code)
    return code


@pytest.fixture
def approved_activity(db, merchant):
    activity = Activity(
        merchant_id=merchant.id,
        title="Desert Safari",
        description="Dune bashing and dinner",
        location="Dubai",
        price=150,
        currency="AED",
        photos=["https://img.example.com/safari.jpg"],
        status="approved",
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


@pytest.fixture
def make_booking(db, destination):
    counter = {"n": 0}

    def factory(user, status="deposit_paid", **extra):
        counter["n"] += 1
        values = {
            "user_id": user.id,
            "destination_id": destination.id,
            "booking_reference": f"TRP-20250101-T{counter['n']:04d}",
            "status": status,
            "deposit_amount": 199,
            "deposit_currency": "AED",
            "payment_status": "completed" if status != "pending_deposit" else "pending",
        }
        values.update(extra)
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return factory
