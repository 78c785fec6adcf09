import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

USER_ROLES = ("user", "admin", "affiliate", "merchant")
BOOKING_STATUSES = (
    "pending_deposit",
    "deposit_paid",
    "dates_selected",
    "confirmed",
    "rejected",
    "cancelled",
)
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")
COMMISSION_STATUSES = ("pending", "approved", "paid")
WITHDRAWAL_STATUSES = ("pending", "processing", "completed", "rejected", "cancelled")
ACTIVITY_STATUSES = ("pending", "approved", "rejected")
ACTIVITY_BOOKING_STATUSES = (
    "pending_payment",
    "payment_completed",
    "confirmed",
    "cancelled",
    "refunded",
)


def generate_invitation_token():
    """Generate a unique token for invitation links"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)  # Always lowercase
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone_number = Column(String(30), nullable=True)
    role = Column(String(20), default="user", nullable=False)  # user, admin, affiliate, merchant
    is_email_verified = Column(Boolean, default=False, nullable=False)
    profile_image = Column(String(500), nullable=True)
    last_login = Column(DateTime, nullable=True)
    # Referral linkage - set when the user registered with someone's shareable code
    referred_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    referral_code = Column(String(50), nullable=True)
    discount_amount = Column(Float, default=0, nullable=False)  # Deducted from future deposits
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="user", foreign_keys="Booking.user_id")
    affiliate_codes = relationship("AffiliateCode", back_populates="affiliate")
    referrer = relationship("User", remote_side=[id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Destination(Base):
    __tablename__ = "destinations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(JSON, nullable=False)  # {"en": "...", "ar": "..."}
    description = Column(JSON, nullable=False)
    short_description = Column(JSON, nullable=True)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    images = Column(JSON, default=list)
    thumbnail_image = Column(String(500), nullable=True)
    country = Column(String(100), nullable=False, index=True)
    region = Column(String(100), nullable=True)
    deposit_amount = Column(Float, default=199, nullable=False)
    currency = Column(String(3), default="AED", nullable=False)
    highlights = Column(JSON, default=list)  # [{"en": "...", "ar": "..."}]
    inclusions = Column(JSON, default=list)
    exclusions = Column(JSON, default=list)
    duration_days = Column(Integer, default=1, nullable=False)
    duration_nights = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="destination")
    availability = relationship("Availability", back_populates="destination")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    destination_id = Column(Integer, ForeignKey("destinations.id"), nullable=False, index=True)
    booking_reference = Column(String(30), unique=True, index=True, nullable=False)
    status = Column(String(30), default="pending_deposit", nullable=False, index=True)

    # Deposit payment
    deposit_amount = Column(Float, nullable=False)
    deposit_currency = Column(String(3), default="AED", nullable=False)
    payment_method = Column(String(50), nullable=True)
    transaction_id = Column(String(255), nullable=True, index=True)  # Payment intent id
    paid_at = Column(DateTime, nullable=True)
    payment_status = Column(String(20), default="pending", nullable=False)

    # Travel dates - empty until the customer picks them
    travel_start_date = Column(Date, nullable=True)
    travel_end_date = Column(Date, nullable=True)
    is_flexible = Column(Boolean, default=False, nullable=False)

    number_of_travellers = Column(Integer, default=1, nullable=False)
    special_requests = Column(String(1000), nullable=True)
    affiliate_code = Column(String(50), nullable=True, index=True)
    affiliate_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    admin_notes = Column(String(2000), nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    calendar_unlocked_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="bookings", foreign_keys=[user_id])
    affiliate = relationship("User", foreign_keys=[affiliate_id])
    destination = relationship("Destination", back_populates="bookings")
    activity_bookings = relationship("ActivityBooking", back_populates="linked_booking")
    messages = relationship("Message", back_populates="booking", cascade="all, delete-orphan")


class Availability(Base):
    __tablename__ = "availability"
    __table_args__ = (UniqueConstraint("destination_id", "date", name="uq_availability_day"),)

    id = Column(Integer, primary_key=True, index=True)
    destination_id = Column(Integer, ForeignKey("destinations.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    available_slots = Column(Integer, nullable=False)
    booked_slots = Column(Integer, default=0, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    block_reason = Column(String(255), nullable=True)
    price_override = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    destination = relationship("Destination", back_populates="availability")

    @property
    def is_available(self) -> bool:
        return not self.is_blocked and (self.booked_slots or 0) < (self.available_slots or 0)

    @property
    def remaining_slots(self) -> int:
        return max(0, (self.available_slots or 0) - (self.booked_slots or 0))


class AffiliateCode(Base):
    __tablename__ = "affiliate_codes"

    id = Column(Integer, primary_key=True, index=True)
    affiliate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    code = Column(String(50), unique=True, index=True, nullable=False)  # Always uppercase
    commission_rate = Column(Float, default=10, nullable=False)  # 0-100
    commission_type = Column(String(20), default="percentage", nullable=False)  # percentage, fixed
    fixed_amount = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)
    total_earnings = Column(Float, default=0, nullable=False)
    # Referral sharing - lets regular customers hand out the code for a signup discount
    can_share_referral = Column(Boolean, default=False, nullable=False)
    discount_percentage = Column(Float, nullable=True)
    discount_amount = Column(Float, nullable=True)
    referral_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    affiliate = relationship("User", back_populates="affiliate_codes")


class Commission(Base):
    __tablename__ = "commissions"

    id = Column(Integer, primary_key=True, index=True)
    affiliate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    affiliate_code = Column(String(50), nullable=False)
    booking_amount = Column(Float, nullable=False)
    commission_amount = Column(Float, nullable=False)
    commission_rate = Column(Float, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending, approved, paid
    paid_at = Column(DateTime, nullable=True)
    payment_reference = Column(String(255), nullable=True)
    kind = Column(String(20), default="affiliate", nullable=False)  # affiliate, referral
    referred_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    affiliate = relationship("User", foreign_keys=[affiliate_id])
    referred_user = relationship("User", foreign_keys=[referred_user_id])
    booking = relationship("Booking")


class Withdrawal(Base):
    __tablename__ = "withdrawals"

    id = Column(Integer, primary_key=True, index=True)
    affiliate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="AED", nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)
    payment_method = Column(String(20), nullable=False)  # bank_transfer, paypal, stripe, other
    payment_details = Column(JSON, default=dict)  # accountName, iban, paypalEmail, ...
    commission_ids = Column(JSON, default=list)
    admin_notes = Column(Text, nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    affiliate = relationship("User", foreign_keys=[affiliate_id])


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    merchant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False)
    location = Column(String(200), nullable=False)
    price = Column(Float, nullable=False)
    currency = Column(String(3), default="AED", nullable=False)
    photos = Column(JSON, default=list)  # 1-3 image URLs
    status = Column(String(20), default="pending", nullable=False, index=True)
    rejection_reason = Column(String(500), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    merchant = relationship("User", foreign_keys=[merchant_id])
    availability = relationship("ActivityAvailability", back_populates="activity")


class ActivityAvailability(Base):
    __tablename__ = "activity_availability"
    __table_args__ = (UniqueConstraint("activity_id", "date", name="uq_activity_availability_day"),)

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    available_slots = Column(Integer, default=1, nullable=False)
    booked_slots = Column(Integer, default=0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    price = Column(Float, nullable=True)  # Overrides the activity price for this day
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    activity = relationship("Activity", back_populates="availability")

    @property
    def remaining_slots(self) -> int:
        return max(0, (self.available_slots or 0) - (self.booked_slots or 0))


class ActivityBooking(Base):
    __tablename__ = "activity_bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=False, index=True)
    availability_id = Column(Integer, ForeignKey("activity_availability.id"), nullable=False)
    booking_reference = Column(String(30), unique=True, index=True, nullable=False)
    status = Column(String(30), default="pending_payment", nullable=False, index=True)

    # Payment split - platform keeps the commission, the merchant gets the rest
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="AED", nullable=False)
    triply_commission = Column(Float, nullable=False)
    merchant_amount = Column(Float, nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    transaction_id = Column(String(255), nullable=True, index=True)
    paid_at = Column(DateTime, nullable=True)
    merchant_payout_status = Column(String(20), default="pending", nullable=False)
    merchant_payout_date = Column(DateTime, nullable=True)
    merchant_payout_transaction_id = Column(String(255), nullable=True)

    selected_date = Column(Date, nullable=False)
    number_of_participants = Column(Integer, default=1, nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(30), nullable=True)
    special_requests = Column(String(1000), nullable=True)
    linked_destination_booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    is_add_on = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User")
    activity = relationship("Activity")
    availability = relationship("ActivityAvailability")
    linked_booking = relationship("Booking", back_populates="activity_bookings")


class ActivityInquiry(Base):
    __tablename__ = "activity_inquiries"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(30), nullable=True)
    preferred_date = Column(Date, nullable=True)
    message = Column(String(2000), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    activity = relationship("Activity")


class EmailLog(Base):
    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    email_type = Column(String(50), nullable=False)  # deposit_confirmation, booking_confirmed, ...
    recipient = Column(String(255), nullable=False)
    subject = Column(String(500), nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # sent, failed, pending
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # admin, affiliate
    status = Column(String(20), default="pending", nullable=False)  # pending, accepted, expired
    token = Column(String(64), unique=True, index=True, default=generate_invitation_token)
    invited_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    inviter = relationship("User")


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    message = Column(String(5000), nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    attachments = Column(JSON, default=list)
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])


class Translation(Base):
    __tablename__ = "translations"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(255), unique=True, index=True, nullable=False)
    translations = Column(JSON, nullable=False)  # {"en": "...", "ar": "..."}
    category = Column(String(100), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
