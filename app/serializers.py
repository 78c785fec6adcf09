"""
Model -> API dict conversion.
Rows use snake_case columns; the API speaks camelCase with nested
depositPayment / travelDates / payment objects.
"""

from typing import Optional

from .models import (
    Activity,
    ActivityAvailability,
    ActivityBooking,
    AffiliateCode,
    Availability,
    Booking,
    Commission,
    Destination,
    Invitation,
    Message,
    Translation,
    User,
    Withdrawal,
)


def serialize_user(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "phoneNumber": user.phone_number,
        "role": user.role,
        "isEmailVerified": user.is_email_verified,
        "profileImage": user.profile_image,
        "lastLogin": user.last_login,
        "referredBy": user.referred_by,
        "referralCode": user.referral_code,
        "discountAmount": user.discount_amount or 0,
        "createdAt": user.created_at,
    }


def serialize_user_summary(user: Optional[User]) -> Optional[dict]:
    """Short form embedded in other resources"""
    if user is None:
        return None
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "phoneNumber": user.phone_number,
    }


def serialize_destination(destination: Optional[Destination]) -> Optional[dict]:
    if destination is None:
        return None
    return {
        "id": destination.id,
        "name": destination.name,
        "description": destination.description,
        "shortDescription": destination.short_description,
        "slug": destination.slug,
        "images": destination.images or [],
        "thumbnailImage": destination.thumbnail_image,
        "country": destination.country,
        "region": destination.region,
        "depositAmount": destination.deposit_amount,
        "currency": destination.currency,
        "highlights": destination.highlights or [],
        "inclusions": destination.inclusions or [],
        "exclusions": destination.exclusions or [],
        "duration": {"days": destination.duration_days, "nights": destination.duration_nights},
        "isActive": destination.is_active,
        "createdAt": destination.created_at,
        "updatedAt": destination.updated_at,
    }


def serialize_destination_summary(destination: Optional[Destination]) -> Optional[dict]:
    if destination is None:
        return None
    return {
        "id": destination.id,
        "name": destination.name,
        "slug": destination.slug,
        "country": destination.country,
        "thumbnailImage": destination.thumbnail_image,
        "depositAmount": destination.deposit_amount,
        "currency": destination.currency,
    }


def serialize_availability(row: Availability) -> dict:
    return {
        "id": row.id,
        "destinationId": row.destination_id,
        "date": row.date,
        "availableSlots": row.available_slots,
        "bookedSlots": row.booked_slots,
        "isBlocked": row.is_blocked,
        "blockReason": row.block_reason,
        "priceOverride": row.price_override,
        "isAvailable": row.is_available,
        "remainingSlots": row.remaining_slots,
    }


def serialize_booking(booking: Booking, include_admin_notes: bool = True) -> dict:
    data = {
        "id": booking.id,
        "bookingReference": booking.booking_reference,
        "userId": booking.user_id,
        "user": serialize_user_summary(booking.user),
        "destinationId": booking.destination_id,
        "destination": serialize_destination_summary(booking.destination),
        "status": booking.status,
        "depositPayment": {
            "amount": booking.deposit_amount,
            "currency": booking.deposit_currency,
            "paymentMethod": booking.payment_method,
            "transactionId": booking.transaction_id,
            "paidAt": booking.paid_at,
            "paymentStatus": booking.payment_status,
        },
        "travelDates": {
            "startDate": booking.travel_start_date,
            "endDate": booking.travel_end_date,
            "isFlexible": booking.is_flexible,
        },
        "numberOfTravellers": booking.number_of_travellers,
        "specialRequests": booking.special_requests,
        "affiliateCode": booking.affiliate_code,
        "rejectionReason": booking.rejection_reason,
        "calendarUnlockedUntil": booking.calendar_unlocked_until,
        "linkedActivityBookings": [ab.id for ab in booking.activity_bookings],
        "createdAt": booking.created_at,
        "updatedAt": booking.updated_at,
    }
    if include_admin_notes:
        data["adminNotes"] = booking.admin_notes
    return data


def serialize_affiliate_code(code: AffiliateCode) -> dict:
    return {
        "id": code.id,
        "affiliateId": code.affiliate_id,
        "code": code.code,
        "commissionRate": code.commission_rate,
        "commissionType": code.commission_type,
        "fixedAmount": code.fixed_amount,
        "isActive": code.is_active,
        "usageCount": code.usage_count,
        "totalEarnings": code.total_earnings,
        "canShareReferral": code.can_share_referral,
        "discountPercentage": code.discount_percentage,
        "discountAmount": code.discount_amount,
        "referralCount": code.referral_count,
        "createdAt": code.created_at,
    }


def serialize_commission(commission: Commission) -> dict:
    booking = commission.booking
    return {
        "id": commission.id,
        "affiliateId": commission.affiliate_id,
        "affiliate": serialize_user_summary(commission.affiliate),
        "bookingId": commission.booking_id,
        "bookingReference": booking.booking_reference if booking else None,
        "affiliateCode": commission.affiliate_code,
        "bookingAmount": commission.booking_amount,
        "commissionAmount": commission.commission_amount,
        "commissionRate": commission.commission_rate,
        "status": commission.status,
        "paidAt": commission.paid_at,
        "paymentReference": commission.payment_reference,
        "metadata": {"type": commission.kind, "referredUserId": commission.referred_user_id},
        "createdAt": commission.created_at,
    }


def serialize_withdrawal(withdrawal: Withdrawal) -> dict:
    return {
        "id": withdrawal.id,
        "affiliateId": withdrawal.affiliate_id,
        "affiliate": serialize_user_summary(withdrawal.affiliate),
        "amount": withdrawal.amount,
        "currency": withdrawal.currency,
        "status": withdrawal.status,
        "paymentMethod": withdrawal.payment_method,
        "paymentDetails": withdrawal.payment_details or {},
        "commissionIds": withdrawal.commission_ids or [],
        "adminNotes": withdrawal.admin_notes,
        "rejectionReason": withdrawal.rejection_reason,
        "processedAt": withdrawal.processed_at,
        "processedBy": withdrawal.processed_by,
        "paymentReference": withdrawal.payment_reference,
        "createdAt": withdrawal.created_at,
    }


def serialize_activity(activity: Activity, include_merchant: bool = True) -> dict:
    data = {
        "id": activity.id,
        "merchantId": activity.merchant_id,
        "title": activity.title,
        "description": activity.description,
        "location": activity.location,
        "price": activity.price,
        "currency": activity.currency,
        "photos": activity.photos or [],
        "status": activity.status,
        "rejectionReason": activity.rejection_reason,
        "approvedAt": activity.approved_at,
        "createdAt": activity.created_at,
    }
    if include_merchant:
        data["merchant"] = serialize_user_summary(activity.merchant)
    return data


def serialize_activity_availability(row: ActivityAvailability) -> dict:
    return {
        "id": row.id,
        "activityId": row.activity_id,
        "date": row.date,
        "availableSlots": row.available_slots,
        "bookedSlots": row.booked_slots,
        "isAvailable": row.is_available,
        "remainingSlots": row.remaining_slots,
        "price": row.price,
    }


def serialize_activity_booking(booking: ActivityBooking) -> dict:
    activity = booking.activity
    return {
        "id": booking.id,
        "bookingReference": booking.booking_reference,
        "userId": booking.user_id,
        "activityId": booking.activity_id,
        "activity": (
            {"id": activity.id, "title": activity.title, "location": activity.location}
            if activity
            else None
        ),
        "availabilityId": booking.availability_id,
        "status": booking.status,
        "payment": {
            "amount": booking.amount,
            "currency": booking.currency,
            "triplyCommission": booking.triply_commission,
            "merchantAmount": booking.merchant_amount,
            "paymentStatus": booking.payment_status,
            "transactionId": booking.transaction_id,
            "paidAt": booking.paid_at,
            "merchantPayoutStatus": booking.merchant_payout_status,
            "merchantPayoutDate": booking.merchant_payout_date,
            "merchantPayoutTransactionId": booking.merchant_payout_transaction_id,
        },
        "selectedDate": booking.selected_date,
        "numberOfParticipants": booking.number_of_participants,
        "customerName": booking.customer_name,
        "customerEmail": booking.customer_email,
        "customerPhone": booking.customer_phone,
        "specialRequests": booking.special_requests,
        "linkedDestinationBookingId": booking.linked_destination_booking_id,
        "isAddOn": booking.is_add_on,
        "createdAt": booking.created_at,
    }


def serialize_invitation(invitation: Invitation) -> dict:
    return {
        "id": invitation.id,
        "email": invitation.email,
        "role": invitation.role,
        "status": invitation.status,
        "invitedBy": serialize_user_summary(invitation.inviter),
        "expiresAt": invitation.expires_at,
        "acceptedAt": invitation.accepted_at,
        "createdAt": invitation.created_at,
    }


def serialize_message(message: Message) -> dict:
    return {
        "id": message.id,
        "bookingId": message.booking_id,
        "senderId": message.sender_id,
        "sender": serialize_user_summary(message.sender),
        "receiverId": message.receiver_id,
        "message": message.message,
        "isRead": message.is_read,
        "attachments": message.attachments or [],
        "createdAt": message.created_at,
    }


def serialize_translation(translation: Translation) -> dict:
    return {
        "id": translation.id,
        "key": translation.key,
        "translations": translation.translations,
        "category": translation.category,
        "updatedAt": translation.updated_at,
    }
