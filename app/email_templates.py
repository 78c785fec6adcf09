"""
MJML Email Templates
All transactional emails share one responsive layout
"""

from datetime import date, datetime
from html import escape
from typing import Optional, Union

from .config import FRONTEND_URL

# Brand colors - Indigo/Slate scheme
THEME = {
    "primary": "#667eea",
    "primary_dark": "#4c51bf",
    "primary_light": "#ebf4ff",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#14b8a6",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def format_date(value: Union[date, datetime, None]) -> str:
    """Long form date, e.g. Monday, June 24, 2025"""
    if value is None:
        return "-"
    return value.strftime("%A, %B %d, %Y")


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    accent: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""
    accent = accent or THEME["primary"]

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 32px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{accent}"
              color="#ffffff"
              font-weight="600"
              border-radius="6px"
              padding="8px 0"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, 'Helvetica Neue', sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{accent}" padding="30px 20px">
          <mj-column>
            <mj-text align="center" color="#ffffff" font-size="26px" font-weight="700">
              {title}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="32px 40px 8px 40px">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">
              TRIPLY - Your Travel Partner
            </mj-text>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="8px 0 0 0">
              If you have any questions, please contact our support team.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details(rows: list[tuple[str, str]], accent: Optional[str] = None) -> str:
    accent = accent or THEME["primary"]
    lines = "<br/>".join(f"<strong>{label}:</strong> {escape(str(value))}" for label, value in rows)
    return f"""
    <mj-divider border-color="{accent}" border-width="3px" padding="8px 0 0 0" />
    <mj-text padding="16px" container-background-color="{THEME['primary_light']}">
      {lines}
    </mj-text>
    """


def _paragraph(text: str) -> str:
    return f"<mj-text>{text}</mj-text>"


def deposit_confirmation_template(
    first_name: str, booking_reference: str, destination_name: str, amount: float, currency: str
) -> str:
    content = "".join(
        [
            _paragraph(f"Dear {escape(first_name)},"),
            _paragraph("Thank you for your deposit! Your booking is now secured."),
            _details(
                [
                    ("Booking Reference", booking_reference),
                    ("Destination", destination_name),
                    ("Deposit Amount", f"{currency} {amount:g}"),
                ]
            ),
            _paragraph(
                "Your calendar is now unlocked for 1 year. "
                "You can select your travel dates at any time."
            ),
        ]
    )
    return get_base_template(
        "Deposit Confirmed!",
        f"Deposit received for {booking_reference}",
        content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="Select Your Dates",
    )


def booking_confirmed_template(
    first_name: str,
    booking_reference: str,
    destination_name: str,
    start_date: date,
    end_date: date,
) -> str:
    content = "".join(
        [
            _paragraph(f"Dear {escape(first_name)},"),
            _paragraph("Great news! Your booking has been confirmed."),
            _details(
                [
                    ("Booking Reference", booking_reference),
                    ("Destination", destination_name),
                    ("Check-in", format_date(start_date)),
                    ("Check-out", format_date(end_date)),
                ],
                accent=THEME["success"],
            ),
            _paragraph("We will be in touch with the final travel details before your trip."),
        ]
    )
    return get_base_template(
        "Booking Confirmed!",
        f"Your trip {booking_reference} is confirmed",
        content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="View Booking",
        accent=THEME["success"],
    )


def booking_rejected_template(first_name: str, booking_reference: str, reason: str) -> str:
    content = "".join(
        [
            _paragraph(f"Dear {escape(first_name)},"),
            _paragraph(
                "Unfortunately we were unable to confirm your booking for the dates you selected."
            ),
            _details([("Booking Reference", booking_reference), ("Reason", reason)], THEME["danger"]),
            _paragraph("Please get in touch with our team to choose alternative dates."),
        ]
    )
    return get_base_template(
        "Booking Update",
        f"An update on booking {booking_reference}",
        content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="View Booking",
        accent=THEME["danger"],
    )


def dates_selected_template(
    first_name: str,
    booking_reference: str,
    destination_name: str,
    start_date: date,
    end_date: date,
) -> str:
    content = "".join(
        [
            _paragraph(f"Dear {escape(first_name)},"),
            _paragraph("We have received your travel dates. Our team will review them shortly."),
            _details(
                [
                    ("Booking Reference", booking_reference),
                    ("Destination", destination_name),
                    ("Start Date", format_date(start_date)),
                    ("End Date", format_date(end_date)),
                ]
            ),
        ]
    )
    return get_base_template(
        "Travel Dates Selected",
        f"Dates received for {booking_reference}",
        content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="View Booking",
    )


def admin_dates_selected_template(
    customer_name: str,
    booking_reference: str,
    destination_name: str,
    start_date: date,
    end_date: date,
) -> str:
    content = "".join(
        [
            _paragraph("A customer has selected travel dates and is waiting for confirmation."),
            _details(
                [
                    ("Customer", customer_name),
                    ("Booking Reference", booking_reference),
                    ("Destination", destination_name),
                    ("Start Date", format_date(start_date)),
                    ("End Date", format_date(end_date)),
                ]
            ),
        ]
    )
    return get_base_template(
        "Dates Awaiting Review",
        f"{booking_reference} needs review",
        content,
        cta_url=f"{FRONTEND_URL}/admin/bookings",
        cta_label="Review Booking",
    )


def email_verification_template(first_name: str, verify_url: str) -> str:
    content = "".join(
        [
            _paragraph(f"Hi {escape(first_name)},"),
            _paragraph(
                "Welcome to TRIPLY! Please confirm your email address. "
                "This link expires in 24 hours."
            ),
        ]
    )
    return get_base_template(
        "Verify Your Email",
        "Confirm your TRIPLY account",
        content,
        cta_url=verify_url,
        cta_label="Verify Email",
    )


def password_reset_template(first_name: str, reset_url: str) -> str:
    content = "".join(
        [
            _paragraph(f"Hi {escape(first_name)},"),
            _paragraph(
                "We received a request to reset your password. This link expires in 1 hour."
            ),
            _paragraph("If you didn't request a reset, you can safely ignore this email."),
        ]
    )
    return get_base_template(
        "Reset Your Password",
        "Password reset requested",
        content,
        cta_url=reset_url,
        cta_label="Reset Password",
    )


def calendar_expiry_template(
    first_name: str, booking_reference: str, destination_name: str, expiry: datetime
) -> str:
    content = "".join(
        [
            _paragraph(f"Dear {escape(first_name)},"),
            _paragraph(
                "This is a friendly reminder that your calendar access "
                "for booking travel dates is expiring soon."
            ),
            _details(
                [
                    ("Booking Reference", booking_reference),
                    ("Destination", destination_name),
                    ("Expiry Date", format_date(expiry)),
                ],
                THEME["warning"],
            ),
            _paragraph(
                "You have <strong>30 days</strong> remaining. "
                "Select your preferred travel dates now to secure your booking."
            ),
        ]
    )
    return get_base_template(
        "⏰ Calendar Access Expiring Soon",
        f"Select your dates for {booking_reference}",
        content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="Select Travel Dates",
        accent=THEME["warning"],
    )


def invitation_template(role: str, inviter_name: str, accept_url: str, expires_at: datetime) -> str:
    content = "".join(
        [
            _paragraph("Hello,"),
            _paragraph(
                f"{escape(inviter_name)} has invited you to join TRIPLY as "
                f"<strong>{escape(role)}</strong>."
            ),
            _details([("Role", role.capitalize()), ("Invitation expires", format_date(expires_at))]),
        ]
    )
    return get_base_template(
        "You're Invited!",
        f"Join TRIPLY as {role}",
        content,
        cta_url=accept_url,
        cta_label="Accept Invitation",
    )


def activity_inquiry_template(
    activity_title: str,
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str],
    preferred_date: Optional[date],
    message: str,
) -> str:
    content = "".join(
        [
            _paragraph(f"A new inquiry was submitted for <strong>{escape(activity_title)}</strong>."),
            _details(
                [
                    ("Name", customer_name),
                    ("Email", customer_email),
                    ("Phone", customer_phone or "-"),
                    ("Preferred Date", format_date(preferred_date) if preferred_date else "-"),
                    ("Message", message),
                ]
            ),
        ]
    )
    return get_base_template("New Activity Inquiry", f"Inquiry for {activity_title}", content)


def activity_inquiry_receipt_template(customer_name: str, activity_title: str) -> str:
    content = "".join(
        [
            _paragraph(f"Hi {escape(customer_name)},"),
            _paragraph(
                f"Thanks for your interest in <strong>{escape(activity_title)}</strong>. "
                "The organiser will get back to you shortly."
            ),
        ]
    )
    return get_base_template(
        "We Received Your Inquiry",
        f"Your inquiry about {activity_title}",
        content,
        cta_url=f"{FRONTEND_URL}/activities",
        cta_label="Browse Activities",
    )
