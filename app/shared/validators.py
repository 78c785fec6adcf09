"""Shared validation utilities"""

import calendar
import re
from datetime import date, timedelta
from typing import Iterator, Optional

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]{7,20}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, trimmed email address

    Raises:
        ValueError: If email format is invalid
    """
    if email is None:
        return email
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please provide a valid email")
    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """Accept international phone numbers; digits, spaces, dashes and parentheses"""
    if not phone:
        return phone
    phone = phone.strip()
    if not PHONE_PATTERN.match(phone) or len(re.sub(r"\D", "", phone)) < 7:
        raise ValueError("Please provide a valid phone number")
    return phone


def validate_password(password: str) -> str:
    """Passwords need at least 8 characters, one digit and one letter"""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one number")
    if not re.search(r"[a-zA-Z]", password):
        raise ValueError("Password must contain at least one letter")
    return password


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim leading/trailing '-'"""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end, both inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_accept_language(header: Optional[str], default: str = "en") -> str:
    """
    Pick the preferred language from an Accept-Language header.
    "en-US,en;q=0.9,ar;q=0.8" -> "en"; highest q wins, region subtags dropped.
    """
    if not header:
        return default

    languages = []
    for part in header.split(","):
        pieces = part.strip().split(";")
        code = pieces[0].split("-")[0].strip().lower()
        if not code:
            continue
        quality = 1.0
        for param in pieces[1:]:
            param = param.strip()
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 0.0
        languages.append((quality, code))

    if not languages:
        return default
    # sorted() is stable, so equal weights keep header order
    languages = sorted(languages, key=lambda item: item[0], reverse=True)
    return languages[0][1]


def add_months(value: date, months: int) -> date:
    """Same day N months later, clamped to the end of shorter months"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
