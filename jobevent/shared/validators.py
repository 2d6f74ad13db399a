"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, stripped email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(email_pattern, email):
        raise ValueError("Please provide a valid email")

    return email


def validate_vn_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a Vietnamese phone number to local 0XXXXXXXXX form.

    Accepts 0XXXXXXXXX, +84XXXXXXXXX and 84XXXXXXXXX, with spaces, dots or dashes.

    Raises:
        ValueError: If the number is not 10 digits after normalization
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    if digits.startswith("84") and len(digits) == 11:
        digits = "0" + digits[2:]

    if len(digits) != 10 or not digits.startswith("0"):
        raise ValueError("Phone number must be 10 digits")

    return digits


def reject_null(value):
    """Explicit null is not allowed for fields backed by required columns"""
    if value is None:
        raise ValueError("cannot be null")
    return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store datetimes as naive UTC; aware inputs are converted first"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_salary(salary: Optional[str]) -> int:
    """
    Extract the VND amount from free-text salary.
    Dots are thousand separators, so "500.000 VNĐ/ngày" -> 500000.
    """
    if not salary:
        return 0
    digits = re.sub(r"[^0-9]", "", salary)
    return int(digits) if digits else 0
