"""
Phone number normalization utilities
"""
from typing import Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from ..core.config import settings


def normalize_phone(phone: str, default_region: Optional[str] = None) -> str:
    """
    Normalize phone number to E.164 format.

    Args:
        phone: Phone number string (can be in various formats)
        default_region: Region used when no country code is present
            (defaults to settings.PHONE_DEFAULT_REGION)

    Returns:
        Normalized phone number in E.164 format (e.g., +919876543210)

    Raises:
        ValueError: If phone number is missing or invalid
    """
    if phone is None or not str(phone).strip():
        raise ValueError("Phone number is required")

    region = default_region or settings.PHONE_DEFAULT_REGION
    try:
        parsed = phonenumbers.parse(str(phone).strip(), region)
    except NumberParseException as e:
        raise ValueError(f"Invalid phone number format: {str(e)}")

    if not phonenumbers.is_valid_number(parsed):
        raise ValueError("Invalid phone number")

    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def get_phone_last4(phone: str) -> str:
    """
    Get last 4 digits of phone number for safe logging.

    Returns:
        Last 4 digits as string, or all digits if fewer than 4
    """
    digits = "".join(filter(str.isdigit, phone or ""))
    if len(digits) >= 4:
        return digits[-4:]
    return digits
