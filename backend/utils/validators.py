"""
Syntax checks for candidate contact details.
"""
import re
from typing import Any

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# Ten digits, each of the first nine optionally followed by one space or dash
PHONE_PATTERN = re.compile(r"(?:[0-9][\s-]?){9}[0-9]")


def is_valid_email(email: Any) -> bool:
    """Check that the text looks like local@domain.tld."""
    if not isinstance(email, str):
        return False
    return EMAIL_PATTERN.fullmatch(email) is not None


def is_valid_phone(phone: Any) -> bool:
    """Check that the text is a 10-digit phone number, optionally separated by spaces or dashes."""
    if not isinstance(phone, str):
        return False
    return PHONE_PATTERN.fullmatch(phone) is not None
