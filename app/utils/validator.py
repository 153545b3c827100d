"""
User input validation utilities
"""
import re
from typing import Any, Optional
from app.core.config import Settings, settings as default_settings


def _clean(value: Any) -> str:
    """Trimmed string, or empty string for anything that isn't one"""
    if not isinstance(value, str):
        return ""
    return value.strip()


def is_valid_email(email: str, settings: Optional[Settings] = None) -> bool:
    """Check simple local@domain.tld shape"""
    settings = settings or default_settings
    return re.fullmatch(settings.EMAIL_REGEX, email) is not None


def is_valid_phone(phone: str, settings: Optional[Settings] = None) -> bool:
    """
    Check phone number shape

    10-20 characters of digits, '+', '-', '(', ')' and space
    """
    settings = settings or default_settings
    return re.fullmatch(settings.PHONE_REGEX, phone) is not None


def validate_user_data(data: dict, settings: Optional[Settings] = None) -> list[dict]:
    """
    Validate a candidate user record

    Returns: list of {"field", "message"} problems, empty when valid.
    Every field is checked so all problems are reported together.
    """
    settings = settings or default_settings
    errors = []

    username = _clean(data.get("username"))
    if not username:
        errors.append({"field": "username", "message": "Username is required"})
    elif not settings.USERNAME_MIN_LENGTH <= len(username) <= settings.USERNAME_MAX_LENGTH:
        errors.append({
            "field": "username",
            "message": (
                f"Username must be between {settings.USERNAME_MIN_LENGTH} "
                f"and {settings.USERNAME_MAX_LENGTH} characters"
            ),
        })

    email = _clean(data.get("email"))
    if not email:
        errors.append({"field": "email", "message": "Email is required"})
    elif not is_valid_email(email, settings):
        errors.append({"field": "email", "message": "Please provide a valid email address"})

    phone = _clean(data.get("phone"))
    if not phone:
        errors.append({"field": "phone", "message": "Phone number is required"})
    elif not is_valid_phone(phone, settings):
        errors.append({"field": "phone", "message": "Please provide a valid phone number (10-20 digits)"})

    return errors


def normalize_user_data(data: dict) -> dict:
    """Trim all fields and lowercase the email"""
    return {
        "username": _clean(data.get("username")),
        "email": _clean(data.get("email")).lower(),
        "phone": _clean(data.get("phone")),
    }
