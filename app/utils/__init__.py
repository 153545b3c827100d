"""
Utility Functions
"""
from .validator import validate_user_data, normalize_user_data, is_valid_email, is_valid_phone

__all__ = ["validate_user_data", "normalize_user_data", "is_valid_email", "is_valid_phone"]
