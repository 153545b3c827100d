"""
Database Models
"""
from .user import UserRepository, USER_COLUMNS

__all__ = [
    "UserRepository",
    "USER_COLUMNS",
]
