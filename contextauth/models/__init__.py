"""
Database models untuk ContextAuth API.
"""

from contextauth.models.user import User

__all__ = [
    "User",
]
