"""
API module untuk ContextAuth API.
Berisi endpoints dan dependencies untuk API.
"""

from contextauth.api.v1 import auth, health

__all__ = ["auth", "health"]
