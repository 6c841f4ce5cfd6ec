"""
API dependencies module.
Berisi reusable dependencies untuk FastAPI endpoints.
"""

from contextauth.api.dependencies.auth import get_current_user
from contextauth.api.dependencies.database import get_db, get_redis
from contextauth.api.dependencies.rate_limit import RateLimitDependency
from contextauth.api.dependencies.services import (
    get_auth_service,
    get_captcha_verifier,
    get_geolocation_resolver,
    get_notifier
)

__all__ = [
    "get_current_user",
    "get_db",
    "get_redis",
    "RateLimitDependency",
    "get_auth_service",
    "get_captcha_verifier",
    "get_geolocation_resolver",
    "get_notifier"
]
