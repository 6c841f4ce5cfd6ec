"""
Service dependencies untuk FastAPI.
Collaborator eksternal dibuat sekali per proses; test menggantinya lewat
app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from contextauth.api.dependencies.database import get_db
from contextauth.core.config import settings
from contextauth.services.auth import AuthService
from contextauth.services.captcha import CaptchaVerifier
from contextauth.services.email import EmailService
from contextauth.services.geolocation import GeolocationResolver


@lru_cache
def get_notifier() -> EmailService:
    return EmailService(settings)


@lru_cache
def get_geolocation_resolver() -> GeolocationResolver:
    return GeolocationResolver(settings)


@lru_cache
def get_captcha_verifier() -> CaptchaVerifier:
    return CaptchaVerifier(settings)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    notifier: EmailService = Depends(get_notifier),
    geolocation: GeolocationResolver = Depends(get_geolocation_resolver),
    captcha: CaptchaVerifier = Depends(get_captcha_verifier)
) -> AuthService:
    """
    Dependency untuk AuthService per request.

    Returns:
        AuthService
    """
    return AuthService(
        db,
        notifier=notifier,
        geolocation=geolocation,
        captcha=captcha,
        config=settings
    )
