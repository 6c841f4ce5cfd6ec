"""
Authentication dependencies untuk FastAPI.
Session token dibaca dari httponly cookie.
"""

from typing import Optional, Annotated
from uuid import UUID

from fastapi import Cookie, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from contextauth.api.dependencies.database import get_db
from contextauth.core.config import settings
from contextauth.core.constants import ResponseMessage
from contextauth.core.exceptions import AuthenticationError, TokenError
from contextauth.core.security import security
from contextauth.models.user import User
from contextauth.services.identity import IdentityStore


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    token: Annotated[Optional[str], Cookie(alias=settings.SESSION_COOKIE_NAME)] = None
) -> User:
    """
    Get current user dari session cookie.

    Args:
        db: Database session
        token: JWT session token dari cookie

    Returns:
        Current user object

    Raises:
        AuthenticationError: Jika cookie tidak ada atau user tidak ditemukan
        TokenError: Jika token invalid atau expired
    """
    if not token:
        raise AuthenticationError(ResponseMessage.NOT_AUTHENTICATED)

    payload = security.decode_token(token, expected_type="access")
    subject = payload.get("sub")
    if subject is None:
        raise TokenError("Invalid authentication credentials")

    try:
        user_id = UUID(subject)
    except ValueError:
        raise TokenError("Invalid authentication credentials")

    user = await IdentityStore(db).get_by_id(user_id)
    if user is None:
        raise AuthenticationError(ResponseMessage.USER_NOT_FOUND)

    return user
