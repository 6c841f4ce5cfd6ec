"""
Identity store untuk ContextAuth API.
Repository async di atas tabel users; semua read-modify-write per user
lewat update() dengan optimistic concurrency.
"""

import logging
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from contextauth.core.config import settings
from contextauth.core.constants import ResponseMessage, TokenPurpose
from contextauth.core.exceptions import ConflictError, NotFoundError, StorageError
from contextauth.models.user import TOKEN_SLOT_COLUMNS, User

logger = logging.getLogger(__name__)

UserMutation = Callable[[User], None]


class IdentityStore:
    """
    Repository untuk record user.

    Mutasi diberikan sebagai fungsi yang dijalankan terhadap record yang baru
    dimuat, sehingga bisa diulang saat terjadi konflik versi.
    """

    def __init__(self, db: AsyncSession, max_retries: Optional[int] = None):
        """
        Initialize identity store.

        Args:
            db: Database session
            max_retries: Jumlah percobaan update saat konflik versi
        """
        self.db = db
        self.max_retries = max_retries or settings.IDENTITY_UPDATE_RETRIES

    async def _fetch_one(self, stmt) -> Optional[User]:
        try:
            result = await self.db.execute(stmt.execution_options(populate_existing=True))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load user: {e}")
            raise StorageError() from e

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User atau None
        """
        return await self._fetch_one(select(User).where(User.u_id == user_id))

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email (case-insensitive).

        Args:
            email: Email address

        Returns:
            User atau None
        """
        return await self._fetch_one(select(User).where(User.u_email == email.lower()))

    async def get_by_token_digest(self, purpose: TokenPurpose, digest: str) -> Optional[User]:
        """
        Cari user yang slot token-nya berisi digest tertentu.

        Args:
            purpose: Token purpose (menentukan kolom slot)
            digest: SHA256 digest dari token

        Returns:
            User atau None
        """
        digest_column = getattr(User, TOKEN_SLOT_COLUMNS[purpose][0])
        return await self._fetch_one(select(User).where(digest_column == digest).limit(1))

    async def create(
        self,
        email: str,
        name: str,
        password_hash: str,
        mutate: Optional[UserMutation] = None
    ) -> User:
        """
        Create user baru.

        Args:
            email: Email address
            name: Display name
            password_hash: Password yang sudah di-hash
            mutate: Inisialisasi tambahan sebelum insert (trust store, token slot)

        Returns:
            Created user

        Raises:
            ConflictError: Jika email sudah terdaftar
            StorageError: Jika database gagal
        """
        user = User(
            u_email=email.lower(),
            u_name=name,
            u_password_hash=password_hash,
            u_is_verified=False,
        )
        if mutate is not None:
            mutate(user)

        self.db.add(user)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(ResponseMessage.USER_ALREADY_EXISTS) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise StorageError() from e

        return user

    async def update(self, user_id: UUID, mutate: UserMutation) -> User:
        """
        Read-modify-write atomik untuk satu user.

        Record dimuat ulang di setiap percobaan dan mutasi diterapkan ulang
        jika commit gagal karena konflik versi.

        Args:
            user_id: User ID
            mutate: Fungsi yang mengubah record (boleh raise untuk membatalkan)

        Returns:
            User setelah commit

        Raises:
            NotFoundError: Jika user tidak ada
            StorageError: Jika retry habis atau database gagal
        """
        for attempt in range(1, self.max_retries + 1):
            user = await self.get_by_id(user_id)
            if user is None:
                raise NotFoundError(ResponseMessage.USER_NOT_FOUND)

            try:
                mutate(user)
            except Exception:
                await self.db.rollback()
                raise

            try:
                await self.db.commit()
                return user
            except StaleDataError:
                await self.db.rollback()
                logger.warning(
                    f"Concurrent update on user {user_id}, retrying "
                    f"({attempt}/{self.max_retries})"
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to update user {user_id}: {e}")
                raise StorageError() from e

        logger.error(f"Giving up on user {user_id} after {self.max_retries} conflicting updates")
        raise StorageError()
