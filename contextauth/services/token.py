"""
Token lifecycle service untuk ContextAuth API.
Menangani issue dan validasi kode verifikasi serta reset token.

Token disimpan sebagai slot di record user (satu slot per purpose),
hanya digest SHA256 yang dipersist.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from contextauth.core.config import Settings, settings as default_settings
from contextauth.core.constants import NUMERIC_TOKEN_PURPOSES, TokenPurpose, TokenStatus
from contextauth.core.security import security


@dataclass(frozen=True)
class StoredToken:
    """Isi slot token di record user."""
    digest: str
    purpose: TokenPurpose
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class IssuedToken:
    """
    Token yang baru dibuat.

    Attributes:
        value: Secret plaintext, hanya untuk dikirim ke user
        stored: Nilai yang disimpan ke slot
    """
    value: str
    stored: StoredToken

    @property
    def purpose(self) -> TokenPurpose:
        return self.stored.purpose

    @property
    def expires_at(self) -> datetime:
        return self.stored.expires_at


@dataclass(frozen=True)
class TokenValidation:
    """Hasil validasi token."""
    status: TokenStatus
    purpose: TokenPurpose

    @property
    def is_valid(self) -> bool:
        return self.status == TokenStatus.FRESH


class TokenService:
    """
    Service class untuk token lifecycle.
    Tidak menyentuh database; slot dibaca dan ditulis oleh pemanggil.
    """

    def __init__(
        self,
        ttls: Optional[Dict[TokenPurpose, timedelta]] = None,
        code_length: int = 6,
        reset_token_bytes: int = 20
    ):
        self.ttls = ttls or {
            TokenPurpose.EMAIL_VERIFICATION: timedelta(minutes=1),
            TokenPurpose.TWO_FACTOR_AUTH: timedelta(minutes=5),
            TokenPurpose.DEVICE_RESET: timedelta(minutes=30),
            TokenPurpose.PASSWORD_RESET: timedelta(minutes=30),
        }
        self.code_length = code_length
        self.reset_token_bytes = reset_token_bytes

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "TokenService":
        return cls(
            ttls={
                TokenPurpose.EMAIL_VERIFICATION: config.email_verification_expire_timedelta,
                TokenPurpose.TWO_FACTOR_AUTH: config.two_factor_expire_timedelta,
                TokenPurpose.DEVICE_RESET: config.reset_token_expire_timedelta,
                TokenPurpose.PASSWORD_RESET: config.reset_token_expire_timedelta,
            },
            code_length=config.NUMERIC_CODE_LENGTH,
            reset_token_bytes=config.RESET_TOKEN_BYTES,
        )

    def generate_secret(self, purpose: TokenPurpose) -> str:
        if purpose in NUMERIC_TOKEN_PURPOSES:
            return security.generate_numeric_token(self.code_length)
        return security.generate_hex_token(self.reset_token_bytes)

    def issue(self, purpose: TokenPurpose, now: Optional[datetime] = None) -> IssuedToken:
        """
        Buat token baru untuk purpose tertentu.

        Args:
            purpose: Token purpose
            now: Waktu issue (default: sekarang)

        Returns:
            IssuedToken berisi secret dan nilai slot
        """
        now = now or datetime.now(timezone.utc)
        value = self.generate_secret(purpose)

        stored = StoredToken(
            digest=security.hash_token(value),
            purpose=purpose,
            expires_at=now + self.ttls[purpose],
        )
        return IssuedToken(value=value, stored=stored)

    def validate(
        self,
        stored: Optional[StoredToken],
        submitted: Optional[str],
        purpose: TokenPurpose,
        now: Optional[datetime] = None
    ) -> TokenValidation:
        """
        Validasi secret yang dikirim user terhadap slot.

        Args:
            stored: Isi slot (None jika kosong)
            submitted: Secret dari user
            purpose: Purpose yang diharapkan
            now: Waktu validasi (default: sekarang)

        Returns:
            TokenValidation dengan status FRESH, EXPIRED, atau NOT_FOUND
        """
        now = now or datetime.now(timezone.utc)

        if stored is None or not submitted or stored.purpose != purpose:
            return TokenValidation(TokenStatus.NOT_FOUND, purpose)

        if not security.digests_match(stored.digest, security.hash_token(submitted)):
            return TokenValidation(TokenStatus.NOT_FOUND, purpose)

        if stored.is_expired(now):
            return TokenValidation(TokenStatus.EXPIRED, purpose)

        return TokenValidation(TokenStatus.FRESH, purpose)
