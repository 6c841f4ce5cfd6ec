"""
User model untuk ContextAuth API.
Record user menyimpan identitas, Trust Store, dan slot token dalam satu row.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from sqlalchemy import (
    Column, String, Boolean, Integer, JSON, Uuid,
    UniqueConstraint, Index, CheckConstraint
)

from contextauth.core.constants import TokenPurpose
from contextauth.core.security import pwd_context
from contextauth.db.base import BaseModel, TZDateTime
from contextauth.services.token import StoredToken
from contextauth.services.trust_store import TrustStore

# Purpose -> (kolom digest, kolom expiry)
TOKEN_SLOT_COLUMNS = {
    TokenPurpose.EMAIL_VERIFICATION: ("u_email_code_hash", "u_email_code_expires_at"),
    TokenPurpose.TWO_FACTOR_AUTH: ("u_two_factor_code_hash", "u_two_factor_code_expires_at"),
    TokenPurpose.DEVICE_RESET: ("u_device_reset_token_hash", "u_device_reset_token_expires_at"),
    TokenPurpose.PASSWORD_RESET: ("u_password_reset_token_hash", "u_password_reset_token_expires_at"),
}


class User(BaseModel):
    """
    User model untuk authentication dan risk profiling.

    Attributes:
        u_id: Unique user ID (UUID)
        u_email: User's email address (unique)
        u_name: Display name
        u_password_hash: Hashed password
        u_is_verified: Whether email is verified
        u_last_login_at: Last successful login timestamp
        u_trusted_ips: IP yang pernah dipakai login sukses
        u_trusted_devices: Device fingerprint terpercaya
        u_known_locations: Lokasi yang dikenal (bounded)
        u_behavioral_profile: Baseline kecepatan mengetik dan jam login
        u_context_logs: Riwayat context login (bounded)
        u_risk_score: Risk score terakhir
        u_version: Version counter untuk optimistic concurrency
    """

    __tablename__ = "users"

    # Primary key
    u_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )

    # Identity fields
    u_email = Column(
        String(255),
        nullable=False,
        index=True
    )
    u_name = Column(
        String(100),
        nullable=False
    )
    u_password_hash = Column(
        String(255),
        nullable=False
    )
    u_is_verified = Column(
        Boolean,
        default=False,
        nullable=False,
        index=True
    )
    u_last_login_at = Column(
        TZDateTime(),
        nullable=True
    )

    # Trust store
    u_trusted_ips = Column(JSON, nullable=False, default=list)
    u_trusted_devices = Column(JSON, nullable=False, default=list)
    u_known_locations = Column(JSON, nullable=False, default=list)
    u_behavioral_profile = Column(JSON, nullable=False, default=dict)
    u_context_logs = Column(JSON, nullable=False, default=list)
    u_risk_score = Column(Integer, nullable=False, default=0)

    # Token slots
    u_email_code_hash = Column(String(64), nullable=True)
    u_email_code_expires_at = Column(TZDateTime(), nullable=True)
    u_two_factor_code_hash = Column(String(64), nullable=True)
    u_two_factor_code_expires_at = Column(TZDateTime(), nullable=True)
    u_device_reset_token_hash = Column(String(64), nullable=True, index=True)
    u_device_reset_token_expires_at = Column(TZDateTime(), nullable=True)
    u_password_reset_token_hash = Column(String(64), nullable=True, index=True)
    u_password_reset_token_expires_at = Column(TZDateTime(), nullable=True)

    u_version = Column(Integer, nullable=False)

    __mapper_args__ = {
        "eager_defaults": True,
        "version_id_col": u_version
    }

    # Constraints
    __table_args__ = (
        UniqueConstraint('u_email', name='uq_users_email'),
        CheckConstraint('length(u_email) >= 3', name='ck_users_email_length'),
        CheckConstraint('u_risk_score >= 0', name='ck_users_risk_score_positive'),
        Index('idx_users_is_verified', 'u_is_verified'),
    )

    # Trust store
    @property
    def trust_store(self) -> TrustStore:
        """Snapshot TrustStore dari kolom-kolom JSON."""
        return TrustStore.from_columns(
            trusted_ips=self.u_trusted_ips,
            trusted_devices=self.u_trusted_devices,
            known_locations=self.u_known_locations,
            behavioral_profile=self.u_behavioral_profile,
            context_logs=self.u_context_logs,
            risk_score=self.u_risk_score,
        )

    @trust_store.setter
    def trust_store(self, store: TrustStore) -> None:
        # Selalu assign object baru agar perubahan JSON terdeteksi
        columns = store.to_columns()
        self.u_trusted_ips = columns["trusted_ips"]
        self.u_trusted_devices = columns["trusted_devices"]
        self.u_known_locations = columns["known_locations"]
        self.u_behavioral_profile = columns["behavioral_profile"]
        self.u_context_logs = columns["context_logs"]
        self.u_risk_score = columns["risk_score"]

    # Token slots
    def get_token_slot(self, purpose: TokenPurpose) -> Optional[StoredToken]:
        """
        Ambil isi slot token untuk purpose tertentu.

        Args:
            purpose: Token purpose

        Returns:
            StoredToken atau None jika slot kosong
        """
        digest_attr, expires_attr = TOKEN_SLOT_COLUMNS[purpose]
        digest = getattr(self, digest_attr)
        expires_at = getattr(self, expires_attr)

        if not digest or expires_at is None:
            return None
        return StoredToken(digest=digest, purpose=purpose, expires_at=expires_at)

    def set_token_slot(self, purpose: TokenPurpose, stored: Optional[StoredToken]) -> None:
        """
        Tulis (atau kosongkan jika None) slot token.
        """
        digest_attr, expires_attr = TOKEN_SLOT_COLUMNS[purpose]
        setattr(self, digest_attr, stored.digest if stored else None)
        setattr(self, expires_attr, stored.expires_at if stored else None)

    def clear_token_slot(self, purpose: TokenPurpose) -> None:
        self.set_token_slot(purpose, None)

    # Methods
    def verify_password(self, password: str) -> bool:
        """
        Verify password against hash.

        Args:
            password: Plain text password to verify

        Returns:
            True if password matches
        """
        return pwd_context.verify(password, self.u_password_hash)

    def update_last_login(self, when: Optional[datetime] = None) -> None:
        """Update last login timestamp."""
        self.u_last_login_at = when or datetime.now(timezone.utc)

    def verify_email(self) -> None:
        """Mark email as verified dan kosongkan slot kode verifikasi."""
        self.u_is_verified = True
        self.clear_token_slot(TokenPurpose.EMAIL_VERIFICATION)

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.u_id}, email={self.u_email})>"
