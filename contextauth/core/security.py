"""
Modul keamanan terpusat untuk ContextAuth API.
Menangani password hashing, JWT session token, dan generator secret acak.
"""

import hmac
import re
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple, List

from cryptography.hazmat.primitives import hashes
from jose import jwt, JWTError
from passlib.context import CryptContext

from contextauth.core.config import settings
from contextauth.core.exceptions import TokenError


# Password hashing context dengan Argon2
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,
    argon2__memory_cost=65536,
    argon2__parallelism=2,
    argon2__hash_len=32,
    argon2__salt_len=16
)


class Security:
    """Kelas untuk operasi keamanan."""

    # Password Operations
    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash password menggunakan Argon2.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verifikasi password terhadap hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True jika password cocok, False jika tidak
        """
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def validate_password_strength(password: str) -> Tuple[bool, List[str]]:
        """
        Validasi kekuatan password berdasarkan policy.

        Args:
            password: Password yang akan divalidasi

        Returns:
            Tuple (is_valid, list_of_errors)
        """
        errors = []

        if len(password) < settings.PASSWORD_MIN_LENGTH:
            errors.append(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")

        if settings.PASSWORD_REQUIRE_UPPERCASE and not re.search(r"[A-Z]", password):
            errors.append("Password must contain at least one uppercase letter")

        if settings.PASSWORD_REQUIRE_LOWERCASE and not re.search(r"[a-z]", password):
            errors.append("Password must contain at least one lowercase letter")

        if settings.PASSWORD_REQUIRE_NUMBERS and not re.search(r"\d", password):
            errors.append("Password must contain at least one number")

        if settings.PASSWORD_REQUIRE_SPECIAL and not re.search(r"[!@#$%^&*(),.?\":{}|<>]", password):
            errors.append("Password must contain at least one special character")

        if password.lower() in ["password", "12345678", "qwerty", "admin"]:
            errors.append("Password is too common")

        return (len(errors) == 0, errors)

    # JWT Operations
    @staticmethod
    def create_access_token(
        subject: str,
        expires_delta: Optional[timedelta] = None,
        additional_claims: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Membuat JWT session token.

        Args:
            subject: Subject JWT (user_id)
            expires_delta: Custom expiration time
            additional_claims: Claims tambahan untuk ditambahkan ke token

        Returns:
            Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or settings.access_token_expire_timedelta)

        to_encode = {
            "sub": subject,
            "exp": expire,
            "iat": now,
            "type": "access"
        }

        if additional_claims:
            to_encode.update(additional_claims)

        return jwt.encode(
            to_encode,
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM
        )

    @staticmethod
    def decode_token(token: str, expected_type: str = "access") -> Dict[str, Any]:
        """
        Decode dan validasi JWT token.

        Args:
            token: JWT token
            expected_type: Tipe token yang diharapkan

        Returns:
            Decoded token payload

        Raises:
            TokenError: Jika token tidak valid
        """
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired")
        except jwt.JWTClaimsError:
            raise TokenError("Invalid token claims")
        except JWTError:
            raise TokenError("Invalid token")

        if payload.get("type") != expected_type:
            raise TokenError(f"Invalid token type. Expected {expected_type}")

        return payload

    # Token Generation untuk Non-JWT
    @staticmethod
    def generate_numeric_token(length: int = 6) -> str:
        """
        Generate numeric token untuk OTP.

        Args:
            length: Panjang token

        Returns:
            Numeric token
        """
        return ''.join(secrets.choice(string.digits) for _ in range(length))

    @staticmethod
    def generate_hex_token(num_bytes: int = 20) -> str:
        """
        Generate hex token untuk reset link.

        Args:
            num_bytes: Jumlah random bytes

        Returns:
            Hex string sepanjang 2 * num_bytes
        """
        return secrets.token_hex(num_bytes)

    # Hash Operations untuk Token Storage
    @staticmethod
    def hash_token(token: str) -> str:
        """
        Hash token untuk penyimpanan aman di database.
        Menggunakan SHA256 karena tidak perlu verifikasi seperti password.

        Args:
            token: Token yang akan di-hash

        Returns:
            Hashed token
        """
        digest = hashes.Hash(hashes.SHA256())
        digest.update(token.encode())
        return digest.finalize().hex()

    @staticmethod
    def digests_match(left: str, right: str) -> bool:
        """Constant-time comparison untuk token digest."""
        return hmac.compare_digest(left.encode(), right.encode())


# Global security instance
security = Security()
