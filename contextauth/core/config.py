"""
Konfigurasi aplikasi menggunakan Pydantic Settings.
Semua konfigurasi dimuat dari environment variables atau file .env.
"""

from typing import Optional, List, Union
from datetime import timedelta
from functools import lru_cache

from pydantic import Field, field_validator, model_validator, RedisDsn, AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Konfigurasi aplikasi utama."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Application Settings
    APP_NAME: str = Field(default="ContextAuth API", description="Nama aplikasi")
    APP_VERSION: str = Field(default="1.0.0", description="Versi aplikasi")
    DEBUG: bool = Field(default=False, description="Mode debug")
    ENVIRONMENT: str = Field(default="development", description="Environment aplikasi")
    API_V1_STR: str = Field(default="/api/v1", description="Prefix untuk API v1")

    # Security Settings
    SECRET_KEY: str = Field(..., description="Secret key untuk signing JWT")

    # JWT / Session cookie
    ALGORITHM: str = Field(default="HS256", description="Algoritma untuk JWT")
    ACCESS_TOKEN_EXPIRE_DAYS: int = Field(default=7, description="Masa berlaku session token dalam hari")
    SESSION_COOKIE_NAME: str = Field(default="token", description="Nama cookie untuk session token")
    USE_SECURE_COOKIES: bool = Field(default=True, description="Use secure cookies")

    # Password Policy
    PASSWORD_MIN_LENGTH: int = Field(default=8, description="Panjang minimal password")
    PASSWORD_REQUIRE_UPPERCASE: bool = Field(default=True, description="Memerlukan huruf besar")
    PASSWORD_REQUIRE_LOWERCASE: bool = Field(default=True, description="Memerlukan huruf kecil")
    PASSWORD_REQUIRE_NUMBERS: bool = Field(default=True, description="Memerlukan angka")
    PASSWORD_REQUIRE_SPECIAL: bool = Field(default=False, description="Memerlukan karakter khusus")

    # Token lifetimes
    EMAIL_VERIFICATION_CODE_EXPIRE_MINUTES: int = Field(default=1, description="Masa berlaku kode verifikasi email")
    TWO_FACTOR_CODE_EXPIRE_MINUTES: int = Field(default=5, description="Masa berlaku kode 2FA")
    RESET_TOKEN_EXPIRE_MINUTES: int = Field(default=30, description="Masa berlaku token reset password")
    NUMERIC_CODE_LENGTH: int = Field(default=6, description="Panjang kode numerik OTP")
    RESET_TOKEN_BYTES: int = Field(default=20, description="Jumlah random bytes untuk reset token")

    # Risk scoring weights
    RISK_WEIGHT_UNKNOWN_DEVICE: int = Field(default=3, ge=0, description="Bobot device tidak dikenal")
    RISK_WEIGHT_UNKNOWN_IP: int = Field(default=2, ge=0, description="Bobot IP tidak dikenal")
    RISK_WEIGHT_LOCATION_REGIONAL: int = Field(default=3, ge=0, description="Bobot lokasi jauh (tier regional)")
    RISK_WEIGHT_LOCATION_DISTANT: int = Field(default=5, ge=0, description="Bobot lokasi sangat jauh (tier distant)")
    RISK_WEIGHT_UNUSUAL_HOUR: int = Field(default=2, ge=0, description="Bobot jam login tidak biasa")
    RISK_WEIGHT_TYPING_DEVIATION: int = Field(default=2, ge=0, description="Bobot deviasi kecepatan mengetik")

    # Risk scoring tolerances
    LOCATION_REGIONAL_KM: float = Field(default=100.0, gt=0, description="Jarak minimal (km) untuk anomali lokasi")
    LOCATION_DISTANT_KM: float = Field(default=1000.0, gt=0, description="Jarak minimal (km) untuk tier distant")
    LOGIN_HOUR_TOLERANCE: int = Field(default=1, ge=0, le=12, description="Toleransi jam login (jam)")
    TYPING_SPEED_TOLERANCE: float = Field(default=0.5, gt=0, description="Deviasi relatif maksimal kecepatan mengetik")

    # Decision thresholds
    MFA_THRESHOLD: int = Field(default=5, ge=0, description="Skor minimal untuk meminta 2FA")
    BLOCK_THRESHOLD: int = Field(default=10, ge=0, description="Skor minimal untuk memblokir login")

    # Trust store retention
    MAX_KNOWN_LOCATIONS: int = Field(default=50, ge=1, description="Jumlah lokasi yang disimpan")
    MAX_CONTEXT_LOGS: int = Field(default=100, ge=1, description="Jumlah context log yang disimpan")
    TYPING_AVERAGE_WINDOW: int = Field(default=20, ge=1, description="Window moving average kecepatan mengetik")
    IDENTITY_UPDATE_RETRIES: int = Field(default=3, ge=1, description="Retry saat konflik versi record user")

    # Database
    DATABASE_URL: str = Field(..., description="Database connection URL (postgresql+asyncpg://...)")
    DB_POOL_SIZE: int = Field(default=20, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=0, description="Database max overflow connections")
    DB_POOL_PRE_PING: bool = Field(default=True, description="Pre-ping database connections")

    # Redis
    REDIS_URL: RedisDsn = Field(..., description="Redis connection URL")
    REDIS_POOL_SIZE: int = Field(default=10, description="Redis connection pool size")

    # Email Settings
    SMTP_HOST: str = Field(default="localhost", description="SMTP server host")
    SMTP_PORT: int = Field(default=587, description="SMTP server port")
    SMTP_USER: Optional[str] = Field(None, description="SMTP username")
    SMTP_PASSWORD: Optional[str] = Field(None, description="SMTP password")
    SMTP_TLS: bool = Field(default=True, description="Enable SMTP TLS")
    SMTP_SSL: bool = Field(default=False, description="Enable SMTP SSL")
    EMAIL_FROM_NAME: str = Field(default="ContextAuth", description="Email sender name")
    EMAIL_FROM_ADDRESS: str = Field(default="noreply@example.com", description="Email sender address")

    # Captcha
    CAPTCHA_ENABLED: bool = Field(default=True, description="Aktifkan verifikasi captcha")
    CAPTCHA_SECRET_KEY: Optional[str] = Field(None, description="Secret key reCAPTCHA")
    CAPTCHA_VERIFY_URL: AnyHttpUrl = Field(
        default="https://www.google.com/recaptcha/api/siteverify",
        description="Endpoint verifikasi captcha"
    )

    # Reverse geocoding
    GEOCODER_URL: AnyHttpUrl = Field(
        default="https://nominatim.openstreetmap.org/reverse",
        description="Endpoint reverse geocoding"
    )
    GEOCODER_USER_AGENT: str = Field(default="ContextAuth/1.0", description="User agent untuk geocoder")

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0, description="Timeout untuk HTTP call ke collaborator")

    # CORS Settings
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # Rate Limiting
    LOGIN_RATE_LIMIT_PER_MINUTE: int = Field(default=10, description="Login rate limit per menit")
    TWO_FACTOR_RATE_LIMIT_PER_MINUTE: int = Field(default=5, description="2FA verification rate limit per menit")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_FORMAT: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )

    # Frontend URL
    CLIENT_URL: AnyHttpUrl = Field(
        default="http://localhost:5173",
        description="Frontend URL untuk email links"
    )

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        """Parse CORS origins dari string atau list."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("DATABASE_URL", mode='before')
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v:
            raise ValueError("DATABASE_URL must be set")
        return v

    @field_validator("REDIS_URL", mode='before')
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL."""
        if not v:
            raise ValueError("REDIS_URL must be set")
        return v

    @model_validator(mode="after")
    def validate_risk_policy(self) -> "Settings":
        """Pastikan threshold dan tier jarak konsisten."""
        if self.MFA_THRESHOLD >= self.BLOCK_THRESHOLD:
            raise ValueError("MFA_THRESHOLD must be lower than BLOCK_THRESHOLD")
        if self.LOCATION_REGIONAL_KM >= self.LOCATION_DISTANT_KM:
            raise ValueError("LOCATION_REGIONAL_KM must be lower than LOCATION_DISTANT_KM")
        if self.RISK_WEIGHT_LOCATION_REGIONAL > self.RISK_WEIGHT_LOCATION_DISTANT:
            raise ValueError("Distant location weight must not be lower than the regional weight")
        return self

    @property
    def access_token_expire_timedelta(self) -> timedelta:
        """Return timedelta untuk session token expiration."""
        return timedelta(days=self.ACCESS_TOKEN_EXPIRE_DAYS)

    @property
    def email_verification_expire_timedelta(self) -> timedelta:
        """Return timedelta untuk kode verifikasi email."""
        return timedelta(minutes=self.EMAIL_VERIFICATION_CODE_EXPIRE_MINUTES)

    @property
    def two_factor_expire_timedelta(self) -> timedelta:
        """Return timedelta untuk kode 2FA."""
        return timedelta(minutes=self.TWO_FACTOR_CODE_EXPIRE_MINUTES)

    @property
    def reset_token_expire_timedelta(self) -> timedelta:
        """Return timedelta untuk reset token."""
        return timedelta(minutes=self.RESET_TOKEN_EXPIRE_MINUTES)

    @property
    def client_base_url(self) -> str:
        """Frontend URL tanpa trailing slash."""
        return str(self.CLIENT_URL).rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """
    Mendapatkan cached settings instance.
    Menggunakan lru_cache untuk memastikan settings hanya di-load sekali.
    """
    return Settings()


# Global settings instance
settings = get_settings()
