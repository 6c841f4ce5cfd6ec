"""
Pytest configuration and fixtures for ContextAuth API tests.
"""

import os

# Environment harus di-set sebelum contextauth di-import (settings global)
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-contextauth-tests")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CAPTCHA_ENABLED", "false")
os.environ.setdefault("USE_SECURE_COOKIES", "false")

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
import fakeredis.aioredis

from contextauth.main import app
from contextauth.db.base import Base
from contextauth.core.config import settings
from contextauth.api.dependencies.database import get_db, get_redis
from contextauth.api.dependencies.services import (
    get_captcha_verifier,
    get_geolocation_resolver,
    get_notifier
)
from contextauth.schemas.context import ContextPayload
from contextauth.services.auth import AuthService
from contextauth.services.context import GeoPoint

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "SecurePass123"

JAKARTA = {"latitude": -6.2088, "longitude": 106.8456}
BANDUNG = {"latitude": -6.9175, "longitude": 107.6191}
LONDON = {"latitude": 51.5074, "longitude": -0.1278}


class RecordingNotifier:
    """Pengganti EmailService yang mencatat setiap email."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    def _record(self, kind: str, email: str, **data) -> bool:
        self.sent.append({"kind": kind, "email": email, **data})
        return True

    def of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [item for item in self.sent if item["kind"] == kind]

    def last(self, kind: str) -> Dict[str, Any]:
        items = self.of_kind(kind)
        assert items, f"no {kind} email recorded"
        return items[-1]

    async def send_verification_email(self, email, name, code):
        return self._record("verification", email, code=code)

    async def send_welcome_email(self, email, name):
        return self._record("welcome", email)

    async def send_two_factor_code(self, email, name, code, context):
        return self._record("two_factor", email, code=code, context=context)

    async def send_new_device_alert(self, email, name, context, reset_url):
        return self._record("new_device", email, context=context, reset_url=reset_url)

    async def send_suspicious_activity_alert(self, email, name, context, risk_score):
        return self._record("suspicious_activity", email, context=context, risk_score=risk_score)

    async def send_password_reset_email(self, email, name, reset_url):
        return self._record("password_reset", email, reset_url=reset_url)

    async def send_reset_success_email(self, email, name):
        return self._record("reset_success", email)


class StaticGeolocation:
    """Reverse geocoder palsu dengan nama lokasi tetap."""

    def __init__(self, name: str = "Jakarta, Indonesia"):
        self.name = name
        self.calls: List[GeoPoint] = []

    async def resolve(self, point: GeoPoint) -> str:
        self.calls.append(point)
        return self.name


class StubCaptcha:
    """Captcha verifier palsu; hasil bisa diatur per test."""

    def __init__(self, result: bool = True, enabled: bool = False):
        self.result = result
        self.enabled = enabled
        self.calls: List[Optional[str]] = []

    async def verify(self, captcha: Optional[str], remote_ip: Optional[str] = None) -> bool:
        self.calls.append(captcha)
        return self.result


def make_context(
    ip: str = "1.2.3.4",
    device: str = "chrome-macos-abc",
    location: Optional[Dict[str, float]] = None,
    login_hour: Optional[int] = 10,
    typing_speed: Optional[float] = 5.0
) -> Dict[str, Any]:
    """Payload context dalam format JSON client."""
    context: Dict[str, Any] = {
        "ip": ip,
        "device": device,
        "location": dict(location or JAKARTA),
    }
    if login_hour is not None:
        context["loginHour"] = login_hour
    if typing_speed is not None:
        context["typingSpeed"] = typing_speed
    return context


@pytest_asyncio.fixture
async def engine():
    """Create test database engine (in-memory SQLite, satu koneksi)."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def redis_client():
    """Create a fake Redis client for testing."""
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def geolocation() -> StaticGeolocation:
    return StaticGeolocation()


@pytest.fixture
def captcha() -> StubCaptcha:
    return StubCaptcha()


@pytest.fixture
def auth_service(db_session, notifier, geolocation, captcha) -> AuthService:
    """AuthService dengan collaborator palsu."""
    return AuthService(
        db_session,
        notifier=notifier,
        geolocation=geolocation,
        captcha=captcha,
        config=settings
    )


@pytest.fixture
def override_dependencies(session_factory, redis_client, notifier, geolocation, captcha):
    """Override FastAPI dependencies for testing."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        yield redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_geolocation_resolver] = lambda: geolocation
    app.dependency_overrides[get_captcha_verifier] = lambda: captcha

    yield

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(override_dependencies) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def registered_user(auth_service: AuthService, notifier: RecordingNotifier):
    """User terdaftar dengan trust store dari context default (Jakarta, jam 10)."""
    user = await auth_service.signup(
        email="user@example.com",
        password=TEST_PASSWORD,
        name="Test User",
        context=ContextPayload.model_validate(make_context()),
        captcha="captcha-token",
        now=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    )
    notifier.sent.clear()
    return user


@pytest.fixture
def api_url():
    """Build URL di bawah prefix API v1."""
    def _url(path: str) -> str:
        return f"{settings.API_V1_STR}{path}"
    return _url
