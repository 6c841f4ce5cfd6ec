"""
Tests for external collaborators: geocoder, captcha, email, audit, log redaction.
"""

import json
import logging
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from contextauth.core.config import settings
from contextauth.core.constants import AuditAction, DefaultValue
from contextauth.middleware.logging import LoggingMiddleware
from contextauth.services.audit import AuditService
from contextauth.services.captcha import CaptchaVerifier
from contextauth.services.context import GeoPoint, LoginContext
from contextauth.services.email import EmailService
from contextauth.services.geolocation import GeolocationResolver

POINT = GeoPoint(lat=-6.2088, lon=106.8456)


def login_context() -> LoginContext:
    return LoginContext(
        ip="1.2.3.4",
        device="chrome-macos-abc",
        location=POINT,
        login_hour=3,
        timestamp=datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
@pytest.mark.unit
class TestGeolocationResolver:
    """Test reverse geocoding."""

    async def test_resolve_display_name(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            seen["user_agent"] = request.headers["User-Agent"]
            return httpx.Response(200, json={"display_name": "Jakarta, Indonesia"})

        resolver = GeolocationResolver(settings, transport=httpx.MockTransport(handler))

        assert await resolver.resolve(POINT) == "Jakarta, Indonesia"
        assert seen["params"]["format"] == "json"
        assert float(seen["params"]["lat"]) == POINT.lat
        assert seen["user_agent"] == settings.GEOCODER_USER_AGENT

    @pytest.mark.parametrize("response", [
        httpx.Response(500),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"error": "Unable to geocode"}),
    ])
    async def test_failure_returns_unknown(self, response):
        resolver = GeolocationResolver(settings, transport=httpx.MockTransport(lambda request: response))

        assert await resolver.resolve(POINT) == DefaultValue.UNKNOWN_LOCATION

    async def test_transport_error_returns_unknown(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        resolver = GeolocationResolver(settings, transport=httpx.MockTransport(handler))

        assert await resolver.resolve(POINT) == DefaultValue.UNKNOWN_LOCATION


@pytest.mark.asyncio
@pytest.mark.unit
class TestCaptchaVerifier:
    """Test captcha siteverify."""

    @pytest.fixture
    def config(self):
        return settings.model_copy(update={"CAPTCHA_ENABLED": True, "CAPTCHA_SECRET_KEY": "secret"})

    async def test_disabled_always_passes(self):
        verifier = CaptchaVerifier(settings.model_copy(update={"CAPTCHA_ENABLED": False}))

        assert await verifier.verify(None) is True

    async def test_success(self, config):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content.decode()
            return httpx.Response(200, json={"success": True})

        verifier = CaptchaVerifier(config, transport=httpx.MockTransport(handler))

        assert await verifier.verify("token", "1.2.3.4") is True
        assert "response=token" in seen["body"]
        assert "remoteip=1.2.3.4" in seen["body"]

    @pytest.mark.parametrize("response", [
        httpx.Response(200, json={"success": False}),
        httpx.Response(200, json={"success": "true"}),
        httpx.Response(503),
    ])
    async def test_negative_answers(self, config, response):
        verifier = CaptchaVerifier(config, transport=httpx.MockTransport(lambda request: response))

        assert await verifier.verify("token") is False

    async def test_missing_token(self, config):
        verifier = CaptchaVerifier(config, transport=httpx.MockTransport(lambda request: httpx.Response(200)))

        assert await verifier.verify(None) is False
        assert await verifier.verify("") is False


@pytest.mark.unit
class TestEmailService:
    """Test template rendering dan kegagalan SMTP."""

    @pytest.fixture
    def email_service(self) -> EmailService:
        return EmailService(settings)

    def test_render_two_factor_template(self, email_service):
        html = email_service.render(
            "two_factor.html",
            name="Alice",
            code="123456",
            expires_minutes=5,
            **EmailService._context_details(login_context())
        )

        assert "123456" in html
        assert "chrome-macos-abc" in html
        assert "-6.2088" in html

    def test_render_escapes_user_input(self, email_service):
        html = email_service.render("welcome.html", name="<script>alert(1)</script>")

        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html

    async def test_send_uses_smtp(self, email_service):
        with patch("contextauth.services.email.smtplib.SMTP") as smtp:
            result = await email_service.send_two_factor_code("alice@example.com", "Alice", "123456", login_context())

        assert result is True
        smtp.return_value.send_message.assert_called_once()

    async def test_smtp_failure_returns_false(self, email_service):
        with patch("contextauth.services.email.smtplib.SMTP", side_effect=OSError("connection refused")):
            result = await email_service.send_suspicious_activity_alert(
                "alice@example.com", "Alice", login_context(), 10
            )

        assert result is False


@pytest.mark.unit
class TestAuditAndLogging:
    """Test audit record dan redaksi access log."""

    def test_audit_record_is_json_line(self, caplog):
        audit = AuditService()

        with caplog.at_level(logging.INFO, logger="contextauth.audit"):
            record = audit.log_action(
                AuditAction.LOGIN_BLOCKED,
                ip_address="9.9.9.9",
                metadata={"risk_score": 10}
            )

        assert record["action"] == "LOGIN_BLOCKED"
        logged = json.loads(caplog.records[-1].getMessage())
        assert logged["metadata"]["risk_score"] == 10

    def test_sensitive_fields_redacted(self):
        middleware = LoggingMiddleware(app=None)

        body = middleware.format_body(json.dumps({
            "email": "alice@example.com",
            "password": "SecurePass123",
            "captcha": "abc",
            "context": {"ip": "1.2.3.4"},
        }).encode())

        data = json.loads(body)
        assert data["password"] == "[REDACTED]"
        assert data["captcha"] == "[REDACTED]"
        assert data["email"] == "alice@example.com"
        assert data["context"]["ip"] == "1.2.3.4"

    def test_reset_token_redacted_from_path(self):
        middleware = LoggingMiddleware(app=None)

        assert middleware.redact_path("/api/v1/auth/reset-password/abcdef") == \
            "/api/v1/auth/reset-password/[REDACTED]"
