"""
Tests for identity store and authentication service.
"""

import logging

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy.orm.exc import StaleDataError

from contextauth.core.config import settings
from contextauth.core.constants import LoginDecision, ResponseMessage, TokenPurpose
from contextauth.core.exceptions import (
    BadRequestError,
    BotDetectedException,
    ConflictError,
    InvalidCredentialsException,
    InvalidTokenException,
    LoginBlockedException,
    NotFoundError,
    StorageError,
    WeakPasswordException
)
from contextauth.schemas.context import ContextPayload
from contextauth.services.auth import AuthService
from contextauth.services.captcha import CaptchaVerifier
from contextauth.services.identity import IdentityStore

from tests.conftest import BANDUNG, LONDON, TEST_PASSWORD, make_context

SIGNUP_TIME = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def context(**kwargs) -> ContextPayload:
    return ContextPayload.model_validate(make_context(**kwargs))


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.requires_db
class TestIdentityStore:
    """Test IdentityStore persistence."""

    async def test_create_and_lookup(self, db_session):
        store = IdentityStore(db_session)

        user = await store.create(email="New@Example.com", name="New", password_hash="hash")

        assert user.u_email == "new@example.com"
        assert user.u_version == 1
        assert (await store.get_by_email("NEW@example.com")).u_id == user.u_id
        assert (await store.get_by_id(user.u_id)).u_email == "new@example.com"

    async def test_create_duplicate_email(self, db_session):
        store = IdentityStore(db_session)
        await store.create(email="dup@example.com", name="A", password_hash="hash")

        with pytest.raises(ConflictError):
            await store.create(email="dup@example.com", name="B", password_hash="hash")

    async def test_update_bumps_version(self, db_session, registered_user):
        store = IdentityStore(db_session)

        def rename(u):
            u.u_name = "Renamed"

        user = await store.update(registered_user.u_id, rename)

        assert user.u_name == "Renamed"
        assert user.u_version == 2

    async def test_update_missing_user(self, db_session):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            await IdentityStore(db_session).update(uuid4(), lambda u: None)

    async def test_failed_mutation_is_rolled_back(self, db_session, registered_user):
        store = IdentityStore(db_session)
        user_id = registered_user.u_id

        def broken(u):
            u.u_name = "Should not persist"
            raise InvalidTokenException()

        with pytest.raises(InvalidTokenException):
            await store.update(user_id, broken)

        user = await store.get_by_id(user_id)
        assert user.u_name == "Test User"
        assert user.u_version == 1

    async def test_update_retries_on_version_conflict(self, db_session, registered_user):
        store = IdentityStore(db_session, max_retries=3)
        real_commit = db_session.commit
        attempts = []

        async def flaky_commit():
            attempts.append(1)
            if len(attempts) == 1:
                raise StaleDataError("concurrent update")
            await real_commit()

        def bump(u):
            u.u_risk_score = u.u_risk_score + 1

        with patch.object(db_session, "commit", side_effect=flaky_commit):
            user = await store.update(registered_user.u_id, bump)

        assert len(attempts) == 2
        assert user.u_risk_score == 1

    async def test_update_gives_up_after_retries(self, db_session, registered_user):
        store = IdentityStore(db_session, max_retries=2)
        calls = []

        async def always_stale():
            calls.append(1)
            raise StaleDataError("concurrent update")

        with patch.object(db_session, "commit", side_effect=always_stale):
            with pytest.raises(StorageError):
                await store.update(registered_user.u_id, lambda u: None)

        assert len(calls) == 2

    async def test_lookup_by_token_digest(self, db_session, registered_user, auth_service):
        issued = auth_service.tokens.issue(TokenPurpose.PASSWORD_RESET, SIGNUP_TIME)
        store = IdentityStore(db_session)
        await store.update(
            registered_user.u_id,
            lambda u: u.set_token_slot(TokenPurpose.PASSWORD_RESET, issued.stored)
        )

        found = await store.get_by_token_digest(TokenPurpose.PASSWORD_RESET, issued.stored.digest)
        assert found.u_id == registered_user.u_id
        assert await store.get_by_token_digest(TokenPurpose.DEVICE_RESET, issued.stored.digest) is None


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.requires_db
class TestSignup:
    """Test AuthService.signup dan verifikasi email."""

    async def test_signup_seeds_trust_store(self, auth_service, notifier, geolocation):
        user = await auth_service.signup(
            email="alice@example.com",
            password=TEST_PASSWORD,
            name="Alice",
            context=context(),
            now=SIGNUP_TIME
        )

        store = user.trust_store
        assert store.trusted_devices == ("chrome-macos-abc",)
        assert store.trusted_ips == ("1.2.3.4",)
        assert store.baseline.login_hours == frozenset({10})
        assert store.baseline.typing_speed == 5.0
        assert store.context_logs[0].location_name == geolocation.name
        assert user.u_risk_score == 0
        assert not user.u_is_verified
        assert user.verify_password(TEST_PASSWORD)

        sent = notifier.last("verification")
        assert sent["email"] == "alice@example.com"
        assert len(sent["code"]) == 6

    async def test_signup_duplicate_email(self, auth_service, registered_user):
        with pytest.raises(ConflictError):
            await auth_service.signup(
                email=registered_user.u_email,
                password=TEST_PASSWORD,
                name="Again",
                context=context()
            )

    async def test_signup_weak_password(self, auth_service):
        with pytest.raises(WeakPasswordException):
            await auth_service.signup(
                email="weak@example.com",
                password="weak",
                name="Weak",
                context=context()
            )

    async def test_signup_rejects_bot(self, auth_service, captcha):
        captcha.result = False

        with pytest.raises(BotDetectedException):
            await auth_service.signup(
                email="bot@example.com",
                password=TEST_PASSWORD,
                name="Bot",
                context=context()
            )

    async def test_verify_email(self, auth_service, notifier):
        await auth_service.signup(
            email="bob@example.com",
            password=TEST_PASSWORD,
            name="Bob",
            context=context(),
            now=SIGNUP_TIME
        )
        code = notifier.last("verification")["code"]

        user = await auth_service.verify_email("bob@example.com", code, now=SIGNUP_TIME + timedelta(seconds=30))

        assert user.u_is_verified
        assert user.get_token_slot(TokenPurpose.EMAIL_VERIFICATION) is None
        assert notifier.of_kind("welcome")

    async def test_verify_email_expired_code(self, auth_service, notifier):
        await auth_service.signup(
            email="carol@example.com",
            password=TEST_PASSWORD,
            name="Carol",
            context=context(),
            now=SIGNUP_TIME
        )
        code = notifier.last("verification")["code"]

        with pytest.raises(InvalidTokenException):
            await auth_service.verify_email("carol@example.com", code, now=SIGNUP_TIME + timedelta(minutes=2))

    async def test_resend_verification_replaces_code(self, auth_service, registered_user, notifier):
        await auth_service.resend_verification(registered_user.u_email, now=SIGNUP_TIME)
        code = notifier.last("verification")["code"]

        user = await auth_service.verify_email(registered_user.u_email, code, now=SIGNUP_TIME)
        assert user.u_is_verified

        with pytest.raises(BadRequestError):
            await auth_service.resend_verification(registered_user.u_email)

    async def test_resend_verification_unknown_user(self, auth_service):
        with pytest.raises(BadRequestError):
            await auth_service.resend_verification("nobody@example.com")


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.requires_db
class TestContextualLogin:
    """Test AuthService.login dengan berbagai context."""

    async def test_nominal_login_allowed(self, auth_service, registered_user, notifier):
        login_time = SIGNUP_TIME + timedelta(days=1)

        outcome = await auth_service.login(
            registered_user.u_email, TEST_PASSWORD, context(), now=login_time
        )

        assert outcome.decision == LoginDecision.ALLOWED
        assert outcome.score == 0
        assert not outcome.new_device
        assert outcome.user.u_last_login_at == login_time
        assert len(outcome.user.trust_store.context_logs) == 2
        assert notifier.sent == []

    async def test_invalid_password(self, auth_service, registered_user):
        with pytest.raises(InvalidCredentialsException):
            await auth_service.login(registered_user.u_email, "WrongPass123", context())

    async def test_login_missing_captcha(self, db_session, registered_user, notifier, geolocation):
        verifier = CaptchaVerifier(settings.model_copy(update={"CAPTCHA_ENABLED": True, "CAPTCHA_SECRET_KEY": "secret"}))
        service = AuthService(db_session, notifier=notifier, geolocation=geolocation, captcha=verifier, config=settings)

        with pytest.raises(BadRequestError) as exc_info:
            await service.login(registered_user.u_email, TEST_PASSWORD, context(), captcha=None)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ResponseMessage.CAPTCHA_REQUIRED

    async def test_unknown_email(self, auth_service):
        with pytest.raises(InvalidCredentialsException):
            await auth_service.login("ghost@example.com", TEST_PASSWORD, context())

    async def test_new_device_at_night_requires_two_factor(self, auth_service, registered_user, notifier):
        outcome = await auth_service.login(
            registered_user.u_email,
            TEST_PASSWORD,
            context(device="D2", login_hour=3),
            now=SIGNUP_TIME
        )

        assert outcome.decision == LoginDecision.TWO_FACTOR_PENDING
        assert outcome.score == 5
        assert outcome.new_device
        assert outcome.user.u_last_login_at is None
        assert outcome.user.u_risk_score == 5
        assert "D2" in outcome.user.trust_store.trusted_devices

        assert notifier.last("new_device")["reset_url"].startswith(auth_service.reset_url(""))
        code = notifier.last("two_factor")["code"]

        user = await auth_service.verify_two_factor(
            registered_user.u_email, code, now=SIGNUP_TIME + timedelta(minutes=1)
        )
        assert user.u_last_login_at is not None
        assert user.get_token_slot(TokenPurpose.TWO_FACTOR_AUTH) is None

    async def test_two_factor_code_is_single_use(self, auth_service, registered_user, notifier):
        await auth_service.login(
            registered_user.u_email,
            TEST_PASSWORD,
            context(device="D2", login_hour=3),
            now=SIGNUP_TIME
        )
        code = notifier.last("two_factor")["code"]
        await auth_service.verify_two_factor(registered_user.u_email, code, now=SIGNUP_TIME)

        with pytest.raises(InvalidTokenException):
            await auth_service.verify_two_factor(registered_user.u_email, code, now=SIGNUP_TIME)

    async def test_two_factor_expired_code(self, auth_service, registered_user, notifier):
        await auth_service.login(
            registered_user.u_email,
            TEST_PASSWORD,
            context(device="D2", login_hour=3),
            now=SIGNUP_TIME
        )
        code = notifier.last("two_factor")["code"]

        with pytest.raises(InvalidTokenException):
            await auth_service.verify_two_factor(
                registered_user.u_email, code, now=SIGNUP_TIME + timedelta(minutes=6)
            )

    async def test_two_factor_wrong_code_keeps_challenge(self, auth_service, registered_user, notifier, caplog):
        email = registered_user.u_email
        await auth_service.login(email, TEST_PASSWORD, context(device="D2", login_hour=3), now=SIGNUP_TIME)
        code = notifier.last("two_factor")["code"]
        wrong = "000000" if code != "000000" else "111111"

        with caplog.at_level(logging.WARNING, logger="contextauth.audit"):
            with pytest.raises(InvalidTokenException):
                await auth_service.verify_two_factor(email, wrong, now=SIGNUP_TIME)

        assert "TWO_FACTOR_FAILED" in caplog.text

        user = await auth_service.verify_two_factor(email, code, now=SIGNUP_TIME)
        assert user.get_token_slot(TokenPurpose.TWO_FACTOR_AUTH) is None

    async def test_high_risk_login_blocked(self, auth_service, registered_user, notifier, db_session):
        with pytest.raises(LoginBlockedException) as exc_info:
            await auth_service.login(
                registered_user.u_email,
                TEST_PASSWORD,
                context(device="D2", ip="9.9.9.9", location=LONDON),
                now=SIGNUP_TIME
            )

        assert exc_info.value.risk_score == 10
        assert exc_info.value.status_code == 403
        assert notifier.last("suspicious_activity")["risk_score"] == 10
        assert notifier.of_kind("new_device")

        user = await IdentityStore(db_session).get_by_id(registered_user.u_id)
        store = user.trust_store
        assert store.trusted_devices == ("chrome-macos-abc",)
        assert store.trusted_ips == ("1.2.3.4",)
        assert len(store.context_logs) == 1
        assert user.get_token_slot(TokenPurpose.DEVICE_RESET) is not None

    async def test_regional_location_allowed_and_learned(self, auth_service, registered_user):
        outcome = await auth_service.login(
            registered_user.u_email,
            TEST_PASSWORD,
            context(location=BANDUNG),
            now=SIGNUP_TIME
        )

        assert outcome.decision == LoginDecision.ALLOWED
        assert outcome.score == 3
        assert len(outcome.user.trust_store.known_locations) == 2

    async def test_profile_learning_follows_policy(self, auth_service, registered_user):
        with patch.object(auth_service.policy, "updates_profile", return_value=False) as updates_profile:
            outcome = await auth_service.login(
                registered_user.u_email,
                TEST_PASSWORD,
                context(location=BANDUNG),
                now=SIGNUP_TIME
            )

        updates_profile.assert_called_once_with(LoginDecision.ALLOWED)
        assert outcome.decision == LoginDecision.ALLOWED
        assert outcome.user.u_last_login_at == SIGNUP_TIME
        assert len(outcome.user.trust_store.known_locations) == 1
        assert len(outcome.user.trust_store.context_logs) == 1

    async def test_login_rejects_bot_before_credentials(self, auth_service, registered_user, captcha):
        captcha.result = False

        with pytest.raises(BotDetectedException):
            await auth_service.login(registered_user.u_email, "WrongPass123", context())


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.requires_db
class TestPasswordReset:
    """Test forgot/reset password dan reset link dari alert device baru."""

    async def test_forgot_and_reset_password(self, auth_service, registered_user, notifier):
        await auth_service.forgot_password(registered_user.u_email, now=SIGNUP_TIME)
        token = notifier.last("password_reset")["reset_url"].rsplit("/", 1)[-1]

        user = await auth_service.reset_password(token, "NewSecure456", now=SIGNUP_TIME)

        assert user.verify_password("NewSecure456")
        assert user.get_token_slot(TokenPurpose.PASSWORD_RESET) is None
        assert notifier.of_kind("reset_success")

        with pytest.raises(InvalidTokenException):
            await auth_service.reset_password(token, "Another789Pass", now=SIGNUP_TIME)

    async def test_forgot_password_unknown_email_is_silent(self, auth_service, notifier):
        await auth_service.forgot_password("nobody@example.com")

        assert notifier.sent == []

    async def test_reset_with_device_alert_link(self, auth_service, registered_user, notifier):
        await auth_service.login(
            registered_user.u_email,
            TEST_PASSWORD,
            context(device="D2"),
            now=SIGNUP_TIME
        )
        token = notifier.last("new_device")["reset_url"].rsplit("/", 1)[-1]

        user = await auth_service.reset_password(token, "NewSecure456", now=SIGNUP_TIME + timedelta(minutes=10))

        assert user.verify_password("NewSecure456")
        assert user.get_token_slot(TokenPurpose.DEVICE_RESET) is None

    async def test_expired_reset_token(self, auth_service, registered_user, notifier):
        await auth_service.forgot_password(registered_user.u_email, now=SIGNUP_TIME)
        token = notifier.last("password_reset")["reset_url"].rsplit("/", 1)[-1]

        with pytest.raises(InvalidTokenException):
            await auth_service.reset_password(token, "NewSecure456", now=SIGNUP_TIME + timedelta(hours=1))

    async def test_unknown_reset_token(self, auth_service):
        with pytest.raises(InvalidTokenException):
            await auth_service.reset_password("f" * 40, "NewSecure456")


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.requires_db
class TestRiskScoreReset:
    """Test reset_risk_score."""

    async def test_reset_when_zero(self, auth_service, registered_user):
        with pytest.raises(BadRequestError):
            await auth_service.reset_risk_score(registered_user.u_id)

    async def test_reset_after_risky_login(self, auth_service, registered_user):
        await auth_service.login(
            registered_user.u_email,
            TEST_PASSWORD,
            context(location=BANDUNG),
            now=SIGNUP_TIME
        )

        user = await auth_service.reset_risk_score(registered_user.u_id)

        assert user.u_risk_score == 0
        assert user.trust_store.risk_score == 0
