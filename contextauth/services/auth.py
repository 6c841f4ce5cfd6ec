"""
Authentication service untuk ContextAuth API.
Orkestrasi signup, login kontekstual, verifikasi 2FA, verifikasi email,
dan alur reset password.

Urutan login:
    captcha -> kredensial -> capture context -> alert device baru ->
    risk score -> decision policy -> update trust store -> notifikasi
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from contextauth.core.config import Settings, settings as default_settings
from contextauth.core.security import security
from contextauth.core.constants import (
    AuditAction,
    LoginDecision,
    ResponseMessage,
    RESET_TOKEN_PURPOSES,
    TokenPurpose
)
from contextauth.core.exceptions import (
    BadRequestError,
    BotDetectedException,
    ConflictError,
    InvalidCredentialsException,
    InvalidTokenException,
    LoginBlockedException,
    WeakPasswordException
)
from contextauth.models.user import User
from contextauth.schemas.context import ContextPayload
from contextauth.services.audit import AuditService
from contextauth.services.captcha import CaptchaVerifier
from contextauth.services.context import LoginContext, capture_context
from contextauth.services.email import EmailService
from contextauth.services.geolocation import GeolocationResolver
from contextauth.services.identity import IdentityStore
from contextauth.services.policy import DecisionPolicy, LoginOutcome
from contextauth.services.profile import ProfileUpdater
from contextauth.services.risk import RiskScorer
from contextauth.services.token import TokenService

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service class untuk authentication operations.
    Collaborator eksternal (email, geocoder, captcha) di-inject agar bisa diganti di test.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: EmailService,
        geolocation: GeolocationResolver,
        captcha: CaptchaVerifier,
        config: Settings = default_settings
    ):
        """
        Initialize authentication service.

        Args:
            db: Database session
            notifier: Email notifier
            geolocation: Reverse geocoder
            captcha: Bot check
            config: Application settings
        """
        self.config = config
        self.identity = IdentityStore(db, max_retries=config.IDENTITY_UPDATE_RETRIES)
        self.notifier = notifier
        self.geolocation = geolocation
        self.captcha = captcha
        self.tokens = TokenService.from_settings(config)
        self.scorer = RiskScorer.from_settings(config)
        self.policy = DecisionPolicy.from_settings(config)
        self.profile = ProfileUpdater.from_settings(config)
        self.audit_service = AuditService()

    def reset_url(self, token: str) -> str:
        return f"{self.config.client_base_url}/reset-password/{token}"

    async def _check_captcha(self, captcha: Optional[str], ip_address: Optional[str]) -> None:
        if self.captcha.enabled and not captcha:
            raise BadRequestError(ResponseMessage.CAPTCHA_REQUIRED)
        if not await self.captcha.verify(captcha, ip_address):
            logger.warning(f"Captcha rejected for request from {ip_address}")
            raise BotDetectedException()

    def _check_password_strength(self, password: str) -> None:
        is_valid, errors = security.validate_password_strength(password)
        if not is_valid:
            raise WeakPasswordException(errors=errors)

    # Signup & email verification
    async def signup(
        self,
        email: str,
        password: str,
        name: str,
        context: ContextPayload,
        captcha: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> User:
        """
        Registrasi user baru dan seed trust store dari context pertama.

        Args:
            email: Email address
            password: Plain password
            name: Nama user
            context: Context signup
            captcha: Captcha response
            now: Waktu request (default: sekarang)

        Returns:
            Created user

        Raises:
            BadRequestError: Captcha tidak dikirim
            BotDetectedException: Captcha gagal
            WeakPasswordException: Password tidak memenuhi policy
            ConflictError: Email sudah terdaftar
        """
        now = now or datetime.now(timezone.utc)
        await self._check_captcha(captcha, context.ip)
        self._check_password_strength(password)

        if await self.identity.get_by_email(email):
            raise ConflictError(ResponseMessage.USER_ALREADY_EXISTS)

        login_context = capture_context(context, now)
        location_name = await self.geolocation.resolve(login_context.location)

        issued = self.tokens.issue(TokenPurpose.EMAIL_VERIFICATION, now)

        def initialize(user: User) -> None:
            user.trust_store = self.profile.seed(login_context, location_name)
            user.set_token_slot(TokenPurpose.EMAIL_VERIFICATION, issued.stored)

        user = await self.identity.create(
            email=email,
            name=name,
            password_hash=security.hash_password(password),
            mutate=initialize
        )

        self.audit_service.log_action(
            AuditAction.ACCOUNT_CREATED,
            user_id=user.u_id,
            ip_address=login_context.ip
        )
        await self.notifier.send_verification_email(user.u_email, user.u_name, issued.value)
        return user

    async def verify_email(self, email: str, code: str, now: Optional[datetime] = None) -> User:
        """
        Verifikasi email dengan kode numerik.

        Raises:
            InvalidTokenException: Kode salah, expired, atau user tidak ada
        """
        user = await self.identity.get_by_email(email)
        if user is None:
            raise InvalidTokenException()

        def consume(u: User) -> None:
            validation = self.tokens.validate(
                u.get_token_slot(TokenPurpose.EMAIL_VERIFICATION),
                code,
                TokenPurpose.EMAIL_VERIFICATION,
                now
            )
            if not validation.is_valid:
                raise InvalidTokenException()
            u.verify_email()

        user = await self.identity.update(user.u_id, consume)

        self.audit_service.log_action(AuditAction.ACCOUNT_VERIFIED, user_id=user.u_id)
        await self.notifier.send_welcome_email(user.u_email, user.u_name)
        return user

    async def resend_verification(self, email: str, now: Optional[datetime] = None) -> None:
        """
        Terbitkan ulang kode verifikasi email.

        Raises:
            BadRequestError: User tidak ada atau sudah terverifikasi
        """
        user = await self.identity.get_by_email(email)
        if user is None:
            raise BadRequestError(ResponseMessage.USER_NOT_FOUND)
        if user.u_is_verified:
            raise BadRequestError(ResponseMessage.USER_ALREADY_VERIFIED)

        issued = self.tokens.issue(TokenPurpose.EMAIL_VERIFICATION, now)
        user = await self.identity.update(
            user.u_id,
            lambda u: u.set_token_slot(TokenPurpose.EMAIL_VERIFICATION, issued.stored)
        )
        await self.notifier.send_verification_email(user.u_email, user.u_name, issued.value)

    # Contextual login
    async def authenticate(self, email: str, password: str, ip_address: Optional[str] = None) -> User:
        """
        Verifikasi kredensial.

        Raises:
            InvalidCredentialsException: Email atau password salah
        """
        user = await self.identity.get_by_email(email)
        if user is None or not security.verify_password(password, user.u_password_hash):
            self.audit_service.log_action(
                AuditAction.LOGIN_FAILED,
                user_id=user.u_id if user else None,
                ip_address=ip_address,
                metadata={"reason": "invalid_credentials"},
                level=logging.WARNING
            )
            raise InvalidCredentialsException()
        return user

    async def _alert_new_device(self, user: User, context: LoginContext) -> User:
        issued = self.tokens.issue(TokenPurpose.DEVICE_RESET, context.timestamp)
        user = await self.identity.update(
            user.u_id,
            lambda u: u.set_token_slot(TokenPurpose.DEVICE_RESET, issued.stored)
        )

        self.audit_service.log_action(
            AuditAction.NEW_DEVICE_DETECTED,
            user_id=user.u_id,
            ip_address=context.ip,
            metadata={"device": context.device}
        )
        await self.notifier.send_new_device_alert(
            user.u_email,
            user.u_name,
            context,
            self.reset_url(issued.value)
        )
        return user

    async def login(
        self,
        email: str,
        password: str,
        context: ContextPayload,
        captcha: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> LoginOutcome:
        """
        Login kontekstual.

        Args:
            email: Email address
            password: Plain password
            context: Context login attempt
            captcha: Captcha response
            now: Waktu request (default: sekarang)

        Returns:
            LoginOutcome dengan decision ALLOWED atau TWO_FACTOR_PENDING

        Raises:
            BadRequestError: Captcha tidak dikirim
            BotDetectedException: Captcha gagal
            InvalidCredentialsException: Kredensial salah
            LoginBlockedException: Risk score mencapai block threshold
        """
        await self._check_captcha(captcha, context.ip)
        user = await self.authenticate(email, password, ip_address=context.ip)

        login_context = capture_context(context, now)

        new_device = not user.trust_store.trusts_device(login_context.device)
        if new_device:
            user = await self._alert_new_device(user, login_context)

        assessment = self.scorer.assess(login_context, user.trust_store)
        score = assessment.score
        decision = self.policy.decide(score)

        audit_metadata = {
            "decision": decision.value,
            "risk_score": score,
            "signals": [signal.value for signal in assessment.signals],
            "device": login_context.device
        }

        if decision == LoginDecision.BLOCKED:
            self.audit_service.log_action(
                AuditAction.LOGIN_BLOCKED,
                user_id=user.u_id,
                ip_address=login_context.ip,
                metadata=audit_metadata,
                level=logging.WARNING
            )
            await self.notifier.send_suspicious_activity_alert(
                user.u_email,
                user.u_name,
                login_context,
                score
            )
            raise LoginBlockedException(risk_score=score)

        location_name = await self.geolocation.resolve(login_context.location)

        def learn(u: User) -> None:
            if self.policy.updates_profile(decision):
                u.trust_store = self.profile.fold(u.trust_store, login_context, score, location_name)

        if decision == LoginDecision.TWO_FACTOR_PENDING:
            issued = self.tokens.issue(TokenPurpose.TWO_FACTOR_AUTH, login_context.timestamp)

            def challenge(u: User) -> None:
                u.set_token_slot(TokenPurpose.TWO_FACTOR_AUTH, issued.stored)
                learn(u)

            user = await self.identity.update(user.u_id, challenge)

            self.audit_service.log_action(
                AuditAction.TWO_FACTOR_REQUIRED,
                user_id=user.u_id,
                ip_address=login_context.ip,
                metadata=audit_metadata
            )
            await self.notifier.send_two_factor_code(
                user.u_email,
                user.u_name,
                issued.value,
                login_context
            )
        else:
            def accept(u: User) -> None:
                u.update_last_login(login_context.timestamp)
                learn(u)

            user = await self.identity.update(user.u_id, accept)

            self.audit_service.log_action(
                AuditAction.LOGIN_SUCCESS,
                user_id=user.u_id,
                ip_address=login_context.ip,
                metadata=audit_metadata
            )

        return LoginOutcome(
            decision=decision,
            assessment=assessment,
            user=user,
            new_device=new_device
        )

    async def verify_two_factor(self, email: str, code: str, now: Optional[datetime] = None) -> User:
        """
        Selesaikan login yang menunggu 2FA.

        Raises:
            InvalidTokenException: Kode salah, expired, atau user tidak ada
        """
        user = await self.identity.get_by_email(email)
        if user is None:
            raise InvalidTokenException()
        # rollback pada kode salah meng-expire instance
        user_id = user.u_id

        def consume(u: User) -> None:
            validation = self.tokens.validate(
                u.get_token_slot(TokenPurpose.TWO_FACTOR_AUTH),
                code,
                TokenPurpose.TWO_FACTOR_AUTH,
                now
            )
            if not validation.is_valid:
                raise InvalidTokenException()
            u.clear_token_slot(TokenPurpose.TWO_FACTOR_AUTH)
            u.update_last_login(now)

        try:
            user = await self.identity.update(user_id, consume)
        except InvalidTokenException:
            self.audit_service.log_action(
                AuditAction.TWO_FACTOR_FAILED,
                user_id=user_id,
                level=logging.WARNING
            )
            raise

        self.audit_service.log_action(AuditAction.TWO_FACTOR_VERIFIED, user_id=user.u_id)
        return user

    # Password reset
    async def forgot_password(self, email: str, now: Optional[datetime] = None) -> None:
        """
        Kirim link reset password.
        Tidak membocorkan apakah email terdaftar.
        """
        user = await self.identity.get_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        issued = self.tokens.issue(TokenPurpose.PASSWORD_RESET, now)
        user = await self.identity.update(
            user.u_id,
            lambda u: u.set_token_slot(TokenPurpose.PASSWORD_RESET, issued.stored)
        )

        self.audit_service.log_action(AuditAction.PASSWORD_RESET_REQUESTED, user_id=user.u_id)
        await self.notifier.send_password_reset_email(
            user.u_email,
            user.u_name,
            self.reset_url(issued.value)
        )

    async def reset_password(self, token: str, new_password: str, now: Optional[datetime] = None) -> User:
        """
        Reset password dengan token dari email forgot-password atau alert device baru.

        Raises:
            WeakPasswordException: Password baru tidak memenuhi policy
            InvalidTokenException: Token salah atau expired
        """
        self._check_password_strength(new_password)
        digest = security.hash_token(token)

        user = None
        purpose = None
        for candidate in RESET_TOKEN_PURPOSES:
            user = await self.identity.get_by_token_digest(candidate, digest)
            if user is not None:
                purpose = candidate
                break

        if user is None:
            raise InvalidTokenException(ResponseMessage.INVALID_RESET_TOKEN)

        password_hash = security.hash_password(new_password)

        def consume(u: User) -> None:
            validation = self.tokens.validate(u.get_token_slot(purpose), token, purpose, now)
            if not validation.is_valid:
                raise InvalidTokenException(ResponseMessage.INVALID_RESET_TOKEN)
            u.u_password_hash = password_hash
            for reset_purpose in RESET_TOKEN_PURPOSES:
                u.clear_token_slot(reset_purpose)

        user = await self.identity.update(user.u_id, consume)

        self.audit_service.log_action(
            AuditAction.PASSWORD_RESET_COMPLETED,
            user_id=user.u_id,
            metadata={"purpose": purpose.value}
        )
        await self.notifier.send_reset_success_email(user.u_email, user.u_name)
        return user

    # Risk profile
    async def reset_risk_score(self, user_id: UUID) -> User:
        """
        Reset risk score user ke 0.

        Raises:
            BadRequestError: Risk score sudah 0
        """
        def reset(u: User) -> None:
            if u.u_risk_score <= 0:
                raise BadRequestError(ResponseMessage.RISK_SCORE_ALREADY_ZERO)
            u.u_risk_score = 0

        user = await self.identity.update(user_id, reset)
        self.audit_service.log_action(AuditAction.RISK_SCORE_RESET, user_id=user.u_id)
        return user
