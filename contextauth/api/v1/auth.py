"""
Authentication endpoints untuk API v1.
Menangani signup, login kontekstual, 2FA, verifikasi email, reset password,
dan risk profile user.
"""

from fastapi import APIRouter, Depends, Response, status

from contextauth.api.dependencies.auth import get_current_user
from contextauth.api.dependencies.rate_limit import RateLimitDependency
from contextauth.api.dependencies.services import get_auth_service
from contextauth.core.config import settings
from contextauth.core.constants import DefaultValue, ResponseMessage
from contextauth.core.security import security
from contextauth.models.user import User
from contextauth.schemas.auth import (
    EmailVerificationRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    ResendVerificationRequest,
    ResetPasswordRequest,
    SignupRequest,
    TwoFactorVerifyRequest
)
from contextauth.schemas.response import CheckAuthResponse, MessageResponse, UserMessageResponse
from contextauth.schemas.user import UserResponse, UserRiskProfile
from contextauth.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])

login_rate_limit = RateLimitDependency(
    max_requests=settings.LOGIN_RATE_LIMIT_PER_MINUTE,
    window_seconds=60,
    namespace=DefaultValue.RATE_LIMIT_NAMESPACE_LOGIN
)
two_factor_rate_limit = RateLimitDependency(
    max_requests=settings.TWO_FACTOR_RATE_LIMIT_PER_MINUTE,
    window_seconds=60,
    namespace=DefaultValue.RATE_LIMIT_NAMESPACE_TWO_FACTOR
)


def set_session_cookie(response: Response, user: User) -> None:
    """
    Terbitkan JWT session dan simpan di httponly cookie.

    Args:
        response: FastAPI response
        user: User yang mendapat session
    """
    token = security.create_access_token(subject=str(user.u_id))
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        secure=settings.USE_SECURE_COOKIES,
        httponly=True,
        samesite="strict"
    )


@router.post("/signup", response_model=UserMessageResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserMessageResponse:
    """
    Registrasi user baru.

    Trust store di-seed dari context signup, kode verifikasi dikirim via
    email, dan session langsung diterbitkan.
    """
    user = await auth_service.signup(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        context=payload.context,
        captcha=payload.captcha
    )
    set_session_cookie(response, user)

    return UserMessageResponse(
        message=ResponseMessage.SIGNUP_SUCCESS,
        user=UserResponse.model_validate(user)
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(login_rate_limit)]
)
async def login(
    payload: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Login kontekstual.

    Proses login:
    1. Verifikasi captcha
    2. Verifikasi kredensial
    3. Alert + reset link jika device baru
    4. Hitung risk score dan terapkan decision policy
    5. Terbitkan session (risk rendah) atau kirim kode 2FA (risk menengah)

    Risk tinggi menghasilkan 403 dan email peringatan.
    """
    outcome = await auth_service.login(
        email=payload.email,
        password=payload.password,
        context=payload.context,
        captcha=payload.captcha
    )

    if outcome.requires_two_factor:
        return LoginResponse(
            message=ResponseMessage.TWO_FACTOR_REQUIRED,
            require_2fa=True
        )

    set_session_cookie(response, outcome.user)
    return LoginResponse(
        message=ResponseMessage.LOGIN_SUCCESS,
        user=UserResponse.model_validate(outcome.user)
    )


@router.post(
    "/verify-2fa",
    response_model=UserMessageResponse,
    dependencies=[Depends(two_factor_rate_limit)]
)
async def verify_two_factor(
    payload: TwoFactorVerifyRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserMessageResponse:
    """
    Selesaikan login yang menunggu 2FA.
    """
    user = await auth_service.verify_two_factor(payload.email, payload.code)
    set_session_cookie(response, user)

    return UserMessageResponse(
        message=ResponseMessage.TWO_FACTOR_SUCCESS,
        user=UserResponse.model_validate(user)
    )


@router.post("/verify-email", response_model=UserMessageResponse)
async def verify_email(
    payload: EmailVerificationRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserMessageResponse:
    """
    Verifikasi email dengan kode yang dikirim saat signup.
    """
    user = await auth_service.verify_email(payload.email, payload.code)
    return UserMessageResponse(
        message=ResponseMessage.EMAIL_VERIFIED,
        user=UserResponse.model_validate(user)
    )


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    payload: ResendVerificationRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    """
    Kirim ulang kode verifikasi email.
    """
    await auth_service.resend_verification(payload.email)
    return MessageResponse(message=ResponseMessage.VERIFICATION_RESENT)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    """
    Kirim link reset password.
    Response sama untuk email yang terdaftar maupun tidak.
    """
    await auth_service.forgot_password(payload.email)
    return MessageResponse(message=ResponseMessage.PASSWORD_RESET_REQUESTED)


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    """
    Reset password dengan token dari email forgot-password atau alert device baru.
    """
    await auth_service.reset_password(token, payload.password)
    return MessageResponse(message=ResponseMessage.PASSWORD_RESET_SUCCESS)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """
    Logout dengan menghapus session cookie.
    """
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        secure=settings.USE_SECURE_COOKIES,
        httponly=True,
        samesite="strict"
    )
    return MessageResponse(message=ResponseMessage.LOGOUT_SUCCESS)


@router.get("/check-auth", response_model=CheckAuthResponse)
async def check_auth(
    current_user: User = Depends(get_current_user)
) -> CheckAuthResponse:
    """
    Return user yang sedang login beserta risk profile.
    """
    return CheckAuthResponse(user=UserRiskProfile.model_validate(current_user))


@router.post("/reset-risk-score", response_model=MessageResponse)
async def reset_risk_score(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    """
    Reset risk score user ke 0 (hanya jika saat ini lebih dari 0).
    """
    await auth_service.reset_risk_score(current_user.u_id)
    return MessageResponse(message=ResponseMessage.RISK_SCORE_RESET)
