"""
Email service untuk ContextAuth API.
Menangani pengiriman notifikasi: kode verifikasi, kode 2FA, alert device baru,
dan peringatan aktivitas mencurigakan.

Semua method send_* mengembalikan bool dan tidak pernah raise; kegagalan
pengiriman hanya di-log.
"""

from datetime import datetime, timezone
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import partial
from pathlib import Path
from typing import Any, Dict, Optional

import jinja2

from contextauth.core.config import Settings, settings as default_settings
from contextauth.services.context import LoginContext

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"


class EmailService:
    """
    Service class untuk email operations.
    Menangani template rendering dan email sending.
    """

    def __init__(self, config: Settings = default_settings):
        """Initialize email service dengan template engine."""
        self.config = config
        self.template_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=jinja2.select_autoescape(["html"])
        )

        # Base context untuk semua email
        self.base_context = {
            "app_name": config.APP_NAME,
            "support_email": config.EMAIL_FROM_ADDRESS,
            "year": datetime.now(timezone.utc).year
        }

    def render(self, template_name: str, **context: Any) -> str:
        """
        Render template email.

        Args:
            template_name: Nama file template di templates/emails
            **context: Variabel template

        Returns:
            HTML body
        """
        template = self.template_env.get_template(template_name)
        return template.render(**self.base_context, **context)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Send email menggunakan SMTP.

        Args:
            to_email: Recipient email
            subject: Email subject
            html_body: HTML content
            text_body: Plain text content (optional)

        Returns:
            True jika email berhasil dikirim
        """
        # smtplib blocking, jalankan di thread pool
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            partial(
                self._send_email_sync,
                to_email=to_email,
                subject=subject,
                html_body=html_body,
                text_body=text_body
            )
        )

    def _send_email_sync(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Synchronous email sending implementation.

        Returns:
            True jika berhasil
        """
        config = self.config
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{config.EMAIL_FROM_NAME} <{config.EMAIL_FROM_ADDRESS}>"
            msg["To"] = to_email

            if text_body:
                msg.attach(MIMEText(text_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            if config.SMTP_SSL:
                server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, timeout=config.HTTP_TIMEOUT_SECONDS)
            else:
                server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=config.HTTP_TIMEOUT_SECONDS)
                if config.SMTP_TLS:
                    server.starttls()

            with server:
                if config.SMTP_USER and config.SMTP_PASSWORD:
                    server.login(config.SMTP_USER, config.SMTP_PASSWORD)
                server.send_message(msg)

            logger.info(f"Email '{subject}' sent to {to_email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending email to {to_email}: {e}")
            return False

    async def _send_template(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        **context: Any
    ) -> bool:
        try:
            html_body = self.render(template_name, **context)
        except jinja2.TemplateError as e:
            logger.error(f"Failed to render email template {template_name}: {e}")
            return False

        return await self.send_email(to_email=to_email, subject=subject, html_body=html_body)

    @staticmethod
    def _context_details(context: LoginContext) -> Dict[str, Any]:
        return {
            "ip_address": context.ip,
            "device": context.device,
            "latitude": context.location.lat,
            "longitude": context.location.lon,
            "timestamp": context.timestamp.strftime("%Y-%m-%d %H:%M UTC"),
        }

    async def send_verification_email(self, email: str, name: str, code: str) -> bool:
        """
        Send kode verifikasi email.

        Args:
            email: User email
            name: Nama user
            code: Kode verifikasi numerik

        Returns:
            True jika berhasil
        """
        return await self._send_template(
            email,
            f"Verify your {self.config.APP_NAME} account",
            "verification.html",
            name=name,
            code=code,
            expires_minutes=self.config.EMAIL_VERIFICATION_CODE_EXPIRE_MINUTES
        )

    async def send_welcome_email(self, email: str, name: str) -> bool:
        return await self._send_template(
            email,
            f"Welcome to {self.config.APP_NAME}",
            "welcome.html",
            name=name
        )

    async def send_two_factor_code(
        self,
        email: str,
        name: str,
        code: str,
        context: LoginContext
    ) -> bool:
        """
        Send kode 2FA untuk login dengan risiko menengah.

        Args:
            email: User email
            name: Nama user
            code: Kode 2FA
            context: Context login yang memicu 2FA

        Returns:
            True jika berhasil
        """
        return await self._send_template(
            email,
            f"{self.config.APP_NAME} - Your login verification code",
            "two_factor.html",
            name=name,
            code=code,
            expires_minutes=self.config.TWO_FACTOR_CODE_EXPIRE_MINUTES,
            **self._context_details(context)
        )

    async def send_new_device_alert(
        self,
        email: str,
        name: str,
        context: LoginContext,
        reset_url: str
    ) -> bool:
        """
        Send alert untuk login dari device baru, berisi link reset password.

        Args:
            email: User email
            name: Nama user
            context: Context login
            reset_url: Link reset password (device reset token)

        Returns:
            True jika berhasil
        """
        return await self._send_template(
            email,
            f"{self.config.APP_NAME} - New Device Login",
            "new_device.html",
            name=name,
            reset_url=reset_url,
            expires_minutes=self.config.RESET_TOKEN_EXPIRE_MINUTES,
            **self._context_details(context)
        )

    async def send_suspicious_activity_alert(
        self,
        email: str,
        name: str,
        context: LoginContext,
        risk_score: int
    ) -> bool:
        """
        Send peringatan login yang diblokir.

        Args:
            email: User email
            name: Nama user
            context: Context login yang diblokir
            risk_score: Risk score attempt tersebut

        Returns:
            True jika berhasil
        """
        return await self._send_template(
            email,
            f"{self.config.APP_NAME} - Suspicious Login Blocked",
            "suspicious_activity.html",
            name=name,
            risk_score=risk_score,
            **self._context_details(context)
        )

    async def send_password_reset_email(self, email: str, name: str, reset_url: str) -> bool:
        return await self._send_template(
            email,
            f"Reset your {self.config.APP_NAME} password",
            "password_reset.html",
            name=name,
            reset_url=reset_url,
            expires_minutes=self.config.RESET_TOKEN_EXPIRE_MINUTES
        )

    async def send_reset_success_email(self, email: str, name: str) -> bool:
        return await self._send_template(
            email,
            f"Your {self.config.APP_NAME} password was reset",
            "reset_success.html",
            name=name
        )
