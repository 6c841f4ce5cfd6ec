"""
Bot check untuk ContextAuth API.
Verifikasi captcha response ke endpoint siteverify (reCAPTCHA-compatible).
"""

import logging
from typing import Optional

import httpx

from contextauth.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class CaptchaVerifier:
    """
    Captcha verifier.
    Fail closed: jawaban negatif atau kegagalan transport dianggap bot.
    """

    def __init__(
        self,
        config: Settings = default_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.enabled = config.CAPTCHA_ENABLED
        self.secret = config.CAPTCHA_SECRET_KEY
        self.url = str(config.CAPTCHA_VERIFY_URL)
        self.timeout = config.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    async def verify(self, captcha: Optional[str], remote_ip: Optional[str] = None) -> bool:
        """
        Verifikasi captcha response.

        Args:
            captcha: Captcha response token dari client
            remote_ip: IP client (opsional)

        Returns:
            True jika client dianggap manusia
        """
        if not self.enabled:
            return True

        if not captcha or not self.secret:
            return False

        payload = {"secret": self.secret, "response": captcha}
        if remote_ip:
            payload["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, data=payload)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Captcha verification failed: {e}")
            return False

        return isinstance(data, dict) and data.get("success") is True
