"""
Reverse geocoding untuk ContextAuth API.
Mengubah koordinat login menjadi nama lokasi untuk context log.
"""

import logging
from typing import Optional

import httpx

from contextauth.core.config import Settings, settings as default_settings
from contextauth.core.constants import DefaultValue
from contextauth.services.context import GeoPoint

logger = logging.getLogger(__name__)


class GeolocationResolver:
    """
    Reverse geocoder (Nominatim-compatible API).
    Tidak pernah raise; kegagalan menghasilkan "Unknown".
    """

    def __init__(
        self,
        config: Settings = default_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = str(config.GEOCODER_URL)
        self.user_agent = config.GEOCODER_USER_AGENT
        self.timeout = config.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    async def resolve(self, point: GeoPoint) -> str:
        """
        Resolve koordinat ke nama lokasi.

        Args:
            point: Koordinat

        Returns:
            Display name lokasi atau "Unknown"
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    self.url,
                    params={"format": "json", "lat": point.lat, "lon": point.lon},
                    headers={"User-Agent": self.user_agent}
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Reverse geocoding failed for ({point.lat}, {point.lon}): {e}")
            return DefaultValue.UNKNOWN_LOCATION

        if not isinstance(data, dict):
            return DefaultValue.UNKNOWN_LOCATION
        return data.get("display_name") or DefaultValue.UNKNOWN_LOCATION
