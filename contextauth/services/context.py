"""
Context capture untuk ContextAuth API.
Mengubah payload login menjadi LoginContext yang immutable.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from contextauth.schemas.context import ContextPayload


@dataclass(frozen=True)
class GeoPoint:
    """Titik koordinat (derajat desimal)."""
    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeoPoint":
        return cls(lat=float(data["lat"]), lon=float(data["lon"]))


@dataclass(frozen=True)
class LoginContext:
    """
    Evidence dari satu login attempt.

    Attributes:
        ip: Client IP address
        device: Stable device fingerprint
        location: Koordinat client
        login_hour: Jam login (0-23)
        timestamp: Waktu capture (UTC)
        typing_speed: Kecepatan mengetik, None jika client tidak mengirim
    """
    ip: str
    device: str
    location: GeoPoint
    login_hour: int
    timestamp: datetime
    typing_speed: Optional[float] = None


def capture_context(payload: ContextPayload, now: Optional[datetime] = None) -> LoginContext:
    """
    Normalize payload menjadi LoginContext.

    Args:
        payload: Validated context payload
        now: Waktu capture (default: sekarang, UTC)

    Returns:
        LoginContext
    """
    timestamp = now or datetime.now(timezone.utc)
    login_hour = payload.login_hour if payload.login_hour is not None else timestamp.hour

    return LoginContext(
        ip=payload.ip,
        device=payload.device,
        location=GeoPoint(
            lat=payload.location.latitude,
            lon=payload.location.longitude
        ),
        login_hour=login_hour,
        timestamp=timestamp,
        typing_speed=payload.typing_speed
    )
