"""
Trust Store untuk ContextAuth API.
Pengetahuan per-user yang dipakai risk scorer: IP dan device terpercaya,
lokasi yang dikenal, baseline perilaku, dan riwayat context login.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from contextauth.core.constants import DefaultValue
from contextauth.services.context import GeoPoint


@dataclass(frozen=True)
class BehavioralBaseline:
    """
    Baseline perilaku user.

    Attributes:
        typing_speed: Rata-rata kecepatan mengetik, None jika belum ada sampel
        typing_samples: Jumlah sampel yang sudah masuk ke rata-rata
        login_hours: Jam-jam login yang pernah terlihat
    """
    typing_speed: Optional[float] = None
    typing_samples: int = 0
    login_hours: FrozenSet[int] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "typing_speed": self.typing_speed,
            "typing_samples": self.typing_samples,
            "login_hours": sorted(self.login_hours),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BehavioralBaseline":
        if not data:
            return cls()
        speed = data.get("typing_speed")
        return cls(
            typing_speed=float(speed) if speed is not None else None,
            typing_samples=int(data.get("typing_samples") or 0),
            login_hours=frozenset(int(h) for h in data.get("login_hours") or []),
        )


@dataclass(frozen=True)
class ContextLogEntry:
    """Satu entry riwayat context login."""
    ip: str
    device: str
    location: GeoPoint
    location_name: str
    timestamp: datetime
    risk_score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "device": self.device,
            "location": {
                "lat": self.location.lat,
                "lon": self.location.lon,
                "location_name": self.location_name,
            },
            "timestamp": self.timestamp.isoformat(),
            "risk_score": self.risk_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextLogEntry":
        location = data.get("location") or {}
        return cls(
            ip=data["ip"],
            device=data["device"],
            location=GeoPoint.from_dict(location),
            location_name=location.get("location_name") or DefaultValue.UNKNOWN_LOCATION,
            timestamp=datetime.fromisoformat(data["timestamp"]),
            risk_score=int(data.get("risk_score") or 0),
        )


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


@dataclass(frozen=True)
class TrustStore:
    """
    Snapshot immutable dari pengetahuan per-user.
    Hanya ProfileUpdater yang menghasilkan snapshot baru.
    """
    trusted_ips: Tuple[str, ...] = ()
    trusted_devices: Tuple[str, ...] = ()
    known_locations: Tuple[GeoPoint, ...] = ()
    baseline: BehavioralBaseline = field(default_factory=BehavioralBaseline)
    context_logs: Tuple[ContextLogEntry, ...] = ()
    risk_score: int = 0

    def trusts_device(self, device: str) -> bool:
        return device in self.trusted_devices

    def trusts_ip(self, ip: str) -> bool:
        return ip in self.trusted_ips

    @classmethod
    def from_columns(
        cls,
        trusted_ips: Optional[List[str]],
        trusted_devices: Optional[List[str]],
        known_locations: Optional[List[Dict[str, Any]]],
        behavioral_profile: Optional[Dict[str, Any]],
        context_logs: Optional[List[Dict[str, Any]]],
        risk_score: Optional[int],
    ) -> "TrustStore":
        """
        Bangun TrustStore dari nilai kolom JSON user.

        Returns:
            TrustStore
        """
        return cls(
            trusted_ips=_unique(trusted_ips or []),
            trusted_devices=_unique(trusted_devices or []),
            known_locations=tuple(GeoPoint.from_dict(loc) for loc in known_locations or []),
            baseline=BehavioralBaseline.from_dict(behavioral_profile),
            context_logs=tuple(ContextLogEntry.from_dict(entry) for entry in context_logs or []),
            risk_score=int(risk_score or 0),
        )

    def to_columns(self) -> Dict[str, Any]:
        """
        Serialize ke nilai kolom JSON user.

        Returns:
            Dictionary nama atribut -> nilai JSON-compatible
        """
        return {
            "trusted_ips": list(self.trusted_ips),
            "trusted_devices": list(self.trusted_devices),
            "known_locations": [loc.to_dict() for loc in self.known_locations],
            "behavioral_profile": self.baseline.to_dict(),
            "context_logs": [entry.to_dict() for entry in self.context_logs],
            "risk_score": self.risk_score,
        }
