"""
Risk scorer untuk ContextAuth API.
Menghitung risk score dari LoginContext terhadap TrustStore.

Setiap sinyal dievaluasi secara independen dan menyumbang bobotnya ke total
jika terpicu. Tidak ada I/O di modul ini.
"""

from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt
from typing import Callable, List, Optional, Tuple

from contextauth.core.config import Settings, settings as default_settings
from contextauth.core.constants import LocationTier, RiskSignal
from contextauth.services.context import GeoPoint, LoginContext
from contextauth.services.trust_store import TrustStore

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance dalam kilometer."""
    lat1, lon1, lat2, lon2 = map(radians, [a.lat, a.lon, b.lat, b.lon])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(min(1.0, sqrt(h)))


def hour_distance(a: int, b: int) -> int:
    """Selisih jam secara circular (23 dan 0 berjarak 1)."""
    diff = abs(a - b) % 24
    return min(diff, 24 - diff)


@dataclass(frozen=True)
class RiskWeights:
    """Bobot per sinyal."""
    device_unknown: int = 3
    ip_unknown: int = 2
    location_regional: int = 3
    location_distant: int = 5
    unusual_hour: int = 2
    typing_deviation: int = 2

    def __post_init__(self) -> None:
        for name, value in vars(self).items():
            if value < 0:
                raise ValueError(f"Risk weight {name} must be non-negative")
        if self.location_distant < self.location_regional:
            raise ValueError("location_distant must not be lower than location_regional")

    @classmethod
    def from_settings(cls, config: Settings) -> "RiskWeights":
        return cls(
            device_unknown=config.RISK_WEIGHT_UNKNOWN_DEVICE,
            ip_unknown=config.RISK_WEIGHT_UNKNOWN_IP,
            location_regional=config.RISK_WEIGHT_LOCATION_REGIONAL,
            location_distant=config.RISK_WEIGHT_LOCATION_DISTANT,
            unusual_hour=config.RISK_WEIGHT_UNUSUAL_HOUR,
            typing_deviation=config.RISK_WEIGHT_TYPING_DEVIATION,
        )


@dataclass(frozen=True)
class RiskTolerances:
    """Batas toleransi sebelum sebuah sinyal dianggap anomali."""
    regional_km: float = 100.0
    distant_km: float = 1000.0
    login_hour: int = 1
    typing_speed: float = 0.5

    def __post_init__(self) -> None:
        if self.regional_km >= self.distant_km:
            raise ValueError("regional_km must be less than distant_km")

    @classmethod
    def from_settings(cls, config: Settings) -> "RiskTolerances":
        return cls(
            regional_km=config.LOCATION_REGIONAL_KM,
            distant_km=config.LOCATION_DISTANT_KM,
            login_hour=config.LOGIN_HOUR_TOLERANCE,
            typing_speed=config.TYPING_SPEED_TOLERANCE,
        )


@dataclass(frozen=True)
class SignalHit:
    """Sinyal yang terpicu beserta bobotnya."""
    signal: RiskSignal
    weight: int
    tier: Optional[LocationTier] = None
    detail: Optional[float] = None


@dataclass(frozen=True)
class RiskAssessment:
    """Hasil penilaian risk: daftar sinyal terpicu dan total score."""
    hits: Tuple[SignalHit, ...] = ()

    @property
    def score(self) -> int:
        return sum(hit.weight for hit in self.hits)

    @property
    def signals(self) -> List[RiskSignal]:
        return [hit.signal for hit in self.hits]

    def triggered(self, signal: RiskSignal) -> bool:
        return any(hit.signal == signal for hit in self.hits)

    def hit_for(self, signal: RiskSignal) -> Optional[SignalHit]:
        for hit in self.hits:
            if hit.signal == signal:
                return hit
        return None


SignalCheck = Callable[[LoginContext, TrustStore], Optional[SignalHit]]


class RiskScorer:
    """
    Weighted rule-based risk scorer.

    Example:
        scorer = RiskScorer.from_settings(settings)
        assessment = scorer.assess(context, trust_store)
        assessment.score
    """

    def __init__(
        self,
        weights: Optional[RiskWeights] = None,
        tolerances: Optional[RiskTolerances] = None
    ):
        self.weights = weights or RiskWeights()
        self.tolerances = tolerances or RiskTolerances()

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "RiskScorer":
        return cls(
            weights=RiskWeights.from_settings(config),
            tolerances=RiskTolerances.from_settings(config),
        )

    @property
    def checks(self) -> Tuple[SignalCheck, ...]:
        return (
            self.check_device,
            self.check_ip,
            self.check_location,
            self.check_login_hour,
            self.check_typing_speed,
        )

    def check_device(self, context: LoginContext, store: TrustStore) -> Optional[SignalHit]:
        if store.trusts_device(context.device):
            return None
        return SignalHit(RiskSignal.DEVICE_UNKNOWN, self.weights.device_unknown)

    def check_ip(self, context: LoginContext, store: TrustStore) -> Optional[SignalHit]:
        if store.trusts_ip(context.ip):
            return None
        return SignalHit(RiskSignal.IP_UNKNOWN, self.weights.ip_unknown)

    def check_location(self, context: LoginContext, store: TrustStore) -> Optional[SignalHit]:
        """
        Anomali lokasi berdasarkan jarak ke lokasi dikenal terdekat.
        Tanpa lokasi dikenal tidak ada anomali.
        """
        if not store.known_locations:
            return None

        nearest = min(haversine_km(context.location, known) for known in store.known_locations)

        if nearest > self.tolerances.distant_km:
            return SignalHit(
                RiskSignal.LOCATION_ANOMALY,
                self.weights.location_distant,
                tier=LocationTier.DISTANT,
                detail=nearest,
            )
        if nearest > self.tolerances.regional_km:
            return SignalHit(
                RiskSignal.LOCATION_ANOMALY,
                self.weights.location_regional,
                tier=LocationTier.REGIONAL,
                detail=nearest,
            )
        return None

    def check_login_hour(self, context: LoginContext, store: TrustStore) -> Optional[SignalHit]:
        hours = store.baseline.login_hours
        if not hours:
            return None

        if any(hour_distance(context.login_hour, h) <= self.tolerances.login_hour for h in hours):
            return None
        return SignalHit(RiskSignal.HOUR_ANOMALY, self.weights.unusual_hour)

    def check_typing_speed(self, context: LoginContext, store: TrustStore) -> Optional[SignalHit]:
        baseline = store.baseline.typing_speed
        if context.typing_speed is None or not baseline:
            return None

        deviation = abs(context.typing_speed - baseline) / baseline
        if deviation > self.tolerances.typing_speed:
            return SignalHit(
                RiskSignal.TYPING_ANOMALY,
                self.weights.typing_deviation,
                detail=deviation,
            )
        return None

    def assess(self, context: LoginContext, store: TrustStore) -> RiskAssessment:
        """
        Evaluasi semua sinyal.

        Args:
            context: Context login attempt
            store: Trust store user

        Returns:
            RiskAssessment dengan sinyal yang terpicu
        """
        hits = []
        for check in self.checks:
            hit = check(context, store)
            if hit is not None:
                hits.append(hit)
        return RiskAssessment(hits=tuple(hits))

    def score(self, context: LoginContext, store: TrustStore) -> int:
        return self.assess(context, store).score
