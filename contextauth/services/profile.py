"""
Profile updater untuk ContextAuth API.
Menggabungkan LoginContext ke TrustStore dan menghasilkan snapshot baru.
"""

from dataclasses import replace
from typing import Optional, Tuple, TypeVar

from contextauth.core.config import Settings, settings as default_settings
from contextauth.core.constants import DefaultValue
from contextauth.services.context import LoginContext
from contextauth.services.trust_store import BehavioralBaseline, ContextLogEntry, TrustStore

T = TypeVar("T")


def _append_bounded(items: Tuple[T, ...], item: T, limit: int) -> Tuple[T, ...]:
    """Append lalu buang entry paling lama jika melebihi limit."""
    combined = items + (item,)
    return combined[-limit:]


def _add_unique(items: Tuple[str, ...], item: str) -> Tuple[str, ...]:
    if item in items:
        return items
    return items + (item,)


class ProfileUpdater:
    """
    Pure fold dari context ke trust store.
    Tidak melakukan I/O; persistence dilakukan oleh IdentityStore.
    """

    def __init__(
        self,
        max_locations: int = 50,
        max_context_logs: int = 100,
        typing_window: int = 20
    ):
        self.max_locations = max_locations
        self.max_context_logs = max_context_logs
        self.typing_window = typing_window

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "ProfileUpdater":
        return cls(
            max_locations=config.MAX_KNOWN_LOCATIONS,
            max_context_logs=config.MAX_CONTEXT_LOGS,
            typing_window=config.TYPING_AVERAGE_WINDOW,
        )

    def update_baseline(self, baseline: BehavioralBaseline, context: LoginContext) -> BehavioralBaseline:
        """
        Update baseline perilaku dengan sampel dari context.
        Kecepatan mengetik memakai incremental moving average dengan window terbatas.
        """
        typing_speed = baseline.typing_speed
        samples = baseline.typing_samples

        if context.typing_speed is not None:
            if typing_speed is None or samples == 0:
                typing_speed = context.typing_speed
            else:
                window = min(samples + 1, self.typing_window)
                typing_speed = typing_speed + (context.typing_speed - typing_speed) / window
            samples += 1

        return BehavioralBaseline(
            typing_speed=typing_speed,
            typing_samples=samples,
            login_hours=baseline.login_hours | {context.login_hour},
        )

    def fold(
        self,
        store: TrustStore,
        context: LoginContext,
        score: int,
        location_name: Optional[str] = None
    ) -> TrustStore:
        """
        Fold satu context ke trust store.

        Args:
            store: Trust store saat ini
            context: Context login yang diterima
            score: Risk score dari context ini
            location_name: Nama lokasi hasil reverse geocoding

        Returns:
            TrustStore baru
        """
        entry = ContextLogEntry(
            ip=context.ip,
            device=context.device,
            location=context.location,
            location_name=location_name or DefaultValue.UNKNOWN_LOCATION,
            timestamp=context.timestamp,
            risk_score=score,
        )

        return replace(
            store,
            trusted_ips=_add_unique(store.trusted_ips, context.ip),
            trusted_devices=_add_unique(store.trusted_devices, context.device),
            known_locations=_append_bounded(store.known_locations, context.location, self.max_locations),
            baseline=self.update_baseline(store.baseline, context),
            context_logs=_append_bounded(store.context_logs, entry, self.max_context_logs),
            risk_score=score,
        )

    def seed(self, context: LoginContext, location_name: Optional[str] = None) -> TrustStore:
        """
        Trust store awal saat signup, dibangun dari context pertama dengan score 0.
        """
        return self.fold(TrustStore(), context, score=0, location_name=location_name)
