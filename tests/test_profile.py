"""
Tests for trust store serialization and profile updater.
"""

from datetime import datetime, timedelta, timezone

import pytest

from contextauth.core.constants import DefaultValue
from contextauth.services.context import GeoPoint, LoginContext, capture_context
from contextauth.services.profile import ProfileUpdater
from contextauth.services.trust_store import BehavioralBaseline, ContextLogEntry, TrustStore
from contextauth.schemas.context import ContextPayload

BASE_TIME = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def make_context(index: int = 0, **overrides) -> LoginContext:
    values = {
        "ip": "1.2.3.4",
        "device": "D1",
        "location": GeoPoint(lat=-6.2 + index * 0.01, lon=106.8),
        "login_hour": 10,
        "timestamp": BASE_TIME + timedelta(minutes=index),
        "typing_speed": None,
    }
    values.update(overrides)
    return LoginContext(**values)


@pytest.fixture
def updater() -> ProfileUpdater:
    return ProfileUpdater()


@pytest.mark.unit
class TestContextCapture:
    """Test capture_context."""

    def test_capture_from_payload(self):
        payload = ContextPayload.model_validate({
            "ip": "1.2.3.4",
            "device": "chrome-macos-abc",
            "location": {"latitude": -6.2, "longitude": 106.8},
            "typingSpeed": 4.5,
            "loginHour": 14,
        })

        context = capture_context(payload, BASE_TIME)

        assert context.location == GeoPoint(lat=-6.2, lon=106.8)
        assert context.login_hour == 14
        assert context.typing_speed == 4.5
        assert context.timestamp == BASE_TIME

    def test_login_hour_defaults_to_capture_hour(self):
        payload = ContextPayload.model_validate({
            "ip": "1.2.3.4",
            "device": "D1",
            "location": {"latitude": 0, "longitude": 0},
        })

        context = capture_context(payload, BASE_TIME.replace(hour=3))

        assert context.login_hour == 3
        assert context.typing_speed is None

    @pytest.mark.parametrize("field,value", [
        ("ip", "not-an-ip"),
        ("location", {"latitude": 91, "longitude": 0}),
        ("location", {"latitude": 0, "longitude": 181}),
        ("loginHour", 24),
    ])
    def test_invalid_payload_rejected(self, field, value):
        data = {
            "ip": "1.2.3.4",
            "device": "D1",
            "location": {"latitude": 0, "longitude": 0},
        }
        data[field] = value

        with pytest.raises(ValueError):
            ContextPayload.model_validate(data)


@pytest.mark.unit
class TestProfileUpdater:
    """Test ProfileUpdater fold."""

    def test_seed_builds_store_from_first_context(self, updater):
        context = make_context(typing_speed=5.0)
        store = updater.seed(context, "Jakarta")

        assert store.trusted_ips == ("1.2.3.4",)
        assert store.trusted_devices == ("D1",)
        assert store.known_locations == (context.location,)
        assert store.baseline.typing_speed == 5.0
        assert store.baseline.login_hours == frozenset({10})
        assert store.risk_score == 0
        assert len(store.context_logs) == 1
        assert store.context_logs[0].location_name == "Jakarta"

    def test_fold_is_idempotent_for_ip_and_device(self, updater):
        store = updater.seed(make_context(0))
        store = updater.fold(store, make_context(1), score=0)
        store = updater.fold(store, make_context(2, device="D2"), score=3)

        assert store.trusted_ips == ("1.2.3.4",)
        assert store.trusted_devices == ("D1", "D2")
        assert store.risk_score == 3

    def test_fold_does_not_mutate_input(self, updater):
        store = updater.seed(make_context(0))
        updater.fold(store, make_context(1, ip="5.6.7.8"), score=2)

        assert store.trusted_ips == ("1.2.3.4",)
        assert len(store.context_logs) == 1

    def test_context_logs_are_bounded(self, updater):
        store = TrustStore()
        for i in range(105):
            store = updater.fold(store, make_context(i), score=0)

        assert len(store.context_logs) == 100
        assert store.context_logs[0].timestamp == BASE_TIME + timedelta(minutes=5)
        assert store.context_logs[-1].timestamp == BASE_TIME + timedelta(minutes=104)

    def test_known_locations_are_bounded(self, updater):
        store = TrustStore()
        for i in range(60):
            store = updater.fold(store, make_context(i), score=0)

        assert len(store.known_locations) == 50
        assert store.known_locations[-1] == make_context(59).location
        assert store.known_locations[0] == make_context(10).location

    def test_custom_bounds(self):
        updater = ProfileUpdater(max_locations=2, max_context_logs=3)
        store = TrustStore()
        for i in range(5):
            store = updater.fold(store, make_context(i), score=0)

        assert len(store.known_locations) == 2
        assert len(store.context_logs) == 3

    def test_location_name_defaults_to_unknown(self, updater):
        store = updater.fold(TrustStore(), make_context(), score=1)

        assert store.context_logs[-1].location_name == DefaultValue.UNKNOWN_LOCATION
        assert store.context_logs[-1].risk_score == 1

    def test_typing_moving_average(self, updater):
        baseline = BehavioralBaseline()
        baseline = updater.update_baseline(baseline, make_context(typing_speed=4.0))
        assert baseline.typing_speed == 4.0

        baseline = updater.update_baseline(baseline, make_context(typing_speed=6.0))
        assert baseline.typing_speed == pytest.approx(5.0)
        assert baseline.typing_samples == 2

    def test_typing_average_window(self):
        updater = ProfileUpdater(typing_window=2)
        baseline = BehavioralBaseline(typing_speed=4.0, typing_samples=10)

        baseline = updater.update_baseline(baseline, make_context(typing_speed=8.0))

        assert baseline.typing_speed == pytest.approx(6.0)
        assert baseline.typing_samples == 11

    def test_missing_typing_speed_keeps_baseline(self, updater):
        baseline = BehavioralBaseline(typing_speed=4.0, typing_samples=3)

        updated = updater.update_baseline(baseline, make_context(typing_speed=None, login_hour=22))

        assert updated.typing_speed == 4.0
        assert updated.typing_samples == 3
        assert updated.login_hours == frozenset({22})


@pytest.mark.unit
class TestTrustStoreColumns:
    """Test konversi TrustStore <-> kolom JSON."""

    def test_columns_round_trip(self):
        updater = ProfileUpdater()
        store = updater.seed(make_context(typing_speed=5.0), "Jakarta")
        store = updater.fold(store, make_context(1, device="D2", login_hour=3), score=5)

        restored = TrustStore.from_columns(**store.to_columns())

        assert restored == store

    def test_empty_columns(self):
        store = TrustStore.from_columns(None, None, None, None, None, None)

        assert store == TrustStore()

    def test_duplicate_entries_collapsed(self):
        store = TrustStore.from_columns(["1.1.1.1", "1.1.1.1"], ["D1"], [], {}, [], 0)

        assert store.trusted_ips == ("1.1.1.1",)

    def test_context_log_entry_format(self):
        entry = ContextLogEntry(
            ip="1.2.3.4",
            device="D1",
            location=GeoPoint(lat=1.0, lon=2.0),
            location_name="Somewhere",
            timestamp=BASE_TIME,
            risk_score=3,
        )

        data = entry.to_dict()

        assert data["location"] == {"lat": 1.0, "lon": 2.0, "location_name": "Somewhere"}
        assert ContextLogEntry.from_dict(data) == entry
