"""
tests/fixtures.py

Shared test data and helper functions for constructing batches and collaborators.
All tests must use these fixtures instead of hardcoding test values.
"""

from typing import Any, Optional
from unittest.mock import MagicMock

from reconciler.collaborators.profile import LocalProfileSource, ProfileStore
from reconciler.collaborators.staging import StagingBuffer
from reconciler.collaborators.sync_session import ActiveSyncSession
from reconciler.schemas import (
    RemoteBolus,
    RemoteCarbs,
    RemoteFood,
    RemoteSgv,
    RemoteTemporaryTarget,
)
from reconciler.services.processor import IncomingDataProcessor

# ── Fixed clock ─────────────────────────────────────────────

# 2024-06-15T13:30:00Z
NOW: int = 1_718_458_200_000
MINUTE: int = 60_000

PROFILE_BLOCKS: dict = {
    "basal": [{"time": "00:00", "value": 0.8}],
    "sens": [{"time": "00:00", "value": 50}],
    "carbratio": [{"time": "00:00", "value": 10}],
    "target_low": [{"time": "00:00", "value": 100}],
    "target_high": [{"time": "00:00", "value": 120}],
    "units": "mg/dl",
}


# ── Collaborators ───────────────────────────────────────────


def build_preferences(**values: Any) -> MagicMock:
    """Preference store answering from `values`, else the caller's default."""
    preferences = MagicMock()
    preferences.get_bool.side_effect = lambda key, default: values.get(key, default)
    preferences.get_long.side_effect = lambda key, default: values.get(key, default)
    return preferences


def build_runtime_mode(client_only: bool = False, engineering: bool = False) -> MagicMock:
    mode = MagicMock()
    mode.client_only_mode = client_only
    mode.engineering_mode.return_value = engineering
    return mode


def build_reading_source(enabled: bool = False) -> MagicMock:
    source = MagicMock()
    source.is_enabled.return_value = enabled
    return source


def build_processor(
    preferences: Optional[MagicMock] = None,
    runtime_mode: Optional[MagicMock] = None,
    reading_source: Optional[MagicMock] = None,
    profile_source: Optional[LocalProfileSource] = None,
    now: int = NOW,
) -> IncomingDataProcessor:
    """Processor with real staging/session collaborators and a mocked notification bus."""
    return IncomingDataProcessor(
        preferences=preferences or build_preferences(),
        runtime_mode=runtime_mode or build_runtime_mode(),
        reading_source=reading_source or build_reading_source(),
        staging=StagingBuffer(),
        sync_session=ActiveSyncSession(),
        notifications=MagicMock(),
        profile_source=profile_source or LocalProfileSource(),
        clock=lambda: now,
    )


def build_profile_source(profile_name: str = "Default") -> LocalProfileSource:
    source = LocalProfileSource()
    source.load_from_store(
        ProfileStore(
            start_date=NOW - 60 * MINUTE,
            default_profile=profile_name,
            store={profile_name: PROFILE_BLOCKS},
        )
    )
    return source


# ── Readings ────────────────────────────────────────────────


def build_legacy_sgv(
    mills: Any = NOW - MINUTE,
    mgdl: Any = 120,
    remote_id: str = "sgv_001",
    direction: str = "Flat",
    device: str = "xDrip-DexcomG6",
) -> dict:
    return {
        "_id": remote_id,
        "mills": mills,
        "mgdl": mgdl,
        "filtered": 118000,
        "direction": direction,
        "device": device,
    }


def build_remote_sgv(
    date: int = NOW - MINUTE,
    sgv: float = 120.0,
    units: str = "mg/dl",
    identifier: str = "sgv_v3_001",
) -> RemoteSgv:
    return RemoteSgv(
        date=date,
        sgv=sgv,
        units=units,
        direction="SingleUp",
        device="G6 Native",
        identifier=identifier,
    )


# ── Treatments ──────────────────────────────────────────────


def build_bolus(
    date: Optional[int] = NOW - 10 * MINUTE,
    insulin: float = 2.5,
    identifier: str = "bolus_001",
) -> RemoteBolus:
    return RemoteBolus(date=date, insulin=insulin, identifier=identifier)


def build_carbs(
    date: Optional[int] = NOW - 10 * MINUTE,
    carbs: float = 30.0,
    identifier: str = "carbs_001",
) -> RemoteCarbs:
    return RemoteCarbs(date=date, carbs=carbs, identifier=identifier)


def build_temp_target(
    date: Optional[int] = NOW - 5 * MINUTE,
    duration: int = 30 * MINUTE,
    low: float = 100.0,
    high: float = 110.0,
    units: str = "mg/dl",
    identifier: str = "tt_001",
) -> RemoteTemporaryTarget:
    return RemoteTemporaryTarget(
        date=date,
        duration=duration,
        target_bottom=low,
        target_top=high,
        units=units,
        reason="Activity",
        identifier=identifier,
    )


def build_legacy_treatment(event_type: str, **fields: Any) -> dict:
    record = {
        "_id": fields.pop("_id", "legacy_001"),
        "eventType": event_type,
        "date": fields.pop("date", NOW - 15 * MINUTE),
        "enteredBy": "remote",
    }
    record.update(fields)
    return record


# ── Food ────────────────────────────────────────────────────


def build_legacy_food(remote_id: str = "food_001", **fields: Any) -> dict:
    record = {
        "_id": remote_id,
        "type": "food",
        "category": "Fruit",
        "subcategory": "Fresh",
        "name": "Apple",
        "portion": 100,
        "carbs": 14,
        "unit": "g",
    }
    record.update(fields)
    return record


def build_remote_food(identifier: str = "food_v3_001", name: str = "Banana") -> RemoteFood:
    return RemoteFood(name=name, portion=120.0, carbs=27, identifier=identifier)


# ── Profile ─────────────────────────────────────────────────


def build_profile_snapshot(
    start_date: str = "2024-06-15T12:00:00.000Z",
    default_profile: str = "Default",
) -> dict:
    return {
        "defaultProfile": default_profile,
        "startDate": start_date,
        "store": {default_profile: PROFILE_BLOCKS},
    }
