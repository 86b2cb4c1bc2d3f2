"""
reconciler/services/processor.py

IncomingDataProcessor: one entry point per record category, all four ingestors
sharing a single set of collaborators.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from config import Settings
from reconciler.clock import Clock, now_millis
from reconciler.collaborators.notification import LocalNotificationBus
from reconciler.collaborators.preferences import (
    SettingsPreferences,
    SettingsReadingSource,
    SettingsRuntimeMode,
)
from reconciler.collaborators.profile import LocalProfileSource
from reconciler.collaborators.staging import StagingBuffer
from reconciler.collaborators.sync_session import ActiveSyncSession
from reconciler.ports import (
    NotificationBus,
    Preferences,
    ProfileSource,
    ReadingSource,
    RuntimeMode,
    StagingSink,
    SyncSession,
)
from reconciler.services.food import FoodIngestor
from reconciler.services.profile import ProfileIngestor
from reconciler.services.readings import ReadingIngestor
from reconciler.services.treatments import TreatmentIngestor


@dataclass
class IncomingDataProcessor:
    """Entry point for all incoming remote data."""

    preferences: Preferences
    runtime_mode: RuntimeMode
    reading_source: ReadingSource
    staging: StagingSink
    sync_session: SyncSession
    notifications: NotificationBus
    profile_source: ProfileSource
    clock: Clock = now_millis
    readings: ReadingIngestor = field(init=False)
    treatments: TreatmentIngestor = field(init=False)
    food: FoodIngestor = field(init=False)
    profile: ProfileIngestor = field(init=False)

    def __post_init__(self) -> None:
        self.readings = ReadingIngestor(
            self.preferences,
            self.reading_source,
            self.staging,
            self.sync_session,
            self.notifications,
            clock=self.clock,
        )
        self.treatments = TreatmentIngestor(
            self.preferences,
            self.runtime_mode,
            self.staging,
            self.sync_session,
            self.notifications,
            self.profile_source,
        )
        self.food = FoodIngestor(self.staging, self.notifications)
        self.profile = ProfileIngestor(
            self.preferences,
            self.runtime_mode,
            self.profile_source,
            self.sync_session,
        )

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "IncomingDataProcessor":
        """Build a processor wired to the in-process default collaborators."""
        return cls(
            preferences=SettingsPreferences(source),
            runtime_mode=SettingsRuntimeMode(source),
            reading_source=SettingsReadingSource(source),
            staging=StagingBuffer(),
            sync_session=ActiveSyncSession(),
            notifications=LocalNotificationBus(),
            profile_source=LocalProfileSource(),
        )

    def ingest_readings(self, batch: Any) -> bool:
        """True if the batch held a usable reading timestamp."""
        return self.readings.ingest(batch)

    def ingest_treatments(self, batch: Any) -> bool:
        """True if the batch completed and held a dated treatment."""
        return self.treatments.ingest(batch)

    def ingest_food(self, batch: Any) -> None:
        self.food.ingest(batch)

    def ingest_profile(self, raw: dict[str, Any]) -> None:
        self.profile.ingest(raw)
