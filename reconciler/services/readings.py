"""
reconciler/services/readings.py

Reading Ingestor.
Normalizes glucose batches from either wire shape, advances the reading watermark,
clears stale-data alarms when the freshest reading is recent, and stages the readings.
"""

from typing import Any, Iterator, Optional

import structlog

from reconciler.clock import Clock, now_millis
from reconciler.collaborators.notification import Alarm
from reconciler.constants import FRESH_READING_WINDOW_MIN, KEY_RECEIVE_CGM, MS_PER_MINUTE
from reconciler.errors import BatchShapeError
from reconciler.normalizers.glucose import legacy_to_glucose_value, typed_to_glucose_value
from reconciler.ports import NotificationBus, Preferences, ReadingSource, StagingSink, SyncSession
from reconciler.records import GlucoseValue, StagingCategory
from reconciler.shapes import Batch, LegacyBatch, classify_batch

logger = structlog.get_logger(__name__)


class ReadingIngestor:
    """Turns remote glucose entries into staged readings and moves the reading watermark."""

    def __init__(
        self,
        preferences: Preferences,
        reading_source: ReadingSource,
        staging: StagingSink,
        sync_session: SyncSession,
        notifications: NotificationBus,
        clock: Clock = now_millis,
    ) -> None:
        self._preferences = preferences
        self._reading_source = reading_source
        self._staging = staging
        self._sync_session = sync_session
        self._notifications = notifications
        self._clock = clock

    def is_enabled(self) -> bool:
        """On when the remote store is the glucose source or CGM receiving is enabled."""
        return self._reading_source.is_enabled() or self._preferences.get_bool(
            KEY_RECEIVE_CGM, False
        )

    def ingest(self, batch: Any) -> bool:
        """
        Ingest one batch of glucose entries.

        Returns True if at least one reading carried a usable timestamp, i.e. one
        in the past. Future-dated readings are kept in the batch but never move
        the watermark; if no reading qualifies nothing is staged.
        """
        if not self.is_enabled():
            logger.debug("readings_ignored", reason="receiving_disabled")
            return False
        try:
            shape = classify_batch(batch)
        except BatchShapeError as exc:
            logger.warning("readings_batch_rejected", error=str(exc))
            return False

        now = self._clock()
        latest_date = 0
        glucose_values: list[GlucoseValue] = []
        for glucose_value in self._normalize(shape):
            if glucose_value is None:
                continue
            if latest_date < glucose_value.timestamp < now:
                latest_date = glucose_value.timestamp
            glucose_values.append(glucose_value)

        logger.debug(
            "readings_received",
            received=len(shape.records),
            valid=len(glucose_values),
            latest_date=latest_date,
        )

        if latest_date > 0:
            self._sync_session.advance_reading_watermark(latest_date)
            if now - latest_date < FRESH_READING_WINDOW_MIN * MS_PER_MINUTE:
                self._notifications.dismiss(Alarm.STALE_DATA)
                self._notifications.dismiss(Alarm.URGENT_STALE_DATA)
            self._staging.add_all(StagingCategory.GLUCOSE_VALUES, glucose_values)
        return latest_date > 0

    @staticmethod
    def _normalize(shape: Batch) -> Iterator[Optional[GlucoseValue]]:
        if isinstance(shape, LegacyBatch):
            for record in shape.records:
                yield legacy_to_glucose_value(record)
        else:
            for sgv in shape.records:
                yield typed_to_glucose_value(sgv)
