"""
reconciler/collaborators/sync_session.py

Watermarks of the active sync session with the remote store.
Both counters only move upward, so re-delivered stale batches are no-ops.
"""

import threading
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class ActiveSyncSession:
    """Holds the reading/treatment watermarks and the last received profile stamp."""

    def __init__(self, latest_reading: int = 0, latest_treatment: int = 0) -> None:
        self._lock = threading.Lock()
        self.latest_reading_received = latest_reading
        self.latest_treatment_received = latest_treatment
        self.last_profile_received: Optional[int] = None

    def advance_reading_watermark(self, timestamp: int) -> None:
        with self._lock:
            if timestamp <= self.latest_reading_received:
                return
            self.latest_reading_received = timestamp
        logger.debug("reading_watermark_advanced", watermark=timestamp)

    def advance_treatment_watermark(self, timestamp: int) -> None:
        with self._lock:
            if timestamp <= self.latest_treatment_received:
                return
            self.latest_treatment_received = timestamp
        logger.debug("treatment_watermark_advanced", watermark=timestamp)

    def notify_profile_received(self, timestamp: int) -> None:
        with self._lock:
            self.last_profile_received = timestamp
        logger.info("profile_received", created_at=timestamp)
