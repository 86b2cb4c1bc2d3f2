"""
reconciler/services/profile.py

Profile Snapshot Ingestor.
Activates a remote profile store when it is newer than the last local edit.
"""

from typing import Any

import structlog

from reconciler.constants import (
    KEY_LOCAL_PROFILE_LAST_CHANGE,
    KEY_RECEIVE_PROFILE_STORE,
    MS_PER_SECOND,
)
from reconciler.errors import ProfileStoreError
from reconciler.ports import Preferences, ProfileSource, RuntimeMode, SyncSession

logger = structlog.get_logger(__name__)


def is_profile_accepted(created_at: int, last_local_change: int) -> bool:
    """
    A snapshot wins if it is newer than the last local edit, or if its timestamp
    is a whole second. Whole-second stamps come from the remote editor, which has
    no millisecond precision, so a remote edit always takes precedence.
    """
    return created_at > last_local_change or created_at % MS_PER_SECOND == 0


class ProfileIngestor:
    """Activates remote profile store snapshots."""

    def __init__(
        self,
        preferences: Preferences,
        runtime_mode: RuntimeMode,
        profile_source: ProfileSource,
        sync_session: SyncSession,
    ) -> None:
        self._preferences = preferences
        self._runtime_mode = runtime_mode
        self._profile_source = profile_source
        self._sync_session = sync_session

    def is_enabled(self) -> bool:
        """Enabled by the receive preference (on by default) or in client-only mode."""
        return (
            self._preferences.get_bool(KEY_RECEIVE_PROFILE_STORE, True)
            or self._runtime_mode.client_only_mode
        )

    def ingest(self, raw: dict[str, Any]) -> None:
        """Activate `raw` if it is accepted; unparseable snapshots are dropped."""
        if not self.is_enabled():
            logger.debug("profile_store_ignored", reason="receiving_disabled")
            return
        try:
            store = self._profile_source.build_store(raw)
        except ProfileStoreError as exc:
            logger.warning("profile_store_rejected", error=str(exc))
            return

        created_at = store.start_date
        last_local_change = self._preferences.get_long(KEY_LOCAL_PROFILE_LAST_CHANGE, 0)
        logger.debug(
            "profile_store_received",
            created_at=created_at,
            last_local_change=last_local_change,
        )
        if not is_profile_accepted(created_at, last_local_change):
            return
        self._profile_source.load_from_store(store)
        self._sync_session.notify_profile_received(created_at)
