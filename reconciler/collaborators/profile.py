"""
reconciler/collaborators/profile.py

Profile store built from a remote profile snapshot, and the local profile source
that holds the active store.
"""

from typing import Any, Optional

import structlog
from pydantic import BaseModel

from reconciler.errors import ProfileStoreError
from reconciler.normalizers.json_fields import first_long, get_dict, get_string, iso_to_millis

logger = structlog.get_logger(__name__)


class ProfileStore(BaseModel):
    """Named profiles plus the timestamp the snapshot was created at (epoch ms)."""

    start_date: int
    default_profile: Optional[str] = None
    store: dict[str, dict] = {}
    raw: dict = {}

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "ProfileStore":
        """
        Build a store from a remote snapshot.

        The creation timestamp is read from the ISO `startDate`, falling back to
        the numeric `date` / `mills` fields. Raises ProfileStoreError when the
        timestamp or the `store` object is missing.
        """
        start_date = iso_to_millis(get_string(raw, "startDate"))
        if start_date is None:
            start_date = first_long(raw, "date", "mills")
        if start_date is None:
            raise ProfileStoreError("profile snapshot has no creation timestamp")
        profiles = get_dict(raw, "store")
        if not profiles:
            raise ProfileStoreError("profile snapshot has no profiles")
        return cls(
            start_date=start_date,
            default_profile=get_string(raw, "defaultProfile"),
            store={name: block for name, block in profiles.items() if isinstance(block, dict)},
            raw=raw,
        )

    def specific_profile(self, name: str) -> Optional[dict]:
        return self.store.get(name)


class LocalProfileSource:
    """Holds the active profile store of this node."""

    def __init__(self) -> None:
        self.active_store: Optional[ProfileStore] = None

    def build_store(self, raw: dict[str, Any]) -> ProfileStore:
        return ProfileStore.from_json(raw)

    def load_from_store(self, store: ProfileStore) -> None:
        self.active_store = store
        logger.info(
            "profile_store_loaded",
            created_at=store.start_date,
            default_profile=store.default_profile,
            profiles=sorted(store.store),
        )

    def specific_profile(self, name: str) -> Optional[dict]:
        if self.active_store is None:
            return None
        return self.active_store.specific_profile(name)
