"""
reconciler/ports.py

Collaborator interfaces the ingestors are constructed with.
Default implementations live in reconciler/collaborators/; tests pass mocks.
"""

from typing import TYPE_CHECKING, Any, Iterable, Optional, Protocol, runtime_checkable

from reconciler.records import StagingCategory

if TYPE_CHECKING:
    from pydantic import BaseModel

    from reconciler.collaborators.notification import Alarm
    from reconciler.collaborators.profile import ProfileStore


@runtime_checkable
class Preferences(Protocol):
    """Read-only access to user preferences keyed by name."""

    def get_bool(self, key: str, default: bool) -> bool: ...

    def get_long(self, key: str, default: int) -> int: ...


@runtime_checkable
class RuntimeMode(Protocol):
    """Operating mode of this node."""

    client_only_mode: bool

    def engineering_mode(self) -> bool: ...


@runtime_checkable
class ReadingSource(Protocol):
    """The glucose source that takes its readings from the remote store."""

    def is_enabled(self) -> bool: ...


@runtime_checkable
class StagingSink(Protocol):
    """Append-only per-category sinks; records upsert by remote id."""

    def add(self, category: StagingCategory, record: "BaseModel") -> None: ...

    def add_all(self, category: StagingCategory, records: Iterable["BaseModel"]) -> None: ...


@runtime_checkable
class SyncSession(Protocol):
    """Active sync session; every call is monotonic and idempotent."""

    def advance_reading_watermark(self, timestamp: int) -> None: ...

    def advance_treatment_watermark(self, timestamp: int) -> None: ...

    def notify_profile_received(self, timestamp: int) -> None: ...


@runtime_checkable
class NotificationBus(Protocol):
    """Fire-and-forget signals."""

    def dismiss(self, alarm: "Alarm") -> None: ...

    def new_log(self, action: str, text: str) -> None: ...


@runtime_checkable
class ProfileSource(Protocol):
    """Builds, activates and looks up profile stores."""

    def build_store(self, raw: dict[str, Any]) -> "ProfileStore": ...

    def load_from_store(self, store: "ProfileStore") -> None: ...

    def specific_profile(self, name: str) -> Optional[dict]: ...
