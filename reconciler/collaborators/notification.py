"""
reconciler/collaborators/notification.py

In-process notification bus for alarm dismissal and diagnostic log lines.
Currently records state locally and logs; delivery to the UI is a separate concern.
"""

import collections
import threading
from enum import Enum

import structlog

from reconciler.constants import DIAGNOSTIC_LOG_MAX_LEN

logger = structlog.get_logger(__name__)


class Alarm(str, Enum):
    """Alarms raised when remote data goes stale."""

    STALE_DATA = "ns_alarm"
    URGENT_STALE_DATA = "ns_urgent_alarm"


class LocalNotificationBus:
    """Keeps the set of active alarms and a bounded window of diagnostic lines."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.active_alarms: set[Alarm] = set()
        self.log_lines: collections.deque[tuple[str, str]] = collections.deque(
            maxlen=DIAGNOSTIC_LOG_MAX_LEN
        )

    def dismiss(self, alarm: Alarm) -> None:
        """Clear `alarm`. Dismissing an inactive alarm is a no-op."""
        with self._lock:
            was_active = alarm in self.active_alarms
            self.active_alarms.discard(alarm)
        logger.info("alarm_dismissed", alarm=alarm.value, was_active=was_active)

    def new_log(self, action: str, text: str) -> None:
        """Record a diagnostic line for the log view."""
        with self._lock:
            self.log_lines.append((action, text))
        logger.info("diagnostic_log", action=action, text=text)
