"""
reconciler/collaborators/staging.py

Staging buffer between the ingestors and the database.

Records are kept per category and upserted by remote id: a later record with
the same remote id replaces the earlier one in place. Records without a remote
id are always appended. drain() hands everything to the persistence layer and
empties the buffer.
"""

import itertools
import threading
from typing import Iterable

import structlog
from pydantic import BaseModel

from reconciler.records import StagingCategory

logger = structlog.get_logger(__name__)


class StagingBuffer:
    """Thread-safe per-category buffer; concurrent ingestors may append at once."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._anonymous = itertools.count()
        self._records: dict[StagingCategory, dict[object, BaseModel]] = {
            category: {} for category in StagingCategory
        }

    def _key(self, record: BaseModel) -> object:
        remote_id = getattr(record, "remote_id", None)
        if remote_id is None:
            return ("anonymous", next(self._anonymous))
        return remote_id

    def add(self, category: StagingCategory, record: BaseModel) -> None:
        """Stage one record, replacing any staged record with the same remote id."""
        with self._lock:
            self._records[category][self._key(record)] = record

    def add_all(self, category: StagingCategory, records: Iterable[BaseModel]) -> None:
        records = list(records)
        with self._lock:
            bucket = self._records[category]
            for record in records:
                bucket[self._key(record)] = record
        logger.debug("staging_batch_added", category=category.value, count=len(records))

    def restage(self, category: StagingCategory, records: Iterable[BaseModel]) -> None:
        """
        Put drained records back after a failed flush.

        A remote id staged again since the drain holds the newer version and is
        left untouched.
        """
        restaged = 0
        with self._lock:
            bucket = self._records[category]
            for record in records:
                key = self._key(record)
                if key in bucket:
                    continue
                bucket[key] = record
                restaged += 1
        logger.debug("staging_batch_restaged", category=category.value, count=restaged)

    def pending(self, category: StagingCategory) -> list[BaseModel]:
        """Snapshot of what is currently staged for `category`."""
        with self._lock:
            return list(self._records[category].values())

    def drain(self) -> dict[StagingCategory, list[BaseModel]]:
        """Remove and return all staged records, skipping empty categories."""
        with self._lock:
            drained = {
                category: list(bucket.values())
                for category, bucket in self._records.items()
                if bucket
            }
            for bucket in self._records.values():
                bucket.clear()
        return drained
