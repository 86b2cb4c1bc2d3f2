"""
reconciler/shapes.py

Discriminates the two wire shapes a batch can arrive in.
- LegacyBatch: untyped JSON records from the v1 client
- TypedBatch: pydantic models from the v3 client

Each ingestor resolves the shape once at its entry point via classify_batch().
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel

from reconciler.errors import BatchShapeError

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class LegacyBatch:
    """Generic tagged records, one dict per record."""

    records: list[dict[str, Any]]


@dataclass(frozen=True)
class TypedBatch(Generic[ModelT]):
    """Records already in the v3 client's canonical shape."""

    records: list[ModelT]


Batch = Union[LegacyBatch, TypedBatch]


def classify_batch(batch: Union[Batch, Sequence[Any]]) -> Batch:
    """
    Resolve which wire shape `batch` is in.

    Already-wrapped batches are returned as-is. An empty sequence is treated as an
    empty legacy batch. A sequence mixing dicts and models, or holding anything
    else, raises BatchShapeError.
    """
    if isinstance(batch, (LegacyBatch, TypedBatch)):
        return batch
    if isinstance(batch, (str, bytes)) or not isinstance(batch, Sequence):
        raise BatchShapeError(f"unsupported batch container: {type(batch).__name__}")

    records = list(batch)
    if all(isinstance(record, dict) for record in records):
        return LegacyBatch(records=records)
    if all(isinstance(record, BaseModel) for record in records):
        return TypedBatch(records=records)
    raise BatchShapeError("batch mixes legacy records with typed records")
