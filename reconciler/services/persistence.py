"""
reconciler/services/persistence.py

Flushes the staging buffer into the MySQL database.
Uses SQLAlchemy 2.0 async sessions. Rows are upserted by remote identifier;
food tombstones invalidate the stored row instead of inserting one.
"""

from typing import Any

import structlog
from pydantic import BaseModel
from sqlalchemy import select

from db.models import AsyncSessionLocal, FoodItem, GlucoseReading, TreatmentRecord
from reconciler.collaborators.staging import StagingBuffer
from reconciler.records import Food, GlucoseValue, StagingCategory

logger = structlog.get_logger(__name__)


async def _find(session: Any, model: type, *criteria: Any) -> Any:
    result = await session.execute(select(model).where(*criteria))
    return result.scalar_one_or_none()


async def _upsert(
    session: Any,
    model: type,
    remote_id: str | None,
    values: dict,
    *criteria: Any,
) -> None:
    existing = None
    if remote_id is not None:
        existing = await _find(session, model, model.remote_id == remote_id, *criteria)
    if existing is None:
        session.add(model(**values))
        return
    for key, value in values.items():
        setattr(existing, key, value)


async def _store_reading(session: Any, record: GlucoseValue) -> None:
    values = record.model_dump(mode="json")
    await _upsert(session, GlucoseReading, record.remote_id, values)


async def _store_food(session: Any, record: Food) -> None:
    if record.is_tombstone:
        if record.remote_id is None:
            return
        existing = await _find(session, FoodItem, FoodItem.remote_id == record.remote_id)
        if existing is not None:
            existing.is_valid = False
        return
    await _upsert(session, FoodItem, record.remote_id, record.model_dump(mode="json"))


async def _store_treatment(session: Any, category: StagingCategory, record: BaseModel) -> None:
    values = {
        "category": category.value,
        "remote_id": record.remote_id,
        "timestamp": record.timestamp,
        "is_valid": record.is_valid,
        "payload": record.model_dump_json(),
    }
    await _upsert(
        session,
        TreatmentRecord,
        record.remote_id,
        values,
        TreatmentRecord.category == category.value,
    )


async def flush_staging(buffer: StagingBuffer) -> dict[str, int]:
    """
    Write everything staged in `buffer` and return per-category row counts.

    On failure the drained records are put back into the buffer, except where
    a newer record with the same remote id was staged meanwhile, and the
    exception is re-raised.
    """
    drained = buffer.drain()
    if not drained:
        return {}
    counts: dict[str, int] = {}
    try:
        async with AsyncSessionLocal() as session:
            for category, records in drained.items():
                for record in records:
                    if category is StagingCategory.GLUCOSE_VALUES:
                        await _store_reading(session, record)
                    elif category is StagingCategory.FOODS:
                        await _store_food(session, record)
                    else:
                        await _store_treatment(session, category, record)
                counts[category.value] = len(records)
            await session.commit()
            logger.info("staging_flushed", counts=counts)
    except Exception as exc:
        for category, records in drained.items():
            buffer.restage(category, records)
        logger.error("staging_flush_failed", error=str(exc))
        raise
    return counts
