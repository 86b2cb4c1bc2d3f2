"""
reconciler/routers/incoming.py

Intake endpoints for batches pushed by the remote store clients.
v1 routes take raw JSON arrays; v3 routes take typed, validated lists.
Each route hands the batch to the processor, then flushes staging to the database.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from reconciler.dependencies import get_processor
from reconciler.schemas import RemoteFood, RemoteSgv, RemoteTreatment
from reconciler.services.persistence import flush_staging
from reconciler.services.processor import IncomingDataProcessor
from reconciler.shapes import LegacyBatch, TypedBatch

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _flush(processor: IncomingDataProcessor, source: str) -> None:
    counts = await flush_staging(processor.staging)
    if counts:
        logger.info("incoming_batch_persisted", source=source, counts=counts)


@router.post("/v1/entries")
async def receive_legacy_entries(
    batch: list[dict[str, Any]],
    processor: IncomingDataProcessor = Depends(get_processor),
) -> dict[str, Any]:
    logger.info("entries_received", client="v1", count=len(batch))
    accepted = processor.ingest_readings(LegacyBatch(records=batch))
    await _flush(processor, "v1/entries")
    return {"status": "received", "accepted": accepted}


@router.post("/v3/entries")
async def receive_entries(
    batch: list[RemoteSgv],
    processor: IncomingDataProcessor = Depends(get_processor),
) -> dict[str, Any]:
    logger.info("entries_received", client="v3", count=len(batch))
    accepted = processor.ingest_readings(TypedBatch(records=batch))
    await _flush(processor, "v3/entries")
    return {"status": "received", "accepted": accepted}


@router.post("/v1/treatments")
async def receive_legacy_treatments(
    batch: list[dict[str, Any]],
    processor: IncomingDataProcessor = Depends(get_processor),
) -> dict[str, Any]:
    logger.info("treatments_received", client="v1", count=len(batch))
    accepted = processor.ingest_treatments(LegacyBatch(records=batch))
    await _flush(processor, "v1/treatments")
    return {"status": "received", "accepted": accepted}


@router.post("/v3/treatments")
async def receive_treatments(
    batch: list[RemoteTreatment],
    processor: IncomingDataProcessor = Depends(get_processor),
) -> dict[str, Any]:
    logger.info("treatments_received", client="v3", count=len(batch))
    accepted = processor.ingest_treatments(TypedBatch(records=batch))
    await _flush(processor, "v3/treatments")
    return {"status": "received", "accepted": accepted}


@router.post("/v1/food")
async def receive_legacy_food(
    batch: list[dict[str, Any]],
    processor: IncomingDataProcessor = Depends(get_processor),
) -> dict[str, str]:
    logger.info("food_received", client="v1", count=len(batch))
    processor.ingest_food(LegacyBatch(records=batch))
    await _flush(processor, "v1/food")
    return {"status": "received"}


@router.post("/v3/food")
async def receive_food(
    batch: list[RemoteFood],
    processor: IncomingDataProcessor = Depends(get_processor),
) -> dict[str, str]:
    logger.info("food_received", client="v3", count=len(batch))
    processor.ingest_food(TypedBatch(records=batch))
    await _flush(processor, "v3/food")
    return {"status": "received"}


@router.post("/profile")
async def receive_profile(
    snapshot: dict[str, Any],
    processor: IncomingDataProcessor = Depends(get_processor),
) -> dict[str, str]:
    logger.info("profile_snapshot_received", start_date=snapshot.get("startDate"))
    processor.ingest_profile(snapshot)
    return {"status": "received"}
