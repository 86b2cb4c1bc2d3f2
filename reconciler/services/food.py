"""
reconciler/services/food.py

Food Catalog Ingestor.
Stages food items and deletion tombstones as one batch. Unexpected errors are
logged and reported on the notification bus; nothing is raised to the caller.
"""

from typing import Any

import structlog

from reconciler.constants import DIAGNOSTIC_ERROR_ACTION, FOOD_REMOVE_ACTION, FOOD_TYPE_TAG
from reconciler.normalizers.food import legacy_to_food, typed_to_food
from reconciler.normalizers.json_fields import get_string
from reconciler.ports import NotificationBus, StagingSink
from reconciler.records import Food, StagingCategory
from reconciler.shapes import LegacyBatch, classify_batch

logger = structlog.get_logger(__name__)


class FoodIngestor:
    """Stages food catalog items and deletion tombstones."""

    def __init__(self, staging: StagingSink, notifications: NotificationBus) -> None:
        self._staging = staging
        self._notifications = notifications

    def ingest(self, batch: Any) -> None:
        """Ingest one food batch. Never raises."""
        try:
            shape = classify_batch(batch)
            logger.debug("food_received", count=len(shape.records))
            if isinstance(shape, LegacyBatch):
                foods = self._from_legacy(shape.records)
            else:
                foods = [typed_to_food(food) for food in shape.records]
            self._staging.add_all(StagingCategory.FOODS, foods)
        except Exception as exc:
            logger.error("food_batch_failed", error=str(exc), exc_info=True)
            self._notifications.new_log(DIAGNOSTIC_ERROR_ACTION, str(exc))

    @staticmethod
    def _from_legacy(records: list[dict[str, Any]]) -> list[Food]:
        foods: list[Food] = []
        for record in records:
            if get_string(record, "type") != FOOD_TYPE_TAG:
                continue
            if get_string(record, "action") == FOOD_REMOVE_ACTION:
                foods.append(Food.tombstone(get_string(record, "_id")))
                continue
            food = legacy_to_food(record)
            if food is None:
                logger.error("food_parse_failed", record=record)
                continue
            foods.append(food)
        return foods
