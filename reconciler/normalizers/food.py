"""
reconciler/normalizers/food.py

Converts food catalog items from either wire shape into canonical Food records.
"""

from typing import Any, Optional

from reconciler.constants import DEFAULT_FOOD_UNIT
from reconciler.normalizers.json_fields import get_bool, get_double, get_long, get_string
from reconciler.records import Food
from reconciler.schemas import RemoteFood


def legacy_to_food(record: dict[str, Any]) -> Optional[Food]:
    """
    Parse a v1 food record.

    The caller has already filtered on the food type tag. Returns None if
    the record lacks any of name, portion, carbs or _id.
    """
    name = get_string(record, "name")
    portion = get_double(record, "portion")
    carbs = get_long(record, "carbs")
    remote_id = get_string(record, "_id")
    if name is None or portion is None or carbs is None or remote_id is None:
        return None
    return Food(
        name=name,
        category=get_string(record, "category"),
        subcategory=get_string(record, "subcategory"),
        portion=portion,
        carbs=carbs,
        gi=get_long(record, "gi"),
        energy=get_long(record, "energy"),
        protein=get_long(record, "protein"),
        fat=get_long(record, "fat"),
        unit=get_string(record, "unit", DEFAULT_FOOD_UNIT),
        is_valid=get_bool(record, "isValid", True),
        remote_id=remote_id,
    )


def typed_to_food(food: RemoteFood) -> Food:
    return Food(
        name=food.name,
        category=food.category,
        subcategory=food.sub_category,
        portion=food.portion,
        carbs=food.carbs,
        gi=food.gi,
        energy=food.energy,
        protein=food.protein,
        fat=food.fat,
        unit=food.unit,
        is_valid=food.is_valid,
        remote_id=food.identifier,
    )
