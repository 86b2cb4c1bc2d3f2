"""
reconciler/normalizers/glucose.py

Converts glucose entries from either wire shape into canonical GlucoseValue records.
"""

from typing import Any, Optional

from reconciler.normalizers.json_fields import first_double, first_long, get_double, get_string
from reconciler.records import GlucoseValue, SourceSensor, TrendArrow
from reconciler.schemas import RemoteSgv


def legacy_to_glucose_value(record: dict[str, Any]) -> Optional[GlucoseValue]:
    """
    Build a reading from a v1 entry.

    Returns None when the timestamp or the glucose value is missing or not numeric;
    such entries are never stored as partial readings.
    """
    timestamp = first_long(record, "mills", "date")
    if timestamp is None:
        return None
    value = first_double(record, "mgdl", "sgv")
    if value is None:
        return None
    return GlucoseValue(
        timestamp=timestamp,
        value=value,
        raw=get_double(record, "filtered"),
        trend_arrow=TrendArrow.from_string(get_string(record, "direction")),
        source_sensor=SourceSensor.from_string(get_string(record, "device")),
        remote_id=get_string(record, "_id"),
    )


def typed_to_glucose_value(sgv: RemoteSgv) -> GlucoseValue:
    return GlucoseValue(
        timestamp=sgv.date,
        value=sgv.units.to_mgdl(sgv.sgv),
        raw=sgv.filtered,
        trend_arrow=TrendArrow.from_string(sgv.direction),
        source_sensor=SourceSensor.from_string(sgv.device),
        remote_id=sgv.identifier,
        is_valid=sgv.is_valid,
    )
