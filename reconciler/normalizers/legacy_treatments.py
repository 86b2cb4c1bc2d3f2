"""
reconciler/normalizers/legacy_treatments.py

Decodes v1 treatment records (plain JSON keyed by `eventType`) into the typed
treatment variants, so the treatment ingestor runs one loop for both shapes.

Durations arrive in minutes and timeshifts in hours; both are converted to ms.
A record that cannot be decoded is dropped with a debug trace.
"""

import json
from typing import Any, Iterator, Optional

import structlog
from pydantic import ValidationError

from reconciler.constants import (
    EVENT_BOLUS_WIZARD,
    EVENT_COMBO_BOLUS,
    EVENT_EFFECTIVE_PROFILE_SWITCH,
    EVENT_NOTE,
    EVENT_OFFLINE,
    EVENT_PROFILE_SWITCH,
    EVENT_TEMP_BASAL,
    EVENT_TEMPORARY_TARGET,
    MS_PER_HOUR,
    MS_PER_MINUTE,
    PERCENT_BASE,
    UNITS_MMOL,
)
from reconciler.normalizers.json_fields import (
    first_double,
    first_long,
    get_bool,
    get_dict,
    get_double,
    get_long,
    get_string,
    iso_to_millis,
)
from reconciler.schemas import (
    GlucoseUnit,
    RemoteBolus,
    RemoteBolusWizard,
    RemoteCarbs,
    RemoteEffectiveProfileSwitch,
    RemoteExtendedBolus,
    RemoteOfflineEvent,
    RemoteProfileSwitch,
    RemoteTemporaryBasal,
    RemoteTemporaryTarget,
    RemoteTherapyEvent,
    RemoteTreatmentBase,
)

logger = structlog.get_logger(__name__)


def _duration_ms(record: dict[str, Any]) -> int:
    """
    Duration in ms, 0 when the record carries none.

    Raises ValueError when a duration field is present but is not a finite number.
    """
    for key, scale in (("durationInMilliseconds", 1), ("duration", MS_PER_MINUTE)):
        if record.get(key) is None:
            continue
        value = get_double(record, key)
        if value is None:
            raise ValueError(f"unusable {key}: {record[key]!r}")
        return int(value * scale)
    return 0


def _units(record: dict[str, Any], key: str) -> GlucoseUnit:
    text = (get_string(record, key) or "").lower()
    return GlucoseUnit.MMOL if text.startswith(UNITS_MMOL) else GlucoseUnit.MGDL


def _embedded_profile(record: dict[str, Any], key: str) -> Optional[dict]:
    """Profile JSON is sent either as an object or as a serialized string."""
    as_dict = get_dict(record, key)
    if as_dict is not None:
        return as_dict
    text = get_string(record, key)
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _common(record: dict[str, Any]) -> dict[str, Any]:
    date = first_long(record, "date", "mills")
    if date is None:
        date = iso_to_millis(get_string(record, "created_at"))
    return {
        "date": date,
        "identifier": get_string(record, "_id"),
        "is_valid": get_bool(record, "isValid", True),
        "utc_offset": get_long(record, "utcOffset"),
        "entered_by": get_string(record, "enteredBy"),
        "notes": get_string(record, "notes"),
    }


def decode_legacy_treatment(record: dict[str, Any]) -> list[RemoteTreatmentBase]:
    """
    Map one v1 record to zero or more typed variants.

    Raises pydantic.ValidationError when a required field of the chosen
    variant is missing, and ValueError when a duration is not a finite number.
    """
    common = _common(record)
    event_type = get_string(record, "eventType", EVENT_NOTE)

    if event_type == EVENT_TEMPORARY_TARGET:
        return [
            RemoteTemporaryTarget(
                **common,
                duration=_duration_ms(record),
                target_bottom=get_double(record, "targetBottom") or 0.0,
                target_top=get_double(record, "targetTop") or 0.0,
                units=_units(record, "units"),
                reason=get_string(record, "reason"),
            )
        ]
    if event_type == EVENT_TEMP_BASAL:
        percent = get_double(record, "percent")
        absolute = first_double(record, "absolute", "rate")
        is_absolute = absolute is not None or percent is None
        return [
            RemoteTemporaryBasal(
                **common,
                duration=_duration_ms(record),
                rate=absolute if is_absolute else percent + PERCENT_BASE,
                is_absolute=is_absolute,
                basal_type=get_string(record, "type", "NORMAL"),
            )
        ]
    if event_type == EVENT_COMBO_BOLUS:
        return [
            RemoteExtendedBolus(
                **common,
                duration=_duration_ms(record),
                amount=first_double(record, "enteredinsulin", "insulin"),
                is_emulating_temp_basal=get_bool(record, "isEmulatingTempBasal", False),
            )
        ]
    if event_type == EVENT_PROFILE_SWITCH:
        return [
            RemoteProfileSwitch(
                **common,
                profile=get_string(record, "profile"),
                percentage=get_long(record, "percentage") or PERCENT_BASE,
                timeshift=(get_long(record, "timeshift") or 0) * MS_PER_HOUR,
                duration=_duration_ms(record),
                profile_json=_embedded_profile(record, "profileJson"),
            )
        ]
    if event_type == EVENT_EFFECTIVE_PROFILE_SWITCH:
        return [
            RemoteEffectiveProfileSwitch(
                **common,
                profile_json=_embedded_profile(record, "profileJson"),
                original_profile_name=get_string(record, "originalProfileName", ""),
                original_percentage=get_long(record, "originalPercentage") or PERCENT_BASE,
                original_timeshift=get_long(record, "originalTimeshift") or 0,
                original_duration=get_long(record, "originalDuration") or 0,
                original_end=get_long(record, "originalEnd") or 0,
            )
        ]
    if event_type == EVENT_BOLUS_WIZARD:
        embedded = record.get("bolusCalculatorResult")
        if isinstance(embedded, dict):
            embedded = json.dumps(embedded)
        return [RemoteBolusWizard(**common, bolus_calculator_result=embedded)]
    if event_type == EVENT_OFFLINE:
        return [
            RemoteOfflineEvent(
                **common,
                duration=_duration_ms(record),
                reason=get_string(record, "reason", "OTHER"),
            )
        ]

    # Boluses, carb entries and everything else (notes, site changes, ...)
    decoded: list[RemoteTreatmentBase] = []
    insulin = get_double(record, "insulin")
    if insulin is not None and insulin > 0:
        bolus_type = get_string(record, "type", "NORMAL")
        if get_bool(record, "isSMB", False):
            bolus_type = "SMB"
        decoded.append(RemoteBolus(**common, insulin=insulin, bolus_type=bolus_type))
    carbs = get_double(record, "carbs")
    if carbs is not None and carbs > 0:
        decoded.append(RemoteCarbs(**common, carbs=carbs, duration=_duration_ms(record)))
    if decoded:
        return decoded
    return [
        RemoteTherapyEvent(
            **common,
            event_type=event_type,
            duration=_duration_ms(record),
            glucose=get_double(record, "glucose"),
            glucose_units=_units(record, "units"),
        )
    ]


def decode_legacy_treatments(records: list[dict[str, Any]]) -> Iterator[RemoteTreatmentBase]:
    """
    Decode a v1 batch lazily, one record at a time, dropping records that do
    not fit any variant or carry an unusable field.
    """
    for record in records:
        try:
            decoded = decode_legacy_treatment(record)
        except (ValidationError, ValueError) as exc:
            logger.debug(
                "legacy_treatment_ignored",
                remote_id=record.get("_id"),
                event_type=record.get("eventType"),
                error=str(exc),
            )
            continue
        yield from decoded
