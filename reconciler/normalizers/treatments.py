"""
reconciler/normalizers/treatments.py

Per-variant converters from typed treatment records to canonical records.

Converters for profile switches and bolus calculator results may fail and
return None; the ingestor skips those records. Every converter assumes the
caller has already checked that `treatment.date` is set.
"""

from typing import Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from reconciler.constants import MAX_TT_MGDL, MIN_TT_MGDL, PROFILE_REQUIRED_BLOCKS
from reconciler.records import (
    Bolus,
    BolusCalculatorResult,
    BolusType,
    Carbs,
    EffectiveProfileSwitch,
    ExtendedBolus,
    OfflineEvent,
    OfflineReason,
    ProfileSwitch,
    TemporaryBasal,
    TemporaryBasalType,
    TemporaryTarget,
    TherapyEvent,
)
from reconciler.schemas import (
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

ProfileResolver = Callable[[str], Optional[dict]]


def _common(treatment: RemoteTreatmentBase) -> dict:
    return {
        "timestamp": treatment.date,
        "remote_id": treatment.identifier,
        "is_valid": treatment.is_valid,
        "utc_offset": treatment.utc_offset,
    }


def has_profile_blocks(profile: Optional[dict]) -> bool:
    """True if `profile` carries every block needed to run a profile."""
    if not profile:
        return False
    return all(block in profile for block in PROFILE_REQUIRED_BLOCKS)


def to_bolus(treatment: RemoteBolus) -> Bolus:
    return Bolus(
        **_common(treatment),
        amount=treatment.insulin,
        bolus_type=BolusType.from_string(treatment.bolus_type),
    )


def to_carbs(treatment: RemoteCarbs) -> Carbs:
    return Carbs(
        **_common(treatment),
        amount=treatment.carbs,
        duration=treatment.duration,
        notes=treatment.notes,
    )


def is_temp_target_in_range(treatment: RemoteTemporaryTarget) -> bool:
    """
    Range check for temporary targets.

    A zero-duration target only ends the running one and always passes.
    Otherwise both bounds must lie in [MIN_TT_MGDL, MAX_TT_MGDL] and low <= high.
    """
    if treatment.duration <= 0:
        return True
    low = treatment.target_bottom_as_mgdl()
    high = treatment.target_top_as_mgdl()
    return MIN_TT_MGDL <= low <= high <= MAX_TT_MGDL


def to_temporary_target(treatment: RemoteTemporaryTarget) -> TemporaryTarget:
    return TemporaryTarget(
        **_common(treatment),
        duration=treatment.duration,
        reason=treatment.reason,
        low_target=treatment.target_bottom_as_mgdl(),
        high_target=treatment.target_top_as_mgdl(),
    )


def to_temporary_basal(treatment: RemoteTemporaryBasal) -> TemporaryBasal:
    return TemporaryBasal(
        **_common(treatment),
        duration=treatment.duration,
        rate=treatment.rate,
        is_absolute=treatment.is_absolute,
        basal_type=TemporaryBasalType.from_string(treatment.basal_type),
    )


def to_effective_profile_switch(
    treatment: RemoteEffectiveProfileSwitch,
) -> Optional[EffectiveProfileSwitch]:
    if not has_profile_blocks(treatment.profile_json):
        return None
    return EffectiveProfileSwitch(
        **_common(treatment),
        profile=treatment.profile_json,
        original_profile_name=treatment.original_profile_name,
        original_percentage=treatment.original_percentage,
        original_timeshift=treatment.original_timeshift,
        original_duration=treatment.original_duration,
        original_end=treatment.original_end,
    )


def to_profile_switch(
    treatment: RemoteProfileSwitch,
    resolve_profile: ProfileResolver,
) -> Optional[ProfileSwitch]:
    """
    Convert a profile switch, taking the embedded profile when present and
    otherwise looking the named profile up in the active profile source.
    """
    profile = treatment.profile_json
    if not has_profile_blocks(profile):
        profile = resolve_profile(treatment.profile)
    if not has_profile_blocks(profile):
        return None
    return ProfileSwitch(
        **_common(treatment),
        profile=profile,
        profile_name=treatment.profile,
        percentage=treatment.percentage,
        timeshift=treatment.timeshift,
        duration=treatment.duration,
    )


class _BolusCalculatorPayload(BaseModel):
    """Embedded JSON document of a bolus wizard treatment."""

    model_config = ConfigDict(extra="ignore")

    glucose_value: float = Field(0.0, alias="glucoseValue")
    carbs: float = 0.0
    total_insulin: float = Field(0.0, alias="totalInsulin")
    bolus_iob: float = Field(0.0, alias="bolusIOB")
    basal_iob: float = Field(0.0, alias="basalIOB")
    percentage_correction: int = Field(100, alias="percentageCorrection")
    note: str = ""


def to_bolus_calculator_result(treatment: RemoteBolusWizard) -> Optional[BolusCalculatorResult]:
    if not treatment.bolus_calculator_result:
        return None
    try:
        payload = _BolusCalculatorPayload.model_validate_json(treatment.bolus_calculator_result)
    except ValidationError as exc:
        logger.debug(
            "bolus_calculator_result_unparseable",
            remote_id=treatment.identifier,
            error=str(exc),
        )
        return None
    return BolusCalculatorResult(**_common(treatment), **payload.model_dump())


def to_therapy_event(treatment: RemoteTherapyEvent) -> TherapyEvent:
    return TherapyEvent(
        **_common(treatment),
        event_type=treatment.event_type,
        duration=treatment.duration,
        note=treatment.notes,
        glucose=treatment.glucose,
        glucose_units=treatment.glucose_units.value,
        entered_by=treatment.entered_by,
    )


def to_offline_event(treatment: RemoteOfflineEvent) -> OfflineEvent:
    return OfflineEvent(
        **_common(treatment),
        duration=treatment.duration,
        reason=OfflineReason.from_string(treatment.reason),
    )


def to_extended_bolus(treatment: RemoteExtendedBolus) -> ExtendedBolus:
    return ExtendedBolus(
        **_common(treatment),
        duration=treatment.duration,
        amount=treatment.amount,
        is_emulating_temp_basal=treatment.is_emulating_temp_basal,
    )
