"""
reconciler/schemas.py

Pydantic models for the typed (v3) wire shapes emitted by the remote store client.
- RemoteSgv: one glucose entry
- RemoteTreatment: discriminated union over the ten treatment variants, tagged by `kind`
- RemoteFood: one food catalog item

Legacy (v1) batches arrive as plain JSON dicts and are decoded in reconciler/normalizers.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from reconciler.constants import EVENT_NOTE, MMOLL_TO_MGDL, UNITS_MGDL, UNITS_MMOL


class GlucoseUnit(str, Enum):
    """Units a remote glucose figure is expressed in."""

    MGDL = UNITS_MGDL
    MMOL = UNITS_MMOL

    def to_mgdl(self, value: float) -> float:
        return value * MMOLL_TO_MGDL if self is GlucoseUnit.MMOL else value


class TreatmentKind(str, Enum):
    """Tag of each treatment variant carried in a typed batch."""

    BOLUS = "bolus"
    CARBS = "carbs"
    TEMPORARY_TARGET = "temporary_target"
    TEMPORARY_BASAL = "temporary_basal"
    EFFECTIVE_PROFILE_SWITCH = "effective_profile_switch"
    PROFILE_SWITCH = "profile_switch"
    BOLUS_WIZARD = "bolus_wizard"
    THERAPY_EVENT = "therapy_event"
    OFFLINE_EVENT = "offline_event"
    EXTENDED_BOLUS = "extended_bolus"


class RemoteSgv(BaseModel):
    """Glucose entry as delivered by the v3 client."""

    date: int  # epoch ms
    sgv: float
    units: GlucoseUnit = GlucoseUnit.MGDL
    filtered: Optional[float] = None
    direction: Optional[str] = None
    device: Optional[str] = None
    identifier: Optional[str] = None
    is_valid: bool = True


# ── Treatments ───────────────────────────────────────────────


class RemoteTreatmentBase(BaseModel):
    """Fields shared by every treatment variant. `date` may be missing on the wire."""

    date: Optional[int] = None
    identifier: Optional[str] = None
    is_valid: bool = True
    utc_offset: Optional[int] = None  # minutes
    entered_by: Optional[str] = None
    notes: Optional[str] = None


class RemoteBolus(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.BOLUS] = TreatmentKind.BOLUS
    insulin: float
    bolus_type: str = "NORMAL"


class RemoteCarbs(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.CARBS] = TreatmentKind.CARBS
    carbs: float
    duration: int = 0


class RemoteTemporaryTarget(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.TEMPORARY_TARGET] = TreatmentKind.TEMPORARY_TARGET
    duration: int = 0  # ms; 0 ends the running target
    target_bottom: float = 0.0
    target_top: float = 0.0
    units: GlucoseUnit = GlucoseUnit.MGDL
    reason: Optional[str] = None

    def target_bottom_as_mgdl(self) -> float:
        return self.units.to_mgdl(self.target_bottom)

    def target_top_as_mgdl(self) -> float:
        return self.units.to_mgdl(self.target_top)


class RemoteTemporaryBasal(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.TEMPORARY_BASAL] = TreatmentKind.TEMPORARY_BASAL
    duration: int
    rate: float
    is_absolute: bool = True
    basal_type: str = "NORMAL"


class RemoteEffectiveProfileSwitch(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.EFFECTIVE_PROFILE_SWITCH] = (
        TreatmentKind.EFFECTIVE_PROFILE_SWITCH
    )
    profile_json: Optional[dict] = None
    original_profile_name: str = ""
    original_percentage: int = 100
    original_timeshift: int = 0
    original_duration: int = 0
    original_end: int = 0


class RemoteProfileSwitch(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.PROFILE_SWITCH] = TreatmentKind.PROFILE_SWITCH
    profile: str
    percentage: int = 100
    timeshift: int = 0
    duration: int = 0
    profile_json: Optional[dict] = None


class RemoteBolusWizard(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.BOLUS_WIZARD] = TreatmentKind.BOLUS_WIZARD
    bolus_calculator_result: Optional[str] = None  # JSON document


class RemoteTherapyEvent(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.THERAPY_EVENT] = TreatmentKind.THERAPY_EVENT
    event_type: str = EVENT_NOTE
    duration: int = 0
    glucose: Optional[float] = None
    glucose_units: GlucoseUnit = GlucoseUnit.MGDL


class RemoteOfflineEvent(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.OFFLINE_EVENT] = TreatmentKind.OFFLINE_EVENT
    duration: int = 0
    reason: str = "OTHER"


class RemoteExtendedBolus(RemoteTreatmentBase):
    kind: Literal[TreatmentKind.EXTENDED_BOLUS] = TreatmentKind.EXTENDED_BOLUS
    duration: int
    amount: float
    is_emulating_temp_basal: bool = False


RemoteTreatment = Annotated[
    Union[
        RemoteBolus,
        RemoteCarbs,
        RemoteTemporaryTarget,
        RemoteTemporaryBasal,
        RemoteEffectiveProfileSwitch,
        RemoteProfileSwitch,
        RemoteBolusWizard,
        RemoteTherapyEvent,
        RemoteOfflineEvent,
        RemoteExtendedBolus,
    ],
    Field(discriminator="kind"),
]


# ── Food ─────────────────────────────────────────────────────


class RemoteFood(BaseModel):
    """Food catalog item as delivered by the v3 client."""

    name: str
    category: Optional[str] = None
    sub_category: Optional[str] = None
    portion: float
    carbs: int
    gi: Optional[int] = None
    energy: Optional[int] = None
    protein: Optional[int] = None
    fat: Optional[int] = None
    unit: str = "g"
    identifier: Optional[str] = None
    is_valid: bool = True
