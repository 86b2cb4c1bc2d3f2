"""
reconciler/records.py

Canonical local records produced by the normalizers and handed to the staging buffer.
Every timestamp is epoch milliseconds. `remote_id` is the upsert identity.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class StagingCategory(str, Enum):
    """Per-category sinks of the staging buffer."""

    GLUCOSE_VALUES = "glucose_values"
    BOLUSES = "boluses"
    CARBS = "carbs"
    TEMPORARY_TARGETS = "temporary_targets"
    TEMPORARY_BASALS = "temporary_basals"
    EFFECTIVE_PROFILE_SWITCHES = "effective_profile_switches"
    PROFILE_SWITCHES = "profile_switches"
    BOLUS_CALCULATOR_RESULTS = "bolus_calculator_results"
    THERAPY_EVENTS = "therapy_events"
    OFFLINE_EVENTS = "offline_events"
    EXTENDED_BOLUSES = "extended_boluses"
    FOODS = "foods"


class TrendArrow(str, Enum):
    NONE = "NONE"
    TRIPLE_UP = "TripleUp"
    DOUBLE_UP = "DoubleUp"
    SINGLE_UP = "SingleUp"
    FORTY_FIVE_UP = "FortyFiveUp"
    FLAT = "Flat"
    FORTY_FIVE_DOWN = "FortyFiveDown"
    SINGLE_DOWN = "SingleDown"
    DOUBLE_DOWN = "DoubleDown"
    TRIPLE_DOWN = "TripleDown"

    @classmethod
    def from_string(cls, text: Optional[str]) -> "TrendArrow":
        for arrow in cls:
            if arrow.value == text:
                return arrow
        return cls.NONE


class SourceSensor(str, Enum):
    DEXCOM_G5_XDRIP = "xDrip-DexcomG5"
    DEXCOM_G6_XDRIP = "xDrip-DexcomG6"
    DEXCOM_G6_NATIVE = "G6 Native"
    DEXCOM_G7_NATIVE = "G7 Native"
    LIBRE_1 = "xDrip-LibreReceiver"
    LIBRE_2 = "Libre2"
    MEDTRONIC_GUARDIAN = "MedtronicGuardian"
    EVERSENSE = "Eversense"
    RANDOM = "Random"
    UNKNOWN = "Unknown"

    @classmethod
    def from_string(cls, text: Optional[str]) -> "SourceSensor":
        for sensor in cls:
            if sensor.value == text:
                return sensor
        return cls.UNKNOWN


class BolusType(str, Enum):
    NORMAL = "NORMAL"
    SMB = "SMB"
    PRIMING = "PRIMING"

    @classmethod
    def from_string(cls, text: Optional[str]) -> "BolusType":
        return cls.__members__.get(text or "", cls.NORMAL)


class TemporaryBasalType(str, Enum):
    NORMAL = "NORMAL"
    EMULATED_PUMP_SUSPEND = "EMULATED_PUMP_SUSPEND"
    PUMP_SUSPEND = "PUMP_SUSPEND"
    SUPERBOLUS = "SUPERBOLUS"
    FAKE_EXTENDED = "FAKE_EXTENDED"

    @classmethod
    def from_string(cls, text: Optional[str]) -> "TemporaryBasalType":
        return cls.__members__.get(text or "", cls.NORMAL)


class OfflineReason(str, Enum):
    DISCONNECT_PUMP = "DISCONNECT_PUMP"
    SUSPEND = "SUSPEND"
    DISABLE_LOOP = "DISABLE_LOOP"
    SUPER_BOLUS = "SUPER_BOLUS"
    OTHER = "OTHER"

    @classmethod
    def from_string(cls, text: Optional[str]) -> "OfflineReason":
        return cls.__members__.get(text or "", cls.OTHER)


# ── Records ──────────────────────────────────────────────────


class SyncedRecord(BaseModel):
    """Fields shared by every timestamped record synced from the remote store."""

    timestamp: int
    remote_id: Optional[str] = None
    is_valid: bool = True
    utc_offset: Optional[int] = None


class GlucoseValue(SyncedRecord):
    value: float  # mg/dL
    raw: Optional[float] = None
    trend_arrow: TrendArrow = TrendArrow.NONE
    source_sensor: SourceSensor = SourceSensor.UNKNOWN


class Bolus(SyncedRecord):
    amount: float
    bolus_type: BolusType = BolusType.NORMAL


class Carbs(SyncedRecord):
    amount: float
    duration: int = 0
    notes: Optional[str] = None


class TemporaryTarget(SyncedRecord):
    duration: int
    reason: Optional[str] = None
    low_target: float  # mg/dL
    high_target: float  # mg/dL


class TemporaryBasal(SyncedRecord):
    duration: int
    rate: float
    is_absolute: bool = True
    basal_type: TemporaryBasalType = TemporaryBasalType.NORMAL


class EffectiveProfileSwitch(SyncedRecord):
    profile: dict
    original_profile_name: str
    original_percentage: int = 100
    original_timeshift: int = 0
    original_duration: int = 0
    original_end: int = 0


class ProfileSwitch(SyncedRecord):
    profile: dict
    profile_name: str
    percentage: int = 100
    timeshift: int = 0
    duration: int = 0


class BolusCalculatorResult(SyncedRecord):
    glucose_value: float = 0.0
    carbs: float = 0.0
    total_insulin: float = 0.0
    bolus_iob: float = 0.0
    basal_iob: float = 0.0
    percentage_correction: int = 100
    note: str = ""


class TherapyEvent(SyncedRecord):
    event_type: str
    duration: int = 0
    note: Optional[str] = None
    glucose: Optional[float] = None
    glucose_units: str
    entered_by: Optional[str] = None


class OfflineEvent(SyncedRecord):
    duration: int
    reason: OfflineReason = OfflineReason.OTHER


class ExtendedBolus(SyncedRecord):
    duration: int
    amount: float
    is_emulating_temp_basal: bool = False


class Food(BaseModel):
    """Food catalog entry. A tombstone has an empty name and is_valid=False."""

    name: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    portion: float
    carbs: int
    gi: Optional[int] = None
    energy: Optional[int] = None
    protein: Optional[int] = None
    fat: Optional[int] = None
    unit: str = "g"
    is_valid: bool = True
    remote_id: Optional[str] = None

    @classmethod
    def tombstone(cls, remote_id: Optional[str]) -> "Food":
        return cls(name="", portion=0.0, carbs=0, is_valid=False, remote_id=remote_id)

    @property
    def is_tombstone(self) -> bool:
        return not self.is_valid and self.name == ""
