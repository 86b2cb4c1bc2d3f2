"""
reconciler/constants.py

Clinical and wire-format constants used by the ingestion pipeline.
All numeric values and wire tags must be referenced from this module.
Magic numbers in business logic are prohibited.
"""

# ── Glucose units ────────────────────────────────────────────
MMOLL_TO_MGDL: float = 18.0
UNITS_MGDL: str = "mg/dl"
UNITS_MMOL: str = "mmol"

# ── Temporary target range (mg/dL) ───────────────────────────
MIN_TT_MGDL: float = 72.0
MAX_TT_MGDL: float = 180.0

# ── Time ─────────────────────────────────────────────────────
MS_PER_SECOND: int = 1000
MS_PER_MINUTE: int = 60 * MS_PER_SECOND
MS_PER_HOUR: int = 60 * MS_PER_MINUTE
FRESH_READING_WINDOW_MIN: int = 5

# ── Percent-based temp basals are stored as rate = percent + PERCENT_BASE ──
PERCENT_BASE: int = 100

# ── Legacy wire tags ─────────────────────────────────────────
FOOD_TYPE_TAG: str = "food"
FOOD_REMOVE_ACTION: str = "remove"
DEFAULT_FOOD_UNIT: str = "g"

EVENT_TEMPORARY_TARGET: str = "Temporary Target"
EVENT_TEMP_BASAL: str = "Temp Basal"
EVENT_COMBO_BOLUS: str = "Combo Bolus"
EVENT_PROFILE_SWITCH: str = "Profile Switch"
EVENT_EFFECTIVE_PROFILE_SWITCH: str = "Effective Profile Switch"
EVENT_BOLUS_WIZARD: str = "Bolus Wizard"
EVENT_OFFLINE: str = "OpenAPS Offline"
EVENT_NOTE: str = "Note"

# ── Profile blocks required for a usable profile ─────────────
PROFILE_REQUIRED_BLOCKS: tuple[str, ...] = ("basal", "sens", "carbratio")

# ── Preference keys ──────────────────────────────────────────
KEY_RECEIVE_CGM: str = "receive_cgm"
KEY_RECEIVE_INSULIN: str = "receive_insulin"
KEY_RECEIVE_CARBS: str = "receive_carbs"
KEY_RECEIVE_TEMP_TARGET: str = "receive_temp_target"
KEY_RECEIVE_TBR_EB: str = "receive_tbr_eb"
KEY_RECEIVE_PROFILE_SWITCH: str = "receive_profile_switch"
KEY_RECEIVE_THERAPY_EVENTS: str = "receive_therapy_events"
KEY_RECEIVE_OFFLINE_EVENT: str = "receive_offline_event"
KEY_RECEIVE_PROFILE_STORE: str = "receive_profile_store"
KEY_LOCAL_PROFILE_LAST_CHANGE: str = "local_profile_last_change"

# ── Diagnostics ──────────────────────────────────────────────
DIAGNOSTIC_ERROR_ACTION: str = "◄ ERROR"

# ── Collaborator buffers ─────────────────────────────────────
DIAGNOSTIC_LOG_MAX_LEN: int = 50
