"""
reconciler/admission.py

Admission policy for treatment variants.

is_admitted() is a pure function of the variant, a snapshot of the receive
preferences and the mode flags. Client-only mode admits every variant.
Temporary-basal, extended-bolus and offline-event data are additionally
restricted to engineering mode. Bolus wizard results have no gate.
"""

from dataclasses import dataclass

from reconciler.constants import (
    KEY_RECEIVE_CARBS,
    KEY_RECEIVE_INSULIN,
    KEY_RECEIVE_OFFLINE_EVENT,
    KEY_RECEIVE_PROFILE_SWITCH,
    KEY_RECEIVE_TBR_EB,
    KEY_RECEIVE_TEMP_TARGET,
    KEY_RECEIVE_THERAPY_EVENTS,
)
from reconciler.ports import Preferences, RuntimeMode
from reconciler.schemas import TreatmentKind


@dataclass(frozen=True)
class AdmissionSnapshot:
    """Receive preferences read once per batch."""

    receive_insulin: bool = False
    receive_carbs: bool = False
    receive_temp_target: bool = False
    receive_tbr_eb: bool = False
    receive_profile_switch: bool = False
    receive_therapy_events: bool = False
    receive_offline_event: bool = False

    @classmethod
    def from_preferences(cls, preferences: Preferences) -> "AdmissionSnapshot":
        return cls(
            receive_insulin=preferences.get_bool(KEY_RECEIVE_INSULIN, False),
            receive_carbs=preferences.get_bool(KEY_RECEIVE_CARBS, False),
            receive_temp_target=preferences.get_bool(KEY_RECEIVE_TEMP_TARGET, False),
            receive_tbr_eb=preferences.get_bool(KEY_RECEIVE_TBR_EB, False),
            receive_profile_switch=preferences.get_bool(KEY_RECEIVE_PROFILE_SWITCH, False),
            receive_therapy_events=preferences.get_bool(KEY_RECEIVE_THERAPY_EVENTS, False),
            receive_offline_event=preferences.get_bool(KEY_RECEIVE_OFFLINE_EVENT, False),
        )


@dataclass(frozen=True)
class ModeFlags:
    client_only: bool = False
    engineering: bool = False

    @classmethod
    def from_runtime(cls, mode: RuntimeMode) -> "ModeFlags":
        return cls(client_only=mode.client_only_mode, engineering=mode.engineering_mode())


def is_admitted(kind: TreatmentKind, snapshot: AdmissionSnapshot, mode: ModeFlags) -> bool:
    """Return True if records of `kind` may enter staging."""
    if mode.client_only or kind is TreatmentKind.BOLUS_WIZARD:
        return True
    if kind is TreatmentKind.BOLUS:
        return snapshot.receive_insulin
    if kind is TreatmentKind.CARBS:
        return snapshot.receive_carbs
    if kind is TreatmentKind.TEMPORARY_TARGET:
        return snapshot.receive_temp_target
    if kind in (TreatmentKind.TEMPORARY_BASAL, TreatmentKind.EXTENDED_BOLUS):
        return mode.engineering and snapshot.receive_tbr_eb
    if kind in (TreatmentKind.EFFECTIVE_PROFILE_SWITCH, TreatmentKind.PROFILE_SWITCH):
        return snapshot.receive_profile_switch
    if kind is TreatmentKind.THERAPY_EVENT:
        return snapshot.receive_therapy_events
    if kind is TreatmentKind.OFFLINE_EVENT:
        return mode.engineering and snapshot.receive_offline_event
    return False
