"""
reconciler/services/treatments.py

Treatment Ingestor.
Dispatches each treatment variant through its admission gate and converter and
stages admitted records one at a time.

Commit policy is best effort: records are staged as soon as they are converted.
If an unexpected error interrupts the batch, the error is logged and reported on
the notification bus, ingest() returns False, and records staged before the
error stay staged.
"""

from typing import Any, Callable, Iterable, Optional

import structlog
from pydantic import BaseModel

from reconciler.admission import AdmissionSnapshot, ModeFlags, is_admitted
from reconciler.constants import DIAGNOSTIC_ERROR_ACTION
from reconciler.normalizers.legacy_treatments import decode_legacy_treatments
from reconciler.normalizers.treatments import (
    is_temp_target_in_range,
    to_bolus,
    to_bolus_calculator_result,
    to_carbs,
    to_effective_profile_switch,
    to_extended_bolus,
    to_offline_event,
    to_profile_switch,
    to_temporary_basal,
    to_temporary_target,
    to_therapy_event,
)
from reconciler.ports import (
    NotificationBus,
    Preferences,
    ProfileSource,
    RuntimeMode,
    StagingSink,
    SyncSession,
)
from reconciler.records import StagingCategory
from reconciler.schemas import RemoteTemporaryTarget, RemoteTreatmentBase, TreatmentKind
from reconciler.shapes import LegacyBatch, classify_batch

logger = structlog.get_logger(__name__)

_CATEGORIES: dict[TreatmentKind, StagingCategory] = {
    TreatmentKind.BOLUS: StagingCategory.BOLUSES,
    TreatmentKind.CARBS: StagingCategory.CARBS,
    TreatmentKind.TEMPORARY_TARGET: StagingCategory.TEMPORARY_TARGETS,
    TreatmentKind.TEMPORARY_BASAL: StagingCategory.TEMPORARY_BASALS,
    TreatmentKind.EFFECTIVE_PROFILE_SWITCH: StagingCategory.EFFECTIVE_PROFILE_SWITCHES,
    TreatmentKind.PROFILE_SWITCH: StagingCategory.PROFILE_SWITCHES,
    TreatmentKind.BOLUS_WIZARD: StagingCategory.BOLUS_CALCULATOR_RESULTS,
    TreatmentKind.THERAPY_EVENT: StagingCategory.THERAPY_EVENTS,
    TreatmentKind.OFFLINE_EVENT: StagingCategory.OFFLINE_EVENTS,
    TreatmentKind.EXTENDED_BOLUS: StagingCategory.EXTENDED_BOLUSES,
}


class TreatmentIngestor:
    """Gates, converts and stages every treatment variant and moves the treatment watermark."""

    def __init__(
        self,
        preferences: Preferences,
        runtime_mode: RuntimeMode,
        staging: StagingSink,
        sync_session: SyncSession,
        notifications: NotificationBus,
        profile_source: ProfileSource,
    ) -> None:
        self._preferences = preferences
        self._runtime_mode = runtime_mode
        self._staging = staging
        self._sync_session = sync_session
        self._notifications = notifications
        self._profile_source = profile_source
        self._converters: dict[TreatmentKind, Callable[[Any], Optional[BaseModel]]] = {
            TreatmentKind.BOLUS: to_bolus,
            TreatmentKind.CARBS: to_carbs,
            TreatmentKind.TEMPORARY_TARGET: self._convert_temporary_target,
            TreatmentKind.TEMPORARY_BASAL: to_temporary_basal,
            TreatmentKind.EFFECTIVE_PROFILE_SWITCH: to_effective_profile_switch,
            TreatmentKind.PROFILE_SWITCH: self._convert_profile_switch,
            TreatmentKind.BOLUS_WIZARD: to_bolus_calculator_result,
            TreatmentKind.THERAPY_EVENT: to_therapy_event,
            TreatmentKind.OFFLINE_EVENT: to_offline_event,
            TreatmentKind.EXTENDED_BOLUS: to_extended_bolus,
        }

    def ingest(self, batch: Any) -> bool:
        """
        Ingest one batch of treatments.

        The watermark covers every dated record on the wire, admitted or not.
        Returns True iff the batch completed and held at least one dated record.
        """
        try:
            treatments = self._resolve(batch)
            snapshot = AdmissionSnapshot.from_preferences(self._preferences)
            mode = ModeFlags.from_runtime(self._runtime_mode)

            latest_date = 0
            for treatment in treatments:
                logger.debug(
                    "treatment_received",
                    kind=treatment.kind.value,
                    remote_id=treatment.identifier,
                    date=treatment.date,
                )
                if treatment.date is None:
                    continue
                if treatment.date > latest_date:
                    latest_date = treatment.date
                if not is_admitted(treatment.kind, snapshot, mode):
                    continue
                record = self._converters[treatment.kind](treatment)
                if record is None:
                    continue
                self._staging.add(_CATEGORIES[treatment.kind], record)

            if latest_date > 0:
                self._sync_session.advance_treatment_watermark(latest_date)
            return latest_date > 0
        except Exception as exc:
            logger.error("treatment_batch_failed", error=str(exc), exc_info=True)
            self._notifications.new_log(DIAGNOSTIC_ERROR_ACTION, str(exc))
        return False

    @staticmethod
    def _resolve(batch: Any) -> Iterable[RemoteTreatmentBase]:
        """Typed records as they are; legacy records decoded lazily while the batch is walked."""
        shape = classify_batch(batch)
        if isinstance(shape, LegacyBatch):
            return decode_legacy_treatments(shape.records)
        return shape.records

    @staticmethod
    def _convert_temporary_target(treatment: RemoteTemporaryTarget) -> Optional[BaseModel]:
        if not is_temp_target_in_range(treatment):
            logger.debug(
                "temp_target_ignored",
                remote_id=treatment.identifier,
                duration=treatment.duration,
                low=treatment.target_bottom_as_mgdl(),
                high=treatment.target_top_as_mgdl(),
            )
            return None
        return to_temporary_target(treatment)

    def _convert_profile_switch(self, treatment: Any) -> Optional[BaseModel]:
        return to_profile_switch(treatment, self._profile_source.specific_profile)
