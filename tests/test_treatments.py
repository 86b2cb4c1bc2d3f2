"""
tests/test_treatments.py

Unit tests for reconciler/services/treatments.py.
Covers admission gating, temporary target validation, conversion failures,
watermark handling and the best-effort error boundary.
"""

import json
from unittest.mock import MagicMock, patch

from reconciler.constants import DIAGNOSTIC_ERROR_ACTION
from reconciler.records import StagingCategory
from reconciler.schemas import (
    RemoteBolus,
    RemoteBolusWizard,
    RemoteEffectiveProfileSwitch,
    RemoteExtendedBolus,
    RemoteOfflineEvent,
    RemoteProfileSwitch,
    RemoteTemporaryBasal,
    RemoteTherapyEvent,
)
from reconciler.services.treatments import TreatmentIngestor
from tests.fixtures import (
    MINUTE,
    NOW,
    PROFILE_BLOCKS,
    build_bolus,
    build_carbs,
    build_legacy_treatment,
    build_preferences,
    build_processor,
    build_profile_source,
    build_runtime_mode,
    build_temp_target,
)


def test_invalid_temp_target_dropped_but_batch_accepted() -> None:
    """low > high is rejected while a valid bolus in the same batch still lands."""
    processor = build_processor(
        preferences=build_preferences(receive_temp_target=True, receive_insulin=True)
    )
    batch = [
        build_temp_target(duration=30 * MINUTE, low=40, high=30),
        build_bolus(),
    ]

    assert processor.ingest_treatments(batch) is True
    assert processor.staging.pending(StagingCategory.TEMPORARY_TARGETS) == []
    assert len(processor.staging.pending(StagingCategory.BOLUSES)) == 1


def test_out_of_range_temp_target_rejected_even_in_client_only_mode() -> None:
    processor = build_processor(runtime_mode=build_runtime_mode(client_only=True))

    processor.ingest_treatments([build_temp_target(low=60, high=100)])
    processor.ingest_treatments([build_temp_target(low=100, high=200, identifier="tt_002")])

    assert processor.staging.pending(StagingCategory.TEMPORARY_TARGETS) == []


def test_mmol_temp_target_converted() -> None:
    processor = build_processor(preferences=build_preferences(receive_temp_target=True))

    processor.ingest_treatments([build_temp_target(low=5.0, high=6.0, units="mmol")])

    (target,) = processor.staging.pending(StagingCategory.TEMPORARY_TARGETS)
    assert target.low_target == 90.0
    assert target.high_target == 108.0


def test_ending_temp_target_skips_range_check() -> None:
    processor = build_processor(preferences=build_preferences(receive_temp_target=True))

    processor.ingest_treatments([build_temp_target(duration=0, low=0, high=0)])

    assert len(processor.staging.pending(StagingCategory.TEMPORARY_TARGETS)) == 1


def test_disabled_setting_keeps_variant_out_of_staging() -> None:
    processor = build_processor(preferences=build_preferences(receive_carbs=True))

    assert processor.ingest_treatments([build_bolus(), build_carbs()]) is True

    assert processor.staging.pending(StagingCategory.BOLUSES) == []
    assert len(processor.staging.pending(StagingCategory.CARBS)) == 1


def test_watermark_counts_records_that_were_not_admitted() -> None:
    processor = build_processor()

    assert processor.ingest_treatments([build_bolus(date=NOW - 3 * MINUTE)]) is True

    assert processor.staging.pending(StagingCategory.BOLUSES) == []
    assert processor.sync_session.latest_treatment_received == NOW - 3 * MINUTE


def test_undated_records_skipped() -> None:
    processor = build_processor(preferences=build_preferences(receive_insulin=True))

    assert processor.ingest_treatments([build_bolus(date=None)]) is False
    assert processor.staging.pending(StagingCategory.BOLUSES) == []
    assert processor.sync_session.latest_treatment_received == 0


def test_empty_batch_returns_false() -> None:
    assert build_processor().ingest_treatments([]) is False


def test_tbr_and_extended_bolus_require_engineering_mode() -> None:
    batch = [
        RemoteTemporaryBasal(date=NOW - MINUTE, duration=30 * MINUTE, rate=1.2, identifier="tbr"),
        RemoteExtendedBolus(date=NOW - MINUTE, duration=60 * MINUTE, amount=3.0, identifier="eb"),
    ]
    plain = build_processor(preferences=build_preferences(receive_tbr_eb=True))
    plain.ingest_treatments(batch)
    assert plain.staging.pending(StagingCategory.TEMPORARY_BASALS) == []
    assert plain.staging.pending(StagingCategory.EXTENDED_BOLUSES) == []

    engineering = build_processor(
        preferences=build_preferences(receive_tbr_eb=True),
        runtime_mode=build_runtime_mode(engineering=True),
    )
    engineering.ingest_treatments(batch)
    assert len(engineering.staging.pending(StagingCategory.TEMPORARY_BASALS)) == 1
    assert len(engineering.staging.pending(StagingCategory.EXTENDED_BOLUSES)) == 1


def test_client_only_mode_admits_gated_variants() -> None:
    processor = build_processor(runtime_mode=build_runtime_mode(client_only=True))
    batch = [
        RemoteOfflineEvent(date=NOW - MINUTE, duration=MINUTE, reason="SUSPEND", identifier="off"),
        RemoteTherapyEvent(date=NOW - MINUTE, event_type="Site Change", identifier="te"),
    ]

    assert processor.ingest_treatments(batch) is True
    assert len(processor.staging.pending(StagingCategory.OFFLINE_EVENTS)) == 1
    assert len(processor.staging.pending(StagingCategory.THERAPY_EVENTS)) == 1


def test_profile_switch_resolved_from_active_profile() -> None:
    processor = build_processor(
        preferences=build_preferences(receive_profile_switch=True),
        profile_source=build_profile_source("Weekday"),
    )
    batch = [
        RemoteProfileSwitch(date=NOW - MINUTE, profile="Weekday", identifier="ps_ok"),
        RemoteProfileSwitch(date=NOW - MINUTE, profile="Unknown", identifier="ps_missing"),
    ]

    assert processor.ingest_treatments(batch) is True

    (switch,) = processor.staging.pending(StagingCategory.PROFILE_SWITCHES)
    assert switch.remote_id == "ps_ok"
    assert switch.profile == PROFILE_BLOCKS


def test_effective_profile_switch_without_profile_skipped() -> None:
    processor = build_processor(preferences=build_preferences(receive_profile_switch=True))
    batch = [
        RemoteEffectiveProfileSwitch(date=NOW - MINUTE, profile_json=None, identifier="bad"),
        RemoteEffectiveProfileSwitch(
            date=NOW - MINUTE,
            profile_json=PROFILE_BLOCKS,
            original_profile_name="Default",
            identifier="good",
        ),
    ]

    processor.ingest_treatments(batch)

    (switch,) = processor.staging.pending(StagingCategory.EFFECTIVE_PROFILE_SWITCHES)
    assert switch.remote_id == "good"


def test_bolus_wizard_has_no_gate() -> None:
    processor = build_processor()
    batch = [
        RemoteBolusWizard(
            date=NOW - MINUTE,
            bolus_calculator_result=json.dumps({"glucoseValue": 150, "carbs": 40, "totalInsulin": 4.2}),
            identifier="bw_ok",
        ),
        RemoteBolusWizard(date=NOW - MINUTE, bolus_calculator_result="{not json", identifier="bw_bad"),
    ]

    processor.ingest_treatments(batch)

    (result,) = processor.staging.pending(StagingCategory.BOLUS_CALCULATOR_RESULTS)
    assert result.remote_id == "bw_ok"
    assert result.total_insulin == 4.2


def test_error_keeps_already_staged_records() -> None:
    """An error on the second record aborts the batch but keeps the first."""
    staging = MagicMock()
    staging.add.side_effect = [None, RuntimeError("disk full")]
    sync_session = MagicMock()
    notifications = MagicMock()
    ingestor = TreatmentIngestor(
        build_preferences(receive_insulin=True),
        build_runtime_mode(),
        staging,
        sync_session,
        notifications,
        build_profile_source(),
    )

    result = ingestor.ingest([build_bolus(identifier="first"), build_bolus(identifier="second")])

    assert result is False
    assert staging.add.call_count == 2
    assert staging.add.call_args_list[0].args[1].remote_id == "first"
    sync_session.advance_treatment_watermark.assert_not_called()
    notifications.new_log.assert_called_once_with(DIAGNOSTIC_ERROR_ACTION, "disk full")


def test_legacy_meal_bolus_yields_bolus_and_carbs() -> None:
    processor = build_processor(
        preferences=build_preferences(receive_insulin=True, receive_carbs=True)
    )
    batch = [build_legacy_treatment("Meal Bolus", insulin=3.0, carbs=45)]

    assert processor.ingest_treatments(batch) is True
    assert processor.staging.pending(StagingCategory.BOLUSES)[0].amount == 3.0
    assert processor.staging.pending(StagingCategory.CARBS)[0].amount == 45


def test_legacy_temp_target_minutes_converted() -> None:
    processor = build_processor(preferences=build_preferences(receive_temp_target=True))
    batch = [
        build_legacy_treatment(
            "Temporary Target", duration=60, targetBottom=140, targetTop=140, units="mg/dl"
        )
    ]

    processor.ingest_treatments(batch)

    (target,) = processor.staging.pending(StagingCategory.TEMPORARY_TARGETS)
    assert target.duration == 60 * MINUTE
    assert target.low_target == 140


def test_legacy_record_with_non_finite_duration_dropped() -> None:
    """A bad field drops only its own record; the valid bolus before it still lands."""
    processor = build_processor(
        preferences=build_preferences(receive_insulin=True, receive_temp_target=True)
    )
    batch = [
        build_legacy_treatment("Correction Bolus", _id="bolus_ok", insulin=2.0),
        build_legacy_treatment(
            "Temporary Target",
            _id="tt_bad",
            date=NOW,
            duration="Infinity",
            targetBottom=100,
            targetTop=110,
        ),
    ]

    assert processor.ingest_treatments(batch) is True
    (bolus,) = processor.staging.pending(StagingCategory.BOLUSES)
    assert bolus.remote_id == "bolus_ok"
    assert processor.staging.pending(StagingCategory.TEMPORARY_TARGETS) == []
    assert processor.sync_session.latest_treatment_received == NOW - 15 * MINUTE


def test_legacy_records_staged_before_decoding_error() -> None:
    processor = build_processor(preferences=build_preferences(receive_insulin=True))
    first = RemoteBolus(date=NOW - MINUTE, insulin=1.0, identifier="first")
    batch = [build_legacy_treatment("Correction Bolus"), build_legacy_treatment("Note")]

    with patch(
        "reconciler.normalizers.legacy_treatments.decode_legacy_treatment",
        side_effect=[[first], RuntimeError("decoder crashed")],
    ):
        result = processor.ingest_treatments(batch)

    assert result is False
    assert [bolus.remote_id for bolus in processor.staging.pending(StagingCategory.BOLUSES)] == [
        "first"
    ]
    processor.notifications.new_log.assert_called_once_with(
        DIAGNOSTIC_ERROR_ACTION, "decoder crashed"
    )
