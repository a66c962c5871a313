from datetime import datetime, timedelta, timezone

import pytest

from buildingops.activity.collectors import WorkCompletionCollector
from buildingops.activity.service import ActivityLedgerAggregator
from buildingops.completions import service
from buildingops.completions.model import RoutineCompletionRequest, WorkItemCompletionRequest
from buildingops.exceptions import NotFoundError, WorkCompletionNotFoundError


def _record_task(db, now):
    return service.record_work_item_completion(db, WorkItemCompletionRequest(
        building_id="1", worker_id="w2", worker_name="Edwin Lema", completed_at=now,
        work_type="maintenance", source_id="maint_12", title="Replace boiler filter",
        category="hvac", duration_minutes=40, verification_method="photo",
    ))


def test_routine_completion_gets_a_stamped_id(db, now):
    completion = service.record_routine_completion(db, RoutineCompletionRequest(
        building_id="1", worker_id="w1", completed_at=now,
        routine_id="sweep_lobby", routine_title="Sweep lobby",
    ))

    assert completion.id == "sweep_lobby_20240515143000000000"
    assert completion.category == "daily_routine"
    assert completion.description == "Routine completed: Sweep lobby"
    assert completion.verified_at is None


def test_verify_records_the_sign_off(db, now):
    completion = _record_task(db, now)

    verified = service.verify_work_completion(db, completion.id, "mgr_1", notes="Filter looks right",
                                              quality_score=9)

    assert verified.verified_by == "mgr_1"
    assert verified.verification_notes == "Filter looks right"
    assert verified.quality_score == 9
    assert verified.verified_at is not None
    assert verified.status == "completed"


def test_verify_unknown_completion_is_not_found(db):
    with pytest.raises(WorkCompletionNotFoundError) as exc:
        service.verify_work_completion(db, "missing", "mgr_1")
    assert isinstance(exc.value, NotFoundError)


def test_verify_rejects_out_of_range_score(db, now):
    completion = _record_task(db, now)

    with pytest.raises(ValueError):
        service.verify_work_completion(db, completion.id, "mgr_1", quality_score=11)


def test_sign_off_reaches_the_ledger(session_factory, db, now):
    completion = _record_task(db, now)
    service.verify_work_completion(db, completion.id, "mgr_1", notes="Checked on site", quality_score=8)

    aggregator = ActivityLedgerAggregator([WorkCompletionCollector("maintenance", session_factory)])
    result = aggregator.aggregate("1", now - timedelta(days=1), now + timedelta(days=1))

    record = result.ledger[0]
    assert record.id == f"maintenance_{completion.id}"
    assert record.verified_by == "mgr_1"
    assert record.verification_notes == "Checked on site"
    assert record.quality_score == 8
    assert record.verified_at.tzinfo is not None
    assert record.completed_at == datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)
