import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from buildingops.activity.collectors import SourceCollector
from buildingops.activity.service import ActivityLedgerAggregator
from buildingops.completions import service as completions
from buildingops.completions.model import DepartureRequest, RoutineCompletionRequest, WorkItemCompletionRequest
from buildingops.inspections import service as inspections
from buildingops.main import create_aggregator, on_startup
from buildingops.statistics.service import building_history
from buildingops.utils import utcnow

from conftest import three_item_template

START = datetime(2024, 5, 1, tzinfo=timezone.utc)
END = datetime(2024, 6, 1, tzinfo=timezone.utc)


class FakeCollector:

    def __init__(self, source, items=(), error=None, release=None, delay=0.0):
        self.source = source
        self.items = list(items)
        self.error = error
        self.release = release
        self.delay = delay
        self.calls = []

    def list_items(self, building_id, start, end):
        self.calls.append((building_id, start, end))
        if self.delay:
            time.sleep(self.delay)
        if self.release is not None:
            self.release.wait(timeout=10)
        if self.error is not None:
            raise self.error
        return [item for item in self.items if item.get("building_id", building_id) == building_id]


def item(item_id, completed_at, **fields):
    raw = {
        "id": item_id,
        "building_id": "1",
        "worker_id": "w1",
        "worker_name": "Kevin Dutan",
        "title": f"Work {item_id}",
        "completed_at": completed_at,
    }
    raw.update(fields)
    return raw


def test_fake_collector_satisfies_protocol():
    assert isinstance(FakeCollector("task"), SourceCollector)


def test_merges_and_sorts_newest_first():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", noon), item("t2", noon + timedelta(hours=2))]),
        FakeCollector("routine", [item("r1", noon), item("r2", noon - timedelta(days=1))]),
        FakeCollector("maintenance", [item("m1", noon)]),
    ])

    result = aggregator.aggregate("1", START, END)

    assert result.warnings == []
    assert [record.id for record in result.ledger] == [
        "task_t2", "maintenance_m1", "routine_r1", "task_t1", "routine_r2",
    ]
    assert result.ledger[-1].description == "Routine completed: Work r2"
    assert result.ledger[0].work_type == "task"


def test_failed_source_becomes_a_warning():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", noon)]),
        FakeCollector("maintenance", error=RuntimeError("maintenance store offline")),
    ])

    result = aggregator.aggregate("1", START, END)

    assert [record.id for record in result.ledger] == ["task_t1"]
    assert len(result.warnings) == 1
    assert result.warnings[0].source == "maintenance"
    assert result.warnings[0].message == "maintenance store offline"


def test_slow_source_times_out():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    release = threading.Event()
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", noon)]),
        FakeCollector("repair", [item("x1", noon)], release=release),
    ], source_timeout=0.2)

    try:
        result = aggregator.aggregate("1", START, END)
    finally:
        release.set()

    assert [record.id for record in result.ledger] == ["task_t1"]
    assert [(warning.source, warning.message) for warning in result.warnings] == [
        ("repair", "timed out after 0.2s"),
    ]

def test_every_source_gets_the_full_timeout():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    collectors = [
        FakeCollector(f"vendor_{n}", [item(f"v{n}", noon, work_type="repair")], delay=0.4)
        for n in range(20)
    ]

    result = ActivityLedgerAggregator(collectors, source_timeout=1.0).aggregate("1", START, END)

    assert result.warnings == []
    assert len(result.ledger) == 20



def test_invalid_items_are_skipped_with_a_warning():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    bad_score = item("t2", noon, quality_score=11)
    no_title = item("t3", noon)
    del no_title["title"]
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", noon), bad_score, no_title]),
    ])

    result = aggregator.aggregate("1", START, END)

    assert [record.id for record in result.ledger] == ["task_t1"]
    assert sorted(warning.item_id for warning in result.warnings) == ["t2", "t3"]
    assert all(warning.source == "task" for warning in result.warnings)


def test_items_without_completion_time_are_excluded():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", noon), item("t2", None, status="in_progress")]),
    ])

    result = aggregator.aggregate("1", START, END)

    assert [record.id for record in result.ledger] == ["task_t1"]
    assert result.warnings == []


def test_duplicates_keep_first_seen():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", noon, title="First"), item("t1", noon, title="Second")]),
    ])

    result = aggregator.aggregate("1", START, END)

    assert len(result.ledger) == 1
    assert result.ledger[0].title == "First"


def test_empty_sources_give_an_empty_ledger():
    result = ActivityLedgerAggregator([FakeCollector("task"), FakeCollector("routine")]).aggregate("1", START, END)
    assert result.ledger == []
    assert result.warnings == []

    assert ActivityLedgerAggregator([]).aggregate("1", START, END).ledger == []


def test_filters_by_work_type_and_worker():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", noon), item("t2", noon, worker_id="w2")]),
        FakeCollector("routine", [item("r1", noon, worker_id="w2")]),
    ])

    assert [r.id for r in aggregator.aggregate("1", START, END, work_types=["task"]).ledger] == ["task_t1", "task_t2"]
    assert [r.id for r in aggregator.aggregate("1", START, END, worker_id="w2").ledger] == ["routine_r1", "task_t2"]


def test_unknown_source_dispatches_on_work_type():
    noon = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    aggregator = ActivityLedgerAggregator([
        FakeCollector("vendor", [item("v1", noon, work_type="repair")]),
    ])

    record = aggregator.aggregate("1", START, END).ledger[0]

    assert record.id == "vendor_v1"
    assert record.work_type == "repair"


def test_naive_timestamps_are_read_as_utc():
    aggregator = ActivityLedgerAggregator([
        FakeCollector("task", [item("t1", datetime(2024, 5, 10, 12, 0))]),
    ])

    record = aggregator.aggregate("1", START, END).ledger[0]

    assert record.completed_at == datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def test_duplicate_sources_are_rejected():
    with pytest.raises(ValueError):
        ActivityLedgerAggregator([FakeCollector("task"), FakeCollector("task")])


def test_recorded_work_flows_into_history(session_factory, db):
    now = utcnow()
    completions.record_routine_completion(db, RoutineCompletionRequest(
        building_id="1", building_name="12 West 18th Street", worker_id="w1", worker_name="Kevin Dutan",
        completed_at=now - timedelta(hours=3), verification_method="photo",
        routine_id="sweep_lobby", routine_title="Sweep lobby", location="Lobby", quality_score=8,
    ))
    completions.record_work_item_completion(db, WorkItemCompletionRequest(
        building_id="1", worker_id="w2", completed_at=now - timedelta(hours=2),
        work_type="task", source_id="task_42", title="Replace hallway bulb", duration_minutes=15,
    ))
    completions.record_work_item_completion(db, WorkItemCompletionRequest(
        building_id="4", worker_id="w2", completed_at=now - timedelta(hours=2),
        work_type="repair", source_id="repair_7", title="Fix door closer",
    ))
    completions.record_site_departure(db, DepartureRequest(
        building_id="1", building_name="12 West 18th Street", worker_id="w1",
        completed_at=now - timedelta(hours=1),
        completed_tasks=["task_42", "task_43"], completed_routines=["sweep_lobby"],
    ))

    inspection = inspections.get_or_create_inspection(
        db, "1", now.year, now.month, building_name="12 West 18th Street",
        inspector_id="w3", template_provider=three_item_template,
    )
    for item_id, status in (("elec_1", "passed"), ("fire_1", "failed"), ("roof_1", "not_applicable")):
        inspections.update_checklist_item(db, inspection.id, item_id, status)

    aggregator = create_aggregator(session_factory, source_timeout=10)
    history = building_history(aggregator, "1", "week", utcnow())

    assert history.warnings == []
    assert [record.work_type for record in history.ledger] == ["inspection", "departure", "task", "routine"]

    inspection_record, departure = history.ledger[0], history.ledger[1]
    assert inspection_record.id == f"inspection_{inspection.id}"
    assert inspection_record.description == "1 passed, 1 failed of 3 checklist items"
    assert departure.title == "Site Departure - 12 West 18th Street"
    assert departure.description == "Completed 2 tasks and 1 routines"
    assert departure.verification_method == "photo"

    assert history.stats.total_completions == 4
    assert history.stats.verification_rate == 75.0
    assert history.stats.average_quality_score == 8.0
    assert history.stats.by_worker == {"w1": 2, "w2": 1, "w3": 1}


def test_startup_registers_every_work_source(session_factory):
    aggregator = on_startup(session_factory)

    assert sorted(collector.source for collector in aggregator.collectors) == sorted(
        ["routine", "task", "maintenance", "inspection", "repair", "emergency", "departure"]
    )
    assert aggregator.aggregate("1", START, END).ledger == []
