"""Rollups over an aggregated ledger.

Everything here is a pure function of the ledger and the caller's notion of
"now", so the same inputs always produce the same numbers.
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

from buildingops.activity.model import WorkRecord
from buildingops.utils import ensure_aware
from . import model


def _rate(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return min(100.0, max(0.0, part / total * 100))


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(now: datetime) -> datetime:
    # Weeks start on Monday
    return start_of_day(now) - timedelta(days=now.weekday())


def start_of_month(now: datetime) -> datetime:
    return start_of_day(now).replace(day=1)


def window_for(period: model.RollupPeriod, reference_now: datetime) -> Tuple[datetime, datetime]:
    if period not in model.PERIOD_DAYS:
        raise ValueError(f"Unknown rollup period: {period}")
    now = ensure_aware(reference_now)
    return now - timedelta(days=model.PERIOD_DAYS[period]), now


def filter_window(ledger: Sequence[WorkRecord], start: datetime, end: datetime) -> List[WorkRecord]:
    """Records with ``start <= completed_at < end``."""
    start, end = ensure_aware(start), ensure_aware(end)
    return [record for record in ledger if start <= record.completed_at < end]


def _count_between(ledger: Sequence[WorkRecord], start: datetime, end: datetime) -> int:
    return sum(1 for record in ledger if start <= record.completed_at < end)


def compute_stats(ledger: Sequence[WorkRecord], reference_now: datetime) -> model.WorkCompletionStats:
    now = ensure_aware(reference_now)
    total = len(ledger)

    verified = sum(1 for record in ledger if record.verification_method)

    scores = [record.quality_score for record in ledger if record.quality_score]
    average_quality = sum(scores) / len(scores) if scores else 0.0

    by_work_type = Counter(record.work_type for record in ledger)
    by_worker = Counter(record.worker_id for record in ledger)
    by_location = Counter(record.location for record in ledger if record.location)

    return model.WorkCompletionStats(
        total_completions=total,
        completions_today=_count_between(ledger, start_of_day(now), now),
        completions_this_week=_count_between(ledger, start_of_week(now), now),
        completions_this_month=_count_between(ledger, start_of_month(now), now),
        verification_rate=_rate(verified, total),
        average_quality_score=average_quality,
        routine_completion_rate=_rate(by_work_type["routine"], total),
        task_completion_rate=_rate(by_work_type["task"], total),
        maintenance_completion_rate=_rate(by_work_type["maintenance"], total),
        by_worker=dict(by_worker),
        by_work_type=dict(by_work_type),
        by_location=dict(by_location),
    )


def building_history(aggregator, building_id: str, period: model.RollupPeriod,
                     reference_now: datetime) -> model.BuildingHistory:
    """Ledger plus rollups for one of the standard history periods."""
    start, end = window_for(period, reference_now)
    result = aggregator.aggregate(building_id, start, end)
    return model.BuildingHistory(
        building_id=building_id,
        period=period,
        ledger=result.ledger,
        warnings=result.warnings,
        stats=compute_stats(result.ledger, end),
    )
