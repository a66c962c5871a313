from typing import Dict, List, Literal
from pydantic import BaseModel

from buildingops.activity.model import SourceError, WorkRecord

RollupPeriod = Literal["week", "month", "quarter", "year"]

PERIOD_DAYS: Dict[str, int] = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}


class WorkCompletionStats(BaseModel):
    total_completions: int = 0
    completions_today: int = 0
    completions_this_week: int = 0
    completions_this_month: int = 0
    verification_rate: float = 0.0
    average_quality_score: float = 0.0
    routine_completion_rate: float = 0.0
    task_completion_rate: float = 0.0
    maintenance_completion_rate: float = 0.0
    by_worker: Dict[str, int] = {}
    by_work_type: Dict[str, int] = {}
    by_location: Dict[str, int] = {}


class BuildingHistory(BaseModel):
    building_id: str
    period: RollupPeriod
    ledger: List[WorkRecord] = []
    warnings: List[SourceError] = []
    stats: WorkCompletionStats
