import logging
from buildingops.settings import LOG_LEVEL
from buildingops.database.core import SessionLocal, init_db
from buildingops.activity.model import WORK_TYPES
from buildingops.activity.collectors import WorkCompletionCollector, InspectionCollector
from buildingops.activity.service import ActivityLedgerAggregator


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_aggregator(session_factory=SessionLocal, extra_collectors=(), **kwargs) -> ActivityLedgerAggregator:
    # Inspections come from the checklist tables, everything else from work_completions
    collectors = [
        WorkCompletionCollector(work_type, session_factory)
        for work_type in WORK_TYPES
        if work_type != "inspection"
    ]
    collectors.append(InspectionCollector(session_factory))
    collectors.extend(extra_collectors)
    return ActivityLedgerAggregator(collectors, **kwargs)


def on_startup(session_factory=SessionLocal) -> ActivityLedgerAggregator:
    """Create tables and build the shared services once per process."""
    configure_logging()
    init_db(session_factory.kw["bind"])
    aggregator = create_aggregator(session_factory)
    logging.info(f"Verification engine ready with {len(aggregator.collectors)} sources")
    return aggregator
