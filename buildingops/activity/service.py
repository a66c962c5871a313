import logging
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from pydantic import ValidationError

from buildingops.settings import AGGREGATION_SOURCE_TIMEOUT
from .collectors import SourceCollector
from .mapping import mapper_for
from .model import AggregationResult, SourceError, WorkRecord


def sort_ledger(records: Iterable[WorkRecord]) -> List[WorkRecord]:
    """Newest first; equal timestamps ordered by work type, then id."""
    ordered = sorted(records, key=lambda record: (record.work_type, record.id))
    return sorted(ordered, key=lambda record: record.completed_at, reverse=True)


class ActivityLedgerAggregator:

    def __init__(
        self,
        collectors: Sequence[SourceCollector],
        source_timeout: float = AGGREGATION_SOURCE_TIMEOUT,
    ):
        sources = [collector.source for collector in collectors]
        duplicates = {source for source in sources if sources.count(source) > 1}
        if duplicates:
            raise ValueError(f"Duplicate collector sources: {sorted(duplicates)}")

        self.collectors = list(collectors)
        self.source_timeout = source_timeout

    def aggregate(
        self,
        building_id: str,
        start: datetime,
        end: datetime,
        work_types: Optional[Sequence[str]] = None,
        worker_id: Optional[str] = None,
    ) -> AggregationResult:
        warnings: List[SourceError] = []
        records: List[WorkRecord] = []

        if not self.collectors:
            return AggregationResult()

        # One thread per source: each source runs for the whole timeout
        executor = ThreadPoolExecutor(
            max_workers=len(self.collectors),
            thread_name_prefix="ledger-source",
        )
        try:
            futures = {
                executor.submit(collector.list_items, building_id, start, end): collector
                for collector in self.collectors
            }
            done, not_done = wait(futures, timeout=self.source_timeout)

            for future in not_done:
                source = futures[future].source
                future.cancel()
                logging.warning(f"Source '{source}' timed out after {self.source_timeout}s for building {building_id}")
                warnings.append(SourceError(source=source, message=f"timed out after {self.source_timeout}s"))

            # Walk in collector order so warnings come out deterministically
            for future, collector in futures.items():
                if future not in done:
                    continue
                try:
                    raw_items = future.result()
                except Exception as e:
                    logging.error(f"Source '{collector.source}' failed for building {building_id}. Error: {str(e)}")
                    warnings.append(SourceError(source=collector.source, message=str(e)))
                    continue

                records.extend(self._normalize(collector.source, raw_items or [], warnings))
        finally:
            # Never block on a hung collector
            executor.shutdown(wait=False, cancel_futures=True)

        ledger = self._merge(records)

        if work_types:
            ledger = [record for record in ledger if record.work_type in work_types]
        if worker_id:
            ledger = [record for record in ledger if record.worker_id == worker_id]

        logging.info(
            f"Aggregated {len(ledger)} records for building {building_id} "
            f"from {len(self.collectors)} sources ({len(warnings)} warnings)"
        )
        return AggregationResult(ledger=ledger, warnings=warnings)

    def _normalize(self, source: str, raw_items, warnings: List[SourceError]) -> List[WorkRecord]:
        mapper = mapper_for(source)
        normalized = []
        for raw in raw_items:
            try:
                record = mapper(source, raw)
            except ValidationError as e:
                item_id = raw.get("id") if isinstance(raw, dict) else getattr(raw, "id", None)
                logging.warning(f"Skipping invalid item {item_id} from source '{source}': {e.error_count()} errors")
                warnings.append(SourceError(
                    source=source,
                    message=f"invalid item: {e.errors()[0]['msg']}",
                    item_id=str(item_id) if item_id is not None else None,
                ))
                continue

            if record is not None:
                normalized.append(record)
        return normalized

    @staticmethod
    def _merge(records: List[WorkRecord]) -> List[WorkRecord]:
        seen = set()
        unique = []
        for record in records:
            if record.id in seen:
                continue
            seen.add(record.id)
            unique.append(record)
        return sort_ledger(unique)
