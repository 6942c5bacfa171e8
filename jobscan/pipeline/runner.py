"""Pipeline orchestration: fetch, normalize, consolidate, filter, report."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from jobscan.adapters.exceptions import AdapterError
from jobscan.config.models import AdapterConfig, FilterCriteria, PipelineSettings
from jobscan.domain.models import Job
from jobscan.logging import get_logger
from jobscan.logging.context import log_context
from jobscan.normalization.service import JobNormalizer
from jobscan.utils.timestamps import utc_now

from .consolidator import JobConsolidator
from .filters import FilterInput, apply_filters, coerce_filters
from .models import AdapterRunError, AdapterRunStats, PipelineRunResult
from .sinks import JobSink
from .stats import StatisticsAggregator

logger = get_logger(__name__, component="pipeline")


@dataclass
class AdapterRegistration:
    """An adapter instance plus the configuration it runs with."""

    name: str
    adapter: Any
    config: AdapterConfig


_AdapterOutcome = Tuple[AdapterRunStats, List[Job], Optional[AdapterRunError]]


class ScrapingPipeline:
    """
    Runs every registered adapter and merges their output into one job set.

    Adapters run sequentially or on a bounded thread pool. Consolidation
    waits for all of them and always visits results in registration order,
    so the output does not depend on which adapter finished first.
    """

    def __init__(
        self,
        config: PipelineSettings,
        normalizer: JobNormalizer,
        consolidator: JobConsolidator,
        aggregator: StatisticsAggregator,
        sink: Optional[JobSink] = None,
    ):
        """
        Args:
            config: Execution and output settings
            normalizer: Converts adapter output into tagged jobs
            consolidator: Deduplicates jobs across adapters
            aggregator: Computes statistics for the final job set
            sink: Destination for jobs and statistics (None = keep in memory)
        """
        self.config = config
        self.normalizer = normalizer
        self.consolidator = consolidator
        self.aggregator = aggregator
        self.sink = sink

        self._registrations: Dict[str, AdapterRegistration] = {}
        self._lock = threading.Lock()
        self._last_result: Optional[PipelineRunResult] = None

    @property
    def classifier(self):
        return self.aggregator.classifier

    def register_adapter(self, name: str, adapter: Any, registration: AdapterConfig) -> None:
        """Register an adapter under ``name``.

        Raises:
            TypeError: If ``adapter`` has no callable fetch_jobs()
            ValueError: If ``name`` is already registered
        """
        if adapter is None or not callable(getattr(adapter, "fetch_jobs", None)):
            raise TypeError(f"Adapter {name} must provide a fetch_jobs() method")
        if name in self._registrations:
            raise ValueError(f"Adapter {name} is already registered")

        self._registrations[name] = AdapterRegistration(name=name, adapter=adapter, config=registration)

        logger.info(
            f"Adapter '{name}' registered",
            extra={"event": "pipeline.adapter.registered", "adapter": name, "enabled": registration.enabled},
        )

    @property
    def registrations(self) -> List[AdapterRegistration]:
        return list(self._registrations.values())

    def run(self, global_filters: FilterInput = None) -> PipelineRunResult:
        """
        Execute one complete run.

        Steps:
        1. Run enabled adapters (sequentially or in parallel)
        2. Normalize each adapter's jobs and apply its filters
        3. Consolidate in registration order and apply global filters
        4. Compute statistics with run metadata
        5. Hand jobs and statistics to the sink

        Adapter failures are recorded in the result and never abort the run.
        A run requested while another is active is skipped.

        Args:
            global_filters: FilterCriteria or camelCase/snake_case dict

        Returns:
            PipelineRunResult with jobs, stats and per-adapter results
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Pipeline run skipped: previous run still in progress",
                    extra={"event": "pipeline.run.skipped", "reason": "lock_held"},
                )
            return PipelineRunResult(
                run_id=run_id,
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                skipped=True,
            )

        try:
            with log_context(run_id=run_id):
                result = self._execute(run_id, run_started_at, coerce_filters(global_filters))
                self._last_result = result
                return result
        finally:
            self._lock.release()

    def _execute(self, run_id: str, run_started_at, global_filters: FilterCriteria) -> PipelineRunResult:
        started = time.monotonic()
        enabled = [r for r in self._registrations.values() if r.config.enabled]

        logger.info(
            f"Pipeline run started with {len(enabled)} adapters",
            extra={
                "event": "pipeline.run.started",
                "enabled_adapter_count": len(enabled),
                "disabled_adapter_count": len(self._registrations) - len(enabled),
                "parallel": self.config.parallel,
            },
        )

        # Step 1-2: Fetch, normalize and filter per adapter
        if self.config.parallel and len(enabled) > 1:
            outcomes = self._run_parallel(enabled, global_filters, run_id)
        else:
            outcomes = [self._run_adapter(r, global_filters, run_id) for r in enabled]

        adapter_stats = [stats for stats, _, _ in outcomes]
        errors = [error for _, _, error in outcomes if error is not None]
        per_adapter = {stats.adapter_name: jobs for stats, jobs, error in outcomes if error is None}

        # Step 3: Consolidate and apply global filters
        consolidated = self.consolidator.consolidate(per_adapter)
        duplicates = sum(len(jobs) for jobs in per_adapter.values()) - len(consolidated)
        jobs = apply_filters(consolidated, global_filters, self.classifier)

        # Step 4: Statistics with run metadata
        run_finished_at = utc_now()
        stats = self.aggregator.compute_stats(jobs)
        stats.pipeline = self.consolidator.pipeline_name
        stats.executed_at = run_finished_at
        stats.duration_ms = int((time.monotonic() - started) * 1000)
        stats.adapters = {
            "total": len(self._registrations),
            "executed": len(per_adapter),
            "errors": len(errors),
        }
        stats.errors = errors
        stats.adapter_runs = adapter_stats

        # Step 5: Output
        if self.sink is not None:
            self.sink.write_jobs(jobs)
            self.sink.write_stats(stats)

        result = PipelineRunResult(
            run_id=run_id,
            run_started_at=run_started_at,
            run_finished_at=run_finished_at,
            jobs=jobs,
            stats=stats,
            adapter_stats=adapter_stats,
            errors=errors,
            duplicates_removed=duplicates,
        )

        logger.info(
            "Pipeline run completed",
            extra={
                "event": "pipeline.run.completed",
                "duration_ms": stats.duration_ms,
                "total_fetched": result.total_fetched,
                "total_normalized": result.total_normalized,
                "duplicates_removed": duplicates,
                "total_jobs": result.total_jobs,
                "unique_companies": stats.unique_companies,
                "unique_tags": stats.unique_tags,
                "adapter_errors": len(errors),
            },
        )

        return result

    def _run_parallel(
        self, enabled: List[AdapterRegistration], global_filters: FilterCriteria, run_id: str
    ) -> List[_AdapterOutcome]:
        with ThreadPoolExecutor(
            max_workers=self.config.max_concurrent, thread_name_prefix="adapter"
        ) as executor:
            futures = [
                executor.submit(self._run_adapter, registration, global_filters, run_id)
                for registration in enabled
            ]
            # Results are read in submission order once every future is done
            return [future.result() for future in futures]

    def _run_adapter(
        self, registration: AdapterRegistration, global_filters: FilterCriteria, run_id: str
    ) -> _AdapterOutcome:
        """Fetch, normalize and filter one adapter's jobs.

        Never raises: failures come back as an AdapterRunError.
        """
        stats = AdapterRunStats(adapter_name=registration.name)
        jobs: List[Job] = []
        error: Optional[AdapterRunError] = None
        started = time.monotonic()

        with log_context(run_id=run_id, adapter=registration.name):
            logger.info(
                f"Running adapter: {registration.name}",
                extra={"event": "adapter.run.started"},
            )

            try:
                raw_jobs = registration.adapter.fetch_jobs(registration.config)
                stats.fetched_count = len(raw_jobs)

                jobs = self.normalizer.normalize_batch(
                    raw_jobs, registration.name, company=registration.config.company_name
                )
                stats.normalized_count = len(jobs)
                stats.error_count = stats.fetched_count - stats.normalized_count
                if stats.error_count:
                    stats.error_types["ValidationError"] = stats.error_count

                adapter_filters = global_filters.merged_with(registration.config.filters)
                jobs = apply_filters(jobs, adapter_filters, self.classifier)
                stats.kept_count = len(jobs)

                summary = self.aggregator.compute_stats(jobs)
                stats.by_company = summary.by_company
                stats.top_tags = summary.top_tags

                logger.info(
                    f"{registration.name}: {stats.kept_count} jobs",
                    extra={
                        "event": "adapter.run.completed",
                        "fetched": stats.fetched_count,
                        "normalized": stats.normalized_count,
                        "kept": stats.kept_count,
                    },
                )

            except AdapterError as e:
                error = self._record_failure(stats, registration, e)
                logger.error(
                    f"Adapter error for {registration.name}: {e}",
                    extra={"event": "adapter.run.failed", "error_type": type(e).__name__},
                )
                jobs = []

            except Exception as e:
                error = self._record_failure(stats, registration, e)
                logger.error(
                    f"Unexpected error running {registration.name}: {e}",
                    extra={"event": "adapter.run.failed", "error_type": type(e).__name__},
                    exc_info=True,
                )
                jobs = []

            finally:
                stats.duration_seconds = time.monotonic() - started

        return stats, jobs, error

    @staticmethod
    def _record_failure(stats: AdapterRunStats, registration: AdapterRegistration, exc: Exception) -> AdapterRunError:
        stats.had_errors = True
        stats.error_count += 1
        error_type = type(exc).__name__
        stats.error_types[error_type] = stats.error_types.get(error_type, 0) + 1
        stats.error_message = str(exc)
        return AdapterRunError(
            adapter=registration.name,
            error_type=error_type,
            message=str(exc),
            timestamp=utc_now(),
        )

    def status(self) -> Dict[str, Any]:
        """Registration counts and a summary of the last run."""
        last = self._last_result
        return {
            "adapters": len(self._registrations),
            "enabled": sum(1 for r in self._registrations.values() if r.config.enabled),
            "is_running": self._lock.locked(),
            "last_run_id": last.run_id if last else None,
            "last_run_at": last.run_finished_at if last else None,
            "last_run_jobs": last.total_jobs if last else None,
            "last_run_errors": len(last.errors) if last else None,
        }

    def close(self) -> None:
        """Release adapter resources such as HTTP sessions.

        Adapters shared by several registrations are closed once; objects
        without a ``close`` method are skipped.
        """
        closed = set()
        for registration in self._registrations.values():
            adapter = registration.adapter
            close = getattr(adapter, "close", None)
            if id(adapter) in closed or not callable(close):
                continue
            closed.add(id(adapter))
            close()
        logger.debug(
            "Adapters closed",
            extra={"event": "pipeline.adapters.closed", "closed_count": len(closed)},
        )
