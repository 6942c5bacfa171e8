"""Data models for pipeline execution tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from jobscan.domain.models import Job
from jobscan.utils.timestamps import format_timestamp


@dataclass
class AdapterRunStats:
    """
    Statistics for a single adapter's execution within a pipeline run.

    Attributes:
        adapter_name: Registered adapter name
        fetched_count: Number of raw jobs returned by the adapter
        normalized_count: Number of jobs successfully normalized
        kept_count: Number of jobs left after the adapter's filters
        error_count: Number of errors encountered
        duration_seconds: Time spent on this adapter
        had_errors: Whether the adapter failed
        error_message: Error message if the adapter failed
        by_company: Kept jobs per company
        top_tags: Most common tags among the kept jobs
        error_types: Failure counts by exception or validation error type
    """

    adapter_name: str
    fetched_count: int = 0
    normalized_count: int = 0
    kept_count: int = 0
    error_count: int = 0
    duration_seconds: float = 0.0
    had_errors: bool = False
    error_message: Optional[str] = None
    by_company: Dict[str, int] = field(default_factory=dict)
    top_tags: List[Tuple[str, int]] = field(default_factory=list)
    error_types: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adapter": self.adapter_name,
            "fetched": self.fetched_count,
            "normalized": self.normalized_count,
            "kept": self.kept_count,
            "errors": self.error_count,
            "durationSeconds": round(self.duration_seconds, 3),
            "error": self.error_message,
            "errorTypes": dict(self.error_types),
            "byCompany": dict(self.by_company),
            "topTags": dict(self.top_tags),
        }


@dataclass
class AdapterRunError:
    """An adapter failure recorded without aborting the run."""

    adapter: str
    error_type: str
    message: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "adapter_error",
            "adapter": self.adapter,
            "errorType": self.error_type,
            "message": self.message,
            "timestamp": format_timestamp(self.timestamp),
        }


@dataclass
class JobSetStats:
    """
    Aggregate statistics over a set of jobs.

    The run fields (pipeline, executed_at, duration_ms, adapters, errors,
    adapter_runs) are filled by ScrapingPipeline; StatisticsAggregator
    leaves them empty.
    """

    total_jobs: int = 0
    by_company: Dict[str, int] = field(default_factory=dict)
    by_location: Dict[str, int] = field(default_factory=dict)
    by_department: Dict[str, int] = field(default_factory=dict)
    by_job_type: Dict[str, int] = field(default_factory=dict)
    unique_companies: int = 0
    unique_tags: int = 0
    top_tags: List[Tuple[str, int]] = field(default_factory=list)
    tags_by_category: Dict[str, List[str]] = field(default_factory=dict)
    tags_by_group: Dict[str, List[str]] = field(default_factory=dict)

    pipeline: Optional[str] = None
    executed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    adapters: Dict[str, int] = field(default_factory=dict)
    errors: List[AdapterRunError] = field(default_factory=list)
    adapter_runs: List[AdapterRunStats] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON report with camelCase keys."""
        report: Dict[str, Any] = {}

        if self.pipeline is not None:
            report["pipeline"] = self.pipeline
            report["executedAt"] = format_timestamp(self.executed_at) if self.executed_at else None
            report["totalDuration"] = self.duration_ms
            report["adapters"] = dict(self.adapters)
            report["adapterRuns"] = [run.to_dict() for run in self.adapter_runs]

        report["jobs"] = {
            "total": self.total_jobs,
            "byCompany": dict(self.by_company),
            "byLocation": dict(self.by_location),
            "byDepartment": dict(self.by_department),
            "byJobType": dict(self.by_job_type),
        }
        report["tags"] = {
            "total": self.unique_tags,
            "topTags": dict(self.top_tags),
            "byCategory": {k: list(v) for k, v in self.tags_by_category.items()},
            "byGroup": {k: list(v) for k, v in self.tags_by_group.items()},
        }
        report["uniqueCompanies"] = self.unique_companies
        report["uniqueTags"] = self.unique_tags
        report["errors"] = [error.to_dict() for error in self.errors]

        return report


@dataclass
class PipelineRunResult:
    """
    Aggregate results from a complete pipeline execution.

    Attributes:
        run_id: Identifier attached to every log record of the run
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        jobs: Consolidated and filtered jobs
        stats: Statistics over ``jobs`` plus run metadata
        adapter_stats: Per-adapter execution statistics
        errors: Adapter failures captured during the run
        total_duration_seconds: Total time for the entire run
        total_fetched: Raw jobs fetched across all adapters
        total_normalized: Jobs normalized across all adapters
        duplicates_removed: Jobs dropped by consolidation
        had_errors: Whether any adapter failed
        skipped: Whether the run was skipped because another run was active
    """

    run_id: str
    run_started_at: datetime
    run_finished_at: datetime
    jobs: List[Job] = field(default_factory=list)
    stats: Optional[JobSetStats] = None
    adapter_stats: List[AdapterRunStats] = field(default_factory=list)
    errors: List[AdapterRunError] = field(default_factory=list)
    total_duration_seconds: float = 0.0
    total_fetched: int = 0
    total_normalized: int = 0
    duplicates_removed: int = 0
    had_errors: bool = False
    skipped: bool = False

    def __post_init__(self):
        """Compute aggregate statistics from adapter stats if not already set."""
        if self.adapter_stats and self.total_fetched == 0:
            self.total_fetched = sum(s.fetched_count for s in self.adapter_stats)
            self.total_normalized = sum(s.normalized_count for s in self.adapter_stats)

        if self.errors or any(s.had_errors for s in self.adapter_stats):
            self.had_errors = True

        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    @property
    def total_jobs(self) -> int:
        return len(self.jobs)
