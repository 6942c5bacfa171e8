"""Consolidation, filtering, statistics and orchestration of a scraping run."""

from .consolidator import PIPELINE_NAME, JobConsolidator, job_signature
from .filters import apply_filters, coerce_filters, find_tag_conflicts, matches_filters
from .models import AdapterRunError, AdapterRunStats, JobSetStats, PipelineRunResult
from .runner import AdapterRegistration, ScrapingPipeline
from .sinks import JobSink, JsonFileSink
from .stats import UNSPECIFIED, StatisticsAggregator

__all__ = [
    "AdapterRegistration",
    "AdapterRunError",
    "AdapterRunStats",
    "JobConsolidator",
    "JobSetStats",
    "JobSink",
    "JsonFileSink",
    "PIPELINE_NAME",
    "PipelineRunResult",
    "ScrapingPipeline",
    "StatisticsAggregator",
    "UNSPECIFIED",
    "apply_filters",
    "coerce_filters",
    "find_tag_conflicts",
    "job_signature",
    "matches_filters",
]
