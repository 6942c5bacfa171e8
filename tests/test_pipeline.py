"""Unit tests for the pipeline runner.

Covers ScrapingPipeline orchestration:
- Adapter registration rules
- Error isolation (one adapter failure doesn't stop the others)
- Deterministic consolidation order in sequential and parallel mode
- Per-adapter and global filters
- Lock behavior (prevents concurrent runs)
- Statistics, run metadata and sink output
"""

import threading
import time
from datetime import timedelta
from unittest.mock import Mock

import pytest

from jobscan.adapters.exceptions import AdapterHTTPError, AdapterTimeoutError
from jobscan.config.models import AdapterConfig, FilterCriteria, PipelineSettings
from jobscan.domain.models import RawJob
from jobscan.pipeline import (
    AdapterRunStats,
    JobConsolidator,
    PipelineRunResult,
    ScrapingPipeline,
    StatisticsAggregator,
)


# ============================================================================
# Fixtures
# ============================================================================


def make_adapter(raw_jobs=None, side_effect=None):
    adapter = Mock()
    if side_effect is not None:
        adapter.fetch_jobs.side_effect = side_effect
    else:
        adapter.fetch_jobs.return_value = raw_jobs or []
    return adapter


def registration(name, **kwargs):
    return AdapterConfig(name=name, type="lever", identifier=name, **kwargs)


@pytest.fixture
def sink():
    return Mock()


@pytest.fixture
def build_pipeline(normalizer, classifier, sink):
    def _build(**settings) -> ScrapingPipeline:
        return ScrapingPipeline(
            config=PipelineSettings(**settings),
            normalizer=normalizer,
            consolidator=JobConsolidator(),
            aggregator=StatisticsAggregator(classifier, top_n=5),
            sink=sink,
        )

    return _build


@pytest.fixture
def fintual_jobs(make_raw_job):
    return [
        make_raw_job(id="fin-1", title="Backend Engineer", description="Python y AWS"),
        make_raw_job(id="fin-2", title="Frontend Developer", description="React y TypeScript", location="Remote"),
    ]


@pytest.fixture
def betterfly_jobs(make_raw_job):
    return [
        make_raw_job(
            id="bf-1",
            title="Backend Engineer",
            description="Node y MongoDB",
            company="Fintual",
            job_url="https://jobs.example.com/other-url",
        ),
        make_raw_job(id="bf-2", title="Data Scientist", description="Python, Pandas", location="Lima, Perú"),
    ]


# ============================================================================
# Registration
# ============================================================================


class TestRegistration:
    def test_register_adapter(self, build_pipeline):
        pipeline = build_pipeline()

        pipeline.register_adapter("fintual", make_adapter(), registration("fintual"))

        assert [r.name for r in pipeline.registrations] == ["fintual"]

    def test_rejects_object_without_fetch_jobs(self, build_pipeline):
        pipeline = build_pipeline()

        with pytest.raises(TypeError):
            pipeline.register_adapter("broken", object(), registration("broken"))

    def test_rejects_duplicate_name(self, build_pipeline):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(), registration("fintual"))

        with pytest.raises(ValueError, match="already registered"):
            pipeline.register_adapter("fintual", make_adapter(), registration("fintual"))


# ============================================================================
# Run
# ============================================================================


class TestRun:
    def test_consolidates_in_registration_order(self, build_pipeline, fintual_jobs, betterfly_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual", company="Fintual"))
        pipeline.register_adapter("betterfly", make_adapter(betterfly_jobs), registration("betterfly"))

        result = pipeline.run()

        assert [job.id for job in result.jobs] == ["fin-1", "fin-2", "bf-2"]
        assert result.duplicates_removed == 1
        assert result.total_fetched == 4
        assert result.total_normalized == 4
        assert not result.had_errors
        assert result.jobs[0].metadata["consolidatedFrom"] == "fintual"

    def test_adapter_receives_its_registration(self, build_pipeline):
        adapter = make_adapter()
        config = registration("fintual")
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", adapter, config)

        pipeline.run()

        adapter.fetch_jobs.assert_called_once_with(config)

    def test_company_fallback_from_registration(self, build_pipeline, make_raw_job):
        pipeline = build_pipeline()
        pipeline.register_adapter(
            "fintual", make_adapter([make_raw_job(company=None)]), registration("fintual", company="Fintual")
        )

        result = pipeline.run()

        assert result.jobs[0].company == "Fintual"
        assert result.jobs[0].metadata["scraper"] == "fintual"

    def test_disabled_adapters_skipped(self, build_pipeline, fintual_jobs):
        disabled = make_adapter(fintual_jobs)
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual"))
        pipeline.register_adapter("off", disabled, registration("off", enabled=False))

        result = pipeline.run()

        disabled.fetch_jobs.assert_not_called()
        assert [s.adapter_name for s in result.adapter_stats] == ["fintual"]
        assert result.stats.adapters == {"total": 2, "executed": 1, "errors": 0}

    def test_adapter_error_isolated(self, build_pipeline, betterfly_jobs):
        error = AdapterHTTPError("HTTP 500: Server Error", status_code=500, url="https://api.lever.co")
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(side_effect=error), registration("fintual"))
        pipeline.register_adapter("betterfly", make_adapter(betterfly_jobs), registration("betterfly"))

        result = pipeline.run()

        assert result.had_errors
        assert [job.id for job in result.jobs] == ["bf-1", "bf-2"]
        assert len(result.errors) == 1
        assert result.errors[0].adapter == "fintual"
        assert result.errors[0].error_type == "AdapterHTTPError"

        failed = result.adapter_stats[0]
        assert failed.had_errors
        assert failed.error_count == 1
        assert "HTTP 500" in failed.error_message
        assert failed.error_types == {"AdapterHTTPError": 1}
        assert result.adapter_stats[1].error_types == {}
        assert result.stats.adapters == {"total": 2, "executed": 1, "errors": 1}
        assert result.stats.errors == result.errors

    def test_unexpected_exception_isolated(self, build_pipeline, fintual_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("broken", make_adapter(side_effect=RuntimeError("boom")), registration("broken"))
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual"))

        result = pipeline.run()

        assert result.errors[0].error_type == "RuntimeError"
        assert result.errors[0].message == "boom"
        assert len(result.jobs) == 2

    def test_all_adapters_fail(self, build_pipeline, sink):
        timeout = AdapterTimeoutError("timed out", url="https://api.lever.co", timeout=30)
        pipeline = build_pipeline()
        pipeline.register_adapter("a", make_adapter(side_effect=timeout), registration("a"))
        pipeline.register_adapter("b", make_adapter(side_effect=timeout), registration("b"))

        result = pipeline.run()

        assert result.jobs == []
        assert len(result.errors) == 2
        sink.write_jobs.assert_called_once_with([])

    def test_no_adapters(self, build_pipeline):
        result = build_pipeline().run()

        assert result.jobs == []
        assert result.stats.total_jobs == 0
        assert not result.had_errors


class TestParallel:
    def test_parallel_matches_sequential_order(self, build_pipeline, fintual_jobs, betterfly_jobs):
        def slow_fetch(config):
            time.sleep(0.2)
            return fintual_jobs

        pipeline = build_pipeline(parallel=True, max_concurrent=2)
        pipeline.register_adapter("fintual", make_adapter(side_effect=slow_fetch), registration("fintual"))
        pipeline.register_adapter("betterfly", make_adapter(betterfly_jobs), registration("betterfly"))

        result = pipeline.run()

        # fintual finishes last but still wins the duplicate
        assert [job.id for job in result.jobs] == ["fin-1", "fin-2", "bf-2"]
        assert [s.adapter_name for s in result.adapter_stats] == ["fintual", "betterfly"]

    def test_parallel_error_isolated(self, build_pipeline, betterfly_jobs):
        pipeline = build_pipeline(parallel=True)
        pipeline.register_adapter("broken", make_adapter(side_effect=RuntimeError("boom")), registration("broken"))
        pipeline.register_adapter("betterfly", make_adapter(betterfly_jobs), registration("betterfly"))

        result = pipeline.run()

        assert len(result.errors) == 1
        assert len(result.jobs) == 2


class TestFilters:
    def test_adapter_filters(self, build_pipeline, betterfly_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter(
            "betterfly",
            make_adapter(betterfly_jobs),
            registration("betterfly", filters=FilterCriteria(locations=["chile"])),
        )

        result = pipeline.run()

        assert [job.id for job in result.jobs] == ["bf-1"]
        assert result.adapter_stats[0].normalized_count == 2
        assert result.adapter_stats[0].kept_count == 1

    def test_adapter_filters_override_global_dimension(self, build_pipeline, betterfly_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter(
            "betterfly",
            make_adapter(betterfly_jobs),
            registration("betterfly", filters=FilterCriteria(locations=["lima"])),
        )

        result = pipeline.run({"locations": ["chile"]})

        # Adapter keeps Lima; the global filter then drops it after consolidation
        assert result.adapter_stats[0].kept_count == 1
        assert result.jobs == []

    def test_global_filters_dict(self, build_pipeline, fintual_jobs, betterfly_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual"))
        pipeline.register_adapter("betterfly", make_adapter(betterfly_jobs), registration("betterfly"))

        result = pipeline.run({"requiredTags": ["Python"], "excludeTags": ["pandas"]})

        assert [job.id for job in result.jobs] == ["fin-1"]

    def test_global_filter_tags_resolved(self, build_pipeline, fintual_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual"))

        result = pipeline.run(FilterCriteria(required_tags=["ts"]))

        assert [job.id for job in result.jobs] == ["fin-2"]

    def test_max_age(self, build_pipeline, make_raw_job, scraped_at):
        old = make_raw_job(id="old", title="Old", published_date=scraped_at - timedelta(days=400))
        recent = make_raw_job(id="new", title="New")
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter([old, recent]), registration("fintual"))

        result = pipeline.run({"maxAgeDays": 365 * 5})

        assert {job.id for job in result.jobs} == {"old", "new"}


class TestOutput:
    def test_stats_with_run_metadata(self, build_pipeline, fintual_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual", company="Fintual"))

        result = pipeline.run()
        stats = result.stats

        assert stats.pipeline == "ScrapingPipeline"
        assert stats.executed_at == result.run_finished_at
        assert stats.duration_ms >= 0
        assert stats.total_jobs == 2
        assert stats.by_company == {"Fintual": 2}
        assert ("python", 1) in stats.top_tags

    def test_per_adapter_breakdown(self, build_pipeline, fintual_jobs, betterfly_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual", company="Fintual"))
        pipeline.register_adapter("betterfly", make_adapter(betterfly_jobs), registration("betterfly"))

        result = pipeline.run()
        fintual, betterfly = result.adapter_stats

        assert fintual.by_company == {"Fintual": 2}
        assert ("python", 1) in fintual.top_tags
        assert ("react", 1) in fintual.top_tags
        assert betterfly.by_company == {"Fintual": 1, "betterfly": 1}
        assert ("nodejs", 1) in betterfly.top_tags
        assert ("nodejs", 1) not in fintual.top_tags

    def test_stats_report_lists_adapter_runs(self, build_pipeline, fintual_jobs):
        error = AdapterTimeoutError("Request timed out", url="https://api.lever.co")
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual", company="Fintual"))
        pipeline.register_adapter("broken", make_adapter(side_effect=error), registration("broken"))

        report = pipeline.run().stats.to_dict()

        runs = report["adapterRuns"]
        assert [run["adapter"] for run in runs] == ["fintual", "broken"]
        assert runs[0]["byCompany"] == {"Fintual": 2}
        assert runs[0]["topTags"]["python"] == 1
        assert runs[1]["errorTypes"] == {"AdapterTimeoutError": 1}
        assert runs[1]["topTags"] == {}

    def test_sink_receives_jobs_and_stats(self, build_pipeline, sink, fintual_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual"))

        result = pipeline.run()

        sink.write_jobs.assert_called_once_with(result.jobs)
        sink.write_stats.assert_called_once_with(result.stats)

    def test_without_sink(self, normalizer, classifier, fintual_jobs):
        pipeline = ScrapingPipeline(
            config=PipelineSettings(),
            normalizer=normalizer,
            consolidator=JobConsolidator(),
            aggregator=StatisticsAggregator(classifier),
        )
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual"))

        assert len(pipeline.run().jobs) == 2


class TestConcurrency:
    def test_concurrent_run_is_skipped(self, build_pipeline):
        started = threading.Event()
        release = threading.Event()

        def blocking_fetch(config):
            started.set()
            release.wait(timeout=5)
            return []

        pipeline = build_pipeline()
        pipeline.register_adapter("slow", make_adapter(side_effect=blocking_fetch), registration("slow"))

        first = {}
        thread = threading.Thread(target=lambda: first.setdefault("result", pipeline.run()))
        thread.start()
        assert started.wait(timeout=5)

        second = pipeline.run()
        assert pipeline.status()["is_running"]

        release.set()
        thread.join(timeout=5)

        assert second.skipped
        assert second.jobs == []
        assert not first["result"].skipped

    def test_status(self, build_pipeline, fintual_jobs):
        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", make_adapter(fintual_jobs), registration("fintual"))
        pipeline.register_adapter("off", make_adapter(), registration("off", enabled=False))

        assert pipeline.status()["last_run_id"] is None

        result = pipeline.run()
        status = pipeline.status()

        assert status["adapters"] == 2
        assert status["enabled"] == 1
        assert status["is_running"] is False
        assert status["last_run_id"] == result.run_id
        assert status["last_run_jobs"] == 2
        assert status["last_run_errors"] == 0

    def test_close_releases_each_adapter_once(self, build_pipeline):
        shared = make_adapter()
        other = make_adapter()

        class NoClose:
            def fetch_jobs(self, registration):
                return []

        pipeline = build_pipeline()
        pipeline.register_adapter("fintual", shared, registration("fintual"))
        pipeline.register_adapter("betterfly", shared, registration("betterfly"))
        pipeline.register_adapter("acme", other, registration("acme", enabled=False))
        pipeline.register_adapter("plain", NoClose(), registration("plain"))

        pipeline.close()

        shared.close.assert_called_once_with()
        other.close.assert_called_once_with()


# ============================================================================
# Result models
# ============================================================================


class TestPipelineRunResult:
    def test_aggregates_adapter_stats(self, scraped_at):
        result = PipelineRunResult(
            run_id="abc",
            run_started_at=scraped_at,
            run_finished_at=scraped_at + timedelta(seconds=3),
            adapter_stats=[
                AdapterRunStats("a", fetched_count=5, normalized_count=4),
                AdapterRunStats("b", fetched_count=2, normalized_count=2, had_errors=True),
            ],
        )

        assert result.total_fetched == 7
        assert result.total_normalized == 6
        assert result.had_errors
        assert result.total_duration_seconds == 3.0
        assert result.total_jobs == 0

    def test_adapter_stats_to_dict(self):
        stats = AdapterRunStats("fintual", fetched_count=3, normalized_count=3, kept_count=2, duration_seconds=1.23456)

        assert stats.to_dict() == {
            "adapter": "fintual",
            "fetched": 3,
            "normalized": 3,
            "kept": 2,
            "errors": 0,
            "durationSeconds": 1.235,
            "error": None,
            "errorTypes": {},
            "byCompany": {},
            "topTags": {},
        }


def test_raw_jobs_fixture_is_valid(fintual_jobs):
    assert all(isinstance(job, RawJob) for job in fintual_jobs)
