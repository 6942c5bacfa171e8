"""Shared fixtures for jobscan tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from jobscan.domain.models import Job, RawJob
from jobscan.normalization import JobNormalizer
from jobscan.tags import TagClassifier, TagExtractor, default_catalog

FIXTURES_DIR = Path(__file__).parent / "fixtures"

SCRAPED_AT = datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def scraped_at() -> datetime:
    """Fixed scrape time so derived dates are deterministic."""
    return SCRAPED_AT


@pytest.fixture(scope="session")
def catalog():
    return default_catalog()


@pytest.fixture(scope="session")
def extractor(catalog):
    return TagExtractor(catalog)


@pytest.fixture(scope="session")
def classifier(catalog):
    return TagClassifier(catalog)


@pytest.fixture
def normalizer(extractor, classifier, scraped_at):
    return JobNormalizer(extractor, classifier, scraped_at=scraped_at)


@pytest.fixture
def make_job():
    """Factory for normalized jobs with sensible defaults."""

    def _make_job(**overrides) -> Job:
        fields = {
            "id": "job-1",
            "title": "Backend Engineer",
            "description": "Python y AWS",
            "company": "Acme",
            "location": "Santiago, Chile",
            "job_type": "Full-time",
            "department": "Engineering",
            "published_date": SCRAPED_AT - timedelta(days=1),
            "expires_at": SCRAPED_AT + timedelta(days=29),
            "job_url": "https://jobs.example.com/1",
            "tags": ["python", "aws"],
            "metadata": {"scraper": "acme", "source": "Acme"},
        }
        fields.update(overrides)
        return Job(**fields)

    return _make_job


@pytest.fixture
def make_raw_job():
    """Factory for adapter output with sensible defaults."""

    def _make_raw_job(**overrides) -> RawJob:
        fields = {
            "id": "raw-1",
            "title": "Backend Engineer",
            "description": "Buscamos desarrollador con experiencia en Python y AWS",
            "location": "Santiago, Chile",
            "job_url": "https://jobs.example.com/raw-1",
        }
        fields.update(overrides)
        return RawJob(**fields)

    return _make_raw_job
