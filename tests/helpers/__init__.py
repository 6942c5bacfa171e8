"""Test helpers for jobscan tests."""

from .fixture_adapter import FixtureAdapter, load_fixture_jobs

__all__ = ["FixtureAdapter", "load_fixture_jobs"]
