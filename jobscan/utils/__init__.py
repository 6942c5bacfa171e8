"""Utility functions for hashing and time handling."""

from .hashing import compute_job_id, compute_job_signature
from .timestamps import (
    days_from_now,
    ensure_utc,
    format_timestamp,
    is_within_days,
    parse_iso_datetime,
    utc_now,
)

__all__ = [
    "compute_job_id",
    "compute_job_signature",
    "days_from_now",
    "ensure_utc",
    "format_timestamp",
    "is_within_days",
    "parse_iso_datetime",
    "utc_now",
]
