"""Conversion of adapter output into tagged Job models."""

from .service import DEFAULT_EXPIRY_DAYS, DEFAULT_JOB_TYPE, JobNormalizer

__all__ = ["DEFAULT_EXPIRY_DAYS", "DEFAULT_JOB_TYPE", "JobNormalizer"]
