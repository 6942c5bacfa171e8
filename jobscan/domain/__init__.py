"""Domain models for job postings."""

from .models import Job, RawJob

__all__ = ["Job", "RawJob"]
