"""Core domain models for job postings.

- RawJob: record produced by an adapter, before tagging and defaults
- Job: normalized posting flowing through consolidation, filtering and stats
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jobscan.utils.timestamps import ensure_utc, parse_iso_datetime


def _parse_optional_datetime(v: Any) -> Optional[datetime]:
    if v is None or v == "":
        return None
    return parse_iso_datetime(v)


class RawJob(BaseModel):
    """Adapter output before normalization.

    Every field is optional; the normalizer fills defaults. Site-specific
    fields go into ``extra`` and end up in ``Job.metadata``.
    """

    id: Optional[str] = Field(None, description="Adapter-assigned job id")
    title: str = Field("", description="Job title")
    description: str = Field("", description="Plain-text description")
    requirements: str = Field("", description="Requirements section, if the site separates it")
    company: Optional[str] = Field(None, description="Company name (defaults to the adapter's company)")
    location: str = Field("", description="Job location")
    job_type: Optional[str] = Field(None, description="Full-time, Part-time, ...")
    department: str = Field("", description="Department or team")
    published_date: Optional[datetime] = Field(None, description="Publication time (UTC)")
    expires_at: Optional[datetime] = Field(None, description="Expiry time (UTC)")
    job_url: str = Field("", description="Link to the posting")
    source: Optional[str] = Field(None, description="Source label for provenance")
    extra: Dict[str, Any] = Field(default_factory=dict, description="Adapter-specific fields")

    @field_validator("title", "description", "requirements", "location", "department", "job_url", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        """Coerce missing values to '' and strip whitespace."""
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v).strip()

    @field_validator("published_date", "expires_at", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Optional[datetime]:
        """Accept ISO strings or datetimes; unparseable values become None."""
        return _parse_optional_datetime(v)


class Job(BaseModel):
    """Normalized job posting.

    Serialized with camelCase keys (jobType, publishedDate, expiresAt, jobUrl,
    categorizedTags); downstream tooling reads those names. ``metadata`` is
    the only free-form part of the schema.
    """

    id: str = Field(..., description="Adapter-assigned or derived id (not globally unique)")
    title: str = Field("", description="Job title")
    description: str = Field("", description="Plain-text description")
    company: str = Field("", description="Company name")
    location: str = Field("", description="Job location")
    job_type: str = Field("Full-time", alias="jobType")
    department: str = Field("", description="Department or team")
    published_date: datetime = Field(..., alias="publishedDate")
    expires_at: datetime = Field(..., alias="expiresAt")
    job_url: str = Field("", alias="jobUrl")
    tags: List[str] = Field(default_factory=list, description="Canonical lowercase tags")
    categorized_tags: Dict[str, List[str]] = Field(
        default_factory=dict, alias="categorizedTags"
    )
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Scrape provenance")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "a3f2e1d9c8b7a6f5",
                "title": "Backend Engineer",
                "description": "Buscamos desarrollador con experiencia en Python y AWS",
                "company": "Acme",
                "location": "Santiago, Chile",
                "jobType": "Full-time",
                "department": "Devs",
                "publishedDate": "2025-11-01T12:00:00Z",
                "expiresAt": "2025-12-01T12:00:00Z",
                "jobUrl": "https://jobs.lever.co/acme/123",
                "tags": ["python", "aws"],
                "categorizedTags": {"languages": ["python"], "cloud": ["aws"]},
                "metadata": {"scraper": "lever", "source": "acme"},
            }
        },
    )

    @field_validator("tags", mode="before")
    @classmethod
    def dedupe_tags(cls, v: Any) -> List[str]:
        """Lowercase tags and drop duplicates, keeping first occurrence."""
        if not v:
            return []
        seen: List[str] = []
        for tag in v:
            if not isinstance(tag, str):
                continue
            cleaned = tag.strip().lower()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return seen

    @field_validator("published_date", "expires_at", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        parsed = _parse_optional_datetime(v)
        return parsed if parsed is not None else v

    @field_validator("published_date", "expires_at")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def has_tag(self, tag: str) -> bool:
        return tag.lower() in self.tags

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict using the public camelCase field names."""
        return self.model_dump(by_alias=True, mode="json")
