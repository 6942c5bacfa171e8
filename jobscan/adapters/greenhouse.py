"""Greenhouse job board API adapter."""

from typing import Any, Dict, List, Optional

from jobscan.config.models import AdapterConfig
from jobscan.domain.models import RawJob
from jobscan.logging import get_logger

from .base import BaseAdapter
from .exceptions import AdapterHTTPError, AdapterResponseError

logger = get_logger(__name__, component="adapter")

# Greenhouse custom metadata fields worth keeping
EMPLOYMENT_TYPE_FIELDS = ("Employment Type", "Job Type")
LOCATION_FIELDS = ("Job Posting Location",)


def _metadata_value(metadata: List[Dict[str, Any]], names) -> Optional[str]:
    for item in metadata or []:
        if item.get("name") in names and item.get("value"):
            value = item["value"]
            if isinstance(value, list):
                return ", ".join(str(v) for v in value if v)
            return str(value)
    return None


class GreenhouseAdapter(BaseAdapter):
    """Adapter for companies publishing through Greenhouse job boards.

    API Details:
        Endpoint: https://boards-api.greenhouse.io/v1/boards/{identifier}/jobs?content=true
        Authentication: None (public)
        Response: JSON object with a 'jobs' array
    """

    ADAPTER_NAME = "greenhouse"
    API_BASE_URL = "https://boards-api.greenhouse.io/v1/boards"

    def fetch_jobs(self, registration: AdapterConfig) -> List[RawJob]:
        url = f"{self.API_BASE_URL}/{registration.identifier}/jobs"

        logger.info(
            f"Fetching jobs from Greenhouse for {registration.company_name}",
            extra={"event": "adapter.fetch.started", "adapter": registration.name, "url": url},
        )

        try:
            response = self._make_request(url, params={"content": "true"})
        except AdapterHTTPError as e:
            if e.status_code == 404:
                logger.warning(
                    f"Greenhouse board not found: {registration.identifier}",
                    extra={"event": "adapter.fetch.not_found", "adapter": registration.name, "url": url},
                )
                return []
            raise

        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object from Greenhouse, got {type(response).__name__}"
            )

        jobs_data = response.get("jobs", [])
        if not isinstance(jobs_data, list):
            raise AdapterResponseError(
                f"Expected 'jobs' to be an array, got {type(jobs_data).__name__}"
            )

        jobs_data = self._truncate_jobs(jobs_data, registration)

        raw_jobs = []
        for job in jobs_data:
            try:
                raw_jobs.append(self._transform_job(job, registration))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(
                    "Skipping malformed Greenhouse job",
                    extra={
                        "event": "adapter.posting.invalid",
                        "adapter": registration.name,
                        "job_id": job.get("id") if isinstance(job, dict) else None,
                        "error": str(e),
                    },
                )

        logger.info(
            f"Fetched {len(raw_jobs)} jobs from Greenhouse",
            extra={"event": "adapter.fetch.completed", "adapter": registration.name, "count": len(raw_jobs)},
        )

        return raw_jobs

    def _transform_job(self, job: Dict[str, Any], registration: AdapterConfig) -> RawJob:
        """Map a Greenhouse job onto RawJob.

        The top-level location and the "Job Posting Location" metadata field
        are combined when they differ. Greenhouse exposes no expiry date.
        """
        metadata = job.get("metadata") or []
        departments = [d.get("name") for d in job.get("departments") or [] if d.get("name")]
        offices = [o.get("name") for o in job.get("offices") or [] if o.get("name")]

        extra: Dict[str, Any] = {}
        if offices:
            extra["offices"] = offices
        if job.get("updated_at"):
            extra["updatedAt"] = job["updated_at"]
        if job.get("requisition_id"):
            extra["requisitionId"] = job["requisition_id"]

        return RawJob(
            id=job["id"],
            title=job["title"],
            description=self._clean_html(job.get("content")),
            company=job.get("company_name") or registration.company_name,
            location=self._get_location(job, metadata),
            job_type=_metadata_value(metadata, EMPLOYMENT_TYPE_FIELDS),
            department=", ".join(departments),
            published_date=self._parse_timestamp(job.get("first_published") or job.get("updated_at")),
            job_url=job.get("absolute_url") or "",
            source=registration.company_name,
            extra=extra,
        )

    @staticmethod
    def _get_location(job: Dict[str, Any], metadata: List[Dict[str, Any]]) -> str:
        top_level = (job.get("location") or {}).get("name") or ""
        from_metadata = _metadata_value(metadata, LOCATION_FIELDS) or ""

        if top_level and from_metadata and top_level.lower() != from_metadata.lower():
            return f"{top_level} ({from_metadata})"
        return top_level or from_metadata
