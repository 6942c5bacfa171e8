"""Lever postings API adapter."""

from typing import Any, Dict, List

from jobscan.config.models import AdapterConfig
from jobscan.domain.models import RawJob
from jobscan.logging import get_logger

from .base import BaseAdapter
from .exceptions import AdapterHTTPError, AdapterResponseError

logger = get_logger(__name__, component="adapter")


class LeverAdapter(BaseAdapter):
    """Adapter for companies publishing through Lever (e.g. Fintual).

    API Details:
        Endpoint: https://api.lever.co/v0/postings/{identifier}?mode=json
        Authentication: None (public)
        Response: JSON array of posting objects
    """

    ADAPTER_NAME = "lever"
    API_BASE_URL = "https://api.lever.co/v0/postings"

    def fetch_jobs(self, registration: AdapterConfig) -> List[RawJob]:
        url = f"{self.API_BASE_URL}/{registration.identifier}"

        logger.info(
            f"Fetching jobs from Lever for {registration.company_name}",
            extra={"event": "adapter.fetch.started", "adapter": registration.name, "url": url},
        )

        try:
            response = self._make_request(url, params={"mode": "json"})
        except AdapterHTTPError as e:
            # Unknown company handles return 404 rather than an empty list
            if e.status_code == 404:
                logger.warning(
                    f"Lever company not found: {registration.identifier}",
                    extra={"event": "adapter.fetch.not_found", "adapter": registration.name, "url": url},
                )
                return []
            raise

        if isinstance(response, dict):
            postings = response.get("postings", [])
        elif isinstance(response, list):
            postings = response
        else:
            raise AdapterResponseError(
                f"Expected JSON array from Lever, got {type(response).__name__}"
            )

        postings = self._truncate_jobs(postings, registration)

        raw_jobs = []
        for posting in postings:
            try:
                raw_jobs.append(self._transform_posting(posting, registration))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(
                    "Skipping malformed Lever posting",
                    extra={
                        "event": "adapter.posting.invalid",
                        "adapter": registration.name,
                        "job_id": posting.get("id") if isinstance(posting, dict) else None,
                        "error": str(e),
                    },
                )

        logger.info(
            f"Fetched {len(raw_jobs)} jobs from Lever",
            extra={"event": "adapter.fetch.completed", "adapter": registration.name, "count": len(raw_jobs)},
        )

        return raw_jobs

    def _transform_posting(self, posting: Dict[str, Any], registration: AdapterConfig) -> RawJob:
        """Map a Lever posting onto RawJob.

        text -> title, categories.{location,team,commitment} -> location,
        department, job type; descriptionPlain/additionalPlain -> description
        (HTML fallback); lists -> requirements; createdAt (ms) -> published date.
        """
        categories = posting.get("categories") or {}

        extra = {
            key: posting[source]
            for key, source in (("workplaceType", "workplaceType"), ("applyUrl", "applyUrl"), ("country", "country"))
            if posting.get(source)
        }
        if categories.get("allLocations"):
            extra["allLocations"] = list(categories["allLocations"])

        return RawJob(
            id=posting["id"],
            title=posting["text"],
            description=self._get_description(posting),
            requirements=self._get_requirements(posting),
            company=registration.company_name,
            location=categories.get("location") or "",
            job_type=categories.get("commitment"),
            department=categories.get("department") or categories.get("team") or "",
            published_date=self._parse_timestamp(posting.get("createdAt")),
            job_url=posting.get("hostedUrl") or "",
            source=registration.company_name,
            extra=extra,
        )

    def _get_description(self, posting: Dict[str, Any]) -> str:
        plain = [
            (posting.get(key) or "").strip() for key in ("descriptionPlain", "additionalPlain")
        ]
        if any(plain):
            return "\n\n".join(part for part in plain if part)

        rich = [(posting.get(key) or "").strip() for key in ("description", "additional")]
        return self._clean_html("\n\n".join(part for part in rich if part))

    def _get_requirements(self, posting: Dict[str, Any]) -> str:
        sections = []
        for item in posting.get("lists") or []:
            heading = (item.get("text") or "").strip()
            body = self._clean_html(item.get("content"))
            if heading or body:
                sections.append(f"{heading}\n{body}".strip())
        return "\n\n".join(sections)
