"""Job normalization service for converting RawJob to Job.

This module implements the normalization logic that:
1. Extracts tags from title, description and requirements
2. Cleans, normalizes and categorizes those tags
3. Fills defaults (job type, publication and expiry dates, id)
4. Records scrape provenance in metadata
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from jobscan.domain.models import Job, RawJob
from jobscan.logging import get_logger
from jobscan.tags import TagClassifier, TagExtractor
from jobscan.utils.hashing import compute_job_id
from jobscan.utils.timestamps import days_from_now, ensure_utc, format_timestamp, utc_now

logger = get_logger(__name__, component="normalization")

DEFAULT_JOB_TYPE = "Full-time"
DEFAULT_EXPIRY_DAYS = 30

# Metadata keys owned by the normalizer; adapter extras never replace them
PROVENANCE_KEYS = ("scrapedAt", "scraper", "source")


class JobNormalizer:
    """Normalizes RawJob instances from adapters into Job models.

    Responsibilities:
    - Tag extraction over title, description and requirements
    - Defaults for missing fields
    - Provenance metadata (scrapedAt, scraper, source)
    """

    def __init__(
        self,
        extractor: TagExtractor,
        classifier: TagClassifier,
        scraped_at: Optional[datetime] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize JobNormalizer.

        Args:
            extractor: Tag extractor bound to the run's catalog
            classifier: Tag classifier bound to the same catalog
            scraped_at: Timestamp for this run (UTC). Defaults to utc_now()
            logger_instance: Logger instance (defaults to module logger)
        """
        self.extractor = extractor
        self.classifier = classifier
        self.scraped_at = ensure_utc(scraped_at or utc_now())
        self.logger = logger_instance or logger

    def normalize(self, raw_job: RawJob, adapter_name: str, company: Optional[str] = None) -> Job:
        """Normalize a single RawJob into a Job.

        Args:
            raw_job: Record produced by an adapter
            adapter_name: Registered adapter name, stored as metadata.scraper
            company: Fallback company name when the record has none

        Returns:
            Normalized Job

        Raises:
            pydantic.ValidationError: If the resulting job fails validation
        """
        # Step 1: Text fields
        title = self._sanitize_text(raw_job.title)
        description = raw_job.description.strip()
        company_name = raw_job.company or company or ""
        location = self._sanitize_text(raw_job.location)

        # Step 2: Tags
        extracted = self.extractor.extract_from_fields(title, description, raw_job.requirements)
        tags = self.classifier.normalize_tags(self.classifier.validate_and_clean_tags(extracted))
        categorized_tags = self.classifier.categorize_tags(tags)

        # Step 3: Defaults
        published_date = raw_job.published_date or self.scraped_at
        expires_at = raw_job.expires_at or days_from_now(DEFAULT_EXPIRY_DAYS, now=self.scraped_at)
        job_id = raw_job.id or compute_job_id(title, company_name, location)

        # Step 4: Provenance, with adapter extras added underneath
        metadata = self._build_metadata(raw_job, adapter_name, company_name)

        job = Job(
            id=job_id,
            title=title,
            description=description,
            company=company_name,
            location=location,
            job_type=raw_job.job_type or DEFAULT_JOB_TYPE,
            department=raw_job.department,
            published_date=published_date,
            expires_at=expires_at,
            job_url=raw_job.job_url,
            tags=tags,
            categorized_tags=categorized_tags,
            metadata=metadata,
        )

        if not description:
            self.logger.warning(
                f"Missing or empty description for job {job_id}",
                extra={
                    "event": "normalization.job.missing_description",
                    "job_id": job_id,
                    "adapter": adapter_name,
                },
            )

        self.logger.debug(
            "Normalized job",
            extra={
                "event": "normalization.job.normalized",
                "job_id": job_id,
                "company": company_name,
                "title": title,
                "tag_count": len(tags),
            },
        )

        return job

    def normalize_batch(
        self,
        raw_jobs: Iterable[RawJob],
        adapter_name: str,
        company: Optional[str] = None,
    ) -> List[Job]:
        """Normalize every RawJob from one adapter, skipping invalid records.

        Errors are logged with the offending record id and do not stop the
        batch. All jobs share this normalizer's scraped_at timestamp.
        """
        jobs: List[Job] = []
        skipped = 0

        for raw_job in raw_jobs:
            try:
                jobs.append(self.normalize(raw_job, adapter_name, company))
            except ValidationError as e:
                skipped += 1
                self.logger.error(
                    f"Error normalizing job {raw_job.id} from {adapter_name}: {e}",
                    extra={
                        "event": "normalization.job.failed",
                        "adapter": adapter_name,
                        "job_id": raw_job.id,
                    },
                )

        self.logger.info(
            f"Normalized {len(jobs)} jobs from {adapter_name}",
            extra={
                "event": "normalization.batch.completed",
                "adapter": adapter_name,
                "normalized": len(jobs),
                "skipped": skipped,
            },
        )

        return jobs

    def _build_metadata(self, raw_job: RawJob, adapter_name: str, company_name: str) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "scrapedAt": format_timestamp(self.scraped_at),
            "scraper": adapter_name,
            "source": raw_job.source or company_name,
        }

        dropped = []
        for key, value in raw_job.extra.items():
            if key in metadata:
                dropped.append(key)
                continue
            metadata[key] = value

        if dropped:
            self.logger.debug(
                "Ignored adapter extras that collide with provenance keys",
                extra={"event": "normalization.metadata.collision", "keys": dropped},
            )

        return metadata

    @staticmethod
    def _sanitize_text(text: Optional[str]) -> str:
        """Trim and collapse whitespace (empty string for None)."""
        if not text:
            return ""
        return re.sub(r"\s+", " ", text.strip())
