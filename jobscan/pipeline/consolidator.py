"""Cross-adapter consolidation and deduplication."""

from datetime import datetime
from typing import Callable, Dict, List, Mapping, Sequence

from jobscan.domain.models import Job
from jobscan.logging import get_logger
from jobscan.utils.hashing import compute_job_signature
from jobscan.utils.timestamps import format_timestamp, utc_now

logger = get_logger(__name__, component="consolidator")

PIPELINE_NAME = "ScrapingPipeline"


def job_signature(job: Job) -> str:
    """Dedup key for a job: normalized title, company and location."""
    return compute_job_signature(job.title, job.company, job.location)


class JobConsolidator:
    """Merges per-adapter job lists into one deduplicated list.

    Adapters are visited in mapping order (registration order), jobs in
    list order. The first job seen for a signature is kept; later jobs with
    the same signature are dropped and logged.
    """

    def __init__(self, pipeline_name: str = PIPELINE_NAME, clock: Callable[[], datetime] = utc_now):
        self.pipeline_name = pipeline_name
        self.clock = clock

    def consolidate(self, results: Mapping[str, Sequence[Job]]) -> List[Job]:
        """Deduplicate jobs across adapters.

        Kept jobs are copies with ``consolidatedAt``, ``pipeline`` and
        ``consolidatedFrom`` added to their metadata; keys already present in
        the metadata are left untouched. Input jobs are never modified.

        Args:
            results: Adapter name -> normalized jobs, in registration order

        Returns:
            Unique jobs in first-seen order
        """
        consolidated_at = format_timestamp(self.clock())
        first_seen: Dict[str, str] = {}
        consolidated: List[Job] = []
        duplicates = 0

        for adapter_name, jobs in results.items():
            for job in jobs:
                signature = job_signature(job)

                if signature in first_seen:
                    duplicates += 1
                    logger.info(
                        f"Duplicate job skipped: {job.title} - {job.company}",
                        extra={
                            "event": "consolidation.job.duplicate",
                            "signature": signature,
                            "adapter": adapter_name,
                            "kept_from": first_seen[signature],
                        },
                    )
                    continue

                first_seen[signature] = adapter_name

                metadata = dict(job.metadata)
                metadata.setdefault("consolidatedAt", consolidated_at)
                metadata.setdefault("pipeline", self.pipeline_name)
                metadata.setdefault("consolidatedFrom", adapter_name)

                consolidated.append(job.model_copy(update={"metadata": metadata}))

        logger.info(
            f"Consolidated {len(consolidated)} unique jobs from {len(results)} adapters",
            extra={
                "event": "consolidation.completed",
                "adapters": len(results),
                "unique": len(consolidated),
                "duplicates": duplicates,
            },
        )

        return consolidated
