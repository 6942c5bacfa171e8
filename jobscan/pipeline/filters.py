"""Inclusion/exclusion filtering over normalized jobs.

Semantics:
1. Every dimension of FilterCriteria is ANDed with the others
2. Inside a dimension values are ORed (any required tag, any location, ...)
3. exclude_tags drops a job when any excluded tag is present
4. An empty dimension imposes no constraint
"""

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from jobscan.config.models import FilterCriteria
from jobscan.domain.models import Job
from jobscan.logging import get_logger
from jobscan.tags import TagClassifier
from jobscan.utils.timestamps import is_within_days, utc_now

logger = get_logger(__name__, component="filters")

FilterInput = Union[FilterCriteria, Mapping[str, Any], None]


def coerce_filters(filters: FilterInput) -> FilterCriteria:
    """Accept FilterCriteria, a camelCase/snake_case dict or None."""
    if filters is None:
        return FilterCriteria()
    if isinstance(filters, FilterCriteria):
        return filters
    return FilterCriteria.model_validate(dict(filters))


def _resolve_tags(tags: List[str], classifier: Optional[TagClassifier]) -> List[str]:
    if classifier is None:
        return tags
    return classifier.normalize_tags(tags)


def find_tag_conflicts(filters: FilterCriteria, classifier: Optional[TagClassifier] = None) -> List[str]:
    """Tags that are both required and excluded once aliases are resolved.

    ``requiredTags: [js]`` with ``excludeTags: [javascript]`` conflicts on
    ``javascript``. Returns canonical tags in required order.
    """
    excluded = set(_resolve_tags(filters.exclude_tags, classifier))
    return [tag for tag in _resolve_tags(filters.required_tags, classifier) if tag in excluded]


def _contains_any(value: str, needles: List[str]) -> bool:
    haystack = (value or "").lower()
    return any(needle in haystack for needle in needles)


def matches_filters(
    job: Job,
    filters: FilterCriteria,
    classifier: Optional[TagClassifier] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Whether a single job satisfies every dimension of ``filters``.

    When a classifier is given, filter tags are resolved to canonical form
    first, so ``requiredTags: [js]`` matches jobs tagged ``javascript``.
    """
    job_tags = set(job.tags)

    required = _resolve_tags(filters.required_tags, classifier)
    if required and not any(tag in job_tags for tag in required):
        return False

    excluded = _resolve_tags(filters.exclude_tags, classifier)
    if excluded and any(tag in job_tags for tag in excluded):
        return False

    if filters.locations and not _contains_any(job.location, filters.locations):
        return False

    if filters.companies and not _contains_any(job.company, filters.companies):
        return False

    if filters.job_types and not _contains_any(job.job_type, filters.job_types):
        return False

    if filters.max_age_days is not None and not is_within_days(
        job.published_date, filters.max_age_days, now=now
    ):
        return False

    return True


def apply_filters(
    jobs: Iterable[Job],
    filters: FilterInput,
    classifier: Optional[TagClassifier] = None,
    now: Optional[datetime] = None,
) -> List[Job]:
    """Return a new list with the jobs that satisfy ``filters``.

    Args:
        jobs: Jobs to filter (not modified)
        filters: FilterCriteria, a dict with camelCase or snake_case keys, or None
        classifier: Optional classifier used to canonicalize filter tags
        now: Reference time for max_age_days (defaults to utc_now())

    Returns:
        Matching jobs in input order
    """
    job_list = list(jobs)
    criteria = coerce_filters(filters)

    if criteria.is_empty():
        return job_list

    reference = now or utc_now()
    filtered = [job for job in job_list if matches_filters(job, criteria, classifier, reference)]

    logger.info(
        f"Filters applied: {len(job_list)} -> {len(filtered)} jobs",
        extra={
            "event": "filters.applied",
            "before": len(job_list),
            "after": len(filtered),
        },
    )

    return filtered
