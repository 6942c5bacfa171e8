"""Aggregate statistics over a consolidated job set."""

from collections import Counter
from typing import Dict, Iterable, List

from jobscan.domain.models import Job
from jobscan.tags import OTHER_CATEGORY, TagClassifier

from .models import JobSetStats

UNSPECIFIED = "unspecified"


def _count_by(values: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for value in values:
        key = value or UNSPECIFIED
        counts[key] = counts.get(key, 0) + 1
    return counts


class StatisticsAggregator:
    """Computes counts and tag rankings for a list of jobs.

    Empty company, location, department and job type values are counted
    under "unspecified". Tag rankings break ties by first appearance.
    """

    def __init__(self, classifier: TagClassifier, top_n: int = 20):
        self.classifier = classifier
        self.top_n = top_n

    def compute_stats(self, jobs: Iterable[Job]) -> JobSetStats:
        job_list = list(jobs)

        tag_counts: Counter = Counter()
        for job in job_list:
            tag_counts.update(job.tags)

        stats = JobSetStats(
            total_jobs=len(job_list),
            by_company=_count_by(job.company for job in job_list),
            by_location=_count_by(job.location for job in job_list),
            by_department=_count_by(job.department for job in job_list),
            by_job_type=_count_by(job.job_type for job in job_list),
            unique_companies=len({job.company for job in job_list}),
            unique_tags=len(tag_counts),
            top_tags=self._rank(tag_counts),
            tags_by_category=self._tags_by_category(tag_counts),
            tags_by_group=self._tags_by_group(tag_counts),
        )

        return stats

    def _rank(self, tag_counts: Counter) -> List:
        # Counter keeps first-seen order and sorted() is stable
        return sorted(tag_counts.items(), key=lambda item: item[1], reverse=True)[: self.top_n]

    def _tags_by_category(self, tag_counts: Counter) -> Dict[str, List[str]]:
        buckets: Dict[str, List[str]] = {name: [] for name in self.classifier.catalog.categories}
        buckets[OTHER_CATEGORY] = []
        for tag in tag_counts:
            buckets[self.classifier.get_tag_category(tag)].append(tag)
        return buckets

    def _tags_by_group(self, tag_counts: Counter) -> Dict[str, List[str]]:
        groups: Dict[str, List[str]] = {}
        for tag in tag_counts:
            group = self.classifier.get_tag_group(tag)
            if group is not None:
                groups.setdefault(group.key, []).append(tag)
        return groups
