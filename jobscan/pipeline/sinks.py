"""Output sinks for consolidated jobs and run statistics."""

import json
from pathlib import Path
from typing import Any, List, Protocol, Sequence, runtime_checkable

from jobscan.domain.models import Job
from jobscan.logging import get_logger

from .models import JobSetStats

logger = get_logger(__name__, component="sink")


@runtime_checkable
class JobSink(Protocol):
    """Destination for the results of a pipeline run."""

    def write_jobs(self, jobs: Sequence[Job]) -> Any:
        ...

    def write_stats(self, stats: JobSetStats) -> Any:
        ...


class JsonFileSink:
    """Writes jobs and statistics as pretty-printed UTF-8 JSON files.

    Jobs use their public camelCase field names. The output directory is
    created on first write.
    """

    def __init__(
        self,
        output_dir: Path,
        consolidated_file: str = "all_jobs.json",
        stats_file: str = "pipeline_stats.json",
    ):
        self.output_dir = Path(output_dir)
        self.consolidated_file = consolidated_file
        self.stats_file = stats_file

    @property
    def jobs_path(self) -> Path:
        return self.output_dir / self.consolidated_file

    @property
    def stats_path(self) -> Path:
        return self.output_dir / self.stats_file

    def write_jobs(self, jobs: Sequence[Job]) -> Path:
        payload: List[dict] = [job.to_dict() for job in jobs]
        self._write(self.jobs_path, payload)

        logger.info(
            f"Consolidated jobs saved: {self.jobs_path}",
            extra={"event": "sink.jobs.written", "path": str(self.jobs_path), "count": len(payload)},
        )
        return self.jobs_path

    def write_stats(self, stats: JobSetStats) -> Path:
        self._write(self.stats_path, stats.to_dict())

        logger.info(
            f"Pipeline statistics saved: {self.stats_path}",
            extra={"event": "sink.stats.written", "path": str(self.stats_path)},
        )
        return self.stats_path

    def _write(self, path: Path, payload: Any) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.write("\n")
