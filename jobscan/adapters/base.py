"""Base class for job source adapters.

Adapters talk to one job board API, turn its payload into RawJob records and
leave tagging, defaults and deduplication to the rest of the pipeline.
"""

import html
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import requests

from jobscan.config.models import AdapterConfig
from jobscan.domain.models import RawJob
from jobscan.logging import get_logger
from jobscan.utils.timestamps import parse_iso_datetime

from .exceptions import (
    AdapterConfigurationError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)

logger = get_logger(__name__, component="adapter")


class BaseAdapter(ABC):
    """Shared HTTP handling and text helpers for adapters.

    Subclasses implement fetch_jobs(). A requests.Session with the configured
    User-Agent is reused for every call made by one adapter instance.

    Attributes:
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
        max_jobs: Maximum jobs returned per fetch (0 = unlimited)
    """

    ADAPTER_NAME = "base"

    def __init__(self, timeout: int = 30, user_agent: str = "JobScan/0.1", max_jobs: int = 1000) -> None:
        """
        Raises:
            AdapterConfigurationError: If timeout is outside 5-300 seconds or user_agent is blank
        """
        if not 5 <= timeout <= 300:
            raise AdapterConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise AdapterConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()
        self.max_jobs = max_jobs

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})

    @abstractmethod
    def fetch_jobs(self, registration: AdapterConfig) -> List[RawJob]:
        """Fetch the current postings for one registration.

        Args:
            registration: Adapter registration (identifier, company, filters)

        Returns:
            RawJob records; an empty list when the board has no postings

        Raises:
            AdapterError: Any failure the pipeline should record for this adapter
        """

    def _make_request(self, url: str, params: Optional[Dict[str, str]] = None) -> Union[Dict[str, Any], List[Any]]:
        """GET ``url`` and return the decoded JSON body.

        Raises:
            AdapterHTTPError: On 4xx/5xx status or connection failure (status 0)
            AdapterTimeoutError: On request timeout
            AdapterResponseError: On a body that is not valid JSON
        """
        logger.debug(
            f"HTTP GET {url}",
            extra={"event": "adapter.fetch.request", "url": url, "timeout": self.timeout},
        )

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "adapter.fetch.timeout", "url": url, "timeout": self.timeout},
            )
            raise AdapterTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
                timeout=self.timeout,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={"event": "adapter.fetch.error", "error_type": type(e).__name__, "url": url},
            )
            raise AdapterHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                level,
                f"HTTP {response.status_code} error from {url}",
                extra={"event": "adapter.fetch.http_error", "status_code": response.status_code, "url": url},
            )
            raise AdapterHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Invalid JSON from {url}",
                extra={"event": "adapter.fetch.invalid_json", "url": url},
            )
            raise AdapterResponseError(f"Failed to parse JSON response from {url}: {e}") from e

    @staticmethod
    def _clean_html(html_text: Optional[str]) -> str:
        """Convert an HTML fragment to plain text.

        Entities are decoded, <br> and </p>/</li> become line breaks, other
        tags are removed and runs of blank lines collapse to one.
        """
        if not html_text:
            return ""

        text = html.unescape(html_text)
        text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
        text = re.sub(r"</(p|li|h[1-6]|div)>", "\n", text, flags=re.IGNORECASE)
        text = re.sub(r"<[^>]+>", " ", text)
        text = re.sub(r"[ \t\xa0]+", " ", text)
        text = re.sub(r" *\n *", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)

        return text.strip()

    @staticmethod
    def _parse_timestamp(value: Any) -> Optional[datetime]:
        """Parse an ISO 8601 string or a Unix timestamp in milliseconds.

        Returns None (and logs) when the value cannot be interpreted.
        """
        if value is None or value == "":
            return None

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                parsed = None
        else:
            parsed = parse_iso_datetime(value) if isinstance(value, str) else None

        if parsed is None:
            logger.warning(
                "Failed to parse timestamp",
                extra={"event": "adapter.timestamp.invalid", "timestamp": str(value)},
            )
        return parsed

    def _truncate_jobs(self, jobs: List[Any], registration: AdapterConfig) -> List[Any]:
        """Cut ``jobs`` down to max_jobs (no-op when max_jobs is 0)."""
        if self.max_jobs > 0 and len(jobs) > self.max_jobs:
            logger.warning(
                f"Truncating {len(jobs)} jobs to {self.max_jobs}",
                extra={
                    "event": "adapter.fetch.truncated",
                    "adapter": registration.name,
                    "total": len(jobs),
                    "max": self.max_jobs,
                },
            )
            return jobs[: self.max_jobs]

        return jobs

    def close(self) -> None:
        self._session.close()
