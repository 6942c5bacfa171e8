"""Job source adapters.

Each adapter fetches postings from one public job board API and returns
RawJob records:
- Greenhouse: greenhouse.GreenhouseAdapter
- Lever: lever.LeverAdapter

Use the factory to build one from a registration:
    from jobscan.adapters import get_adapter
    adapter = get_adapter(registration, config.advanced)
    raw_jobs = adapter.fetch_jobs(registration)
"""

from .base import BaseAdapter
from .exceptions import (
    AdapterConfigurationError,
    AdapterError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)
from .factory import ADAPTER_TYPES, get_adapter
from .greenhouse import GreenhouseAdapter
from .lever import LeverAdapter

__all__ = [
    "ADAPTER_TYPES",
    "AdapterConfigurationError",
    "AdapterError",
    "AdapterHTTPError",
    "AdapterResponseError",
    "AdapterTimeoutError",
    "BaseAdapter",
    "GreenhouseAdapter",
    "LeverAdapter",
    "get_adapter",
]
