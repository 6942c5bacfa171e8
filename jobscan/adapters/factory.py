"""Factory for instantiating job source adapters."""

from typing import Dict, Type

from jobscan.config.models import AdapterConfig, AdvancedConfig
from jobscan.logging import get_logger

from .base import BaseAdapter
from .exceptions import AdapterConfigurationError
from .greenhouse import GreenhouseAdapter
from .lever import LeverAdapter

logger = get_logger(__name__, component="adapter")

ADAPTER_TYPES: Dict[str, Type[BaseAdapter]] = {
    "greenhouse": GreenhouseAdapter,
    "lever": LeverAdapter,
}


def get_adapter(registration: AdapterConfig, advanced: AdvancedConfig) -> BaseAdapter:
    """Instantiate the adapter for a registration's type.

    Args:
        registration: Adapter registration with type and identifier
        advanced: HTTP timeout, user agent and per-source job cap

    Returns:
        Adapter instance ready for fetch_jobs(registration)

    Raises:
        AdapterConfigurationError: If the type is unknown or the settings are invalid

    Example:
        >>> registration = AdapterConfig(name="fintual", type="lever", identifier="fintual")
        >>> adapter = get_adapter(registration, AdvancedConfig())
        >>> raw_jobs = adapter.fetch_jobs(registration)
    """
    adapter_type = str(getattr(registration.type, "value", registration.type)).lower()
    adapter_class = ADAPTER_TYPES.get(adapter_type)

    if adapter_class is None:
        supported = ", ".join(sorted(ADAPTER_TYPES))
        raise AdapterConfigurationError(
            f"Unknown adapter type: {registration.type}. Supported types: {supported}"
        )

    logger.debug(
        f"Creating {adapter_class.__name__} for {registration.name}",
        extra={"event": "adapter.created", "adapter": registration.name, "adapter_type": adapter_type},
    )

    try:
        return adapter_class(
            timeout=advanced.http_request_timeout,
            user_agent=advanced.user_agent,
            max_jobs=advanced.max_jobs_per_source,
        )
    except AdapterConfigurationError:
        raise
    except (TypeError, ValueError) as e:
        raise AdapterConfigurationError(f"Failed to create {adapter_type} adapter: {e}") from e
