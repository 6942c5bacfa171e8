"""Exceptions raised while building the keyword catalog."""

from jobscan.config.exceptions import ConfigurationError


class CatalogError(ConfigurationError):
    """Keyword catalog data is malformed or internally inconsistent.

    Raised at catalog construction time (process start), never during
    extraction or classification.
    """
