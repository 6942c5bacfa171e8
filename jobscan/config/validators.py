"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Inspect a raw configuration dict for suspicious but valid settings.

    Args:
        config_dict: Raw configuration dictionary (before validation)

    Returns:
        List of warning messages
    """
    warning_messages = []

    adapters = config_dict.get("adapters", [])
    if isinstance(adapters, list):
        for adapter in adapters:
            if isinstance(adapter, dict) and not adapter.get("enabled", True):
                name = adapter.get("name", "Unknown")
                warning_messages.append(f"Adapter '{name}' is disabled and will be skipped")

    pipeline = config_dict.get("pipeline", {})
    if isinstance(pipeline, dict) and pipeline.get("parallel"):
        max_concurrent = pipeline.get("max_concurrent", 3)
        if isinstance(max_concurrent, int) and max_concurrent > 5:
            warning_messages.append(
                f"max_concurrent={max_concurrent} may trigger rate limits on job boards"
            )

    tag_extraction = config_dict.get("tag_extraction", {})
    if isinstance(tag_extraction, dict):
        max_tags = tag_extraction.get("max_tags", 50)
        if isinstance(max_tags, int) and max_tags > 200:
            warning_messages.append(
                f"Large max_tags ({max_tags}) makes tag lists noisy and stats less useful"
            )

    global_filters = config_dict.get("global_filters", {})
    if isinstance(global_filters, dict):
        for key in ("requiredTags", "required_tags", "excludeTags", "exclude_tags"):
            terms = global_filters.get(key, [])
            if not isinstance(terms, list):
                continue
            normalized = [t.strip().lower() for t in terms if isinstance(t, str)]
            duplicates = sorted({t for t in normalized if normalized.count(t) > 1})
            if duplicates:
                warning_messages.append(
                    f"Duplicate terms in {key} will be deduplicated: {', '.join(duplicates)}"
                )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
