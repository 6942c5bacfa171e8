"""Environment variable loading and validation."""

import os
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Values read from the process environment."""

    def __init__(
        self,
        log_level: Optional[str] = None,
        output_dir: Optional[Path] = None,
        environment: Optional[str] = None,
    ):
        self.log_level = log_level
        self.output_dir = output_dir
        self.environment = environment or "local"


def load_environment_config() -> EnvironmentConfig:
    """Load and validate environment variables.

    All variables are optional:
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - OUTPUT_DIR: Override the pipeline output directory
    - ENVIRONMENT: Label attached to log records (local, staging, production)

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If a variable has an invalid value
    """
    errors = []

    log_level = os.getenv("LOG_LEVEL")
    output_dir = os.getenv("OUTPUT_DIR")
    environment = os.getenv("ENVIRONMENT")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if output_dir is not None and not output_dir.strip():
        errors.append("OUTPUT_DIR is set but empty")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        log_level=log_level.upper() if log_level else None,
        output_dir=Path(output_dir.strip()) if output_dir else None,
        environment=environment,
    )
