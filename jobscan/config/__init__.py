"""Configuration management."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config
from .models import (
    AdapterConfig,
    AdapterType,
    AdvancedConfig,
    AppConfig,
    FilterCriteria,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PipelineSettings,
    TagExtractionConfig,
)

__all__ = [
    "load_config",
    "parse_app_config",
    "load_environment_config",
    "AppConfig",
    "AdapterConfig",
    "FilterCriteria",
    "PipelineSettings",
    "TagExtractionConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    "AdapterType",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
