"""Configuration schema models using Pydantic."""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AdapterType(str, Enum):
    """Supported public job-board APIs."""

    GREENHOUSE = "greenhouse"
    LEVER = "lever"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _clean_terms(values: List[str]) -> List[str]:
    cleaned = []
    for value in values:
        stripped = value.strip().lower()
        if stripped and stripped not in cleaned:
            cleaned.append(stripped)
    return cleaned


class FilterCriteria(BaseModel):
    """Inclusion/exclusion predicates over normalized jobs.

    Every dimension is optional and an empty dimension imposes no constraint.
    Dimensions are ANDed together; values inside one dimension are ORed,
    except exclude_tags where any hit drops the job.

    Keys are accepted in camelCase (requiredTags) or snake_case (required_tags).
    """

    required_tags: List[str] = Field(
        default_factory=list,
        alias="requiredTags",
        description="Keep jobs carrying ANY of these tags",
    )
    exclude_tags: List[str] = Field(
        default_factory=list,
        alias="excludeTags",
        description="Drop jobs carrying ANY of these tags",
    )
    locations: List[str] = Field(
        default_factory=list,
        description="Case-insensitive substrings matched against the job location",
    )
    companies: List[str] = Field(
        default_factory=list,
        description="Case-insensitive substrings matched against the company name",
    )
    job_types: List[str] = Field(
        default_factory=list,
        alias="jobTypes",
        description="Case-insensitive substrings matched against the job type",
    )
    max_age_days: Optional[int] = Field(
        None,
        alias="maxAgeDays",
        ge=0,
        description="Keep jobs published within this many days (None = no limit)",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("required_tags", "exclude_tags", "locations", "companies", "job_types")
    @classmethod
    def normalize_terms(cls, v: List[str]) -> List[str]:
        """Lowercase, strip and dedupe terms, dropping empty strings."""
        return _clean_terms(v)

    def is_empty(self) -> bool:
        """True when no dimension constrains the job set."""
        return not (
            self.required_tags
            or self.exclude_tags
            or self.locations
            or self.companies
            or self.job_types
            or self.max_age_days is not None
        )

    def merged_with(self, overrides: "FilterCriteria") -> "FilterCriteria":
        """Return a copy where every field explicitly set on ``overrides`` wins."""
        update = {name: getattr(overrides, name) for name in overrides.model_fields_set}
        return self.model_copy(update=update)


class AdapterConfig(BaseModel):
    """Registration of a single job source adapter."""

    name: str = Field(..., min_length=1, description="Unique adapter name used in provenance")
    type: AdapterType = Field(..., description="Adapter implementation (greenhouse, lever)")
    identifier: str = Field(
        ..., min_length=1, description="Board/company identifier used in the API endpoint"
    )
    company: Optional[str] = Field(None, description="Company display name (defaults to name)")
    enabled: bool = Field(True, description="Whether to run this adapter")
    filters: FilterCriteria = Field(
        default_factory=FilterCriteria, description="Adapter-specific filters"
    )

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("name", "identifier")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @property
    def company_name(self) -> str:
        return self.company or self.name


class PipelineSettings(BaseModel):
    """Execution and output settings for a pipeline run."""

    output_dir: Path = Field(Path("./output"), description="Directory for JSON output")
    consolidated_file: str = Field("all_jobs.json", min_length=1)
    stats_file: str = Field("pipeline_stats.json", min_length=1)
    parallel: bool = Field(False, description="Run adapters concurrently")
    max_concurrent: int = Field(3, ge=1, le=16, description="Max adapters running at once")
    top_tags: int = Field(20, ge=1, le=500, description="Size of the top-tags ranking")


class TagExtractionConfig(BaseModel):
    """Tag extraction defaults and catalog extensions."""

    min_word_length: int = Field(2, ge=1, le=20)
    case_sensitive: bool = False
    include_variations: bool = True
    max_tags: int = Field(50, ge=1)
    normalize: bool = True
    catalog_path: Optional[Path] = Field(
        None, description="Alternative catalog YAML file (defaults to the packaged catalog)"
    )
    custom_tags: List[str] = Field(
        default_factory=list, description="Extra canonical keywords appended to the catalog"
    )
    local_variations: Dict[str, List[str]] = Field(
        default_factory=dict, description="Extra canonical -> aliases entries"
    )

    @field_validator("custom_tags")
    @classmethod
    def normalize_custom_tags(cls, v: List[str]) -> List[str]:
        return _clean_terms(v)

    @field_validator("local_variations")
    @classmethod
    def normalize_local_variations(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        normalized: Dict[str, List[str]] = {}
        for canonical, aliases in v.items():
            key = canonical.strip().lower()
            if key:
                normalized[key] = _clean_terms(aliases)
        return normalized


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = ConfigDict(use_enum_values=True)


class AdvancedConfig(BaseModel):
    """HTTP settings shared by all adapters."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for job board API calls (seconds)"
    )
    user_agent: str = Field(
        "JobScan/0.1",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )
    max_jobs_per_source: int = Field(
        1000, ge=0, description="Maximum jobs to process per adapter (0 = unlimited)"
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object."""

    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    adapters: List[AdapterConfig] = Field(default_factory=list)
    global_filters: FilterCriteria = Field(default_factory=FilterCriteria)
    tag_extraction: TagExtractionConfig = Field(default_factory=TagExtractionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

    @model_validator(mode="after")
    def validate_adapters(self):
        """Reject duplicate adapter names and global filters that repeat a tag in both lists.

        Alias-aware conflicts need the tag catalog and are checked when the
        pipeline is built.
        """
        seen = set()
        for adapter in self.adapters:
            if adapter.name in seen:
                raise ValueError(f"Duplicate adapter name: {adapter.name} appears multiple times")
            seen.add(adapter.name)

        conflicts = set(self.global_filters.required_tags) & set(self.global_filters.exclude_tags)
        if conflicts:
            raise ValueError(
                f"Tags cannot be both required and excluded: {', '.join(sorted(conflicts))}"
            )

        return self

    def get_enabled_adapters(self) -> List[AdapterConfig]:
        return [adapter for adapter in self.adapters if adapter.enabled]

    def get_adapter_by_name(self, name: str) -> Optional[AdapterConfig]:
        for adapter in self.adapters:
            if adapter.name == name:
                return adapter
        return None
