"""Keyword catalog, tag extraction and tag classification."""

from .catalog import DEFAULT_CATALOG_PATH, KeywordCatalog, default_catalog, load_catalog
from .classifier import TagClassifier
from .exceptions import CatalogError
from .extractor import TagExtractor
from .models import (
    OTHER_CATEGORY,
    ExtractionOptions,
    RelatedSuggestion,
    TagAnalysis,
    TagGroup,
    TagStats,
    TagSuggestion,
)

__all__ = [
    "CatalogError",
    "DEFAULT_CATALOG_PATH",
    "ExtractionOptions",
    "KeywordCatalog",
    "OTHER_CATEGORY",
    "RelatedSuggestion",
    "TagAnalysis",
    "TagClassifier",
    "TagExtractor",
    "TagGroup",
    "TagStats",
    "TagSuggestion",
    "default_catalog",
    "load_catalog",
]
