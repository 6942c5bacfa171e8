"""Data structures shared by the tag extractor and classifier."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

OTHER_CATEGORY = "other"


@dataclass(frozen=True)
class ExtractionOptions:
    """Options for a single tag extraction call.

    Attributes:
        min_word_length: Catalog terms shorter than this are never matched
        case_sensitive: Match against the text as-is instead of lowercased
        include_variations: Also match alias strings from the catalog
        max_tags: Upper bound on the number of returned tags
        normalize: Record alias hits under their canonical form
    """

    min_word_length: int = 2
    case_sensitive: bool = False
    include_variations: bool = True
    max_tags: int = 50
    normalize: bool = True


@dataclass(frozen=True)
class TagGroup:
    """Named cluster of canonical tags sharing a semantic role."""

    key: str
    name: str
    description: str
    tags: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class TagSuggestion:
    """A catalog tag proposed for a partial query.

    Attributes:
        tag: Canonical tag
        match_type: "canonical" or "variation"
        relevance: Ordering score (higher first)
        matched_variation: Alias that matched when match_type is "variation"
    """

    tag: str
    match_type: str
    relevance: float
    matched_variation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RelatedSuggestion:
    """Tag from the same group as an input tag but absent from the input."""

    suggested: str
    based_on: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TagAnalysis:
    """Report produced by TagClassifier.analyze_tags()."""

    original: List[Any]
    normalized: List[str]
    duplicates_removed: int
    categories: Dict[str, List[str]] = field(default_factory=dict)
    groups: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    related_suggestions: List[RelatedSuggestion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": list(self.original),
            "normalized": list(self.normalized),
            "duplicatesRemoved": self.duplicates_removed,
            "categories": {k: list(v) for k, v in self.categories.items()},
            "groups": {k: {"name": v["name"], "tags": list(v["tags"])} for k, v in self.groups.items()},
            "relatedSuggestions": [s.to_dict() for s in self.related_suggestions],
        }


@dataclass
class TagStats:
    """Counts produced by TagClassifier.get_tag_stats()."""

    total: int
    unique: int
    by_category: Dict[str, int] = field(default_factory=dict)
    by_group: Dict[str, int] = field(default_factory=dict)
    most_common: List[Tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "unique": self.unique,
            "byCategory": dict(self.by_category),
            "byGroup": dict(self.by_group),
            "mostCommon": dict(self.most_common),
        }
