"""Keyword catalog: the static vocabulary behind tag extraction.

The catalog is an immutable value built once at startup (from the packaged
``catalog.yaml`` or an alternative file) and handed to the extractor and
classifier. All consistency checks run at construction time and raise
CatalogError, so lookups afterwards never fail.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from jobscan.logging import get_logger

from .exceptions import CatalogError
from .models import OTHER_CATEGORY, TagGroup

logger = get_logger(__name__, component="catalog")

DEFAULT_CATALOG_PATH = Path(__file__).with_name("catalog.yaml")


def _clean(term: str) -> str:
    return term.strip().lower()


def _clean_list(terms: Iterable[str]) -> Tuple[str, ...]:
    cleaned: List[str] = []
    for term in terms:
        value = _clean(term)
        if value and value not in cleaned:
            cleaned.append(value)
    return tuple(cleaned)


class GroupDefinition(BaseModel):
    """Group entry as written in the catalog file."""

    name: str = Field(..., min_length=1)
    description: str = ""
    tags: List[str] = Field(default_factory=list)


class CatalogDefinition(BaseModel):
    """Schema of a catalog YAML file."""

    keywords: List[str] = Field(..., min_length=1)
    variations: Dict[str, List[str]] = Field(default_factory=dict)
    groups: Dict[str, GroupDefinition] = Field(default_factory=dict)
    categories: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("keywords", mode="before")
    @classmethod
    def stringify_keywords(cls, v):
        # YAML turns bare numbers into ints
        if isinstance(v, list):
            return [str(item) for item in v if item is not None]
        return v


@dataclass(frozen=True, eq=False)
class KeywordCatalog:
    """Immutable keyword vocabulary with alias, group and category indices.

    Attributes:
        entries: Keyword strings searched in job text, in match order. May
            contain aliases (``node``, ``k8s``), which resolve to canonical form.
        variations: Canonical tag -> alias strings
        groups: Tag groups in definition order
        categories: Category -> canonical tags, in definition order

    Raises:
        CatalogError: If an alias maps to two canonicals, an alias is itself
            a canonical key, a group or category lists an alias, a tag sits in
            two groups or two categories, or the reserved ``other`` category
            is defined explicitly.
    """

    entries: Tuple[str, ...]
    variations: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    groups: Tuple[TagGroup, ...] = ()
    categories: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    _aliases: Mapping[str, str] = field(init=False, repr=False)
    _group_index: Mapping[str, TagGroup] = field(init=False, repr=False)
    _category_index: Mapping[str, str] = field(init=False, repr=False)

    def __post_init__(self):
        variations = {}
        for canonical, aliases in self.variations.items():
            key = _clean(canonical)
            if key:
                variations[key] = _clean_list(aliases)

        groups = tuple(
            TagGroup(key=g.key, name=g.name, description=g.description, tags=_clean_list(g.tags))
            for g in self.groups
        )
        categories = {
            _clean(name): _clean_list(tags) for name, tags in self.categories.items() if _clean(name)
        }

        object.__setattr__(self, "entries", _clean_list(self.entries))
        object.__setattr__(self, "variations", MappingProxyType(variations))
        object.__setattr__(self, "groups", groups)
        object.__setattr__(self, "categories", MappingProxyType(categories))

        errors: List[str] = []
        aliases = self._build_alias_map(variations, errors)
        object.__setattr__(self, "_aliases", MappingProxyType(aliases))
        object.__setattr__(self, "_group_index", MappingProxyType(self._build_group_index(errors)))
        object.__setattr__(
            self, "_category_index", MappingProxyType(self._build_category_index(errors))
        )

        if errors:
            raise CatalogError(
                "Keyword catalog is inconsistent",
                errors=errors,
                suggestions=[
                    "Each alias must resolve to exactly one canonical tag",
                    "List only canonical tags in groups and categories",
                    "A tag may belong to at most one group and one category",
                ],
            )

    @staticmethod
    def _build_alias_map(variations: Mapping[str, Tuple[str, ...]], errors: List[str]) -> Dict[str, str]:
        aliases: Dict[str, str] = {canonical: canonical for canonical in variations}

        for canonical, alias_list in variations.items():
            for alias in alias_list:
                existing = aliases.get(alias)
                if existing is None:
                    aliases[alias] = canonical
                elif existing == canonical:
                    continue
                elif alias in variations:
                    errors.append(
                        f"Alias '{alias}' of '{canonical}' is itself a canonical tag (alias chain)"
                    )
                else:
                    errors.append(f"Alias '{alias}' maps to both '{existing}' and '{canonical}'")

        return aliases

    def _build_group_index(self, errors: List[str]) -> Dict[str, TagGroup]:
        index: Dict[str, TagGroup] = {}
        for group in self.groups:
            for tag in group.tags:
                if self.resolve(tag) != tag:
                    errors.append(
                        f"Group '{group.key}' lists alias '{tag}' instead of '{self.resolve(tag)}'"
                    )
                if tag in index:
                    errors.append(
                        f"Tag '{tag}' appears in groups '{index[tag].key}' and '{group.key}'"
                    )
                    continue
                index[tag] = group
        return index

    def _build_category_index(self, errors: List[str]) -> Dict[str, str]:
        index: Dict[str, str] = {}
        for category, tags in self.categories.items():
            if category == OTHER_CATEGORY:
                errors.append(f"Category '{OTHER_CATEGORY}' is reserved for uncategorized tags")
                continue
            for tag in tags:
                if self.resolve(tag) != tag:
                    errors.append(
                        f"Category '{category}' lists alias '{tag}' instead of '{self.resolve(tag)}'"
                    )
                if tag in index:
                    errors.append(
                        f"Tag '{tag}' appears in categories '{index[tag]}' and '{category}'"
                    )
                    continue
                index[tag] = category
        return index

    @property
    def aliases(self) -> Mapping[str, str]:
        """Alias -> canonical map (canonical tags map to themselves)."""
        return self._aliases

    def resolve(self, term: str) -> str:
        """Canonical form of ``term``, or the cleaned term when it has no alias."""
        cleaned = _clean(term)
        return self._aliases.get(cleaned, cleaned)

    def keywords(self, min_length: int = 1) -> List[str]:
        """Ordered canonical keywords at least ``min_length`` characters long.

        Keyword entries are resolved to canonical form first, then canonical
        variation keys missing from the keyword list are appended.
        """
        result: Dict[str, None] = {}
        for term in self.entries:
            result.setdefault(self.resolve(term), None)
        for canonical in self.variations:
            result.setdefault(canonical, None)
        return [term for term in result if len(term) >= min_length]

    def match_terms(self, include_variations: bool = True) -> List[Tuple[str, str]]:
        """(literal, canonical) pairs to search for, in match order.

        Literal keyword entries come first, then variation keys that are not
        keyword entries, then (optionally) every alias.
        """
        seen = set()
        pairs: List[Tuple[str, str]] = []

        def add(literal: str, canonical: str) -> None:
            if literal not in seen:
                seen.add(literal)
                pairs.append((literal, canonical))

        for term in self.entries:
            add(term, self.resolve(term))
        for canonical in self.variations:
            add(canonical, canonical)
        if include_variations:
            for canonical, alias_list in self.variations.items():
                for alias in alias_list:
                    add(alias, canonical)

        return pairs

    def is_known(self, term: str) -> bool:
        cleaned = _clean(term)
        return cleaned in self._aliases or cleaned in self.entries

    def group_for(self, tag: str) -> Optional[TagGroup]:
        return self._group_index.get(self.resolve(tag))

    def category_for(self, tag: str) -> Optional[str]:
        return self._category_index.get(self.resolve(tag))

    def extended(
        self,
        custom_tags: Iterable[str] = (),
        local_variations: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> "KeywordCatalog":
        """Return a new catalog with extra keywords and alias entries.

        Aliases for an existing canonical tag are merged into its entry;
        unknown canonicals become new entries. Validation runs again on the
        result.
        """
        variations = {canonical: list(aliases) for canonical, aliases in self.variations.items()}
        for canonical, aliases in (local_variations or {}).items():
            key = _clean(canonical)
            if not key:
                continue
            merged = variations.setdefault(key, [])
            merged.extend(a for a in aliases if _clean(a) not in merged)

        return KeywordCatalog(
            entries=self.entries + tuple(custom_tags),
            variations=variations,
            groups=self.groups,
            categories=self.categories,
        )

    @classmethod
    def from_definition(cls, definition: CatalogDefinition) -> "KeywordCatalog":
        groups = tuple(
            TagGroup(key=key, name=group.name, description=group.description, tags=tuple(group.tags))
            for key, group in definition.groups.items()
        )
        return cls(
            entries=tuple(definition.keywords),
            variations=definition.variations,
            groups=groups,
            categories=definition.categories,
        )

    def summary(self) -> Dict[str, int]:
        return {
            "keywords": len(self.entries),
            "canonical_variations": len(self.variations),
            "aliases": len(self._aliases),
            "groups": len(self.groups),
            "categories": len(self.categories),
        }


def load_catalog(path: Optional[Path] = None) -> KeywordCatalog:
    """Load and validate a catalog YAML file.

    Args:
        path: Catalog file (defaults to the packaged catalog.yaml)

    Returns:
        Validated KeywordCatalog

    Raises:
        CatalogError: If the file is missing, unparseable or inconsistent
    """
    catalog_file = Path(path) if path else DEFAULT_CATALOG_PATH

    try:
        with open(catalog_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogError(
            f"Failed to parse keyword catalog {catalog_file}: {e}",
            suggestions=["Check YAML syntax in the catalog file"],
        ) from e
    except OSError as e:
        raise CatalogError(
            f"Failed to read keyword catalog {catalog_file}: {e}",
            suggestions=["Check tag_extraction.catalog_path in your config"],
        ) from e

    if not isinstance(raw, dict):
        raise CatalogError(
            f"Keyword catalog {catalog_file} must be a mapping with a 'keywords' list",
        )

    try:
        definition = CatalogDefinition.model_validate(raw)
    except ValidationError as e:
        errors = [
            f"{' -> '.join(str(loc) for loc in error['loc']) or '<root>'}: {error['msg']}"
            for error in e.errors()
        ]
        raise CatalogError(
            f"Keyword catalog {catalog_file} failed validation",
            errors=errors,
        ) from e

    catalog = KeywordCatalog.from_definition(definition)

    logger.debug(
        "Keyword catalog loaded",
        extra={"event": "catalog.loaded", "path": str(catalog_file), **catalog.summary()},
    )

    return catalog


@lru_cache(maxsize=1)
def default_catalog() -> KeywordCatalog:
    """Packaged catalog, loaded once per process."""
    return load_catalog()
