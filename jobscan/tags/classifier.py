"""Tag normalization, grouping, categorization and suggestions.

All operations are pure lookups against the keyword catalog. Malformed
input (wrong types, empty strings) degrades to empty results, None or the
"other" category instead of raising.
"""

from collections import Counter
from typing import Any, Dict, List, Optional

from .catalog import KeywordCatalog
from .models import (
    OTHER_CATEGORY,
    RelatedSuggestion,
    TagAnalysis,
    TagGroup,
    TagStats,
    TagSuggestion,
)

# Relevance scores for suggest_tags()
CANONICAL_PREFIX = 1.0
VARIATION_PREFIX = 0.9
CANONICAL_SUBSTRING = 0.8
VARIATION_SUBSTRING = 0.6

MIN_TAG_LENGTH = 2


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class TagClassifier:
    """Maps tags onto the catalog's canonical forms, groups and categories."""

    def __init__(self, catalog: KeywordCatalog):
        self.catalog = catalog

    def normalize_tag(self, tag: Any) -> Optional[str]:
        """Canonical form of a tag, or None for empty / non-string input.

        Example:
            >>> classifier.normalize_tag("  K8s ")
            'kubernetes'
        """
        if not isinstance(tag, str):
            return None
        cleaned = tag.strip().lower()
        if not cleaned:
            return None
        return self.catalog.resolve(cleaned)

    def normalize_tags(self, tags: Any) -> List[str]:
        """Normalize and dedupe a list of tags, keeping first-occurrence order.

        Idempotent: normalizing an already-normalized list returns it as-is.
        """
        if not isinstance(tags, (list, tuple)):
            return []

        result: Dict[str, None] = {}
        for tag in tags:
            normalized = self.normalize_tag(tag)
            if normalized:
                result.setdefault(normalized, None)
        return list(result)

    def get_tag_category(self, tag: Any) -> str:
        normalized = self.normalize_tag(tag)
        if normalized is None:
            return OTHER_CATEGORY
        return self.catalog.category_for(normalized) or OTHER_CATEGORY

    def get_tag_group(self, tag: Any) -> Optional[TagGroup]:
        normalized = self.normalize_tag(tag)
        if normalized is None:
            return None
        return self.catalog.group_for(normalized)

    def get_related_tags(self, tag: Any) -> List[str]:
        """Other members of the tag's group (empty when it has none)."""
        normalized = self.normalize_tag(tag)
        group = self.get_tag_group(tag)
        if group is None:
            return []
        return [member for member in group.tags if member != normalized]

    def get_tags_by_category(self, category: Any) -> List[str]:
        if not isinstance(category, str):
            return []
        return list(self.catalog.categories.get(category.strip().lower(), ()))

    def categorize_tags(self, tags: Any) -> Dict[str, List[str]]:
        """Bucket tags into every catalog category plus "other".

        Each bucket keeps the normalized tags in input order; empty buckets
        are present so the shape of the result is stable.
        """
        buckets: Dict[str, List[str]] = {name: [] for name in self.catalog.categories}
        buckets[OTHER_CATEGORY] = []

        for tag in self.normalize_tags(tags):
            buckets[self.get_tag_category(tag)].append(tag)

        return buckets

    def validate_and_clean_tags(self, tags: Any) -> List[str]:
        """Drop non-strings and very short tags, lowercase, trim and dedupe.

        Does not resolve aliases; use normalize_tags() for that.
        """
        if not isinstance(tags, (list, tuple)):
            return []

        result: Dict[str, None] = {}
        for tag in tags:
            if not isinstance(tag, str):
                continue
            cleaned = tag.strip().lower()
            if len(cleaned) >= MIN_TAG_LENGTH:
                result.setdefault(cleaned, None)
        return list(result)

    def suggest_tags(self, partial_text: Any, limit: int = 10) -> List[TagSuggestion]:
        """Suggest canonical tags whose name or alias contains ``partial_text``.

        Prefix matches rank above substring matches, and canonical matches
        above alias matches:

        - canonical prefix: 1.0
        - alias prefix: 0.9
        - canonical substring: 0.8
        - alias substring: 0.6

        Each canonical tag appears once, with its best score. Ties keep
        catalog order.
        """
        if not isinstance(partial_text, str) or not _is_count(limit) or limit <= 0:
            return []
        query = partial_text.strip().lower()
        if not query:
            return []

        best: Dict[str, TagSuggestion] = {}

        def offer(suggestion: TagSuggestion) -> None:
            current = best.get(suggestion.tag)
            if current is None or suggestion.relevance > current.relevance:
                best[suggestion.tag] = suggestion

        for tag in self.catalog.keywords():
            if tag.startswith(query):
                offer(TagSuggestion(tag, "canonical", CANONICAL_PREFIX))
            elif query in tag:
                offer(TagSuggestion(tag, "canonical", CANONICAL_SUBSTRING))

        for canonical, aliases in self.catalog.variations.items():
            for alias in aliases:
                if alias == canonical:
                    continue
                if alias.startswith(query):
                    offer(TagSuggestion(canonical, "variation", VARIATION_PREFIX, alias))
                elif query in alias:
                    offer(TagSuggestion(canonical, "variation", VARIATION_SUBSTRING, alias))

        # sorted() is stable, so equal scores keep catalog order
        ranked = sorted(best.values(), key=lambda s: s.relevance, reverse=True)
        return ranked[:limit]

    def analyze_tags(self, tags: Any) -> TagAnalysis:
        """Report how a tag list normalizes, groups and categorizes."""
        original = list(tags) if isinstance(tags, (list, tuple)) else []
        normalized = self.normalize_tags(original)

        analysis = TagAnalysis(
            original=original,
            normalized=normalized,
            duplicates_removed=len(original) - len(normalized),
        )

        for tag in normalized:
            analysis.categories.setdefault(self.get_tag_category(tag), []).append(tag)

            group = self.catalog.group_for(tag)
            if group is not None:
                entry = analysis.groups.setdefault(group.key, {"name": group.name, "tags": []})
                entry["tags"].append(tag)

        suggested = set(normalized)
        for tag in normalized:
            group = self.catalog.group_for(tag)
            if group is None:
                continue
            for related in group.tags:
                if related in suggested:
                    continue
                suggested.add(related)
                analysis.related_suggestions.append(
                    RelatedSuggestion(
                        suggested=related,
                        based_on=tag,
                        reason=f"Same group: {group.name}",
                    )
                )

        return analysis

    def get_tag_stats(self, tags: Any, top_n: int = 10) -> TagStats:
        """Count tags by category and group and rank the most common raw tags.

        ``total`` counts every string tag as given; ``unique`` counts distinct
        tags after normalization. The ranking uses the raw (lowercased) tags,
        with ties broken by first appearance.

        Example:
            >>> stats = classifier.get_tag_stats(["js", "javascript", "JavaScript", "python"])
            >>> stats.total, stats.unique
            (4, 2)
        """
        if not isinstance(tags, (list, tuple)):
            tags = []
        raw = [tag.strip().lower() for tag in tags if isinstance(tag, str) and tag.strip()]

        stats = TagStats(total=len(raw), unique=len(self.normalize_tags(raw)))

        for tag in raw:
            normalized = self.catalog.resolve(tag)
            category = self.get_tag_category(normalized)
            stats.by_category[category] = stats.by_category.get(category, 0) + 1

            group = self.catalog.group_for(normalized)
            if group is not None:
                stats.by_group[group.key] = stats.by_group.get(group.key, 0) + 1

        # Counter preserves insertion order, and sorted() is stable
        counts = Counter(raw)
        limit = max(top_n, 0) if _is_count(top_n) else 0
        stats.most_common = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]

        return stats
