"""Whole-word keyword extraction from free text."""

import re
import unicodedata
from dataclasses import replace
from typing import Any, Dict, List, NamedTuple, Optional, Pattern

from jobscan.logging import get_logger

from .catalog import KeywordCatalog
from .models import ExtractionOptions

logger = get_logger(__name__, component="extractor")

# Word characters plus combining diacritics, which decomposed text keeps apart
_WORD_CHAR = r"[\w\u0300-\u036f]"


class _Matcher(NamedTuple):
    literal: str
    canonical: str
    pattern: Pattern[str]
    is_variation: bool


def compile_term(term: str) -> Pattern[str]:
    """Compile a whole-word pattern for ``term``.

    A match may not be preceded or followed by a word character or a
    combining mark. Unicode word characters count, so ``rust`` does not
    match inside ``rústico``, and terms with symbols (``c++``, ``c#``,
    ``.net``) still match.
    """
    return re.compile(rf"(?<!{_WORD_CHAR}){re.escape(term)}(?!{_WORD_CHAR})")


class TagExtractor:
    """Finds catalog keywords in text and returns them as tags.

    Patterns are compiled once per extractor. Matching is read-only, so a
    single instance can be shared across threads.
    """

    def __init__(self, catalog: KeywordCatalog, options: Optional[ExtractionOptions] = None):
        self.catalog = catalog
        self.options = options or ExtractionOptions()

        base_terms = {literal for literal, _ in catalog.match_terms(include_variations=False)}
        self._matchers: List[_Matcher] = [
            _Matcher(literal, canonical, compile_term(literal), literal not in base_terms)
            for literal, canonical in catalog.match_terms(include_variations=True)
        ]

        logger.debug(
            "Tag extractor ready",
            extra={"event": "extractor.initialized", "patterns": len(self._matchers)},
        )

    def extract_tags(self, text: Any, options: Optional[ExtractionOptions] = None, **overrides) -> List[str]:
        """Extract tags from a piece of text.

        Args:
            text: Text to scan (non-string or blank input yields [])
            options: Options for this call (defaults to the extractor's)
            **overrides: Individual option overrides, e.g. ``max_tags=5``

        Returns:
            Unique tags in catalog order, at most ``max_tags`` long

        Example:
            >>> extractor.extract_tags("Senior Python dev, K8s y AWS")
            ['python', 'aws', 'kubernetes']
        """
        if not isinstance(text, str) or not text.strip():
            return []

        opts = options or self.options
        if overrides:
            opts = replace(opts, **overrides)

        limit = max(opts.max_tags, 0)
        if limit == 0:
            return []

        # Decomposed accents are recombined so "javá" stays one word
        text = unicodedata.normalize("NFC", text)
        haystack = text if opts.case_sensitive else text.lower()
        found: Dict[str, None] = {}

        for matcher in self._matchers:
            if matcher.is_variation and not opts.include_variations:
                continue
            if len(matcher.literal) < opts.min_word_length:
                continue
            if matcher.pattern.search(haystack):
                found.setdefault(matcher.canonical if opts.normalize else matcher.literal, None)

        return list(found)[:limit]

    def extract_from_fields(self, *texts: Any, options: Optional[ExtractionOptions] = None) -> List[str]:
        """Extract tags from several fields and merge them, first field first.

        Used for title/description/requirements; the merged list is bounded
        by the same ``max_tags`` as a single call.
        """
        opts = options or self.options
        merged: Dict[str, None] = {}

        for text in texts:
            for tag in self.extract_tags(text, opts):
                merged.setdefault(tag, None)

        return list(merged)[: max(opts.max_tags, 0)]
