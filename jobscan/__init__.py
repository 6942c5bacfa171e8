"""Job posting pipeline: keyword tagging, consolidation, filtering and statistics."""

__version__ = "0.1.0"
