"""codesearch-indexer: indexes git repositories into a full-text code search index."""

__version__ = "0.1.0"
