"""Configuration for codesearch-indexer."""

from codesearch_indexer.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
