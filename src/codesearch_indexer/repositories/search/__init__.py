"""Search index backends."""

from codesearch_indexer.repositories.search.memory import InMemorySearchIndex

__all__ = ["InMemorySearchIndex"]
