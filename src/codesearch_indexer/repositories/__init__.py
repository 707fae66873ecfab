"""Storage backends for codesearch-indexer."""

from codesearch_indexer.repositories.base import SearchIndexRepository
from codesearch_indexer.repositories.factory import RepositoryFactory

__all__ = ["SearchIndexRepository", "RepositoryFactory"]
