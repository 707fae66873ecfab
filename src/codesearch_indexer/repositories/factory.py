"""Repository factory for creating repository instances."""

from typing import TYPE_CHECKING

import structlog

from codesearch_indexer.core.exceptions import ConfigurationError
from codesearch_indexer.repositories.base import SearchIndexRepository

if TYPE_CHECKING:
    from codesearch_indexer.config.settings import Settings

logger = structlog.get_logger(__name__)


class RepositoryFactory:
    """Factory for creating repository instances.

    Creates the search index implementation selected by
    ``Settings.search_backend``.
    """

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._search_index: SearchIndexRepository | None = None

    def get_search_index(self) -> SearchIndexRepository:
        """Get or create the search index repository."""
        if self._search_index is None:
            backend = self._settings.search_backend.lower()

            if backend == "elasticsearch":
                from codesearch_indexer.repositories.search.elasticsearch import (
                    ElasticsearchSearchIndex,
                )

                self._search_index = ElasticsearchSearchIndex(
                    url=self._settings.elasticsearch_url,
                    index_name=self._settings.elasticsearch_index,
                    username=self._settings.elasticsearch_username,
                    password=self._settings.elasticsearch_password,
                    api_key=self._settings.elasticsearch_api_key,
                    verify_certs=self._settings.elasticsearch_verify_certs,
                )
            elif backend == "memory":
                from codesearch_indexer.repositories.search.memory import InMemorySearchIndex

                self._search_index = InMemorySearchIndex()
            else:
                raise ConfigurationError(f"Unknown search backend: {backend}")

            logger.info("Search index repository created", backend=backend)

        return self._search_index

    async def close(self) -> None:
        """Close all repository connections."""
        if self._search_index is not None:
            await self._search_index.close()
        self._search_index = None
