"""Tests for the repository factory."""

import pytest

from codesearch_indexer.config.settings import Settings
from codesearch_indexer.core.exceptions import ConfigurationError
from codesearch_indexer.repositories.factory import RepositoryFactory
from codesearch_indexer.repositories.search.elasticsearch import ElasticsearchSearchIndex
from codesearch_indexer.repositories.search.memory import InMemorySearchIndex


@pytest.mark.unit
class TestRepositoryFactory:
    """Tests for RepositoryFactory."""

    @pytest.mark.asyncio
    async def test_memory_backend(self) -> None:
        factory = RepositoryFactory(Settings(search_backend="memory"))
        index = factory.get_search_index()
        assert isinstance(index, InMemorySearchIndex)
        assert factory.get_search_index() is index
        await factory.close()

    @pytest.mark.asyncio
    async def test_elasticsearch_backend(self) -> None:
        factory = RepositoryFactory(
            Settings(search_backend="Elasticsearch", elasticsearch_index="code-search-test")
        )
        index = factory.get_search_index()
        assert isinstance(index, ElasticsearchSearchIndex)
        assert index.index_name == "code-search-test"
        await factory.close()

    def test_unknown_backend(self) -> None:
        factory = RepositoryFactory(Settings(search_backend="solr"))
        with pytest.raises(ConfigurationError):
            factory.get_search_index()
