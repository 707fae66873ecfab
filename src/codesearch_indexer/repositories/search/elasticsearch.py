"""Elasticsearch implementation of the search index repository."""

from collections.abc import Sequence
from typing import Any

import structlog
from elasticsearch import ApiError, AsyncElasticsearch, TransportError
from elasticsearch.helpers import async_bulk

from codesearch_indexer.core.exceptions import (
    IndexCreateError,
    IndexDeleteError,
    IndexSubmitError,
    SearchIndexError,
)
from codesearch_indexer.core.models.document import BulkResult, SearchDocument
from codesearch_indexer.repositories.base import SearchIndexRepository

logger = structlog.get_logger(__name__)

INDEX_SETTINGS: dict[str, Any] = {
    "codec": "best_compression",
    "analysis": {
        "normalizer": {
            "sha_normalizer": {"type": "custom", "filter": ["lowercase"]},
        },
        "analyzer": {
            "default": {
                "type": "custom",
                "tokenizer": "standard",
                "filter": ["lowercase", "stemmer"],
            },
            "whitespace_reverse": {
                "type": "custom",
                "tokenizer": "whitespace",
                "filter": ["lowercase", "asciifolding", "reverse"],
            },
            "code_analyzer": {
                "type": "custom",
                "tokenizer": "whitespace",
                "filter": [
                    "word_delimiter_graph_filter",
                    "flatten_graph",
                    "lowercase",
                    "asciifolding",
                    "remove_duplicates",
                ],
            },
            "custom_path_tree": {"type": "custom", "tokenizer": "custom_hierarchy"},
            "custom_path_tree_reversed": {
                "type": "custom",
                "tokenizer": "custom_hierarchy_reversed",
            },
        },
        "tokenizer": {
            "custom_hierarchy": {"type": "path_hierarchy", "delimiter": "/"},
            "custom_hierarchy_reversed": {
                "type": "path_hierarchy",
                "delimiter": "/",
                "reverse": True,
            },
        },
        "filter": {
            "word_delimiter_graph_filter": {
                "type": "word_delimiter_graph",
                "preserve_original": True,
            },
        },
    },
}

INDEX_MAPPINGS: dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword", "index_options": "docs", "normalizer": "sha_normalizer"},
        "owner": {"type": "keyword"},
        "repository": {"type": "keyword"},
        "branch": {"type": "keyword"},
        "path": {
            "type": "text",
            "fields": {
                "tree": {"type": "text", "analyzer": "custom_path_tree"},
                "tree_reversed": {"type": "text", "analyzer": "custom_path_tree_reversed"},
            },
        },
        "filename": {
            "type": "text",
            "analyzer": "code_analyzer",
            "store": True,
            "fields": {
                "reverse": {"type": "text", "analyzer": "whitespace_reverse"},
            },
        },
        "commit_hash": {
            "type": "keyword",
            "index_options": "docs",
            "normalizer": "sha_normalizer",
        },
        "content": {
            "type": "text",
            "index_options": "positions",
            "analyzer": "code_analyzer",
            "term_vector": "with_positions_offsets_payloads",
            "store": True,
        },
        "permalink": {"type": "keyword"},
        "latest_commit_date": {"type": "date"},
    }
}


def _term_filter(
    owner: str | None = None,
    repository: str | None = None,
    branch: str | None = None,
) -> dict[str, Any]:
    """Build an exact, case-insensitive match on the scoping fields."""
    terms = [
        {"term": {field: {"value": value, "case_insensitive": True}}}
        for field, value in (("owner", owner), ("repository", repository), ("branch", branch))
        if value is not None
    ]
    if not terms:
        return {"match_all": {}}
    return {"bool": {"filter": terms}}


class ElasticsearchSearchIndex(SearchIndexRepository):
    """Stores search documents in a single Elasticsearch index."""

    def __init__(
        self,
        url: str = "http://localhost:9200",
        index_name: str = "code-search",
        username: str | None = None,
        password: str | None = None,
        api_key: str | None = None,
        verify_certs: bool = True,
        client: AsyncElasticsearch | None = None,
    ) -> None:
        self._index_name = index_name
        if client is None:
            options: dict[str, Any] = {"verify_certs": verify_certs}
            if api_key:
                options["api_key"] = api_key
            elif username and password:
                options["basic_auth"] = (username, password)
            client = AsyncElasticsearch(hosts=[url], **options)
        self._client = client

    @property
    def index_name(self) -> str:
        return self._index_name

    async def create_index_if_absent(self) -> bool:
        try:
            if await self._client.indices.exists(index=self._index_name):
                logger.debug("Search index already exists", index=self._index_name)
                return False

            await self._client.indices.create(
                index=self._index_name,
                settings=INDEX_SETTINGS,
                mappings=INDEX_MAPPINGS,
            )
        except (ApiError, TransportError) as e:
            raise IndexCreateError(
                f"Failed to create search index '{self._index_name}': {e}",
                details={"index": self._index_name},
            ) from e

        logger.info("Search index created", index=self._index_name)
        return True

    async def delete_by_filter(self, *, owner: str, repository: str, branch: str) -> int:
        try:
            response = await self._client.delete_by_query(
                index=self._index_name,
                query=_term_filter(owner, repository, branch),
                conflicts="proceed",
                refresh=True,
            )
        except (ApiError, TransportError) as e:
            raise IndexDeleteError(
                f"Failed to delete documents of {owner}/{repository}@{branch}: {e}",
                details={"owner": owner, "repository": repository, "branch": branch},
            ) from e

        failures = response.get("failures") or []
        if failures:
            raise IndexDeleteError(
                f"Delete of {owner}/{repository}@{branch} reported {len(failures)} failures",
                details={"failures": failures},
            )

        deleted = response.get("deleted", 0)
        logger.debug(
            "Deleted stale documents",
            owner=owner,
            repository=repository,
            branch=branch,
            deleted=deleted,
        )
        return deleted

    async def bulk_upsert(self, documents: Sequence[SearchDocument]) -> BulkResult:
        if not documents:
            return BulkResult()

        actions = [
            {
                "_op_type": "index",
                "_index": self._index_name,
                "_id": document.index_key,
                "_source": document.model_dump(mode="json"),
            }
            for document in documents
        ]

        try:
            succeeded, errors = await async_bulk(
                self._client,
                actions,
                raise_on_error=False,
                stats_only=False,
            )
        except (ApiError, TransportError) as e:
            raise IndexSubmitError(
                f"Bulk request with {len(documents)} documents failed: {e}",
                details={"documents": len(documents)},
            ) from e

        return BulkResult(succeeded=succeeded, errors=list(errors))

    async def count(
        self,
        *,
        owner: str | None = None,
        repository: str | None = None,
        branch: str | None = None,
    ) -> int:
        try:
            response = await self._client.count(
                index=self._index_name,
                query=_term_filter(owner, repository, branch),
            )
        except (ApiError, TransportError) as e:
            raise SearchIndexError(f"Failed to count documents: {e}") from e
        return response["count"]

    async def get_documents(
        self,
        *,
        owner: str,
        repository: str,
        branch: str,
        limit: int = 1000,
    ) -> list[SearchDocument]:
        try:
            response = await self._client.search(
                index=self._index_name,
                query=_term_filter(owner, repository, branch),
                size=limit,
            )
        except (ApiError, TransportError) as e:
            raise SearchIndexError(f"Failed to read documents: {e}") from e
        return [SearchDocument.model_validate(hit["_source"]) for hit in response["hits"]["hits"]]

    async def delete_all(self) -> int:
        try:
            response = await self._client.delete_by_query(
                index=self._index_name,
                query={"match_all": {}},
                conflicts="proceed",
                refresh=True,
            )
        except (ApiError, TransportError) as e:
            raise IndexDeleteError(f"Failed to delete all documents: {e}") from e
        return response.get("deleted", 0)

    async def delete_index(self) -> None:
        try:
            await self._client.indices.delete(index=self._index_name, ignore_unavailable=True)
        except (ApiError, TransportError) as e:
            raise SearchIndexError(f"Failed to delete index '{self._index_name}': {e}") from e
        logger.info("Search index deleted", index=self._index_name)

    async def close(self) -> None:
        await self._client.close()
