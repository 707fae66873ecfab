"""In-process implementation of the search index repository."""

from collections.abc import Sequence

import structlog

from codesearch_indexer.core.models.document import BulkResult, SearchDocument
from codesearch_indexer.repositories.base import SearchIndexRepository

logger = structlog.get_logger(__name__)


def _matches(value: str, expected: str | None) -> bool:
    return expected is None or value.casefold() == expected.casefold()


class InMemorySearchIndex(SearchIndexRepository):
    """Keeps documents in a dict keyed by ``SearchDocument.index_key``.

    Useful for dry runs and tests. Nothing is persisted.
    """

    def __init__(self) -> None:
        self._documents: dict[str, SearchDocument] = {}
        self._created = False

    async def create_index_if_absent(self) -> bool:
        if self._created:
            return False
        self._created = True
        logger.info("In-memory search index created")
        return True

    async def delete_by_filter(self, *, owner: str, repository: str, branch: str) -> int:
        keys = [
            key
            for key, doc in self._documents.items()
            if _matches(doc.owner, owner)
            and _matches(doc.repository, repository)
            and _matches(doc.branch, branch)
        ]
        for key in keys:
            del self._documents[key]
        return len(keys)

    async def bulk_upsert(self, documents: Sequence[SearchDocument]) -> BulkResult:
        for document in documents:
            self._documents[document.index_key] = document
        return BulkResult(succeeded=len(documents))

    async def count(
        self,
        *,
        owner: str | None = None,
        repository: str | None = None,
        branch: str | None = None,
    ) -> int:
        return sum(
            1
            for doc in self._documents.values()
            if _matches(doc.owner, owner)
            and _matches(doc.repository, repository)
            and _matches(doc.branch, branch)
        )

    async def get_documents(
        self,
        *,
        owner: str,
        repository: str,
        branch: str,
        limit: int = 1000,
    ) -> list[SearchDocument]:
        matching = [
            doc
            for doc in self._documents.values()
            if _matches(doc.owner, owner)
            and _matches(doc.repository, repository)
            and _matches(doc.branch, branch)
        ]
        return sorted(matching, key=lambda doc: doc.path)[:limit]

    async def delete_all(self) -> int:
        deleted = len(self._documents)
        self._documents.clear()
        return deleted

    async def delete_index(self) -> None:
        self._documents.clear()
        self._created = False
