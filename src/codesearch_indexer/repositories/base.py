"""Search index repository interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from codesearch_indexer.core.models.document import BulkResult, SearchDocument


class SearchIndexRepository(ABC):
    """Contract between the indexing pipeline and the full-text index.

    The document field set is fixed by ``SearchDocument``. Implementations
    only need to store and delete documents; searching is not part of this
    contract.
    """

    @abstractmethod
    async def create_index_if_absent(self) -> bool:
        """Create the index with its mapping. Returns True if it was created."""

    @abstractmethod
    async def delete_by_filter(self, *, owner: str, repository: str, branch: str) -> int:
        """Delete every document matching owner, repository and branch.

        Matching is exact and case-insensitive. Returns the number deleted.
        """

    @abstractmethod
    async def bulk_upsert(self, documents: Sequence[SearchDocument]) -> BulkResult:
        """Insert or replace documents, reporting per-item failures."""

    @abstractmethod
    async def count(
        self,
        *,
        owner: str | None = None,
        repository: str | None = None,
        branch: str | None = None,
    ) -> int:
        """Count documents, optionally filtered."""

    @abstractmethod
    async def get_documents(
        self,
        *,
        owner: str,
        repository: str,
        branch: str,
        limit: int = 1000,
    ) -> list[SearchDocument]:
        """Fetch the documents of one owner/repository/branch."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every document, keeping the index."""

    @abstractmethod
    async def delete_index(self) -> None:
        """Drop the index entirely."""

    async def close(self) -> None:
        """Release backend connections."""
