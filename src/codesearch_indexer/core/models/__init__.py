"""Domain models for codesearch-indexer."""

from codesearch_indexer.core.models.document import (
    BuildOutcome,
    BulkResult,
    FileMetadata,
    SearchDocument,
)
from codesearch_indexer.core.models.job import (
    IndexingJob,
    IndexResult,
    OrganizationJob,
    RepositoryJob,
    RunState,
    UrlJob,
)
from codesearch_indexer.core.models.repository import RepositoryMetadata, SourceSystem

__all__ = [
    "SearchDocument",
    "FileMetadata",
    "BuildOutcome",
    "BulkResult",
    "RepositoryMetadata",
    "SourceSystem",
    "RunState",
    "IndexResult",
    "IndexingJob",
    "RepositoryJob",
    "OrganizationJob",
    "UrlJob",
]
