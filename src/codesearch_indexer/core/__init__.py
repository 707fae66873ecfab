"""Core domain models and exceptions for codesearch-indexer."""

from codesearch_indexer.core.exceptions import (
    CleanupError,
    CloneError,
    CodeSearchError,
    ConfigurationError,
    DocumentBuildError,
    GitCommandError,
    IndexCreateError,
    IndexDeleteError,
    IndexSubmitError,
    RepositoryBusyError,
    SearchIndexError,
    SourceHostingError,
    VcsQueryError,
)
from codesearch_indexer.core.models import (
    BuildOutcome,
    BulkResult,
    FileMetadata,
    IndexResult,
    RepositoryMetadata,
    RunState,
    SearchDocument,
    SourceSystem,
)

__all__ = [
    # Models
    "SearchDocument",
    "FileMetadata",
    "BuildOutcome",
    "BulkResult",
    "RepositoryMetadata",
    "SourceSystem",
    "RunState",
    "IndexResult",
    # Exceptions
    "CodeSearchError",
    "ConfigurationError",
    "GitCommandError",
    "CloneError",
    "VcsQueryError",
    "DocumentBuildError",
    "SearchIndexError",
    "IndexCreateError",
    "IndexDeleteError",
    "IndexSubmitError",
    "CleanupError",
    "RepositoryBusyError",
    "SourceHostingError",
]
