"""Exception hierarchy for codesearch-indexer."""

from typing import Any


class CodeSearchError(Exception):
    """Base class for all codesearch-indexer errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(CodeSearchError):
    """Invalid or incomplete configuration."""


class GitCommandError(CodeSearchError):
    """The git CLI exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        exit_code: int,
        stderr: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details={"exit_code": exit_code, "stderr": stderr, **(details or {})})
        self.exit_code = exit_code
        self.stderr = stderr


class CloneError(GitCommandError):
    """Cloning a repository failed (network, auth, invalid URL, directory collision)."""


class VcsQueryError(GitCommandError):
    """A per-file git query failed."""


class DocumentBuildError(CodeSearchError):
    """A file could not be read or decoded into a search document."""


class SearchIndexError(CodeSearchError):
    """Base class for failures reported by the search index backend."""


class IndexCreateError(SearchIndexError):
    """The search index could not be created."""


class IndexDeleteError(SearchIndexError):
    """Deleting stale documents failed."""


class IndexSubmitError(SearchIndexError):
    """A bulk submission failed, fully or for some items."""

    def __init__(
        self,
        message: str,
        item_errors: list[dict[str, Any]] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.item_errors = item_errors or []


class CleanupError(CodeSearchError):
    """A working directory could not be removed."""


class RepositoryBusyError(CodeSearchError):
    """Another run already owns the working directory of this repository."""


class SourceHostingError(CodeSearchError):
    """The source-hosting API returned an error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code
