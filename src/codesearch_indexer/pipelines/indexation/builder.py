"""Builds search documents from files of a cloned repository."""

import asyncio
from pathlib import Path, PurePosixPath

import structlog

from codesearch_indexer.core.exceptions import DocumentBuildError, VcsQueryError
from codesearch_indexer.core.models.document import BuildOutcome, SearchDocument
from codesearch_indexer.core.models.repository import RepositoryMetadata
from codesearch_indexer.git.executor import GitExecutor
from codesearch_indexer.git.permalink import generate_permalink

logger = structlog.get_logger(__name__)


def read_text_file(working_directory: Path, path: str) -> str:
    """Read a tracked file as UTF-8, dropping a leading BOM.

    Git stores only the target of a symbolic link, so links are refused, as
    is anything that resolves outside the working directory.
    """
    file_path = working_directory / path
    if file_path.is_symlink():
        raise DocumentBuildError(f"'{path}' is a symbolic link", details={"path": path})
    if not file_path.resolve().is_relative_to(working_directory.resolve()):
        raise DocumentBuildError(
            f"'{path}' resolves outside the working directory", details={"path": path}
        )
    return file_path.read_text(encoding="utf-8-sig")


class DocumentBuilder:
    """Turns one repository file into a ``SearchDocument``.

    Per-file failures are returned in the ``BuildOutcome`` so a batch can
    skip the file and carry on.
    """

    def __init__(self, executor: GitExecutor) -> None:
        self._executor = executor

    async def build(
        self,
        repository: RepositoryMetadata,
        path: str,
        working_directory: Path,
    ) -> BuildOutcome:
        try:
            metadata = await self._executor.file_metadata(working_directory, path)
        except VcsQueryError as e:
            return BuildOutcome(path=path, error=e)

        if not metadata.content_hash:
            return BuildOutcome(
                path=path,
                error=VcsQueryError(
                    f"No blob hash for '{path}'",
                    exit_code=0,
                    details={"path": path},
                ),
            )

        try:
            content = await asyncio.to_thread(read_text_file, working_directory, path)
        except DocumentBuildError as e:
            return BuildOutcome(path=path, error=e)
        except (OSError, UnicodeDecodeError) as e:
            return BuildOutcome(
                path=path,
                error=DocumentBuildError(
                    f"Failed to read '{path}': {e}",
                    details={"path": path, "repository": repository.full_name},
                ),
            )

        document = SearchDocument(
            id=metadata.content_hash,
            owner=repository.owner,
            repository=repository.name,
            branch=repository.branch,
            path=path,
            filename=PurePosixPath(path).name,
            commit_hash=metadata.commit_hash,
            content=content,
            permalink=generate_permalink(
                repository.source_system,
                repository.owner,
                repository.name,
                metadata.commit_hash,
                path,
                branch=repository.branch,
            ),
            latest_commit_date=metadata.latest_commit_date,
        )
        return BuildOutcome(path=path, document=document)
