"""Main indexation pipeline."""

import asyncio
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

import structlog

from codesearch_indexer.core.exceptions import (
    CleanupError,
    CodeSearchError,
    ConfigurationError,
    IndexSubmitError,
    RepositoryBusyError,
)
from codesearch_indexer.core.models.document import BulkResult
from codesearch_indexer.core.models.job import IndexResult, RunState
from codesearch_indexer.core.models.repository import RepositoryMetadata
from codesearch_indexer.git.executor import GitExecutor
from codesearch_indexer.git.file_filter import FileFilter
from codesearch_indexer.pipelines.indexation.builder import DocumentBuilder
from codesearch_indexer.pipelines.indexation.config import IndexerConfig
from codesearch_indexer.pipelines.indexation.workdir import WorkingDirectory
from codesearch_indexer.repositories.base import SearchIndexRepository

logger = structlog.get_logger(__name__)


def chunked(items: Iterable[str], size: int) -> Iterator[list[str]]:
    """Split items into consecutive lists of at most ``size`` elements."""
    batch: list[str] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


@dataclass
class _RunStats:
    documents_indexed: int = 0
    files_skipped: int = 0


class IndexationPipeline:
    """Pipeline for indexing git repositories into the search index.

    Orchestrates one run per repository:
    1. Delete the stale documents of the repository/branch
    2. Clone the branch into a fresh working directory
    3. List tracked files and keep the allowed ones
    4. Build documents and bulk upsert them, batch by batch
    5. Remove the working directory, whatever happened before

    Any failure up to step 4 ends the run with a failed ``IndexResult``
    rather than an exception. Cancellation still propagates, after cleanup.
    """

    def __init__(
        self,
        search_index: SearchIndexRepository,
        executor: GitExecutor,
        config: IndexerConfig,
        builder: DocumentBuilder | None = None,
    ) -> None:
        self._search_index = search_index
        self._executor = executor
        self._config = config
        self._builder = builder or DocumentBuilder(executor)
        self._file_filter = FileFilter(config.allowed_extensions, config.allowed_filenames)
        self._in_flight: set[str] = set()

    @property
    def config(self) -> IndexerConfig:
        return self._config

    @property
    def executor(self) -> GitExecutor:
        return self._executor

    async def create_search_index(self) -> bool:
        """Create the search index if it does not exist yet."""
        return await self._search_index.create_index_if_absent()

    async def index_repository(self, repository: RepositoryMetadata) -> IndexResult:
        """Index one repository branch, replacing whatever was indexed before."""
        log = logger.bind(repository=repository.full_name, branch=repository.branch)
        started = time.perf_counter()
        result = IndexResult(
            full_name=repository.full_name,
            branch=repository.branch,
            state=RunState.QUEUED,
        )

        if not repository.clone_url:
            error = ConfigurationError(f"Repository {repository.full_name} has no clone URL")
            log.warning("Not indexing repository", error=str(error))
            return self._failed(result, RunState.QUEUED, error, started)

        workdir = WorkingDirectory(self._config.base_directory, repository.name)
        if not workdir.is_managed:
            error = ConfigurationError(
                f"Working directory {workdir} is outside {self._config.base_directory}"
            )
            log.warning("Not indexing repository", error=str(error))
            return self._failed(result, RunState.QUEUED, error, started)

        if workdir.key in self._in_flight:
            error = RepositoryBusyError(
                f"Working directory {workdir} is in use by another run",
                details={"working_directory": workdir.key},
            )
            log.warning("Repository is already being indexed", error=str(error))
            return self._failed(result, RunState.QUEUED, error, started)

        self._in_flight.add(workdir.key)
        stats = _RunStats()
        try:
            self._transition(log, result, RunState.DELETING_STALE)
            deleted = await self._search_index.delete_by_filter(
                owner=repository.owner,
                repository=repository.name,
                branch=repository.branch,
            )
            log.info("Deleted stale documents", deleted=deleted)

            self._transition(log, result, RunState.CLONING)
            await asyncio.to_thread(workdir.prepare)
            await self._executor.clone(
                repository.clone_url, workdir.path, branch=repository.branch
            )

            self._transition(log, result, RunState.LISTING)
            files = await self._executor.list_files(workdir.path)
            eligible = self._file_filter.filter(files)
            log.info("Listed files", files=len(files), eligible=len(eligible))

            self._transition(log, result, RunState.BATCHING)
            batches = list(chunked(eligible, self._config.batch_size))
            result.batches = len(batches)

            self._transition(log, result, RunState.SUBMITTING)
            await self._submit_batches(repository, batches, workdir.path, stats)
        except Exception as e:
            log.error(
                "Indexing repository failed",
                stage=result.state.value,
                error=str(e),
                exc_info=not isinstance(e, CodeSearchError),
            )
            result.failed_stage = result.state
            result.error = str(e)
        finally:
            # Runs synchronously so a second cancellation cannot skip it
            log.info("Run state", state=RunState.CLEANING_UP.value)
            self._cleanup(workdir, log)
            self._in_flight.discard(workdir.key)
            result.documents_indexed = stats.documents_indexed
            result.files_skipped = stats.files_skipped
            result.elapsed_ms = (time.perf_counter() - started) * 1000

        result.state = RunState.FAILED if result.failed_stage is not None else RunState.DONE
        log.info(
            "Repository indexed" if result.success else "Repository not indexed",
            state=result.state.value,
            documents=result.documents_indexed,
            skipped=result.files_skipped,
            batches=result.batches,
            elapsed_ms=round(result.elapsed_ms, 1),
        )
        return result

    async def index_documents(
        self,
        repository: RepositoryMetadata,
        paths: list[str],
        working_directory: Path,
    ) -> BulkResult:
        """Build documents for one batch of paths and submit them in one request.

        Files that fail to build are skipped and logged. Raises
        ``IndexSubmitError`` if the backend rejects any document.
        """
        outcomes = [
            await self._builder.build(repository, path, working_directory) for path in paths
        ]

        documents = []
        for outcome in outcomes:
            if outcome.ok:
                documents.append(outcome.document)
            else:
                logger.warning(
                    "Skipping file",
                    repository=repository.full_name,
                    path=outcome.path,
                    error=str(outcome.error),
                )

        if not documents:
            return BulkResult()

        bulk_result = await self._search_index.bulk_upsert(documents)
        if bulk_result.has_errors:
            raise IndexSubmitError(
                f"{len(bulk_result.errors)} of {len(documents)} documents were rejected",
                item_errors=bulk_result.errors,
                details={"repository": repository.full_name},
            )
        return bulk_result

    async def _submit_batches(
        self,
        repository: RepositoryMetadata,
        batches: list[list[str]],
        working_directory: Path,
        stats: _RunStats,
    ) -> None:
        semaphore = asyncio.Semaphore(self._config.max_parallel_bulk_requests)

        async def run_batch(paths: list[str]) -> None:
            async with semaphore:
                bulk_result = await self.index_documents(repository, paths, working_directory)
                stats.documents_indexed += bulk_result.succeeded
                stats.files_skipped += len(paths) - bulk_result.succeeded

        tasks = [asyncio.create_task(run_batch(paths)) for paths in batches]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def _cleanup(self, workdir: WorkingDirectory, log) -> None:
        try:
            if workdir.remove():
                log.debug("Removed working directory", directory=str(workdir))
        except OSError as e:
            error = CleanupError(
                f"Failed to remove {workdir}: {e}",
                details={"working_directory": workdir.key},
            )
            log.error("Cleanup failed", error=str(error))

    @staticmethod
    def _transition(log, result: IndexResult, state: RunState) -> None:
        result.state = state
        log.info("Run state", state=state.value)

    @staticmethod
    def _failed(
        result: IndexResult,
        stage: RunState,
        error: Exception,
        started: float,
    ) -> IndexResult:
        result.state = RunState.FAILED
        result.failed_stage = stage
        result.error = str(error)
        result.elapsed_ms = (time.perf_counter() - started) * 1000
        return result
