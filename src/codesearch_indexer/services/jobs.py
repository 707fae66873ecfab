"""Job queue, job source and indexer worker."""

import asyncio
from collections.abc import Iterable

import structlog

from codesearch_indexer.core.exceptions import ConfigurationError
from codesearch_indexer.core.models.job import (
    IndexingJob,
    IndexResult,
    OrganizationJob,
    RepositoryJob,
    RunState,
    UrlJob,
)
from codesearch_indexer.core.models.repository import RepositoryMetadata
from codesearch_indexer.git.executor import GitExecutor
from codesearch_indexer.git.url_parser import parse_clone_url
from codesearch_indexer.hosting import SourceHostingClient
from codesearch_indexer.pipelines.indexation.pipeline import IndexationPipeline

logger = structlog.get_logger(__name__)


class JobQueue:
    """In-process queue of repositories waiting to be indexed.

    Nothing is persisted. Jobs still queued when the process exits are lost.
    Besides repositories the queue carries stop markers, read back as ``None``.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[RepositoryMetadata | None] = asyncio.Queue(maxsize=maxsize)

    async def post(self, repository: RepositoryMetadata) -> None:
        await self._queue.put(repository)
        logger.debug("Job queued", repository=repository.full_name, branch=repository.branch)

    async def post_stop(self) -> None:
        await self._queue.put(None)

    async def get(self) -> RepositoryMetadata | None:
        return await self._queue.get()

    def get_nowait(self) -> RepositoryMetadata | None:
        return self._queue.get_nowait()

    def task_done(self) -> None:
        self._queue.task_done()

    def clear(self) -> int:
        """Drop every queued entry. Returns the number of repositories dropped."""
        dropped = 0
        while not self._queue.empty():
            if self._queue.get_nowait() is not None:
                dropped += 1
            self._queue.task_done()
        return dropped

    async def join(self) -> None:
        await self._queue.join()

    def empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        return self._queue.qsize()


def matches_languages(repository: RepositoryMetadata, languages: Iterable[str]) -> bool:
    """Check a repository against a language filter. An empty filter matches all."""
    wanted = {language.casefold() for language in languages}
    if not wanted:
        return True
    return repository.language is not None and repository.language.casefold() in wanted


class JobSource:
    """Resolves indexing jobs into repositories and posts them to the queue."""

    def __init__(
        self,
        queue: JobQueue,
        hosting_client: SourceHostingClient | None = None,
        filter_languages: Iterable[str] = (),
        executor: GitExecutor | None = None,
    ) -> None:
        self._queue = queue
        self._hosting_client = hosting_client
        self._filter_languages = frozenset(filter_languages)
        self._executor = executor

    def _require_hosting_client(self) -> SourceHostingClient:
        if self._hosting_client is None:
            raise ConfigurationError("No source-hosting client configured")
        return self._hosting_client

    async def submit(self, job: IndexingJob) -> list[RepositoryMetadata]:
        """Resolve a job and queue every repository it names."""
        if isinstance(job, RepositoryJob):
            return [await self.submit_repository(job.owner, job.name)]
        if isinstance(job, OrganizationJob):
            return await self.submit_organization(job.organization)
        if isinstance(job, UrlJob):
            return [await self.submit_url(job.clone_url, job.branch)]
        raise TypeError(f"Unsupported job: {job!r}")

    async def submit_repository(self, owner: str, name: str) -> RepositoryMetadata:
        client = self._require_hosting_client()
        repository = await client.get_repository(owner, name)
        await self._queue.post(repository)
        return repository

    async def submit_organization(self, organization: str) -> list[RepositoryMetadata]:
        client = self._require_hosting_client()
        repositories = await client.list_organization_repositories(organization)
        selected = [
            repository
            for repository in repositories
            if matches_languages(repository, self._filter_languages)
        ]
        logger.info(
            "Queueing organization repositories",
            organization=organization,
            found=len(repositories),
            queued=len(selected),
        )
        for repository in selected:
            await self._queue.post(repository)
        return selected

    async def submit_url(self, clone_url: str, branch: str | None = None) -> RepositoryMetadata:
        """Queue a repository by clone URL.

        Without ``branch`` the remote is asked for its default branch first.
        """
        # Malformed URLs fail before the remote is contacted
        parse_clone_url(clone_url)
        if branch is None:
            if self._executor is None:
                raise ConfigurationError("No git executor configured to resolve the default branch")
            branch = await self._executor.default_branch(clone_url)
            logger.info("Resolved default branch", clone_url=clone_url, branch=branch)
        repository = parse_clone_url(clone_url, branch=branch)
        await self._queue.post(repository)
        return repository


class IndexerWorker:
    """Consumes the job queue with a bounded number of runs in flight."""

    def __init__(
        self,
        pipeline: IndexationPipeline,
        queue: JobQueue,
        max_parallel_clones: int = 2,
    ) -> None:
        self._pipeline = pipeline
        self._queue = queue
        self._max_parallel_clones = max(1, max_parallel_clones)

    async def run(self, stop_when_empty: bool = False) -> list[IndexResult]:
        """Process queued repositories.

        With ``stop_when_empty`` the worker returns once the queue is drained,
        otherwise it serves until every consumer has taken a stop marker
        (see ``stop``) or the task is cancelled.
        """
        results: list[IndexResult] = []

        async def consume() -> None:
            while True:
                if stop_when_empty:
                    try:
                        repository = self._queue.get_nowait()
                    except asyncio.QueueEmpty:
                        return
                else:
                    repository = await self._queue.get()
                if repository is None:
                    self._queue.task_done()
                    return
                try:
                    results.append(await self._process(repository))
                finally:
                    self._queue.task_done()

        consumers = [asyncio.create_task(consume()) for _ in range(self._max_parallel_clones)]
        try:
            await asyncio.gather(*consumers)
        except BaseException:
            for consumer in consumers:
                consumer.cancel()
            await asyncio.gather(*consumers, return_exceptions=True)
            raise
        return results

    async def stop(self) -> None:
        """Let a running ``run()`` return once the jobs queued so far are done."""
        for _ in range(self._max_parallel_clones):
            await self._queue.post_stop()

    async def _process(self, repository: RepositoryMetadata) -> IndexResult:
        try:
            return await self._pipeline.index_repository(repository)
        except Exception as e:
            logger.exception("Failed to index repository", repository=repository.full_name)
            return IndexResult(
                full_name=repository.full_name,
                branch=repository.branch,
                state=RunState.FAILED,
                failed_stage=RunState.QUEUED,
                error=str(e),
            )
