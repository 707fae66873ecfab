"""Indexing service."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from codesearch_indexer.core.models.job import IndexResult
from codesearch_indexer.core.models.repository import RepositoryMetadata
from codesearch_indexer.git.executor import GitExecutor
from codesearch_indexer.hosting import GitHubClient, SourceHostingClient
from codesearch_indexer.pipelines.indexation import IndexationPipeline, IndexerConfig
from codesearch_indexer.repositories.base import SearchIndexRepository
from codesearch_indexer.repositories.factory import RepositoryFactory
from codesearch_indexer.services.jobs import IndexerWorker, JobQueue, JobSource

if TYPE_CHECKING:
    from codesearch_indexer.config.settings import Settings

logger = structlog.get_logger(__name__)


class IndexingService:
    """Service for repository indexing and index administration.

    Indexing operations start an ``IndexerWorker`` and queue their
    repositories while it runs, so a bounded queue applies back-pressure to
    the submission instead of blocking it.
    """

    def __init__(
        self,
        pipeline: IndexationPipeline,
        search_index: SearchIndexRepository,
        hosting_client: SourceHostingClient | None = None,
        queue: JobQueue | None = None,
        factory: RepositoryFactory | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._search_index = search_index
        self._hosting_client = hosting_client
        self._queue = queue or JobQueue()
        self._factory = factory
        self._job_source = JobSource(
            self._queue,
            hosting_client=hosting_client,
            filter_languages=pipeline.config.filter_languages,
            executor=pipeline.executor,
        )
        self._worker = IndexerWorker(
            pipeline,
            self._queue,
            max_parallel_clones=pipeline.config.max_parallel_clones,
        )

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        hosting_client: SourceHostingClient | None = None,
    ) -> "IndexingService":
        """Wire the service from application settings."""
        factory = RepositoryFactory(settings)
        search_index = factory.get_search_index()
        pipeline = IndexationPipeline(
            search_index=search_index,
            executor=GitExecutor(settings.git_executable),
            config=IndexerConfig.from_settings(settings),
        )
        return cls(
            pipeline=pipeline,
            search_index=search_index,
            hosting_client=hosting_client or GitHubClient.from_settings(settings),
            queue=JobQueue(maxsize=settings.job_queue_size),
            factory=factory,
        )

    @property
    def job_source(self) -> JobSource:
        return self._job_source

    @property
    def worker(self) -> IndexerWorker:
        return self._worker

    @property
    def hosting_client(self) -> SourceHostingClient | None:
        return self._hosting_client

    async def create_index(self) -> bool:
        """Create the search index if absent. Returns True if it was created."""
        return await self._pipeline.create_search_index()

    async def reset_index(self, drop: bool = False) -> int:
        """Remove all indexed documents.

        With ``drop`` the index itself is deleted and created again. Returns
        the number of documents deleted, or 0 when the index was dropped.
        """
        if drop:
            await self._search_index.delete_index()
            await self._search_index.create_index_if_absent()
            logger.info("Search index recreated")
            return 0
        deleted = await self._search_index.delete_all()
        logger.info("Search index cleared", deleted=deleted)
        return deleted

    async def index_repositories(
        self, repositories: list[tuple[str, str]]
    ) -> list[IndexResult]:
        """Index repositories given as ``(owner, name)`` pairs."""

        async def submit() -> None:
            for owner, name in repositories:
                await self._job_source.submit_repository(owner, name)

        return await self._run_jobs(submit)

    async def index_organization(self, organization: str) -> list[IndexResult]:
        return await self._run_jobs(lambda: self._job_source.submit_organization(organization))

    async def index_url(self, clone_url: str, branch: str | None = None) -> list[IndexResult]:
        """Index a repository by clone URL, on its default branch unless ``branch`` is given."""
        return await self._run_jobs(lambda: self._job_source.submit_url(clone_url, branch=branch))

    async def index_repository(self, repository: RepositoryMetadata) -> IndexResult:
        """Index one already resolved repository, bypassing the queue."""
        await self.create_index()
        return await self._pipeline.index_repository(repository)

    async def status(
        self,
        owner: str | None = None,
        repository: str | None = None,
        branch: str | None = None,
    ) -> int:
        """Count indexed documents, optionally scoped."""
        return await self._search_index.count(owner=owner, repository=repository, branch=branch)

    async def _run_jobs(self, submit: Callable[[], Awaitable[object]]) -> list[IndexResult]:
        await self.create_index()
        worker = asyncio.create_task(self._worker.run())
        try:
            await submit()
            await self._worker.stop()
        except BaseException:
            # A failed submission aborts the runs it already started
            worker.cancel()
            await asyncio.gather(worker, return_exceptions=True)
            discarded = self._queue.clear()
            if discarded:
                logger.warning("Discarded queued jobs", jobs=discarded)
            raise
        return await worker

    async def close(self) -> None:
        close_hosting = getattr(self._hosting_client, "close", None)
        if close_hosting is not None:
            await close_hosting()
        if self._factory is not None:
            await self._factory.close()
        else:
            await self._search_index.close()
