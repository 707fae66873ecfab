"""Tests for the job queue, job source and indexer worker."""

import asyncio
from pathlib import Path

import pytest

from codesearch_indexer.core.exceptions import ConfigurationError, SourceHostingError
from codesearch_indexer.core.models.job import (
    IndexResult,
    OrganizationJob,
    RepositoryJob,
    RunState,
    UrlJob,
)
from codesearch_indexer.core.models.repository import RepositoryMetadata, SourceSystem
from codesearch_indexer.pipelines.indexation import IndexationPipeline, IndexerConfig
from codesearch_indexer.repositories.search.memory import InMemorySearchIndex
from codesearch_indexer.services.jobs import IndexerWorker, JobQueue, JobSource, matches_languages
from tests.factories import RepositoryMetadataFactory
from tests.fakes import FakeGitExecutor, FakeHostingClient


class SlowPipeline:
    """Records how many runs are in flight at once."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.in_flight = 0
        self.max_in_flight = 0
        self.seen: list[str] = []

    async def index_repository(self, repository: RepositoryMetadata) -> IndexResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            self.seen.append(repository.full_name)
            if repository.name in self.fail_for:
                raise RuntimeError(f"unexpected failure in {repository.name}")
            return IndexResult(full_name=repository.full_name, branch=repository.branch)
        finally:
            self.in_flight -= 1


@pytest.fixture
def queue() -> JobQueue:
    return JobQueue()


@pytest.fixture
def hosting_client() -> FakeHostingClient:
    return FakeHostingClient(
        [
            RepositoryMetadataFactory(owner="acme", name="widgets", language="Python"),
            RepositoryMetadataFactory(owner="acme", name="gadgets", language="C#"),
            RepositoryMetadataFactory(owner="acme", name="docs", language=None),
            RepositoryMetadataFactory(owner="other", name="tools"),
        ]
    )


def drain(queue: JobQueue) -> list[RepositoryMetadata]:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
        queue.task_done()
    return items


@pytest.mark.unit
class TestJobQueue:
    """Tests for JobQueue."""

    @pytest.mark.asyncio
    async def test_fifo(self, queue: JobQueue) -> None:
        first = RepositoryMetadataFactory()
        second = RepositoryMetadataFactory()
        await queue.post(first)
        await queue.post(second)

        assert queue.qsize() == 2
        assert await queue.get() == first
        queue.task_done()
        assert await queue.get() == second
        queue.task_done()
        await asyncio.wait_for(queue.join(), timeout=1)

    @pytest.mark.asyncio
    async def test_bounded_queue_blocks(self) -> None:
        queue = JobQueue(maxsize=1)
        await queue.post(RepositoryMetadataFactory())
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(queue.post(RepositoryMetadataFactory()), timeout=0.05)

    @pytest.mark.asyncio
    async def test_stop_marker_reads_as_none(self, queue: JobQueue) -> None:
        await queue.post_stop()
        assert await queue.get() is None
        queue.task_done()

    @pytest.mark.asyncio
    async def test_clear(self, queue: JobQueue) -> None:
        await queue.post(RepositoryMetadataFactory())
        await queue.post(RepositoryMetadataFactory())
        await queue.post_stop()

        assert queue.clear() == 2
        assert queue.empty()
        await asyncio.wait_for(queue.join(), timeout=1)


@pytest.mark.unit
class TestMatchesLanguages:
    """Tests for the organization language filter."""

    def test_empty_filter_matches_all(self) -> None:
        assert matches_languages(RepositoryMetadataFactory(language=None), [])

    def test_case_insensitive(self) -> None:
        assert matches_languages(RepositoryMetadataFactory(language="Python"), ["python"])

    def test_no_language(self) -> None:
        assert not matches_languages(RepositoryMetadataFactory(language=None), ["Python"])


@pytest.mark.unit
class TestJobSource:
    """Tests for JobSource."""

    @pytest.mark.asyncio
    async def test_submit_repository(self, queue: JobQueue, hosting_client: FakeHostingClient) -> None:
        source = JobSource(queue, hosting_client=hosting_client)

        repository = await source.submit_repository("acme", "widgets")

        assert repository.full_name == "acme/widgets"
        assert drain(queue) == [repository]

    @pytest.mark.asyncio
    async def test_submit_unknown_repository(
        self, queue: JobQueue, hosting_client: FakeHostingClient
    ) -> None:
        source = JobSource(queue, hosting_client=hosting_client)
        with pytest.raises(SourceHostingError):
            await source.submit_repository("acme", "missing")
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_submit_organization(self, queue: JobQueue, hosting_client: FakeHostingClient) -> None:
        source = JobSource(queue, hosting_client=hosting_client)

        repositories = await source.submit_organization("acme")

        assert [r.name for r in repositories] == ["widgets", "gadgets", "docs"]
        assert [r.name for r in drain(queue)] == ["widgets", "gadgets", "docs"]

    @pytest.mark.asyncio
    async def test_submit_organization_filters_languages(
        self, queue: JobQueue, hosting_client: FakeHostingClient
    ) -> None:
        source = JobSource(queue, hosting_client=hosting_client, filter_languages=["c#"])

        repositories = await source.submit_organization("acme")

        assert [r.name for r in repositories] == ["gadgets"]

    @pytest.mark.asyncio
    async def test_submit_url(self, queue: JobQueue) -> None:
        source = JobSource(queue)

        repository = await source.submit_url("https://codeberg.org/acme/widgets.git", branch="dev")

        assert repository.source_system == SourceSystem.CODEBERG
        assert repository.branch == "dev"
        assert drain(queue) == [repository]

    @pytest.mark.asyncio
    async def test_submit_url_resolves_default_branch(self, queue: JobQueue) -> None:
        source = JobSource(queue, executor=FakeGitExecutor(remote_head="master"))

        repository = await source.submit_url("https://github.com/acme/widgets.git")

        assert repository.branch == "master"
        assert drain(queue) == [repository]

    @pytest.mark.asyncio
    async def test_submit_url_without_branch_needs_executor(self, queue: JobQueue) -> None:
        source = JobSource(queue)
        with pytest.raises(ConfigurationError):
            await source.submit_url("https://github.com/acme/widgets.git")
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_submit_malformed_url(self, queue: JobQueue) -> None:
        source = JobSource(queue, executor=FakeGitExecutor())
        with pytest.raises(ValueError):
            await source.submit_url("https://github.com/widgets")
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_submit_dispatches_jobs(
        self, queue: JobQueue, hosting_client: FakeHostingClient
    ) -> None:
        source = JobSource(queue, hosting_client=hosting_client)

        assert len(await source.submit(RepositoryJob(owner="acme", name="widgets"))) == 1
        assert len(await source.submit(OrganizationJob(organization="acme"))) == 3
        url_job = UrlJob(clone_url="git@github.com:acme/widgets.git", branch="main")
        assert len(await source.submit(url_job)) == 1
        assert queue.qsize() == 5

    @pytest.mark.asyncio
    async def test_hosting_client_required(self, queue: JobQueue) -> None:
        source = JobSource(queue)
        with pytest.raises(ConfigurationError):
            await source.submit_repository("acme", "widgets")
        with pytest.raises(ConfigurationError):
            await source.submit_organization("acme")


@pytest.mark.unit
class TestIndexerWorker:
    """Tests for IndexerWorker."""

    @pytest.mark.asyncio
    async def test_drains_queue_with_bounded_parallelism(self, queue: JobQueue) -> None:
        for _ in range(5):
            await queue.post(RepositoryMetadataFactory())
        pipeline = SlowPipeline()

        results = await IndexerWorker(pipeline, queue, max_parallel_clones=2).run(stop_when_empty=True)

        assert len(results) == 5
        assert all(result.success for result in results)
        assert pipeline.max_in_flight == 2
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_other_runs(self, queue: JobQueue) -> None:
        await queue.post(RepositoryMetadataFactory(name="good"))
        await queue.post(RepositoryMetadataFactory(name="bad"))
        await queue.post(RepositoryMetadataFactory(name="also-good"))
        pipeline = SlowPipeline(fail_for={"bad"})

        results = await IndexerWorker(pipeline, queue, max_parallel_clones=1).run(stop_when_empty=True)

        by_name = {result.full_name: result for result in results}
        assert by_name["acme/bad"].state == RunState.FAILED
        assert "unexpected failure" in by_name["acme/bad"].error
        assert by_name["acme/good"].success
        assert by_name["acme/also-good"].success

    @pytest.mark.asyncio
    async def test_empty_queue(self, queue: JobQueue) -> None:
        assert await IndexerWorker(SlowPipeline(), queue).run(stop_when_empty=True) == []

    @pytest.mark.asyncio
    async def test_serves_until_cancelled(self, queue: JobQueue) -> None:
        pipeline = SlowPipeline()
        worker = IndexerWorker(pipeline, queue, max_parallel_clones=2)
        task = asyncio.create_task(worker.run())

        await queue.post(RepositoryMetadataFactory(name="late"))
        await asyncio.wait_for(queue.join(), timeout=1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert pipeline.seen == ["acme/late"]

    @pytest.mark.asyncio
    async def test_stop_finishes_queued_jobs(self) -> None:
        queue = JobQueue(maxsize=1)
        pipeline = SlowPipeline()
        worker = IndexerWorker(pipeline, queue, max_parallel_clones=2)
        task = asyncio.create_task(worker.run())

        for name in ("widgets", "gadgets", "docs"):
            await queue.post(RepositoryMetadataFactory(name=name))
        await worker.stop()
        results = await asyncio.wait_for(task, timeout=1)

        assert sorted(result.full_name for result in results) == [
            "acme/docs",
            "acme/gadgets",
            "acme/widgets",
        ]
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_with_indexation_pipeline(self, queue: JobQueue, tmp_path: Path) -> None:
        config = IndexerConfig(
            base_directory=str(tmp_path / "work"), allowed_extensions=frozenset({".md"})
        )
        index = InMemorySearchIndex()
        pipeline = IndexationPipeline(index, FakeGitExecutor(files={"README.md": "hello"}), config)
        await queue.post(RepositoryMetadataFactory(name="widgets"))
        await queue.post(RepositoryMetadataFactory(name="gadgets"))

        results = await IndexerWorker(pipeline, queue, max_parallel_clones=2).run(stop_when_empty=True)

        assert sorted(result.full_name for result in results) == ["acme/gadgets", "acme/widgets"]
        assert await index.count() == 2
