"""CLI for codesearch-indexer."""

import asyncio
import sys

import click
import structlog

from codesearch_indexer.config.logging import configure_logging
from codesearch_indexer.core.exceptions import CodeSearchError
from codesearch_indexer.core.models.job import IndexResult

logger = structlog.get_logger(__name__)


def run_async(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _create_service(settings=None):
    """Create the indexing service."""
    from codesearch_indexer.config.settings import get_settings
    from codesearch_indexer.services.indexing import IndexingService

    if settings is None:
        settings = get_settings()
    return IndexingService.from_settings(settings)


def _run_service(operation):
    """Run ``operation(service)`` and close the service afterwards.

    Library errors are reported and turned into exit code 1.
    """
    async def _run():
        service = _create_service()
        try:
            return await operation(service)
        finally:
            await service.close()

    try:
        return run_async(_run())
    except CodeSearchError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _report(results: list[IndexResult]) -> None:
    """Print run results and exit with status 1 if any run failed."""
    if not results:
        click.echo("No repositories indexed.")
        return

    for result in results:
        if result.success:
            click.echo(
                f"  [ok]     {result.full_name}@{result.branch}: "
                f"{result.documents_indexed} documents, {result.files_skipped} skipped "
                f"({result.elapsed_ms or 0:.0f}ms)"
            )
        else:
            stage = result.failed_stage.value if result.failed_stage else "unknown"
            click.echo(
                f"  [failed] {result.full_name}@{result.branch}: {stage}: {result.error}"
            )

    failed = sum(1 for result in results if not result.success)
    click.echo(f"\n{len(results) - failed} succeeded, {failed} failed")
    if failed:
        sys.exit(1)


def _split_full_name(full_name: str) -> tuple[str, str]:
    owner, _, name = full_name.partition("/")
    if not owner or not name or "/" in name:
        raise click.BadParameter(f"Expected OWNER/NAME, got '{full_name}'")
    return owner, name


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
def cli(verbose: bool, json_logs: bool) -> None:
    """codesearch-indexer: Index git repositories into a code search index."""
    from codesearch_indexer.config.settings import get_settings

    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, json_logs=json_logs or settings.is_production)


@cli.command("create-index")
def create_index() -> None:
    """Create the search index if it does not exist."""
    created = _run_service(lambda service: service.create_index())
    click.echo("Search index created." if created else "Search index already exists.")


@cli.command("reset-index")
@click.option("--drop", is_flag=True, help="Delete and recreate the index instead of emptying it")
@click.confirmation_option(prompt="Remove all indexed documents?")
def reset_index(drop: bool) -> None:
    """Remove all documents from the search index."""
    deleted = _run_service(lambda service: service.reset_index(drop=drop))
    if drop:
        click.echo("Search index recreated.")
    else:
        click.echo(f"Deleted {deleted} documents.")


@cli.command("index-repo")
@click.argument("repositories", nargs=-1, required=True)
def index_repo(repositories: tuple[str, ...]) -> None:
    """Index GitHub repositories given as OWNER/NAME."""
    names = [_split_full_name(full_name) for full_name in repositories]
    click.echo(f"Indexing {len(names)} repositories")
    _report(_run_service(lambda service: service.index_repositories(names)))


@cli.command("index-org")
@click.argument("organization")
def index_org(organization: str) -> None:
    """Index every repository of a GitHub organization."""
    click.echo(f"Indexing organization: {organization}")
    _report(_run_service(lambda service: service.index_organization(organization)))


@cli.command("index-url")
@click.argument("clone_url")
@click.option("--branch", "-b", help="Branch to index [default: the remote's default branch]")
def index_url(clone_url: str, branch: str | None) -> None:
    """Index a repository by clone URL."""
    from codesearch_indexer.git.url_parser import parse_clone_url

    try:
        parse_clone_url(clone_url)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="CLONE_URL") from e

    click.echo(f"Indexing repository: {clone_url} ({branch or 'default branch'})")
    _report(_run_service(lambda service: service.index_url(clone_url, branch=branch)))


@cli.command()
@click.option("--owner", "-o", help="Only count documents of this owner")
@click.option("--repository", "-r", help="Only count documents of this repository")
@click.option("--branch", "-b", help="Only count documents of this branch")
def status(owner: str | None, repository: str | None, branch: str | None) -> None:
    """Show the status of the search index."""
    from codesearch_indexer.config.settings import get_settings

    settings = get_settings()
    count = _run_service(
        lambda service: service.status(owner=owner, repository=repository, branch=branch)
    )

    click.echo("codesearch-indexer Status")
    click.echo(f"  Backend:    {settings.search_backend}")
    if settings.search_backend == "elasticsearch":
        click.echo(f"  URL:        {settings.elasticsearch_url}")
        click.echo(f"  Index:      {settings.elasticsearch_index}")
    click.echo(f"  Workdir:    {settings.base_directory}")
    click.echo(f"  Documents:  {count}")


if __name__ == "__main__":
    cli()
