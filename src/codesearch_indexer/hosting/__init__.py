"""Source-hosting API clients."""

from typing import Protocol

from codesearch_indexer.core.models.repository import RepositoryMetadata
from codesearch_indexer.hosting.github import GitHubClient


class SourceHostingClient(Protocol):
    """Resolves repositories and organizations into ``RepositoryMetadata``."""

    async def get_repository(self, owner: str, name: str) -> RepositoryMetadata: ...

    async def list_organization_repositories(
        self, organization: str
    ) -> list[RepositoryMetadata]: ...


__all__ = ["GitHubClient", "SourceHostingClient"]
