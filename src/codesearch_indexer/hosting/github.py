"""GitHub REST API client."""

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from codesearch_indexer.core.exceptions import SourceHostingError
from codesearch_indexer.core.models.repository import RepositoryMetadata, SourceSystem

if TYPE_CHECKING:
    from codesearch_indexer.config.settings import Settings

logger = structlog.get_logger(__name__)

GITHUB_API_VERSION = "2022-11-28"


def repository_from_json(data: dict[str, Any]) -> RepositoryMetadata:
    """Convert a GitHub repository object into ``RepositoryMetadata``."""
    try:
        return RepositoryMetadata(
            owner=data["owner"]["login"],
            name=data["name"],
            branch=data.get("default_branch") or "main",
            clone_url=data.get("clone_url"),
            source_system=SourceSystem.GITHUB,
            language=data.get("language"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SourceHostingError(f"Malformed repository object: missing {e}") from e


class GitHubClient:
    """Async client for the parts of the GitHub API the indexer needs.

    Use as an async context manager, or call ``close()`` when done.
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        access_token: str | None = None,
        page_size: int = 20,
        request_delay_ms: int = 0,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": "codesearch-indexer",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self._page_size = page_size
        self._request_delay = request_delay_ms / 1000
        self._client = httpx.AsyncClient(
            base_url=api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GitHubClient":
        return cls(
            api_url=settings.github_api_url,
            access_token=settings.github_access_token,
            page_size=settings.github_page_size,
            request_delay_ms=settings.github_request_delay_ms,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise SourceHostingError(
                f"Request to {url} failed: {e}", details={"url": url}
            ) from e

        if response.is_error:
            raise SourceHostingError(
                f"HTTP request failed with status {response.status_code} "
                f"({response.reason_phrase})",
                status_code=response.status_code,
                details={"url": str(response.url)},
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise SourceHostingError(
                f"Invalid JSON from {response.url}", details={"url": str(response.url)}
            ) from e

    async def get_repository(self, owner: str, name: str) -> RepositoryMetadata:
        """Get a single repository."""
        response = await self._get(f"/repos/{owner}/{name}")
        return repository_from_json(self._json(response))

    async def list_organization_repositories(self, organization: str) -> list[RepositoryMetadata]:
        """List all repositories of an organization, following pagination."""
        repositories: list[RepositoryMetadata] = []
        url: str | None = f"/orgs/{organization}/repos"
        params: dict[str, Any] | None = {"page": 1, "per_page": self._page_size}
        pages = 0

        while url is not None:
            response = await self._get(url, params=params)
            page = self._json(response)
            if not isinstance(page, list):
                raise SourceHostingError(
                    f"Expected a list of repositories from {response.url}",
                    details={"url": str(response.url)},
                )
            repositories.extend(repository_from_json(item) for item in page)
            pages += 1

            # The next link already carries page and per_page
            url = response.links.get("next", {}).get("url")
            params = None
            if url is not None and self._request_delay > 0:
                await asyncio.sleep(self._request_delay)

        logger.info(
            "Listed organization repositories",
            organization=organization,
            repositories=len(repositories),
            pages=pages,
        )
        return repositories
