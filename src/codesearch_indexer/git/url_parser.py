"""Clone URL parsing."""

import re
from urllib.parse import urlparse

from codesearch_indexer.core.models.repository import RepositoryMetadata, SourceSystem

SOURCE_SYSTEM_HOSTS: dict[str, SourceSystem] = {
    "github.com": SourceSystem.GITHUB,
    "gitlab.com": SourceSystem.GITLAB,
    "codeberg.org": SourceSystem.CODEBERG,
}


def normalize_remote_url(url: str) -> str:
    """Normalize a git remote URL to an HTTPS base URL.

    Handles:
    - git@github.com:org/repo.git -> https://github.com/org/repo
    - https://github.com/org/repo.git -> https://github.com/org/repo
    """
    url = url.strip().rstrip("/")
    url = re.sub(r"\.git$", "", url)
    ssh_match = re.match(r"^[\w.-]+@([^:/]+):(.+)$", url)
    if ssh_match:
        host, path = ssh_match.groups()
        return f"https://{host}/{path}"
    return url


def parse_clone_url(clone_url: str, branch: str = "main") -> RepositoryMetadata:
    """Derive repository metadata from a raw clone URL.

    The owner is everything between the host and the last path segment, so
    GitLab subgroups stay part of the owner.
    """
    normalized = normalize_remote_url(clone_url)
    parsed = urlparse(normalized)
    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:
        raise ValueError(f"Cannot derive owner and repository from clone URL: {clone_url}")

    host = (parsed.hostname or "").lower()
    return RepositoryMetadata(
        owner="/".join(segments[:-1]),
        name=segments[-1],
        branch=branch,
        clone_url=clone_url,
        source_system=SOURCE_SYSTEM_HOSTS.get(host, SourceSystem.UNKNOWN),
    )
