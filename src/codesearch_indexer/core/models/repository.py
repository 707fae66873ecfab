"""Repository metadata models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class SourceSystem(str, Enum):
    """Hosting system a repository was read from."""

    GITHUB = "github"
    GITLAB = "gitlab"
    CODEBERG = "codeberg"
    UNKNOWN = "unknown"


class RepositoryMetadata(BaseModel):
    """Identifies one repository/branch to index."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    branch: str
    clone_url: str | None = None
    source_system: SourceSystem = SourceSystem.UNKNOWN
    language: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"
