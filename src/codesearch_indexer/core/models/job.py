"""Indexing job and run result models."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class RunState(str, Enum):
    """States of a single repository indexing run."""

    QUEUED = "queued"
    DELETING_STALE = "deleting_stale"
    CLONING = "cloning"
    LISTING = "listing"
    BATCHING = "batching"
    SUBMITTING = "submitting"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


class RepositoryJob(BaseModel):
    """Index a single repository, resolved through the hosting API."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["repository"] = "repository"
    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class OrganizationJob(BaseModel):
    """Index every repository of an organization."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["organization"] = "organization"
    organization: str = Field(..., min_length=1)


class UrlJob(BaseModel):
    """Index a repository given only by its clone URL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    clone_url: str = Field(..., min_length=1)
    branch: str | None = Field(default=None, description="Defaults to the remote's default branch")


IndexingJob = Annotated[
    RepositoryJob | OrganizationJob | UrlJob,
    Field(discriminator="kind"),
]


class IndexResult(BaseModel):
    """Outcome of one repository indexing run."""

    full_name: str
    branch: str
    state: RunState = RunState.DONE
    failed_stage: RunState | None = None
    error: str | None = None
    documents_indexed: int = 0
    files_skipped: int = 0
    batches: int = 0
    elapsed_ms: float | None = None

    @property
    def success(self) -> bool:
        return self.state == RunState.DONE
