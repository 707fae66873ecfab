"""Search document models."""

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchDocument(BaseModel):
    """A single file of a repository, as stored in the search index.

    ``id`` is the git blob hash of the file. It is only unique within an
    owner/repository/branch scope, so backends key documents by
    ``index_key`` instead.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    owner: str
    repository: str
    branch: str
    path: str
    filename: str
    commit_hash: str
    content: str
    permalink: str
    latest_commit_date: datetime | None = None

    @property
    def index_key(self) -> str:
        """Stable primary key for the index backend."""
        raw = f"{self.owner}/{self.repository}@{self.branch}:{self.path}"
        return hashlib.sha1(raw.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class FileMetadata:
    """Per-file git metadata.

    Empty ``commit_hash`` and ``latest_commit_date = None`` mean the file
    history could not be determined.
    """

    content_hash: str
    commit_hash: str = ""
    latest_commit_date: datetime | None = None

    @property
    def has_history(self) -> bool:
        return bool(self.commit_hash)


@dataclass(frozen=True)
class BuildOutcome:
    """Result of building one file: either a document or the error."""

    path: str
    document: SearchDocument | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.document is not None


class BulkResult(BaseModel):
    """Outcome of a bulk upsert request."""

    succeeded: int = 0
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
