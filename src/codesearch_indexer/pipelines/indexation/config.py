"""Indexation pipeline configuration."""

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from codesearch_indexer.config.settings import Settings


class IndexerConfig(BaseModel):
    """Configuration for repository indexing runs."""

    model_config = ConfigDict(frozen=True)

    base_directory: str = Field(..., description="Directory clones are placed in")
    allowed_extensions: frozenset[str] = Field(
        default_factory=frozenset, description="Extensions to index, e.g. '.py'"
    )
    allowed_filenames: frozenset[str] = Field(
        default_factory=frozenset, description="Exact file names to index, e.g. 'README'"
    )
    filter_languages: frozenset[str] = Field(
        default_factory=frozenset,
        description="Only index organization repositories with these languages (empty = all)",
    )
    batch_size: int = Field(default=20, ge=1, description="Files per bulk request")
    max_parallel_bulk_requests: int = Field(
        default=4, ge=1, description="Batches in flight per repository"
    )
    max_parallel_clones: int = Field(default=2, ge=1, description="Repositories in flight")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "IndexerConfig":
        return cls(
            base_directory=settings.base_directory,
            allowed_extensions=frozenset(settings.allowed_extensions),
            allowed_filenames=frozenset(settings.allowed_filenames),
            filter_languages=frozenset(settings.filter_languages),
            batch_size=settings.batch_size,
            max_parallel_bulk_requests=settings.max_parallel_bulk_requests,
            max_parallel_clones=settings.max_parallel_clones,
        )
