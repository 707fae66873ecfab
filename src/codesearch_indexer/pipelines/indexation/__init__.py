"""Repository indexation pipeline."""

from codesearch_indexer.pipelines.indexation.builder import DocumentBuilder
from codesearch_indexer.pipelines.indexation.config import IndexerConfig
from codesearch_indexer.pipelines.indexation.pipeline import IndexationPipeline
from codesearch_indexer.pipelines.indexation.workdir import (
    WorkingDirectory,
    delete_readonly_directory,
)

__all__ = [
    "DocumentBuilder",
    "IndexationPipeline",
    "IndexerConfig",
    "WorkingDirectory",
    "delete_readonly_directory",
]
