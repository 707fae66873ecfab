"""Processing pipelines for codesearch-indexer."""

from codesearch_indexer.pipelines.indexation import IndexationPipeline, IndexerConfig

__all__ = ["IndexationPipeline", "IndexerConfig"]
