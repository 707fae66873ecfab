"""Services for codesearch-indexer."""

from codesearch_indexer.services.indexing import IndexingService
from codesearch_indexer.services.jobs import IndexerWorker, JobQueue, JobSource

__all__ = ["IndexingService", "IndexerWorker", "JobQueue", "JobSource"]
