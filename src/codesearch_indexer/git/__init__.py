"""Git integration module for codesearch-indexer."""

from codesearch_indexer.git.executor import GitExecutor
from codesearch_indexer.git.file_filter import FileFilter, is_allowed
from codesearch_indexer.git.permalink import UNKNOWN_PERMALINK, generate_permalink
from codesearch_indexer.git.url_parser import parse_clone_url

__all__ = [
    "GitExecutor",
    "FileFilter",
    "is_allowed",
    "generate_permalink",
    "UNKNOWN_PERMALINK",
    "parse_clone_url",
]
