"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from codesearch_indexer.core.models.document import SearchDocument
from codesearch_indexer.core.models.repository import RepositoryMetadata, SourceSystem
from codesearch_indexer.repositories.search.memory import InMemorySearchIndex
from tests.helpers import git


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a temporary Git repository with some files on branch ``main``."""
    repo_path = tmp_path / "origin" / "widgets"
    repo_path.mkdir(parents=True)

    git(repo_path, "init", "--initial-branch=main")
    git(repo_path, "config", "user.email", "test@test.com")
    git(repo_path, "config", "user.name", "Test")

    (repo_path / "README.md").write_text("hello")
    (repo_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00")
    (repo_path / "src").mkdir()
    (repo_path / "src" / "main.py").write_text("print('hello')\n")
    git(repo_path, "add", ".")
    git(repo_path, "commit", "-m", "Initial commit")

    (repo_path / "docs").mkdir()
    (repo_path / "docs" / "guide.md").write_text("# Guide\n\nSteps here.\n")
    git(repo_path, "add", ".")
    git(repo_path, "commit", "-m", "Add guide")

    return repo_path


@pytest.fixture
def sample_repository() -> RepositoryMetadata:
    """Create sample repository metadata for testing."""
    return RepositoryMetadata(
        owner="acme",
        name="widgets",
        branch="main",
        clone_url="https://github.com/acme/widgets.git",
        source_system=SourceSystem.GITHUB,
        language="Python",
    )


@pytest.fixture
def sample_document() -> SearchDocument:
    """Create a sample search document for testing."""
    return SearchDocument(
        id="b6fc4c620b67d95f953a5c1c1230aaab5db5a1b0",
        owner="acme",
        repository="widgets",
        branch="main",
        path="README.md",
        filename="README.md",
        commit_hash="3f786850e387550fdab836ed7e6dc881de23001b",
        content="hello",
        permalink=(
            "https://github.com/acme/widgets/blob/"
            "3f786850e387550fdab836ed7e6dc881de23001b/README.md"
        ),
    )


@pytest.fixture
async def memory_index() -> InMemorySearchIndex:
    """Create an in-memory search index for testing."""
    index = InMemorySearchIndex()
    await index.create_index_if_absent()
    yield index
    await index.close()
