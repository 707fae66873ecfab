"""Shared helpers for tests that drive the git CLI."""

import subprocess
from pathlib import Path


def git(repo_path: Path, *args: str) -> str:
    """Run a git command in a test repository and return stdout."""
    result = subprocess.run(
        ["git", *args], cwd=repo_path, capture_output=True, check=True, text=True
    )
    return result.stdout
