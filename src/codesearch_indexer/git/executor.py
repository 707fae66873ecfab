"""Git executor using asyncio subprocesses."""

import asyncio
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

from codesearch_indexer.core.exceptions import CloneError, GitCommandError, VcsQueryError
from codesearch_indexer.core.models.document import FileMetadata

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GitOutput:
    """Captured result of a git invocation."""

    exit_code: int
    stdout: str
    stderr: str


class GitExecutor:
    """Runs the repository operations needed for indexing.

    Uses the git CLI directly (no gitpython dependency), so blob hashes are
    exactly the ones git stores in its object database.
    """

    def __init__(self, git_executable: str = "git") -> None:
        self._git = git_executable

    async def _run(self, *args: str, cwd: Path | str | None = None) -> GitOutput:
        """Run a git command and capture its output.

        If the awaiting task is cancelled the child process is killed and
        reaped before the cancellation propagates. Pathspecs are taken
        literally, so file names containing glob characters match only
        themselves.
        """
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "GIT_LITERAL_PATHSPECS": "1"}
        process = await asyncio.create_subprocess_exec(
            self._git,
            *args,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        return GitOutput(
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace").strip(),
        )

    async def _run_checked(
        self,
        *args: str,
        cwd: Path | str | None = None,
        error_class: type[GitCommandError] = GitCommandError,
    ) -> str:
        """Run a git command and return stdout, raising on a non-zero exit."""
        result = await self._run(*args, cwd=cwd)
        if result.exit_code != 0:
            raise error_class(
                f"git {args[0]} failed with exit code {result.exit_code}: {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
                details={"command": ["git", *args]},
            )
        return result.stdout

    async def clone(
        self,
        clone_url: str,
        target_directory: Path | str,
        branch: str | None = None,
    ) -> None:
        """Clone ``clone_url`` into ``target_directory``.

        Full history is fetched, since per-file commit metadata needs it.
        """
        args = ["clone", "--quiet"]
        if branch:
            args += ["--branch", branch, "--single-branch"]
        args += ["--", clone_url, str(target_directory)]

        logger.debug("Cloning repository", clone_url=clone_url, directory=str(target_directory))
        await self._run_checked(*args, error_class=CloneError)
        logger.debug("Cloned repository", clone_url=clone_url, directory=str(target_directory))

    async def default_branch(self, clone_url: str) -> str:
        """Ask the remote which branch its ``HEAD`` points to."""
        output = await self._run_checked(
            "ls-remote", "--symref", "--", clone_url, "HEAD", error_class=CloneError
        )
        branch = _parse_symref(output)
        if not branch:
            raise CloneError(
                f"Remote {clone_url} does not advertise a default branch",
                exit_code=0,
                details={"clone_url": clone_url},
            )
        return branch

    async def list_files(self, working_directory: Path | str) -> list[str]:
        """List every file tracked by git, relative to the working directory."""
        output = await self._run_checked(
            "ls-files", "-z", cwd=working_directory, error_class=VcsQueryError
        )
        return [path for path in output.split("\0") if path]

    async def file_metadata(self, working_directory: Path | str, path: str) -> FileMetadata:
        """Get blob hash, last commit hash and last commit date for one file.

        A file without history gets the sentinels ``""`` and ``None`` instead
        of an error.
        """
        staged = await self._run_checked(
            "ls-files", "-s", "--", path, cwd=working_directory, error_class=VcsQueryError
        )
        content_hash = _parse_blob_hash(staged)
        if not content_hash:
            logger.warning("Could not determine blob hash", path=path, git_output=staged.strip())

        history = await self._run_checked(
            "log", "-1", "--format=%H%n%aI", "--", path,
            cwd=working_directory,
            error_class=VcsQueryError,
        )
        commit_hash, latest_commit_date = _parse_history(history)
        if not commit_hash:
            logger.warning("Could not determine file history", path=path)

        return FileMetadata(
            content_hash=content_hash,
            commit_hash=commit_hash,
            latest_commit_date=latest_commit_date,
        )


def _parse_blob_hash(output: str) -> str:
    # <mode> SP <object> SP <stage> TAB <path>
    first_line = output.strip().splitlines()[0] if output.strip() else ""
    components = first_line.split()
    if len(components) < 2:
        return ""
    return components[1]


def _parse_symref(output: str) -> str:
    # ref: refs/heads/<branch> TAB HEAD
    for line in output.splitlines():
        ref, _, target = line.partition("\t")
        if target.strip() == "HEAD" and ref.startswith("ref: "):
            return ref[len("ref: "):].strip().removeprefix("refs/heads/")
    return ""


def _parse_history(output: str) -> tuple[str, datetime | None]:
    lines = output.strip().splitlines()
    if not lines:
        return "", None

    commit_hash = lines[0].strip()
    latest_commit_date = None
    if len(lines) > 1:
        try:
            latest_commit_date = datetime.fromisoformat(lines[1].strip())
        except ValueError:
            logger.warning("Could not parse commit date", raw=lines[1])
    return commit_hash, latest_commit_date
