"""Allow-list filter for indexable files."""

from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from posixpath import basename


def file_extension(filename: str) -> str:
    """Return the extension of a base name, including the leading dot.

    A dot-file such as ``.gitignore`` is its own extension. A trailing dot
    means no extension.
    """
    index = filename.rfind(".")
    if index < 0 or index == len(filename) - 1:
        return ""
    return filename[index:]


def is_allowed(
    path: str,
    *,
    allowed_extensions: Collection[str] = (),
    allowed_filenames: Collection[str] = (),
) -> bool:
    """Check if a repository-relative path should be indexed.

    Matches the base filename exactly, or the extension. No case folding.
    """
    filename = basename(path)
    if filename in allowed_filenames:
        return True
    return file_extension(filename) in allowed_extensions


@dataclass(frozen=True)
class FileFilter:
    """Holds the configured allow-lists."""

    allowed_extensions: frozenset[str] = field(default_factory=frozenset)
    allowed_filenames: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_lists(cls, extensions: Iterable[str], filenames: Iterable[str]) -> "FileFilter":
        return cls(frozenset(extensions), frozenset(filenames))

    def is_allowed(self, path: str) -> bool:
        return is_allowed(
            path,
            allowed_extensions=self.allowed_extensions,
            allowed_filenames=self.allowed_filenames,
        )

    def filter(self, paths: Iterable[str]) -> list[str]:
        return [path for path in paths if self.is_allowed(path)]
