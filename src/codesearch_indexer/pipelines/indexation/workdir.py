"""Working directories for repository clones."""

import os
import shutil
import stat
from pathlib import Path


def delete_readonly_directory(directory: Path | str) -> None:
    """Recursively delete a directory, including read-only files.

    Git marks its object store read-only, so every entry is made writable
    before removal.
    """
    directory = Path(directory)
    for root, dirs, files in os.walk(directory):
        for entry in (*dirs, *files):
            entry_path = os.path.join(root, entry)
            if not os.path.islink(entry_path):
                os.chmod(entry_path, stat.S_IRWXU)
    os.chmod(directory, stat.S_IRWXU)
    shutil.rmtree(directory)


class WorkingDirectory:
    """The clone target of one in-flight run, ``<base>/<repository name>``."""

    def __init__(self, base_directory: Path | str, name: str) -> None:
        self._base = Path(base_directory).resolve()
        self._path = (self._base / name).resolve()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return str(self._path)

    @property
    def is_managed(self) -> bool:
        """True if the directory lies strictly inside the base directory."""
        return self._path != self._base and self._path.is_relative_to(self._base)

    def exists(self) -> bool:
        return self._path.exists()

    def prepare(self) -> None:
        """Make sure the base exists and no leftover clone is in the way."""
        self._base.mkdir(parents=True, exist_ok=True)
        self.remove()

    def remove(self) -> bool:
        """Delete the directory if it exists and is managed. Returns True if deleted."""
        if not self.is_managed or not self._path.exists():
            return False
        delete_readonly_directory(self._path)
        return True

    def __str__(self) -> str:
        return str(self._path)
