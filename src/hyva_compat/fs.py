from __future__ import annotations
import os
from typing import List, Protocol

from .errors import FilesystemAccessError


class FileSystem(Protocol):
    """What the detector and scanner need from a filesystem.

    Anything that cannot be read raises FilesystemAccessError so callers
    can skip the entry instead of aborting the scan.
    """

    def list_dir(self, path: str) -> List[str]: ...

    def is_dir(self, path: str) -> bool: ...

    def is_link(self, path: str) -> bool: ...

    def exists(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...


class LocalFileSystem:
    """Read-only view of the local disk."""

    def list_dir(self, path: str) -> List[str]:
        try:
            names = sorted(os.listdir(path))
        except OSError as e:
            raise FilesystemAccessError(path, e) from e
        return [os.path.join(path, name) for name in names]

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_link(self, path: str) -> bool:
        return os.path.islink(path)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def read_text(self, path: str) -> str:
        try:
            with open(path, "r", encoding="utf-8", errors="ignore") as f:
                return f.read()
        except OSError as e:
            raise FilesystemAccessError(path, e) from e
