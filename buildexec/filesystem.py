"""Filesystem operations used while materializing build products."""
from __future__ import annotations

from pathlib import Path
import os
import stat


EXECUTABLE_MODE = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH


class Filesystem:
    """Abstract filesystem interface.

    Mutating methods raise :class:`OSError` on failure.
    """

    def is_directory(self, path: str) -> bool:
        raise NotImplementedError

    def create_directory(self, path: str) -> None:
        raise NotImplementedError

    def write(self, path: str, contents: bytes) -> None:
        raise NotImplementedError

    def is_executable(self, path: str) -> bool:
        raise NotImplementedError

    def set_executable(self, path: str) -> None:
        raise NotImplementedError


class LocalFilesystem(Filesystem):
    """Filesystem backed by the local disk."""

    def is_directory(self, path: str) -> bool:
        return Path(path).is_dir()

    def create_directory(self, path: str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def write(self, path: str, contents: bytes) -> None:
        with open(path, "wb") as handle:
            handle.write(contents)

    def is_executable(self, path: str) -> bool:
        return os.access(path, os.X_OK)

    def set_executable(self, path: str) -> None:
        os.chmod(path, EXECUTABLE_MODE)


def parent_directory(path: str) -> str:
    return os.path.dirname(path)
