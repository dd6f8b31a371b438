"""Materialization of auxiliary files declared by invocations."""
from __future__ import annotations

from typing import Any, Sequence

from .errors import AuxiliaryFileWriteError, DirectoryCreationError, PermissionChangeError
from .filesystem import Filesystem, LocalFilesystem, parent_directory
from .formatter import Formatter
from .invocation import Invocation


class AuxiliaryFileWriter:
    """Writes generated support files before any invocation of a target runs.

    In dry-run mode every event is still emitted but the filesystem is never
    modified.
    """

    def __init__(
        self,
        formatter: Formatter,
        *,
        dry_run: bool,
        filesystem: Filesystem | None = None,
    ) -> None:
        self._formatter = formatter
        self._dry_run = dry_run
        self._filesystem = filesystem or LocalFilesystem()

    def write(self, target: Any, invocations: Sequence[Invocation]) -> None:
        fs = self._filesystem
        self._formatter.begin_write_auxiliary_files(target)
        for invocation in invocations:
            for auxiliary_file in invocation.auxiliary_files:
                path = auxiliary_file.path
                directory = parent_directory(path)
                if directory and not fs.is_directory(directory):
                    self._formatter.create_auxiliary_directory(directory)
                    if not self._dry_run:
                        try:
                            fs.create_directory(directory)
                        except OSError as exc:
                            raise DirectoryCreationError(directory, exc.strerror or str(exc)) from exc

                self._formatter.write_auxiliary_file(path)
                if not self._dry_run:
                    try:
                        fs.write(path, auxiliary_file.contents)
                    except OSError as exc:
                        raise AuxiliaryFileWriteError(path, exc.strerror or str(exc)) from exc

                if auxiliary_file.executable and not fs.is_executable(path):
                    self._formatter.set_auxiliary_executable(path)
                    if not self._dry_run:
                        try:
                            fs.set_executable(path)
                        except OSError as exc:
                            raise PermissionChangeError(path, exc.strerror or str(exc)) from exc
        self._formatter.finish_write_auxiliary_files(target)
