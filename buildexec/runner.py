"""Execution of ordered invocations for a single build phase."""
from __future__ import annotations

from typing import Any, Sequence

from .command_runner import CommandLaunchError, CommandRunner, SubprocessCommandRunner
from .console import Console
from .errors import BuiltinExecutionError, DirectoryCreationError, ProcessLaunchError, UnresolvedBuiltinError
from .filesystem import Filesystem, LocalFilesystem, parent_directory
from .formatter import Formatter
from .invocation import Invocation
from .tools import BuiltinRegistry, BuiltinTool, DriverError, ExternalTool, Tool


class InvocationRunner:
    """Runs invocations in order and stops at the first failure.

    Failures raise an :class:`~buildexec.errors.InvocationError` subclass that
    carries the failing invocation. In dry-run mode output directories are not
    created and no tool is run, but builtin identifiers are still resolved.
    """

    def __init__(
        self,
        formatter: Formatter,
        builtins: BuiltinRegistry,
        *,
        dry_run: bool,
        filesystem: Filesystem | None = None,
        command_runner: CommandRunner | None = None,
        inherit_environment: bool = False,
        console: Console | None = None,
    ) -> None:
        self._formatter = formatter
        self._builtins = builtins
        self._dry_run = dry_run
        self._filesystem = filesystem or LocalFilesystem()
        self._command_runner = command_runner or SubprocessCommandRunner()
        self._inherit_environment = inherit_environment
        self._console = console or Console()

    def perform(
        self,
        target: Any,
        invocations: Sequence[Invocation],
        *,
        creates_product_structure: bool,
    ) -> None:
        for invocation in invocations:
            # Phony invocations only exist to order their neighbours.
            if invocation.executable.is_phony:
                continue
            if invocation.creates_product_structure != creates_product_structure:
                continue

            display_name = invocation.display_name
            self._formatter.begin_invocation(invocation, display_name, creates_product_structure)
            try:
                self._perform_one(invocation)
            finally:
                self._formatter.finish_invocation(invocation, display_name, creates_product_structure)

    def resolve_tool(self, invocation: Invocation) -> Tool:
        executable = invocation.executable
        if executable.is_builtin:
            driver = self._builtins.resolve(executable.builtin)
            if driver is None:
                raise UnresolvedBuiltinError(invocation)
            return BuiltinTool(driver)
        return ExternalTool(
            executable.path,
            runner=self._command_runner,
            inherit_environment=self._inherit_environment,
        )

    def _perform_one(self, invocation: Invocation) -> None:
        if self._dry_run:
            self.resolve_tool(invocation)
            self._console.dry(f"{invocation.display_name} {' '.join(invocation.arguments)}".rstrip())
            return

        for output in invocation.outputs:
            directory = parent_directory(output)
            if not directory:
                continue
            try:
                self._filesystem.create_directory(directory)
            except OSError as exc:
                raise DirectoryCreationError(
                    directory, exc.strerror or str(exc), invocation=invocation
                ) from exc

        tool = self.resolve_tool(invocation)
        self._console.debug(f"Running {invocation.display_name} ({type(tool).__name__})")
        try:
            status = tool.run(invocation.arguments, invocation.environment, invocation.working_directory)
        except CommandLaunchError as exc:
            raise ProcessLaunchError(invocation, exc.reason) from exc
        except DriverError as exc:
            raise BuiltinExecutionError(invocation, reason=exc.reason) from exc

        if status != 0:
            raise tool.failure_error(invocation, status)
