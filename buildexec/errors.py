"""Exception hierarchy raised while scheduling and running invocations."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Sequence

if TYPE_CHECKING:
    from .invocation import Invocation


class ExecutorError(RuntimeError):
    """Base class for failures that stop a build."""

    def __init__(self, message: str, *, invocation: "Invocation | None" = None):
        super().__init__(message)
        self.invocation = invocation

    @property
    def invocations(self) -> List["Invocation"]:
        return [self.invocation] if self.invocation is not None else []


class CycleDetectedError(ExecutorError):
    """Raised when a dependency graph cannot be ordered."""

    def __init__(self, cycle: Sequence[Any], *, label: str = "graph"):
        self.cycle = list(cycle)
        path = " -> ".join(str(node) for node in self.cycle)
        message = f"Circular dependency detected in {label}"
        if path:
            message = f"{message}: {path}"
        super().__init__(message)


class EnvironmentCreationError(ExecutorError):
    """Raised when a target environment cannot be created; the target is skipped."""


class DirectoryCreationError(ExecutorError):
    def __init__(self, path: str, reason: str, *, invocation: "Invocation | None" = None):
        super().__init__(f"Unable to create directory '{path}': {reason}", invocation=invocation)
        self.path = path


class AuxiliaryFileWriteError(ExecutorError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Unable to write auxiliary file '{path}': {reason}")
        self.path = path


class PermissionChangeError(ExecutorError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Unable to make '{path}' executable: {reason}")
        self.path = path


class InvocationError(ExecutorError):
    """Raised when a single invocation fails; carries the failing invocation."""

    def __init__(self, message: str, invocation: "Invocation"):
        super().__init__(message, invocation=invocation)


class UnresolvedBuiltinError(InvocationError):
    def __init__(self, invocation: "Invocation"):
        super().__init__(f"Unknown builtin tool '{invocation.executable.builtin}'", invocation)


class BuiltinExecutionError(InvocationError):
    """A builtin returned a non-zero status, or raised (``status`` is then ``None``)."""

    def __init__(self, invocation: "Invocation", status: int | None = None, *, reason: str | None = None):
        name = invocation.executable.builtin
        if reason is not None:
            message = f"Builtin tool '{name}' failed: {reason}"
        else:
            message = f"Builtin tool '{name}' failed with exit code {status}"
        super().__init__(message, invocation)
        self.status = status
        self.reason = reason


class ProcessLaunchError(InvocationError):
    def __init__(self, invocation: "Invocation", reason: str):
        super().__init__(f"Unable to launch '{invocation.executable.path}': {reason}", invocation)
        self.reason = reason


class ProcessExecutionError(InvocationError):
    def __init__(self, invocation: "Invocation", status: int):
        super().__init__(
            f"Command '{invocation.executable.path}' failed with exit code {status}",
            invocation,
        )
        self.status = status


__all__ = [
    "AuxiliaryFileWriteError",
    "BuiltinExecutionError",
    "CycleDetectedError",
    "DirectoryCreationError",
    "EnvironmentCreationError",
    "ExecutorError",
    "InvocationError",
    "PermissionChangeError",
    "ProcessExecutionError",
    "ProcessLaunchError",
    "UnresolvedBuiltinError",
]
