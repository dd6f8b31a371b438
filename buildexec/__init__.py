"""Invocation scheduling and execution engine for build tools."""
from __future__ import annotations

from .errors import (
    AuxiliaryFileWriteError,
    BuiltinExecutionError,
    CycleDetectedError,
    DirectoryCreationError,
    EnvironmentCreationError,
    ExecutorError,
    InvocationError,
    PermissionChangeError,
    ProcessExecutionError,
    ProcessLaunchError,
    UnresolvedBuiltinError,
)
from .executor import BuildResult, Executor, PhaseEnvironment, SimpleExecutor
from .formatter import DefaultFormatter, Formatter, RecordingFormatter
from .graph import DirectedGraph
from .invocation import AuxiliaryFile, Executable, Invocation
from .sorting import sort_invocations
from .tools import BuiltinRegistry, Driver

__all__ = [
    "AuxiliaryFile",
    "AuxiliaryFileWriteError",
    "BuildResult",
    "BuiltinExecutionError",
    "BuiltinRegistry",
    "CycleDetectedError",
    "DefaultFormatter",
    "DirectedGraph",
    "DirectoryCreationError",
    "Driver",
    "EnvironmentCreationError",
    "Executable",
    "Executor",
    "ExecutorError",
    "Formatter",
    "Invocation",
    "InvocationError",
    "PermissionChangeError",
    "PhaseEnvironment",
    "ProcessExecutionError",
    "ProcessLaunchError",
    "RecordingFormatter",
    "SimpleExecutor",
    "UnresolvedBuiltinError",
    "sort_invocations",
]
