"""Utilities for launching external tools with optional recording support."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence
import os
import shlex
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int


class CommandLaunchError(RuntimeError):
    """Raised when a command could not be started at all."""

    def __init__(self, command: Sequence[str], reason: str):
        super().__init__(f"Unable to launch {' '.join(map(shlex.quote, command))}: {reason}")
        self.command = list(command)
        self.reason = reason


class CommandRunner:
    """Abstract command runner interface.

    Output of the launched command goes straight to the caller's terminal.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        inherit_env: bool = True,
    ) -> CommandResult:
        raise NotImplementedError


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None, *, inherit_env: bool) -> Dict[str, str] | None:
        if env is None:
            return None if inherit_env else {}
        if not inherit_env:
            return dict(env)
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        inherit_env: bool = True,
    ) -> CommandResult:
        merged_env = self._merge_environment(env, inherit_env=inherit_env)
        try:
            process = subprocess.run(
                command,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                check=False,
            )
        except OSError as exc:
            raise CommandLaunchError(command, exc.strerror or str(exc)) from exc
        except ValueError as exc:
            # e.g. an embedded NUL byte in an argument or environment value
            raise CommandLaunchError(command, str(exc)) from exc
        return CommandResult(command=command, returncode=process.returncode)


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str]
    inherit_env: bool


@dataclass
class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them.

    ``returncodes`` maps an executable path to the exit status reported for it;
    executables listed in ``unlaunchable`` raise :class:`CommandLaunchError`.
    """

    returncodes: Dict[str, int] = field(default_factory=dict)
    unlaunchable: set[str] = field(default_factory=set)
    commands: List[RecordedCommand] = field(default_factory=list)

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        inherit_env: bool = True,
    ) -> CommandResult:
        executable = command[0] if command else ""
        if executable in self.unlaunchable:
            raise CommandLaunchError(command, "No such file or directory")
        self.commands.append(
            RecordedCommand(
                command=list(command),
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env else {},
                inherit_env=inherit_env,
            )
        )
        return CommandResult(command=command, returncode=self.returncodes.get(executable, 0))

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(self.commands)

    def executables(self) -> List[str]:
        return [record.command[0] for record in self.commands if record.command]
