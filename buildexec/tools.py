"""Runnable tools: in-process builtin drivers and external executables."""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Sequence, Type

from .command_runner import CommandRunner, SubprocessCommandRunner
from .errors import BuiltinExecutionError, InvocationError, ProcessExecutionError


class Driver(ABC):
    """An in-process implementation of a builtin tool."""

    name: str = ""

    @abstractmethod
    def run(self, arguments: Sequence[str], environment: Mapping[str, str], working_directory: str) -> int:
        """Run the tool and return its exit status."""


class DriverError(RuntimeError):
    """Raised when a builtin driver raises instead of returning a status."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Builtin driver '{name}' raised: {reason}")
        self.name = name
        self.reason = reason


class Tool(ABC):
    """Something an invocation can execute, regardless of how it runs."""

    failure_error: Type[InvocationError] = ProcessExecutionError

    @abstractmethod
    def run(self, arguments: Sequence[str], environment: Mapping[str, str], working_directory: str) -> int:
        """Run the tool and return its exit status."""


class BuiltinTool(Tool):
    failure_error = BuiltinExecutionError

    def __init__(self, driver: Driver) -> None:
        self.driver = driver

    def run(self, arguments: Sequence[str], environment: Mapping[str, str], working_directory: str) -> int:
        try:
            return self.driver.run(arguments, environment, working_directory)
        except Exception as exc:
            raise DriverError(self.driver.name, f"{type(exc).__name__}: {exc}") from exc


class ExternalTool(Tool):
    """Launches an executable through a :class:`CommandRunner`.

    Launch failures surface as :class:`~buildexec.command_runner.CommandLaunchError`.
    """

    failure_error = ProcessExecutionError

    def __init__(
        self,
        path: str,
        *,
        runner: CommandRunner | None = None,
        inherit_environment: bool = False,
    ) -> None:
        self.path = path
        self._runner = runner or SubprocessCommandRunner()
        self._inherit_environment = inherit_environment

    def run(self, arguments: Sequence[str], environment: Mapping[str, str], working_directory: str) -> int:
        result = self._runner.run(
            [self.path, *arguments],
            cwd=Path(working_directory) if working_directory else None,
            env=environment,
            inherit_env=self._inherit_environment,
        )
        return result.returncode


class BuiltinRegistry:
    """Resolves builtin identifiers to drivers."""

    def __init__(self, drivers: Iterable[Driver] = ()) -> None:
        self._drivers: Dict[str, Driver] = {}
        for driver in drivers:
            self.register(driver)

    def register(self, driver: Driver, *, identifier: str | None = None) -> None:
        key = identifier or driver.name
        if not key:
            raise ValueError("Builtin drivers must have a non-empty identifier")
        self._drivers[key] = driver

    def resolve(self, identifier: str) -> Driver | None:
        return self._drivers.get(identifier)

    def identifiers(self) -> list[str]:
        return sorted(self._drivers)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._drivers

    @classmethod
    def default(cls) -> "BuiltinRegistry":
        from .drivers import DEFAULT_DRIVERS

        return cls(factory() for factory in DEFAULT_DRIVERS)


class FunctionDriver(Driver):
    """Adapts a plain callable into a :class:`Driver`."""

    def __init__(
        self,
        name: str,
        function: Callable[[Sequence[str], Mapping[str, str], str], int],
    ) -> None:
        self.name = name
        self._function = function

    def run(self, arguments: Sequence[str], environment: Mapping[str, str], working_directory: str) -> int:
        return self._function(arguments, environment, working_directory)
