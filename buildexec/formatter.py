"""Progress event sinks for build execution."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Sequence, TextIO
import shlex
import sys

from .invocation import Invocation


def _target_name(target: Any) -> str:
    return str(getattr(target, "name", target))


class Formatter:
    """Receives build lifecycle events.

    Every hook is fire-and-forget; the executor never looks at what a formatter
    does with an event. The base class ignores all of them.
    """

    def begin(self, build_context: Any) -> None:
        pass

    def success(self, build_context: Any) -> None:
        pass

    def failure(self, build_context: Any, invocations: Sequence[Invocation]) -> None:
        pass

    def begin_target(self, build_context: Any, target: Any) -> None:
        pass

    def finish_target(self, build_context: Any, target: Any) -> None:
        pass

    def begin_check_dependencies(self, target: Any) -> None:
        pass

    def finish_check_dependencies(self, target: Any) -> None:
        pass

    def begin_write_auxiliary_files(self, target: Any) -> None:
        pass

    def finish_write_auxiliary_files(self, target: Any) -> None:
        pass

    def create_auxiliary_directory(self, path: str) -> None:
        pass

    def write_auxiliary_file(self, path: str) -> None:
        pass

    def set_auxiliary_executable(self, path: str) -> None:
        pass

    def begin_create_product_structure(self, target: Any) -> None:
        pass

    def finish_create_product_structure(self, target: Any) -> None:
        pass

    def begin_invocation(self, invocation: Invocation, display_name: str, creates_product_structure: bool) -> None:
        pass

    def finish_invocation(self, invocation: Invocation, display_name: str, creates_product_structure: bool) -> None:
        pass


class DefaultFormatter(Formatter):
    """Renders events as plain text lines."""

    def __init__(self, stream: TextIO | None = None, *, verbose: bool = False) -> None:
        self._stream = stream
        self.verbose = verbose

    def _print(self, line: str = "") -> None:
        print(line, file=self._stream or sys.stdout)

    def success(self, build_context: Any) -> None:
        self._print("** BUILD SUCCEEDED **")

    def failure(self, build_context: Any, invocations: Sequence[Invocation]) -> None:
        self._print("** BUILD FAILED **")
        if invocations:
            self._print()
            self._print("The following build commands failed:")
            for invocation in invocations:
                self._print(f"\t{invocation}")

    def begin_target(self, build_context: Any, target: Any) -> None:
        self._print(f"=== BUILD TARGET {_target_name(target)} ===")

    def finish_target(self, build_context: Any, target: Any) -> None:
        self._print()

    def begin_check_dependencies(self, target: Any) -> None:
        self._print("Check dependencies")

    def begin_write_auxiliary_files(self, target: Any) -> None:
        self._print("Write auxiliary files")

    def create_auxiliary_directory(self, path: str) -> None:
        self._print(f"/bin/mkdir -p {shlex.quote(path)}")

    def write_auxiliary_file(self, path: str) -> None:
        self._print(f"write-file {shlex.quote(path)}")

    def set_auxiliary_executable(self, path: str) -> None:
        self._print(f"chmod 0755 {shlex.quote(path)}")

    def begin_create_product_structure(self, target: Any) -> None:
        self._print("Create product structure")

    def begin_invocation(self, invocation: Invocation, display_name: str, creates_product_structure: bool) -> None:
        self._print(str(invocation))
        if not self.verbose:
            return
        if invocation.working_directory:
            self._print(f"    cd {shlex.quote(invocation.working_directory)}")
        for key in sorted(invocation.environment):
            self._print(f"    export {key}={shlex.quote(invocation.environment[key])}")
        command = [invocation.executable.builtin or invocation.executable.path, *invocation.arguments]
        self._print("    " + " ".join(shlex.quote(part) for part in command))


@dataclass(frozen=True, slots=True)
class FormatterEvent:
    name: str
    subject: Any = None
    detail: Any = None


@dataclass
class RecordingFormatter(Formatter):
    """Formatter that records every event it receives."""

    events: List[FormatterEvent] = field(default_factory=list)

    def _record(self, name: str, subject: Any = None, detail: Any = None) -> None:
        self.events.append(FormatterEvent(name=name, subject=subject, detail=detail))

    def names(self) -> List[str]:
        return [event.name for event in self.events]

    def begin(self, build_context: Any) -> None:
        self._record("begin", build_context)

    def success(self, build_context: Any) -> None:
        self._record("success", build_context)

    def failure(self, build_context: Any, invocations: Sequence[Invocation]) -> None:
        self._record("failure", build_context, list(invocations))

    def begin_target(self, build_context: Any, target: Any) -> None:
        self._record("begin_target", target)

    def finish_target(self, build_context: Any, target: Any) -> None:
        self._record("finish_target", target)

    def begin_check_dependencies(self, target: Any) -> None:
        self._record("begin_check_dependencies", target)

    def finish_check_dependencies(self, target: Any) -> None:
        self._record("finish_check_dependencies", target)

    def begin_write_auxiliary_files(self, target: Any) -> None:
        self._record("begin_write_auxiliary_files", target)

    def finish_write_auxiliary_files(self, target: Any) -> None:
        self._record("finish_write_auxiliary_files", target)

    def create_auxiliary_directory(self, path: str) -> None:
        self._record("create_auxiliary_directory", path)

    def write_auxiliary_file(self, path: str) -> None:
        self._record("write_auxiliary_file", path)

    def set_auxiliary_executable(self, path: str) -> None:
        self._record("set_auxiliary_executable", path)

    def begin_create_product_structure(self, target: Any) -> None:
        self._record("begin_create_product_structure", target)

    def finish_create_product_structure(self, target: Any) -> None:
        self._record("finish_create_product_structure", target)

    def begin_invocation(self, invocation: Invocation, display_name: str, creates_product_structure: bool) -> None:
        self._record("begin_invocation", invocation, (display_name, creates_product_structure))

    def finish_invocation(self, invocation: Invocation, display_name: str, creates_product_structure: bool) -> None:
        self._record("finish_invocation", invocation, (display_name, creates_product_structure))
