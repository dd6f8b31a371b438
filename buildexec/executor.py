"""Target-level build orchestration."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Hashable, List, Protocol, Sequence, TypeVar

from .auxiliary import AuxiliaryFileWriter
from .command_runner import CommandRunner
from .console import Console
from .errors import CycleDetectedError, EnvironmentCreationError, ExecutorError
from .filesystem import Filesystem
from .formatter import Formatter
from .graph import DirectedGraph
from .invocation import Invocation
from .runner import InvocationRunner
from .sorting import sort_invocations
from .tools import BuiltinRegistry

TargetT = TypeVar("TargetT", bound=Hashable)


def _target_name(target: Any) -> str:
    return str(getattr(target, "name", target))


@dataclass(slots=True)
class PhaseEnvironment(Generic[TargetT]):
    """Everything an invocation provider needs to derive a target's invocations."""

    build_environment: Any
    build_context: Any
    target: TargetT
    target_environment: Any


class TargetEnvironmentProvider(Protocol):
    def target_environment(self, build_environment: Any, target: Any) -> Any | None:
        """Return the target's environment, or ``None`` when it cannot be created."""


class InvocationProvider(Protocol):
    def derive(self, phase_environment: PhaseEnvironment, target: Any) -> Sequence[Invocation]:
        """Return the invocations that build ``target``."""


@dataclass(slots=True)
class BuildResult:
    success: bool
    failures: List[Invocation] = field(default_factory=list)
    error: ExecutorError | None = None
    built_targets: List[Any] = field(default_factory=list)
    skipped_targets: List[Any] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success


class Executor:
    """Base class for executors; holds the event sink and the dry-run flag."""

    def __init__(self, formatter: Formatter, dry_run: bool) -> None:
        self._formatter = formatter
        self._dry_run = dry_run

    @property
    def formatter(self) -> Formatter:
        return self._formatter

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def build(
        self,
        build_environment: Any,
        build_context: TargetEnvironmentProvider,
        target_graph: DirectedGraph[Any],
        invocation_provider: InvocationProvider | None = None,
    ) -> BuildResult:
        raise NotImplementedError


class SimpleExecutor(Executor):
    """Builds targets one at a time, running each invocation to completion in order."""

    def __init__(
        self,
        formatter: Formatter,
        dry_run: bool,
        builtins: BuiltinRegistry,
        *,
        console: Console | None = None,
        filesystem: Filesystem | None = None,
        command_runner: CommandRunner | None = None,
        inherit_environment: bool = False,
    ) -> None:
        super().__init__(formatter, dry_run)
        self._builtins = builtins
        self._console = console or Console(dry_run=dry_run)
        self._auxiliary_writer = AuxiliaryFileWriter(formatter, dry_run=dry_run, filesystem=filesystem)
        self._runner = InvocationRunner(
            formatter,
            builtins,
            dry_run=dry_run,
            filesystem=filesystem,
            command_runner=command_runner,
            inherit_environment=inherit_environment,
            console=self._console,
        )

    @classmethod
    def create(
        cls,
        formatter: Formatter,
        dry_run: bool,
        builtins: BuiltinRegistry | None = None,
        **kwargs: Any,
    ) -> "SimpleExecutor":
        return cls(formatter, dry_run, builtins if builtins is not None else BuiltinRegistry.default(), **kwargs)

    def build(
        self,
        build_environment: Any,
        build_context: TargetEnvironmentProvider,
        target_graph: DirectedGraph[Any],
        invocation_provider: InvocationProvider | None = None,
    ) -> BuildResult:
        provider: InvocationProvider = invocation_provider or build_context  # type: ignore[assignment]
        self._formatter.begin(build_context)

        try:
            ordered_targets = target_graph.ordered()
        except CycleDetectedError as exc:
            self._console.error(f"cycle detected in target dependencies: {exc}")
            self._formatter.failure(build_context, [])
            return BuildResult(success=False, error=exc)

        result = BuildResult(success=True)
        for target in ordered_targets:
            self._formatter.begin_target(build_context, target)

            try:
                target_environment = build_context.target_environment(build_environment, target)
            except EnvironmentCreationError as exc:
                self._console.error(f"couldn't create target environment for {_target_name(target)}: {exc}")
                target_environment = None
            else:
                if target_environment is None:
                    self._console.error(f"couldn't create target environment for {_target_name(target)}")
            if target_environment is None:
                self._formatter.finish_target(build_context, target)
                result.skipped_targets.append(target)
                continue

            self._formatter.begin_check_dependencies(target)
            phase_environment = PhaseEnvironment(
                build_environment=build_environment,
                build_context=build_context,
                target=target,
                target_environment=target_environment,
            )
            invocations = list(provider.derive(phase_environment, target))
            self._formatter.finish_check_dependencies(target)

            try:
                self.build_target(target, target_environment, invocations)
            except ExecutorError as exc:
                self._console.error(str(exc))
                self._formatter.finish_target(build_context, target)
                self._formatter.failure(build_context, exc.invocations)
                result.success = False
                result.error = exc
                result.failures = exc.invocations
                return result

            self._formatter.finish_target(build_context, target)
            result.built_targets.append(target)

        self._formatter.success(build_context)
        return result

    def build_target(self, target: Any, target_environment: Any, invocations: Sequence[Invocation]) -> None:
        """Write auxiliary files, order the invocations, then run both phases."""

        self._auxiliary_writer.write(target, invocations)

        try:
            ordered = sort_invocations(invocations)
        except CycleDetectedError:
            self._console.error("cycle detected building invocation graph")
            raise
        self._console.debug(f"{_target_name(target)}: {len(ordered)} invocation(s) ordered")

        self._formatter.begin_create_product_structure(target)
        try:
            self._runner.perform(target, ordered, creates_product_structure=True)
        finally:
            self._formatter.finish_create_product_structure(target)

        self._runner.perform(target, ordered, creates_product_structure=False)
