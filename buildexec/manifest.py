"""Build manifests: targets, their dependencies and invocation templates.

A manifest is a TOML, JSON or YAML document::

    [build]
    root = "/work/out"          # defaults to the manifest's directory
    variables = { CONFIGURATION = "Debug" }

    [targets.App]
    dependencies = ["Support"]
    variables = { PRODUCT = "{{TARGET_BUILD_DIR}}/App.app" }

    [[targets.App.invocations]]
    executable = "/usr/bin/cc"
    arguments = ["-c", "main.c", "-o", "{{TARGET_BUILD_DIR}}/main.o"]
    inputs = ["main.c"]
    outputs = ["{{TARGET_BUILD_DIR}}/main.o"]

String values may reference variables with ``{{NAME}}``. Relative paths are
resolved against the build root.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence
import os
import re

from .config_loader import load_config_file, normalize_string_list, normalize_string_mapping
from .errors import EnvironmentCreationError
from .executor import PhaseEnvironment
from .graph import DirectedGraph
from .invocation import Invocation

_PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")

_PATH_FIELDS = ("inputs", "outputs", "phony_inputs", "input_dependencies")


@dataclass(frozen=True, slots=True)
class Target:
    """Opaque handle to a buildable unit."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(slots=True)
class BuildEnvironment:
    root: Path
    variables: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class TargetEnvironment:
    target: Target
    build_dir: Path
    variables: Dict[str, str]

    def substitute(self, text: str) -> str:
        def replacement(match: re.Match[str]) -> str:
            return self.variables[match.group(1)]

        return _PLACEHOLDER_PATTERN.sub(replacement, text)


@dataclass(slots=True)
class TargetDefinition:
    name: str
    dependencies: List[str] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)
    invocations: List[Mapping[str, Any]] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "TargetDefinition":
        if not isinstance(data, Mapping):
            raise TypeError(f"targets.{name} must be a table")
        invocations = data.get("invocations") or []
        if not isinstance(invocations, Sequence) or isinstance(invocations, (str, bytes)):
            raise TypeError(f"targets.{name}.invocations must be a list of tables")
        for entry in invocations:
            if not isinstance(entry, Mapping):
                raise TypeError(f"targets.{name}.invocations entries must be tables")
        definition = cls(
            name=name,
            dependencies=normalize_string_list(data.get("dependencies"), field_name=f"targets.{name}.dependencies"),
            variables=normalize_string_mapping(data.get("variables"), field_name=f"targets.{name}.variables"),
            invocations=[dict(entry) for entry in invocations],
        )
        # Parse once so malformed invocations are reported at load time.
        for index, entry in enumerate(definition.invocations):
            try:
                Invocation.from_mapping(entry)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"targets.{name}.invocations[{index}]: {exc}") from exc
        return definition


def _placeholders(value: Any) -> set[str]:
    found: set[str] = set()
    if isinstance(value, str):
        found.update(_PLACEHOLDER_PATTERN.findall(value))
    elif isinstance(value, Mapping):
        for item in value.values():
            found |= _placeholders(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            found |= _placeholders(item)
    return found


def _substitute_all(value: Any, environment: TargetEnvironment) -> Any:
    if isinstance(value, str):
        return environment.substitute(value)
    if isinstance(value, Mapping):
        return {key: _substitute_all(item, environment) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_substitute_all(item, environment) for item in value]
    return value


def _absolute(path: str, root: Path) -> str:
    if not path:
        return path
    return os.path.normpath(os.path.join(root, path))


@dataclass(slots=True)
class BuildManifest:
    """Targets and invocation templates loaded from a manifest file."""

    root: Path
    variables: Dict[str, str] = field(default_factory=dict)
    targets: Dict[str, TargetDefinition] = field(default_factory=dict)
    source: Path | None = None

    @classmethod
    def from_path(cls, path: Path) -> "BuildManifest":
        data = load_config_file(path)
        return cls.from_mapping(data, base_dir=path.resolve().parent, source=path)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        base_dir: Path,
        source: Path | None = None,
    ) -> "BuildManifest":
        build_section = data.get("build") or {}
        if not isinstance(build_section, Mapping):
            raise TypeError("[build] must be a table")
        raw_root = build_section.get("root")
        if raw_root is not None and not isinstance(raw_root, str):
            raise TypeError("build.root must be a string path")
        root = Path(raw_root).expanduser() if raw_root else base_dir
        if not root.is_absolute():
            root = (base_dir / root).resolve()

        targets_section = data.get("targets")
        if not isinstance(targets_section, Mapping) or not targets_section:
            raise ValueError("[targets] section with at least one target is required")

        targets: Dict[str, TargetDefinition] = {}
        for name, target_data in targets_section.items():
            targets[str(name)] = TargetDefinition.from_mapping(str(name), target_data)

        for definition in targets.values():
            for dependency in definition.dependencies:
                if dependency not in targets:
                    available = ", ".join(sorted(targets)) or "<none>"
                    raise ValueError(
                        f"Target '{definition.name}' depends on unknown target '{dependency}'. "
                        f"Available targets: {available}"
                    )

        return cls(
            root=root,
            variables=normalize_string_mapping(build_section.get("variables"), field_name="build.variables"),
            targets=targets,
            source=source,
        )

    def target(self, name: str) -> Target:
        if name not in self.targets:
            available = ", ".join(sorted(self.targets)) or "<none>"
            raise ValueError(f"Target '{name}' not found. Available targets: {available}")
        return Target(name)

    def target_graph(self) -> DirectedGraph[Target]:
        graph: DirectedGraph[Target] = DirectedGraph(label="target dependencies")
        for definition in self.targets.values():
            graph.insert(Target(definition.name), (Target(name) for name in definition.dependencies))
        return graph

    def build_environment(self) -> BuildEnvironment:
        return BuildEnvironment(root=self.root, variables=dict(self.variables))

    def context(self) -> "ManifestContext":
        return ManifestContext(self)


class ManifestContext:
    """Creates target environments and derives invocations from a manifest."""

    def __init__(self, manifest: BuildManifest) -> None:
        self.manifest = manifest

    def target_environment(self, build_environment: BuildEnvironment, target: Target) -> TargetEnvironment:
        definition = self.manifest.targets.get(target.name)
        if definition is None:
            raise EnvironmentCreationError(f"Target '{target.name}' is not defined in the manifest")

        build_dir = build_environment.root / "build" / target.name
        variables: Dict[str, str] = {
            "BUILD_ROOT": str(build_environment.root),
            "TARGET_NAME": target.name,
            "TARGET_BUILD_DIR": str(build_dir),
        }
        variables.update(build_environment.variables)

        environment = TargetEnvironment(target=target, build_dir=build_dir, variables=variables)
        for key, value in definition.variables.items():
            self._ensure_defined(target, environment, value, where=f"variable '{key}'")
            variables[key] = environment.substitute(value)

        for index, template in enumerate(definition.invocations):
            self._ensure_defined(target, environment, template, where=f"invocation {index}")
        return environment

    def derive(self, phase_environment: PhaseEnvironment, target: Target) -> List[Invocation]:
        environment: TargetEnvironment = phase_environment.target_environment
        root = phase_environment.build_environment.root
        definition = self.manifest.targets[target.name]

        invocations: List[Invocation] = []
        for template in definition.invocations:
            resolved = _substitute_all(template, environment)
            for key in _PATH_FIELDS:
                if key in resolved:
                    resolved[key] = [_absolute(path, root) for path in normalize_string_list(resolved[key], field_name=key)]
            resolved["working_directory"] = _absolute(resolved.get("working_directory") or str(root), root)
            for auxiliary in resolved.get("auxiliary_files") or []:
                auxiliary["path"] = _absolute(auxiliary.get("path", ""), root)
            invocations.append(Invocation.from_mapping(resolved))
        return invocations

    @staticmethod
    def _ensure_defined(target: Target, environment: TargetEnvironment, value: Any, *, where: str) -> None:
        missing = sorted(name for name in _placeholders(value) if name not in environment.variables)
        if missing:
            raise EnvironmentCreationError(
                f"Undefined variable(s) {', '.join(missing)} in {where} of target '{target.name}'"
            )
