"""Value types describing a single tool invocation."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Iterator, Mapping, Sequence, Tuple

from .config_loader import normalize_string_mapping


def _string_tuple(value: Any, *, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Sequence):
        items = []
        for item in value:
            if not isinstance(item, str):
                raise TypeError(f"{field_name} entries must be strings")
            items.append(item)
        return tuple(items)
    raise TypeError(f"{field_name} must be a string or sequence of strings")


def _flag(value: Any, *, field_name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TypeError(f"{field_name} must be a boolean")
    return value


@dataclass(frozen=True, slots=True)
class Executable:
    """Either an external tool path or a builtin identifier.

    A builtin identifier takes precedence over the path. When both are empty
    the owning invocation is a phony ordering node.
    """

    path: str = ""
    builtin: str = ""

    @property
    def is_builtin(self) -> bool:
        return bool(self.builtin)

    @property
    def is_phony(self) -> bool:
        return not self.path and not self.builtin

    @property
    def display_name(self) -> str:
        if self.builtin:
            return self.builtin
        if self.path:
            return PurePath(self.path).name
        return ""


@dataclass(frozen=True, slots=True)
class AuxiliaryFile:
    path: str
    contents: bytes = b""
    executable: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AuxiliaryFile":
        path = data.get("path")
        if not isinstance(path, str) or not path:
            raise ValueError("auxiliary_files entries require a non-empty 'path'")
        raw_contents = data.get("contents", b"")
        if isinstance(raw_contents, str):
            contents = raw_contents.encode("utf-8")
        elif isinstance(raw_contents, (bytes, bytearray)):
            contents = bytes(raw_contents)
        else:
            raise TypeError(f"auxiliary file '{path}' contents must be a string or bytes")
        executable = _flag(data.get("executable"), field_name=f"auxiliary file '{path}' executable")
        return cls(path=path, contents=contents, executable=executable)


@dataclass(frozen=True, slots=True)
class Invocation:
    """One executable build step with its declared inputs and outputs."""

    executable: Executable = field(default_factory=Executable)
    arguments: Tuple[str, ...] = ()
    environment: Mapping[str, str] = field(default_factory=dict)
    working_directory: str = ""
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()
    phony_inputs: Tuple[str, ...] = ()
    input_dependencies: Tuple[str, ...] = ()
    auxiliary_files: Tuple[AuxiliaryFile, ...] = ()
    creates_product_structure: bool = False

    @property
    def display_name(self) -> str:
        return self.executable.display_name

    def dependency_paths(self) -> Iterator[str]:
        """Yield every path that orders this invocation after its producer."""

        yield from self.inputs
        yield from self.phony_inputs
        yield from self.input_dependencies

    def __str__(self) -> str:
        name = self.display_name or "<phony>"
        if self.outputs:
            return f"{name} {self.outputs[0]}"
        return name

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Invocation":
        executable = data.get("executable", "")
        builtin = data.get("builtin", "")
        if not isinstance(executable, str):
            raise TypeError("executable must be a string path")
        if not isinstance(builtin, str):
            raise TypeError("builtin must be a string identifier")

        auxiliary_section = data.get("auxiliary_files") or []
        if not isinstance(auxiliary_section, Sequence) or isinstance(auxiliary_section, (str, bytes)):
            raise TypeError("auxiliary_files must be a list of tables")
        auxiliary_files = []
        for entry in auxiliary_section:
            if not isinstance(entry, Mapping):
                raise TypeError("auxiliary_files entries must be tables")
            auxiliary_files.append(AuxiliaryFile.from_mapping(entry))

        working_directory = data.get("working_directory", "")
        if not isinstance(working_directory, str):
            raise TypeError("working_directory must be a string")

        return cls(
            executable=Executable(path=executable, builtin=builtin),
            arguments=_string_tuple(data.get("arguments"), field_name="arguments"),
            environment=normalize_string_mapping(data.get("environment"), field_name="environment"),
            working_directory=working_directory,
            inputs=_string_tuple(data.get("inputs"), field_name="inputs"),
            outputs=_string_tuple(data.get("outputs"), field_name="outputs"),
            phony_inputs=_string_tuple(data.get("phony_inputs"), field_name="phony_inputs"),
            input_dependencies=_string_tuple(data.get("input_dependencies"), field_name="input_dependencies"),
            auxiliary_files=tuple(auxiliary_files),
            creates_product_structure=_flag(
                data.get("creates_product_structure"), field_name="creates_product_structure"
            ),
        )
