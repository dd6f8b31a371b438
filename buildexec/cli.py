"""Command line interface for the build executor."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List
import sys

import yaml

from .config import ExecutorConfig, load_config
from .console import Console
from .errors import CycleDetectedError, EnvironmentCreationError
from .executor import PhaseEnvironment, SimpleExecutor
from .formatter import DefaultFormatter
from .graph import DirectedGraph
from .manifest import BuildManifest, Target
from .sorting import sort_invocations


def _load_inputs(args: Namespace, workspace: Path) -> tuple[ExecutorConfig, BuildManifest]:
    config = load_config(workspace, getattr(args, "config", None))
    manifest_path = Path(args.manifest)
    if not manifest_path.is_absolute():
        manifest_path = workspace / manifest_path
    if not manifest_path.is_file():
        raise FileNotFoundError(f"Manifest not found: {manifest_path}")
    return config, BuildManifest.from_path(manifest_path)


def _select_targets(manifest: BuildManifest, names: Iterable[str]) -> DirectedGraph[Target]:
    graph = manifest.target_graph()
    requested = _collect_names(names)
    if not requested:
        return graph
    return graph.subgraph(manifest.target(name) for name in requested)


def _collect_names(values: Iterable[str]) -> List[str]:
    names: List[str] = []
    for value in values:
        if not value:
            continue
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return names


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="buildexec", description="Ordered execution of build invocations")
    parser.add_argument(
        "-c",
        "--config",
        dest="config",
        metavar="PATH",
        help="Configuration file (defaults to $BUILDEXEC_CONFIG or ./config/config.toml)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=list(Console.LEVELS),
        help="Diagnostic output level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Build the targets described by a manifest")
    build_parser.add_argument("manifest", help="Path to the build manifest (TOML, JSON or YAML)")
    build_parser.add_argument("-n", "--dry-run", action="store_true", help="Report actions without touching the filesystem or running tools")
    build_parser.add_argument(
        "-t",
        "--target",
        dest="targets",
        action="append",
        default=[],
        metavar="NAME",
        help="Build only these targets and their dependencies (repeat or comma-separate)",
    )
    build_parser.add_argument("-v", "--verbose", action="store_true", help="Print full command lines")

    order_parser = subparsers.add_parser("order", help="Print the target and invocation order without building")
    order_parser.add_argument("manifest", help="Path to the build manifest (TOML, JSON or YAML)")
    order_parser.add_argument(
        "-t",
        "--target",
        dest="targets",
        action="append",
        default=[],
        metavar="NAME",
        help="Only show these targets and their dependencies",
    )

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    workspace = Path.cwd()

    if args.command == "build":
        return _handle_build(args, workspace)
    if args.command == "order":
        return _handle_order(args, workspace)
    raise ValueError(f"Unknown command: {args.command}")


def _handle_build(args: Namespace, workspace: Path) -> int:
    try:
        config, manifest = _load_inputs(args, workspace)
        graph = _select_targets(manifest, getattr(args, "targets", []))
    except (FileNotFoundError, TypeError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: {exc}")
        return 2

    config = config.with_overrides(
        dry_run=True if getattr(args, "dry_run", False) else None,
        verbose=True if getattr(args, "verbose", False) else None,
        log_level=getattr(args, "log_level", None),
    )
    console = Console(level=config.log_level, dry_run=config.dry_run)
    formatter = DefaultFormatter(verbose=config.verbose)
    executor = SimpleExecutor.create(
        formatter,
        config.dry_run,
        console=console,
        inherit_environment=config.inherit_environment,
    )

    result = executor.build(manifest.build_environment(), manifest.context(), graph)
    return 0 if result else 1


def _handle_order(args: Namespace, workspace: Path) -> int:
    try:
        _, manifest = _load_inputs(args, workspace)
        graph = _select_targets(manifest, getattr(args, "targets", []))
    except (FileNotFoundError, TypeError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: {exc}")
        return 2

    try:
        targets = graph.ordered()
    except CycleDetectedError as exc:
        print(f"Error: {exc}")
        return 1

    build_environment = manifest.build_environment()
    context = manifest.context()
    for target in targets:
        print(target.name)
        try:
            target_environment = context.target_environment(build_environment, target)
        except EnvironmentCreationError as exc:
            print(f"  (skipped: {exc})")
            continue

        phase_environment = PhaseEnvironment(
            build_environment=build_environment,
            build_context=context,
            target=target,
            target_environment=target_environment,
        )
        try:
            ordered = sort_invocations(context.derive(phase_environment, target))
        except CycleDetectedError as exc:
            print(f"Error: {exc}")
            return 1

        for index, invocation in enumerate(ordered, start=1):
            phase = " [structure]" if invocation.creates_product_structure else ""
            print(f"  {index}. {invocation}{phase}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
