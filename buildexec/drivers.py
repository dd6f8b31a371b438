"""Builtin drivers shipped with the default registry."""
from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Sequence
import shutil
import sys

from .tools import Driver


class CopyDriver(Driver):
    """``builtin-copy [-v] [-exclude NAME]... [-resolve-src-symlinks] SOURCE... DEST_DIR``

    Copies each source file or directory into the destination directory.
    """

    name = "builtin-copy"

    def run(self, arguments: Sequence[str], environment: Mapping[str, str], working_directory: str) -> int:
        verbose = False
        resolve_symlinks = False
        excludes: List[str] = []
        paths: List[str] = []

        args = list(arguments)
        index = 0
        while index < len(args):
            arg = args[index]
            if arg == "-v":
                verbose = True
            elif arg == "-resolve-src-symlinks":
                resolve_symlinks = True
            elif arg == "-exclude":
                index += 1
                if index >= len(args):
                    print("error: -exclude requires an argument", file=sys.stderr)
                    return 1
                excludes.append(args[index])
            elif arg == "--":
                paths.extend(args[index + 1:])
                break
            elif arg.startswith("-"):
                print(f"error: unknown argument '{arg}'", file=sys.stderr)
                return 1
            else:
                paths.append(arg)
            index += 1

        if len(paths) < 2:
            print("error: builtin-copy requires at least one source and a destination", file=sys.stderr)
            return 1

        base = Path(working_directory) if working_directory else Path.cwd()
        destination = base / paths[-1]
        ignore = shutil.ignore_patterns(*excludes) if excludes else None

        try:
            destination.mkdir(parents=True, exist_ok=True)
            for raw in paths[:-1]:
                source = base / raw
                if resolve_symlinks:
                    source = source.resolve()
                target = destination / source.name
                if verbose:
                    print(f"copy {source} -> {target}")
                if source.is_dir() and not source.is_symlink():
                    shutil.copytree(source, target, symlinks=not resolve_symlinks, ignore=ignore, dirs_exist_ok=True)
                else:
                    if target.is_dir() and not target.is_symlink():
                        shutil.rmtree(target)
                    shutil.copy2(source, target, follow_symlinks=resolve_symlinks)
        except OSError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        return 0


DEFAULT_DRIVERS = (CopyDriver,)
