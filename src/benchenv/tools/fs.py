from collections.abc import Iterable, Iterator
from typing import Literal, overload
from pathlib import Path

MANIFEST_SUFFIXES = frozenset({".yaml", ".yml"})
""" File extensions that are picked up when a directory of manifests is expanded. """


@overload
def find_config_file(filename: str, cwd: Path | None = None, required: Literal[False] = False) -> Path | None: ...


@overload
def find_config_file(filename: str, cwd: Path | None = None, required: Literal[True] = True) -> Path: ...


def find_config_file(filename: str, cwd: Path | None = None, required: bool = True) -> Path | None:
    """
    Find a file with the given *filename* in the given *cwd* or any of its parent directories.
    """

    if cwd is None:
        cwd = Path.cwd()

    for directory in [cwd] + list(cwd.parents):
        file = directory / filename
        if file.exists():
            return file

    if required:
        raise FileNotFoundError(f"Could not find '{filename}' in '{cwd}' or any of its parent directories.")

    return None


def walk_files(directory: Path) -> Iterator[Path]:
    """
    Recursively yield all files below *directory*. Entries of every directory are visited in lexical order and
    subdirectories are descended into at the position where they sort, so the result is stable across runs. Symlinks
    to directories are not followed.
    """

    for item in sorted(directory.iterdir(), key=lambda p: p.name):
        if item.is_symlink() and item.is_dir():
            continue
        if item.is_dir():
            yield from walk_files(item)
        elif item.is_file():
            yield item


def expand_manifest_paths(paths: Iterable[Path]) -> list[Path]:
    """
    Expand a list of files and directories into a flat list of manifest files.

    Directories are walked recursively and only `.yaml` and `.yml` files are kept. Any other path is kept as-is,
    regardless of its extension (and regardless of whether it exists; reading it is left to the caller).
    """

    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(item for item in walk_files(path) if item.suffix in MANIFEST_SUFFIXES)
        else:
            files.append(path)
    return files
