from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from benchenv.tools.fs import expand_manifest_paths
from .model import ManifestError, ManifestFile


def collect(paths: Iterable[Path | str]) -> list[ManifestFile]:
    """
    Expand the given files and directories into a list of manifest files and read their contents.

    Directories are walked recursively in lexical order and only `*.yaml` and `*.yml` files are kept. Files given
    explicitly are kept regardless of their extension. The order of the result follows the order of *paths*.

    Raises:
        ManifestError: If a file can not be read.
    """

    files = expand_manifest_paths(Path(path) for path in paths)
    logger.trace("Manifest files to load: {}", files)

    result = []
    for file in files:
        try:
            content = file.read_bytes()
        except OSError as exc:
            raise ManifestError(file, f"Could not read file: {exc}") from exc
        result.append(ManifestFile(file, content))

    return result
