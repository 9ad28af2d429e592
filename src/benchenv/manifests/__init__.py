"""
This package turns manifest files into resources that can be reconciled against a cluster. Loading happens in three
steps, each of which is available on its own:

1. `collect()` expands files and directories into a list of manifest files and reads them.
2. `render()` substitutes variables into the manifest templates.
3. `decode_all()` splits the rendered files into documents and decodes every document into a `ParsedResource`.

Any error in one of these steps is fatal for the file it occurs in and is raised as a `ManifestError`.
"""

from collections.abc import Iterable, Mapping
from pathlib import Path

from loguru import logger

from .collector import collect
from .decoder import SEPARATOR, decode, decode_all, split_documents
from .model import (
    ManifestDecodeError,
    ManifestError,
    ManifestFile,
    RenderedDocument,
    ResourceBatch,
    TemplateRenderError,
)
from .templating import ManifestTemplater, normalize, render

__all__ = [
    "SEPARATOR",
    "ManifestDecodeError",
    "ManifestError",
    "ManifestFile",
    "ManifestTemplater",
    "RenderedDocument",
    "ResourceBatch",
    "TemplateRenderError",
    "collect",
    "decode",
    "decode_all",
    "load_batches",
    "normalize",
    "render",
    "split_documents",
]


def load_batches(paths: Iterable[Path | str], bindings: Mapping[str, str]) -> list[ResourceBatch]:
    """
    Collect, render and decode the manifests at *paths*. All files are fully processed before this function returns,
    so an invalid file is reported before any resource is sent to the cluster.
    """

    files = collect(paths)
    logger.info("Loading {} manifest file(s)", len(files))
    return decode_all(render(files, bindings))
