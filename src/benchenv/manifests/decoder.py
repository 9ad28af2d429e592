import re
from typing import Any

from databind.core import ConversionError
from loguru import logger
import yaml

from benchenv.resources import ParsedResource
from benchenv.tools.types import Manifest
from .model import ManifestDecodeError, RenderedDocument, ResourceBatch

SEPARATOR = "---"
""" A line consisting of this string separates the resource documents in a manifest file. """

_SEPARATOR_RE = re.compile(rf"^{re.escape(SEPARATOR)}[ \t\r]*$", re.MULTILINE)


def split_documents(content: str) -> list[str]:
    """
    Split *content* on separator lines. Sections are stripped of surrounding whitespace and empty sections are
    dropped.
    """

    return [section for section in (s.strip() for s in _SEPARATOR_RE.split(content)) if section]


def decode(document: RenderedDocument) -> ResourceBatch:
    """
    Decode the resources contained in a rendered manifest file.

    Well-formed resources of any kind are decoded; whether a kind is supported is only decided when the resource is
    reconciled. A document that is empty or only contains comments is skipped.

    Raises:
        ManifestDecodeError: If any of the documents is not valid YAML or does not describe a Kubernetes resource.
            No resources are returned for the file in that case.
    """

    file = document.source_file
    try:
        content = document.content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestDecodeError(file, f"File is not valid UTF-8: {exc}") from exc

    batch = ResourceBatch(file)
    for section in split_documents(content):
        try:
            data: Any = yaml.safe_load(section)
        except yaml.YAMLError as exc:
            raise ManifestDecodeError(file, f"Document is not valid YAML: {exc}", section) from exc

        if data is None:
            continue
        if not isinstance(data, dict):
            raise ManifestDecodeError(
                file, f"Expected a mapping at the top-level of the document, got {type(data).__name__}", section
            )

        try:
            resource = ParsedResource.load(Manifest(data), filename=str(file))
        except (ValueError, ConversionError) as exc:
            raise ManifestDecodeError(file, f"Document is not a valid resource: {exc}", section) from exc

        batch.resources.append(resource)

    logger.debug("Decoded {} resource(s) from '{}'", len(batch.resources), file)
    return batch


def decode_all(documents: list[RenderedDocument]) -> list[ResourceBatch]:
    """
    Decode all *documents*, preserving their order. Stops at the first file that fails to decode.
    """

    return [decode(document) for document in documents]
