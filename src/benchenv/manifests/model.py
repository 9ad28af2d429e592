from dataclasses import dataclass, field
from pathlib import Path
import textwrap

from benchenv.resources import ParsedResource


@dataclass(frozen=True)
class ManifestFile:
    """
    A manifest file as it was read from disk, before any variables are substituted.
    """

    path: Path
    raw_template: bytes = field(repr=False)


@dataclass(frozen=True)
class RenderedDocument:
    """
    The content of a manifest file after variable substitution. May contain multiple resource documents.
    """

    source_file: Path
    content: bytes = field(repr=False)


@dataclass
class ResourceBatch:
    """
    The resources decoded from a single manifest file, in document order.
    """

    file: Path
    resources: list[ParsedResource] = field(default_factory=list)


@dataclass
class ManifestError(Exception):
    """
    Represents an error that occurred while reading, rendering or decoding a manifest file. Errors of this kind abort
    the processing of the whole file.
    """

    file: Path
    message: str

    def __str__(self) -> str:
        if "\n" in self.message:
            message = "\n\n" + textwrap.indent(self.message, "  ")
        else:
            message = f"{self.message}"
        return f"Error processing manifest file '{self.file}': {message}"


@dataclass
class TemplateRenderError(ManifestError):
    """
    Raised when a manifest template can not be rendered, e.g. due to a syntax error or a variable that has no value.
    """


@dataclass
class ManifestDecodeError(ManifestError):
    """
    Raised when a document in a rendered manifest file can not be decoded into a resource.
    """

    section: str = ""
    """ The offending document. Only the beginning of it is included in the error message. """

    def __str__(self) -> str:
        return f"{super().__str__()} (section: {self.section[:100]!r}...)"
