"""
Typed representation of the Kubernetes resources that are read from manifest files.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from databind.core.settings import ExtraKeys
from databind.json import load as deser

from benchenv.tools.types import Manifest

DEFAULT_NAMESPACE = "default"
""" The namespace that namespaced resources are placed in if their manifest does not specify one. """


@ExtraKeys()
@dataclass
class ObjectMetadata:
    """
    Kubernetes object metadata. Fields that are not modelled here (e.g. `uid` or `finalizers`) are accepted and
    stay untouched in the manifest.
    """

    name: str
    namespace: str | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None


@dataclass(frozen=True)
class ParsedResource:
    """
    A single resource that was decoded from a manifest document.
    """

    api_version: str
    """ The `apiVersion` of the resource, e.g. `v1` or `apps/v1`. """

    kind: str
    """ The `kind` of the resource as written in the manifest, e.g. `Deployment`. """

    metadata: ObjectMetadata
    """ The decoded `metadata` block. """

    manifest: Manifest = field(repr=False, compare=False)
    """ The full manifest as it is submitted to the cluster. """

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        """
        The namespace of the resource, or `default` if the manifest does not specify one. Cluster-scoped resources
        ignore this value.
        """

        return self.metadata.namespace or DEFAULT_NAMESPACE

    @property
    def version(self) -> str:
        """
        The version part of the `apiVersion`, e.g. `v1` for `apps/v1`.
        """

        return self.api_version.rpartition("/")[2]

    @property
    def group(self) -> str:
        """
        The API group part of the `apiVersion`. Empty for the core group.
        """

        return self.api_version.rpartition("/")[0]

    @property
    def spec(self) -> dict[str, Any]:
        return self.manifest.get("spec") or {}

    def body(self, namespace: str | None = None) -> Manifest:
        """
        Return a copy of the manifest to submit to the cluster. If *namespace* is given, it is written into the
        copy's `metadata.namespace`.
        """

        body = Manifest(deepcopy(dict(self.manifest)))
        if namespace is not None:
            body.setdefault("metadata", {})["namespace"] = namespace
        return body

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}"

    @staticmethod
    def load(manifest: Manifest, filename: str | None = None) -> "ParsedResource":
        """
        Decode a manifest into a `ParsedResource`.

        Raises:
            ValueError: If the `apiVersion` or `kind` is missing or not a string, or if `metadata` is not a mapping.
            databind.core.ConversionError: If the `metadata` block can not be decoded (e.g. it has no `name`).
        """

        for key in ("apiVersion", "kind"):
            value = manifest.get(key)
            if not isinstance(value, str) or not value:
                raise ValueError(f"Missing or invalid {key!r} field")

        metadata = manifest.get("metadata")
        if not isinstance(metadata, dict):
            raise ValueError("Missing or invalid 'metadata' field")

        return ParsedResource(
            api_version=manifest["apiVersion"],
            kind=manifest["kind"],
            metadata=deser(metadata, ObjectMetadata, filename=filename),
            manifest=manifest,
        )
