"""
The boundary between the reconciler and the Kubernetes API. The reconciler only ever talks to a `ClusterApi`, which
makes it easy to substitute the cluster in tests.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from loguru import logger

from benchenv.tools.types import Manifest, Manifests

PROPAGATION_FOREGROUND = "Foreground"
""" Delete propagation policy that removes dependent objects before the owner is deleted. """


class ClusterApi(ABC):
    """
    Minimal interface to a Kubernetes cluster. Resources are addressed by their `apiVersion` and `kind`, and by their
    namespace if they are namespaced (pass `None` for cluster-scoped resources).

    Implementations raise `kubernetes.dynamic.exceptions.NotFoundError` if an object does not exist and
    `kubernetes.dynamic.exceptions.ConflictError` if an update was rejected because the object was modified
    concurrently. Any other exception is considered fatal for the resource at hand.
    """

    @abstractmethod
    def list(self, api_version: str, kind: str, namespace: str | None) -> Manifests:
        """List all objects of the given kind."""

    @abstractmethod
    def get(self, api_version: str, kind: str, name: str, namespace: str | None) -> Manifest:
        """Get an object by name."""

    @abstractmethod
    def create(self, api_version: str, kind: str, body: Manifest, namespace: str | None) -> Manifest:
        """Create a new object."""

    @abstractmethod
    def update(self, api_version: str, kind: str, name: str, body: Manifest, namespace: str | None) -> Manifest:
        """Replace an existing object."""

    @abstractmethod
    def delete(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str | None,
        propagation_policy: str = PROPAGATION_FOREGROUND,
    ) -> None:
        """Delete an object by name."""


class KubernetesClusterApi(ClusterApi):
    """
    Implements the `ClusterApi` with the dynamic client of the official Kubernetes Python client.
    """

    def __init__(self, client: Any) -> None:
        """
        Args:
            client: A `kubernetes.dynamic.DynamicClient`.
        """

        self._client = client

    def _resource(self, api_version: str, kind: str) -> Any:
        return self._client.resources.get(api_version=api_version, kind=kind)

    def list(self, api_version: str, kind: str, namespace: str | None) -> Manifests:
        result = self._client.get(self._resource(api_version, kind), namespace=namespace).to_dict()
        return Manifests([Manifest(item) for item in result.get("items") or []])

    def get(self, api_version: str, kind: str, name: str, namespace: str | None) -> Manifest:
        result = self._client.get(self._resource(api_version, kind), name=name, namespace=namespace)
        return Manifest(result.to_dict())

    def create(self, api_version: str, kind: str, body: Manifest, namespace: str | None) -> Manifest:
        result = self._client.create(self._resource(api_version, kind), body=body, namespace=namespace)
        return Manifest(result.to_dict())

    def update(self, api_version: str, kind: str, name: str, body: Manifest, namespace: str | None) -> Manifest:
        result = self._client.replace(self._resource(api_version, kind), body=body, name=name, namespace=namespace)
        return Manifest(result.to_dict())

    def delete(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str | None,
        propagation_policy: str = PROPAGATION_FOREGROUND,
    ) -> None:
        self._client.delete(
            self._resource(api_version, kind),
            name=name,
            namespace=namespace,
            body={"apiVersion": "v1", "kind": "DeleteOptions", "propagationPolicy": propagation_policy},
        )


def connect(in_cluster: bool = False, kubeconfig: Path | None = None, context: str | None = None) -> ClusterApi:
    """
    Load the Kubernetes client configuration and return a `ClusterApi` for the cluster.

    Args:
        in_cluster: Use the service account of the pod this process runs in. The other arguments are ignored.
        kubeconfig: The kubeconfig file to use. If not set, the default kubeconfig is used.
        context: The kubeconfig context to use. If not set, the current context is used.
    """

    from kubernetes.client.api_client import ApiClient
    from kubernetes.config.incluster_config import load_incluster_config
    from kubernetes.config.kube_config import load_kube_config
    from kubernetes.dynamic import DynamicClient

    if in_cluster:
        logger.info("Using in-cluster configuration.")
        load_incluster_config()
    else:
        logger.info("Using kubeconfig '{}' (context: {}).", kubeconfig or "default", context or "current")
        load_kube_config(config_file=str(kubeconfig) if kubeconfig else None, context=context)

    return KubernetesClusterApi(DynamicClient(ApiClient()))
