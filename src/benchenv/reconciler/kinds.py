"""
Adapters that know how to reconcile a single resource kind. Every kind shares the same create-or-update and delete
protocol, implemented once in `ResourceKind`; subclasses only declare where their objects live in the API and how to
tell whether they are ready.
"""

from collections.abc import Iterable
from dataclasses import dataclass
import time
from typing import Any, ClassVar, Literal

from kubernetes.dynamic.exceptions import NotFoundError
from loguru import logger

from benchenv.cluster import ClusterApi
from benchenv.config import RetrySettings
from benchenv.resources import ParsedResource
from benchenv.tools.types import Manifest
from .retry import Sleep, retry_on_conflict, retry_until_true

Action = Literal["created", "updated", "deleted"]


@dataclass
class UnsupportedVersionError(Exception):
    """
    Raised when a resource of a supported kind uses an `apiVersion` that is not supported for that kind.
    """

    resource: ParsedResource
    supported: Iterable[str]

    def __str__(self) -> str:
        return (
            f"unknown object version: {self.resource.api_version} kind:'{self.resource.kind}', "
            f"name:'{self.resource.name}' (supported: {', '.join(sorted(self.supported))})"
        )


@dataclass
class ReconcileError(Exception):
    """
    Raised when a request to the cluster failed for a resource. The original error is available as `__cause__`.
    """

    resource: ParsedResource
    message: str

    def __str__(self) -> str:
        message = f"{self.message} - kind: {self.resource.kind}, name: {self.resource.name}"
        if self.__cause__ is not None:
            message += f": {self.__cause__}"
        return message


class ResourceKind:
    """
    Base class for reconciling one kind of Kubernetes resource.

    Subclasses declare their kind, the `apiVersion`s they accept and whether the kind is namespaced as class keyword
    arguments, e.g.

        class ConfigMap(ResourceKind, kind="ConfigMap", api_versions=["v1"]): ...
    """

    KIND: ClassVar[str]
    API_VERSIONS: ClassVar[frozenset[str]]
    NAMESPACED: ClassVar[bool]

    WAIT_READY: ClassVar[bool] = False
    """ Whether to wait for `ready()` to return `True` after the resource was created or updated. """

    def __init_subclass__(cls, kind: str, api_versions: Iterable[str], namespaced: bool = True, **kwargs: Any) -> None:
        cls.KIND = kind
        cls.API_VERSIONS = frozenset(api_versions)
        cls.NAMESPACED = namespaced
        super().__init_subclass__(**kwargs)

    def __init__(self, api: ClusterApi, retry: RetrySettings | None = None, sleep: Sleep = time.sleep) -> None:
        self.api = api
        self.retry = retry or RetrySettings()
        self.sleep = sleep

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def namespace(self, resource: ParsedResource) -> str | None:
        """
        The namespace to address the resource in, or `None` if the kind is cluster-scoped.
        """

        return resource.namespace if self.NAMESPACED else None

    def check_version(self, resource: ParsedResource) -> None:
        if resource.api_version not in self.API_VERSIONS:
            raise UnsupportedVersionError(resource, self.API_VERSIONS)

    def exists(self, resource: ParsedResource) -> bool:
        """
        Check whether an object with the resource's name already exists.
        """

        items = self.api.list(resource.api_version, resource.kind, self.namespace(resource))
        return any((item.get("metadata") or {}).get("name") == resource.name for item in items)

    def apply(self, resource: ParsedResource) -> Action:
        """
        Create the resource, or update it if it already exists. If the kind has a readiness check, block until the
        resource is ready.

        Raises:
            UnsupportedVersionError: If the resource's `apiVersion` is not supported.
            ReconcileError: If a request to the cluster failed.
            PollTimeoutError: If the resource did not become ready in time.
        """

        self.check_version(resource)
        namespace = self.namespace(resource)
        body = resource.body(namespace)

        try:
            exists = self.exists(resource)
        except Exception as exc:
            raise ReconcileError(resource, "error listing resource") from exc

        action: Action
        if exists:
            try:
                retry_on_conflict(
                    lambda: self.api.update(resource.api_version, resource.kind, resource.name, body, namespace),
                    max_attempts=self.retry.conflict_attempts,
                    interval_seconds=self.retry.conflict_interval_seconds,
                    sleep=self.sleep,
                )
            except Exception as exc:
                raise ReconcileError(resource, "resource update failed") from exc
            action = "updated"
        else:
            try:
                self.api.create(resource.api_version, resource.kind, body, namespace)
            except Exception as exc:
                raise ReconcileError(resource, "resource creation failed") from exc
            action = "created"

        logger.info("resource {} - kind: {}, name: {}", action, resource.kind, resource.name)

        if self.WAIT_READY:
            retry_until_true(
                f"applying {resource.kind.lower()}:{resource.name}",
                self.retry.poll_attempts,
                lambda: self.ready(resource),
                interval_seconds=self.retry.poll_interval_seconds,
                sleep=self.sleep,
            )

        return action

    def delete(self, resource: ParsedResource) -> Action:
        """
        Delete the resource. Dependent objects are deleted first (foreground propagation).

        Raises:
            UnsupportedVersionError: If the resource's `apiVersion` is not supported.
            ReconcileError: If the delete request failed.
        """

        self.check_version(resource)
        try:
            self.api.delete(resource.api_version, resource.kind, resource.name, self.namespace(resource))
        except Exception as exc:
            raise ReconcileError(resource, "resource delete failed") from exc
        logger.info("resource deleted - kind: {}, name: {}", resource.kind, resource.name)
        return "deleted"

    def get(self, resource: ParsedResource) -> Manifest:
        return self.api.get(resource.api_version, resource.kind, resource.name, self.namespace(resource))

    def ready(self, resource: ParsedResource) -> bool:
        """
        Check whether the resource is ready. Kinds without a verifiable signal are always ready.
        """

        return True


class Namespace(ResourceKind, kind="Namespace", api_versions=["v1"], namespaced=False):
    def delete(self, resource: ParsedResource) -> Action:
        """
        Delete the namespace and block until it is gone. Namespaces are deleted asynchronously, and resources that are
        applied afterwards may depend on the namespace no longer existing.
        """

        self.check_version(resource)
        try:
            self.api.delete(resource.api_version, resource.kind, resource.name, None)
        except Exception as exc:
            raise ReconcileError(resource, "resource delete failed") from exc
        logger.info("resource deleting - kind: {}, name: {}", resource.kind, resource.name)

        retry_until_true(
            f"deleting namespace:{resource.name}",
            self.retry.deletion_attempts,
            lambda: self.deleted(resource),
            interval_seconds=self.retry.poll_interval_seconds,
            sleep=self.sleep,
        )
        return "deleted"

    def deleted(self, resource: ParsedResource) -> bool:
        try:
            self.get(resource)
        except NotFoundError:
            return True
        return False


class Deployment(ResourceKind, kind="Deployment", api_versions=["apps/v1"]):
    WAIT_READY = True

    @staticmethod
    def is_ready(desired: Manifest, observed: Manifest) -> bool:
        """
        A deployment is ready when the number of available replicas equals the desired number of replicas, which
        defaults to 1.
        """

        replicas = (desired.get("spec") or {}).get("replicas")
        if replicas is None:
            replicas = 1
        available = (observed.get("status") or {}).get("availableReplicas") or 0
        return bool(available == replicas)

    def ready(self, resource: ParsedResource) -> bool:
        return self.is_ready(resource.manifest, self.get(resource))


class DaemonSet(ResourceKind, kind="DaemonSet", api_versions=["apps/v1"]):
    WAIT_READY = True

    @staticmethod
    def is_ready(observed: Manifest) -> bool:
        """
        A daemon set is ready when no node reports an unavailable pod.
        """

        return ((observed.get("status") or {}).get("numberUnavailable") or 0) == 0

    def ready(self, resource: ParsedResource) -> bool:
        return self.is_ready(self.get(resource))


class Service(ResourceKind, kind="Service", api_versions=["v1"]):
    WAIT_READY = True

    def ready(self, resource: ParsedResource) -> bool:
        """
        A `LoadBalancer` service is ready once an external address was assigned to it. For any other type of service
        there is no way of checking, so it is assumed to be ready.
        """

        observed = self.get(resource)
        spec = observed.get("spec") or {}
        if spec.get("type") != "LoadBalancer":
            return True

        ingress = ((observed.get("status") or {}).get("loadBalancer") or {}).get("ingress") or []
        if not ingress:
            return False

        ports = spec.get("ports") or [{}]
        logger.info("Service {} details", resource.name)
        for address in ingress:
            logger.info("  http://{}:{}", address.get("ip") or address.get("hostname"), ports[0].get("port"))
        return True


class ServiceAccount(ResourceKind, kind="ServiceAccount", api_versions=["v1"]):
    pass


class ConfigMap(ResourceKind, kind="ConfigMap", api_versions=["v1"]):
    pass


class Secret(ResourceKind, kind="Secret", api_versions=["v1"]):
    pass


class PersistentVolumeClaim(ResourceKind, kind="PersistentVolumeClaim", api_versions=["v1"]):
    pass


class Role(ResourceKind, kind="Role", api_versions=["rbac.authorization.k8s.io/v1"]):
    pass


class RoleBinding(ResourceKind, kind="RoleBinding", api_versions=["rbac.authorization.k8s.io/v1"]):
    pass


class ClusterRole(ResourceKind, kind="ClusterRole", api_versions=["rbac.authorization.k8s.io/v1"], namespaced=False):
    pass


class ClusterRoleBinding(
    ResourceKind, kind="ClusterRoleBinding", api_versions=["rbac.authorization.k8s.io/v1"], namespaced=False
):
    pass


class Ingress(
    ResourceKind,
    kind="Ingress",
    api_versions=["networking.k8s.io/v1", "networking.k8s.io/v1beta1", "extensions/v1beta1"],
):
    pass


class CustomResourceDefinition(
    ResourceKind,
    kind="CustomResourceDefinition",
    api_versions=["apiextensions.k8s.io/v1", "apiextensions.k8s.io/v1beta1"],
    namespaced=False,
):
    pass


ALL_KINDS: list[type[ResourceKind]] = [
    Namespace,
    Deployment,
    DaemonSet,
    Service,
    ServiceAccount,
    ConfigMap,
    Secret,
    PersistentVolumeClaim,
    Role,
    RoleBinding,
    ClusterRole,
    ClusterRoleBinding,
    Ingress,
    CustomResourceDefinition,
]
""" Every kind that can be reconciled. """
