from collections.abc import Callable
from copy import deepcopy
from pathlib import Path
from typing import Any

from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ConflictError, DynamicApiError, NotFoundError
import pytest

from benchenv.cluster import PROPAGATION_FOREGROUND, ClusterApi
from benchenv.config import RetrySettings
from benchenv.manifests import ResourceBatch
from benchenv.reconciler import Reconciler
from benchenv.resources import ParsedResource
from benchenv.tools.types import Manifest, Manifests

Key = tuple[str, str | None, str]


def api_error(cls: type[DynamicApiError], status: int, reason: str) -> DynamicApiError:
    return cls(ApiException(status=status, reason=reason))


class InMemoryClusterApi(ClusterApi):
    """
    A `ClusterApi` that keeps objects in memory and records every call made to it.
    """

    def __init__(self) -> None:
        self.objects: dict[Key, Manifest] = {}
        self.calls: list[tuple[str, str, str | None, str | None]] = []
        self.propagation_policies: list[str] = []
        self._errors: dict[tuple[str, str, str | None], list[Exception]] = {}
        self._statuses: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self._lingering: dict[Key, tuple[Manifest, int]] = {}

    # Test helpers

    def fail(self, operation: str, kind: str, name: str | None, *errors: Exception) -> None:
        """Let the next calls of *operation* for the object raise the given errors, one per call."""

        self._errors.setdefault((operation, kind, name), []).extend(errors)

    def observe(self, kind: str, name: str, *statuses: dict[str, Any]) -> None:
        """Let the next `get()` calls for the object report the given statuses. The last status sticks."""

        self._statuses[(kind, name)] = list(statuses)

    def linger(self, kind: str, name: str, gets: int) -> None:
        """Keep the object visible to `get()` for the given number of calls after it was deleted."""

        for key, obj in self.objects.items():
            if key[0] == kind and key[2] == name:
                self._lingering[key] = (obj, gets)

    def names(self, kind: str) -> list[str]:
        return [key[2] for key in self.objects if key[0] == kind]

    def _check(self, operation: str, kind: str, name: str | None) -> None:
        errors = self._errors.get((operation, kind, name))
        if errors:
            raise errors.pop(0)

    # ClusterApi

    def list(self, api_version: str, kind: str, namespace: str | None) -> Manifests:
        self.calls.append(("list", kind, namespace, None))
        self._check("list", kind, None)
        return Manifests(
            [deepcopy(obj) for (k, ns, _), obj in self.objects.items() if k == kind and ns == namespace]
        )

    def get(self, api_version: str, kind: str, name: str, namespace: str | None) -> Manifest:
        self.calls.append(("get", kind, namespace, name))
        self._check("get", kind, name)
        key = (kind, namespace, name)

        if key not in self.objects:
            lingering, remaining = self._lingering.get(key, (None, 0))
            if lingering is None or remaining <= 0:
                raise api_error(NotFoundError, 404, "Not Found")
            self._lingering[key] = (lingering, remaining - 1)
            return deepcopy(lingering)

        obj = deepcopy(self.objects[key])
        statuses = self._statuses.get((kind, name))
        if statuses:
            obj["status"] = statuses.pop(0) if len(statuses) > 1 else statuses[0]
        return obj

    def create(self, api_version: str, kind: str, body: Manifest, namespace: str | None) -> Manifest:
        name = body["metadata"]["name"]
        self.calls.append(("create", kind, namespace, name))
        self._check("create", kind, name)
        key = (kind, namespace, name)
        if key in self.objects:
            raise api_error(ConflictError, 409, "AlreadyExists")
        self.objects[key] = deepcopy(body)
        return deepcopy(body)

    def update(self, api_version: str, kind: str, name: str, body: Manifest, namespace: str | None) -> Manifest:
        self.calls.append(("update", kind, namespace, name))
        self._check("update", kind, name)
        key = (kind, namespace, name)
        if key not in self.objects:
            raise api_error(NotFoundError, 404, "Not Found")
        self.objects[key] = deepcopy(body)
        return deepcopy(body)

    def delete(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str | None,
        propagation_policy: str = PROPAGATION_FOREGROUND,
    ) -> None:
        self.calls.append(("delete", kind, namespace, name))
        self.propagation_policies.append(propagation_policy)
        self._check("delete", kind, name)
        key = (kind, namespace, name)
        if key not in self.objects:
            raise api_error(NotFoundError, 404, "Not Found")
        del self.objects[key]


@pytest.fixture
def cluster() -> InMemoryClusterApi:
    return InMemoryClusterApi()


@pytest.fixture
def retry() -> RetrySettings:
    return RetrySettings(poll_interval_seconds=5, poll_attempts=3, conflict_attempts=3, conflict_interval_seconds=0.5)


@pytest.fixture
def sleeps() -> list[float]:
    """Records the delays that the code under test would have slept for."""

    return []


@pytest.fixture
def reconciler(cluster: InMemoryClusterApi, retry: RetrySettings, sleeps: list[float]) -> Reconciler:
    return Reconciler.default(cluster, retry, sleep=sleeps.append)


@pytest.fixture
def make_resource() -> Callable[..., ParsedResource]:
    def _make(
        kind: str, name: str, api_version: str = "v1", namespace: str | None = None, **extra: Any
    ) -> ParsedResource:
        metadata: dict[str, Any] = {"name": name}
        if namespace is not None:
            metadata["namespace"] = namespace
        return ParsedResource.load(Manifest({"apiVersion": api_version, "kind": kind, "metadata": metadata, **extra}))

    return _make


@pytest.fixture
def make_batch() -> Callable[..., ResourceBatch]:
    def _make(*resources: ParsedResource, file: str = "manifest.yaml") -> ResourceBatch:
        return ResourceBatch(Path(file), list(resources))

    return _make
