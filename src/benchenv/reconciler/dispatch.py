from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
import time

from loguru import logger

from benchenv.cluster import ClusterApi
from benchenv.config import RetrySettings
from benchenv.manifests import ResourceBatch
from benchenv.resources import ParsedResource
from .kinds import ALL_KINDS, Action, ResourceKind
from .retry import Sleep


@dataclass
class UnsupportedKindError(Exception):
    """
    Raised for a resource whose kind has no `ResourceKind` adapter.
    """

    resource: ParsedResource
    operation: str

    def __str__(self) -> str:
        return f"{self.operation} request for unimplemented resource type: {self.resource.kind.lower()}"


@dataclass
class ResourceOutcome:
    """
    The result of reconciling a single resource.
    """

    file: Path
    kind: str
    namespace: str | None
    """ The namespace the resource was addressed in. `None` for cluster-scoped kinds. """

    name: str
    action: Action | None = None
    """ What was done to the resource. `None` if reconciling it failed. """

    error: Exception | None = None
    """ The error that occurred while reconciling the resource, if any. """

    @property
    def ok(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        status = self.action if self.error is None else f"failed: {self.error}"
        return f"{self.kind}/{self.name} ({self.file}): {status}"


@dataclass
class Reconciler:
    """
    Dispatches resources to the `ResourceKind` adapter of their kind.

    Resources are processed strictly one after another: batches in the order given and resources within a batch in
    document order. A resource that fails does not stop the run. Instead, every resource yields a `ResourceOutcome` and
    it is up to the caller to decide whether a partial failure is a failure of the whole run.
    """

    kinds: dict[str, ResourceKind] = field(default_factory=dict)
    """ Adapters to dispatch to, keyed by the lowercase kind name. """

    @staticmethod
    def default(api: ClusterApi, retry: RetrySettings | None = None, sleep: Sleep = time.sleep) -> "Reconciler":
        """
        Create a new Reconciler that supports every kind in `ALL_KINDS`.

        Args:
            api: The cluster to reconcile resources against.
            retry: Timing of readiness polling and conflict retries.
            sleep: The function used to wait between retries.
        """

        retry = retry or RetrySettings()
        return Reconciler(kinds={kind.KIND.lower(): kind(api, retry, sleep) for kind in ALL_KINDS})

    def apply(self, batches: Iterable[ResourceBatch]) -> list[ResourceOutcome]:
        """
        Create or update all resources in the given batches.
        """

        return self._run(batches, "creating", lambda kind, resource: kind.apply(resource))

    def delete(self, batches: Iterable[ResourceBatch]) -> list[ResourceOutcome]:
        """
        Delete all resources in the given batches.
        """

        return self._run(batches, "deleting", lambda kind, resource: kind.delete(resource))

    def _run(
        self,
        batches: Iterable[ResourceBatch],
        operation: str,
        handler: Callable[[ResourceKind, ParsedResource], Action],
    ) -> list[ResourceOutcome]:
        outcomes = []
        for batch in batches:
            logger.debug("Processing {} resource(s) from '{}'", len(batch.resources), batch.file)
            for resource in batch.resources:
                outcome = ResourceOutcome(batch.file, resource.kind, resource.namespace, resource.name)
                try:
                    kind = self.kinds.get(resource.kind.lower())
                    if kind is None:
                        raise UnsupportedKindError(resource, operation)
                    outcome.namespace = kind.namespace(resource)
                    outcome.action = handler(kind, resource)
                except Exception as exc:
                    logger.error(
                        "error {} resource (kind: {}, name: {}) from '{}': {}",
                        operation,
                        resource.kind,
                        resource.name,
                        batch.file,
                        exc,
                    )
                    outcome.error = exc
                outcomes.append(outcome)

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        if failed:
            logger.warning("{} of {} resource(s) failed", failed, len(outcomes))
        return outcomes
