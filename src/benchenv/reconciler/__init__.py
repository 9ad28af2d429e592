"""
This package reconciles decoded resources against a cluster. See `Reconciler` for the entrypoint.
"""

from .dispatch import Reconciler, ResourceOutcome, UnsupportedKindError
from .kinds import ALL_KINDS, Action, ReconcileError, ResourceKind, UnsupportedVersionError
from .retry import PollTimeoutError, retry_on_conflict, retry_until_true

__all__ = [
    "ALL_KINDS",
    "Action",
    "PollTimeoutError",
    "ReconcileError",
    "Reconciler",
    "ResourceKind",
    "ResourceOutcome",
    "UnsupportedKindError",
    "UnsupportedVersionError",
    "retry_on_conflict",
    "retry_until_true",
]
