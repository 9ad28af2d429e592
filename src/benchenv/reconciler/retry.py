from collections.abc import Callable
from dataclasses import dataclass
import time
from typing import TypeVar

from kubernetes.dynamic.exceptions import ConflictError
from loguru import logger

T = TypeVar("T")
Sleep = Callable[[float], None]


@dataclass
class PollTimeoutError(Exception):
    """
    Raised when a condition did not become true within the allowed number of attempts.
    """

    description: str
    attempts: int

    def __str__(self) -> str:
        return f"Request for '{self.description}' hasn't completed after retrying {self.attempts} times"


def retry_until_true(
    description: str,
    max_attempts: int,
    predicate: Callable[[], bool],
    interval_seconds: float = 10.0,
    sleep: Sleep = time.sleep,
) -> None:
    """
    Call *predicate* until it returns `True`, waiting a fixed *interval_seconds* between two calls.

    An exception raised by the *predicate* is not retried and propagates immediately.

    Raises:
        PollTimeoutError: If the predicate did not return `True` within *max_attempts* calls.
    """

    for attempt in range(1, max_attempts + 1):
        if predicate():
            logger.info("Request for '{}' is done!", description)
            return
        if attempt < max_attempts:
            logger.info("Request for '{}' is in progress. Checking in {}s", description, interval_seconds)
            sleep(interval_seconds)

    raise PollTimeoutError(description, max_attempts)


def retry_on_conflict(
    func: Callable[[], T],
    max_attempts: int = 5,
    interval_seconds: float = 0.01,
    sleep: Sleep = time.sleep,
) -> T:
    """
    Call *func* and retry it if it raises a `ConflictError`, which the Kubernetes API returns when an object was
    modified concurrently. Any other exception propagates immediately. The last `ConflictError` propagates if all
    *max_attempts* failed.
    """

    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        try:
            return func()
        except ConflictError:
            if attempt == max_attempts:
                raise
            logger.debug("Conflict on attempt {}/{}, retrying in {}s", attempt, max_attempts, interval_seconds)
            sleep(interval_seconds)

    raise AssertionError("unreachable")
