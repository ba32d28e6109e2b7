"""Completion trackers for asynchronous provider deletes.

Azure delete calls return immediately with a long-running operation handle,
and resource listings keep showing deleted resources for a while afterwards.
The trackers here block the calling thread with bounded polling loops. A
timeout is reported through the return value and never raised.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from .models import OperationHandle, ResourceView
from .references import ResourceReference

# Terminal LRO statuses that mean the delete did not happen
FAILED_STATUSES = frozenset({"failed", "canceled", "cancelled"})


class _Poller:
    def __init__(
        self,
        timeout: float,
        period: float,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        logger: Any = None,
    ) -> None:
        if timeout <= 0 or period <= 0:
            raise ValueError("timeout and period must be positive")
        self.timeout = timeout
        self.period = period
        self._sleep = sleep
        self._clock = clock
        self.log = logger or structlog.get_logger(__name__)

    def _wait_until(self, condition: Callable[[], bool]) -> bool:
        deadline = self._clock() + self.timeout
        while True:
            if condition():
                return True
            if self._clock() >= deadline:
                return False
            self._sleep(self.period)


class ResourceDeleted(_Poller):
    """Waits for a delete operation handle to finish.

    Calling the tracker with ``None`` returns True at once: the provider
    returned no handle because nothing is pending.
    """

    def __call__(self, handle: OperationHandle | None) -> bool:
        if handle is None:
            return True

        if not self._wait_until(handle.done):
            self.log.warning("delete_operation_timed_out", timeout=self.timeout)
            return False

        status = str(handle.status() or "")
        if status.lower() in FAILED_STATUSES:
            self.log.warning("delete_operation_failed", status=status)
            return False
        return True


class NotInResourceGroup(_Poller):
    """Waits until a resource no longer shows up in its group's listing.

    Args:
        list_members: Returns the members of a resource group, or None if
            the group itself is gone
    """

    def __init__(
        self,
        list_members: Callable[[str], Iterable[ResourceView] | None],
        timeout: float,
        period: float,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        logger: Any = None,
    ) -> None:
        super().__init__(timeout, period, sleep=sleep, clock=clock, logger=logger)
        self._list_members = list_members

    def _absent(self, ref: ResourceReference) -> bool:
        members = self._list_members(ref.resource_group)
        if members is None:
            return True
        wanted = ref.id.lower()
        return not any((m.id or "").lower() == wanted for m in members)

    def __call__(self, ref: ResourceReference) -> bool:
        if self._wait_until(lambda: self._absent(ref)):
            return True

        self.log.warning(
            "resource_still_in_resource_group",
            resource_group=ref.resource_group,
            name=ref.name,
            timeout=self.timeout,
        )
        return False


def retry(
    predicate: Callable[[Any], bool],
    timeout: float,
    period: float,
    max_period: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Callable[[Any], bool]:
    """Wrap a predicate so it is re-evaluated until True or out of time.

    The interval between attempts starts at ``period`` and grows by half on
    every attempt, up to ``max_period``.

    Args:
        predicate: Single-argument predicate to evaluate
        timeout: Total time budget in seconds
        period: First polling interval in seconds
        max_period: Polling interval cap in seconds

    Returns:
        Predicate returning True as soon as ``predicate`` does, or False
        once the budget is spent
    """
    if timeout <= 0 or period <= 0:
        raise ValueError("timeout and period must be positive")
    if max_period < period:
        raise ValueError("max_period must not be smaller than period")

    def retrying(value: Any) -> bool:
        deadline = clock() + timeout
        interval = period
        while True:
            if predicate(value):
                return True
            remaining = deadline - clock()
            if remaining <= 0:
                return False
            sleep(min(interval, remaining))
            interval = min(interval * 1.5, max_period)

    return retrying
