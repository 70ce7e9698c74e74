from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from .signals import Denied, SignalValue, TimedOut, Unavailable, as_signal, describe_error

logger = logging.getLogger(__name__)

CapabilitySource = Callable[[], Awaitable[Any]]
PermissionCheck = Callable[[str], Awaitable[str]]


class Probe(Protocol):
    name: str
    timeout_ms: int

    async def run(self) -> SignalValue:
        ...


@dataclass
class FunctionProbe:
    """Adapts a single capability source into a probe."""

    name: str
    source: CapabilitySource | None
    timeout_ms: int = 3000

    async def run(self) -> SignalValue:
        if self.source is None:
            return Unavailable("capability not available")
        return as_signal(await self.source())


@dataclass
class PermissionGatedProbe:
    """
    Consults the permission check before acquisition so a refused capability
    is never prompted for again. Only an explicit "denied" short-circuits.
    """

    name: str
    permission: str
    check: PermissionCheck | None
    source: CapabilitySource | None
    timeout_ms: int = 3000

    async def run(self) -> SignalValue:
        state = await self._permission_state()
        if state == "denied":
            return Denied()
        if self.source is None:
            return Unavailable("capability not available")
        return as_signal(await self.source())

    async def _permission_state(self) -> str:
        if self.check is None:
            return "unknown"
        try:
            return (await self.check(self.permission) or "unknown").lower()
        except Exception as exc:
            logger.debug("Permission check for %s failed: %s", self.permission, exc)
            return "unknown"


@dataclass
class Settled:
    name: str
    value: SignalValue
    elapsed_ms: float = 0.0


async def settle(probe: Probe) -> Settled:
    """
    Run one probe bounded by its own timeout and convert every failure into a
    typed value. On expiry the in-flight work is abandoned, not cancelled.
    Units that declare ``bounded_by_candidates`` time out per candidate instead.
    """
    start = time.perf_counter()
    task = asyncio.ensure_future(probe.run())
    timeout = None if getattr(probe, "bounded_by_candidates", False) else max(probe.timeout_ms, 0) / 1000
    done, _pending = await asyncio.wait({task}, timeout=timeout)
    elapsed_ms = (time.perf_counter() - start) * 1000

    if not done:
        abandon(task)
        logger.info("Probe %s timed out after %d ms", probe.name, probe.timeout_ms)
        return Settled(probe.name, TimedOut(), elapsed_ms)

    if task.cancelled():
        return Settled(probe.name, Unavailable("cancelled"), elapsed_ms)
    exc = task.exception()
    if exc is not None:
        logger.info("Probe %s failed: %s", probe.name, describe_error(exc))
        return Settled(probe.name, Unavailable(describe_error(exc)), elapsed_ms)

    return Settled(probe.name, as_signal(task.result()), elapsed_ms)


_abandoned: set[asyncio.Future] = set()


def abandon(task: asyncio.Future) -> None:
    # Keep a reference until the work finishes and drop its result unread.
    _abandoned.add(task)
    task.add_done_callback(_discard)


def _discard(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Abandoned probe work finished with error: %s", describe_error(task.exception()))


def abandoned_count() -> int:
    return len(_abandoned)
