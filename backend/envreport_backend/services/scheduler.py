from __future__ import annotations

import asyncio
import logging
import time
from typing import Sequence

from .probes import Probe, Settled, settle
from .signals import SignalValue

logger = logging.getLogger(__name__)


class ProbeScheduler:
    """
    Fans every top-level unit out as its own task on the running loop and joins
    them all. No unit waits on another, so a run takes as long as its slowest
    unit (bounded by that unit's timeout), not the sum.
    """

    def __init__(self, units: Sequence[Probe]) -> None:
        names = [unit.name for unit in units]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate signal names in probe set: {sorted(duplicates)}")
        self._units = list(units)
        self.diagnostics: list[Settled] = []

    @property
    def names(self) -> list[str]:
        return [unit.name for unit in self._units]

    async def run(self) -> dict[str, SignalValue]:
        start = time.perf_counter()
        tasks = [asyncio.ensure_future(self._track(unit)) for unit in self._units]
        settled: list[Settled] = await asyncio.gather(*tasks)
        results = {item.name: item.value for item in settled}
        logger.info(
            "Probe run finished in %.0f ms: %s",
            (time.perf_counter() - start) * 1000,
            ", ".join(f"{name}={value.kind}" for name, value in results.items()),
        )
        return results

    async def _track(self, unit: Probe) -> Settled:
        outcome = await settle(unit)
        # Completion order is only visible here, never in the report.
        self.diagnostics.append(outcome)
        logger.debug("%s settled as %s in %.0f ms", outcome.name, outcome.value.kind, outcome.elapsed_ms)
        return outcome
