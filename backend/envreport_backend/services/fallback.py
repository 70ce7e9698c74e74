from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Sequence

from .probes import Probe, settle
from .signals import SignalValue, Unavailable

logger = logging.getLogger(__name__)


@dataclass
class FallbackChain:
    """
    Ranked alternatives for one signal, most accurate first.

    Candidates run one after another, each bounded by its own timeout. The first
    ``Ok`` wins; when every candidate fails the last failure is returned, since
    later candidates are the coarser fallbacks tried after the precise ones.

    A chain is bounded by its candidates, so the scheduler never races it against
    an outer timer; ``timeout_ms`` is the worst case, reported for diagnostics.
    """

    name: str
    candidates: Sequence[Probe] = field(default_factory=list)
    bounded_by_candidates: ClassVar[bool] = True

    @property
    def timeout_ms(self) -> int:
        return sum(candidate.timeout_ms for candidate in self.candidates)

    async def run(self) -> SignalValue:
        last: SignalValue = Unavailable("no candidates")
        for candidate in self.candidates:
            settled = await settle(candidate)
            if settled.value.is_ok:
                logger.debug("Chain %s satisfied by %s", self.name, candidate.name)
                return settled.value
            logger.debug("Chain %s: %s returned %s", self.name, candidate.name, settled.value.kind)
            last = settled.value
        return last
