from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Sequence

from .probe_set import DECLARED_SIGNALS
from .signals import Ok, SignalValue, Unavailable

NOT_PROBED = "not probed"


@dataclass(frozen=True)
class Report:
    """Immutable merge of every signal from one run."""

    signals: Mapping[str, SignalValue]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __getitem__(self, name: str) -> SignalValue:
        return self.signals[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.signals)

    def __len__(self) -> int:
        return len(self.signals)

    def get(self, name: str) -> SignalValue:
        return self.signals.get(name, Unavailable(NOT_PROBED))


def _coerce(value: Any) -> SignalValue:
    if isinstance(value, SignalValue):
        return value
    if value is None:
        return Unavailable(NOT_PROBED)
    return Ok(value)


def synthesize(
    results: Mapping[str, Any],
    declared: Sequence[str] = DECLARED_SIGNALS,
    created_at: datetime | None = None,
) -> Report:
    """
    Merge raw probe results into a Report. Every declared name appears exactly
    once, in declared order; missing ones are marked ``Unavailable("not probed")``.
    Names outside the declared set are kept after the declared ones.
    """
    merged: dict[str, SignalValue] = {}
    for name in declared:
        merged[name] = _coerce(results.get(name))
    for name, value in results.items():
        if name not in merged:
            merged[name] = _coerce(value)
    return Report(
        signals=MappingProxyType(merged),
        created_at=created_at or datetime.now(timezone.utc),
    )
