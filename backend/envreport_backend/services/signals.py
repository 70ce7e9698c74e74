from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


class SignalValue:
    """
    Outcome of one probe. Every failure surface is represented as data:
    callers branch on ``kind`` (or ``isinstance``) instead of catching exceptions.
    """

    kind: ClassVar[str] = ""

    @property
    def is_ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Ok(SignalValue):
    value: Any
    kind: ClassVar[str] = "ok"

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Unavailable(SignalValue):
    reason: str
    kind: ClassVar[str] = "unavailable"


@dataclass(frozen=True)
class Denied(SignalValue):
    kind: ClassVar[str] = "denied"


@dataclass(frozen=True)
class TimedOut(SignalValue):
    kind: ClassVar[str] = "timed_out"


def describe_error(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or exc.__class__.__name__


def as_signal(result: Any) -> SignalValue:
    """Wrap a raw capability result: ``None`` means the source had nothing to report."""
    if isinstance(result, SignalValue):
        return result
    if result is None:
        return Unavailable("no data")
    return Ok(result)
