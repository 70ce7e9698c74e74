from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, List, Literal

from pydantic import BaseModel, Field

from ..services.delivery import DeliveryOutcome
from ..services.signals import Ok, SignalValue, Unavailable
from ..services.synthesizer import Report


class SendReportRequest(BaseModel):
    target_id: str = Field(..., description="Chat or target identifier the report is delivered to")


class SignalPayload(BaseModel):
    name: str
    kind: Literal["ok", "unavailable", "denied", "timed_out"]
    value: Any | None = None
    reason: str | None = None


class DeliveryPayload(BaseModel):
    ok: bool
    detail: str | None = None


class ReportResponse(BaseModel):
    created_at: datetime
    signals: List[SignalPayload]
    text: str
    delivery: DeliveryPayload | None = None


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


def signal_payload(name: str, signal: SignalValue) -> SignalPayload:
    return SignalPayload(
        name=name,
        kind=signal.kind,
        value=_plain(signal.value) if isinstance(signal, Ok) else None,
        reason=signal.reason if isinstance(signal, Unavailable) else None,
    )


def report_response(report: Report, text: str, delivery: DeliveryOutcome | None = None) -> ReportResponse:
    return ReportResponse(
        created_at=report.created_at,
        signals=[signal_payload(name, report[name]) for name in report],
        text=text,
        delivery=DeliveryPayload(ok=delivery.ok, detail=delivery.detail) if delivery else None,
    )
