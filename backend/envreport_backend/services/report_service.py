from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..config import AppConfig
from .capabilities import Capabilities
from .delivery import DeliveryOutcome, DeliverySink
from .formatter import format_report
from .probe_set import DECLARED_SIGNALS, build_probe_set
from .scheduler import ProbeScheduler
from .synthesizer import Report, synthesize

logger = logging.getLogger(__name__)


class MissingTargetError(ValueError):
    ...


@dataclass
class RunResult:
    report: Report
    text: str
    delivery: DeliveryOutcome


class ReportService:
    """
    Collects one environment report and hands it to the delivery sink.

    The caller is expected to have obtained consent already; this service only
    checks that a delivery target is present before any probing starts.
    """

    def __init__(
        self,
        settings: AppConfig,
        capabilities_factory: Callable[[], Capabilities],
        sink: DeliverySink,
    ) -> None:
        self._settings = settings
        self._capabilities_factory = capabilities_factory
        self._sink = sink

    async def collect(self) -> Report:
        # Probes are stateless and rebuilt for every run.
        units = build_probe_set(self._capabilities_factory(), self._settings)
        scheduler = ProbeScheduler(units)
        results = await scheduler.run()
        return synthesize(results, declared=DECLARED_SIGNALS)

    def render(self, report: Report) -> str:
        return format_report(report, map_url=self._settings.map_url)

    async def collect_and_send(self, target_id: str | None) -> RunResult:
        if not target_id or not str(target_id).strip():
            raise MissingTargetError("No target identifier provided")
        target = str(target_id).strip()

        report = await self.collect()
        text = self.render(report)
        delivery = await self._sink.deliver(target, text)
        if delivery.ok:
            logger.info("Report delivered to %s", target)
        else:
            logger.warning("Report delivery to %s failed: %s", target, delivery.detail)
        return RunResult(report=report, text=text, delivery=delivery)
