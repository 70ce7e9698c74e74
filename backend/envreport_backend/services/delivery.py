from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from ..config import AppConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryOutcome:
    ok: bool
    detail: str | None = None


class DeliverySink(Protocol):
    async def deliver(self, target_id: str, text: str) -> DeliveryOutcome:
        ...


@dataclass
class TelegramSink:
    """Posts the report through the Telegram Bot API. Never raises."""

    token: str
    api_base: str = "https://api.telegram.org"
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    async def deliver(self, target_id: str, text: str) -> DeliveryOutcome:
        url = f"{self.api_base.rstrip('/')}/bot{self.token}/sendMessage"
        payload = {"chat_id": target_id, "text": text}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                response = await client.post(url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # The request URL embeds the token; report the error class and message only.
            logger.warning("Telegram delivery to %s failed: %s", target_id, e.__class__.__name__)
            return DeliveryOutcome(ok=False, detail=f"{e.__class__.__name__}: {e}".replace(self.token, "***"))

        if response.is_success:
            return DeliveryOutcome(ok=True)
        logger.warning("Telegram delivery to %s rejected with HTTP %s", target_id, response.status_code)
        return DeliveryOutcome(ok=False, detail=f"HTTP {response.status_code}: {response.text}")


@dataclass
class DisabledSink:
    reason: str = "delivery disabled"

    async def deliver(self, target_id: str, text: str) -> DeliveryOutcome:
        return DeliveryOutcome(ok=False, detail=self.reason)


def create_delivery_sink(settings: AppConfig) -> DeliverySink:
    if not settings.delivery_enabled:
        return DisabledSink()
    if not settings.telegram_token:
        return DisabledSink("no telegram token configured")
    return TelegramSink(
        token=settings.telegram_token,
        api_base=settings.telegram_api_base,
        timeout_s=settings.delivery_timeout_s,
    )
