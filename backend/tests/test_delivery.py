from __future__ import annotations

import json

import httpx
import pytest

from envreport_backend.services.delivery import DisabledSink, TelegramSink, create_delivery_sink

TOKEN = "123456:secret-token"


@pytest.mark.asyncio
async def test_telegram_sink_posts_chat_message():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    sink = TelegramSink(token=TOKEN, transport=httpx.MockTransport(handler))
    outcome = await sink.deliver("-100200300", "report text")

    assert outcome.ok is True
    assert outcome.detail is None
    assert seen["url"] == f"https://api.telegram.org/bot{TOKEN}/sendMessage"
    assert seen["body"] == {"chat_id": "-100200300", "text": "report text"}


@pytest.mark.asyncio
async def test_telegram_sink_reports_http_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="Forbidden: bot was blocked by the user")

    sink = TelegramSink(token=TOKEN, transport=httpx.MockTransport(handler))
    outcome = await sink.deliver("42", "report text")

    assert outcome.ok is False
    assert outcome.detail == "HTTP 403: Forbidden: bot was blocked by the user"


@pytest.mark.asyncio
async def test_telegram_sink_never_raises_on_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(f"connection refused for {request.url}", request=request)

    sink = TelegramSink(token=TOKEN, transport=httpx.MockTransport(handler))
    outcome = await sink.deliver("42", "report text")

    assert outcome.ok is False
    assert outcome.detail.startswith("ConnectError")
    assert TOKEN not in outcome.detail


@pytest.mark.asyncio
async def test_disabled_sink_reports_reason():
    outcome = await DisabledSink().deliver("42", "text")
    assert outcome.ok is False
    assert outcome.detail == "delivery disabled"


def test_create_delivery_sink_respects_settings(settings):
    assert isinstance(create_delivery_sink(settings), DisabledSink)

    settings.telegram_token = TOKEN
    sink = create_delivery_sink(settings)
    assert isinstance(sink, TelegramSink)
    assert sink.timeout_s == settings.delivery_timeout_s

    settings.delivery_enabled = False
    assert isinstance(create_delivery_sink(settings), DisabledSink)
