from __future__ import annotations

import pytest

from conftest import raising, returning
from envreport_backend.services.heuristics import ContentFilterDetector, PrivacyModeDetector
from envreport_backend.services.readings import ContentFilterVerdict, PrivacyVerdict
from envreport_backend.services.signals import Ok, Unavailable


@pytest.mark.asyncio
async def test_privacy_low_quota_is_decisive():
    store_calls = []

    async def store_probe():
        store_calls.append(True)
        return True

    detector = PrivacyModeDetector(
        quota_source=returning(100_000_000),
        store_probe=store_probe,
        quota_threshold_bytes=120_000_000,
    )
    assert await detector.run() == Ok(PrivacyVerdict("Positive", "Quota", 100_000_000))
    assert store_calls == []


@pytest.mark.asyncio
async def test_privacy_store_failure_is_decisive():
    detector = PrivacyModeDetector(
        quota_source=returning(10_000_000_000),
        store_probe=raising(PermissionError("read-only")),
    )
    assert await detector.run() == Ok(PrivacyVerdict("Positive", "Storage", 10_000_000_000))


@pytest.mark.asyncio
async def test_privacy_legacy_quota_refusal_is_secondary_signal():
    detector = PrivacyModeDetector(
        quota_source=raising(OSError("estimate failed")),
        store_probe=returning(True),
        legacy_quota_request=returning(False),
    )
    assert await detector.run() == Ok(PrivacyVerdict("Positive", "LegacyFS", None))


@pytest.mark.asyncio
async def test_privacy_inconclusive_signals_are_unavailable():
    detector = PrivacyModeDetector(
        quota_source=returning(10_000_000_000),
        store_probe=returning(True),
        legacy_quota_request=returning(True),
    )
    assert await detector.run() == Unavailable("no decisive signal")


@pytest.mark.asyncio
async def test_privacy_without_capabilities_is_unavailable():
    result = await PrivacyModeDetector().run()
    assert isinstance(result, Unavailable)


@pytest.mark.asyncio
async def test_content_filter_hidden_bait_short_circuits():
    fetches = []

    async def fetch():
        fetches.append(True)
        return 200

    detector = ContentFilterDetector(
        bait_hidden=returning(True),
        blocked_fetch=fetch,
        cookie_roundtrip=returning(True),
    )
    assert await detector.run() == Ok(ContentFilterVerdict("Positive", ("DOM",), "No"))
    assert fetches == []


@pytest.mark.asyncio
async def test_content_filter_blocked_fetch_is_positive():
    detector = ContentFilterDetector(
        bait_hidden=returning(False),
        dns_sinkholed=returning(False),
        blocked_fetch=raising(ConnectionError("blocked by client")),
    )
    assert await detector.run() == Ok(ContentFilterVerdict("Positive", ("Network",), "Unknown"))


@pytest.mark.asyncio
async def test_content_filter_completed_fetch_is_inconclusive():
    detector = ContentFilterDetector(
        bait_hidden=returning(False),
        blocked_fetch=returning(200),
        library_flag=returning(False),
        cookie_roundtrip=returning(True),
    )
    assert await detector.run() == Ok(ContentFilterVerdict("Negative", (), "No"))


@pytest.mark.asyncio
async def test_content_filter_library_flag_after_inconclusive_fetch():
    detector = ContentFilterDetector(
        blocked_fetch=returning(200),
        library_flag=returning(True),
    )
    assert await detector.run() == Ok(ContentFilterVerdict("Positive", ("Library",), "Unknown"))


@pytest.mark.asyncio
async def test_content_filter_dns_sinkhole_is_positive():
    detector = ContentFilterDetector(dns_sinkholed=returning(True))
    result = await detector.run()
    assert result.value.methods == ("DNS",)


@pytest.mark.asyncio
async def test_cookie_failure_corroborates_positive_verdict():
    detector = ContentFilterDetector(
        bait_hidden=returning(True),
        cookie_roundtrip=returning(False),
    )
    assert await detector.run() == Ok(ContentFilterVerdict("Positive", ("DOM", "Cookie"), "Yes"))


@pytest.mark.asyncio
async def test_cookie_failure_alone_does_not_flip_verdict():
    detector = ContentFilterDetector(
        bait_hidden=returning(False),
        cookie_roundtrip=raising(RuntimeError("cookies disabled")),
    )
    assert await detector.run() == Ok(ContentFilterVerdict("Negative", (), "Yes"))


@pytest.mark.asyncio
async def test_content_filter_without_capabilities_is_unavailable():
    result = await ContentFilterDetector().run()
    assert isinstance(result, Unavailable)
