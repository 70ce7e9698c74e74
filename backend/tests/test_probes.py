from __future__ import annotations

import time

import pytest

from conftest import FakeProbe, raising, returning
from envreport_backend.services.probes import FunctionProbe, PermissionGatedProbe, abandoned_count, settle
from envreport_backend.services.signals import Denied, Ok, TimedOut, Unavailable


@pytest.mark.asyncio
async def test_function_probe_wraps_source_results():
    assert await FunctionProbe("cpu", returning(4)).run() == Ok(4)
    assert await FunctionProbe("cpu", returning(None)).run() == Unavailable("no data")
    assert await FunctionProbe("cpu", returning(Denied())).run() == Denied()
    assert await FunctionProbe("cpu", None).run() == Unavailable("capability not available")


@pytest.mark.asyncio
async def test_settle_converts_exceptions_to_unavailable():
    settled = await settle(FakeProbe("battery", error=RuntimeError("sensor offline")))
    assert settled.name == "battery"
    assert settled.value == Unavailable("sensor offline")

    settled = await settle(FakeProbe("battery", error=KeyError()))
    assert settled.value == Unavailable("KeyError")


@pytest.mark.asyncio
async def test_settle_times_out_without_waiting_for_the_work():
    probe = FakeProbe("slow", result="late", delay=1.0, timeout_ms=50)
    start = time.perf_counter()
    settled = await settle(probe)
    elapsed = time.perf_counter() - start

    assert settled.value == TimedOut()
    assert elapsed < 0.5
    # the abandoned work is still referenced, not cancelled
    assert abandoned_count() >= 1
    assert probe.calls == 1


@pytest.mark.asyncio
async def test_settle_wraps_raw_return_values():
    settled = await settle(FakeProbe("raw", result={"cores": 2}))
    assert settled.value == Ok({"cores": 2})


@pytest.mark.asyncio
async def test_permission_denied_skips_acquisition():
    calls = []

    async def locate():
        calls.append("locate")
        return (1.0, 2.0)

    probe = PermissionGatedProbe("precise_location", "geolocation", returning("denied"), locate)
    assert await probe.run() == Denied()
    assert calls == []


@pytest.mark.asyncio
async def test_permission_prompt_or_failed_check_still_acquires():
    granted = PermissionGatedProbe("media", "camera", returning("prompt"), returning(3))
    assert await granted.run() == Ok(3)

    broken_check = PermissionGatedProbe("media", "camera", raising(RuntimeError("no api")), returning(3))
    assert await broken_check.run() == Ok(3)

    no_source = PermissionGatedProbe("media", "camera", returning("granted"), None)
    assert await no_source.run() == Unavailable("capability not available")
