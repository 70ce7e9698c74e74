from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import pytest

from envreport_backend.config import AppConfig, reset_settings_cache
from envreport_backend.services.capabilities import Capabilities
from envreport_backend.services.readings import (
    BasicInfo,
    BatteryInfo,
    GeoFix,
    HardwareInfo,
    IpIdentity,
    MediaDeviceCounts,
    NetworkInfo,
    StorageEstimate,
)


@dataclass
class FakeProbe:
    """Deterministic probe: sleeps, then raises or returns a fixed result."""

    name: str
    result: Any = None
    delay: float = 0.0
    timeout_ms: int = 1000
    error: Exception | None = None
    calls: int = 0

    async def run(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def returning(value: Any):
    async def source(*_args):
        return value

    return source


def raising(exc: Exception):
    async def source(*_args):
        raise exc

    return source


def build_settings(tmp_path, **overrides) -> AppConfig:
    values: dict[str, Any] = {
        "workspace_root": tmp_path / "workspace",
        "telegram_token": None,
        "ipinfo_token": None,
        "default_probe_timeout_ms": 500,
        "geo_timeout_ms": 500,
        "network_timeout_ms": 500,
    }
    values.update(overrides)
    return AppConfig.model_validate(values)


def fake_capabilities(**overrides) -> Capabilities:
    """A fully-populated capability set that never touches the host."""
    permissions = {"geolocation": "granted", "camera": "granted", "storage": "granted"}

    async def permission_check(name: str) -> str:
        return permissions.get(name, "prompt")

    values: dict[str, Any] = {
        "basic": returning(
            BasicInfo(
                platform="Linux",
                release="6.1.0",
                machine="x86_64",
                language="en_US",
                timezone="UTC",
                interpreter="CPython 3.12.0",
            )
        ),
        "hardware": returning(HardwareInfo(cpu_cores=8, ram_gb=16.0)),
        "battery": returning(BatteryInfo(level_percent=80, charging=True)),
        "network": returning(NetworkInfo(connection_type="WiFi", interface="wlan0", link_speed_mbps=300, rtt_ms=12.4)),
        "permission_check": permission_check,
        "permissions": returning(dict(sorted(permissions.items()))),
        "precise_location": returning(GeoFix(latitude=52.52, longitude=13.405, accuracy_m=8.0, source="gpsd")),
        "ip_location": returning(GeoFix(latitude=52.5, longitude=13.4, source="ip")),
        "ipinfo_identity": returning(
            IpIdentity(ip="203.0.113.7", city="Berlin", region="Berlin", country="DE", org="AS64500 Example")
        ),
        "ipify_identity": returning(IpIdentity(ip="203.0.113.7")),
        "storage_estimate": returning(StorageEstimate(quota_bytes=500 * 1024**3, usage_bytes=120 * 1024**3)),
        "media_devices": returning(MediaDeviceCounts(cameras=1, microphones=2, outputs=2)),
        "storage_quota": returning(300 * 1024**3),
        "persistent_store_probe": returning(True),
        "bait_hidden": returning(False),
        "blocked_fetch": returning(200),
        "cookie_roundtrip": returning(True),
    }
    values.update(overrides)
    return Capabilities(**values)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    for name in ("ENVREPORT_TELEGRAM_TOKEN", "ENVREPORT_IPINFO_TOKEN", "ENVREPORT_DELIVERY_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    config = build_settings(tmp_path)
    config.ensure_directories()
    yield config
    reset_settings_cache()
