from __future__ import annotations

import asyncio
import glob
import json
import locale
import logging
import os
import platform
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx
import psutil

from ..config import AppConfig
from .probes import CapabilitySource, PermissionCheck
from .readings import (
    BasicInfo,
    BatteryInfo,
    GeoFix,
    HardwareInfo,
    IpIdentity,
    MediaDeviceCounts,
    NetworkInfo,
    StorageEstimate,
)
from .signals import SignalValue, Unavailable

logger = logging.getLogger(__name__)

SINKHOLE_ADDRESSES = {"0.0.0.0", "127.0.0.1", "::", "::1"}
MEDIA_DEVICE_PATTERNS = ("/dev/video*", "/dev/snd/pcmC*D*c", "/dev/snd/pcmC*D*p")


@dataclass
class Capabilities:
    """
    Injected data sources, one per signal. A ``None`` entry means the host does
    not offer that capability; the matching probe reports it as unavailable.
    """

    basic: CapabilitySource | None = None
    hardware: CapabilitySource | None = None
    battery: CapabilitySource | None = None
    network: CapabilitySource | None = None
    permission_check: PermissionCheck | None = None
    permissions: CapabilitySource | None = None
    precise_location: CapabilitySource | None = None
    ip_location: CapabilitySource | None = None
    ipinfo_identity: CapabilitySource | None = None
    ipify_identity: CapabilitySource | None = None
    storage_estimate: CapabilitySource | None = None
    media_devices: CapabilitySource | None = None
    # privacy-mode detector inputs
    storage_quota: Callable[[], Awaitable[int | None]] | None = None
    persistent_store_probe: Callable[[], Awaitable[bool]] | None = None
    legacy_quota_request: Callable[[], Awaitable[bool]] | None = None
    # content-filter detector inputs
    bait_hidden: Callable[[], Awaitable[bool]] | None = None
    dns_sinkholed: Callable[[], Awaitable[bool]] | None = None
    blocked_fetch: Callable[[], Awaitable[Any]] | None = None
    blocking_library: Callable[[], Awaitable[bool]] | None = None
    cookie_roundtrip: Callable[[], Awaitable[bool]] | None = None


def classify_interface(name: str) -> str:
    lowered = name.lower()
    if lowered.startswith(("wl", "wifi", "wlan", "ath", "ra")):
        return "WiFi"
    if lowered.startswith(("wwan", "rmnet", "ppp", "cdc", "usb")):
        return "Cellular"
    if lowered.startswith(("en", "eth", "em")):
        return "Ethernet"
    if lowered.startswith("lo"):
        return "Loopback"
    return name


class HostCapabilities:
    """Capability sources that read the machine this process runs on."""

    def __init__(self, settings: AppConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def as_capabilities(self) -> Capabilities:
        return Capabilities(
            basic=self.basic,
            hardware=self.hardware,
            battery=self.battery,
            network=self.network,
            permission_check=self.permission_state,
            permissions=self.permissions,
            precise_location=self.gpsd_fix,
            ip_location=self.ip_location,
            ipinfo_identity=self.ipinfo_identity,
            ipify_identity=self.ipify_identity,
            storage_estimate=self.storage_estimate,
            media_devices=self.media_devices,
            storage_quota=self.storage_quota,
            persistent_store_probe=self.persistent_store_probe,
            dns_sinkholed=self.dns_sinkholed,
            blocked_fetch=self.blocked_fetch,
        )

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    @property
    def _network_timeout_s(self) -> float:
        return self.settings.network_timeout_ms / 1000

    def _storage_root(self) -> Path:
        root = Path(self.settings.workspace_root)
        return root if root.exists() else Path.home()

    async def basic(self) -> BasicInfo:
        language = locale.getlocale()[0] or os.environ.get("LANG", "").split(".")[0] or "Unknown"
        timezone = os.environ.get("TZ") or datetime.now().astimezone().tzname() or "Unknown"
        return BasicInfo(
            platform=platform.system() or "Unknown",
            release=platform.release() or "Unknown",
            machine=platform.machine() or "Unknown",
            language=language,
            timezone=timezone,
            interpreter=f"{platform.python_implementation()} {platform.python_version()}",
        )

    async def hardware(self) -> HardwareInfo:
        return HardwareInfo(
            cpu_cores=psutil.cpu_count(logical=True),
            ram_gb=round(psutil.virtual_memory().total / (1024**3), 1),
        )

    async def battery(self) -> BatteryInfo | SignalValue:
        sensors = getattr(psutil, "sensors_battery", None)
        reading = await asyncio.to_thread(sensors) if sensors else None
        if reading is None:
            return Unavailable("no battery present")
        return BatteryInfo(
            level_percent=round(reading.percent),
            charging=reading.power_plugged,
        )

    async def network(self) -> NetworkInfo:
        stats = psutil.net_if_stats()
        active = sorted(name for name, stat in stats.items() if stat.isup and not name.lower().startswith("lo"))
        if not active:
            return NetworkInfo(connection_type="Unknown", online=False)
        interface = active[0]
        speed = stats[interface].speed or None
        return NetworkInfo(
            connection_type=classify_interface(interface),
            interface=interface,
            link_speed_mbps=speed,
            rtt_ms=await self._connect_rtt_ms(),
            online=True,
        )

    async def _connect_rtt_ms(self) -> float | None:
        start = time.perf_counter()
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.settings.latency_probe_host, self.settings.latency_probe_port),
                timeout=self._network_timeout_s,
            )
        except (OSError, asyncio.TimeoutError) as exc:
            logger.debug("Latency probe to %s failed: %s", self.settings.latency_probe_host, exc)
            return None
        rtt = (time.perf_counter() - start) * 1000
        writer.close()
        return round(rtt, 1)

    async def permission_state(self, name: str) -> str:
        return self.settings.permissions.get(name, "prompt")

    async def permissions(self) -> dict[str, str]:
        return dict(sorted(self.settings.permissions.items()))

    async def gpsd_fix(self) -> GeoFix | SignalValue:
        """Read the first 2D/3D fix from a local gpsd over its JSON protocol."""
        reader, writer = await asyncio.open_connection(self.settings.gpsd_host, self.settings.gpsd_port)
        try:
            writer.write(b'?WATCH={"enable":true,"json":true}\n')
            await writer.drain()
            while True:
                line = await reader.readline()
                if not line:
                    return Unavailable("gpsd closed the connection without a fix")
                try:
                    message = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if message.get("class") != "TPV" or message.get("mode", 0) < 2:
                    continue
                if "lat" not in message or "lon" not in message:
                    continue
                errors = [message[key] for key in ("epx", "epy") if key in message]
                return GeoFix(
                    latitude=message["lat"],
                    longitude=message["lon"],
                    accuracy_m=max(errors) if errors else None,
                    source="gpsd",
                )
        finally:
            writer.close()

    async def _ipinfo(self) -> dict[str, Any]:
        params = {"token": self.settings.ipinfo_token} if self.settings.ipinfo_token else None
        async with self._client(self._network_timeout_s) as client:
            response = await client.get(self.settings.ipinfo_url, params=params)
            response.raise_for_status()
            return response.json()

    async def ip_location(self) -> GeoFix | SignalValue:
        data = await self._ipinfo()
        loc = data.get("loc")
        if not loc or "," not in loc:
            return Unavailable("ipinfo response has no coordinates")
        latitude, longitude = (float(part) for part in loc.split(",", 1))
        return GeoFix(latitude=latitude, longitude=longitude, source="ip")

    async def ipinfo_identity(self) -> IpIdentity | SignalValue:
        data = await self._ipinfo()
        if not data.get("ip"):
            return Unavailable("ipinfo response has no ip")
        return IpIdentity(
            ip=data["ip"],
            city=data.get("city"),
            region=data.get("region"),
            country=data.get("country"),
            org=data.get("org"),
            loc=data.get("loc"),
            timezone=data.get("timezone"),
        )

    async def ipify_identity(self) -> IpIdentity | SignalValue:
        async with self._client(self._network_timeout_s) as client:
            response = await client.get(self.settings.ipify_url)
            response.raise_for_status()
            data = response.json()
        if not data.get("ip"):
            return Unavailable("ipify response has no ip")
        return IpIdentity(ip=data["ip"])

    async def storage_estimate(self) -> StorageEstimate:
        usage = await asyncio.to_thread(psutil.disk_usage, str(self._storage_root()))
        return StorageEstimate(quota_bytes=usage.total, usage_bytes=usage.used)

    async def storage_quota(self) -> int:
        usage = await asyncio.to_thread(psutil.disk_usage, str(self._storage_root()))
        return usage.free

    async def persistent_store_probe(self) -> bool:
        return await asyncio.to_thread(self._store_round_trip)

    def _store_round_trip(self) -> bool:
        payload = b"envreport-store-probe"
        with tempfile.NamedTemporaryFile(dir=self._storage_root(), prefix=".envreport-", delete=True) as handle:
            handle.write(payload)
            handle.flush()
            handle.seek(0)
            return handle.read() == payload

    async def media_devices(self) -> MediaDeviceCounts | SignalValue:
        if not Path("/dev").is_dir():
            return Unavailable("device nodes not exposed on this platform")
        cameras, microphones, outputs = await asyncio.gather(
            *(asyncio.to_thread(glob.glob, pattern) for pattern in MEDIA_DEVICE_PATTERNS)
        )
        return MediaDeviceCounts(cameras=len(cameras), microphones=len(microphones), outputs=len(outputs))

    async def dns_sinkholed(self) -> bool:
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(self.settings.content_filter_bait_host, 443)
        addresses = {info[4][0] for info in infos}
        return bool(addresses) and addresses <= SINKHOLE_ADDRESSES

    async def blocked_fetch(self) -> int:
        async with self._client(self._network_timeout_s) as client:
            response = await client.get(self.settings.content_filter_bait_url)
            return response.status_code


def host_capabilities(settings: AppConfig, transport: httpx.AsyncBaseTransport | None = None) -> Capabilities:
    return HostCapabilities(settings, transport=transport).as_capabilities()
