from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BasicInfo:
    platform: str
    release: str
    machine: str
    language: str
    timezone: str
    interpreter: str
    input_type: str = "Unknown"  # Touch | Mouse | Both | Unknown


@dataclass(frozen=True)
class HardwareInfo:
    cpu_cores: int | None
    ram_gb: float | None


@dataclass(frozen=True)
class BatteryInfo:
    level_percent: int | None
    charging: bool | None


@dataclass(frozen=True)
class NetworkInfo:
    connection_type: str  # WiFi | Ethernet | Cellular | Loopback | raw interface kind
    interface: str | None = None
    link_speed_mbps: int | None = None
    rtt_ms: float | None = None
    online: bool = True


@dataclass(frozen=True)
class GeoFix:
    latitude: float
    longitude: float
    accuracy_m: float | None = None
    source: str = "gps"


@dataclass(frozen=True)
class IpIdentity:
    ip: str
    city: str | None = None
    region: str | None = None
    country: str | None = None
    org: str | None = None
    loc: str | None = None
    timezone: str | None = None


@dataclass(frozen=True)
class StorageEstimate:
    quota_bytes: int | None
    usage_bytes: int | None


@dataclass(frozen=True)
class MediaDeviceCounts:
    cameras: int = 0
    microphones: int = 0
    outputs: int = 0


@dataclass(frozen=True)
class ContentFilterVerdict:
    detected: str  # Positive | Negative
    methods: tuple[str, ...] = field(default_factory=tuple)
    cookies_blocked: str = "Unknown"  # Yes | No | Unknown


@dataclass(frozen=True)
class PrivacyVerdict:
    detected: str  # Positive | Negative
    method: str | None = None
    quota_bytes: int | None = None
