from __future__ import annotations

from ..config import AppConfig
from .capabilities import Capabilities
from .fallback import FallbackChain
from .heuristics import ContentFilterDetector, PrivacyModeDetector
from .probes import FunctionProbe, PermissionGatedProbe, Probe

DECLARED_SIGNALS: tuple[str, ...] = (
    "basic",
    "hardware",
    "network",
    "ip_identity",
    "geolocation",
    "content_filter",
    "privacy_mode",
    "battery",
    "permissions",
    "storage",
    "media_devices",
)


def build_probe_set(capabilities: Capabilities, settings: AppConfig) -> list[Probe]:
    """Build fresh top-level units for one run, in declared signal order."""
    default_ms = settings.default_probe_timeout_ms
    network_ms = settings.network_timeout_ms
    check = capabilities.permission_check

    units: dict[str, Probe] = {
        "basic": FunctionProbe("basic", capabilities.basic, default_ms),
        "hardware": FunctionProbe("hardware", capabilities.hardware, default_ms),
        # network includes an RTT measurement bounded by network_ms
        "network": FunctionProbe("network", capabilities.network, default_ms + network_ms),
        "ip_identity": FallbackChain(
            "ip_identity",
            [
                FunctionProbe("ipinfo", capabilities.ipinfo_identity, network_ms),
                FunctionProbe("ipify", capabilities.ipify_identity, network_ms),
            ],
        ),
        "geolocation": FallbackChain(
            "geolocation",
            [
                PermissionGatedProbe(
                    "precise_location", "geolocation", check, capabilities.precise_location, settings.geo_timeout_ms
                ),
                FunctionProbe("ip_location", capabilities.ip_location, network_ms),
            ],
        ),
        "content_filter": ContentFilterDetector(
            bait_hidden=capabilities.bait_hidden,
            dns_sinkholed=capabilities.dns_sinkholed,
            blocked_fetch=capabilities.blocked_fetch,
            library_flag=capabilities.blocking_library,
            cookie_roundtrip=capabilities.cookie_roundtrip,
            timeout_ms=default_ms + network_ms,
        ),
        "privacy_mode": PrivacyModeDetector(
            quota_source=capabilities.storage_quota,
            store_probe=capabilities.persistent_store_probe,
            legacy_quota_request=capabilities.legacy_quota_request,
            quota_threshold_bytes=settings.private_quota_threshold_bytes,
            timeout_ms=default_ms,
        ),
        "battery": FunctionProbe("battery", capabilities.battery, default_ms),
        "permissions": FunctionProbe("permissions", capabilities.permissions, default_ms),
        "storage": PermissionGatedProbe("storage", "storage", check, capabilities.storage_estimate, default_ms),
        "media_devices": PermissionGatedProbe("media_devices", "camera", check, capabilities.media_devices, default_ms),
    }
    return [units[name] for name in DECLARED_SIGNALS]
