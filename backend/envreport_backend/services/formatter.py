"""
Plain-text rendering of a Report.

Section order is fixed: header, Basic Info, Hardware, Network, IP Info, GPS,
Content Filter, Privacy Mode, Battery, Permissions, Storage, Media Devices,
then any signals outside the declared set. Every line renders a value or a
placeholder, so the output never depends on which probes succeeded.
"""

from __future__ import annotations

from typing import Any, Callable

from .probe_set import DECLARED_SIGNALS
from .signals import Denied, Ok, SignalValue, TimedOut
from .synthesizer import Report

UNKNOWN = "Unknown"
DEFAULT_MAP_URL = "https://www.google.com/maps?q={latitude},{longitude}"


def placeholder(signal: SignalValue) -> str:
    if isinstance(signal, Denied):
        return "Denied"
    if isinstance(signal, TimedOut):
        return "Timed out"
    return UNKNOWN


def _field(signal: SignalValue, attr: str, render: Callable[[Any], str] = str) -> str:
    if not isinstance(signal, Ok):
        return placeholder(signal)
    value = getattr(signal.value, attr, None)
    if value is None or value == "":
        return UNKNOWN
    try:
        return render(value)
    except (TypeError, ValueError):
        return UNKNOWN


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def _human_bytes(value: Any) -> str:
    size = float(value)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{size:.0f} B" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def _status(signal: SignalValue) -> str:
    if isinstance(signal, Ok):
        return "Allowed"
    if isinstance(signal, Denied):
        return "Denied"
    if isinstance(signal, TimedOut):
        return "Timed out"
    return "Unavailable"


def _methods(value: Any) -> str:
    methods = [str(method) for method in value or ()]
    return "+".join(methods) if methods else "None"


def _render_value(signal: SignalValue) -> str:
    if not isinstance(signal, Ok):
        return placeholder(signal)
    return str(signal.value)


def format_report(report: Report, map_url: str = DEFAULT_MAP_URL) -> str:
    basic = report.get("basic")
    hw = report.get("hardware")
    net = report.get("network")
    ip = report.get("ip_identity")
    geo = report.get("geolocation")
    cf = report.get("content_filter")
    pm = report.get("privacy_mode")
    bat = report.get("battery")
    perms = report.get("permissions")
    storage = report.get("storage")
    media = report.get("media_devices")

    lines: list[str] = []
    lines.append("Device Information Report")
    lines.append(f"Generated: {report.created_at.isoformat()}")
    lines.append("")
    lines.append("Basic Info:")
    lines.append(f"- Platform: {_field(basic, 'platform')}")
    lines.append(f"- Release: {_field(basic, 'release')}")
    lines.append(f"- Machine: {_field(basic, 'machine')}")
    lines.append(f"- Language: {_field(basic, 'language')}")
    lines.append(f"- Timezone: {_field(basic, 'timezone')}")
    lines.append(f"- Interpreter: {_field(basic, 'interpreter')}")
    lines.append(f"- Touch/Mouse: {_field(basic, 'input_type')}")
    lines.append("")
    lines.append("Hardware:")
    lines.append(f"- CPU: {_field(hw, 'cpu_cores', lambda v: f'{v} cores')}")
    lines.append(f"- RAM: {_field(hw, 'ram_gb', lambda v: f'{v} GB')}")
    lines.append("")
    lines.append("Network Info:")
    lines.append(f"- Connection Type: {_field(net, 'connection_type')}")
    lines.append(f"- Interface: {_field(net, 'interface')}")
    lines.append(f"- Link Speed: {_field(net, 'link_speed_mbps', lambda v: f'{v} Mbps')}")
    lines.append(f"- Latency (rtt): {_field(net, 'rtt_ms', lambda v: f'{round(v)} ms')}")
    lines.append(f"- Online: {_field(net, 'online', lambda v: 'Online' if v else 'Offline')}")
    lines.append("")
    lines.append("IP Info:")
    lines.append(f"- IP: {_field(ip, 'ip')}")
    lines.append("*Note: IP-based location may not be accurate.*")
    lines.append(f"- City: {_field(ip, 'city')}")
    lines.append(f"- Region: {_field(ip, 'region')}")
    lines.append(f"- Country: {_field(ip, 'country')}")
    lines.append(f"- ISP: {_field(ip, 'org')}")
    lines.append("")
    lines.append("GPS:")
    lines.append(f"- Status: {_status(geo)}")
    lines.append(f"- Latitude: {_field(geo, 'latitude')}")
    lines.append(f"- Longitude: {_field(geo, 'longitude')}")
    lines.append(f"- Source: {_field(geo, 'source')}")
    if isinstance(geo, Ok):
        latitude = getattr(geo.value, "latitude", None)
        longitude = getattr(geo.value, "longitude", None)
        if latitude is not None and longitude is not None:
            lines.append(f"- Map: {map_url.format(latitude=latitude, longitude=longitude)}")
    lines.append("")
    lines.append("Content Filter:")
    lines.append(f"- Detected: {_field(cf, 'detected')}")
    lines.append(f"- Method: {_field(cf, 'methods', _methods)}")
    lines.append(f"- Cookies Blocked: {_field(cf, 'cookies_blocked')}")
    lines.append("")
    lines.append("Privacy Mode:")
    lines.append(f"- Detected: {_field(pm, 'detected')}")
    lines.append(f"- Method: {_field(pm, 'method')}")
    lines.append(f"- Quota: {_field(pm, 'quota_bytes', _human_bytes)}")
    lines.append("")
    lines.append("Battery:")
    lines.append(f"- Level: {_field(bat, 'level_percent', lambda v: f'{v}%')}")
    lines.append(f"- Charging: {_field(bat, 'charging', _yes_no)}")
    lines.append("")
    lines.append("Permissions:")
    if isinstance(perms, Ok) and isinstance(perms.value, dict):
        if not perms.value:
            lines.append("- None reported")
        for name, state in perms.value.items():
            lines.append(f"- {name}: {state}")
    else:
        lines.append(f"- Status: {placeholder(perms)}")
    lines.append("")
    lines.append("Storage Estimate:")
    lines.append(f"- Quota: {_field(storage, 'quota_bytes', _human_bytes)}")
    lines.append(f"- Usage: {_field(storage, 'usage_bytes', _human_bytes)}")
    lines.append("")
    lines.append("Media Devices (counts):")
    lines.append(f"- Cameras: {_field(media, 'cameras')}")
    lines.append(f"- Microphones: {_field(media, 'microphones')}")
    lines.append(f"- Outputs: {_field(media, 'outputs')}")

    extras = [name for name in report if name not in DECLARED_SIGNALS]
    if extras:
        lines.append("")
        lines.append("Other Signals:")
        for name in extras:
            lines.append(f"- {name}: {_render_value(report.get(name))}")

    return "\n".join(lines)
