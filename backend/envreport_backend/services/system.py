from __future__ import annotations

import platform
from datetime import datetime, timezone

import psutil


def host_summary() -> str:
    """
    One-line description of the host serving the API, used by the health check.
    Synchronous and cheap; the full probe run is never triggered from here.
    """
    system = platform.system()
    release = platform.release()
    machine = platform.machine()
    cores = psutil.cpu_count(logical=True) or 0
    timestamp = datetime.now(timezone.utc).isoformat()
    return f"{system} {release} ({machine}, {cores} cores) @ {timestamp}"
