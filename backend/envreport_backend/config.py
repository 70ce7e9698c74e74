from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    workspace_root: Path = Path.home() / "EnvReport"

    # Delivery
    delivery_enabled: bool = True
    telegram_token: str | None = None
    telegram_api_base: str = "https://api.telegram.org"
    delivery_timeout_s: float = 10.0

    # Network identity lookups
    ipinfo_token: str | None = None
    ipinfo_url: str = "https://ipinfo.io/json"
    ipify_url: str = "https://api.ipify.org?format=json"

    # Precise location (gpsd JSON protocol)
    gpsd_host: str = "127.0.0.1"
    gpsd_port: int = 2947

    # Network quality
    latency_probe_host: str = "1.1.1.1"
    latency_probe_port: int = 443

    # Content-filter bait targets (hosts commonly blocked by filter lists)
    content_filter_bait_host: str = "pagead2.googlesyndication.com"
    content_filter_bait_url: str = "https://pagead2.googlesyndication.com/pagead/js/adsbygoogle.js"

    # Permission states granted by the caller's consent flow: granted | prompt | denied
    permissions: dict[str, str] = Field(
        default_factory=lambda: {
            "geolocation": "prompt",
            "camera": "prompt",
            "microphone": "prompt",
            "notifications": "prompt",
            "storage": "granted",
        }
    )

    # Per-probe bounds
    default_probe_timeout_ms: int = 3000
    geo_timeout_ms: int = 10000
    network_timeout_ms: int = 2000

    # Quotas below this are treated as a restricted/private session
    private_quota_threshold_bytes: int = 120_000_000

    map_url: str = "https://www.google.com/maps?q={latitude},{longitude}"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ENVREPORT_", extra="ignore")

    def ensure_directories(self) -> None:
        Path(self.workspace_root).mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> AppConfig:
    return AppConfig()


def reset_settings_cache() -> None:
    get_settings.cache_clear()
