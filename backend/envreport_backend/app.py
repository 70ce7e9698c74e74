from __future__ import annotations

from typing import Callable

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from .config import AppConfig, get_settings
from .routes import health, reports
from .services.capabilities import Capabilities, host_capabilities
from .services.delivery import DeliverySink, create_delivery_sink
from .services.report_service import ReportService


def create_app(
    capabilities_factory: Callable[[], Capabilities] | None = None,
    sink: DeliverySink | None = None,
) -> FastAPI:
    """Create the FastAPI application that collects and delivers environment reports."""
    settings: AppConfig = get_settings()
    settings.ensure_directories()

    app = FastAPI(
        title="Environment Report",
        version="0.1.0",
        description="Collects host environment signals into one report and delivers it to a chat target.",
        contact={"name": "Environment Report Team"},
    )

    if capabilities_factory is None:

        def capabilities_factory() -> Capabilities:
            return host_capabilities(settings)

    app.state.settings = settings
    app.state.report_service = ReportService(
        settings,
        capabilities_factory=capabilities_factory,
        sink=sink or create_delivery_sink(settings),
    )

    # The consent page is served from a separate origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")

    @app.get("/api/config", tags=["config"])
    async def read_config() -> dict[str, object]:
        return {
            "delivery_enabled": settings.delivery_enabled,
            "telegram_token_configured": bool(settings.telegram_token),
            "ipinfo_token_configured": bool(settings.ipinfo_token),
            "gpsd": f"{settings.gpsd_host}:{settings.gpsd_port}",
            "permissions": settings.permissions,
            "default_probe_timeout_ms": settings.default_probe_timeout_ms,
            "geo_timeout_ms": settings.geo_timeout_ms,
            "network_timeout_ms": settings.network_timeout_ms,
            "private_quota_threshold_bytes": settings.private_quota_threshold_bytes,
        }

    return app
