#!/usr/bin/env python3
"""
Environment report CLI utilities.

Usage:
    python scripts/envreport_cli.py collect
    python scripts/envreport_cli.py send --target <chat id>
    python scripts/envreport_cli.py diagnostics
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from envreport_backend.config import get_settings, reset_settings_cache
from envreport_backend.services.capabilities import host_capabilities
from envreport_backend.services.delivery import create_delivery_sink
from envreport_backend.services.report_service import MissingTargetError, ReportService


def build_service() -> ReportService:
    reset_settings_cache()
    settings = get_settings()
    settings.ensure_directories()
    return ReportService(
        settings,
        capabilities_factory=lambda: host_capabilities(settings),
        sink=create_delivery_sink(settings),
    )


def cmd_collect(_: argparse.Namespace) -> None:
    service = build_service()
    report = asyncio.run(service.collect())
    print(service.render(report))


def cmd_send(args: argparse.Namespace) -> None:
    service = build_service()
    try:
        result = asyncio.run(service.collect_and_send(args.target))
    except MissingTargetError as exc:
        raise SystemExit(str(exc))
    print(result.text)
    print()
    print("-" * 40)
    if result.delivery.ok:
        print(f"Delivered to {args.target}")
    else:
        print(f"Delivery failed: {result.delivery.detail}")
        raise SystemExit(1)


def cmd_diagnostics(_: argparse.Namespace) -> None:
    reset_settings_cache()
    settings = get_settings()
    print("Configuration")
    print("-" * 40)
    print(f"Workspace: {settings.workspace_root}")
    print(f"Delivery enabled: {settings.delivery_enabled}")
    print(f"Telegram token: {'configured' if settings.telegram_token else 'missing'}")
    print(f"ipinfo token: {'configured' if settings.ipinfo_token else 'missing'}")
    print(f"gpsd: {settings.gpsd_host}:{settings.gpsd_port}")
    print(f"Latency target: {settings.latency_probe_host}:{settings.latency_probe_port}")
    print(f"Probe timeouts: default={settings.default_probe_timeout_ms} ms "
          f"geo={settings.geo_timeout_ms} ms network={settings.network_timeout_ms} ms")
    print(f"Private quota threshold: {settings.private_quota_threshold_bytes} bytes")
    print("Permissions:")
    for name, state in sorted(settings.permissions.items()):
        print(f"  {name}: {state}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Environment report utility CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log probe diagnostics")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("collect", help="Collect a report and print it")
    send_parser = sub.add_parser("send", help="Collect a report and deliver it")
    send_parser.add_argument("--target", required=True, help="Chat or target identifier")
    sub.add_parser("diagnostics", help="Show configuration")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "collect":
        cmd_collect(args)
    elif args.command == "send":
        cmd_send(args)
    elif args.command == "diagnostics":
        cmd_diagnostics(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
