from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .readings import ContentFilterVerdict, PrivacyVerdict
from .signals import Ok, SignalValue, Unavailable, describe_error

logger = logging.getLogger(__name__)

POSITIVE = "Positive"
NEGATIVE = "Negative"

DEFAULT_PRIVATE_QUOTA_THRESHOLD = 120_000_000


@dataclass
class PrivacyModeDetector:
    """
    Fuses weak signals into a restricted/private-session verdict.

    Signals in priority order, first decisive one wins:
    1. storage quota below ``quota_threshold_bytes``
    2. persistent store probe (create, verify, delete) failing
    3. legacy filesystem quota request being refused
    """

    name: str = "privacy_mode"
    quota_source: Callable[[], Awaitable[int | None]] | None = None
    store_probe: Callable[[], Awaitable[bool]] | None = None
    legacy_quota_request: Callable[[], Awaitable[bool]] | None = None
    quota_threshold_bytes: int = DEFAULT_PRIVATE_QUOTA_THRESHOLD
    timeout_ms: int = 3000

    async def run(self) -> SignalValue:
        if not (self.quota_source or self.store_probe or self.legacy_quota_request):
            return Unavailable("no privacy-mode capabilities")

        quota: int | None = None
        if self.quota_source is not None:
            try:
                quota = await self.quota_source()
            except Exception as exc:
                logger.debug("Quota estimate failed: %s", describe_error(exc))
            if quota is not None and quota < self.quota_threshold_bytes:
                return Ok(PrivacyVerdict(POSITIVE, "Quota", quota))

        if self.store_probe is not None:
            try:
                stored = await self.store_probe()
            except Exception as exc:
                logger.debug("Persistent store probe failed: %s", describe_error(exc))
                stored = False
            if not stored:
                return Ok(PrivacyVerdict(POSITIVE, "Storage", quota))

        if self.legacy_quota_request is not None:
            try:
                granted = await self.legacy_quota_request()
            except Exception as exc:
                logger.debug("Legacy quota request failed: %s", describe_error(exc))
                granted = None
            if granted is False:
                return Ok(PrivacyVerdict(POSITIVE, "LegacyFS", quota))

        return Unavailable("no decisive signal")


@dataclass
class ContentFilterDetector:
    """
    Detects ad/content filtering and records every method that fired.

    Checks run in priority order and stop at the first decisive one: a hidden
    bait element, a sinkholed bait host, a blocked fetch, a known blocking
    library. A completed fetch proves nothing (opaque responses cannot be
    inspected), so it only falls through. The cookie round-trip always runs when
    available; a failed read-back corroborates a positive verdict.
    """

    name: str = "content_filter"
    bait_hidden: Callable[[], Awaitable[bool]] | None = None
    dns_sinkholed: Callable[[], Awaitable[bool]] | None = None
    blocked_fetch: Callable[[], Awaitable[Any]] | None = None
    library_flag: Callable[[], Awaitable[bool]] | None = None
    cookie_roundtrip: Callable[[], Awaitable[bool]] | None = None
    timeout_ms: int = 3000

    async def run(self) -> SignalValue:
        sources = (
            self.bait_hidden,
            self.dns_sinkholed,
            self.blocked_fetch,
            self.library_flag,
            self.cookie_roundtrip,
        )
        if not any(source is not None for source in sources):
            return Unavailable("no content-filter capabilities")

        methods: list[str] = []
        if await self._flag("DOM", self.bait_hidden):
            methods.append("DOM")
        elif await self._flag("DNS", self.dns_sinkholed):
            methods.append("DNS")
        elif await self._fetch_blocked():
            methods.append("Network")
        elif await self._flag("Library", self.library_flag):
            methods.append("Library")

        cookies_blocked = await self._cookies_blocked()
        if methods and cookies_blocked == "Yes":
            methods.append("Cookie")

        detected = POSITIVE if methods else NEGATIVE
        return Ok(ContentFilterVerdict(detected, tuple(methods), cookies_blocked))

    async def _flag(self, label: str, source: Callable[[], Awaitable[bool]] | None) -> bool:
        if source is None:
            return False
        try:
            return bool(await source())
        except Exception as exc:
            logger.debug("Content-filter %s check inconclusive: %s", label, describe_error(exc))
            return False

    async def _fetch_blocked(self) -> bool:
        if self.blocked_fetch is None:
            return False
        try:
            await self.blocked_fetch()
        except Exception as exc:
            logger.debug("Bait fetch failed: %s", describe_error(exc))
            return True
        return False

    async def _cookies_blocked(self) -> str:
        if self.cookie_roundtrip is None:
            return "Unknown"
        try:
            return "No" if await self.cookie_roundtrip() else "Yes"
        except Exception as exc:
            logger.debug("Cookie round-trip failed: %s", describe_error(exc))
            return "Yes"
