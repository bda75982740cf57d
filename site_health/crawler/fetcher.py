# site_health/crawler/fetcher.py
"""
Fetcher module: one HTTP GET per URL with a hard timeout, classified into a PageOutcome.
"""
from __future__ import annotations

import asyncio
import logging

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_health.crawler.models import PageOutcome

logger = logging.getLogger("SiteHealth")

_HTML_TYPES = ("text/html", "application/xhtml+xml")


class Fetcher:
    """Performs a single bounded GET and classifies the final response. No retries."""

    def __init__(self, session: ClientSession, timeout: float = 8.0) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)

    async def fetch(self, url: str) -> PageOutcome:
        """
        Fetch *url*, following redirects.

        Never raises for network or HTTP failures; cancellation propagates.
        """
        try:
            async with self.session.get(
                url, timeout=self.timeout, allow_redirects=True, raise_for_status=False
            ) as resp:
                status = resp.status
                if status == 404:
                    return PageOutcome.not_found(url)
                if 200 <= status < 300:
                    mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                    if mime in _HTML_TYPES:
                        text = await resp.text(errors="replace")
                        return PageOutcome.html(url, text, status)
                    return PageOutcome.non_html(url, status)
                if 300 <= status < 400:
                    return PageOutcome.non_html(url, status)
                return PageOutcome.other_error(url, status, reason=f"HTTP {status}")
        except asyncio.TimeoutError:
            logger.debug("Timeout after %ss: %s", self.timeout.total, url)
            return PageOutcome.timeout(url)
        except (ClientError, OSError, UnicodeError) as exc:
            logger.debug("Fetch failed %s: %s", url, exc)
            return PageOutcome.other_error(url, reason=str(exc) or type(exc).__name__)


__all__ = ["Fetcher"]
