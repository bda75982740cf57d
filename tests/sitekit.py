# File: tests/sitekit.py
"""Synthetic sites for crawler tests."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

from aiohttp import web


@dataclass
class Page:
    """One route of a synthetic site."""

    body: str = ""
    status: int = 200
    content_type: str = "text/html"
    delay: float = 0.0
    location: Optional[str] = None


def links(*paths: str) -> str:
    """HTML body with one anchor per path."""
    anchors = "".join(f'<a href="{p}">{p}</a>' for p in paths)
    return f"<html><body>{anchors}</body></html>"


def build_site(pages: Dict[str, Page], hits: List[str]) -> web.Application:
    """Serve *pages*; unknown paths answer 404. Every request path is appended to *hits*."""
    app = web.Application()

    async def handler(request: web.Request) -> web.Response:
        hits.append(request.path)
        page = pages.get(request.path)
        if page is None:
            return web.Response(status=404, text="not found")
        if page.delay:
            await asyncio.sleep(page.delay)
        if page.location:
            raise web.HTTPFound(page.location)
        return web.Response(
            body=page.body.encode("utf-8"), status=page.status, content_type=page.content_type
        )

    app.router.add_route("GET", "/{tail:.*}", handler)
    return app
