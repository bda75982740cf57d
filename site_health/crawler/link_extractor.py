# site_health/crawler/link_extractor.py
"""
Link extraction and URL normalization utilities for SiteHealth.

``extract_links`` yields raw ``href`` values from anchors; ``normalize_link``
turns one of them into the canonical key used by the frontier, or rejects it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, SoupStrainer
from bs4.element import Tag

from site_health.config import CrawlerConfig

logger = logging.getLogger("SiteHealth")

_DEFAULT_PORTS = {"http": 80, "https": 443}
_FOLLOWABLE_SCHEMES = ("http", "https")


@dataclass(frozen=True, slots=True)
class LinkPolicy:
    """Which same-origin links are worth following."""

    strip_query: bool = True
    skip_extensions: Tuple[str, ...] = (".pdf", ".jpg", ".png", ".zip")
    skip_prefixes: Tuple[str, ...] = ("/wp-admin/", "/wp-content/")

    @classmethod
    def from_config(cls, config: CrawlerConfig) -> LinkPolicy:
        return cls(
            strip_query=config.strip_query,
            skip_extensions=tuple(e.lower() for e in config.skip_extensions),
            skip_prefixes=tuple(p.lower() for p in config.skip_prefixes),
        )

    def is_skipped(self, path: str) -> bool:
        """True for non-content resources: known file extensions or service directories."""
        lowered = path.lower()
        if self.skip_extensions and lowered.endswith(self.skip_extensions):
            return True
        return any(lowered.startswith(prefix) for prefix in self.skip_prefixes)


DEFAULT_POLICY = LinkPolicy()


def _netloc(host: str, port: Optional[int], scheme: str) -> str:
    if ":" in host:
        host = f"[{host}]"
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return host
    return f"{host}:{port}"


def _domain_key(domain: str, scheme: str) -> str:
    parts = urlsplit(f"//{domain.strip().lower()}")
    return _netloc(parts.hostname or "", parts.port, scheme)


def canonical_root(domain: str, scheme: str = "https") -> str:
    """Root URL of *domain*: ``scheme://host/``."""
    return urlunsplit((scheme, _domain_key(domain, scheme), "/", "", ""))


def normalize_link(
    raw: str,
    page_url: str,
    domain: str,
    policy: LinkPolicy = DEFAULT_POLICY,
) -> Optional[str]:
    """
    Resolve *raw* against *page_url* and return its canonical form.

    Returns None when the link is not followable: other scheme, other host,
    non-content resource, or anything that fails to parse.
    """
    try:
        raw = raw.strip()
        if not raw:
            return None
        parts = urlsplit(urljoin(page_url, raw))
        scheme = parts.scheme.lower()
        if scheme not in _FOLLOWABLE_SCHEMES or not parts.hostname:
            return None
        netloc = _netloc(parts.hostname, parts.port, scheme)
        if netloc != _domain_key(domain, scheme):
            return None
        path = parts.path or "/"
        if policy.is_skipped(path):
            return None
        query = "" if policy.strip_query else parts.query
        return urlunsplit((scheme, netloc, path, query, ""))
    except (ValueError, TypeError, AttributeError):
        return None


def display_path(url: str) -> str:
    """Path (plus query, if kept) of a canonical URL, as shown in reports."""
    parts = urlsplit(url)
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


def extract_links(html: str) -> Iterator[str]:
    """
    Yield raw ``href`` values of ``<a>`` elements in *html*.

    Single pass, never raises: a broken document yields nothing, a broken
    anchor is skipped.
    """
    try:
        soup = BeautifulSoup(html, "html.parser", parse_only=SoupStrainer("a"))
    except Exception as exc:
        logger.debug("HTML parse failed: %s", exc)
        return
    for tag in soup.find_all("a", href=True):
        try:
            if not isinstance(tag, Tag):
                continue
            href_val = tag.get("href")
            if not isinstance(href_val, str):
                continue
            href = href_val.strip()
        except (AttributeError, TypeError, ValueError) as exc:
            logger.debug("Skipping malformed anchor: %s", exc)
            continue
        if href:
            yield href


__all__ = [
    "LinkPolicy",
    "DEFAULT_POLICY",
    "canonical_root",
    "normalize_link",
    "display_path",
    "extract_links",
]
