"""Download a website icon and cache it as PNG next to the store.

Two sources are supported:
  - service: ask a favicon service (Google s2 by default) for the domain
  - page: fetch the page, follow its ``<link rel=icon>`` (or /favicon.ico)

Any network, HTTP or decode failure yields ``FaviconResult(ok=False)``; the
caller decides how to tell the user. Nothing here raises for a bad URL.
"""

from __future__ import annotations

import io
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urljoin, urlparse

import httpx
import tldextract  # type: ignore
from bs4 import BeautifulSoup  # type: ignore
from PIL import Image, UnidentifiedImageError

from .log import get_logger

log = get_logger(__name__)

# Bundled public suffix snapshot only; never refresh it over the network.
_extract = tldextract.TLDExtract(suffix_list_urls=())


@dataclass
class FaviconResult:
    ok: bool
    path: Optional[Path]
    icon_url: Optional[str]
    fetch_ms: int
    error: Optional[str] = None


def fetch_favicon(
    url: str,
    dest: Path,
    *,
    source: str = "service",
    service_url: str = "https://www.google.com/s2/favicons?domain={domain}&sz={size}",
    size: int = 256,
    timeout_s: int = 10,
    user_agent: str = "quickmarks",
    max_bytes: int = 2_000_000,
) -> FaviconResult:
    t0 = time.time()
    timeout = httpx.Timeout(timeout_s, connect=timeout_s)
    headers = {"User-Agent": user_agent}
    icon_url: Optional[str] = None
    try:
        with httpx.Client(follow_redirects=True, headers=headers, timeout=timeout) as client:
            if source.lower() == "page":
                icon_url = _icon_url_from_page(client, url, max_bytes=max_bytes)
            else:
                icon_url = service_icon_url(url, service_url=service_url, size=size)
            if not icon_url:
                raise ValueError(f"no icon location for {url!r}")
            r = client.get(icon_url)
            r.raise_for_status()
            content = r.content[:max_bytes]
        save_png(content, dest)
        ms = int((time.time() - t0) * 1000)
        log.debug("Cached icon for %s from %s in %d ms", url, icon_url, ms)
        return FaviconResult(ok=True, path=dest, icon_url=icon_url, fetch_ms=ms)
    except (
        httpx.HTTPError,
        httpx.InvalidURL,
        OSError,
        ValueError,
        UnidentifiedImageError,
        Image.DecompressionBombError,
    ) as e:
        ms = int((time.time() - t0) * 1000)
        log.warning("Could not fetch icon for %s: %s", url, e)
        return FaviconResult(ok=False, path=None, icon_url=icon_url, fetch_ms=ms, error=str(e))


def service_icon_url(url: str, *, service_url: str, size: int) -> Optional[str]:
    domain = domain_of(url)
    if not domain:
        return None
    return service_url.format(domain=quote(domain, safe=""), size=size)


def domain_of(url: str) -> str:
    """Host name of ``url``; tolerates input typed without a scheme."""
    ext = _extract(url.strip())
    if ext.fqdn:
        return ext.fqdn
    # IPs, localhost and other hosts without a public suffix.
    p = urlparse(url if "://" in url else f"http://{url}")
    return p.hostname or ""


def save_png(content: bytes, dest: Path) -> None:
    if not content:
        raise ValueError("empty icon response")
    with Image.open(io.BytesIO(content)) as img:
        img.load()
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        dest.parent.mkdir(parents=True, exist_ok=True)
        img.save(dest, format="PNG")


def _icon_url_from_page(client: httpx.Client, url: str, *, max_bytes: int) -> Optional[str]:
    page_url = url if "://" in url else f"https://{url}"
    r = client.get(page_url)
    r.raise_for_status()
    return extract_icon_url(r.content[:max_bytes], base_url=str(r.url))


def extract_icon_url(content: bytes, *, base_url: str) -> Optional[str]:
    if content:
        soup = BeautifulSoup(content, "lxml")
        # Prefer explicit icon declarations.
        icon_rels = {"icon", "shortcut icon", "apple-touch-icon", "mask-icon"}
        for link in soup.find_all("link"):
            rel = " ".join([x.lower() for x in (link.get("rel") or [])]) if link.get("rel") else ""
            href = (link.get("href") or "").strip()
            if not href:
                continue
            if rel in icon_rels or "icon" in rel:
                return urljoin(base_url, href)
    # Fallback to conventional favicon location.
    p = urlparse(base_url)
    if p.scheme and p.netloc:
        return f"{p.scheme}://{p.netloc}/favicon.ico"
    return None
