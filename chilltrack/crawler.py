"""Tracking page retrieval via Playwright or plain HTTP."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
from playwright.async_api import (
    Browser,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import IngestionConfig
from .content import parse_photo_candidates
from .images import hydrate_dimensions
from .models import PhotoCandidate
from .urls import is_valid_photo_url
from .utils import tracking_url

logger = logging.getLogger("chilltrack")

_COLLECT_IMAGES_JS = """
() => Array.from(document.querySelectorAll('img')).map(img => ({
    src: img.src,
    width: img.naturalWidth || img.width,
    height: img.naturalHeight || img.height,
    alt: img.alt || '',
    className: img.className || ''
}))
"""


class TrackingFetchError(RuntimeError):
    """Raised when a tracking page cannot be retrieved."""


def resolve_tracking_url(token_or_url: str, config: IngestionConfig) -> str:
    if "://" in token_or_url:
        return token_or_url
    return tracking_url(token_or_url.strip("/"), config.tracking_domain)


def fetch_tracking_html(
    token_or_url: str,
    config: IngestionConfig,
    session: Optional[requests.Session] = None,
) -> str:
    """Fetch the raw tracking page HTML without rendering JavaScript."""
    url = resolve_tracking_url(token_or_url, config)
    session = session or requests.Session()
    try:
        resp = session.get(
            url,
            timeout=config.request_timeout,
            headers={"User-Agent": config.user_agent},
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise TrackingFetchError(f"Failed to fetch {url}: {exc}") from exc
    return resp.text


def candidates_from_dom(descriptors: List[Dict[str, Any]]) -> List[PhotoCandidate]:
    """Convert DOM image descriptors into candidates."""
    candidates: List[PhotoCandidate] = []
    for item in descriptors:
        try:
            width = int(item.get("width") or 0)
            height = int(item.get("height") or 0)
        except (TypeError, ValueError):
            width = height = 0
        class_name = item.get("className")
        candidates.append(
            PhotoCandidate(
                src=item.get("src") or "",
                width=width,
                height=height,
                alt=item.get("alt") or "",
                class_name=class_name if isinstance(class_name, str) else "",
            )
        )
    return candidates


async def render_tracking_candidates(
    browser: Browser,
    token_or_url: str,
    config: IngestionConfig,
) -> List[PhotoCandidate]:
    """Render a tracking page and return its rendered ``<img>`` descriptors."""
    url = resolve_tracking_url(token_or_url, config)
    context = await browser.new_context(
        user_agent=config.user_agent,
        viewport={"width": 1280, "height": 720},
    )
    page = await context.new_page()
    page.set_default_navigation_timeout(config.navigation_timeout * 1000)

    async def _block(route):
        if route.request.resource_type in config.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    try:
        await page.route("**/*", _block)
        logger.info("Loading %s", url)
        try:
            await page.goto(url, wait_until="networkidle")
        except PlaywrightTimeoutError as exc:
            raise TrackingFetchError(f"Timeout while loading {url}: {exc}") from exc
        if config.wait_after_load:
            await page.wait_for_timeout(int(config.wait_after_load * 1000))
        try:
            await page.wait_for_selector(
                "img", timeout=config.image_wait_timeout * 1000
            )
        except PlaywrightTimeoutError:
            logger.info("No images found on %s, proceeding", url)
        descriptors = await page.evaluate(_COLLECT_IMAGES_JS)
    finally:
        await context.close()
    return candidates_from_dom(descriptors)


class TrackingPageFetcher:
    """Async candidate source backed by one headless Chromium instance.

    Use as an async context manager; calling the instance renders a tracking
    page for a token and returns its image candidates.
    """

    def __init__(self, config: IngestionConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> "TrackingPageFetcher":
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True)
        return self

    async def __aexit__(self, *exc_info) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
            self._playwright = None

    async def __call__(self, token: str) -> List[PhotoCandidate]:
        if self._browser is None:
            raise RuntimeError("TrackingPageFetcher used outside 'async with'")
        return await render_tracking_candidates(self._browser, token, self.config)


class HtmlTrackingFetcher:
    """Candidate source that parses static HTML instead of rendering it.

    Static pages often omit image sizes, so dimensionless candidates whose URL
    could hold a photo are downloaded and measured unless
    ``probe_dimensions`` is disabled.
    """

    def __init__(
        self,
        config: IngestionConfig,
        session: Optional[requests.Session] = None,
        probe_dimensions: bool = True,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.probe_dimensions = probe_dimensions

    def fetch(self, token: str) -> List[PhotoCandidate]:
        url = resolve_tracking_url(token, self.config)
        html = fetch_tracking_html(url, self.config, self.session)
        candidates = parse_photo_candidates(html, url)
        if self.probe_dimensions:
            candidates = hydrate_dimensions(
                candidates,
                self.session,
                self.config.request_timeout,
                should_probe=is_valid_photo_url,
            )
        return candidates

    async def __call__(self, token: str) -> List[PhotoCandidate]:
        return await asyncio.to_thread(self.fetch, token)
