"""Turn tracking page HTML into photo candidates."""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .models import PhotoCandidate

_DIMENSION_PATTERN = re.compile(r"^\s*(\d+)(?:\.\d+)?\s*(?:px)?\s*$", re.IGNORECASE)
_STYLE_DIMENSION = re.compile(r"(?<![-\w])(width|height)\s*:\s*(\d+)(?:\.\d+)?px", re.IGNORECASE)


def _clean_content(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove tags that never carry delivery photos."""
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup


def _parse_dimension(value: Optional[str]) -> int:
    if not value:
        return 0
    match = _DIMENSION_PATTERN.match(str(value))
    return int(match.group(1)) if match else 0


def _style_dimensions(style: Optional[str]) -> dict:
    if not style:
        return {}
    return {name.lower(): int(size) for name, size in _STYLE_DIMENSION.findall(style)}


def _class_text(value) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return value or ""


def parse_photo_candidates(html: str, base_url: str) -> List[PhotoCandidate]:
    """Extract ``<img>`` descriptors from HTML.

    Dimensions come from the ``width``/``height`` attributes, falling back to
    inline ``style`` pixel sizes; missing dimensions are reported as 0.
    """
    soup = _clean_content(BeautifulSoup(html, "html.parser"))
    candidates: List[PhotoCandidate] = []
    for img in soup.find_all("img"):
        src = (img.get("src") or img.get("data-src") or "").strip()
        if not src:
            continue
        if not src.startswith("data:"):
            src = urljoin(base_url, src)
        style = _style_dimensions(img.get("style"))
        width = _parse_dimension(img.get("width")) or style.get("width", 0)
        height = _parse_dimension(img.get("height")) or style.get("height", 0)
        candidates.append(
            PhotoCandidate(
                src=src,
                width=width,
                height=height,
                alt=(img.get("alt") or "").strip(),
                class_name=_class_text(img.get("class")),
            )
        )
    return candidates
