"""Image probing used when a tracking page omits image dimensions."""

from __future__ import annotations

import io
import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

import requests
from filetype import guess
from PIL import Image, UnidentifiedImageError

from .models import PhotoCandidate

logger = logging.getLogger("chilltrack")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MIN_IMAGE_BYTES = 512
ALLOWED_IMAGE_TYPES = {"png", "jpg", "jpeg", "gif", "webp", "bmp", "tiff"}


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def measure_image(data: bytes) -> Optional[Tuple[int, int]]:
    """Return ``(width, height)`` of an encoded image, or ``None`` if unreadable."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError) as exc:
        logger.debug("Unable to read image dimensions: %s", exc)
        return None


def probe_dimensions(
    session: requests.Session, url: str, timeout: float = 15.0
) -> Optional[Tuple[int, int]]:
    """Download ``url`` and measure it; responses outside the size limits are skipped."""
    try:
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return None

    data = resp.content
    if len(data) < MIN_IMAGE_BYTES:
        logger.warning("Skipping %s: response too small", url)
        return None
    if len(data) > MAX_IMAGE_BYTES:
        logger.warning("Skipping %s: image larger than %s bytes", url, MAX_IMAGE_BYTES)
        return None

    extension = detect_image_format(data)
    if not extension or extension not in ALLOWED_IMAGE_TYPES:
        logger.warning(
            "Skipping %s: unsupported image type (Content-Type=%s)",
            url,
            resp.headers.get("Content-Type", ""),
        )
        return None
    return measure_image(data)


def hydrate_dimensions(
    candidates: List[PhotoCandidate],
    session: Optional[requests.Session] = None,
    timeout: float = 15.0,
    should_probe: Optional[Callable[[str], bool]] = None,
) -> List[PhotoCandidate]:
    """Fill in missing width/height by downloading dimensionless http(s) candidates.

    Candidates that already carry dimensions, that ``should_probe`` rejects, or
    that cannot be measured are returned unchanged.
    """
    session = session or requests.Session()
    measured: dict = {}
    hydrated: List[PhotoCandidate] = []
    for candidate in candidates:
        if (
            (candidate.width and candidate.height)
            or not candidate.src.startswith(("http://", "https://"))
            or (should_probe is not None and not should_probe(candidate.src))
        ):
            hydrated.append(candidate)
            continue
        if candidate.src not in measured:
            measured[candidate.src] = probe_dimensions(session, candidate.src, timeout)
        size = measured[candidate.src]
        if size is None:
            hydrated.append(candidate)
            continue
        width, height = size
        hydrated.append(replace(candidate, width=width, height=height))
    return hydrated
