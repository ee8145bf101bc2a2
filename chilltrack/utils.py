"""Utility helpers for tracking links and string normalization."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str, fallback: str = "token") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def extract_tracking_token(value: str) -> Optional[str]:
    """Return the tracking token from a tracking URL, or the value itself if it is bare."""
    if not value or not value.strip():
        return None
    value = value.strip()
    if "://" not in value:
        return value.strip("/") or None
    path = urlparse(value).path
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else None


def tracking_url(token: str, domain: str) -> str:
    """Build the public tracking page URL for a token."""
    return f"https://{domain}/{token}"
