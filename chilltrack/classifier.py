"""Separate delivery photos and signatures from page chrome.

Signature detection runs before the photo thresholds: a signature crop is
thin and wide, so the photo aspect-ratio rule would otherwise discard it as a
banner. The signature test is deliberately conjunctive so that ordinary
photos never qualify.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import (
    LEGACY_POLICY,
    LOADING_MARKERS,
    LOGO_KEYWORDS,
    SIGNATURE_KEYWORDS,
    PhotoFilterPolicy,
)
from .models import FilteredPhoto, PhotoCandidate, PhotoKind
from .urls import is_valid_photo_url

logger = logging.getLogger("chilltrack.classifier")

MIN_DIMENSION = 50
MAX_PLACEHOLDER_SQUARE = 200

SIGNATURE_MAX_HEIGHT = 220
SIGNATURE_UNLABELLED_MAX_HEIGHT = 180
SIGNATURE_MIN_ASPECT = 3.0
SIGNATURE_MIN_WIDTH = 300
SIGNATURE_MAX_WIDTH = 1200
SIGNATURE_MAX_AREA = 120_000
SIGNATURE_MIN_SHORT_SIDE = 120


@dataclass(frozen=True)
class Geometry:
    width: int
    height: int

    @property
    def short_side(self) -> int:
        return min(self.width, self.height)

    @property
    def long_side(self) -> int:
        return max(self.width, self.height)

    @property
    def pixel_area(self) -> int:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / max(self.height, 1)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _rejection_reason(candidate: PhotoCandidate) -> Optional[str]:
    """Return why a candidate is unusable regardless of tier, or ``None``."""
    if not candidate.src:
        return "empty src"
    if candidate.width < MIN_DIMENSION or candidate.height < MIN_DIMENSION:
        return "too small"
    if _contains_any(candidate.src, LOADING_MARKERS):
        return "loading placeholder"
    if _contains_any(candidate.text, LOGO_KEYWORDS):
        return "logo"
    if candidate.width == candidate.height and candidate.width <= MAX_PLACEHOLDER_SQUARE:
        return "placeholder tile"
    return None


def _has_brand_marker(candidate: PhotoCandidate, keywords: Iterable[str]) -> bool:
    haystack = f"{candidate.src} {candidate.text}".lower()
    return _contains_any(haystack, keywords)


def is_signature(candidate: PhotoCandidate) -> bool:
    """Return ``True`` when the candidate has the shape of a signature capture."""
    geometry = Geometry(candidate.width, candidate.height)
    dimension_match = (
        geometry.height <= SIGNATURE_MAX_HEIGHT
        and geometry.aspect_ratio >= SIGNATURE_MIN_ASPECT
        and SIGNATURE_MIN_WIDTH <= geometry.width <= SIGNATURE_MAX_WIDTH
        and geometry.pixel_area <= SIGNATURE_MAX_AREA
    )
    if not dimension_match:
        return False
    if _contains_any(candidate.text, SIGNATURE_KEYWORDS):
        return True
    return geometry.height <= SIGNATURE_UNLABELLED_MAX_HEIGHT


def _accept_signature(candidate: PhotoCandidate, policy: PhotoFilterPolicy) -> bool:
    geometry = Geometry(candidate.width, candidate.height)
    return (
        geometry.short_side >= SIGNATURE_MIN_SHORT_SIDE
        and geometry.pixel_area <= SIGNATURE_MAX_AREA
        and is_valid_photo_url(candidate.src, policy.url_policy)
    )


def _photo_rejection(candidate: PhotoCandidate, policy: PhotoFilterPolicy) -> Optional[str]:
    geometry = Geometry(candidate.width, candidate.height)
    low, high = policy.aspect_range
    if geometry.short_side < policy.min_short_side:
        return "short side"
    if geometry.pixel_area < policy.min_pixel_area:
        return "pixel area"
    if not low <= geometry.aspect_ratio <= high:
        return "aspect ratio"
    if geometry.long_side < policy.min_long_side:
        return "long side"
    if not is_valid_photo_url(candidate.src, policy.url_policy):
        return "url"
    return None


def classify_candidate(
    candidate: PhotoCandidate, policy: PhotoFilterPolicy = LEGACY_POLICY
) -> Optional[FilteredPhoto]:
    """Classify one candidate, returning ``None`` when it is dropped."""
    reason = _rejection_reason(candidate)
    if reason is None and policy.brand_keywords and _has_brand_marker(
        candidate, policy.brand_keywords
    ):
        reason = "brand"
    if reason:
        logger.debug("Dropping %s (%s)", candidate.src[:120], reason)
        return None

    if is_signature(candidate):
        if not _accept_signature(candidate, policy):
            logger.debug("Dropping signature %s", candidate.src[:120])
            return None
        return FilteredPhoto(
            url=candidate.src,
            kind=PhotoKind.SIGNATURE,
            width=candidate.width,
            height=candidate.height,
            is_thumbnail=policy.is_thumbnail,
        )

    reason = _photo_rejection(candidate, policy)
    if reason:
        logger.debug(
            "Dropping %s %dx%d under %s policy (%s)",
            candidate.src[:120],
            candidate.width,
            candidate.height,
            policy.name,
            reason,
        )
        return None
    return FilteredPhoto(
        url=candidate.src,
        kind=PhotoKind.PHOTO,
        width=candidate.width,
        height=candidate.height,
        is_thumbnail=policy.is_thumbnail,
    )


def classify(
    candidates: Iterable[PhotoCandidate], policy: PhotoFilterPolicy = LEGACY_POLICY
) -> List[FilteredPhoto]:
    """Partition candidates into photos and signatures, dropping everything else."""
    results: List[FilteredPhoto] = []
    for candidate in candidates:
        photo = classify_candidate(candidate, policy)
        if photo is not None:
            results.append(photo)
    return results
