"""Tiered photo extraction entry points."""

from __future__ import annotations

import logging
from typing import Iterable, List

from .classifier import classify
from .config import (
    FULL_RESOLUTION_POLICY,
    LEGACY_POLICY,
    THUMBNAIL_POLICY,
    PhotoFilterPolicy,
)
from .models import FilteredPhoto, PhotoCandidate, PhotoKind

logger = logging.getLogger("chilltrack.extractors")


def extract_with_policy(
    candidates: Iterable[PhotoCandidate], policy: PhotoFilterPolicy
) -> List[FilteredPhoto]:
    candidates = list(candidates)
    photos = classify(candidates, policy)
    signatures = sum(1 for photo in photos if photo.kind is PhotoKind.SIGNATURE)
    logger.debug(
        "%s extraction kept %d of %d candidates (%d signatures)",
        policy.name,
        len(photos),
        len(candidates),
        signatures,
    )
    return photos


def extract_thumbnails(candidates: Iterable[PhotoCandidate]) -> List[FilteredPhoto]:
    """Loose thresholds for fast card previews; output is marked as thumbnails."""
    return extract_with_policy(candidates, THUMBNAIL_POLICY)


def extract_full_resolution(candidates: Iterable[PhotoCandidate]) -> List[FilteredPhoto]:
    """Strict thresholds for the detail view."""
    return extract_with_policy(candidates, FULL_RESOLUTION_POLICY)


def filter_and_classify_photos(candidates: Iterable[PhotoCandidate]) -> List[FilteredPhoto]:
    """Single-tier extraction kept for callers that predate the tiered extractors."""
    return extract_with_policy(candidates, LEGACY_POLICY)
