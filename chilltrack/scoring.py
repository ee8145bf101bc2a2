"""POD quality scoring."""

from __future__ import annotations

import logging
from typing import Optional

from .config import ScoringConfig
from .models import (
    DeliveryRecord,
    PodMetrics,
    ScoreBreakdown,
    ScoreInputs,
    ScoreItem,
    ScoreResult,
)
from .temperature import check_temperature_compliance, collect_temperature_readings

logger = logging.getLogger("chilltrack.scoring")

MAX_SCORE = 100


def _photo_item(photo_count: int, config: ScoringConfig) -> ScoreItem:
    if photo_count >= config.min_full_photos:
        return ScoreItem(config.photos_full, f"{photo_count} photos", "pass")
    if photo_count == 2:
        return ScoreItem(
            config.photos_two,
            f"2 photos ({config.min_full_photos} required for full points)",
            "partial",
        )
    if photo_count == 1:
        return ScoreItem(
            config.photos_one,
            f"Only 1 photo ({config.min_full_photos} required for full points)",
            "partial",
        )
    return ScoreItem(config.photos_none, "No photos captured", "fail")


def _flag_item(present: bool, points: int, passed: str, failed: str) -> ScoreItem:
    if present:
        return ScoreItem(points, passed, "pass")
    return ScoreItem(0, failed, "fail")


def score(inputs: ScoreInputs, config: Optional[ScoringConfig] = None) -> ScoreResult:
    """Sum the rule table and clamp the result to ``[0, 100]``."""
    config = config or ScoringConfig()
    photos = _photo_item(max(0, inputs.photo_count), config)
    signature = _flag_item(
        inputs.has_signature, config.signature_points, "Signature captured", "No signature"
    )
    receiver_name = _flag_item(
        inputs.has_receiver_name,
        config.receiver_name_points,
        "Receiver name recorded",
        "No receiver name",
    )
    temperature = _flag_item(
        inputs.temperature_compliant,
        config.temperature_points,
        "Temperature compliant",
        "Temperature out of range",
    )
    raw_total = photos.points + signature.points + receiver_name.points + temperature.points
    total = min(MAX_SCORE, max(0, raw_total))
    return ScoreResult(
        quality_score=total,
        breakdown=ScoreBreakdown(
            photos=photos,
            signature=signature,
            receiver_name=receiver_name,
            temperature=temperature,
            total=total,
        ),
    )


def photo_count_from_file_counts(delivery: DeliveryRecord) -> int:
    """Estimate photos from the carrier's file counters, which include one extra file."""
    total = (delivery.delivery_received_file_count or 0) + (
        delivery.pickup_received_file_count or 0
    )
    return max(0, total - 1)


def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def calculate_pod_metrics(
    delivery: DeliveryRecord,
    photo_count: Optional[int] = None,
    config: Optional[ScoringConfig] = None,
) -> PodMetrics:
    """Derive POD metrics for a delivery.

    ``photo_count`` should be the number of stored ``photo`` assets for the
    delivery's tracking token; without it the carrier file counters are used.
    """
    config = config or ScoringConfig()
    if photo_count is None:
        photo_count = photo_count_from_file_counts(delivery)
    signed = _has_text(delivery.delivery_signature_name) or _has_text(
        delivery.pickup_signature_name
    )
    compliant = check_temperature_compliance(delivery, config)
    inputs = ScoreInputs(
        photo_count=photo_count,
        has_signature=signed,
        has_receiver_name=signed,
        temperature_compliant=compliant,
    )
    result = score(inputs, config)

    readings = collect_temperature_readings(delivery)
    if readings:
        recorded = ", ".join(f"{value:g}" for value in readings)
        if compliant:
            result.breakdown.temperature.reason = f"Temperature compliant ({recorded}°C)"
        else:
            result.breakdown.temperature.reason = (
                f"Temperature out of range ({recorded}°C, expected "
                f"{delivery.expected_temperature or delivery.document_note})"
            )
    elif compliant:
        result.breakdown.temperature.reason = "No temperature requirement or reading"

    logger.debug(
        "POD score %d (photos=%d, signed=%s, compliant=%s)",
        result.quality_score,
        photo_count,
        signed,
        compliant,
    )
    return PodMetrics(
        photo_count=photo_count,
        has_signature=signed,
        has_receiver_name=signed,
        temperature_compliant=compliant,
        has_tracking_link=bool(
            delivery.delivery_live_track_link or delivery.pickup_live_track_link
        ),
        delivery_time=delivery.delivery_outcome_at,
        quality_score=result.quality_score,
        breakdown=result.breakdown,
    )


def quality_tier(quality_score: int) -> str:
    if quality_score >= 90:
        return "Excellent"
    if quality_score >= 75:
        return "Good"
    if quality_score >= 60:
        return "Fair"
    return "Poor"
