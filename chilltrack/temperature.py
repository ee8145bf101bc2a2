"""Expected-temperature parsing and cold-chain compliance checks."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import ScoringConfig
from .models import DeliveryRecord

logger = logging.getLogger("chilltrack.temperature")

NO_READING_SENTINEL = 999.0

_NUMBER = r"(?<![\d.])([+-]?\d+(?:\.\d+)?)"
_UNIT = r"(\s*°?\s*C(?![a-z]))"
RANGE_PATTERN = re.compile(
    _NUMBER + _UNIT + r"?\s*(?:to|–|—|-)\s*" + _NUMBER + _UNIT + "?",
    re.IGNORECASE,
)
SINGLE_PATTERN = re.compile(_NUMBER + _UNIT, re.IGNORECASE)


@dataclass(frozen=True)
class TemperatureRange:
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


FROZEN_RANGE = TemperatureRange(-25.0, -15.0)
CHILLED_RANGE = TemperatureRange(0.0, 5.0)
AMBIENT_RANGE = TemperatureRange(0.0, 40.0)

ZONE_RANGES = (
    ("FROZEN", FROZEN_RANGE),
    ("CHILL", CHILLED_RANGE),
    ("AMBIENT", AMBIENT_RANGE),
)

READING_FIELDS = ("payment_method", "amount_to_collect", "amount_collected")


def parse_required_temperature(
    label: Optional[str], tolerance: float = 2.0
) -> Optional[TemperatureRange]:
    """Parse labels like ``"Frozen -18C to -20C"`` or ``"+14°C"`` into a range.

    Numbers only count when they carry a ``C`` or ``°C`` unit (on either
    bound of a range); such numbers win over zone keywords. A single value is
    widened by ``tolerance`` degrees either side. Returns ``None`` when nothing
    parses.
    """
    if not label or not label.strip():
        return None

    for match in RANGE_PATTERN.finditer(label):
        # A bare "4471-22" is a reference number, not a temperature.
        if match.group(2) or match.group(4):
            first, second = float(match.group(1)), float(match.group(3))
            return TemperatureRange(min(first, second), max(first, second))

    match = SINGLE_PATTERN.search(label)
    if match:
        value = float(match.group(1))
        return TemperatureRange(value - tolerance, value + tolerance)

    upper = label.upper()
    for keyword, zone in ZONE_RANGES:
        if keyword in upper:
            return zone
    return None


def _parse_reading(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    text = str(raw).strip()
    if not text or text.lower() == "null":
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value) or value == NO_READING_SENTINEL:
        return None
    return value


def collect_temperature_readings(delivery: DeliveryRecord) -> List[float]:
    """Collect driver-recorded temperatures, skipping blanks and the 999 sentinel."""
    readings: List[float] = []
    for name in READING_FIELDS:
        value = _parse_reading(getattr(delivery, name))
        if value is not None:
            readings.append(value)
    return readings


def any_reading_in_range(readings: Iterable[float], required: TemperatureRange) -> bool:
    return any(required.contains(value) for value in readings)


def readings_compliant(
    label: Optional[str], readings: Iterable[float], tolerance: float = 2.0
) -> bool:
    """Return whether any usable reading lies inside the range parsed from ``label``."""
    # TODO: product review pending on treating unknown expectations or
    # missing readings as compliant.
    required = parse_required_temperature(label, tolerance)
    if required is None:
        logger.debug("No temperature requirement parsed from %r", label)
        return True
    usable = [value for value in readings if value != NO_READING_SENTINEL]
    if not usable:
        return True
    return any_reading_in_range(usable, required)


def _is_dual_zone(delivery: DeliveryRecord, config: ScoringConfig) -> bool:
    shipper = (delivery.shipper_company_name or "").upper()
    return any(name.upper() in shipper for name in config.dual_zone_shippers if name)


def check_temperature_compliance(
    delivery: DeliveryRecord, config: Optional[ScoringConfig] = None
) -> bool:
    """Return whether any recorded temperature falls inside the expected range.

    Missing or unparseable expectations and missing readings both count as
    compliant.
    """
    config = config or ScoringConfig()
    readings = collect_temperature_readings(delivery)

    if _is_dual_zone(delivery, config):
        return (
            len(readings) >= 2
            and any_reading_in_range(readings, CHILLED_RANGE)
            and any_reading_in_range(readings, FROZEN_RANGE)
        )

    label = delivery.expected_temperature or delivery.document_note
    return readings_compliant(label, readings, config.single_value_tolerance)
