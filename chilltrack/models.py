"""Data models used throughout the POD photo pipeline."""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


class PhotoKind(str, enum.Enum):
    PHOTO = "photo"
    SIGNATURE = "signature"


class AssetStatus(str, enum.Enum):
    PENDING = "pending"
    AVAILABLE = "available"
    FAILED = "failed"


@dataclass
class PhotoCandidate:
    """Raw image reference discovered on a tracking page."""

    src: str
    width: int
    height: int
    alt: Optional[str] = None
    class_name: Optional[str] = None

    @property
    def text(self) -> str:
        """Lowercased alt and class text used for keyword checks."""
        return f"{self.alt or ''} {self.class_name or ''}".lower()


@dataclass
class FilteredPhoto:
    """Candidate that survived classification."""

    url: str
    kind: PhotoKind
    width: int
    height: int
    is_thumbnail: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass
class PhotoAsset:
    """Persisted photo record keyed by tracking token."""

    token: str
    url: str
    kind: PhotoKind = PhotoKind.PHOTO
    width: Optional[int] = None
    height: Optional[int] = None
    hash: Optional[str] = None
    status: AssetStatus = AssetStatus.PENDING
    fetched_at: dt.datetime = field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )
    error_message: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["status"] = self.status.value
        data["fetched_at"] = self.fetched_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhotoAsset":
        fetched_at = data.get("fetched_at")
        return cls(
            id=data.get("id"),
            token=data["token"],
            url=data["url"],
            kind=PhotoKind(data.get("kind", PhotoKind.PHOTO.value)),
            width=data.get("width"),
            height=data.get("height"),
            hash=data.get("hash"),
            status=AssetStatus(data.get("status", AssetStatus.PENDING.value)),
            fetched_at=(
                dt.datetime.fromisoformat(fetched_at)
                if fetched_at
                else dt.datetime.now(dt.timezone.utc)
            ),
            error_message=data.get("error_message"),
        )


@dataclass
class DeliveryRecord:
    """Consignment fields consumed by POD scoring.

    The carrier overloads ``payment_method``, ``amount_to_collect`` and
    ``amount_collected`` to carry driver-recorded temperatures.
    """

    expected_temperature: Optional[str] = None
    document_note: Optional[str] = None
    payment_method: Optional[str] = None
    amount_to_collect: Optional[str] = None
    amount_collected: Optional[str] = None
    delivery_signature_name: Optional[str] = None
    pickup_signature_name: Optional[str] = None
    delivery_live_track_link: Optional[str] = None
    pickup_live_track_link: Optional[str] = None
    delivery_received_file_count: Optional[int] = None
    pickup_received_file_count: Optional[int] = None
    delivery_outcome_at: Optional[str] = None
    shipper_company_name: Optional[str] = None


@dataclass
class ScoreInputs:
    photo_count: int
    has_signature: bool
    has_receiver_name: bool
    temperature_compliant: bool


@dataclass
class ScoreItem:
    points: int
    reason: str
    status: str


@dataclass
class ScoreBreakdown:
    photos: ScoreItem
    signature: ScoreItem
    receiver_name: ScoreItem
    temperature: ScoreItem
    total: int


@dataclass
class ScoreResult:
    quality_score: int
    breakdown: ScoreBreakdown


@dataclass
class PodMetrics:
    """Derived proof-of-delivery metrics for one consignment."""

    photo_count: int
    has_signature: bool
    has_receiver_name: bool
    temperature_compliant: bool
    has_tracking_link: bool
    delivery_time: Optional[str]
    quality_score: int
    breakdown: ScoreBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
