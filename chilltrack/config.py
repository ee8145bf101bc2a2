"""Configuration objects and constants for the POD photo pipeline."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger("chilltrack.config")

DEFAULT_TRACKING_DOMAIN = "live.axylog.com"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class UrlPolicy(str, enum.Enum):
    """Successive generations of the photo URL acceptance rules."""

    LEGACY = "legacy"
    STRICT = "strict"
    EXPANDED = "expanded"


@dataclass(frozen=True)
class UrlRules:
    """Host and path lists used by the expanded URL policy."""

    denied_hosts: Tuple[str, ...] = (
        "tile.openstreetmap.org",
        "tiles.openstreetmap.org",
        "maps.googleapis.com",
        "maps.gstatic.com",
        "khms.googleapis.com",
        "api.mapbox.com",
        "tiles.mapbox.com",
        "server.arcgisonline.com",
        "basemaps.cartocdn.com",
        "google-analytics.com",
        "googletagmanager.com",
        "doubleclick.net",
        "connect.facebook.net",
        "facebook.com",
        "bat.bing.com",
        "hotjar.com",
        "segment.io",
        "mixpanel.com",
        "clarity.ms",
    )
    denied_path_suffixes: Tuple[str, ...] = (".js", ".css", ".map", ".ico")
    denied_path_markers: Tuple[str, ...] = ("/api/", "favicon", "logo", "/tiles/", "/tile/")
    azure_blob_suffix: str = ".blob.core.windows.net"
    carrier_domain: str = "axylog.com"
    cdn_hosts: Tuple[str, ...] = (
        "res.cloudinary.com",
        "cloudfront.net",
        "akamaized.net",
        "akamaihd.net",
        "fastly.net",
        "imgix.net",
        "azureedge.net",
    )
    image_extensions: Tuple[str, ...] = (
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".webp",
        ".bmp",
        ".tif",
        ".tiff",
        ".heic",
    )
    image_path_keywords: Tuple[str, ...] = (
        "photo",
        "image",
        "img",
        "picture",
        "pic",
        "file",
        "attachment",
        "media",
        "pod",
        "signature",
    )
    page_extensions: Tuple[str, ...] = (".html", ".htm", ".php", ".aspx", ".asp", ".jsp")


DEFAULT_URL_RULES = UrlRules()

LOADING_MARKERS: Tuple[str, ...] = ("ghost.svg", "loading")
LOGO_KEYWORDS: Tuple[str, ...] = ("logo",)
SIGNATURE_KEYWORDS: Tuple[str, ...] = ("signature", "firma", "sign")
BRAND_KEYWORDS: Tuple[str, ...] = ("logo", "brand", "chilltrack")


@dataclass(frozen=True)
class PhotoFilterPolicy:
    """Numeric thresholds and URL rules for one extraction tier."""

    name: str
    min_short_side: int
    min_pixel_area: int
    aspect_range: Tuple[float, float]
    min_long_side: int
    url_policy: UrlPolicy = UrlPolicy.EXPANDED
    brand_keywords: Tuple[str, ...] = ()
    is_thumbnail: Optional[bool] = None

    @property
    def accept_data_uris(self) -> bool:
        return self.url_policy is UrlPolicy.LEGACY


LEGACY_POLICY = PhotoFilterPolicy(
    name="legacy",
    min_short_side=350,
    min_pixel_area=200_000,
    aspect_range=(0.45, 1.9),
    min_long_side=600,
    url_policy=UrlPolicy.LEGACY,
)

THUMBNAIL_POLICY = PhotoFilterPolicy(
    name="thumbnail",
    min_short_side=150,
    min_pixel_area=40_000,
    aspect_range=(0.4, 2.5),
    min_long_side=200,
    brand_keywords=BRAND_KEYWORDS,
    is_thumbnail=True,
)

FULL_RESOLUTION_POLICY = PhotoFilterPolicy(
    name="full_resolution",
    min_short_side=350,
    min_pixel_area=200_000,
    aspect_range=(0.45, 1.9),
    min_long_side=600,
    is_thumbnail=False,
)

POLICY_PRESETS = {
    "legacy": LEGACY_POLICY,
    "thumbnail": THUMBNAIL_POLICY,
    "full": FULL_RESOLUTION_POLICY,
    "full_resolution": FULL_RESOLUTION_POLICY,
}


def get_policy(name: str) -> PhotoFilterPolicy:
    """Resolve a named policy preset."""
    key = name.strip().lower().replace("-", "_")
    try:
        return POLICY_PRESETS[key]
    except KeyError:
        raise ValueError(
            f"Unknown photo policy {name!r}; expected one of {sorted(POLICY_PRESETS)}"
        ) from None


@dataclass
class ScoringConfig:
    """Point table for the POD quality score."""

    photos_full: int = 25
    photos_two: int = -10
    photos_one: int = -20
    photos_none: int = -50
    min_full_photos: int = 3
    signature_points: int = 25
    receiver_name_points: int = 25
    temperature_points: int = 25
    single_value_tolerance: float = 2.0
    dual_zone_shippers: Tuple[str, ...] = ()


def _env_value(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a valid %s", name, raw, cast.__name__)
        return default


@dataclass
class IngestionConfig:
    """Settings that control tracking page retrieval and photo ingestion."""

    tracking_domain: str = DEFAULT_TRACKING_DOMAIN
    wait_after_load: float = 2.0
    navigation_timeout: float = 20.0
    image_wait_timeout: float = 8.0
    request_timeout: float = 15.0
    concurrency: int = 8
    max_retries: int = 3
    retry_backoff: float = 1.0
    rate_limit_delay: float = 0.5
    user_agent: str = DEFAULT_USER_AGENT
    blocked_resource_types: Tuple[str, ...] = ("font", "stylesheet")

    @classmethod
    def from_env(cls) -> "IngestionConfig":
        """Build a config, letting CHILLTRACK_* environment variables override defaults."""
        defaults = cls()
        return cls(
            tracking_domain=_env_value(
                "CHILLTRACK_TRACKING_DOMAIN", str, defaults.tracking_domain
            ),
            navigation_timeout=_env_value(
                "CHILLTRACK_NAVIGATION_TIMEOUT", float, defaults.navigation_timeout
            ),
            concurrency=_env_value("CHILLTRACK_CONCURRENCY", int, defaults.concurrency),
            max_retries=_env_value("CHILLTRACK_MAX_RETRIES", int, defaults.max_retries),
        )
