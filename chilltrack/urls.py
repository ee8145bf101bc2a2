"""Photo URL validation.

Three generations of acceptance rules are kept side by side because the
photo count, and therefore the POD score, depends on which one a caller uses:

* ``LEGACY`` accepts ``data:image/`` URIs plus http(s) URLs on Azure Blob
  Storage or the carrier domain.
* ``STRICT`` is ``LEGACY`` with every data URI rejected.
* ``EXPANDED`` rejects data URIs, map tiles, tracking pixels and script or
  stylesheet paths, then accepts Azure Blob Storage, carrier URLs that look
  like images, S3, Cloudinary and known CDNs, and any other https URL ending
  in an image extension.

None of these perform network I/O.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Set
from urllib.parse import urlparse

from .config import DEFAULT_URL_RULES, UrlPolicy, UrlRules

DATA_IMAGE_PREFIX = "data:image/"
HTTP_SCHEMES = {"http", "https"}

GUID_SEGMENT = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
HASH_SEGMENT = re.compile(r"^[0-9a-f]{16,}$", re.IGNORECASE)
NUMERIC_SEGMENT = re.compile(r"^\d+$")


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def _strip_extension(segment: str) -> str:
    return segment.rsplit(".", 1)[0] if "." in segment else segment


def _looks_like_carrier_image(path: str, rules: UrlRules) -> bool:
    """Loose heuristic for carrier-hosted URLs; accepts anything not shaped like a page."""
    lowered = path.lower()
    if any(keyword in lowered for keyword in rules.image_path_keywords):
        return True
    if lowered.endswith(rules.image_extensions):
        return True
    for segment in (s for s in lowered.split("/") if s):
        stem = _strip_extension(segment)
        if GUID_SEGMENT.match(stem) or HASH_SEGMENT.match(stem) or NUMERIC_SEGMENT.match(stem):
            return True
    return not lowered.endswith(rules.page_extensions)


def _is_denied(host: str, path: str, rules: UrlRules) -> bool:
    if any(_host_matches(host, denied) for denied in rules.denied_hosts):
        return True
    lowered = path.lower()
    if lowered.endswith(rules.denied_path_suffixes):
        return True
    return any(marker in lowered for marker in rules.denied_path_markers)


def _is_s3_host(host: str) -> bool:
    return host.endswith(".amazonaws.com") and (
        host.startswith("s3") or ".s3." in host or ".s3-" in host
    )


def _expanded_accepts(scheme: str, host: str, path: str, rules: UrlRules) -> bool:
    if _is_denied(host, path, rules):
        return False
    if host.endswith(rules.azure_blob_suffix):
        return True
    if _host_matches(host, rules.carrier_domain):
        return _looks_like_carrier_image(path, rules)
    if _is_s3_host(host):
        return True
    if any(_host_matches(host, cdn) for cdn in rules.cdn_hosts):
        return True
    return scheme == "https" and path.lower().endswith(rules.image_extensions)


def is_valid_photo_url(
    url: str,
    policy: UrlPolicy = UrlPolicy.EXPANDED,
    rules: UrlRules = DEFAULT_URL_RULES,
) -> bool:
    """Return ``True`` when ``url`` is an acceptable delivery photo source."""
    if not url or not isinstance(url, str):
        return False

    if url.startswith("data:"):
        return policy is UrlPolicy.LEGACY and url.startswith(DATA_IMAGE_PREFIX)

    try:
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return False

    scheme = parsed.scheme.lower()
    if scheme not in HTTP_SCHEMES or not host:
        return False

    if policy is UrlPolicy.EXPANDED:
        return _expanded_accepts(scheme, host, parsed.path, rules)

    if host.endswith(rules.azure_blob_suffix):
        return True
    return _host_matches(host, rules.carrier_domain)


def filter_fetchable_photos(
    urls: Iterable[str], accept_data_uris: bool = False
) -> List[str]:
    """De-duplicate stored photo URLs and keep only fetchable ones.

    No size or host filtering happens here; it is meant for URLs whose
    dimensions are unknown. Order of first appearance is preserved.
    """
    seen: Set[str] = set()
    out: List[str] = []
    for url in urls:
        if not url or not isinstance(url, str) or url in seen:
            continue
        if url.startswith(DATA_IMAGE_PREFIX):
            if not accept_data_uris:
                continue
        else:
            try:
                parsed = urlparse(url)
                host = parsed.hostname
            except ValueError:
                continue
            if parsed.scheme.lower() not in HTTP_SCHEMES or not host:
                continue
        seen.add(url)
        out.append(url)
    return out
