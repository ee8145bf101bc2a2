from chilltrack.extractors import (
    extract_full_resolution,
    extract_thumbnails,
    filter_and_classify_photos,
)
from chilltrack.models import PhotoCandidate, PhotoKind


def _page_candidates():
    return [
        PhotoCandidate("https://live.axylog.com/assets/ghost.svg", 400, 400),
        PhotoCandidate("https://live.axylog.com/assets/header-logo.png", 300, 80, alt="logo"),
        PhotoCandidate("https://a.tile.openstreetmap.org/12/1/2.png", 256, 256),
        PhotoCandidate("https://www.google-analytics.com/collect.gif", 1, 1),
        PhotoCandidate("https://foo.blob.core.windows.net/pod/1.jpg", 768, 1024),
        PhotoCandidate("https://foo.blob.core.windows.net/pod/2.jpg", 300, 400),
        PhotoCandidate(
            "https://foo.blob.core.windows.net/pod/sig.png", 600, 150, alt="signature"
        ),
        PhotoCandidate("https://foo.blob.core.windows.net/banner.jpg", 1400, 300),
    ]


def test_blob_photo_is_kept_by_both_tiers_with_tier_marker() -> None:
    photo = PhotoCandidate("https://foo.blob.core.windows.net/x.jpg", 768, 1024)

    full = extract_full_resolution([photo])
    thumbs = extract_thumbnails([photo])

    assert len(full) == 1 and full[0].kind is PhotoKind.PHOTO
    assert full[0].is_thumbnail is False
    assert len(thumbs) == 1 and thumbs[0].kind is PhotoKind.PHOTO
    assert thumbs[0].is_thumbnail is True


def test_legacy_extractor_leaves_tier_marker_unset() -> None:
    photo = PhotoCandidate("https://foo.blob.core.windows.net/x.jpg", 768, 1024)
    assert filter_and_classify_photos([photo])[0].is_thumbnail is None


def test_thumbnail_tier_is_more_permissive_than_full_resolution() -> None:
    candidates = _page_candidates()

    full = extract_full_resolution(candidates)
    thumbs = extract_thumbnails(candidates)

    assert [(p.url.rsplit("/", 1)[-1], p.kind) for p in full] == [
        ("1.jpg", PhotoKind.PHOTO),
        ("sig.png", PhotoKind.SIGNATURE),
    ]
    assert [(p.url.rsplit("/", 1)[-1], p.kind) for p in thumbs] == [
        ("1.jpg", PhotoKind.PHOTO),
        ("2.jpg", PhotoKind.PHOTO),
        ("sig.png", PhotoKind.SIGNATURE),
    ]
    assert {p.url for p in full} <= {p.url for p in thumbs}


def test_thumbnail_tier_excludes_brand_names_anywhere() -> None:
    candidates = [
        PhotoCandidate("https://foo.blob.core.windows.net/brand/hero.jpg", 768, 1024),
        PhotoCandidate("https://foo.blob.core.windows.net/a.jpg", 768, 1024, class_name="ChillTrack-hero"),
    ]
    assert extract_thumbnails(candidates) == []
    assert len(extract_full_resolution(candidates)) == 2


def test_extractors_accept_generators_and_return_empty_for_no_input() -> None:
    assert extract_full_resolution(iter([])) == []
    assert extract_thumbnails(c for c in _page_candidates()[:4]) == []
