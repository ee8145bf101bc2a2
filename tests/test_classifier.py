import pytest

from chilltrack.classifier import classify, classify_candidate, is_signature
from chilltrack.config import (
    FULL_RESOLUTION_POLICY,
    LEGACY_POLICY,
    THUMBNAIL_POLICY,
)
from chilltrack.models import PhotoCandidate, PhotoKind

BLOB = "https://axylogdata.blob.core.windows.net/pod"


def candidate(width, height, name="photo.jpg", alt=None, class_name=None, src=None):
    return PhotoCandidate(
        src=src if src is not None else f"{BLOB}/{name}",
        width=width,
        height=height,
        alt=alt,
        class_name=class_name,
    )


ALL_POLICIES = (LEGACY_POLICY, THUMBNAIL_POLICY, FULL_RESOLUTION_POLICY)


@pytest.mark.parametrize("policy", ALL_POLICIES, ids=lambda p: p.name)
@pytest.mark.parametrize("width,height", [(49, 2000), (2000, 49), (10, 10), (0, 0)])
def test_tiny_candidates_never_survive(policy, width, height) -> None:
    assert classify([candidate(width, height)], policy) == []


@pytest.mark.parametrize("policy", ALL_POLICIES, ids=lambda p: p.name)
def test_placeholders_logos_and_empty_src_are_dropped(policy) -> None:
    candidates = [
        candidate(768, 1024, src=""),
        candidate(768, 1024, name="ghost.svg"),
        candidate(768, 1024, name="loading-spinner.gif"),
        candidate(768, 1024, alt="Company LOGO"),
        candidate(768, 1024, class_name="header-logo"),
    ]
    assert classify(candidates, policy) == []


def test_small_squares_are_treated_as_placeholder_tiles() -> None:
    assert classify([candidate(200, 200)], THUMBNAIL_POLICY) == []
    kept = classify([candidate(201, 201)], THUMBNAIL_POLICY)
    assert [photo.kind for photo in kept] == [PhotoKind.PHOTO]


def test_is_signature_requires_strict_dimensions() -> None:
    assert is_signature(candidate(600, 150))
    assert is_signature(candidate(600, 200, alt="Customer signature"))
    assert is_signature(candidate(600, 200, class_name="firma-box"))
    # 200px tall without a keyword is not thin enough.
    assert not is_signature(candidate(600, 200))
    # Banner: too wide for a signature.
    assert not is_signature(candidate(1300, 100, alt="signature"))
    # Aspect ratio below 3.0.
    assert not is_signature(candidate(500, 180, alt="signature"))
    # Taller than 220.
    assert not is_signature(candidate(900, 230, alt="signature"))


def test_signature_is_emitted_with_signature_kind() -> None:
    photos = classify([candidate(600, 150, name="sig.png")], LEGACY_POLICY)
    assert len(photos) == 1
    assert photos[0].kind is PhotoKind.SIGNATURE
    assert (photos[0].width, photos[0].height) == (600, 150)


def test_detected_signature_below_min_short_side_is_dropped_not_reclassified() -> None:
    # Thin enough to be a signature but only 100px tall.
    assert classify([candidate(400, 100)], THUMBNAIL_POLICY) == []


def test_signature_with_rejected_url_is_dropped() -> None:
    sig = candidate(600, 150, src="https://unknown.example.net/sig")
    assert classify([sig], FULL_RESOLUTION_POLICY) == []


@pytest.mark.parametrize(
    "width,height,reason",
    [
        (340, 1024, "short side"),
        (360, 540, "pixel area"),
        (1900, 900, "aspect ratio"),
        (400, 1000, "aspect ratio"),
        (500, 500, "long side"),
    ],
)
def test_full_resolution_photo_thresholds(width, height, reason) -> None:
    assert classify_candidate(candidate(width, height), FULL_RESOLUTION_POLICY) is None, reason


def test_photo_geometry_properties_hold_for_full_resolution() -> None:
    sizes = [(w, h) for w in range(50, 2100, 150) for h in range(50, 2100, 150)]
    photos = classify([candidate(w, h) for w, h in sizes], FULL_RESOLUTION_POLICY)
    assert photos
    for photo in photos:
        if photo.kind is PhotoKind.PHOTO:
            assert min(photo.width, photo.height) >= 350
            assert photo.width * photo.height >= 200_000
            assert 0.45 <= photo.width / photo.height <= 1.9
        else:
            assert photo.height <= 220
            assert photo.width / photo.height >= 3.0
            assert photo.width * photo.height <= 120_000


def test_output_preserves_input_order_and_keeps_duplicates() -> None:
    first = candidate(768, 1024, name="a.jpg")
    second = candidate(600, 150, name="sig.png")
    third = candidate(1024, 768, name="b.jpg")
    photos = classify([first, second, first, third], FULL_RESOLUTION_POLICY)
    assert [p.url for p in photos] == [first.src, second.src, first.src, third.src]
    assert [p.kind for p in photos] == [
        PhotoKind.PHOTO,
        PhotoKind.SIGNATURE,
        PhotoKind.PHOTO,
        PhotoKind.PHOTO,
    ]


def test_legacy_policy_accepts_data_uri_photos_but_full_resolution_does_not() -> None:
    data_photo = candidate(768, 1024, src="data:image/jpeg;base64,/9j/4AAQ")
    assert classify([data_photo], LEGACY_POLICY)[0].kind is PhotoKind.PHOTO
    assert classify([data_photo], FULL_RESOLUTION_POLICY) == []


def test_data_uri_signature_rejected_under_expanded_url_policy() -> None:
    sig = candidate(600, 150, src="data:image/png;base64,iVBORw0KGgo=", alt="signature")
    assert classify([sig], FULL_RESOLUTION_POLICY) == []
    assert classify([sig], THUMBNAIL_POLICY) == []
    tiny = candidate(100, 30, src="data:image/png;base64,iVBORw0KGgo=", alt="signature")
    assert classify([tiny], LEGACY_POLICY) == []
