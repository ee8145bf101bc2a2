import pytest

from chilltrack.config import IngestionConfig, get_policy
from chilltrack.utils import extract_tracking_token, slugify, tracking_url


@pytest.mark.parametrize(
    "value,expected",
    [
        ("https://live.axylog.com/abc123", "abc123"),
        ("https://live.axylog.com/abc123/", "abc123"),
        ("  abc123 ", "abc123"),
        ("https://live.axylog.com/", None),
        ("", None),
        ("   ", None),
    ],
)
def test_extract_tracking_token(value, expected) -> None:
    assert extract_tracking_token(value) == expected


def test_slugify_and_tracking_url() -> None:
    assert slugify("Abc/123?x") == "abc-123-x"
    assert slugify("***") == "token"
    assert tracking_url("abc", "live.axylog.com") == "https://live.axylog.com/abc"


def test_get_policy_rejects_unknown_names() -> None:
    assert get_policy("FULL").name == get_policy("full_resolution").name
    with pytest.raises(ValueError):
        get_policy("medium")


def test_ingestion_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("CHILLTRACK_TRACKING_DOMAIN", "track.example")
    monkeypatch.setenv("CHILLTRACK_CONCURRENCY", "2")
    monkeypatch.setenv("CHILLTRACK_MAX_RETRIES", "not-a-number")

    config = IngestionConfig.from_env()

    assert config.tracking_domain == "track.example"
    assert config.concurrency == 2
    assert config.max_retries == 3
