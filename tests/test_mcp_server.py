import asyncio

from chilltrack.mcp_server import score_delivery


def test_score_delivery_uses_readings_against_expected_label() -> None:
    result = asyncio.run(
        score_delivery(
            photo_count=3,
            has_signature=True,
            has_receiver_name=True,
            expected_temperature="Frozen -18C to -20C",
            readings=[999.0, -19.0],
        )
    )
    assert result["quality_score"] == 100
    assert result["tier"] == "Excellent"
    assert result["breakdown"]["temperature"]["status"] == "pass"


def test_score_delivery_out_of_range_reading_loses_temperature_points() -> None:
    result = asyncio.run(
        score_delivery(
            photo_count=1,
            has_signature=True,
            has_receiver_name=False,
            expected_temperature="2-8C",
            readings=[12.0],
        )
    )
    assert result["quality_score"] == 5
    assert result["tier"] == "Poor"
    assert result["breakdown"]["temperature"]["points"] == 0
    assert result["breakdown"]["photos"]["points"] == -20


def test_score_delivery_without_readings_or_label_counts_as_compliant() -> None:
    result = asyncio.run(score_delivery(photo_count=0, has_signature=False, has_receiver_name=False))
    assert result["quality_score"] == 0
    assert result["breakdown"]["temperature"]["points"] == 25
