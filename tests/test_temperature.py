import pytest

from chilltrack.config import ScoringConfig
from chilltrack.models import DeliveryRecord
from chilltrack.temperature import (
    AMBIENT_RANGE,
    CHILLED_RANGE,
    FROZEN_RANGE,
    TemperatureRange,
    check_temperature_compliance,
    collect_temperature_readings,
    parse_required_temperature,
    readings_compliant,
)


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Frozen -18C to -20C", TemperatureRange(-20.0, -18.0)),
        ("2-8C", TemperatureRange(2.0, 8.0)),
        ("2°C – 8°C", TemperatureRange(2.0, 8.0)),
        ("+14°C", TemperatureRange(12.0, 16.0)),
        ("-18C", TemperatureRange(-20.0, -16.0)),
        ("Keep at 4 °c", TemperatureRange(2.0, 6.0)),
        ("Chilled, PO 4471-22, 2-8C", TemperatureRange(2.0, 8.0)),
        ("Chilled", CHILLED_RANGE),
        ("KEEP FROZEN", FROZEN_RANGE),
        ("ambient goods", AMBIENT_RANGE),
    ],
)
def test_parse_required_temperature(label, expected) -> None:
    assert parse_required_temperature(label) == expected


@pytest.mark.parametrize(
    "label", [None, "", "   ", "Dry", "Handle with care", "-18", "Dock 12 cold store"]
)
def test_parse_required_temperature_returns_none_when_nothing_parses(label) -> None:
    assert parse_required_temperature(label) is None


def test_single_value_tolerance_is_configurable() -> None:
    assert parse_required_temperature("4C", tolerance=1.0) == TemperatureRange(3.0, 5.0)


def test_collect_readings_skips_blanks_sentinels_and_text() -> None:
    delivery = DeliveryRecord(payment_method="-19", amount_to_collect="999", amount_collected="null")
    assert collect_temperature_readings(delivery) == [-19.0]

    delivery = DeliveryRecord(payment_method=" 3.5 ", amount_to_collect="CASH", amount_collected="")
    assert collect_temperature_readings(delivery) == [3.5]


def test_frozen_delivery_with_reading_in_range_is_compliant() -> None:
    delivery = DeliveryRecord(expected_temperature="Frozen -18C to -20C", payment_method="-19")
    assert check_temperature_compliance(delivery) is True


def test_any_single_reading_in_range_is_enough() -> None:
    delivery = DeliveryRecord(
        expected_temperature="2-8C", payment_method="12", amount_to_collect="4"
    )
    assert check_temperature_compliance(delivery) is True


def test_reading_outside_range_is_not_compliant() -> None:
    delivery = DeliveryRecord(expected_temperature="2-8C", payment_method="12")
    assert check_temperature_compliance(delivery) is False


def test_document_note_is_used_when_expected_temperature_missing() -> None:
    delivery = DeliveryRecord(document_note="Chilled 0-5C", payment_method="9")
    assert check_temperature_compliance(delivery) is False


def test_missing_expectation_or_readings_default_to_compliant() -> None:
    assert check_temperature_compliance(DeliveryRecord()) is True
    assert check_temperature_compliance(DeliveryRecord(expected_temperature="2-8C")) is True
    assert check_temperature_compliance(
        DeliveryRecord(expected_temperature="2-8C", payment_method="999")
    ) is True
    assert check_temperature_compliance(
        DeliveryRecord(expected_temperature="Dry", payment_method="30")
    ) is True


def test_readings_compliant_ignores_sentinel_values() -> None:
    assert readings_compliant("-18C to -20C", [999.0]) is True
    assert readings_compliant("-18C to -20C", [999.0, 4.0]) is False
    assert readings_compliant("-18C to -20C", [999.0, -19.0]) is True


def test_dual_zone_shipper_needs_chilled_and_frozen_readings() -> None:
    config = ScoringConfig(dual_zone_shippers=("Greencross",))
    both = DeliveryRecord(
        shipper_company_name="GREENCROSS VETS",
        expected_temperature="2-8C",
        payment_method="3",
        amount_to_collect="-19",
    )
    chilled_only = DeliveryRecord(
        shipper_company_name="Greencross Vets",
        expected_temperature="2-8C",
        payment_method="3",
    )
    assert check_temperature_compliance(both, config) is True
    assert check_temperature_compliance(chilled_only, config) is False
    # Without the dual-zone configuration the ordinary rule applies.
    assert check_temperature_compliance(chilled_only) is True


@pytest.mark.parametrize(
    "note",
    ["Chilled - deliver to dock 12", "Chilled, PO 4471-22", "CHILLED 2 to 3 pallets"],
)
def test_unitless_numbers_in_notes_do_not_override_zone(note) -> None:
    assert parse_required_temperature(note) == CHILLED_RANGE
    delivery = DeliveryRecord(document_note=note, payment_method="3")
    assert check_temperature_compliance(delivery) is True
