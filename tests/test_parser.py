import dataclasses

import pytest

from power_panel.parser import (
    extract_confirmed_limit,
    extract_fields,
    extract_upper_limit,
    parse,
)
from power_panel.snapshot import PowerSnapshot


def test_parse_full_buffer(raw_telemetry):
    snapshot = parse(raw_telemetry, PowerSnapshot())

    assert snapshot.design_capacity == 5000
    assert snapshot.battery_capacity == 4500
    assert snapshot.health == pytest.approx(90.0)
    assert snapshot.cycle_count == 123
    assert snapshot.is_charging is True
    assert snapshot.battery_percent == 87
    assert snapshot.adapter_voltage == pytest.approx(20.12)
    assert snapshot.adapter_amperage == pytest.approx(3.05)
    assert snapshot.system_power == pytest.approx(12.34)
    assert snapshot.adapter_power == pytest.approx(61.40)
    assert snapshot.battery_power == pytest.approx(45.20)
    assert snapshot.battery_voltage == pytest.approx(12.85)
    assert snapshot.battery_amperage == pytest.approx(3.52)
    assert snapshot.temperature == pytest.approx(32.5)
    assert snapshot.serial_number == "F8Y1234ABCD"
    assert snapshot.charge_limit == 80


def test_health_from_capacities():
    raw = '"DesignCapacity" = 5000\n"AppleRawMaxCapacity" = 4500\n'
    snapshot = parse(raw, PowerSnapshot())
    assert snapshot.design_capacity == 5000
    assert snapshot.battery_capacity == 4500
    assert snapshot.health == pytest.approx(90.0)


@pytest.mark.parametrize("raw", [
    '"AppleRawMaxCapacity" = 4500\n',
    '"DesignCapacity" = 0\n"AppleRawMaxCapacity" = 4500\n',
    '"DesignCapacity" = 5000\n',
])
def test_health_kept_without_both_capacities(raw):
    previous = PowerSnapshot(design_capacity=6000, battery_capacity=5100, health=85.0)
    assert parse(raw, previous).health == 85.0


def test_zero_design_capacity_does_not_produce_nan_or_zero_health():
    previous = PowerSnapshot(health=77.5)
    snapshot = parse('"DesignCapacity" = 0\n"AppleRawMaxCapacity" = 0\n', previous)
    assert snapshot.design_capacity == 0
    assert snapshot.health == 77.5


@pytest.mark.parametrize("raw, expected", [
    ("battery_status=Charging\n", True),
    ("battery_status=Idle\n", False),
    ("battery_status=Discharging\n", False),
    ("sys_power=3.00W\n", False),
])
def test_charging_status(raw, expected):
    assert parse(raw, PowerSnapshot()).is_charging is expected


def test_charging_status_absent_keeps_previous():
    previous = PowerSnapshot(is_charging=True)
    assert parse("sys_power=3.00W\n", previous).is_charging is True


def test_temperature_is_hundredths_of_a_degree():
    assert parse('"VirtualTemperature" = 3250\n', PowerSnapshot()).temperature == 32.5


def test_plain_temperature_key_is_not_used():
    assert parse('"Temperature" = 3100\n', PowerSnapshot()).temperature == 0.0


@pytest.mark.parametrize("raw, expected", [
    ("battery_power=-4.50W", -4.5),
    ("battery_power=4.50W", 4.5),
    ("battery_power=7W", 7.0),
])
def test_signed_battery_power(raw, expected):
    assert parse(raw, PowerSnapshot()).battery_power == expected


def test_signed_battery_amperage():
    snapshot = parse("battery_amperage=-1.234A\n", PowerSnapshot())
    assert snapshot.battery_amperage == -1.234
    assert snapshot.is_discharging is False  # battery_power untouched


def test_unsigned_fields_reject_negative_values():
    previous = PowerSnapshot(system_power=9.0)
    assert parse("sys_power=-3.00W\n", previous).system_power == 9.0


def test_unit_letter_disambiguates_similar_keys():
    raw = "battery_voltage=12.85V adapter_voltage=20.00V adapter_amperage=2.5A battery_amperage=-0.5A"
    snapshot = parse(raw, PowerSnapshot())
    assert snapshot.battery_voltage == 12.85
    assert snapshot.adapter_voltage == 20.0
    assert snapshot.adapter_amperage == 2.5
    assert snapshot.battery_amperage == -0.5


def test_battery_power_does_not_fill_adapter_power():
    snapshot = parse("battery_power=4.50W\n", PowerSnapshot(adapter_power=30.0))
    assert snapshot.adapter_power == 30.0
    assert snapshot.battery_power == 4.5


def test_current_capacity_ignores_raw_current_capacity():
    raw = '"AppleRawCurrentCapacity" = 3900\n"CurrentCapacity" = 87\n'
    assert parse(raw, PowerSnapshot()).battery_percent == 87


def test_first_match_wins():
    raw = '"CycleCount" = 10\n"CycleCount" = 20\nsys_power=1.00W sys_power=2.00W'
    snapshot = parse(raw, PowerSnapshot())
    assert snapshot.cycle_count == 10
    assert snapshot.system_power == 1.0


def test_unrecognized_text_returns_previous_unchanged():
    previous = PowerSnapshot(design_capacity=5000, health=91.0, serial_number="XYZ", charge_limit=75)
    snapshot = parse("ioreg: command not found\nnothing to see here\n", previous)
    assert snapshot is previous
    assert snapshot == previous


def test_empty_text_returns_previous():
    previous = PowerSnapshot(cycle_count=5)
    assert parse("", previous) == previous


def test_parsing_is_idempotent(raw_telemetry):
    first = parse(raw_telemetry, PowerSnapshot())
    second = parse(raw_telemetry, first)
    assert first == second


def test_partial_text_keeps_other_fields(raw_telemetry):
    full = parse(raw_telemetry, PowerSnapshot())
    # Adapter unplugged: adapter keys disappear from power_info output
    updated = parse("battery_status=Idle\nbattery_power=-8.10W\n", full)

    assert updated.adapter_power == full.adapter_power
    assert updated.design_capacity == full.design_capacity
    assert updated.is_charging is False
    assert updated.battery_power == -8.1


def test_malformed_serial_does_not_disturb_later_fields():
    raw = '"Serial" = "AB"1234"\n"CycleCount" = 7\n"VirtualTemperature" = 2900\nsys_power=5.50W\n'
    snapshot = parse(raw, PowerSnapshot())
    assert snapshot.serial_number == "AB"
    assert snapshot.cycle_count == 7
    assert snapshot.temperature == 29.0
    assert snapshot.system_power == 5.5


def test_serial_keeps_inner_characters():
    snapshot = parse('"Serial" = "D86 123-45_X"\n', PowerSnapshot())
    assert snapshot.serial_number == "D86 123-45_X"


def test_parse_does_not_mutate_previous(raw_telemetry):
    previous = PowerSnapshot()
    parse(raw_telemetry, previous)
    assert previous == PowerSnapshot()


def test_extract_fields_reports_only_matches():
    found = extract_fields('sys_power=3.25W\n"CycleCount" = 2\n')
    assert found == {"system_power": 3.25, "cycle_count": 2}


def test_snapshot_is_immutable():
    snapshot = PowerSnapshot()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.battery_percent = 50


def test_snapshot_defaults():
    snapshot = PowerSnapshot()
    assert snapshot.serial_number == "--"
    assert snapshot.charge_limit is None
    assert snapshot.as_dict()["health"] == 0.0


def test_extract_upper_limit():
    assert extract_upper_limit("Upper limit:  80%\nLower limit: 75%") == 80
    assert extract_upper_limit("no limit here") is None


def test_extract_confirmed_limit():
    assert extract_confirmed_limit("successfully set upper charging limit to 65%") == 65
    assert extract_confirmed_limit("HTTP/1.1 400 Bad Request") is None
