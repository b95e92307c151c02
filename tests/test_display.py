from power_panel.display import (
    format_last_updated,
    format_power_flow,
    format_sections,
    format_tooltip,
)
from power_panel.monitor import TelemetryStatus
from power_panel.snapshot import PowerSnapshot


def _status(snapshot=None, last_update=1700000000.0, last_error=None, stale=False):
    return TelemetryStatus(
        snapshot=snapshot or PowerSnapshot(),
        last_update=last_update,
        last_error=last_error,
        stale=stale,
    )


def test_sections_cover_every_reading():
    snapshot = PowerSnapshot(
        design_capacity=5000,
        battery_capacity=4500,
        health=90.0,
        cycle_count=12,
        temperature=32.5,
        battery_percent=87,
        is_charging=True,
        battery_amperage=-1.5,
        adapter_voltage=20.0,
        serial_number="ABC",
    )
    rows = dict(row for section in format_sections(snapshot) for row in section)

    assert rows["Design Capacity"] == "5000 mAh"
    assert rows["Serial Number"] == "ABC"
    assert rows["Max Capacity"] == "4500 mAh (90%)"
    assert rows["Cycle Count"] == "12"
    assert rows["Temperature"] == "32.50 °C"
    assert rows["Battery Level"] == "87%"
    assert rows["Charging"] == "Yes"
    assert rows["Battery Amperage"] == "-1.500 A"
    assert rows["Adapter Voltage"] == "20.00 V"
    assert len(rows) == 14


def test_section_labels_do_not_depend_on_values():
    labels = [[label for label, _ in section] for section in format_sections(PowerSnapshot())]
    other = [[label for label, _ in section] for section in format_sections(PowerSnapshot(health=50.0))]
    assert labels == other


def test_power_flow_charging():
    text = format_power_flow(PowerSnapshot(adapter_power=60.0, system_power=12.5, battery_power=40.25))
    assert text == "Adapter 60.00 W → System 12.50 W, battery +40.25 W (charging)"


def test_power_flow_discharging():
    text = format_power_flow(PowerSnapshot(system_power=8.0, battery_power=-8.0))
    assert text.endswith("battery -8.00 W (discharging)")


def test_power_flow_idle():
    assert format_power_flow(PowerSnapshot()).endswith("battery idle")


def test_power_flow_without_adapter():
    text = format_power_flow(PowerSnapshot(system_power=8.0, battery_power=-8.0))
    assert text == "On battery → System 8.00 W, battery -8.00 W (discharging)"


def test_last_updated_never():
    assert format_last_updated(_status(last_update=None, stale=True)) == "Last updated: Never (stale)"


def test_last_updated_shows_error():
    text = format_last_updated(_status(stale=True, last_error="power_info missing"))
    assert text.startswith("Last updated: ")
    assert text.endswith("(stale) - power_info missing")


def test_tooltip():
    status = _status(PowerSnapshot(battery_percent=55, system_power=7.0))
    assert format_tooltip(status) == "Power Panel: 55% (not charging), load 7.0 W"
    assert format_tooltip(_status(last_update=None)) == "Power Panel: no data"
    assert format_tooltip(_status(stale=True)).endswith("[stale]")
