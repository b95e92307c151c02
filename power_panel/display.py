"""
Text formatting of telemetry for the panel and the tray tooltip.
"""

from datetime import datetime
from typing import List, Tuple

from power_panel.monitor import TelemetryStatus
from power_panel.snapshot import PowerSnapshot


def format_power_flow(snapshot: PowerSnapshot) -> str:
    """One line describing where power is coming from and going to."""
    if snapshot.battery_power > 0:
        battery = f"battery +{snapshot.battery_power:.2f} W (charging)"
    elif snapshot.battery_power < 0:
        battery = f"battery {snapshot.battery_power:.2f} W (discharging)"
    else:
        battery = "battery idle"

    if not snapshot.on_adapter:
        return f"On battery → System {snapshot.system_power:.2f} W, {battery}"

    return (
        f"Adapter {snapshot.adapter_power:.2f} W → "
        f"System {snapshot.system_power:.2f} W, {battery}"
    )


def format_sections(snapshot: PowerSnapshot) -> List[List[Tuple[str, str]]]:
    """
    Group the snapshot into labelled rows, one list per panel section.

    Args:
        snapshot: Snapshot to format

    Returns:
        List of sections, each a list of (label, value) pairs
    """
    return [
        [
            ("Design Capacity", f"{snapshot.design_capacity} mAh"),
            ("Serial Number", snapshot.serial_number),
        ],
        [
            ("Max Capacity", f"{snapshot.battery_capacity} mAh ({snapshot.health:.0f}%)"),
            ("Cycle Count", str(snapshot.cycle_count)),
            ("Temperature", f"{snapshot.temperature:.2f} °C"),
            ("Battery Level", f"{snapshot.battery_percent}%"),
        ],
        [
            ("Charging", "Yes" if snapshot.is_charging else "No"),
            ("Battery Power", f"{snapshot.battery_power:.2f} W"),
            ("Battery Amperage", f"{snapshot.battery_amperage:.3f} A"),
            ("Battery Voltage", f"{snapshot.battery_voltage:.2f} V"),
        ],
        [
            ("System Load", f"{snapshot.system_power:.2f} W"),
            ("Adapter Power", f"{snapshot.adapter_power:.2f} W"),
            ("Adapter Amperage", f"{snapshot.adapter_amperage:.3f} A"),
            ("Adapter Voltage", f"{snapshot.adapter_voltage:.2f} V"),
        ],
    ]


def format_last_updated(status: TelemetryStatus) -> str:
    if status.last_update is None:
        text = "Last updated: Never"
    else:
        text = f"Last updated: {datetime.fromtimestamp(status.last_update).strftime('%H:%M:%S')}"

    if status.stale:
        text += " (stale)"
    if status.last_error:
        text += f" - {status.last_error}"
    return text


def format_tooltip(status: TelemetryStatus) -> str:
    """Short tray tooltip text."""
    snapshot = status.snapshot
    if status.last_update is None:
        return "Power Panel: no data"

    state = "charging" if snapshot.is_charging else "not charging"
    text = f"Power Panel: {snapshot.battery_percent}% ({state}), load {snapshot.system_power:.1f} W"
    if status.stale:
        text += " [stale]"
    return text
