"""
Telemetry parser.

Turns the combined output of power_info and the smart battery registry
query into a PowerSnapshot. Every field is located by its own regular
expression over the whole buffer; the first match wins and a missing field
simply keeps the value it had in the previous snapshot.
"""

import logging
import re
from dataclasses import replace
from typing import Any, Callable, Dict, NamedTuple, Optional, Pattern

from power_panel.snapshot import PowerSnapshot

logger = logging.getLogger("PowerPanel.Parser")

UPPER_LIMIT_PATTERN = re.compile(r"Upper limit:\s+(\d+)%")
CONFIRMED_LIMIT_PATTERN = re.compile(r"charging limit to\s+(\d+)%")


class FieldRule(NamedTuple):
    """Maps one snapshot field to the pattern and converter that fill it."""

    field: str
    pattern: Pattern
    convert: Callable[[str], Any]


def _registry_int(key: str) -> Pattern:
    # ioreg style: "Key" = 123
    return re.compile(r'"%s"\s*=\s*([0-9]+)' % re.escape(key))


def _unit_value(key: str, unit: str, signed: bool = False) -> Pattern:
    # power_info style: key=12.34V
    sign = "-?" if signed else ""
    return re.compile(r"\b%s=(%s[0-9]+(?:\.[0-9]+)?)%s" % (re.escape(key), sign, unit))


def _charging(word: str) -> bool:
    return "Charging" in word


def _centi_degrees(value: str) -> float:
    return int(value) / 100.0


FIELD_RULES = (
    FieldRule("design_capacity", _registry_int("DesignCapacity"), int),
    FieldRule("battery_capacity", _registry_int("AppleRawMaxCapacity"), int),
    FieldRule("cycle_count", _registry_int("CycleCount"), int),
    FieldRule("is_charging", re.compile(r"\bbattery_status=([a-zA-Z]+)"), _charging),
    FieldRule("battery_percent", _registry_int("CurrentCapacity"), int),
    FieldRule("adapter_voltage", _unit_value("adapter_voltage", "V"), float),
    FieldRule("adapter_amperage", _unit_value("adapter_amperage", "A"), float),
    FieldRule("system_power", _unit_value("sys_power", "W"), float),
    FieldRule("adapter_power", _unit_value("adapter_power", "W"), float),
    FieldRule("battery_power", _unit_value("battery_power", "W", signed=True), float),
    FieldRule("battery_voltage", _unit_value("battery_voltage", "V"), float),
    FieldRule("battery_amperage", _unit_value("battery_amperage", "A", signed=True), float),
    FieldRule("temperature", _registry_int("VirtualTemperature"), _centi_degrees),
    FieldRule("serial_number", re.compile(r'"Serial"\s*=\s*"([^"]+)"'), str),
    FieldRule("charge_limit", UPPER_LIMIT_PATTERN, int),
)


def extract_fields(raw: str) -> Dict[str, Any]:
    """
    Extract every recognizable field from raw telemetry text.

    Args:
        raw: Combined power_info and registry output

    Returns:
        Dictionary holding only the fields that were found
    """
    found: Dict[str, Any] = {}

    for rule in FIELD_RULES:
        match = rule.pattern.search(raw)
        if match is None:
            continue

        try:
            found[rule.field] = rule.convert(match.group(1))
        except ValueError as e:
            logger.debug(f"Ignoring unparsable {rule.field} value {match.group(1)!r}: {e}")

    return found


def parse(raw: str, previous: PowerSnapshot) -> PowerSnapshot:
    """
    Build a new snapshot from raw telemetry text.

    Fields absent from the text keep their value from ``previous``. Health is
    only recomputed when both capacities were read in this pass and the
    design capacity is non-zero.

    Args:
        raw: Combined power_info and registry output
        previous: Snapshot from the last successful cycle

    Returns:
        Updated snapshot (``previous`` itself when nothing matched)
    """
    updates = extract_fields(raw)

    if not updates:
        return previous

    design_capacity = updates.get("design_capacity", 0)
    battery_capacity = updates.get("battery_capacity")
    if design_capacity > 0 and battery_capacity is not None:
        updates["health"] = battery_capacity * 100 / design_capacity

    return replace(previous, **updates)


def _first_int(pattern: Pattern, text: str) -> Optional[int]:
    match = pattern.search(text)
    if match is None:
        return None
    return int(match.group(1))


def extract_upper_limit(text: str) -> Optional[int]:
    """Return the charge limit from an ``Upper limit: NN%`` line, if any."""
    return _first_int(UPPER_LIMIT_PATTERN, text)


def extract_confirmed_limit(text: str) -> Optional[int]:
    """Return NN from a daemon reply containing ``charging limit to NN%``."""
    return _first_int(CONFIRMED_LIMIT_PATTERN, text)
