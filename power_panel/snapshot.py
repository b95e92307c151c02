"""
Battery and power telemetry snapshot.

A PowerSnapshot is an immutable record of every power/battery value the
panel knows about. Each refresh cycle derives a new snapshot from the
previous one, so readers never observe a half-updated record.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PowerSnapshot:
    """Latest known battery and adapter readings."""

    design_capacity: int = 0  # mAh
    battery_capacity: int = 0  # mAh, current full charge capacity
    health: float = 0.0  # percent of design capacity
    cycle_count: int = 0
    is_charging: bool = False
    battery_percent: int = 0
    adapter_voltage: float = 0.0  # V
    adapter_amperage: float = 0.0  # A
    system_power: float = 0.0  # W drawn by the whole system
    adapter_power: float = 0.0  # W supplied by the adapter
    battery_power: float = 0.0  # W, positive while charging
    battery_voltage: float = 0.0  # V
    battery_amperage: float = 0.0  # A, positive while charging
    temperature: float = 0.0  # degrees Celsius
    serial_number: str = "--"
    charge_limit: Optional[int] = None  # percent, as reported by power_info

    @property
    def is_discharging(self) -> bool:
        """True when energy is flowing out of the battery."""
        return self.battery_power < 0

    @property
    def on_adapter(self) -> bool:
        """True when the power adapter is delivering power."""
        return self.adapter_power > 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
