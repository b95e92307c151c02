import json

import pytest

from power_panel.config import ConfigManager

POWER_INFO_OUTPUT = """\
battery_status=Charging
adapter_voltage=20.12V
adapter_amperage=3.05A
sys_power=12.34W
adapter_power=61.40W
battery_power=45.20W
battery_voltage=12.85V
battery_amperage=3.52A
Upper limit: 80%
"""

REGISTRY_OUTPUT = """\
    "AppleRawCurrentCapacity" = 3900
    "AppleRawMaxCapacity" = 4500
    "CurrentCapacity" = 87
    "CycleCount" = 123
    "DesignCapacity" = 5000
    "Serial" = "F8Y1234ABCD"
    "Temperature" = 3100
    "VirtualTemperature" = 3250
"""


@pytest.fixture
def raw_telemetry():
    return POWER_INFO_OUTPUT + REGISTRY_OUTPUT


@pytest.fixture
def make_config(tmp_path):
    """Build a ConfigManager backed by a config.json holding the given overrides."""
    def _make(**overrides):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(overrides))
        return ConfigManager(str(path))
    return _make


@pytest.fixture
def config(make_config):
    return make_config()
