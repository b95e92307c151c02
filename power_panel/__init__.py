"""
Power Panel - Laptop Battery & Power Telemetry Panel

A system tray application that reads battery and adapter telemetry from
power_info and the smart battery registry, shows it in a live panel, and
sets the battery charge limit through the local charge limit daemon.
"""

__version__ = "1.0.0"
__author__ = "Power Panel Team"
