"""
Configuration management for Power Panel.

Handles loading, validating, and saving application configuration.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger("PowerPanel.Config")


class ConfigManager:
    """Thread-safe configuration manager."""

    DEFAULT_CONFIG = {
        "refresh_interval_seconds": 1,
        "command_timeout_seconds": 5,
        "stale_after_seconds": 10,
        "shell": "/bin/zsh",
        "shell_profile": "~/.zshrc",
        "power_info_path": "",
        "charge_limit_socket": "/var/run/batt.sock",
        "default_charge_limit": 70,
        "log_level": "INFO",
        "log_retention_days": 30,
        "enable_notifications": True,
        "notification_cooldown_minutes": 15,
        "auto_start_monitoring": True
    }

    VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    def __init__(self, config_path: str = "config.json"):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path)
        self.lock = threading.Lock()
        self.config = self._load_config()

    def _load_config(self) -> Dict:
        """
        Load configuration from file, applying defaults if missing.

        Logging is not configured yet when this runs, so problems are printed.

        Returns:
            Configuration dictionary
        """
        config = self.DEFAULT_CONFIG.copy()

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    user_config = json.load(f)

                if isinstance(user_config, dict):
                    config.update(user_config)
                    print(f"Configuration loaded from {self.config_path}")
                else:
                    print(f"Ignoring config file {self.config_path}: top level is not an object")

            except json.JSONDecodeError as e:
                print(f"Error parsing config file: {e}")
                print("Using default configuration")
            except OSError as e:
                print(f"Error loading config: {e}")
                print("Using default configuration")
        else:
            print(f"Config file not found at {self.config_path}")
            print("Using default configuration")

        return self._validate_config(config)

    @staticmethod
    def _clamp(config: Dict, key: str, default, low, high, integer: bool = False):
        value = config.get(key)
        # bool is an int subclass, reject it explicitly
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            config[key] = default
            return
        value = max(low, min(high, value))
        config[key] = int(value) if integer else value

    def _validate_config(self, config: Dict) -> Dict:
        """
        Validate and sanitize configuration values.

        Args:
            config: Configuration dictionary to validate

        Returns:
            Validated configuration dictionary
        """
        # Timing
        self._clamp(config, "refresh_interval_seconds", 1, 0.5, 60)
        self._clamp(config, "command_timeout_seconds", 5, 1, 60)
        self._clamp(config, "stale_after_seconds", 10, 1, 3600)

        # Stale threshold must leave room for at least two refresh cycles
        min_stale = config["refresh_interval_seconds"] * 2
        if config["stale_after_seconds"] < min_stale:
            config["stale_after_seconds"] = min_stale

        # Shell and paths
        for key in ("shell", "charge_limit_socket"):
            if not isinstance(config.get(key), str) or not config[key].strip():
                config[key] = self.DEFAULT_CONFIG[key]

        for key in ("shell_profile", "power_info_path"):
            if not isinstance(config.get(key), str):
                config[key] = self.DEFAULT_CONFIG[key]

        # Charge limit slider range
        self._clamp(config, "default_charge_limit", 70, 10, 99, integer=True)

        # Logging
        if config.get("log_level") not in self.VALID_LOG_LEVELS:
            config["log_level"] = "INFO"
        self._clamp(config, "log_retention_days", 30, 1, 365, integer=True)

        # Notifications
        self._clamp(config, "notification_cooldown_minutes", 15, 1, 120)

        # Validate boolean settings
        if not isinstance(config.get("enable_notifications"), bool):
            config["enable_notifications"] = True

        if not isinstance(config.get("auto_start_monitoring"), bool):
            config["auto_start_monitoring"] = True

        return config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        with self.lock:
            return self.config.get(key, default)

    def update(self, updates: Dict) -> bool:
        """
        Update multiple configuration values.

        Args:
            updates: Dictionary of key-value pairs to update

        Returns:
            True if successful, False otherwise
        """
        with self.lock:
            new_config = self.config.copy()
            new_config.update(updates)
            self.config = self._validate_config(new_config)

        logger.info(f"Configuration updated: {list(updates.keys())}")
        return True

    def set(self, key: str, value: Any) -> bool:
        """Set a single configuration value."""
        return self.update({key: value})

    def save(self) -> bool:
        """
        Save configuration to file.

        Returns:
            True if successful, False otherwise
        """
        with self.lock:
            try:
                # Ensure parent directory exists
                self.config_path.parent.mkdir(parents=True, exist_ok=True)

                with open(self.config_path, 'w') as f:
                    json.dump(self.config, f, indent=2)

            except OSError as e:
                logger.error(f"Error saving configuration: {e}")
                return False

        logger.info(f"Configuration saved to {self.config_path}")
        return True
