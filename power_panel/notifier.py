"""
Desktop notifications for Power Panel events.
"""

import logging
import platform
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger("PowerPanel.Notifier")


class NotificationType(Enum):
    """Types of notifications that can be sent."""
    CHARGE_LIMIT_SET = "charge_limit_set"
    CHARGE_LIMIT_FAILED = "charge_limit_failed"
    TELEMETRY_STALE = "telemetry_stale"


class PanelNotifier:
    """Sends desktop notifications with a per-type cooldown."""

    def __init__(self, config):
        """
        Initialize the notifier.

        Args:
            config: ConfigManager instance
        """
        self.config = config
        self.last_notifications: Dict[NotificationType, datetime] = {}
        self._telemetry_stale = False
        self._notification_module = None
        self._initialize_notification_system()

    def _initialize_notification_system(self):
        """Load plyer's notification facade, falling back to the platform module for frozen builds."""
        try:
            from plyer import notification
            self._notification_module = notification
            logger.debug("Initialized notification system using plyer")
        except (ImportError, NotImplementedError) as e:
            logger.warning(f"Failed to import plyer normally: {e}")

            try:
                system = platform.system().lower()
                if system == 'darwin':
                    from plyer.platforms.macosx import notification
                elif system == 'linux':
                    from plyer.platforms.linux import notification
                elif system == 'windows':
                    from plyer.platforms.win import notification
                else:
                    logger.error(f"Unsupported platform: {system}")
                    return

                self._notification_module = notification
            except (ImportError, NotImplementedError) as e:
                logger.error(f"Failed to initialize notification system: {e}")

    def should_notify(self, notification_type: NotificationType) -> bool:
        """
        Check whether notifications are enabled and the cooldown has passed.

        Args:
            notification_type: The type of notification to check

        Returns:
            True if notification should be sent, False otherwise
        """
        if not self.config.get("enable_notifications", True):
            return False

        last_sent = self.last_notifications.get(notification_type)
        if last_sent is None:
            return True

        cooldown = timedelta(minutes=self.config.get("notification_cooldown_minutes", 15))
        elapsed = datetime.now() - last_sent
        if elapsed < cooldown:
            logger.debug(
                f"Notification cooldown active for {notification_type.value}. "
                f"Time remaining: {(cooldown - elapsed).total_seconds():.0f}s"
            )
            return False

        return True

    def _send_notification(self, title: str, message: str, notification_type: NotificationType) -> bool:
        """
        Send a notification and record when it was sent.

        Returns:
            True if notification was sent successfully, False otherwise
        """
        if not self._notification_module:
            logger.warning("Notification system not initialized, cannot send notification")
            return False

        if not self.should_notify(notification_type):
            return False

        try:
            self._notification_module.notify(
                title=title[:50],
                message=message[:200],
                app_name='Power Panel',
                timeout=10
            )
        except NotImplementedError:
            logger.error(
                "Notifications not implemented for this platform. "
                "Please install required system dependencies."
            )
            return False
        except Exception as e:
            logger.error(f"Failed to send notification: {e}", exc_info=True)
            return False

        self.last_notifications[notification_type] = datetime.now()
        logger.info(f"Sent {notification_type.value} notification: {title}")
        return True

    def notify_charge_limit_set(self, percent: int) -> bool:
        return self._send_notification(
            title="Charge Limit Updated",
            message=f"Battery will stop charging at {percent}%.",
            notification_type=NotificationType.CHARGE_LIMIT_SET
        )

    def notify_charge_limit_failed(self, reason: str) -> bool:
        return self._send_notification(
            title="Cannot Set Charge Limit",
            message=reason,
            notification_type=NotificationType.CHARGE_LIMIT_FAILED
        )

    def notify_telemetry_stale(self, last_error: str) -> bool:
        """Warn that the panel is showing old numbers."""
        message = "Battery readings are no longer updating."
        if last_error:
            message += f" {last_error}"

        return self._send_notification(
            title="Power Telemetry Stale",
            message=message,
            notification_type=NotificationType.TELEMETRY_STALE
        )

    def update_staleness(self, stale: bool, last_error: Optional[str]) -> bool:
        """
        Track telemetry freshness and warn when it turns stale.

        Covers telemetry that never arrived at all (power_info missing at
        startup) as well as telemetry that stopped updating.

        Returns:
            True if a notification was sent
        """
        became_stale = stale and not self._telemetry_stale
        self._telemetry_stale = stale

        if not became_stale:
            return False

        logger.warning(f"Telemetry is stale: {last_error}")
        return self.notify_telemetry_stale(last_error or "")
