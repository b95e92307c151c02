"""
Telemetry monitoring loop.

Runs one collect+parse cycle at startup and then at a fixed rate on a
background thread. Each successful cycle publishes a new immutable
PowerSnapshot; failed cycles leave the previous snapshot in place.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from power_panel.collector import CollectionError, TelemetryCollector, cycle_time_limit
from power_panel.parser import parse
from power_panel.snapshot import PowerSnapshot


@dataclass(frozen=True)
class TelemetryStatus:
    """What readers see: the snapshot plus how fresh it is."""

    snapshot: PowerSnapshot
    last_update: Optional[float]  # wall clock time of the last successful cycle
    last_error: Optional[str]
    stale: bool

    @property
    def age_seconds(self) -> Optional[float]:
        if self.last_update is None:
            return None
        return max(0.0, time.time() - self.last_update)


class TelemetryMonitor:
    """
    Periodically refreshes power telemetry.

    refresh() is the only code path that replaces the published snapshot and
    it never runs twice at once: a call made while a cycle is in progress is
    skipped rather than queued.
    """

    def __init__(self, config, collector: Optional[TelemetryCollector] = None):
        """
        Initialize telemetry monitor.

        Args:
            config: ConfigManager instance
            collector: Source of raw telemetry text (defaults to TelemetryCollector)
        """
        self.config = config
        self.collector = collector or TelemetryCollector(config)
        self.logger = logging.getLogger("PowerPanel.Monitor")

        # Threading control
        self.stop_event = threading.Event()
        self.stop_event.set()  # Not running until start()
        self.monitor_thread = None

        self._cycle_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._snapshot = PowerSnapshot()
        self._last_update: Optional[float] = None
        self._last_error: Optional[str] = None

        self._listeners: List[Callable[[TelemetryStatus], None]] = []

    @property
    def is_running(self) -> bool:
        return self.monitor_thread is not None and self.monitor_thread.is_alive()

    def start(self):
        """Start monitoring in background thread."""
        if self.is_running:
            self.logger.warning("Monitor already running")
            return

        self.logger.info("Starting telemetry monitor...")
        self.stop_event.clear()
        self.monitor_thread = threading.Thread(
            target=self._monitor_loop, daemon=True, name="TelemetryMonitor"
        )
        self.monitor_thread.start()

    def stop(self):
        """Stop monitoring gracefully."""
        if self.stop_event.is_set():
            self.logger.warning("Monitor not running")
            return

        self.logger.info("Stopping telemetry monitor...")
        self.stop_event.set()

        if self.monitor_thread:
            self.monitor_thread.join(timeout=cycle_time_limit(self.config))
            if self.monitor_thread.is_alive():
                self.logger.warning("Telemetry cycle still running after stop timeout")

        self.logger.info("Telemetry monitor stopped")

    def add_listener(self, callback: Callable[[TelemetryStatus], None]):
        """Register a callback invoked from the monitor thread after each publish."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[TelemetryStatus], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _monitor_loop(self):
        """Fixed-rate loop; ticks missed by a slow cycle are dropped."""
        self.logger.info("Monitor loop started")
        next_run = time.monotonic()

        while not self.stop_event.is_set():
            try:
                self.refresh()
            except Exception as e:
                self.logger.error(f"Error in monitor loop: {e}", exc_info=True)

            interval = self.config.get("refresh_interval_seconds", 1)
            next_run += interval
            now = time.monotonic()
            if next_run < now:
                missed = int((now - next_run) // interval) + 1
                self.logger.debug(f"Refresh cycle overran, skipping {missed} tick(s)")
                next_run += missed * interval

            self.stop_event.wait(timeout=next_run - now)

        self.logger.info("Monitor loop exited")

    def refresh(self) -> bool:
        """
        Run one collect+parse cycle and publish the result.

        Returns:
            True if a new snapshot was published, False if the cycle failed
            or was skipped because another one is still running
        """
        if not self._cycle_lock.acquire(blocking=False):
            self.logger.debug("Refresh already in progress, skipping")
            return False

        try:
            try:
                raw = self.collector.collect()
            except CollectionError as e:
                self.logger.error(f"Telemetry collection failed: {e}")
                with self._state_lock:
                    self._last_error = str(e)
                self._notify_listeners()
                return False

            # Only this thread writes, so reading the snapshot unlocked is safe
            snapshot = parse(raw, self._snapshot)

            with self._state_lock:
                self._snapshot = snapshot
                self._last_update = time.time()
                self._last_error = None

            self.logger.debug(
                f"Telemetry updated: battery={snapshot.battery_percent}%, "
                f"load={snapshot.system_power}W, charging={snapshot.is_charging}"
            )
        finally:
            self._cycle_lock.release()

        self._notify_listeners()
        return True

    def get_snapshot(self) -> PowerSnapshot:
        """Return the latest published snapshot."""
        with self._state_lock:
            return self._snapshot

    def get_status(self) -> TelemetryStatus:
        """Return the latest snapshot together with freshness information."""
        with self._state_lock:
            snapshot = self._snapshot
            last_update = self._last_update
            last_error = self._last_error

        stale_after = self.config.get("stale_after_seconds", 10)
        stale = last_update is None or (time.time() - last_update) > stale_after

        return TelemetryStatus(
            snapshot=snapshot,
            last_update=last_update,
            last_error=last_error,
            stale=stale,
        )

    def _notify_listeners(self):
        status = self.get_status()
        for callback in list(self._listeners):
            try:
                callback(status)
            except Exception as e:
                self.logger.error(f"Telemetry listener failed: {e}", exc_info=True)
