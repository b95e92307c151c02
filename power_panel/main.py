"""
Entry point for Power Panel with system tray icon.

Wires the telemetry monitor, the charge limit client and the notifier to a
tray icon and a tkinter panel window.
"""

import os
import platform
import signal
import subprocess
import sys
import threading
import tkinter as tk
from pathlib import Path
from tkinter import messagebox

import pystray

from power_panel import __version__
from power_panel.charge_limit import ChargeLimitClient, ChargeLimitError
from power_panel.config import ConfigManager
from power_panel.display import format_tooltip
from power_panel.icons import icon_key, render_status_icon
from power_panel.logger import LogManager, setup_logging
from power_panel.monitor import TelemetryMonitor, TelemetryStatus
from power_panel.notifier import PanelNotifier
from power_panel.ui.panel_window import PanelWindow

LOG_DIR = "data/logs"


class PowerPanelApp:
    """Main application class with system tray icon."""

    def __init__(self):
        """Initialize the Power Panel application."""
        self.config = ConfigManager("config.json")
        self.logger = setup_logging(self.config, LOG_DIR)
        self.log_manager = LogManager(self.config, LOG_DIR)

        self.monitor = TelemetryMonitor(self.config)
        self.notifier = PanelNotifier(self.config)
        self.charge_limit_client = ChargeLimitClient(
            self.config.get("charge_limit_socket"),
            timeout=self.config.get("command_timeout_seconds", 5),
        )

        self.shutdown_event = threading.Event()
        self.shutdown_initiated = False

        self.icon = None
        self._icon_key = None
        self.panel = None

        # Hidden Tkinter root window (required for dialogs)
        self.root = tk.Tk()
        self.root.withdraw()

        if not self.monitor.collector.is_available():
            self.logger.warning("power_info executable not found; telemetry will stay empty")

        self.logger.info(f"Power Panel {__version__} initialized on {platform.system()}")

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully."""
        self.logger.info(f"Received signal {signum}, shutting down...")
        self.shutdown_event.set()
        try:
            self.root.after_idle(self.shutdown)
        except tk.TclError:
            self.shutdown()

    def _check_shutdown_periodic(self):
        """Periodically check if shutdown was requested (makes Ctrl+C responsive)."""
        if self.shutdown_event.is_set():
            self.shutdown()
        else:
            self.root.after(100, self._check_shutdown_periodic)

    def _on_telemetry(self, status: TelemetryStatus):
        """Monitor listener; runs on the monitor thread."""
        if self.icon is not None:
            key = icon_key(status)
            if key != self._icon_key:
                self._icon_key = key
                self.icon.icon = render_status_icon(status)
            self.icon.title = format_tooltip(status)

        self.notifier.update_staleness(status.stale, status.last_error)

    def _on_show_panel(self, icon, item):
        """Handle 'Show Panel' menu click."""
        self.root.after(0, self._show_panel)

    def _show_panel(self):
        try:
            if self.panel is not None and self.panel.winfo_exists():
                self.panel.deiconify()
                self.panel.lift()
                return

            self.panel = PanelWindow(
                self.root,
                self.monitor,
                initial_limit=self.config.get("default_charge_limit", 70),
                on_limit_change=self._on_limit_change,
            )
        except Exception as e:
            self.logger.error(f"Error opening panel window: {e}", exc_info=True)
            messagebox.showerror("Error", f"Failed to open panel window:\n{e}")

    def _on_limit_change(self, percent: int):
        """Send the new limit off the Tk thread."""
        threading.Thread(
            target=self._apply_charge_limit, args=(percent,), daemon=True, name="ChargeLimit"
        ).start()

    def _apply_charge_limit(self, percent: int):
        try:
            confirmed = self.charge_limit_client.set_limit(percent)
        except (ChargeLimitError, ValueError) as e:
            self.logger.error(f"Cannot set charge limit: {e}")
            self.notifier.notify_charge_limit_failed(str(e))
            return

        # The slider opens at the last limit the daemon accepted
        if self.config.set("default_charge_limit", confirmed):
            self.config.save()

        self.notifier.notify_charge_limit_set(confirmed)

    def _on_refresh_now(self, icon, item):
        """Handle 'Refresh Now' menu click."""
        threading.Thread(target=self.monitor.refresh, daemon=True, name="ManualRefresh").start()

    def _get_monitoring_menu_text(self, item):
        """Dynamic menu text reflecting whether the monitor is running."""
        return "Stop Monitoring" if self.monitor.is_running else "Start Monitoring"

    def _on_toggle_monitoring(self, icon, item):
        """Handle Start/Stop Monitoring menu click."""
        if self.monitor.is_running:
            threading.Thread(target=self.monitor.stop, daemon=True, name="MonitorStop").start()
        else:
            self.monitor.start()

    def _on_open_logs_folder(self, icon, item):
        """Handle 'Open Logs Folder' menu click."""
        try:
            logs_path = Path(LOG_DIR).resolve()
            logs_path.mkdir(parents=True, exist_ok=True)

            system = platform.system().lower()
            if system == "windows":
                os.startfile(logs_path)
            elif system == "darwin":
                subprocess.Popen(["open", str(logs_path)])
            else:
                subprocess.Popen(["xdg-open", str(logs_path)])

            self.logger.info(f"Opened logs folder: {logs_path}")

        except OSError as e:
            self.logger.error(f"Error opening logs folder: {e}", exc_info=True)
            error_msg = str(e)
            self.root.after(
                0, lambda: messagebox.showerror("Error", f"Failed to open logs folder:\n{error_msg}")
            )

    def _on_about(self, icon, item):
        """Handle 'About' menu click."""
        log_stats = self.log_manager.get_log_stats()
        about_text = (
            "Power Panel\n\n"
            f"Version {__version__}\n\n"
            "Live battery, adapter and system power readings\n"
            "with a battery charge limit control.\n\n"
            f"Log files: {log_stats['log_count']} ({log_stats['total_size_mb']} MB)\n"
            "Platform: " + platform.system() + "\n"
            "Python: " + platform.python_version()
        )
        self.root.after(0, lambda: messagebox.showinfo("About Power Panel", about_text))

    def _on_quit(self, icon, item):
        """Handle 'Quit' menu click."""
        self.logger.info("Quit requested from tray menu")
        self.shutdown()

    def shutdown(self):
        """Perform graceful shutdown of the application."""
        if self.shutdown_initiated:
            return

        self.shutdown_initiated = True
        self.logger.info("Initiating shutdown...")
        self.shutdown_event.set()

        if self.monitor.is_running:
            self.monitor.stop()

        if self.icon:
            self.icon.stop()

        try:
            if threading.current_thread() is threading.main_thread():
                self.root.quit()
            else:
                self.root.after(0, self.root.quit)
        except tk.TclError as e:
            self.logger.error(f"Error quitting Tkinter: {e}")

        self.logger.info("Shutdown complete")

    def _create_tray_menu(self):
        """
        Create system tray menu.

        Returns:
            pystray.Menu object
        """
        return pystray.Menu(
            pystray.MenuItem("Show Panel", self._on_show_panel, default=True),
            pystray.MenuItem("Refresh Now", self._on_refresh_now),
            pystray.MenuItem(self._get_monitoring_menu_text, self._on_toggle_monitoring),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Open Logs Folder", self._on_open_logs_folder),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("About", self._on_about),
            pystray.MenuItem("Quit", self._on_quit),
        )

    def run(self):
        """Run the application with system tray icon."""
        try:
            self.log_manager.perform_cleanup()

            status = self.monitor.get_status()
            self._icon_key = icon_key(status)
            self.icon = pystray.Icon(
                "Power Panel",
                render_status_icon(status),
                format_tooltip(status),
                menu=self._create_tray_menu(),
            )

            self.monitor.add_listener(self._on_telemetry)
            if self.config.get("auto_start_monitoring", True):
                self.monitor.start()

            system = platform.system()
            if system == "Darwin":
                # Tk's main loop also services the AppKit events pystray needs
                self.icon.run_detached()
            else:
                icon_thread = threading.Thread(target=self.icon.run, daemon=True, name="PystrayThread")
                icon_thread.start()

            # Tkinter mainloop on main thread (this blocks)
            self.root.after(100, self._check_shutdown_periodic)
            self.root.mainloop()

        except Exception as e:
            self.logger.error(f"Error running application: {e}", exc_info=True)
            raise

        finally:
            if not self.shutdown_event.is_set():
                self.shutdown()


def main():
    """Entry point for the application."""
    try:
        app = PowerPanelApp()
        app.run()

    except KeyboardInterrupt:
        print("\nShutdown requested by user")

    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
