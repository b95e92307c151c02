"""
Panel window showing live battery and power telemetry.

Displays the charge limit slider, the power flow line and every field of
the current PowerSnapshot, refreshed once per second from the monitor.
"""

import logging
import tkinter as tk
from tkinter import ttk
from typing import Callable, Optional

from power_panel.charge_limit import MAX_LIMIT, MIN_LIMIT
from power_panel.display import format_last_updated, format_power_flow, format_sections

REFRESH_MS = 1000
LIMIT_DEBOUNCE_MS = 500


class PanelWindow(tk.Toplevel):
    """Live telemetry panel."""

    def __init__(self, parent, monitor, initial_limit: int, on_limit_change: Optional[Callable[[int], None]] = None):
        """
        Initialize the panel window.

        Args:
            parent: Parent tkinter window
            monitor: TelemetryMonitor instance
            initial_limit: Charge limit shown before telemetry reports one
            on_limit_change: Called with the new limit once the slider settles
        """
        super().__init__(parent)

        self.monitor = monitor
        self.on_limit_change = on_limit_change
        self.logger = logging.getLogger("PowerPanel.PanelWindow")
        self.refresh_job = None
        self.limit_job = None
        self._limit_touched = False

        self.title("Power Panel")
        self.resizable(False, False)

        self.limit_var = tk.IntVar(value=initial_limit)
        self.value_labels = {}

        self._setup_ui()
        self._refresh()

        self.protocol("WM_DELETE_WINDOW", self._on_close)

    def _setup_ui(self):
        main_frame = ttk.Frame(self, padding="15")
        main_frame.grid(row=0, column=0, sticky=(tk.W, tk.E, tk.N, tk.S))
        main_frame.columnconfigure(1, weight=1)

        label_font = ("Arial", 10, "bold")
        value_font = ("Arial", 10)

        row = 0

        # Charge limit
        ttk.Label(main_frame, text="Charge Limit:", font=label_font).grid(
            row=row, column=0, sticky=tk.W, pady=5
        )
        self.limit_label = ttk.Label(main_frame, text=f"{self.limit_var.get()}%", font=value_font)
        self.limit_label.grid(row=row, column=1, sticky=tk.E, pady=5)
        row += 1

        scale = ttk.Scale(
            main_frame,
            from_=MIN_LIMIT,
            to=MAX_LIMIT,
            orient="horizontal",
            variable=self.limit_var,
            command=self._on_slider_move,
        )
        scale.grid(row=row, column=0, columnspan=2, sticky=(tk.W, tk.E), pady=(0, 5))
        scale.bind("<ButtonRelease-1>", self._on_slider_release)
        row += 1

        self.flow_label = ttk.Label(main_frame, text="", font=("Arial", 9))
        self.flow_label.grid(row=row, column=0, columnspan=2, sticky=tk.W, pady=(5, 0))
        row += 1

        # Telemetry sections, laid out from an empty snapshot's labels
        for section in format_sections(self.monitor.get_snapshot()):
            ttk.Separator(main_frame, orient="horizontal").grid(
                row=row, column=0, columnspan=2, sticky=(tk.W, tk.E), pady=8
            )
            row += 1

            for label, _ in section:
                ttk.Label(main_frame, text=f"{label}:", font=label_font).grid(
                    row=row, column=0, sticky=tk.W, pady=1
                )
                value_label = ttk.Label(main_frame, text="--", font=value_font)
                value_label.grid(row=row, column=1, sticky=tk.E, pady=1, padx=(20, 0))
                self.value_labels[label] = value_label
                row += 1

        ttk.Separator(main_frame, orient="horizontal").grid(
            row=row, column=0, columnspan=2, sticky=(tk.W, tk.E), pady=8
        )
        row += 1

        self.last_updated_label = ttk.Label(
            main_frame, text="Last updated: Never", font=("Arial", 8, "italic")
        )
        self.last_updated_label.grid(row=row, column=0, columnspan=2, sticky=tk.W)

    def _refresh(self):
        """Redraw every value from the latest published status."""
        try:
            status = self.monitor.get_status()
            snapshot = status.snapshot

            for section in format_sections(snapshot):
                for label, value in section:
                    self.value_labels[label].config(text=value)

            self.flow_label.config(text=format_power_flow(snapshot))
            self.last_updated_label.config(
                text=format_last_updated(status),
                foreground="red" if status.stale else ""
            )

            # Follow the daemon's limit until the user moves the slider
            if snapshot.charge_limit is not None and not self._limit_touched:
                self.limit_var.set(snapshot.charge_limit)
                self.limit_label.config(text=f"{snapshot.charge_limit}%")

        except Exception as e:
            self.logger.error(f"Error refreshing panel: {e}", exc_info=True)

        finally:
            self.refresh_job = self.after(REFRESH_MS, self._refresh)

    def _on_slider_move(self, value):
        self._limit_touched = True
        self.limit_label.config(text=f"{int(float(value))}%")

    def _on_slider_release(self, event):
        if self.limit_job:
            self.after_cancel(self.limit_job)
        self.limit_job = self.after(LIMIT_DEBOUNCE_MS, self._apply_limit)

    def _apply_limit(self):
        self.limit_job = None
        limit = int(self.limit_var.get())
        self.logger.debug(f"Charge limit slider settled at {limit}%")
        if self.on_limit_change:
            self.on_limit_change(limit)

    def _on_close(self):
        """Handle window close event."""
        for job in (self.refresh_job, self.limit_job):
            if job:
                self.after_cancel(job)
        self.refresh_job = None
        self.limit_job = None

        self.destroy()
