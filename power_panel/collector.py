"""
Telemetry collection from external commands.

Runs the bundled power_info tool and an ioreg query against the smart
battery device, each through the user's shell so that profile customisation
(PATH and friends) applies, and returns their combined text output.
"""

import contextlib
import logging
import os
import shlex
import signal
import subprocess
import sys
from importlib import resources
from pathlib import Path

import psutil

POWER_INFO_NAME = "power_info"

# Seconds to wait for killed processes and their pipes after a timeout
KILL_GRACE_SECONDS = 1

REGISTRY_KEYS = (
    "DesignCapacity",
    "CycleCount",
    "Serial",
    "Temperature",
    "CurrentCapacity",
    "AppleRawMaxCapacity",
)

REGISTRY_QUERY = "ioreg -r -c AppleSmartBattery | grep -E '%s'" % "|".join(REGISTRY_KEYS)

COMMANDS_PER_CYCLE = 2


def cycle_time_limit(config) -> float:
    """Longest one collect() call can block when every command times out."""
    # timeout, then the kill wait, the pipe drain and the final reap
    per_command = config.get("command_timeout_seconds", 5) + 3 * KILL_GRACE_SECONDS
    return COMMANDS_PER_CYCLE * per_command


class CollectionError(Exception):
    """Base exception for telemetry collection failures."""


class ResourceMissingError(CollectionError):
    """Raised when the power_info executable cannot be found."""


class SpawnFailedError(CollectionError):
    """Raised when a command process cannot be started."""


class CollectionTimeoutError(CollectionError):
    """Raised when a command does not finish in time."""


class TelemetryCollector:
    """
    Collects raw power telemetry text.

    One call to collect() spawns two shell processes and blocks until both
    have finished or timed out.
    """

    def __init__(self, config):
        """
        Initialize telemetry collector.

        Args:
            config: ConfigManager instance
        """
        self.config = config
        self.logger = logging.getLogger("PowerPanel.Collector")

    def locate_power_info(self) -> Path:
        """
        Find the power_info executable.

        Looks at the configured override first, then the packaged resource,
        then the PyInstaller bundle directory.

        Returns:
            Path to the executable

        Raises:
            ResourceMissingError: If no executable file is found
        """
        candidates = []

        override = self.config.get("power_info_path", "")
        if override:
            candidates.append(Path(override).expanduser())
        else:
            packaged = resources.files("power_panel").joinpath("resources").joinpath(POWER_INFO_NAME)
            candidates.append(Path(str(packaged)))
            if getattr(sys, "frozen", False):
                candidates.append(Path(sys._MEIPASS) / POWER_INFO_NAME)

        for candidate in candidates:
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return candidate

        searched = ", ".join(str(c) for c in candidates)
        raise ResourceMissingError(f"Executable '{POWER_INFO_NAME}' not found (searched: {searched})")

    def is_available(self) -> bool:
        """Presence check for the power_info executable."""
        try:
            self.locate_power_info()
            return True
        except ResourceMissingError:
            return False

    def collect(self) -> str:
        """
        Run both telemetry commands and concatenate their output.

        Returns:
            power_info output (stdout and stderr) followed by registry output

        Raises:
            CollectionError: If the executable is missing, a process cannot be
                started, or a process times out
        """
        power_info = self.locate_power_info()

        output = self._run_shell(shlex.quote(str(power_info)), label=POWER_INFO_NAME, merge_stderr=True)
        output += self._run_shell(REGISTRY_QUERY, label="ioreg", merge_stderr=False)

        return output

    def _build_script(self, command: str) -> str:
        profile = self.config.get("shell_profile", "")
        if not profile:
            return command
        return f"source {profile}; {command}"

    def _run_shell(self, command: str, label: str, merge_stderr: bool) -> str:
        """
        Run a command through the configured shell.

        Args:
            command: Shell command line
            label: Short name used in log messages
            merge_stderr: Capture stderr into the returned text

        Returns:
            Decoded output text ("" if it is not valid UTF-8)
        """
        shell = self.config.get("shell", "/bin/zsh")
        timeout = self.config.get("command_timeout_seconds", 5)

        try:
            process = subprocess.Popen(
                [shell, "-c", self._build_script(command)],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise SpawnFailedError(f"Could not start {label} via {shell}: {e}") from e

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            self._kill_tree(process.pid)
            self._drain(process, label)
            raise CollectionTimeoutError(f"{label} did not finish within {timeout}s") from e

        if process.returncode != 0:
            self.logger.debug(f"{label} exited with status {process.returncode}")
        if stderr:
            self.logger.debug(f"{label} stderr: {stderr[:200]!r}")

        return self._decode(stdout, label)

    def _decode(self, data: bytes, label: str) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            self.logger.warning(f"Discarding undecodable {label} output: {e}")
            return ""

    def _drain(self, process: subprocess.Popen, label: str):
        """Reap a killed shell without waiting on pipes held by escaped processes."""
        try:
            process.communicate(timeout=KILL_GRACE_SECONDS)
            return
        except subprocess.TimeoutExpired:
            self.logger.warning(f"{label} output pipe still held open after kill; closing it")

        for pipe in (process.stdout, process.stderr):
            if pipe is not None:
                pipe.close()

        with contextlib.suppress(subprocess.TimeoutExpired):
            process.wait(timeout=KILL_GRACE_SECONDS)

    def _kill_tree(self, pid: int):
        """
        Kill a shell and everything it started.

        The shell leads its own session, so killing its process group also
        reaches orphaned grandchildren. Descendants that moved to another
        group are swept up through psutil.
        """
        try:
            parent = psutil.Process(pid)
            processes = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            processes = []

        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(pid, signal.SIGKILL)

        for proc in processes:
            with contextlib.suppress(psutil.NoSuchProcess):
                proc.kill()

        if not processes:
            return

        gone, alive = psutil.wait_procs(processes, timeout=KILL_GRACE_SECONDS)
        if alive:
            self.logger.warning(f"{len(alive)} process(es) survived kill: {[p.pid for p in alive]}")
