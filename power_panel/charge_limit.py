"""
Client for the battery charge limit daemon.

The daemon listens on a Unix domain socket and accepts the desired upper
charge limit as the body of ``PUT /limit``. It answers with human readable
text; a successful change mentions "charging limit to NN%".
"""

import logging
from typing import Optional

import httpx

from power_panel.parser import extract_confirmed_limit

MIN_LIMIT = 10
MAX_LIMIT = 99


class ChargeLimitError(Exception):
    """Base exception for charge limit failures."""


class ChargeLimitConnectionError(ChargeLimitError):
    """Raised when the daemon socket cannot be reached."""


class ChargeLimitRejectedError(ChargeLimitError):
    """Raised when the daemon answers without confirming the new limit."""


class ChargeLimitClient:
    """Sends charge limit changes to the local daemon."""

    def __init__(
        self,
        socket_path: str = "/var/run/batt.sock",
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the charge limit client.

        Args:
            socket_path: Path of the daemon's Unix domain socket
            timeout: Request timeout in seconds
            transport: Override the Unix socket transport (used by tests)
        """
        self.socket_path = socket_path
        self.timeout = timeout
        self._transport = transport
        self.logger = logging.getLogger("PowerPanel.ChargeLimit")

    def _client(self) -> httpx.Client:
        transport = self._transport or httpx.HTTPTransport(uds=self.socket_path)
        return httpx.Client(transport=transport, base_url="http://localhost", timeout=self.timeout)

    def set_limit(self, percent: int) -> int:
        """
        Ask the daemon to change the upper charge limit.

        Args:
            percent: Desired limit, between 10 and 99

        Returns:
            The limit confirmed by the daemon

        Raises:
            ValueError: If percent is out of range
            ChargeLimitConnectionError: If the daemon cannot be reached
            ChargeLimitRejectedError: If the reply does not confirm the change
        """
        percent = int(percent)
        if not MIN_LIMIT <= percent <= MAX_LIMIT:
            raise ValueError(f"Charge limit must be between {MIN_LIMIT} and {MAX_LIMIT}, got {percent}")

        self.logger.info(f"Requesting charge limit {percent}%")

        try:
            with self._client() as client:
                response = client.put("/limit", content=str(percent))
        except httpx.TimeoutException as e:
            raise ChargeLimitConnectionError(
                f"Charge limit daemon at {self.socket_path} timed out"
            ) from e
        except httpx.TransportError as e:
            raise ChargeLimitConnectionError(
                f"Could not connect to charge limit daemon at {self.socket_path}: {e}"
            ) from e

        confirmed = extract_confirmed_limit(response.text)
        if confirmed is None:
            raise ChargeLimitRejectedError(
                f"Daemon did not confirm charge limit (HTTP {response.status_code}): "
                f"{response.text.strip()[:200]}"
            )

        self.logger.info(f"Charge limit set to {confirmed}%")
        return confirmed
