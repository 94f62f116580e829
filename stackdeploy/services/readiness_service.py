"""
Host readiness polling.

Waits for the freshly provisioned droplet to accept TCP connections on the
SSH port, then gives it a fixed settle delay so cloud-init can finish
writing host keys before Ansible connects.
"""

import socket
import time
from typing import Callable, Optional

from stackdeploy.constants import (
    SSH_CONNECTION_TIMEOUT,
    SSH_PORT,
    SSH_SETTLE_DELAY,
    SSH_WAIT_DELAY,
    SSH_WAIT_MAX_ATTEMPTS,
)
from stackdeploy.exceptions import ReadinessTimeoutError
from stackdeploy.logger import DeployLogger


def tcp_connect(host: str, port: int, timeout: float) -> bool:
    """Return True if a TCP connection to host:port succeeds."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class ReadinessWaiter:
    """Fixed-interval TCP polling with a bounded number of attempts."""

    def __init__(
        self,
        logger: Optional[DeployLogger] = None,
        connect: Callable[[str, int, float], bool] = tcp_connect,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        connect_timeout: float = SSH_CONNECTION_TIMEOUT,
    ):
        self.logger = logger
        self.connect = connect
        self.sleep = sleep
        self.clock = clock
        self.connect_timeout = connect_timeout

    def wait_for_reachable(
        self,
        host: str,
        port: int = SSH_PORT,
        max_attempts: int = SSH_WAIT_MAX_ATTEMPTS,
        interval: float = SSH_WAIT_DELAY,
        settle_delay: float = SSH_SETTLE_DELAY,
    ) -> int:
        """
        Block until host:port accepts a connection.

        Args:
            host: Host IP or hostname
            port: TCP port to probe
            max_attempts: Connection attempts before giving up
            interval: Seconds between attempts
            settle_delay: Seconds to wait once the port is open

        Returns:
            Number of attempts used

        Raises:
            ReadinessTimeoutError: If no attempt succeeded
        """
        started = self.clock()
        attempt_timeout = min(self.connect_timeout, interval)

        for attempt in range(1, max_attempts + 1):
            if self.connect(host, port, attempt_timeout):
                if self.logger:
                    self.logger.log(
                        f"{host}:{port} reachable on attempt {attempt}; "
                        f"waiting {settle_delay:g}s for the system to settle"
                    )
                self.sleep(settle_delay)
                return attempt

            if attempt == max_attempts:
                break

            if self.logger:
                self.logger.log(
                    f"Attempt {attempt}/{max_attempts}: server still booting "
                    f"(waiting {interval:g}s)"
                )
            self.sleep(interval)

        raise ReadinessTimeoutError(
            host=host,
            port=port,
            attempts=max_attempts,
            elapsed_seconds=self.clock() - started,
        )
