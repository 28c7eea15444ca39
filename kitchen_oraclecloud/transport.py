"""Transport abstraction for the reachability wait.

After an instance reports ready, the driver hands the state record to the
host instance's transport and blocks until the transport can connect.
TCPTransport is a minimal implementation that waits for a TCP port
(SSH by default) to accept connections.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Protocol

from loguru import logger
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_delay,
    wait_fixed,
)

from kitchen_oraclecloud.constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_SSH_PORT
from kitchen_oraclecloud.errors import UnreachableError
from kitchen_oraclecloud.state import HOSTNAME, State

log = logger.bind(component="transport")


class Transport(Protocol):
    """Connection to a provisioned instance."""

    def wait_until_ready(self, state: State) -> None:
        """Block until the instance in ``state`` accepts connections.

        Raises:
            Exception: Any failure; the driver destroys the instance and re-raises.
        """
        ...


class _PortNotReadyError(Exception):
    """Port not accepting connections yet - retry."""


@dataclass(frozen=True, slots=True)
class TCPTransport:
    """Waits for ``state["hostname"]:port`` to accept a TCP connection.

    Args:
        port: Port to connect to. Default: 22.
        timeout: Overall wait in seconds. Default: 300.
        interval: Seconds between attempts. Default: 5.
        connect_timeout: Per-attempt connect timeout in seconds. Default: 5.
    """

    port: int = DEFAULT_SSH_PORT
    timeout: float = DEFAULT_CONNECT_TIMEOUT
    interval: float = 5.0
    connect_timeout: float = 5.0

    def wait_until_ready(self, state: State) -> None:
        hostname = state[HOSTNAME]
        log.info("Waiting for {host}:{port} to accept connections", host=hostname, port=self.port)

        @retry(
            stop=stop_after_delay(self.timeout),
            wait=wait_fixed(self.interval),
            retry=retry_if_exception_type(_PortNotReadyError),
        )
        def _check() -> None:
            try:
                with socket.create_connection((hostname, self.port), timeout=self.connect_timeout):
                    return
            except OSError:
                raise _PortNotReadyError() from None

        try:
            _check()
        except RetryError as e:
            raise UnreachableError(hostname, self.port, self.timeout) from e

        log.debug("{host}:{port} is reachable", host=hostname, port=self.port)
