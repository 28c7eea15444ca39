"""Exception hierarchy for the Oracle Cloud driver.

Every failure the driver surfaces to the host derives from OracleCloudError.
"""

from __future__ import annotations

from collections.abc import Sequence


class OracleCloudError(Exception):
    """Base class for driver failures."""


class ConfigError(OracleCloudError, ValueError):
    """Driver configuration is missing or invalid."""


class ApiError(OracleCloudError):
    """Oracle Cloud API request failed.

    ``status`` is the HTTP status code, or 0 when no response was received.
    """

    def __init__(self, status: int, body: str) -> None:
        super().__init__(status, body)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        if self.status == 0:
            return f"Request failed: {self.body}"
        return f"HTTP {self.status}: {self.body}"


class NotFoundError(ApiError):
    """Requested resource does not exist remotely."""


class RemoteError(OracleCloudError):
    """Remote resource transitioned into an error state."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = tuple(errors)
        super().__init__(f"Request encountered an error: {format_errors(self.errors)}")


class WaitTimeoutError(OracleCloudError, TimeoutError):
    """Remote resource did not reach its target status in time."""

    def __init__(self, wait_time: float) -> None:
        self.wait_time = wait_time
        super().__init__(
            f"Request did not complete in {wait_time:g} seconds. "
            "Check the Oracle Cloud Web UI for more information."
        )


class NoAddressError(OracleCloudError):
    """Instance became ready without a usable IP address."""


class StateError(OracleCloudError):
    """Persisted state record is unreadable."""


class UnreachableError(OracleCloudError):
    """Instance address never accepted a connection."""

    def __init__(self, hostname: str, port: int, timeout: float) -> None:
        self.hostname = hostname
        self.port = port
        self.timeout = timeout
        super().__init__(f"{hostname}:{port} not reachable after {timeout:g}s")


def format_errors(errors: Sequence[str]) -> str:
    return "; ".join(errors) if errors else "unknown error"


__all__ = [
    "ApiError",
    "ConfigError",
    "NoAddressError",
    "NotFoundError",
    "OracleCloudError",
    "RemoteError",
    "StateError",
    "UnreachableError",
    "WaitTimeoutError",
    "format_errors",
]
