"""Centralized constants for the Oracle Cloud driver."""

from __future__ import annotations

from enum import StrEnum
from typing import Final

VERSION: Final = "0.1.0"

DRIVER_NAME: Final = "OracleCloud"

DRIVER_API_VERSION: Final = 2
"""Host driver API version this plugin implements."""

ORCHESTRATION_PREFIX: Final = "TK"
"""Prefix of every orchestration name created by the driver."""


# =============================================================================
# Orchestration States
# =============================================================================


class OrchestrationStatus(StrEnum):
    """Orchestration status names the driver waits for."""

    READY = "ready"
    STOPPED = "stopped"
    ERROR = "error"


# =============================================================================
# Transport Defaults
# =============================================================================

DEFAULT_SSH_PORT: Final = 22

DEFAULT_CONNECT_TIMEOUT = 300.0
"""Maximum time to wait for the instance to accept connections."""
