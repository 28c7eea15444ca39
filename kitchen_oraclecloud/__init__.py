"""kitchen-oraclecloud - Oracle Compute Cloud driver for Test Kitchen-style hosts.

Example:

    from kitchen_oraclecloud import Instance, OracleCloudDriver, TCPTransport, resolve_config

    driver = OracleCloudDriver(resolve_config(), Instance("default-ol7", TCPTransport()))

    state: dict[str, str] = {}
    driver.create(state)
    try:
        ...  # converge and verify against state["hostname"]
    finally:
        driver.destroy(state)
"""

from loguru import logger

from kitchen_oraclecloud.config import OracleCloud, load_config, resolve_config
from kitchen_oraclecloud.constants import VERSION
from kitchen_oraclecloud.driver import Driver, Instance, OracleCloudDriver, orchestration_name
from kitchen_oraclecloud.errors import (
    ApiError,
    ConfigError,
    NoAddressError,
    NotFoundError,
    OracleCloudError,
    RemoteError,
    StateError,
    UnreachableError,
    WaitTimeoutError,
)
from kitchen_oraclecloud.observability import LogConfig
from kitchen_oraclecloud.state import StateFile
from kitchen_oraclecloud.transport import TCPTransport, Transport

__version__ = VERSION

# Library default: silent until the host opts in via setup_logging.
logger.disable("kitchen_oraclecloud")

__all__ = [
    "ApiError",
    "ConfigError",
    "Driver",
    "Instance",
    "LogConfig",
    "NoAddressError",
    "NotFoundError",
    "OracleCloud",
    "OracleCloudDriver",
    "OracleCloudError",
    "RemoteError",
    "StateError",
    "StateFile",
    "TCPTransport",
    "Transport",
    "UnreachableError",
    "WaitTimeoutError",
    "__version__",
    "load_config",
    "orchestration_name",
    "resolve_config",
]
