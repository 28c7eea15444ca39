"""Oracle Compute Cloud (Classic) API client.

Example:
    from kitchen_oraclecloud.oraclecloud import OracleCloudClient

    with OracleCloudClient(username=..., password=..., api_url=..., identity_domain=...) as client:
        orchestration = client.orchestrations.by_name(name)
        orchestration.refresh()
"""

from kitchen_oraclecloud.oraclecloud.client import OracleCloudClient
from kitchen_oraclecloud.oraclecloud.resources import (
    InstanceRequest,
    Orchestration,
    Orchestrations,
    Server,
)
from kitchen_oraclecloud.oraclecloud.types import PublicIp

__all__ = [
    "InstanceRequest",
    "OracleCloudClient",
    "Orchestration",
    "Orchestrations",
    "PublicIp",
    "Server",
]
