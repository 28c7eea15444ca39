"""Oracle Compute Classic API types.

TypedDicts for API payloads - no conversion needed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Request Types
# =============================================================================


class PublicIp(Enum):
    """Public IP requests that are not a named reservation."""

    POOL = "ippool:/oracle/public/ippool"


class InterfaceSpec(TypedDict):
    nat: NotRequired[str]


class InstanceSpec(TypedDict):
    """Instance entry of a launch plan."""

    name: str
    label: str
    shape: str
    imagelist: str
    sshkeys: list[str]
    networking: NotRequired[dict[str, InterfaceSpec]]


# =============================================================================
# Response Types
# =============================================================================


class PlanInfo(TypedDict):
    errors: NotRequired[dict[str, Any] | list[Any]]


class PlanObject(TypedDict):
    instances: NotRequired[list[InstanceSpec]]


class OrchestrationPlan(TypedDict):
    label: str
    obj_type: str
    ha_policy: NotRequired[str]
    objects: list[PlanObject]
    status: NotRequired[str]
    info: NotRequired[PlanInfo]


class OrchestrationResponse(TypedDict):
    """Orchestration from /orchestration/."""

    name: str
    status: str
    description: NotRequired[str]
    oplans: list[OrchestrationPlan]
    info: NotRequired[PlanInfo]
    uri: NotRequired[str]


class InstanceResponse(TypedDict):
    """Instance from /instance/."""

    name: str
    state: NotRequired[str]
    ip: NotRequired[str]
    vcable_id: NotRequired[str]
    shape: NotRequired[str]
    label: NotRequired[str]


class IpAssociationResponse(TypedDict):
    """IP association from /ip/association/."""

    name: str
    ip: str
    vcable: str
    reservation: NotRequired[str]


class ListResponse[T](TypedDict):
    result: list[T]
