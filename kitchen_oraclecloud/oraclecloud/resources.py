"""Orchestration and instance resources."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kitchen_oraclecloud.constants import OrchestrationStatus

from .types import (
    InstanceResponse,
    InstanceSpec,
    OrchestrationPlan,
    OrchestrationResponse,
    PublicIp,
)

if TYPE_CHECKING:
    from .client import OracleCloudClient


@dataclass(frozen=True, slots=True)
class InstanceRequest:
    """One instance of an orchestration's launch plan."""

    name: str
    label: str
    shape: str
    imagelist: str
    sshkeys: tuple[str, ...] = ()
    public_ip: PublicIp | str | None = None

    def to_spec(self) -> InstanceSpec:
        spec: InstanceSpec = {
            "name": self.name,
            "label": self.label,
            "shape": self.shape,
            "imagelist": self.imagelist,
            "sshkeys": list(self.sshkeys),
        }
        match self.public_ip:
            case None:
                pass
            case PublicIp() as ip:
                spec["networking"] = {"eth0": {"nat": ip.value}}
            case str() as reservation:
                spec["networking"] = {"eth0": {"nat": reservation}}
        return spec


class Orchestrations:
    """Orchestration collection of a client."""

    def __init__(self, client: OracleCloudClient) -> None:
        self._client = client

    def create(
        self,
        *,
        name: str,
        description: str,
        instances: Sequence[InstanceRequest],
    ) -> Orchestration:
        full_name = self._client.qualify(name)
        body = {
            "name": full_name,
            "description": description,
            "relationships": [],
            "oplans": [
                {
                    "label": f"{name}-launchplan",
                    "obj_type": "launchplan",
                    "ha_policy": "active",
                    "objects": [{"instances": [i.to_spec() for i in instances]}],
                },
            ],
        }
        data: OrchestrationResponse = self._client.request("POST", "/orchestration/", json=body)
        return Orchestration(self._client, data)

    def by_name(self, name: str) -> Orchestration:
        """Look up an orchestration.

        Raises:
            NotFoundError: If no orchestration has that name.
        """
        full_name = self._client.qualify(name)
        data: OrchestrationResponse = self._client.request("GET", f"/orchestration{full_name}")
        return Orchestration(self._client, data)


class Orchestration:
    """Remote orchestration.

    ``status``, ``error`` and ``errors`` reflect the last fetched state;
    call ``refresh()`` to re-read it.
    """

    def __init__(self, client: OracleCloudClient, data: OrchestrationResponse) -> None:
        self._client = client
        self._data = data

    def __repr__(self) -> str:
        return f"Orchestration({self.name_with_container!r}, status={self.status!r})"

    @property
    def name_with_container(self) -> str:
        return self._data["name"]

    @property
    def status(self) -> str:
        return self._data.get("status", "")

    @property
    def error(self) -> bool:
        return self.status == OrchestrationStatus.ERROR

    @property
    def errors(self) -> list[str]:
        infos = [self._data.get("info") or {}]
        infos.extend(plan.get("info") or {} for plan in self._data.get("oplans") or [])
        return [msg for info in infos for msg in _error_messages(info.get("errors"))]

    def refresh(self) -> None:
        data = self._client.request("GET", f"/orchestration{self.name_with_container}")
        if data:
            self._data = data

    def start(self) -> None:
        self._action("START")

    def stop(self) -> None:
        self._action("STOP")

    def delete(self) -> None:
        self._client.request("DELETE", f"/orchestration{self.name_with_container}")

    def _action(self, action: str) -> None:
        data = self._client.request(
            "PUT", f"/orchestration{self.name_with_container}", params={"action": action}
        )
        if data:
            self._data = data

    def instances(self) -> list[Server]:
        """Instances launched by this orchestration's launch plans."""
        servers: list[Server] = []
        for spec in self._instance_specs():
            found = self._client.list_instances(spec["name"])
            servers.extend(Server(self._client, item) for item in found)
        return servers

    def _instance_specs(self) -> Iterator[InstanceSpec]:
        plans: list[OrchestrationPlan] = self._data.get("oplans", [])
        for plan in plans:
            if plan.get("obj_type") != "launchplan":
                continue
            for obj in plan.get("objects", []):
                yield from obj.get("instances", [])


class Server:
    """Compute instance attached to an orchestration."""

    def __init__(self, client: OracleCloudClient, data: InstanceResponse) -> None:
        self._client = client
        self._data = data

    def __repr__(self) -> str:
        return f"Server({self.name!r})"

    @property
    def name(self) -> str:
        return self._data["name"]

    @property
    def ip_address(self) -> str | None:
        """Private IP address."""
        return self._data.get("ip") or None

    def public_ip_addresses(self) -> list[str]:
        vcable = self._data.get("vcable_id")
        if not vcable:
            return []
        return [
            assoc["ip"]
            for assoc in self._client.list_ip_associations()
            if assoc.get("vcable") == vcable and assoc.get("ip")
        ]


def _error_messages(errors: Any) -> list[str]:
    match errors:
        case None:
            return []
        case dict():
            return [f"{key}: {value}" for key, value in errors.items()]
        case list() | tuple():
            return [str(e) for e in errors]
        case _:
            return [str(errors)]
