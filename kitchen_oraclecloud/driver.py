"""Oracle Cloud provisioning driver.

Creates one Oracle Compute instance per host instance, wrapped in an
orchestration, and tears it down again. The host calls ``create`` and
``destroy`` with a state record it persists between the two calls.

Example:
    from kitchen_oraclecloud import Instance, OracleCloud, OracleCloudDriver, TCPTransport

    driver = OracleCloudDriver(config, Instance("default-ol7", TCPTransport()))
    state: dict[str, str] = {}
    driver.create(state)   # state now holds orchestration_id and hostname
    driver.destroy(state)
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from kitchen_oraclecloud.config import OracleCloud
from kitchen_oraclecloud.constants import (
    DRIVER_API_VERSION,
    DRIVER_NAME,
    ORCHESTRATION_PREFIX,
    VERSION,
    OrchestrationStatus,
)
from kitchen_oraclecloud.errors import NoAddressError, NotFoundError
from kitchen_oraclecloud.oraclecloud import (
    InstanceRequest,
    OracleCloudClient,
    Orchestration,
    PublicIp,
    Server,
)
from kitchen_oraclecloud.state import HOSTNAME, ORCHESTRATION_ID, State
from kitchen_oraclecloud.transport import Transport
from kitchen_oraclecloud.wait import Pollable, wait_for_status

log = logger.bind(component="driver")


class Driver(Protocol):
    """Lifecycle contract between the host and a driver plugin."""

    name: str
    api_version: int
    plugin_version: str

    def create(self, state: State) -> None: ...

    def destroy(self, state: State) -> None: ...


@dataclass(frozen=True, slots=True)
class Instance:
    """Host-side instance the driver provisions for."""

    name: str
    transport: Transport


def orchestration_name(project_name: str, instance_name: str) -> str:
    """Orchestration name for an instance, with whitespace removed.

    >>> orchestration_name("my test project", "test instance")
    'TK-mytestproject-testinstance'
    """
    return f"{ORCHESTRATION_PREFIX}-{_strip(project_name)}-{_strip(instance_name)}"


def _strip(value: str) -> str:
    return "".join(value.split())


class OracleCloudDriver:
    """Driver for Oracle Compute Cloud (Classic).

    The driver holds at most one orchestration, set either when ``create``
    creates it or when ``destroy`` looks it up.

    Args:
        config: Driver configuration.
        instance: Host instance being provisioned.
        client: API client. Built from ``config`` when omitted.
        sleep: Sleep function used between status polls.
    """

    name = DRIVER_NAME
    api_version = DRIVER_API_VERSION
    plugin_version = VERSION

    def __init__(
        self,
        config: OracleCloud,
        instance: Instance,
        *,
        client: OracleCloudClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.instance = instance
        self._client = client
        self._sleep = sleep
        self._orchestration: Orchestration | None = None
        self._server: Server | None = None
        self._project_name: str | None = None
        self._log = log.bind(instance=instance.name)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create(self, state: State) -> None:
        if state.get(ORCHESTRATION_ID) is not None:
            return

        self._log.info("Creating Oracle Cloud orchestration...")
        orchestration = self._create_orchestration()
        self._log = self._log.bind(orchestration=orchestration.name_with_container)

        self._log.info(
            "Orchestration {name} created. Starting...",
            name=orchestration.name_with_container,
        )
        orchestration.start()
        self.wait_for_status(orchestration, OrchestrationStatus.READY)

        state[ORCHESTRATION_ID] = orchestration.name_with_container

        ip_address = self.server_ip_address()
        if ip_address is None:
            message = "No IP address returned for Oracle Cloud instance"
            self._log.error(message)
            raise NoAddressError(message)

        state[HOSTNAME] = ip_address

        self.wait_for_server(state)
        self._log.info("Server {name} ready.", name=self.orchestration_name)

    def destroy(self, state: State) -> None:
        orchestration_id = state.get(ORCHESTRATION_ID)
        if orchestration_id is None:
            return

        self._log.info("Looking up orchestration {id}...", id=orchestration_id)

        try:
            orchestration = self._lookup_orchestration(orchestration_id)
        except NotFoundError:
            self._log.warning(
                "No orchestration found with ID {id}, assuming it has been destroyed already.",
                id=orchestration_id,
            )
            return

        self._log = self._log.bind(orchestration=orchestration.name_with_container)
        self._log.info(
            "Stopping orchestration {name} and associated instance...",
            name=orchestration.name_with_container,
        )
        orchestration.stop()
        self.wait_for_status(orchestration, OrchestrationStatus.STOPPED)

        self._log.info(
            "Deleting orchestration {name} and associated instance...",
            name=orchestration.name_with_container,
        )
        orchestration.delete()
        self._log.info("Orchestration deleted.")

    # =========================================================================
    # Remote resources
    # =========================================================================

    @property
    def client(self) -> OracleCloudClient:
        if self._client is None:
            self._client = OracleCloudClient(
                username=self.config.username,
                password=self.config.password,
                api_url=self.config.api_url,
                identity_domain=self.config.identity_domain,
                verify_ssl=self.config.verify_ssl,
            )
        return self._client

    @property
    def orchestration(self) -> Orchestration | None:
        return self._orchestration

    def _create_orchestration(self) -> Orchestration:
        if self._orchestration is None:
            self._orchestration = self.client.orchestrations.create(
                name=self.orchestration_name,
                description=self.description,
                instances=[self.instance_request()],
            )
        return self._orchestration

    def _lookup_orchestration(self, name: str) -> Orchestration:
        if self._orchestration is None:
            self._orchestration = self.client.orchestrations.by_name(name)
        return self._orchestration

    def instance_request(self) -> InstanceRequest:
        return self.client.instance_request(
            name=self.orchestration_name,
            shape=self.config.shape,
            imagelist=self.config.image,
            sshkeys=self.sshkeys,
            public_ip=self.public_ip,
        )

    def server(self) -> Server | None:
        if self._server is None:
            if self._orchestration is None:
                raise RuntimeError("No orchestration to read instances from")
            servers = self._orchestration.instances()
            self._server = servers[0] if servers else None
        return self._server

    def server_ip_address(self) -> str | None:
        """First public address of the server, else its private address."""
        server = self.server()
        if server is None:
            return None
        public_ips = server.public_ip_addresses()
        return public_ips[0] if public_ips else server.ip_address

    # =========================================================================
    # Waiting
    # =========================================================================

    def wait_for_server(self, state: State) -> None:
        self._log.info("Server {name} created. Waiting until ready...", name=self.orchestration_name)
        try:
            self.instance.transport.wait_until_ready(state)
        except Exception:
            self._log.error(
                "Server {name} not reachable. Destroying server...", name=self.orchestration_name
            )
            self.destroy(state)
            raise

    def wait_for_status(self, item: Pollable, requested_status: str) -> None:
        wait_for_status(
            item,
            requested_status,
            timeout=self.config.wait_time,
            interval=self.config.refresh_time,
            sleep=self._sleep,
        )

    # =========================================================================
    # Derived settings
    # =========================================================================

    @property
    def description(self) -> str:
        if self.config.description is None:
            return f"{self.instance.name} for {self.config.username} via Test Kitchen"
        return self.config.description

    @property
    def project_name(self) -> str:
        if self._project_name is None:
            configured = self.config.project_name
            self._project_name = str(uuid.uuid4()) if configured is None else _strip(configured)
        return self._project_name

    @property
    def orchestration_name(self) -> str:
        return orchestration_name(self.project_name, self.instance.name)

    @property
    def sshkeys(self) -> tuple[str, ...]:
        return tuple(f"{self.client.full_identity_domain}/{key}" for key in self.config.sshkeys)

    @property
    def public_ip(self) -> PublicIp | str | None:
        match self.config.public_ip:
            case None | "":
                return None
            case "pool":
                return PublicIp.POOL
            case reservation:
                return f"ipreservation:{reservation}"


__all__ = ["Driver", "Instance", "OracleCloudDriver", "orchestration_name"]
