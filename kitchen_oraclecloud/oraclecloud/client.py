"""HTTP client for the Oracle Compute Cloud (Classic) API.

Uses a synchronous httpx client with cookie-based session authentication.
Returns TypedDicts directly, wrapped in resource objects where the driver
needs behaviour (see resources.py).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger

from kitchen_oraclecloud.errors import ApiError, NotFoundError

from .resources import InstanceRequest, Orchestrations
from .types import InstanceResponse, IpAssociationResponse, ListResponse, PublicIp

MEDIA_TYPE = "application/oracle-compute-v3+json"

log = logger.bind(component="oraclecloud")


class OracleCloudClient:
    """Client for one Oracle Cloud account.

    Authenticates lazily on the first request and keeps the session cookie
    for the lifetime of the client. An expired session (HTTP 401) is
    renewed once per request.

    Example:
        with OracleCloudClient(
            username="jdoe",
            password="secret",
            api_url="https://api-z999.compute.us0.oraclecloud.com",
            identity_domain="mydomain",
        ) as client:
            orchestration = client.orchestrations.by_name("/Compute-mydomain/jdoe/TK-demo")
    """

    def __init__(
        self,
        *,
        username: str,
        password: str,
        api_url: str,
        identity_domain: str,
        verify_ssl: bool = True,
        timeout: float = 60,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.username = username
        self.identity_domain = identity_domain
        self._password = password
        self._http = httpx.Client(
            base_url=api_url.rstrip("/"),
            verify=verify_ssl,
            timeout=timeout,
            headers={"Accept": MEDIA_TYPE, "Content-Type": MEDIA_TYPE},
            transport=transport,
        )
        self._authenticated = False
        self.orchestrations = Orchestrations(self)

    def __enter__(self) -> OracleCloudClient:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @property
    def full_identity_domain(self) -> str:
        return f"/Compute-{self.identity_domain}"

    @property
    def container(self) -> str:
        return f"{self.full_identity_domain}/{self.username}"

    def qualify(self, name: str) -> str:
        """Prefix a short object name with the user's container."""
        return name if name.startswith("/") else f"{self.container}/{name}"

    # =========================================================================
    # Session
    # =========================================================================

    def authenticate(self) -> None:
        log.debug("Authenticating {user} against {url}", user=self.container, url=self._http.base_url)
        resp = self._send(
            "POST",
            "/authenticate/",
            json={"user": self.container, "password": self._password},
        )
        if resp.is_error:
            raise ApiError(resp.status_code, f"Authentication failed: {resp.text}")
        self._authenticated = True

    def _send(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            return self._http.request(method, path, json=json, params=params)
        except httpx.RequestError as e:
            raise ApiError(0, f"{method} {path}: {e}") from e

    def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute an authenticated request and return the JSON body."""
        if not self._authenticated:
            self.authenticate()

        resp = self._send(method, path, json=json, params=params)
        if resp.status_code == 401:
            log.debug("Session expired, re-authenticating")
            self._authenticated = False
            self.authenticate()
            resp = self._send(method, path, json=json, params=params)

        if resp.status_code == 404:
            raise NotFoundError(404, resp.text)
        if resp.is_error:
            raise ApiError(resp.status_code, resp.text)
        return resp.json() if resp.content else None

    # =========================================================================
    # Instances
    # =========================================================================

    def instance_request(
        self,
        *,
        name: str,
        shape: str,
        imagelist: str,
        sshkeys: Sequence[str] = (),
        public_ip: PublicIp | str | None = None,
    ) -> InstanceRequest:
        return InstanceRequest(
            name=self.qualify(name),
            label=name,
            shape=shape,
            imagelist=imagelist,
            sshkeys=tuple(sshkeys),
            public_ip=public_ip,
        )

    def list_instances(self, prefix: str) -> list[InstanceResponse]:
        """List instances whose names start with ``prefix``."""
        result: ListResponse[InstanceResponse] | None = self.request(
            "GET", f"/instance{self.qualify(prefix)}/"
        )
        return list((result or {}).get("result", []))

    def list_ip_associations(self) -> list[IpAssociationResponse]:
        result: ListResponse[IpAssociationResponse] | None = self.request(
            "GET", f"/ip/association{self.full_identity_domain}/"
        )
        return list((result or {}).get("result", []))
