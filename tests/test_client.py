from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from kitchen_oraclecloud.errors import ApiError, NotFoundError, RemoteError
from kitchen_oraclecloud.oraclecloud import OracleCloudClient, PublicIp
from kitchen_oraclecloud.wait import wait_for_status

pytestmark = [pytest.mark.unit]

CONTAINER = "/Compute-test_domain/test_user"
ORCH_NAME = f"{CONTAINER}/TK-project-default"


class FakeApi:
    """Routes requests to canned responses and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.auth_status = 204

    def add(self, method: str, path: str, *responses: httpx.Response) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/authenticate/":
            return httpx.Response(
                self.auth_status, headers={"Set-Cookie": "nimbula=session; Path=/"},
            )
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text="Not Found")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def orchestration_data(status: str = "stopped", **extra: Any) -> dict[str, Any]:
    return {
        "name": ORCH_NAME,
        "status": status,
        "oplans": [
            {
                "label": "TK-project-default-launchplan",
                "obj_type": "launchplan",
                "objects": [{"instances": [{"name": ORCH_NAME, "label": "TK-project-default"}]}],
            },
        ],
        **extra,
    }


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def client(api: FakeApi) -> Iterator[OracleCloudClient]:
    with OracleCloudClient(
        username="test_user",
        password="test_password",
        api_url="https://testcloud.oracle.com/",
        identity_domain="test_domain",
        transport=httpx.MockTransport(api),
    ) as client:
        yield client


class TestNames:
    def test_full_identity_domain(self, client):
        assert client.full_identity_domain == "/Compute-test_domain"

    def test_container(self, client):
        assert client.container == CONTAINER

    def test_qualify_short_name(self, client):
        assert client.qualify("TK-x") == f"{CONTAINER}/TK-x"

    def test_qualify_keeps_full_name(self, client):
        assert client.qualify(ORCH_NAME) == ORCH_NAME


class TestSession:
    def test_authenticates_once(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data()))

        client.orchestrations.by_name(ORCH_NAME)
        client.orchestrations.by_name(ORCH_NAME)

        auth = api.calls("POST", "/authenticate/")
        assert len(auth) == 1
        assert json.loads(auth[0].content) == {"user": CONTAINER, "password": "test_password"}

    def test_sends_session_cookie(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data()))

        client.orchestrations.by_name(ORCH_NAME)

        lookup = api.calls("GET", f"/orchestration{ORCH_NAME}")[0]
        assert "nimbula=session" in lookup.headers.get("cookie", "")

    def test_uses_compute_media_type(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data()))

        client.orchestrations.by_name(ORCH_NAME)

        lookup = api.calls("GET", f"/orchestration{ORCH_NAME}")[0]
        assert lookup.headers["accept"] == "application/oracle-compute-v3+json"

    def test_authentication_failure(self, client, api):
        api.auth_status = 401

        with pytest.raises(ApiError) as exc_info:
            client.orchestrations.by_name(ORCH_NAME)

        assert exc_info.value.status == 401
        assert not isinstance(exc_info.value, NotFoundError)

    def test_reauthenticates_on_expired_session(self, client, api):
        api.add(
            "GET",
            f"/orchestration{ORCH_NAME}",
            httpx.Response(401, text="expired"),
            httpx.Response(200, json=orchestration_data()),
        )

        orchestration = client.orchestrations.by_name(ORCH_NAME)

        assert orchestration.name_with_container == ORCH_NAME
        assert len(api.calls("POST", "/authenticate/")) == 2


class TestErrors:
    def test_not_found(self, client):
        with pytest.raises(NotFoundError) as exc_info:
            client.orchestrations.by_name("TK-missing")

        assert exc_info.value.status == 404

    def test_server_error(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(500, text="boom"))

        with pytest.raises(ApiError, match="HTTP 500: boom") as exc_info:
            client.orchestrations.by_name(ORCH_NAME)

        assert not isinstance(exc_info.value, NotFoundError)

    def test_connection_failure(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with OracleCloudClient(
            username="u", password="p", api_url="https://testcloud.oracle.com",
            identity_domain="d", transport=httpx.MockTransport(refuse),
        ) as client, pytest.raises(ApiError) as exc_info:
            client.orchestrations.by_name("TK-x")

        assert exc_info.value.status == 0
        assert "connection refused" in str(exc_info.value)


class TestOrchestrations:
    def test_create_posts_launch_plan(self, client, api):
        api.add("POST", "/orchestration/", httpx.Response(201, json=orchestration_data()))
        request = client.instance_request(
            name="TK-project-default",
            shape="oc3",
            imagelist="/oracle/public/OL_7",
            sshkeys=["/Compute-test_domain/test_user/key"],
            public_ip=PublicIp.POOL,
        )

        orchestration = client.orchestrations.create(
            name="TK-project-default", description="demo", instances=[request],
        )

        body = json.loads(api.calls("POST", "/orchestration/")[0].content)
        assert body["name"] == ORCH_NAME
        assert body["description"] == "demo"
        (plan,) = body["oplans"]
        assert plan["obj_type"] == "launchplan"
        assert plan["objects"] == [{
            "instances": [{
                "name": ORCH_NAME,
                "label": "TK-project-default",
                "shape": "oc3",
                "imagelist": "/oracle/public/OL_7",
                "sshkeys": ["/Compute-test_domain/test_user/key"],
                "networking": {"eth0": {"nat": "ippool:/oracle/public/ippool"}},
            }],
        }]
        assert orchestration.name_with_container == ORCH_NAME

    def test_refresh_updates_status(self, client, api):
        api.add(
            "GET",
            f"/orchestration{ORCH_NAME}",
            httpx.Response(200, json=orchestration_data("starting")),
            httpx.Response(200, json=orchestration_data("ready")),
        )
        orchestration = client.orchestrations.by_name(ORCH_NAME)
        assert orchestration.status == "starting"

        orchestration.refresh()

        assert orchestration.status == "ready"
        assert orchestration.error is False

    def test_start_and_stop_actions(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data()))
        api.add("PUT", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data("starting")))
        orchestration = client.orchestrations.by_name(ORCH_NAME)

        orchestration.start()
        orchestration.stop()

        actions = [r.url.params["action"] for r in api.calls("PUT", f"/orchestration{ORCH_NAME}")]
        assert actions == ["START", "STOP"]
        assert orchestration.status == "starting"

    def test_delete(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data()))
        api.add("DELETE", f"/orchestration{ORCH_NAME}", httpx.Response(204))
        orchestration = client.orchestrations.by_name(ORCH_NAME)

        orchestration.delete()

        assert len(api.calls("DELETE", f"/orchestration{ORCH_NAME}")) == 1

    def test_error_details(self, client, api):
        data = orchestration_data(
            "error",
            info={"errors": {"orchestration": "launch failed"}},
        )
        data["oplans"][0]["info"] = {"errors": ["shape oc99 not found"]}
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=data))

        orchestration = client.orchestrations.by_name(ORCH_NAME)

        assert orchestration.error is True
        assert orchestration.errors == ["orchestration: launch failed", "shape oc99 not found"]

    def test_error_details_with_null_info(self, client, api):
        data = orchestration_data("error", info=None)
        data["oplans"][0]["info"] = None
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=data))

        orchestration = client.orchestrations.by_name(ORCH_NAME)

        assert orchestration.error is True
        assert orchestration.errors == []

    def test_null_info_still_raises_remote_error(self, client, api):
        api.add(
            "GET",
            f"/orchestration{ORCH_NAME}",
            httpx.Response(200, json=orchestration_data("error", info=None)),
        )
        orchestration = client.orchestrations.by_name(ORCH_NAME)

        with pytest.raises(RemoteError, match="unknown error"):
            wait_for_status(orchestration, "ready", timeout=600, interval=2, sleep=MagicMock())

    def test_refresh_with_empty_body_keeps_previous_state(self, client, api):
        api.add(
            "GET",
            f"/orchestration{ORCH_NAME}",
            httpx.Response(200, json=orchestration_data("starting")),
            httpx.Response(200),
        )
        orchestration = client.orchestrations.by_name(ORCH_NAME)

        orchestration.refresh()

        assert orchestration.status == "starting"
        assert orchestration.name_with_container == ORCH_NAME


class TestInstances:
    def test_instances_and_addresses(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data("ready")))
        api.add(
            "GET",
            f"/instance{ORCH_NAME}/",
            httpx.Response(200, json={"result": [
                {"name": f"{ORCH_NAME}/1b2c", "ip": "10.0.0.5", "vcable_id": f"{CONTAINER}/vc1"},
            ]}),
        )
        api.add(
            "GET",
            "/ip/association/Compute-test_domain/",
            httpx.Response(200, json={"result": [
                {"name": "a1", "ip": "129.1.1.1", "vcable": f"{CONTAINER}/vc1"},
                {"name": "a2", "ip": "129.2.2.2", "vcable": f"{CONTAINER}/other"},
            ]}),
        )

        (server,) = client.orchestrations.by_name(ORCH_NAME).instances()

        assert server.name == f"{ORCH_NAME}/1b2c"
        assert server.ip_address == "10.0.0.5"
        assert server.public_ip_addresses() == ["129.1.1.1"]

    def test_no_vcable_means_no_public_address(self, client, api):
        api.add("GET", f"/orchestration{ORCH_NAME}", httpx.Response(200, json=orchestration_data("ready")))
        api.add(
            "GET",
            f"/instance{ORCH_NAME}/",
            httpx.Response(200, json={"result": [{"name": f"{ORCH_NAME}/1b2c"}]}),
        )

        (server,) = client.orchestrations.by_name(ORCH_NAME).instances()

        assert server.ip_address is None
        assert server.public_ip_addresses() == []


class TestInstanceRequest:
    def test_qualifies_name(self, client):
        request = client.instance_request(name="TK-x", shape="oc3", imagelist="img")
        assert request.name == f"{CONTAINER}/TK-x"
        assert request.label == "TK-x"

    def test_without_public_ip(self, client):
        spec = client.instance_request(name="TK-x", shape="oc3", imagelist="img").to_spec()
        assert "networking" not in spec

    def test_reservation(self, client):
        spec = client.instance_request(
            name="TK-x", shape="oc3", imagelist="img", public_ip="ipreservation:myres",
        ).to_spec()
        assert spec["networking"] == {"eth0": {"nat": "ipreservation:myres"}}
