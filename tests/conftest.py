from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
from loguru import logger

from kitchen_oraclecloud.config import OracleCloud
from kitchen_oraclecloud.driver import Instance, OracleCloudDriver
from tests.fakes import FakeOrchestration, FakeServer, FakeTransport


@pytest.fixture
def config() -> OracleCloud:
    return OracleCloud(
        api_url="https://testcloud.oracle.com",
        username="test_user",
        password="test_password",
        identity_domain="test_domain",
        shape="test_shape",
        image="test_image",
        verify_ssl=True,
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def orchestration() -> FakeOrchestration:
    return FakeOrchestration(servers=[FakeServer(public_ips=["1.2.3.4"], ip_address="192.168.100.100")])


@pytest.fixture
def client(orchestration: FakeOrchestration) -> MagicMock:
    client = MagicMock(name="oraclecloud_client")
    client.full_identity_domain = "/Compute-test_domain"
    client.orchestrations.create.return_value = orchestration
    client.orchestrations.by_name.return_value = orchestration
    return client


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock(name="sleep")


@pytest.fixture
def driver(
    config: OracleCloud, transport: FakeTransport, client: MagicMock, sleep: MagicMock,
) -> OracleCloudDriver:
    return OracleCloudDriver(
        config, Instance("instance_name", transport), client=client, sleep=sleep,
    )


@pytest.fixture
def log_records() -> Iterator[list[tuple[str, str]]]:
    """(level, message) pairs logged by the package during the test."""
    records: list[tuple[str, str]] = []
    logger.enable("kitchen_oraclecloud")
    handler_id = logger.add(
        lambda message: records.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
        filter="kitchen_oraclecloud",
    )
    yield records
    logger.remove(handler_id)
    logger.disable("kitchen_oraclecloud")
