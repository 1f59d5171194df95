"""Tests for MongoDataStoreClient (motor is replaced by a fake client)"""

from __future__ import annotations

import asyncio

import pytest
from pymongo.errors import ConfigurationError, InvalidURI, OperationFailure, ServerSelectionTimeoutError

from bootguard.application.connection_supervisor import (
    ConnectionSupervisor,
    NonRetriableConnectionError,
)
from bootguard.domain.config import ConnectionConfig
from bootguard.domain.models.attempt_state import SupervisorState
from bootguard.infrastructure.datastore import mongo
from bootguard.infrastructure.datastore.mongo import MongoDataStoreClient


class FakeAdmin:
    def __init__(self, outcomes):
        self._outcomes = outcomes
        self.commands = []

    async def command(self, name):
        self.commands.append(name)
        outcome = self._outcomes.pop(0) if self._outcomes else {"ok": 1.0}
        if outcome == "hang":
            await asyncio.sleep(10)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class CreatedClients(list):
    """Fake driver clients in creation order, plus the scripted ping outcomes"""

    def __init__(self):
        super().__init__()
        self.ping_outcomes = []


@pytest.fixture
def fake_motor(monkeypatch):
    """Replace AsyncIOMotorClient; returns the list of created fake clients"""
    created = CreatedClients()
    ping_outcomes = created.ping_outcomes

    class FakeMotorClient:
        def __init__(self, uri, **kwargs):
            if not uri.startswith("mongodb"):
                raise InvalidURI(f"Invalid URI scheme: {uri}")
            self.uri = uri
            self.kwargs = kwargs
            self.closed = False
            self.admin = FakeAdmin(ping_outcomes)
            created.append(self)

        def __getitem__(self, name):
            return f"database:{name}"

        def close(self):
            self.closed = True

    monkeypatch.setattr(mongo, "AsyncIOMotorClient", FakeMotorClient)
    return created


@pytest.mark.asyncio
async def test_open_pings_and_returns_handle(fake_motor):
    client = MongoDataStoreClient({"connect_timeout_ms": 1500})

    handle = await client.open("mongodb://mongo:27017", "ecommerce")

    driver = fake_motor[0]
    assert driver.admin.commands == ["ping"]
    assert driver.kwargs["serverSelectionTimeoutMS"] == 1500
    assert handle.namespace == "ecommerce"
    assert handle.database == "database:ecommerce"
    assert handle.client is driver
    assert not driver.closed

    handle.close()
    assert driver.closed
    assert handle.client is None


@pytest.mark.asyncio
async def test_failed_ping_closes_driver_client(fake_motor):
    fake_motor.ping_outcomes.append(ServerSelectionTimeoutError("mongo:27017: connection refused"))
    client = MongoDataStoreClient()

    with pytest.raises(ServerSelectionTimeoutError):
        await client.open("mongodb://mongo:27017", "app")

    assert fake_motor[0].closed


def test_default_timeout():
    assert MongoDataStoreClient().connect_timeout_ms == 30000


def test_invalid_timeout_config():
    with pytest.raises(ValueError, match="connect_timeout_ms"):
        MongoDataStoreClient({"connect_timeout_ms": 0})


def test_retriable_classification():
    client = MongoDataStoreClient()
    assert client.is_retriable(ServerSelectionTimeoutError("timeout"))
    assert client.is_retriable(OperationFailure("Authentication failed.", code=18))
    assert not client.is_retriable(InvalidURI("bad uri"))
    assert not client.is_retriable(ConfigurationError("unknown option"))


@pytest.mark.asyncio
async def test_supervisor_retries_until_ping_succeeds(fake_motor):
    fake_motor.ping_outcomes.extend(
        [ServerSelectionTimeoutError("refused"), ServerSelectionTimeoutError("refused")]
    )
    delays = []

    async def sleep(delay):
        delays.append(delay)

    supervisor = ConnectionSupervisor(
        MongoDataStoreClient(),
        ConnectionConfig(uri="mongodb://mongo:27017", db_name="ecommerce", max_retries=5, retry_delay_ms=5000),
        sleep=sleep,
    )

    handle = await supervisor.establish_connection()

    assert len(fake_motor) == 3
    assert [c.closed for c in fake_motor] == [True, True, False]
    assert delays == [5.0, 5.0]
    assert handle.database == "database:ecommerce"


@pytest.mark.asyncio
async def test_supervisor_does_not_retry_invalid_uri(fake_motor):
    supervisor = ConnectionSupervisor(
        MongoDataStoreClient(),
        ConnectionConfig(uri="postgres://db:5432", max_retries=5, retry_delay_ms=0),
    )

    with pytest.raises(NonRetriableConnectionError) as exc_info:
        await supervisor.establish_connection()

    assert exc_info.value.attempts == 1
    assert isinstance(exc_info.value.cause, InvalidURI)
    assert fake_motor == []


@pytest.mark.asyncio
async def test_cancelled_ping_closes_driver_client(fake_motor):
    fake_motor.ping_outcomes.append("hang")
    client = MongoDataStoreClient()

    task = asyncio.create_task(client.open("mongodb://mongo:27017", "app"))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert fake_motor[0].closed


@pytest.mark.asyncio
async def test_supervisor_cancelled_during_ping(fake_motor):
    fake_motor.ping_outcomes.append("hang")
    supervisor = ConnectionSupervisor(
        MongoDataStoreClient(),
        ConnectionConfig(uri="mongodb://mongo:27017", max_retries=5, retry_delay_ms=0),
    )

    task = asyncio.create_task(supervisor.establish_connection())
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert supervisor.state == SupervisorState.CANCELLED
    assert len(fake_motor) == 1
    assert fake_motor[0].closed
