import pytest

from bootguard.domain.config import AppConfig
from bootguard.infrastructure.datastore.factory import DataStoreClientFactory
from bootguard.infrastructure.datastore.mock import MockDataStoreClient
from bootguard.infrastructure.datastore.mongo import MongoDataStoreClient


def test_factory_supports_clients():
    # the mongo client must be constructible without touching the network
    assert isinstance(DataStoreClientFactory.create("mongo", {"connect_timeout_ms": 100}), MongoDataStoreClient)
    assert isinstance(DataStoreClientFactory.create("mock"), MockDataStoreClient)


def test_factory_names_match_app_config():
    """Only the spellings AppConfig.datastore accepts are known"""
    with pytest.raises(ValueError, match="Unknown data store: MOCK"):
        DataStoreClientFactory.create("MOCK")


def test_factory_unknown_client():
    with pytest.raises(ValueError, match="Available data stores: mock, mongo"):
        DataStoreClientFactory.create("redis")


def test_for_app_config_derives_mongo_options():
    app_config = AppConfig(environment="production", mongo={"connect_timeout_ms": 1200})

    client = DataStoreClientFactory.for_app_config(app_config)

    assert isinstance(client, MongoDataStoreClient)
    assert client.connect_timeout_ms == 1200
    assert client.app_name == "bootguard-production"


def test_for_app_config_mock():
    client = DataStoreClientFactory.for_app_config(AppConfig(datastore="mock"))
    assert isinstance(client, MockDataStoreClient)
    assert client.fail_attempts == 0
