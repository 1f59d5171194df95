"""Data store clients"""

from bootguard.infrastructure.datastore.base import DataStoreClient, DataStoreHandle
from bootguard.infrastructure.datastore.mock import MockDataStoreClient
from bootguard.infrastructure.datastore.mongo import MongoDataStoreClient

__all__ = ["DataStoreClient", "DataStoreHandle", "MockDataStoreClient", "MongoDataStoreClient"]
