"""MongoDB client built on motor.

motor connects lazily, so the connection is verified with an ``admin`` ping
before a handle is returned.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConfigurationError

from bootguard.infrastructure.datastore.base import DataStoreClient, DataStoreHandle

logger = logging.getLogger(__name__)


class MongoDataStoreClient(DataStoreClient):
    """MongoDB data store client"""

    name = "MongoDB"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.connect_timeout_ms = int(self.config.get("connect_timeout_ms", 30000))
        self.app_name = self.config.get("app_name", "bootguard")

    def _validate_config(self, config: Dict[str, Any]) -> None:
        if "connect_timeout_ms" in config:
            timeout = config["connect_timeout_ms"]
            if not isinstance(timeout, int) or timeout <= 0:
                raise ValueError("connect_timeout_ms must be a positive integer")

    async def open(self, endpoint: str, namespace: str) -> DataStoreHandle:
        logger.debug(f"Opening MongoDB connection to database '{namespace}'")
        client = AsyncIOMotorClient(
            endpoint,
            serverSelectionTimeoutMS=self.connect_timeout_ms,
            appname=self.app_name,
        )
        try:
            await client.admin.command("ping")
        except BaseException:
            # closed on any failure, cancellation included
            client.close()
            raise
        return DataStoreHandle(
            endpoint=endpoint,
            namespace=namespace,
            client=client,
            database=client[namespace],
        )

    def is_retriable(self, exc: BaseException) -> bool:
        # Malformed URIs and bad driver options never fix themselves
        return not isinstance(exc, ConfigurationError)
