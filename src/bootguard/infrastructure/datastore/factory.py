"""Data store client construction from application configuration"""

import logging
from typing import Any, Callable, Dict, Optional

from bootguard.domain.config import AppConfig
from bootguard.infrastructure.datastore.base import DataStoreClient
from bootguard.infrastructure.datastore.mock import MockDataStoreClient
from bootguard.infrastructure.datastore.mongo import MongoDataStoreClient

logger = logging.getLogger(__name__)


def _mongo_options(app_config: AppConfig) -> Dict[str, Any]:
    return {
        "connect_timeout_ms": app_config.mongo.connect_timeout_ms,
        "app_name": f"bootguard-{app_config.environment}",
    }


def _mock_options(app_config: AppConfig) -> Dict[str, Any]:
    return {}


class DataStoreClientFactory:
    """Builds the client named by ``AppConfig.datastore``

    Each entry pairs a client class with the function deriving its options
    from the application config. Names match ``AppConfig.datastore`` exactly.
    """

    CLIENTS: Dict[str, Callable[..., DataStoreClient]] = {
        "mock": MockDataStoreClient,
        "mongo": MongoDataStoreClient,
    }
    OPTIONS: Dict[str, Callable[[AppConfig], Dict[str, Any]]] = {
        "mock": _mock_options,
        "mongo": _mongo_options,
    }

    @classmethod
    def create(cls, client_type: str, config: Optional[Dict[str, Any]] = None) -> DataStoreClient:
        """Create a client from explicit options

        Raises:
            ValueError: If client type is not supported or options are invalid
        """
        if client_type not in cls.CLIENTS:
            available = ", ".join(sorted(cls.CLIENTS))
            raise ValueError(f"Unknown data store: {client_type}. Available data stores: {available}")
        return cls.CLIENTS[client_type](config or {})

    @classmethod
    def for_app_config(cls, app_config: AppConfig) -> DataStoreClient:
        """Create the configured client with options derived from ``app_config``"""
        options = cls.OPTIONS.get(app_config.datastore, _mock_options)(app_config)
        logger.debug(f"Creating {app_config.datastore} data store client ({app_config.environment})")
        return cls.create(app_config.datastore, options)
