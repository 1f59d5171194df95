"""Base data store client interface"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class DataStoreHandle:
    """An open connection to a data store namespace"""

    endpoint: str
    namespace: str
    client: Any = None
    database: Any = None

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
            self.database = None


class DataStoreClient(ABC):
    """Abstract base class for data store clients"""

    name = "data store"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize client with configuration

        Args:
            config: Client configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        if config is None:
            config = {}
        self.config = config
        self._validate_config(config)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate client configuration

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        # Override in subclasses for specific validation
        pass

    @abstractmethod
    async def open(self, endpoint: str, namespace: str) -> DataStoreHandle:
        """Open a connection to the data store

        Args:
            endpoint: Endpoint address (connection string)
            namespace: Logical database name

        Returns:
            Handle to the verified connection

        Raises:
            Exception: Any failure to connect
        """
        pass

    def is_retriable(self, exc: BaseException) -> bool:
        """Whether a failed open should be retried

        All failures are retried uniformly unless a client narrows this.
        """
        return True
