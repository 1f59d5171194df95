"""Mock data store client for testing and local runs"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple

from bootguard.infrastructure.datastore.base import DataStoreClient, DataStoreHandle


class MockConnectionError(ConnectionError):
    """Scripted connection failure"""


class MockDataStoreClient(DataStoreClient):
    """Mock client that fails a scripted number of times before connecting"""

    name = "mock data store"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize mock client

        Args:
            config: Optional configuration with:
                - fail_attempts: Number of leading attempts that fail (default: 0)
                - always_fail: Fail every attempt (default: False)
                - error: Message of the raised error
                - delay: Simulated connect latency in seconds (default: 0)
        """
        super().__init__(config)
        self.fail_attempts = self.config.get("fail_attempts", 0)
        self.always_fail = self.config.get("always_fail", False)
        self.error = self.config.get("error", "connection refused")
        self.delay = self.config.get("delay", 0)
        # (endpoint, namespace, started_at, finished_at) per open() call
        self.calls: List[Tuple[str, str, float, float]] = []

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate mock client configuration"""
        if "fail_attempts" in config:
            if not isinstance(config["fail_attempts"], int) or config["fail_attempts"] < 0:
                raise ValueError("fail_attempts must be a non-negative integer")
        if "delay" in config and not isinstance(config["delay"], (int, float)):
            raise ValueError("delay must be a number")
        if "delay" in config and config["delay"] < 0:
            raise ValueError("delay must be non-negative")

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def open(self, endpoint: str, namespace: str) -> DataStoreHandle:
        started = time.monotonic()
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls.append((endpoint, namespace, started, time.monotonic()))

        if self.always_fail or len(self.calls) <= self.fail_attempts:
            raise MockConnectionError(self.error)
        return DataStoreHandle(endpoint=endpoint, namespace=namespace)
