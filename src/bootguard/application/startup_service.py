"""Startup service - waits for the data store before the host process continues"""

from __future__ import annotations

import logging
from typing import Optional

from bootguard.application.connection_supervisor import ConnectionSupervisor
from bootguard.domain.models.attempt_state import ConnectionAttemptState
from bootguard.infrastructure.config.config_manager import ConfigManager
from bootguard.infrastructure.datastore.base import DataStoreClient, DataStoreHandle
from bootguard.infrastructure.datastore.factory import DataStoreClientFactory
from bootguard.infrastructure.retry import SleepFunc

logger = logging.getLogger(__name__)


class StartupService:
    """Runs the connection supervisor with settings from ConfigManager"""

    def __init__(
        self,
        config_manager: ConfigManager,
        client: Optional[DataStoreClient] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.config_manager = config_manager
        self.client = client or self.create_client()
        self.supervisor = ConnectionSupervisor(
            self.client,
            config_manager.get_connection_config(),
            sleep=sleep,
        )

    def create_client(self) -> DataStoreClient:
        """Create the data store client named by the configuration"""
        return DataStoreClientFactory.for_app_config(self.config_manager.get_app_config())

    async def connect(self) -> DataStoreHandle:
        """Establish the startup connection

        Raises:
            FatalConnectionError: If the data store cannot be reached
        """
        app_config = self.config_manager.get_app_config()
        logger.info(f"Starting up ({app_config.environment})")
        return await self.supervisor.establish_connection()

    async def wait_until_ready(self) -> ConnectionAttemptState:
        """Connect, release the connection and report the attempts it took

        Raises:
            FatalConnectionError: If the data store cannot be reached
        """
        handle = await self.connect()
        handle.close()
        return self.supervisor.last_attempt
