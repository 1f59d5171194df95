"""Startup connection supervisor.

Establishes the initial data store connection of a process. Attempts are
strictly sequential; a failed attempt is followed by a fixed delay and a retry
until the retry budget is spent. The supervisor never terminates the process:
running out of attempts raises a ``FatalConnectionError`` and the entry point
decides how to exit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from tenacity import RetryCallState

from bootguard.domain.config import ConnectionConfig
from bootguard.domain.models.attempt_state import ConnectionAttemptState, SupervisorState
from bootguard.infrastructure.datastore.base import DataStoreClient, DataStoreHandle
from bootguard.infrastructure.retry import SleepFunc, fixed_delay_retrying

logger = logging.getLogger(__name__)


class FatalConnectionError(Exception):
    """The data store could not be reached; the host process must stop."""

    def __init__(self, message: str, attempts: int, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class RetriesExhaustedError(FatalConnectionError):
    """Every attempt allowed by the retry budget failed."""


class NonRetriableConnectionError(FatalConnectionError):
    """An attempt failed in a way the client reports as permanent."""


class ConnectionSupervisor:
    """Supervises the startup connection to a data store"""

    def __init__(
        self,
        client: DataStoreClient,
        config: ConnectionConfig,
        sleep: Optional[SleepFunc] = None,
    ):
        """Initialize supervisor

        Args:
            client: Data store client used to open the connection
            config: Connection settings and retry budget
            sleep: Awaitable used for the delay between attempts (defaults to asyncio.sleep)
        """
        self._client = client
        self._config = config
        self._sleep = sleep
        self.last_attempt: Optional[ConnectionAttemptState] = None

    @property
    def state(self) -> SupervisorState:
        if self.last_attempt is None:
            return SupervisorState.IDLE
        return self.last_attempt.state

    async def establish_connection(self) -> DataStoreHandle:
        """Connect to the data store, retrying with a fixed delay

        Returns:
            Handle to the open connection

        Raises:
            RetriesExhaustedError: If the last permitted attempt failed
            NonRetriableConnectionError: If an attempt failed permanently
        """
        config = self._config
        store = self._client.name
        attempt_state = ConnectionAttemptState(max_retries=config.max_retries)
        self.last_attempt = attempt_state

        logger.info(f"Connecting to {store} at {config.redacted_uri()} (database '{config.db_name}')")

        def _before_sleep(retry_state: RetryCallState) -> None:
            number = attempt_state.schedule_retry()
            logger.warning(f"Retrying connection... ({number}/{config.max_retries})")

        retrying = fixed_delay_retrying(
            max_retries=config.max_retries,
            delay=config.retry_delay,
            retry_condition=self._client.is_retriable,
            before_sleep=_before_sleep,
            sleep=self._sleep,
        )

        handle = None
        try:
            async for attempt in retrying:
                with attempt:
                    handle = await self._attempt(attempt_state)
        except asyncio.CancelledError:
            attempt_state.transition(SupervisorState.CANCELLED)
            logger.warning(f"Connection to {store} cancelled after {attempt_state.attempts} attempt(s)")
            raise
        except Exception as e:
            waiting = attempt_state.state == SupervisorState.RETRYING
            attempt_state.transition(SupervisorState.EXHAUSTED)
            if waiting:
                logger.error(f"Waiting to retry {store} connection failed: {e}")
                raise FatalConnectionError(
                    f"Waiting to retry {store} connection failed: {e}",
                    attempts=attempt_state.attempts,
                    cause=e,
                ) from e
            if not self._client.is_retriable(e):
                logger.error(f"{store} connection failed with a non-retriable error: {e}")
                raise NonRetriableConnectionError(
                    f"{store} connection failed with a non-retriable error: {e}",
                    attempts=attempt_state.attempts,
                    cause=e,
                ) from e
            logger.error(f"Failed to connect to {store} after maximum retries")
            raise RetriesExhaustedError(
                f"Failed to connect to {store} after {attempt_state.attempts} attempt(s): {e}",
                attempts=attempt_state.attempts,
                cause=e,
            ) from e

        attempt_state.transition(SupervisorState.CONNECTED)
        logger.info(f"Connected to {store}")
        return handle

    async def _attempt(self, attempt_state: ConnectionAttemptState) -> DataStoreHandle:
        attempt_state.begin_attempt()
        logger.debug(f"Connection attempt {attempt_state.attempts}/{attempt_state.max_retries + 1}")
        try:
            return await self._client.open(self._config.uri, self._config.db_name)
        except Exception as e:
            logger.error(f"{self._client.name} connection error: {e}")
            raise


async def establish_connection(
    config: ConnectionConfig,
    client: DataStoreClient,
    sleep: Optional[SleepFunc] = None,
) -> DataStoreHandle:
    """Connect to the data store described by ``config`` or raise FatalConnectionError."""
    return await ConnectionSupervisor(client, config, sleep=sleep).establish_connection()
