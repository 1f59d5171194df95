"""ConnectionAttemptState model - progress of one supervisor invocation"""

from dataclasses import dataclass, field
from enum import Enum


class SupervisorState(str, Enum):
    """Lifecycle of a supervisor invocation"""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    CONNECTED = "connected"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"  # not connected; the invocation was abandoned by its caller

    @property
    def is_terminal(self) -> bool:
        return self in (SupervisorState.CONNECTED, SupervisorState.EXHAUSTED, SupervisorState.CANCELLED)


_TRANSITIONS = {
    SupervisorState.IDLE: {SupervisorState.ATTEMPTING, SupervisorState.CANCELLED},
    SupervisorState.ATTEMPTING: {
        SupervisorState.CONNECTED,
        SupervisorState.RETRYING,
        SupervisorState.EXHAUSTED,
        SupervisorState.CANCELLED,
    },
    # EXHAUSTED from RETRYING: the wait itself failed
    SupervisorState.RETRYING: {SupervisorState.ATTEMPTING, SupervisorState.EXHAUSTED, SupervisorState.CANCELLED},
}


@dataclass
class ConnectionAttemptState:
    """Attempt counter owned by a single supervisor invocation"""

    max_retries: int
    remaining: int = field(init=False)
    attempts: int = 0
    state: SupervisorState = SupervisorState.IDLE

    def __post_init__(self) -> None:
        self.remaining = self.max_retries

    @property
    def retry_number(self) -> int:
        """1-indexed number of the retry about to be scheduled"""
        return self.max_retries - self.remaining + 1

    def transition(self, new_state: SupervisorState) -> None:
        if new_state not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Invalid supervisor transition: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def begin_attempt(self) -> None:
        self.transition(SupervisorState.ATTEMPTING)
        self.attempts += 1

    def schedule_retry(self) -> int:
        """Consume one retry and return its 1-indexed number"""
        number = self.retry_number
        self.transition(SupervisorState.RETRYING)
        self.remaining -= 1
        return number
