"""Data store connection configuration model."""

import re

from pydantic import BaseModel, ConfigDict, Field

_CREDENTIALS_RE = re.compile(r"^(?P<scheme>[a-zA-Z0-9+.-]+://)(?P<user>[^:@/]+):[^@/]*@")


class ConnectionConfig(BaseModel):
    """Configuration for the startup connection supervisor.

    Read-only once constructed.

    Attributes:
        uri: Data store endpoint address (MongoDB connection string)
        db_name: Logical database name
        max_retries: Retries permitted after the initial attempt
        retry_delay_ms: Fixed delay between attempts in milliseconds
        connect_timeout_ms: Driver server selection timeout in milliseconds
    """

    uri: str = Field("mongodb://localhost:27017", min_length=1)
    db_name: str = Field("app", min_length=1)
    max_retries: int = Field(5, ge=0)
    retry_delay_ms: int = Field(5000, ge=0)
    connect_timeout_ms: int = Field(30000, gt=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def retry_delay(self) -> float:
        """Retry delay in seconds"""
        return self.retry_delay_ms / 1000.0

    def redacted_uri(self) -> str:
        """Return the URI with any password masked"""
        return _CREDENTIALS_RE.sub(r"\g<scheme>\g<user>:***@", self.uri)
