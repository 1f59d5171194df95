"""Main application configuration model."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from bootguard.domain.config.connection import ConnectionConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Validation is performed at load time to fail fast on configuration errors,
    before the supervisor ever touches the network.

    Attributes:
        environment: Deployment environment
        datastore: Data store client implementation
        mongo: Connection settings for the data store
    """

    environment: Literal["development", "production"] = "development"
    datastore: Literal["mongo", "mock"] = "mongo"
    mongo: ConnectionConfig = Field(default_factory=ConnectionConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "environment": "production",
                "datastore": "mongo",
                "mongo": {
                    "uri": "mongodb://mongo:27017",
                    "db_name": "ecommerce",
                    "max_retries": 5,
                    "retry_delay_ms": 5000,
                    "connect_timeout_ms": 30000,
                },
            }
        },
    )
