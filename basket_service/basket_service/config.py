"""Service configuration read from the environment."""

import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError

REQUIRED_VARIABLES = {
    "table_name": "BASKET_TABLE_NAME",
    "event_source": "EVENT_SOURCE",
    "event_detail_type": "EVENT_DETAIL_TYPE",
    "event_bus_name": "EVENT_BUS_NAME",
}


class ServiceConfig(BaseModel):
    """Settings needed to build the store and publisher adapters.

    Attributes:
        table_name: Name of the basket table / collection.
        event_source: Source identifier attached to every checkout event.
        event_detail_type: Type identifier attached to every checkout event.
        event_bus_name: Bus (Kafka topic) checkout events are published to.
        bootstrap_servers: Comma-separated list of Kafka broker addresses.
        client_id: Kafka client id used by the producer.
        publish_timeout: Seconds to wait for the broker to acknowledge an event.
    """

    table_name: str = Field(..., min_length=1)
    event_source: str = Field(..., min_length=1)
    event_detail_type: str = Field(..., min_length=1)
    event_bus_name: str = Field(..., min_length=1)
    bootstrap_servers: str = "kafka:9092"
    client_id: str = "basket-service"
    publish_timeout: float = Field(10.0, gt=0)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ServiceConfig":
        """Build the configuration from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ.

        Returns:
            ServiceConfig: The validated configuration.

        Raises:
            ConfigurationError: If a required variable is absent or a value is invalid.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_VARIABLES.values() if not env.get(name)]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        values = {field: env[name] for field, name in REQUIRED_VARIABLES.items()}
        values["bootstrap_servers"] = env.get("KAFKA_BOOTSTRAP_SERVERS", "kafka:9092")
        values["client_id"] = env.get("KAFKA_CLIENT_ID", "basket-service")
        values["publish_timeout"] = env.get("PUBLISH_TIMEOUT_SECONDS", "10")
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
