"""Kafka producer publishing checkout events to the message bus."""

from typing import Optional, Protocol

from confluent_kafka import KafkaException, Producer
from logging_utils.config import get_component_logger

from .errors import PublishError
from .schemas import CheckoutEvent, PublishReceipt

logger = get_component_logger("basket-service", "kafka")

# Extra time flush waits beyond message.timeout.ms, so every message gets its delivery report.
FLUSH_GRACE_SECONDS = 1.0


class EventPublisher(Protocol):
    """Protocol defining the interface for checkout event publication."""

    def publish(self, event: CheckoutEvent, key: Optional[str] = None) -> PublishReceipt:
        """Publish one event, optionally keyed, and return the bus acknowledgement.

        Raises:
            PublishError: If the bus did not accept the event.
        """
        ...


class _DeliveryReport:
    """Collects the delivery report of a single produced message."""

    def __init__(self) -> None:
        self.error = None
        self.message = None
        self.delivered = False

    def __call__(self, err, msg) -> None:
        self.error = err
        self.message = msg
        self.delivered = True


class CheckoutEventProducer:
    """Kafka producer for checkout events.

    The bus name is used as the topic and the user name as the message key,
    so all checkouts of one user land on the same partition. Event routing
    metadata travels in message headers and the JSON detail is the value.

    Attributes:
        _producer: The underlying Kafka producer instance.
    """

    def __init__(self, bootstrap_servers: str, client_id: str, timeout: float = 10.0, acks: str = "all"):
        """Initialize the Kafka producer.

        Args:
            bootstrap_servers: Comma-separated list of Kafka broker addresses.
            client_id: Producer client ID.
            timeout: Seconds to wait for the delivery report of an event.
            acks: The number of acknowledgments the producer requires.
        """
        self.timeout = timeout
        self._producer = Producer(
            {
                "bootstrap.servers": bootstrap_servers,
                "client.id": client_id,
                "acks": acks,
                "message.timeout.ms": int(timeout * 1000),
                "partitioner": "consistent_random",  # Same key → same partition
            }
        )

    @property
    def producer(self):
        """Get the underlying Kafka producer instance."""
        return self._producer

    def publish(self, event: CheckoutEvent, key: Optional[str] = None) -> PublishReceipt:
        """Publish a checkout event and wait for the broker acknowledgement.

        Args:
            event: The checkout event to publish.
            key: Optional message key (the order's user name in practice).

        Returns:
            PublishReceipt: Message id plus the partition and offset the broker assigned.

        Raises:
            PublishError: If the message could not be queued, was rejected, or
                was not acknowledged within the timeout.
        """
        report = _DeliveryReport()
        try:
            self._producer.produce(
                topic=event.bus_name,
                key=key.encode("utf-8") if key else None,
                value=event.detail.encode("utf-8"),
                headers=[
                    ("source", event.source.encode("utf-8")),
                    ("detail-type", event.detail_type.encode("utf-8")),
                    ("message-id", event.message_id.encode("utf-8")),
                ],
                on_delivery=report,
            )
            remaining = self._producer.flush(self.timeout + FLUSH_GRACE_SECONDS)
        except BufferError as e:
            logger.warning("Producer buffer full, flushing...")
            self._producer.flush(self.timeout)
            raise PublishError(f"Producer queue is full: {e}", step="publish") from e
        except KafkaException as e:
            logger.error(f"Failed to produce event {event.message_id} to {event.bus_name}: {e}")
            raise PublishError(f"Failed to produce event to {event.bus_name}: {e}", step="publish") from e

        if remaining > 0 or not report.delivered:
            logger.error(f"Event {event.message_id} not acknowledged within {self.timeout}s")
            raise PublishError(
                f"Event {event.message_id} was not acknowledged by {event.bus_name} within {self.timeout}s",
                step="publish",
            )
        if report.error is not None:
            logger.error(f"Message failed delivery: {report.error}")
            raise PublishError(f"Event {event.message_id} was rejected: {report.error}", step="publish")

        msg = report.message
        logger.debug(f"Message delivered to {msg.topic()} [p:{msg.partition()}] offset={msg.offset()}")
        return PublishReceipt(
            messageId=event.message_id,
            busName=msg.topic(),
            partition=msg.partition(),
            offset=msg.offset(),
        )

    def flush(self, timeout: float = 10.0) -> None:
        """Wait for all messages to be delivered.

        Args:
            timeout: Maximum time to wait in seconds
        """
        remaining = self._producer.flush(timeout)
        if remaining > 0:
            logger.warning(f"{remaining} messages still pending delivery")

    def close(self) -> None:
        """Deliver pending messages before shutdown."""
        self.flush()
        logger.info("Producer closed")
