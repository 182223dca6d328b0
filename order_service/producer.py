"""Kafka producer for publishing order events."""

from confluent_kafka import Producer

from .logger import kafka_logger as logger
from .schemas import Order

ORDER_CREATED_TOPIC = "orders.created"
ORDER_STATUS_UPDATED_TOPIC = "orders.status_updated"


class OrderProducer:
    """Kafka producer for publishing order events.

    Events are keyed by order id so every event of one order lands on the
    same partition and is delivered in order.

    Attributes:
        _producer: The underlying Kafka producer instance.
    """

    def __init__(self, bootstrap_servers: str, client_id: str = "order-service"):
        """Initialize the Kafka producer with the given bootstrap servers.

        Args:
            bootstrap_servers (str): Comma-separated list of Kafka broker addresses.
            client_id (str): Client id reported to the brokers.
        """
        self._producer = Producer(
            {
                "bootstrap.servers": bootstrap_servers,
                "client.id": client_id,
                "message.timeout.ms": 5000,
                "partitioner": "consistent_random",  # Same key → same partition
            }
        )

    @property
    def producer(self):
        """Get the underlying Kafka producer instance.

        Returns:
            Producer: The Kafka producer instance.
        """
        return self._producer

    def _delivery_callback(self, err, msg):
        """Callback function for message delivery reports.

        Args:
            err: Error that occurred during message delivery, if any.
            msg: Message that was delivered or failed.
        """
        if err:
            logger.bind(topic=msg.topic(), key=msg.key()).error(f"Message failed delivery: {err}")
        else:
            logger.bind(offset=msg.offset(), latency=msg.latency()).debug(
                f"Message delivered to {msg.topic()} [p:{msg.partition()}]"
            )

    def _publish(self, topic: str, order: Order):
        try:
            self._producer.produce(
                topic=topic,
                key=str(order.id).encode("utf-8"),
                value=order.model_dump_json(by_alias=True),
                on_delivery=self._delivery_callback,
            )
            self.producer.poll(0)  # Trigger delivery callbacks
        except BufferError:
            logger.warning("Producer buffer full, flushing...")
            self.producer.flush()
            raise

    def publish_order_created(self, order: Order):
        """Publish a newly created order.

        Args:
            order (Order): The persisted order.

        Raises:
            BufferError: If the producer's internal buffer is full.
        """
        self._publish(ORDER_CREATED_TOPIC, order)

    def publish_status_updated(self, order: Order):
        """Publish an order whose status just changed.

        Args:
            order (Order): The order after the update.

        Raises:
            BufferError: If the producer's internal buffer is full.
        """
        self._publish(ORDER_STATUS_UPDATED_TOPIC, order)

    def close(self, timeout: float = 5.0):
        """Flush outstanding messages before shutdown."""
        remaining = self._producer.flush(timeout)
        if remaining:
            logger.warning(f"{remaining} order events were not delivered before shutdown")
