import json
from typing import Optional

from confluent_kafka import Producer
from loguru import logger

from livebid.core.config.kafka import KafkaConfig


class KafkaProducer:
    """Activity feed producer; messages are JSON keyed by auction id"""

    def __init__(self, producer: Optional[Producer] = None):
        self.producer = producer or Producer(KafkaConfig.get_producer_config())
        self.delivered = 0
        self.failed = 0

    def delivery_report(self, err, msg):
        if err is not None:
            self.failed += 1
            logger.error(f"Activity message delivery failed: {err}")
            return
        self.delivered += 1
        logger.debug(f"Activity message delivered to {msg.topic()} [{msg.partition()}]")

    def send(self, topic: str, payload: dict, key: Optional[str] = None):
        self.producer.produce(
            topic=topic,
            key=key.encode() if key else None,
            value=json.dumps(payload, default=str).encode(),
            on_delivery=self.delivery_report,
        )
        # Serve delivery callbacks without blocking the event loop
        self.producer.poll(0)

    def flush(self, timeout: float = 10.0) -> int:
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning(f"{remaining} activity messages still queued after flush")
        return remaining
