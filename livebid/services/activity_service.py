from decimal import Decimal
from typing import Optional
from uuid import UUID

from loguru import logger

from livebid.core.config import settings
from livebid.enums.activity_type import ActivityType
from livebid.models.activity_log import ActivityLog
from livebid.services.kafka.producer import KafkaProducer


class ActivityService:
    """
    Best-effort activity feed: every entry is stored in activity_log and,
    when a producer is configured, mirrored to the Kafka activity topic.
    Failures are logged and never reach the operation that triggered them.
    """

    def __init__(self, producer: Optional[KafkaProducer] = None, topic: str = None):
        self.producer = producer
        self.topic = topic or settings.KAFKA_TOPIC_ACTIVITY

    async def log(self, activity_type: ActivityType, user_id: Optional[UUID] = None, **details) -> Optional[ActivityLog]:
        details = {k: (str(v) if isinstance(v, (UUID, Decimal)) else v) for k, v in details.items()}
        try:
            entry = await ActivityLog.create(user_id=user_id, type=activity_type, details=details)
        except Exception as e:
            logger.error(f"Error logging activity {activity_type.value}: {e}")
            return None

        if self.producer is not None:
            try:
                self.producer.send(
                    self.topic,
                    {
                        "type": activity_type.value,
                        "user_id": str(user_id) if user_id else None,
                        "details": details,
                        "created_at": entry.created_at.isoformat() if entry.created_at else None,
                    },
                    key=details.get("auction_id"),
                )
            except Exception as e:
                logger.error(f"Error publishing activity {activity_type.value} to Kafka: {e}")

        return entry
