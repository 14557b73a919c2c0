from livebid.core.config import settings


class KafkaConfig:
    @staticmethod
    def is_enabled() -> bool:
        return bool(settings.KAFKA_BOOTSTRAP_SERVERS)

    @staticmethod
    def get_producer_config():
        return {
            'bootstrap.servers': settings.KAFKA_BOOTSTRAP_SERVERS,
            'message.max.bytes': 1000000,
            'queue.buffering.max.messages': 100000
        }
