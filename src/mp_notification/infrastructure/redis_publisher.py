"""RedisNotificationPublisher — fire-and-forget domain events over Redis pub/sub."""

import json
import logging

from config.settings import settings
from src.mp_common.redis_client import get_redis
from src.mp_notification.domain.events import DomainEvent

logger = logging.getLogger(__name__)


class RedisNotificationPublisher:
    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.NOTIFICATION_CHANNEL

    async def publish(self, event: DomainEvent) -> None:
        """Publish the event; delivery problems are logged, never raised."""
        try:
            redis = await get_redis()
            receivers = await redis.publish(self._channel, json.dumps(event.to_dict()))
        except Exception:
            logger.exception("Failed to publish %s (event %s)", event.name, event.id)
            return
        logger.debug("Published %s to %s (%d receivers)", event.name, self._channel, receivers)
