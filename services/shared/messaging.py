"""Event publisher backed by Redis Streams.

Used for everything that happens *after* a state change has been committed:
transactional e-mails (invitation, welcome, password reset, consultation
decisions) are handed to the e-mail worker through the ``notification-events``
stream. Publishing never raises; a lost e-mail must not undo the primary
change.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Protocol

import redis

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    def publish(
        self,
        event_type: str,
        payload: Dict[str, Any],
        *,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None: ...


class EventPublisher:
    """Publish domain events to a Redis Stream."""

    def __init__(self, redis_url: str, stream_name: str, *, maxlen: Optional[int] = 1000) -> None:
        self._stream_name = stream_name
        self._maxlen = maxlen
        self._client = redis.Redis.from_url(redis_url)

    @property
    def stream_name(self) -> str:
        return self._stream_name

    def publish(
        self,
        event_type: str,
        payload: Dict[str, Any],
        *,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Send an event to the configured stream.

        Parameters
        ----------
        event_type:
            Canonical name, e.g. ``email.invitation``.
        payload:
            Serialisable body (will be JSON dumped).
        metadata:
            Optional envelope metadata (tenant id, actor id, etc.).
        """

        event = {
            "event_type": event_type,
            "payload": json.dumps(payload, default=str),
        }
        if metadata:
            event["metadata"] = json.dumps(metadata, default=str)

        try:
            self._client.xadd(
                self._stream_name,
                event,
                maxlen=self._maxlen,
                approximate=bool(self._maxlen),
            )
        except redis.RedisError:
            logger.exception("Failed to publish event '%s' to stream '%s'", event_type, self._stream_name)


def build_publisher(redis_url: Optional[str], stream_name: str) -> Optional[EventPublisher]:
    """Return a publisher, or None when Redis is not configured (tests, local dev)."""
    if isinstance(redis_url, str) and redis_url.strip():
        return EventPublisher(redis_url, stream_name)
    return None
