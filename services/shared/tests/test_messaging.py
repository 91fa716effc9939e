"""Testes para o publisher de eventos em Redis Streams."""

import json
from unittest.mock import MagicMock, patch

import redis

from shared.messaging import EventPublisher, build_publisher


def _publisher(client):
    with patch("shared.messaging.redis.Redis.from_url", return_value=client):
        return EventPublisher("redis://redis:6379/0", "notification-events")


def test_publish_serialises_payload_and_metadata():
    client = MagicMock()
    publisher = _publisher(client)

    publisher.publish("email.invitation", {"to": "a@example.com", "when": 1}, metadata={"tenant_id": "t-1"})

    stream, event = client.xadd.call_args.args
    assert stream == "notification-events"
    assert event["event_type"] == "email.invitation"
    assert json.loads(event["payload"]) == {"to": "a@example.com", "when": 1}
    assert json.loads(event["metadata"]) == {"tenant_id": "t-1"}
    assert client.xadd.call_args.kwargs == {"maxlen": 1000, "approximate": True}


def test_publish_swallows_redis_errors():
    client = MagicMock()
    client.xadd.side_effect = redis.ConnectionError("down")
    publisher = _publisher(client)

    publisher.publish("email.welcome", {"to": "a@example.com"})

    client.xadd.assert_called_once()


def test_build_publisher_disabled_without_url():
    assert build_publisher("", "notification-events") is None
    assert build_publisher(None, "notification-events") is None
    assert build_publisher("   ", "notification-events") is None


def test_build_publisher_with_url():
    with patch("shared.messaging.redis.Redis.from_url", return_value=MagicMock()):
        publisher = build_publisher("redis://redis:6379/0", "notification-events")
    assert publisher.stream_name == "notification-events"
