"""Shared utilities used by the portal service and its workers."""

from .config import ServiceConfig, load_service_config
from .messaging import EventPublisher, Publisher, build_publisher
from .event_consumer import EventConsumer, cleanup_consumer, decode_event
from .startup import wait_for_database
from .health import create_health_router

__all__ = [
    "ServiceConfig",
    "load_service_config",
    "EventPublisher",
    "Publisher",
    "build_publisher",
    "EventConsumer",
    "cleanup_consumer",
    "decode_event",
    "wait_for_database",
    "create_health_router",
]
