"""Event consumers for the portal service."""

from .billing_consumer import BILLING_EVENT_TYPES, build_billing_handler

__all__ = ["BILLING_EVENT_TYPES", "build_billing_handler"]
