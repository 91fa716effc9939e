"""Tests for the billing event handlers fed by the EventConsumer."""

import pytest

from app.consumers import BILLING_EVENT_TYPES, build_billing_handler
from app.models.enums import SubscriptionStatus
from app.services.subscriptions import get_subscription


@pytest.mark.asyncio
async def test_subscription_lifecycle_events(session_factory, db, seed):
    tenant = seed.tenant(status=SubscriptionStatus.UNPAID)
    handle = build_billing_handler(session_factory)

    await handle(
        "subscription.created",
        {
            "id": "sub_abc",
            "status": "active",
            "metadata": {"tenant_id": str(tenant.id)},
            "current_period_end": 1893456000,
        },
    )
    db.expire_all()
    subscription = get_subscription(db, tenant.id)
    assert subscription.status == SubscriptionStatus.ACTIVE.value
    assert subscription.external_id == "sub_abc"
    assert subscription.current_period_end is not None

    await handle("invoice.payment_failed", {"id": "in_1", "subscription": "sub_abc"})
    db.expire_all()
    assert get_subscription(db, tenant.id).status == SubscriptionStatus.PAST_DUE.value

    await handle("invoice.payment_succeeded", {"id": "in_2", "subscription": "sub_abc"})
    db.expire_all()
    assert get_subscription(db, tenant.id).status == SubscriptionStatus.ACTIVE.value

    await handle("subscription.deleted", {"id": "sub_abc"})
    db.expire_all()
    assert get_subscription(db, tenant.id).status == SubscriptionStatus.CANCELED.value


@pytest.mark.asyncio
async def test_illegal_transition_is_ignored(session_factory, db, seed):
    tenant = seed.tenant(status=SubscriptionStatus.CANCELED, external_id="sub_dead")
    handle = build_billing_handler(session_factory)

    await handle("subscription.updated", {"id": "sub_dead", "status": "active"})

    db.expire_all()
    assert get_subscription(db, tenant.id).status == SubscriptionStatus.CANCELED.value


@pytest.mark.asyncio
async def test_unpaid_cannot_jump_to_past_due(session_factory, db, seed):
    tenant = seed.tenant(status=SubscriptionStatus.UNPAID, external_id="sub_new")
    handle = build_billing_handler(session_factory)

    await handle("invoice.payment_failed", {"id": "in_9", "subscription": "sub_new"})

    db.expire_all()
    assert get_subscription(db, tenant.id).status == SubscriptionStatus.UNPAID.value


@pytest.mark.asyncio
async def test_malformed_payload_is_dropped_without_raising(session_factory, db, seed):
    tenant = seed.tenant(status=SubscriptionStatus.UNPAID, external_id="sub_bad")
    handle = build_billing_handler(session_factory)

    await handle("subscription.updated", {"id": "sub_bad", "status": "active", "tenant_id": "not-a-uuid"})
    await handle(
        "subscription.updated",
        {"id": "sub_bad", "status": "active", "current_period_end": "next tuesday"},
    )

    db.expire_all()
    subscription = get_subscription(db, tenant.id)
    assert subscription.status == SubscriptionStatus.UNPAID.value
    assert subscription.current_period_end is None


def test_all_gateway_event_types_are_registered():
    assert set(BILLING_EVENT_TYPES) == {
        "subscription.created",
        "subscription.updated",
        "subscription.deleted",
        "invoice.payment_succeeded",
        "invoice.payment_failed",
    }
