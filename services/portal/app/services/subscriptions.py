"""Subscription gating, seat caps and payment-gateway status sync."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, Invalid
from app.core.security import utcnow
from app.models.account import Account
from app.models.enums import PlanTier, SubscriptionStatus
from app.models.invitation import Invitation
from app.models.tenant import Subscription, Tenant
from app.policy import Action, Actor, enforce
from app.policy.resources import tenant_ref

logger = logging.getLogger(__name__)

# None = sem limite
SEAT_LIMITS = {
    PlanTier.ESSENTIEL: 25,
    PlanTier.PRO: 100,
    PlanTier.ENTREPRISE: None,
}

GATEWAY_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete_expired": SubscriptionStatus.CANCELED,
    "incomplete": SubscriptionStatus.UNPAID,
    "unpaid": SubscriptionStatus.UNPAID,
}

ALLOWED_TRANSITIONS = {
    SubscriptionStatus.UNPAID: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED},
    SubscriptionStatus.ACTIVE: {SubscriptionStatus.PAST_DUE, SubscriptionStatus.CANCELED},
    SubscriptionStatus.PAST_DUE: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED},
    SubscriptionStatus.CANCELED: set(),
}


def get_subscription(db: Session, tenant_id: UUID) -> Optional[Subscription]:
    return db.query(Subscription).filter(Subscription.tenant_id == tenant_id).first()


def is_tenant_entitled(db: Session, tenant_id: Optional[UUID]) -> bool:
    if tenant_id is None:
        return False
    subscription = get_subscription(db, tenant_id)
    return subscription is not None and subscription.status == SubscriptionStatus.ACTIVE.value


def seat_limit(plan: str) -> Optional[int]:
    return SEAT_LIMITS.get(PlanTier(plan))


def seats_used(db: Session, tenant_id: UUID, now: Optional[datetime] = None) -> int:
    """Accounts of the tenant plus invitations still waiting for an answer."""
    now = now or utcnow()
    accounts = db.query(func.count(Account.id)).filter(Account.tenant_id == tenant_id).scalar() or 0
    pending = (
        db.query(func.count(Invitation.id))
        .filter(
            Invitation.tenant_id == tenant_id,
            Invitation.live_key.isnot(None),
            Invitation.accepted_at.is_(None),
            Invitation.expires_at > now,
        )
        .scalar()
        or 0
    )
    return accounts + pending


def ensure_seat_available(db: Session, tenant_id: UUID, now: Optional[datetime] = None) -> None:
    subscription = get_subscription(db, tenant_id)
    if subscription is None:
        raise Forbidden("Empresa sem assinatura")
    limit = seat_limit(subscription.plan)
    if limit is not None and seats_used(db, tenant_id, now) >= limit:
        raise Forbidden(f"Limite de {limit} usuários do plano {subscription.plan} atingido")


def map_gateway_status(raw_status: Optional[str]) -> Optional[SubscriptionStatus]:
    if not raw_status:
        return None
    return GATEWAY_STATUS_MAP.get(raw_status.strip().lower())


def can_transition(current: SubscriptionStatus, target: SubscriptionStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def _find_subscription(
    db: Session,
    external_id: Optional[str],
    tenant_id: Optional[UUID],
) -> Optional[Subscription]:
    if external_id:
        subscription = db.query(Subscription).filter(Subscription.external_id == external_id).first()
        if subscription is not None:
            return subscription
    if tenant_id:
        return get_subscription(db, tenant_id)
    return None


def apply_payment_event(
    db: Session,
    *,
    status: str,
    external_id: Optional[str] = None,
    tenant_id: Optional[UUID] = None,
    plan: Optional[str] = None,
    period_start: Optional[datetime] = None,
    period_end: Optional[datetime] = None,
    cancel_at_period_end: Optional[bool] = None,
) -> Optional[Subscription]:
    """
    Aplica um status vindo do gateway de pagamento.

    Retorna a assinatura atualizada, ou None quando o evento foi ignorado
    (assinatura desconhecida, status desconhecido ou transição ilegal).
    """
    target = map_gateway_status(status)
    if target is None:
        logger.warning("Status de pagamento desconhecido ignorado: %r", status)
        return None

    subscription = _find_subscription(db, external_id, tenant_id)
    if subscription is None:
        logger.warning("Evento de pagamento para assinatura desconhecida (external_id=%s, tenant_id=%s)", external_id, tenant_id)
        return None

    current = SubscriptionStatus(subscription.status)
    if not can_transition(current, target):
        logger.warning(
            "Transição ilegal de assinatura ignorada: %s -> %s (tenant_id=%s)",
            current.value,
            target.value,
            subscription.tenant_id,
        )
        return None

    values = {"status": target.value, "updated_at": utcnow()}
    if external_id and subscription.external_id is None:
        values["external_id"] = external_id
    if plan:
        try:
            values["plan"] = PlanTier(plan.upper()).value
        except ValueError:
            logger.warning("Plano desconhecido ignorado: %r", plan)
    if period_start is not None:
        values["current_period_start"] = period_start
    if period_end is not None:
        values["current_period_end"] = period_end
    if cancel_at_period_end is not None:
        values["cancel_at_period_end"] = cancel_at_period_end

    # compare-and-swap: só aplica se ninguém mudou o status desde a leitura
    result = db.execute(
        update(Subscription)
        .where(Subscription.id == subscription.id, Subscription.status == current.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.warning("Assinatura %s mudou durante o processamento do evento; ignorado", subscription.id)
        return None

    db.commit()
    db.refresh(subscription)
    logger.info(
        "Assinatura %s: %s -> %s",
        subscription.tenant_id,
        current.value,
        subscription.status,
    )
    return subscription


def _load_tenant(db: Session, tenant_id: UUID) -> Optional[Tenant]:
    return db.query(Tenant).filter(Tenant.id == tenant_id).first()


def view_subscription(db: Session, actor: Actor, tenant_id: UUID) -> dict:
    enforce(actor, Action.SUBSCRIPTION_VIEW, tenant_ref(_load_tenant(db, tenant_id)))
    subscription = get_subscription(db, tenant_id)
    if subscription is None:
        raise Invalid("Empresa sem assinatura")
    return {
        "subscription": subscription,
        "seats_used": seats_used(db, tenant_id),
        "seat_limit": seat_limit(subscription.plan),
    }


def override_subscription(
    db: Session,
    actor: Actor,
    tenant_id: UUID,
    *,
    plan: Optional[PlanTier] = None,
    status: Optional[SubscriptionStatus] = None,
    period_end: Optional[datetime] = None,
) -> Subscription:
    """Ajuste manual pelo super-admin; não passa pelas regras de transição do gateway."""
    enforce(actor, Action.SUBSCRIPTION_OVERRIDE, tenant_ref(_load_tenant(db, tenant_id)))
    subscription = get_subscription(db, tenant_id)
    if subscription is None:
        subscription = Subscription(tenant_id=tenant_id)
        db.add(subscription)
    if plan is not None:
        subscription.plan = plan.value
    if status is not None:
        subscription.status = status.value
    if period_end is not None:
        subscription.current_period_end = period_end
    db.commit()
    db.refresh(subscription)
    logger.info("Assinatura de %s ajustada manualmente por %s", tenant_id, actor.account_id)
    return subscription
