"""Consumer for payment-gateway events on the ``billing-events`` stream."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine, Optional
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from app.services.subscriptions import apply_payment_event

logger = logging.getLogger(__name__)

BILLING_EVENT_TYPES = (
    "subscription.created",
    "subscription.updated",
    "subscription.deleted",
    "invoice.payment_succeeded",
    "invoice.payment_failed",
)

# eventos de fatura não trazem o status da assinatura
_INVOICE_STATUS = {
    "invoice.payment_succeeded": "active",
    "invoice.payment_failed": "past_due",
}


def _timestamp(value: Any) -> Optional[datetime]:
    """Aceita epoch em segundos (formato do gateway) ou ISO-8601."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _status_for(event_type: str, payload: dict[str, Any]) -> Optional[str]:
    if event_type == "subscription.deleted":
        return "canceled"
    if event_type in _INVOICE_STATUS:
        return _INVOICE_STATUS[event_type]
    return payload.get("status")


def handle_billing_event(db: Session, event_type: str, payload: dict[str, Any]) -> None:
    metadata = payload.get("metadata") or {}
    tenant_id = payload.get("tenant_id") or metadata.get("tenant_id")
    external_id = payload.get("subscription_id") or payload.get("id")
    if event_type.startswith("invoice."):
        # numa fatura, "id" é o da fatura
        external_id = payload.get("subscription_id") or payload.get("subscription")

    # payload malformado é descartado, não reprocessado
    try:
        tenant_id = UUID(str(tenant_id)) if tenant_id else None
        period_start = _timestamp(payload.get("current_period_start"))
        period_end = _timestamp(payload.get("current_period_end"))
    except (ValueError, TypeError, OverflowError) as exc:
        logger.warning("[BILLING] Evento %s descartado, payload inválido: %s", event_type, exc)
        return

    result = apply_payment_event(
        db,
        status=_status_for(event_type, payload),
        external_id=external_id,
        tenant_id=tenant_id,
        plan=payload.get("plan") or metadata.get("plan"),
        period_start=period_start,
        period_end=period_end,
        cancel_at_period_end=payload.get("cancel_at_period_end"),
    )
    if result is None:
        logger.info("[BILLING] Evento %s ignorado (external_id=%s)", event_type, external_id)
    else:
        logger.info("[BILLING] %s aplicado: tenant %s agora %s", event_type, result.tenant_id, result.status)


def build_billing_handler(
    session_factory: sessionmaker,
) -> Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]:
    """Handler para o EventConsumer; cada evento usa sua própria sessão."""

    async def handle(event_type: str, payload: dict[str, Any]) -> None:
        db: Session = session_factory()
        try:
            handle_billing_event(db, event_type, payload)
        except Exception:
            db.rollback()
            logger.exception("[BILLING] Erro ao processar %s", event_type)
            raise
        finally:
            db.close()

    return handle
