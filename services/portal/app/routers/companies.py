from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.policy import Actor
from app.schemas.auth_schema import AccountOut
from app.schemas.company_schema import CompanyOut, SubscriptionOut, SubscriptionOverride, SubscriptionUsage
from app.services import accounts, subscriptions

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.get("/{tenant_id}", response_model=CompanyOut)
def get_company(tenant_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return accounts.get_company(db, actor, tenant_id)


@router.get("/{tenant_id}/users", response_model=List[AccountOut])
def list_company_users(tenant_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return accounts.list_company_accounts(db, actor, tenant_id)


@router.get("/{tenant_id}/subscription", response_model=SubscriptionUsage)
def get_subscription(tenant_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    usage = subscriptions.view_subscription(db, actor, tenant_id)
    payload = SubscriptionOut.model_validate(usage["subscription"]).model_dump()
    payload.update(seats_used=usage["seats_used"], seat_limit=usage["seat_limit"])
    return payload


@router.put("/{tenant_id}/subscription", response_model=SubscriptionOut)
def override_subscription(
    tenant_id: UUID,
    payload: SubscriptionOverride,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return subscriptions.override_subscription(
        db,
        actor,
        tenant_id,
        plan=payload.plan,
        status=payload.status,
        period_end=payload.current_period_end,
    )
