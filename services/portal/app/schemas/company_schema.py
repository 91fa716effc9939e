from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.enums import PlanTier, SubscriptionStatus


class SubscriptionOut(BaseModel):
    id: UUID
    tenant_id: UUID
    plan: PlanTier
    status: SubscriptionStatus
    external_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False

    model_config = ConfigDict(from_attributes=True)


class SubscriptionUsage(SubscriptionOut):
    seats_used: int
    seat_limit: Optional[int] = None


class SubscriptionOverride(BaseModel):
    plan: Optional[PlanTier] = None
    status: Optional[SubscriptionStatus] = None
    current_period_end: Optional[datetime] = None


class CompanyOut(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    subscription: Optional[SubscriptionOut] = None

    model_config = ConfigDict(from_attributes=True)
