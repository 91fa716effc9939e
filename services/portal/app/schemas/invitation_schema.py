from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.enums import INVITABLE_ROLES, Role


class InvitationCreate(BaseModel):
    email: EmailStr = Field(..., examples=["novo.colaborador@acme.fr"])
    role: Role = Field(default=Role.EMPLOYEE)

    @field_validator("role")
    @classmethod
    def _only_tenant_roles(cls, value: Role) -> Role:
        if value not in INVITABLE_ROLES:
            raise ValueError("Só é possível convidar colaboradores ou administradores da empresa")
        return value


class InvitationOut(BaseModel):
    id: UUID
    email: EmailStr
    role: Role
    tenant_id: UUID
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InvitationIssued(InvitationOut):
    token: str
    invite_url: str


class InvitationPreview(BaseModel):
    email: EmailStr
    role: Role
    tenant_id: UUID
    company_name: Optional[str] = None
    expires_at: datetime


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)
