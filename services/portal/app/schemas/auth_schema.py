from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.enums import PlanTier, Role


class SignupRequest(BaseModel):
    company_name: str = Field(..., min_length=1, examples=["Acme Formations"])
    company_email: Optional[EmailStr] = Field(default=None, examples=["contato@acme.fr"])
    company_phone: Optional[str] = Field(default=None, examples=["+33 1 23 45 67 89"])
    name: str = Field(..., min_length=1, examples=["Marie Dupont"])
    email: EmailStr = Field(..., examples=["marie.dupont@acme.fr"])
    password: str = Field(..., min_length=8, examples=["senha123"])
    plan: PlanTier = Field(default=PlanTier.ESSENTIEL)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AccountOut(BaseModel):
    id: UUID
    email: EmailStr
    name: Optional[str] = None
    role: Role
    tenant_id: Optional[UUID] = None
    is_active: bool
    bio: Optional[str] = None
    expertise: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SignupResponse(TokenResponse):
    account: AccountOut


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)


class MessageResponse(BaseModel):
    message: str
