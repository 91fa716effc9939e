from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.core.security import create_access_token
from app.policy import Actor
from app.schemas.auth_schema import SignupResponse
from app.schemas.invitation_schema import (
    InvitationAccept,
    InvitationCreate,
    InvitationIssued,
    InvitationPreview,
)
from app.services import invitations

router = APIRouter(tags=["Invitations"])


@router.post(
    "/companies/{tenant_id}/invitations",
    response_model=InvitationIssued,
    status_code=status.HTTP_201_CREATED,
)
def create_invitation(
    tenant_id: UUID,
    payload: InvitationCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    settings = request.app.state.config.accounts
    invitation = invitations.issue_invitation(
        db,
        actor,
        tenant_id,
        payload.email,
        payload.role,
        settings,
        publisher=request.app.state.publisher,
    )
    return {
        "id": invitation.id,
        "email": invitation.email,
        "role": invitation.role,
        "tenant_id": invitation.tenant_id,
        "expires_at": invitation.expires_at,
        "accepted_at": invitation.accepted_at,
        "created_at": invitation.created_at,
        "token": invitation.token,
        "invite_url": invitations.invite_url(settings, invitation.token),
    }


@router.get("/invitations/{token}", response_model=InvitationPreview)
def get_invitation(token: str, db: Session = Depends(get_db)):
    invitation = invitations.inspect_invitation(db, token)
    return {
        "email": invitation.email,
        "role": invitation.role,
        "tenant_id": invitation.tenant_id,
        "company_name": invitation.tenant.name if invitation.tenant else None,
        "expires_at": invitation.expires_at,
    }


@router.post("/invitations/accept", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def accept_invitation(payload: InvitationAccept, request: Request, db: Session = Depends(get_db)):
    account = invitations.accept_invitation(
        db,
        payload.token,
        payload.name,
        payload.password,
        publisher=request.app.state.publisher,
    )
    token = create_access_token(
        request.app.state.config.security,
        account_id=account.id,
        role=account.role,
        tenant_id=account.tenant_id,
    )
    return {"access_token": token, "token_type": "bearer", "account": account}
