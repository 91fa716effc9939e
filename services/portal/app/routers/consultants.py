from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.policy import Actor
from app.schemas.auth_schema import AccountOut
from app.schemas.consultant_schema import ConsultantAdminUpdate, ConsultantProfileUpdate
from app.services import accounts

router = APIRouter(prefix="/consultants", tags=["Consultants"])


@router.put("/me/profile", response_model=AccountOut)
def update_my_profile(
    payload: ConsultantProfileUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return accounts.update_own_consultant_profile(db, actor, payload.model_dump(exclude_unset=True))


@router.put("/{consultant_id}/profile", response_model=AccountOut)
def override_profile(
    consultant_id: UUID,
    payload: ConsultantAdminUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return accounts.override_consultant_profile(db, actor, consultant_id, payload.model_dump(exclude_unset=True))
