from fastapi import APIRouter, Depends, Form, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.core.security import create_access_token
from app.policy import Actor
from app.schemas.auth_schema import (
    AccountOut,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
)
from app.services import accounts, password_reset

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_for(request: Request, account) -> str:
    return create_access_token(
        request.app.state.config.security,
        account_id=account.id,
        role=account.role,
        tenant_id=account.tenant_id,
    )


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, request: Request, db: Session = Depends(get_db)):
    admin = accounts.signup_company(
        db,
        company_name=payload.company_name,
        company_email=payload.company_email,
        company_phone=payload.company_phone,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        plan=payload.plan,
    )
    return {"access_token": _token_for(request, admin), "token_type": "bearer", "account": admin}


@router.post("/login", response_model=TokenResponse)
def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    # "username" por compatibilidade com o fluxo OAuth2 password; é o e-mail
    account = accounts.authenticate(db, username, password)
    return {"access_token": _token_for(request, account), "token_type": "bearer"}


@router.get("/me", response_model=AccountOut)
def get_me(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return accounts.view_account(db, actor, actor.account_id)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: ForgotPasswordRequest, request: Request, db: Session = Depends(get_db)):
    message = password_reset.request_password_reset(
        db,
        payload.email,
        request.app.state.config.accounts,
        publisher=request.app.state.publisher,
    )
    return {"message": message}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    password_reset.redeem_password_reset(db, payload.token, payload.password)
    return {"message": "Senha redefinida com sucesso"}
