"""Invitation lifecycle: ISSUED -> ACCEPTED, with EXPIRED derived from the clock.

A live invitation carries ``live_key = "<tenant>:<email>"``; the unique
constraint on that column is what keeps a single live invitation per pair
even when two admins issue at the same time.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Invalid
from app.core.security import generate_token, get_password_hash, utcnow
from app.models.account import Account
from app.models.enums import INVITABLE_ROLES, Role
from app.models.invitation import Invitation, live_key_for
from app.models.tenant import Tenant
from app.policy import Action, Actor, enforce
from app.policy.resources import invitation_ref, tenant_ref
from app.services.accounts import get_account_by_email, normalize_email
from app.services.notifications import send_email
from app.services.subscriptions import ensure_seat_available, is_tenant_entitled
from shared.config import AccountsConfig
from shared.messaging import Publisher

logger = logging.getLogger(__name__)


def invite_url(settings: AccountsConfig, token: str) -> str:
    return f"{settings.public_url.rstrip('/')}/invitations/accept?token={token}"


def get_invitation_by_token(db: Session, token: str) -> Optional[Invitation]:
    return db.query(Invitation).filter(Invitation.token == token).first()


def issue_invitation(
    db: Session,
    actor: Actor,
    tenant_id: UUID,
    email: str,
    role: Role,
    settings: AccountsConfig,
    *,
    publisher: Optional[Publisher] = None,
    now: Optional[datetime] = None,
) -> Invitation:
    now = now or utcnow()
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    entitled = is_tenant_entitled(db, tenant_id) if tenant else None
    enforce(actor, Action.INVITATION_CREATE, tenant_ref(tenant, entitled=entitled))

    if role not in INVITABLE_ROLES:
        raise Invalid("Papel não pode ser convidado")

    email = normalize_email(email)
    if get_account_by_email(db, email):
        raise Conflict("Já existe um usuário com este e-mail")

    ensure_seat_available(db, tenant_id, now)

    key = live_key_for(tenant_id, email)
    # convites expirados liberam a chave para o novo convite
    db.query(Invitation).filter(
        Invitation.live_key == key,
        Invitation.accepted_at.is_(None),
        Invitation.expires_at <= now,
    ).update({Invitation.live_key: None}, synchronize_session=False)

    invitation = Invitation(
        token=generate_token(),
        email=email,
        role=role.value,
        tenant_id=tenant_id,
        issuer_id=actor.account_id,
        expires_at=now + timedelta(hours=settings.invitation_ttl_hours),
        live_key=key,
    )
    db.add(invitation)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Já existe um convite pendente para este e-mail")
    db.refresh(invitation)

    logger.info("Convite %s emitido para %s (tenant_id=%s)", invitation.id, email, tenant_id)
    send_email(
        publisher,
        "invitation",
        {
            "to": email,
            "company_name": tenant.name,
            "role": invitation.role,
            "invite_url": invite_url(settings, invitation.token),
            "expires_at": invitation.expires_at,
        },
        tenant_id=tenant_id,
    )
    return invitation


def inspect_invitation(db: Session, token: str, *, now: Optional[datetime] = None) -> Invitation:
    invitation = get_invitation_by_token(db, token)
    enforce(None, Action.INVITATION_VIEW, invitation_ref(invitation, now or utcnow()))
    return invitation


def accept_invitation(
    db: Session,
    token: str,
    name: str,
    password: str,
    *,
    publisher: Optional[Publisher] = None,
    now: Optional[datetime] = None,
) -> Account:
    now = now or utcnow()
    invitation = get_invitation_by_token(db, token)
    enforce(None, Action.INVITATION_ACCEPT, invitation_ref(invitation, now))

    if get_account_by_email(db, invitation.email):
        raise Conflict("Já existe um usuário com este e-mail")

    account = Account(
        email=invitation.email,
        name=name,
        password_hash=get_password_hash(password),
        role=invitation.role,
        tenant_id=invitation.tenant_id,
        email_verified_at=now,
    )
    db.add(account)
    try:
        db.flush()
        claimed = db.execute(
            update(Invitation)
            .where(
                Invitation.id == invitation.id,
                Invitation.accepted_at.is_(None),
                Invitation.expires_at > now,
            )
            .values(accepted_at=now, account_id=account.id, live_key=None)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            db.rollback()
            raise Conflict("Convite já utilizado")
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Convite já utilizado")
    db.refresh(account)

    logger.info("Convite %s aceito pela conta %s", invitation.id, account.id)
    send_email(
        publisher,
        "welcome",
        {"to": account.email, "name": account.name, "role": account.role},
        tenant_id=account.tenant_id,
    )
    return account
