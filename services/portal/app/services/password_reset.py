import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import Conflict
from app.core.security import generate_token, get_password_hash, utcnow
from app.models.account import Account, PasswordResetToken
from app.policy import Action, enforce
from app.policy.resources import reset_token_ref
from app.services.accounts import get_account_by_email
from app.services.notifications import send_email
from shared.config import AccountsConfig
from shared.messaging import Publisher

logger = logging.getLogger(__name__)

NEUTRAL_MESSAGE = "Se o e-mail estiver cadastrado, você receberá um link para redefinir sua senha."


def reset_url(settings: AccountsConfig, token: str) -> str:
    return f"{settings.public_url.rstrip('/')}/reset-password?token={token}"


def request_password_reset(
    db: Session,
    email: str,
    settings: AccountsConfig,
    *,
    publisher: Optional[Publisher] = None,
    now: Optional[datetime] = None,
) -> str:
    """Sempre devolve a mesma mensagem, exista ou não a conta."""
    now = now or utcnow()
    account = get_account_by_email(db, email)
    if account is None or not account.is_active:
        logger.info("Pedido de redefinição para e-mail desconhecido")
        return NEUTRAL_MESSAGE

    db.query(PasswordResetToken).filter(
        PasswordResetToken.account_id == account.id,
        PasswordResetToken.used_at.is_(None),
    ).delete(synchronize_session=False)

    reset = PasswordResetToken(
        token=generate_token(),
        account_id=account.id,
        expires_at=now + timedelta(minutes=settings.password_reset_ttl_minutes),
    )
    db.add(reset)
    db.commit()

    send_email(
        publisher,
        "password_reset",
        {
            "to": account.email,
            "name": account.name,
            "reset_url": reset_url(settings, reset.token),
            "expires_at": reset.expires_at,
        },
        tenant_id=account.tenant_id,
    )
    return NEUTRAL_MESSAGE


def redeem_password_reset(
    db: Session,
    token: str,
    new_password: str,
    *,
    now: Optional[datetime] = None,
) -> Account:
    now = now or utcnow()
    reset = db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
    enforce(None, Action.PASSWORD_RESET_REDEEM, reset_token_ref(reset, now))

    claimed = db.execute(
        update(PasswordResetToken)
        .where(
            PasswordResetToken.id == reset.id,
            PasswordResetToken.used_at.is_(None),
            PasswordResetToken.expires_at > now,
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        db.rollback()
        raise Conflict("Token de redefinição já utilizado")

    account = db.query(Account).filter(Account.id == reset.account_id).first()
    account.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info("Senha redefinida para a conta %s", account.id)
    return account
