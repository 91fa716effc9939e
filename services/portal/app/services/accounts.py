import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Invalid, Unauthenticated
from app.core.security import get_password_hash, verify_password
from app.models.account import Account
from app.models.enums import PlanTier, Role, SubscriptionStatus
from app.models.tenant import Subscription, Tenant
from app.policy import Action, Actor, enforce
from app.policy.resources import account_ref, consultant_ref, tenant_ref

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_account(db: Session, account_id: UUID) -> Optional[Account]:
    return db.query(Account).filter(Account.id == account_id).first()


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    return db.query(Account).filter(Account.email == normalize_email(email)).first()


def signup_company(
    db: Session,
    *,
    company_name: str,
    name: str,
    email: str,
    password: str,
    plan: PlanTier = PlanTier.ESSENTIEL,
    company_email: Optional[str] = None,
    company_phone: Optional[str] = None,
) -> Account:
    """Cria empresa, assinatura (UNPAID até o primeiro pagamento) e o admin da empresa."""
    if get_account_by_email(db, email):
        raise Conflict("E-mail já cadastrado")

    tenant = Tenant(name=company_name, email=company_email, phone=company_phone)
    db.add(tenant)
    db.flush()
    db.add(Subscription(tenant_id=tenant.id, plan=plan.value, status=SubscriptionStatus.UNPAID.value))
    admin = Account(
        email=normalize_email(email),
        name=name,
        password_hash=get_password_hash(password),
        role=Role.TENANT_ADMIN.value,
        tenant_id=tenant.id,
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("E-mail já cadastrado")
    db.refresh(admin)
    logger.info("Empresa %s criada com admin %s", tenant.id, admin.id)
    return admin


def authenticate(db: Session, email: str, password: str) -> Account:
    account = get_account_by_email(db, email)
    if not account or not account.is_active or not verify_password(password, account.password_hash):
        raise Unauthenticated("Email ou senha inválidos")
    return account


def view_account(db: Session, actor: Actor, account_id: UUID) -> Account:
    account = get_account(db, account_id)
    enforce(actor, Action.ACCOUNT_VIEW, account_ref(account))
    return account


def get_company(db: Session, actor: Actor, tenant_id: UUID) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    enforce(actor, Action.TENANT_VIEW, tenant_ref(tenant))
    return tenant


def list_company_accounts(db: Session, actor: Actor, tenant_id: UUID) -> List[Account]:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    enforce(actor, Action.ACCOUNT_LIST, tenant_ref(tenant))
    return (
        db.query(Account)
        .filter(Account.tenant_id == tenant_id)
        .order_by(Account.name.asc())
        .all()
    )


_REQUIRED_PROFILE_FIELDS = ("name", "expertise", "is_active")


def _apply_profile(account: Account, changes: dict) -> None:
    for field in _REQUIRED_PROFILE_FIELDS:
        if field in changes and changes[field] is None:
            raise Invalid(f"O campo {field} não pode ser nulo")
    for field, value in changes.items():
        setattr(account, field, value)


def update_own_consultant_profile(db: Session, actor: Actor, changes: dict) -> Account:
    account = get_account(db, actor.account_id)
    enforce(actor, Action.CONSULTANT_PROFILE_UPDATE, consultant_ref(account))
    _apply_profile(account, changes)
    db.commit()
    db.refresh(account)
    return account


def override_consultant_profile(db: Session, actor: Actor, consultant_id: UUID, changes: dict) -> Account:
    account = get_account(db, consultant_id)
    enforce(actor, Action.CONSULTANT_PROFILE_ADMIN_OVERRIDE, consultant_ref(account))
    _apply_profile(account, changes)
    db.commit()
    db.refresh(account)
    logger.info("Perfil do consultor %s alterado pelo super-admin %s", consultant_id, actor.account_id)
    return account
