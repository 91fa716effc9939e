import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import jwt
from passlib.context import CryptContext

from shared.config import SecurityConfig

pwd_context = CryptContext(schemes=["bcrypt", "sha256_crypt"], deprecated="auto")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite devolve datetimes sem tzinfo; tudo é gravado em UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def create_access_token(
    settings: SecurityConfig,
    account_id: UUID,
    role: str,
    tenant_id: Optional[UUID],
) -> str:
    expire = utcnow() + timedelta(hours=settings.access_token_hours)
    to_encode = {
        "exp": expire,
        "sub": str(account_id),
        "role": role,
        "tenant_id": str(tenant_id) if tenant_id else None,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(settings: SecurityConfig, token: str) -> dict:
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])


def generate_token() -> str:
    """Token opaco de uso único (convites, redefinição de senha)."""
    return secrets.token_hex(32)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)
