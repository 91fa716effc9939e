from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import BaseModel, ValidationError

from app.core.errors import Unauthenticated
from app.core.security import decode_access_token
from app.models.enums import Role
from app.policy import Actor

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


class TokenPayload(BaseModel):
    sub: UUID
    role: Role
    tenant_id: Optional[UUID] = None


def _actor_from_token(request: Request, token: str) -> Actor:
    settings = request.app.state.config.security
    try:
        payload = decode_access_token(settings, token)
        token_data = TokenPayload(**payload)
    except (JWTError, ValidationError):
        raise Unauthenticated()

    # papéis de plataforma nunca carregam tenant, mesmo que o token traga um
    tenant_id = token_data.tenant_id if token_data.role.is_tenant_bound else None
    return Actor(account_id=token_data.sub, role=token_data.role, tenant_id=tenant_id)


def get_current_actor(request: Request, token: str = Depends(oauth2_scheme)) -> Actor:
    """
    Valida o JWT e devolve o ator. As claims são confiáveis porque o token é
    assinado por nós; não há consulta ao banco aqui.
    """
    return _actor_from_token(request, token)


def get_optional_actor(
    request: Request,
    token: Optional[str] = Depends(optional_oauth2_scheme),
) -> Optional[Actor]:
    if not token:
        return None
    return _actor_from_token(request, token)
