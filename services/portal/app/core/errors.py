"""Error taxonomy shared by the policy layer, the services and the routers.

Services raise these; ``app.main`` renders them with the same ``{"detail": ...}``
body FastAPI uses for ``HTTPException``.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Requisição inválida"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Credenciais inválidas"


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Acesso negado"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Recurso não encontrado"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "O recurso mudou de estado"


class Invalid(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Dados inválidos"


async def domain_error_handler(_request: Request, exc: DomainError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)
