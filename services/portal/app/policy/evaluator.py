"""Pure authorization evaluator.

``decide`` never touches the database: callers load a :class:`ResourceRef`
snapshot first (see :mod:`app.policy.resources`) and hand it over together
with the :class:`Actor` built from the access token. Checks run in a fixed
order so that the reported reason is predictable:

1. identity, unless the action is anonymous;
2. resource existence;
3. tenant isolation for actions every grant of which is tenant-scoped;
4. lifecycle state (expired tokens, terminal or out-of-order states);
5. subscription entitlement for billing-gated actions;
6. super-admin bypass, except for owner-only actions;
7. role grant, then the per-role tenant and ownership requirements.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping, Optional
from uuid import UUID

from app.core.errors import DomainError, Forbidden, NotFound, Conflict, Unauthenticated
from app.models.enums import Role
from app.policy.rules import RULES, Action, Rule


@dataclass(frozen=True)
class Actor:
    account_id: UUID
    role: Role
    tenant_id: Optional[UUID] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role is Role.SUPER_ADMIN


@dataclass(frozen=True)
class ResourceRef:
    kind: str
    id: Optional[UUID] = None
    tenant_id: Optional[UUID] = None
    owner_id: Optional[UUID] = None
    # segundo "dono" (consultor atribuído a um agendamento)
    assignee_id: Optional[UUID] = None
    state: Optional[str] = None
    expired: bool = False
    # None quando o recurso não depende de assinatura
    entitled: Optional[bool] = None
    # recursos privados respondem 404 em vez de 403 para quem não é dono
    private: bool = False

    def owned_by(self, account_id: UUID) -> bool:
        return account_id is not None and account_id in (self.owner_id, self.assignee_id)

    @property
    def concealed(self) -> bool:
        return self.private or self.tenant_id is not None


class DenyReason(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not found"
    STALE_STATE = "stale state"
    SUBSCRIPTION_INACTIVE = "subscription inactive"
    CROSS_TENANT = "cross-tenant"
    ROLE_MISMATCH = "role mismatch"
    NOT_OWNER = "not owner"


_MESSAGES = {
    DenyReason.UNAUTHENTICATED: "Credenciais inválidas",
    DenyReason.NOT_FOUND: "Recurso não encontrado",
    DenyReason.STALE_STATE: "O recurso não está mais neste estado",
    DenyReason.SUBSCRIPTION_INACTIVE: "Assinatura da empresa inativa",
    DenyReason.CROSS_TENANT: "Recurso não encontrado",
    DenyReason.ROLE_MISMATCH: "Seu perfil não permite esta ação",
    DenyReason.NOT_OWNER: "Apenas o dono do recurso pode executar esta ação",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    expired: bool = False
    concealed: bool = False

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, resource: Optional[ResourceRef] = None) -> "Decision":
        return cls(
            allowed=False,
            reason=reason,
            expired=bool(resource and resource.expired),
            concealed=bool(resource and resource.concealed),
        )

    def error(self) -> Optional[DomainError]:
        """Translate a denial into the error the API reports; ``None`` if allowed."""
        if self.allowed:
            return None
        message = _MESSAGES[self.reason]
        if self.reason is DenyReason.UNAUTHENTICATED:
            return Unauthenticated(message)
        if self.reason in (DenyReason.NOT_FOUND, DenyReason.CROSS_TENANT):
            return NotFound(message)
        if self.reason is DenyReason.STALE_STATE:
            # token expirado é indistinguível de token inexistente
            return NotFound(message) if self.expired else Conflict(message)
        if self.reason is DenyReason.NOT_OWNER and self.concealed:
            return NotFound(_MESSAGES[DenyReason.NOT_FOUND])
        return Forbidden(message)


def decide(
    actor: Optional[Actor],
    action: Action,
    resource: Optional[ResourceRef],
    rules: Mapping[Action, Rule] = RULES,
) -> Decision:
    rule = rules[action]

    if actor is None and not rule.anonymous:
        return Decision.deny(DenyReason.UNAUTHENTICATED)

    if resource is None:
        return Decision.deny(DenyReason.NOT_FOUND)

    if (
        actor is not None
        and not actor.is_super_admin
        and rule.tenant_scoped
        and (actor.tenant_id is None or actor.tenant_id != resource.tenant_id)
    ):
        return Decision.deny(DenyReason.CROSS_TENANT, resource)

    if resource.expired:
        return Decision.deny(DenyReason.STALE_STATE, resource)
    if rule.states is not None and resource.state not in rule.states:
        return Decision.deny(DenyReason.STALE_STATE, resource)

    if rule.billing_gated and resource.entitled is False:
        return Decision.deny(DenyReason.SUBSCRIPTION_INACTIVE, resource)

    if rule.anonymous:
        return Decision.allow()

    if actor.is_super_admin and not rule.owner_only:
        return Decision.allow()

    scope = rule.grants.get(actor.role)
    if scope is None:
        return Decision.deny(DenyReason.ROLE_MISMATCH, resource)

    if scope.needs_tenant and (actor.tenant_id is None or actor.tenant_id != resource.tenant_id):
        return Decision.deny(DenyReason.CROSS_TENANT, resource)

    if scope.needs_owner and not resource.owned_by(actor.account_id):
        return Decision.deny(DenyReason.NOT_OWNER, resource)

    return Decision.allow()


def enforce(
    actor: Optional[Actor],
    action: Action,
    resource: Optional[ResourceRef],
) -> ResourceRef:
    """``decide`` and raise the mapped error on denial; returns the resource."""
    decision = decide(actor, action, resource)
    if not decision.allowed:
        raise decision.error()
    return resource
