"""Action catalogue and the rule table consulted by :func:`app.policy.decide`.

Each action maps to exactly one :class:`Rule`. A rule lists which roles may
perform the action and under which *scope*; super-admins are handled by the
evaluator itself and never need a grant unless the action is owner-only.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

from app.models.enums import AppointmentStatus, InvitationState, ResetTokenState, Role


class Action(str, enum.Enum):
    TENANT_VIEW = "Tenant.View"
    ACCOUNT_LIST = "Account.List"
    ACCOUNT_VIEW = "Account.View"
    SUBSCRIPTION_VIEW = "Subscription.View"
    SUBSCRIPTION_OVERRIDE = "Subscription.Override"

    INVITATION_CREATE = "Invitation.Create"
    INVITATION_VIEW = "Invitation.View"
    INVITATION_ACCEPT = "Invitation.Accept"
    PASSWORD_RESET_REDEEM = "PasswordReset.Redeem"

    FORMATION_CREATE = "Formation.Create"
    FORMATION_UPDATE = "Formation.Update"
    FORMATION_TOGGLE_ACTIVE = "Formation.ToggleActive"
    FORMATION_ASSIGN = "Formation.Assign"
    SECTION_CREATE = "Section.Create"
    LESSON_CREATE = "Lesson.Create"
    LESSON_PUBLISH = "Lesson.Publish"
    LESSON_UPDATE_PROGRESS = "Lesson.UpdateProgress"
    QUIZ_MANAGE = "Quiz.Manage"
    QUIZ_TAKE = "Quiz.Take"

    ENROLLMENT_VIEW = "Enrollment.View"
    ENROLLMENT_UPDATE_PROGRESS = "Enrollment.UpdateProgress"

    APPOINTMENT_CREATE = "Appointment.Create"
    APPOINTMENT_VIEW = "Appointment.View"
    APPOINTMENT_APPROVE = "Appointment.Approve"
    APPOINTMENT_REJECT = "Appointment.Reject"
    APPOINTMENT_ASSIGN_CONSULTANT = "Appointment.AssignConsultant"
    APPOINTMENT_COMPLETE = "Appointment.Complete"
    APPOINTMENT_CANCEL = "Appointment.Cancel"
    FEEDBACK_CREATE = "Feedback.Create"

    NOTIFICATION_READ = "Notification.Read"
    NOTIFICATION_DISMISS = "Notification.Dismiss"

    CONSULTANT_PROFILE_UPDATE = "ConsultantProfile.Update"
    CONSULTANT_PROFILE_ADMIN_OVERRIDE = "ConsultantProfile.AdminOverride"


class Scope(enum.Enum):
    """What, besides the role, must hold between actor and resource."""

    ANY = (False, False)
    TENANT = (True, False)
    OWNER = (False, True)
    TENANT_OWNER = (True, True)

    @property
    def needs_tenant(self) -> bool:
        return self.value[0]

    @property
    def needs_owner(self) -> bool:
        return self.value[1]


@dataclass(frozen=True)
class Rule:
    grants: Mapping[Role, Scope] = field(default_factory=dict)
    # estados de ciclo de vida em que a ação ainda faz sentido; None = qualquer
    states: Optional[FrozenSet[str]] = None
    billing_gated: bool = False
    # reservado ao dono, nem o super-admin passa
    owner_only: bool = False
    # não exige identidade (quem aceita um convite ainda não tem conta)
    anonymous: bool = False

    @property
    def tenant_scoped(self) -> bool:
        return bool(self.grants) and all(scope.needs_tenant for scope in self.grants.values())


def _states(*values: enum.Enum) -> FrozenSet[str]:
    return frozenset(value.value for value in values)


_EVERY_ROLE_AS_OWNER = {role: Scope.OWNER for role in Role}

RULES: Mapping[Action, Rule] = {
    Action.TENANT_VIEW: Rule({Role.TENANT_ADMIN: Scope.TENANT, Role.EMPLOYEE: Scope.TENANT}),
    Action.ACCOUNT_LIST: Rule({Role.TENANT_ADMIN: Scope.TENANT}),
    Action.ACCOUNT_VIEW: Rule(
        {
            Role.TENANT_ADMIN: Scope.TENANT,
            Role.EMPLOYEE: Scope.TENANT_OWNER,
            Role.CONSULTANT: Scope.OWNER,
            Role.CONTENT_AUTHOR: Scope.OWNER,
        }
    ),
    Action.SUBSCRIPTION_VIEW: Rule({Role.TENANT_ADMIN: Scope.TENANT}),
    Action.SUBSCRIPTION_OVERRIDE: Rule(),
    Action.INVITATION_CREATE: Rule({Role.TENANT_ADMIN: Scope.TENANT}, billing_gated=True),
    Action.INVITATION_VIEW: Rule(states=_states(InvitationState.ISSUED), anonymous=True),
    Action.INVITATION_ACCEPT: Rule(states=_states(InvitationState.ISSUED), anonymous=True),
    Action.PASSWORD_RESET_REDEEM: Rule(states=_states(ResetTokenState.ISSUED), anonymous=True),
    Action.FORMATION_CREATE: Rule({Role.CONTENT_AUTHOR: Scope.ANY}),
    Action.FORMATION_UPDATE: Rule({Role.CONTENT_AUTHOR: Scope.OWNER}),
    Action.FORMATION_TOGGLE_ACTIVE: Rule(),
    Action.FORMATION_ASSIGN: Rule(
        {Role.TENANT_ADMIN: Scope.TENANT},
        states=frozenset({"ACTIVE"}),
        billing_gated=True,
    ),
    Action.SECTION_CREATE: Rule({Role.CONTENT_AUTHOR: Scope.OWNER}),
    Action.LESSON_CREATE: Rule({Role.CONTENT_AUTHOR: Scope.OWNER}),
    Action.LESSON_PUBLISH: Rule({Role.CONTENT_AUTHOR: Scope.OWNER}),
    Action.LESSON_UPDATE_PROGRESS: Rule({Role.EMPLOYEE: Scope.TENANT_OWNER}, owner_only=True),
    Action.QUIZ_MANAGE: Rule({Role.CONTENT_AUTHOR: Scope.OWNER}),
    Action.QUIZ_TAKE: Rule({Role.EMPLOYEE: Scope.TENANT_OWNER}, owner_only=True),
    Action.ENROLLMENT_VIEW: Rule({Role.EMPLOYEE: Scope.TENANT_OWNER, Role.TENANT_ADMIN: Scope.TENANT}),
    Action.ENROLLMENT_UPDATE_PROGRESS: Rule({Role.EMPLOYEE: Scope.TENANT_OWNER}, owner_only=True),
    Action.APPOINTMENT_CREATE: Rule(
        {Role.EMPLOYEE: Scope.TENANT, Role.TENANT_ADMIN: Scope.TENANT},
        billing_gated=True,
    ),
    Action.APPOINTMENT_VIEW: Rule(
        {
            Role.EMPLOYEE: Scope.TENANT_OWNER,
            Role.TENANT_ADMIN: Scope.TENANT,
            Role.CONSULTANT: Scope.OWNER,
        }
    ),
    Action.APPOINTMENT_APPROVE: Rule(
        {Role.TENANT_ADMIN: Scope.TENANT},
        states=_states(AppointmentStatus.PENDING),
    ),
    Action.APPOINTMENT_REJECT: Rule(
        {Role.TENANT_ADMIN: Scope.TENANT},
        states=_states(AppointmentStatus.PENDING),
    ),
    Action.APPOINTMENT_ASSIGN_CONSULTANT: Rule(
        states=_states(AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
    ),
    Action.APPOINTMENT_COMPLETE: Rule(
        {Role.CONSULTANT: Scope.OWNER},
        states=_states(AppointmentStatus.CONFIRMED),
    ),
    Action.APPOINTMENT_CANCEL: Rule(
        {Role.EMPLOYEE: Scope.TENANT_OWNER, Role.TENANT_ADMIN: Scope.TENANT_OWNER},
        states=_states(AppointmentStatus.PENDING),
    ),
    Action.FEEDBACK_CREATE: Rule(
        {Role.EMPLOYEE: Scope.TENANT_OWNER, Role.TENANT_ADMIN: Scope.TENANT_OWNER},
        states=_states(AppointmentStatus.COMPLETED),
        owner_only=True,
    ),
    Action.NOTIFICATION_READ: Rule(_EVERY_ROLE_AS_OWNER, owner_only=True),
    Action.NOTIFICATION_DISMISS: Rule(_EVERY_ROLE_AS_OWNER, owner_only=True),
    Action.CONSULTANT_PROFILE_UPDATE: Rule({Role.CONSULTANT: Scope.OWNER}, owner_only=True),
    Action.CONSULTANT_PROFILE_ADMIN_OVERRIDE: Rule(),
}
