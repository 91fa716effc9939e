"""Snapshots of ORM rows in the shape the evaluator understands.

Resources that do not carry a tenant directly inherit it by walking their
parent (an enrollment belongs to the tenant of its learner, a lesson to the
author of its formation).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from app.core.security import as_utc
from app.models.account import Account, PasswordResetToken
from app.models.appointment import Appointment
from app.models.enums import InvitationState, ResetTokenState, Role
from app.models.formation import Enrollment, Formation, Lesson, Section
from app.models.invitation import Invitation
from app.models.notification import Notification
from app.models.tenant import Tenant
from app.policy.evaluator import ResourceRef


def tenant_ref(tenant: Optional[Tenant], entitled: Optional[bool] = None) -> Optional[ResourceRef]:
    if tenant is None:
        return None
    return ResourceRef(kind="tenant", id=tenant.id, tenant_id=tenant.id, entitled=entitled)


def account_ref(account: Optional[Account]) -> Optional[ResourceRef]:
    if account is None:
        return None
    return ResourceRef(kind="account", id=account.id, tenant_id=account.tenant_id, owner_id=account.id)


def consultant_ref(account: Optional[Account]) -> Optional[ResourceRef]:
    if account is None or account.role != Role.CONSULTANT.value:
        return None
    return ResourceRef(kind="consultant", id=account.id, owner_id=account.id)


def invitation_ref(invitation: Optional[Invitation], now: datetime) -> Optional[ResourceRef]:
    if invitation is None:
        return None
    if invitation.accepted_at is not None:
        state = InvitationState.ACCEPTED
    elif as_utc(invitation.expires_at) <= now:
        state = InvitationState.EXPIRED
    else:
        state = InvitationState.ISSUED
    return ResourceRef(
        kind="invitation",
        id=invitation.id,
        tenant_id=invitation.tenant_id,
        owner_id=invitation.issuer_id,
        state=state.value,
        expired=state is InvitationState.EXPIRED,
    )


def reset_token_ref(token: Optional[PasswordResetToken], now: datetime) -> Optional[ResourceRef]:
    if token is None:
        return None
    if token.used_at is not None:
        state = ResetTokenState.USED
    elif as_utc(token.expires_at) <= now:
        state = ResetTokenState.EXPIRED
    else:
        state = ResetTokenState.ISSUED
    return ResourceRef(
        kind="password_reset",
        id=token.id,
        owner_id=token.account_id,
        state=state.value,
        expired=state is ResetTokenState.EXPIRED,
        private=True,
    )


def formation_ref(formation: Optional[Formation]) -> Optional[ResourceRef]:
    if formation is None:
        return None
    return ResourceRef(
        kind="formation",
        id=formation.id,
        owner_id=formation.author_id,
        state="ACTIVE" if formation.is_active else "INACTIVE",
    )


def formation_assignment_ref(
    formation: Optional[Formation],
    tenant_id: UUID,
    entitled: bool,
) -> Optional[ResourceRef]:
    """A formation seen from the tenant that wants to enroll its people in it."""
    if formation is None:
        return None
    return ResourceRef(
        kind="formation",
        id=formation.id,
        tenant_id=tenant_id,
        state="ACTIVE" if formation.is_active else "INACTIVE",
        entitled=entitled,
    )


def section_ref(section: Optional[Section]) -> Optional[ResourceRef]:
    if section is None:
        return None
    return ResourceRef(kind="section", id=section.id, owner_id=section.formation.author_id)


def lesson_ref(lesson: Optional[Lesson]) -> Optional[ResourceRef]:
    if lesson is None:
        return None
    return ResourceRef(kind="lesson", id=lesson.id, owner_id=lesson.section.formation.author_id)


def learner_lesson_ref(lesson: Optional[Lesson], enrollment: Optional[Enrollment]) -> Optional[ResourceRef]:
    """A lesson seen by an enrolled learner; drafts do not exist for them."""
    if lesson is None or enrollment is None or not lesson.is_published:
        return None
    return ResourceRef(
        kind="lesson",
        id=lesson.id,
        tenant_id=enrollment.account.tenant_id,
        owner_id=enrollment.account_id,
    )


def enrollment_ref(enrollment: Optional[Enrollment]) -> Optional[ResourceRef]:
    if enrollment is None:
        return None
    return ResourceRef(
        kind="enrollment",
        id=enrollment.id,
        tenant_id=enrollment.account.tenant_id,
        owner_id=enrollment.account_id,
        state="COMPLETED" if enrollment.completed_at is not None else "IN_PROGRESS",
    )


def appointment_ref(appointment: Optional[Appointment]) -> Optional[ResourceRef]:
    if appointment is None:
        return None
    return ResourceRef(
        kind="appointment",
        id=appointment.id,
        tenant_id=appointment.tenant_id,
        owner_id=appointment.employee_id,
        assignee_id=appointment.consultant_id,
        state=appointment.status,
    )


def feedback_target_ref(appointment: Optional[Appointment]) -> Optional[ResourceRef]:
    """An appointment as the target of a feedback; once reviewed it is no longer COMPLETED."""
    if appointment is None:
        return None
    state = "REVIEWED" if appointment.feedback is not None else appointment.status
    return ResourceRef(
        kind="appointment",
        id=appointment.id,
        tenant_id=appointment.tenant_id,
        owner_id=appointment.employee_id,
        state=state,
    )


def notification_ref(notification: Optional[Notification]) -> Optional[ResourceRef]:
    if notification is None:
        return None
    return ResourceRef(
        kind="notification",
        id=notification.id,
        owner_id=notification.account_id,
        private=True,
    )
