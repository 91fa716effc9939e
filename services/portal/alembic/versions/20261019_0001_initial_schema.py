"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        _uuid("id", nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subscriptions",
        _uuid("id", nullable=False),
        _uuid("tenant_id", nullable=False),
        sa.Column("plan", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=True),
        sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_at_period_end", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", name="uq_subscriptions_tenant_id"),
        sa.UniqueConstraint("external_id", name="uq_subscriptions_external_id"),
    )
    op.create_index("ix_subscriptions_external_id", "subscriptions", ["external_id"], unique=False)

    op.create_table(
        "accounts",
        _uuid("id", nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False),
        _uuid("tenant_id", nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("expertise", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("email_verified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_accounts_email"),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=False)
    op.create_index("ix_accounts_tenant_id", "accounts", ["tenant_id"], unique=False)

    op.create_table(
        "password_reset_tokens",
        _uuid("id", nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        _uuid("account_id", nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token", name="uq_password_reset_tokens_token"),
    )
    op.create_index("ix_password_reset_tokens_account_id", "password_reset_tokens", ["account_id"], unique=False)

    op.create_table(
        "invitations",
        _uuid("id", nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        _uuid("tenant_id", nullable=False),
        _uuid("issuer_id", nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        _uuid("account_id", nullable=True),
        sa.Column("live_key", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["issuer_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token", name="uq_invitations_token"),
        sa.UniqueConstraint("live_key", name="uq_invitations_live_key"),
    )
    op.create_index("ix_invitations_tenant_email", "invitations", ["tenant_id", "email"], unique=False)

    op.create_table(
        "formations",
        _uuid("id", nullable=False),
        _uuid("author_id", nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["author_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_formations_author_id", "formations", ["author_id"], unique=False)

    op.create_table(
        "sections",
        _uuid("id", nullable=False),
        _uuid("formation_id", nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["formation_id"], ["formations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sections_formation_id", "sections", ["formation_id"], unique=False)

    op.create_table(
        "lessons",
        _uuid("id", nullable=False),
        _uuid("section_id", nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("lesson_type", sa.String(), nullable=False, server_default=sa.text("'TEXT'")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("video_asset_id", sa.String(), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["section_id"], ["sections.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lessons_section_id", "lessons", ["section_id"], unique=False)

    op.create_table(
        "enrollments",
        _uuid("id", nullable=False),
        _uuid("account_id", nullable=False),
        _uuid("formation_id", nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _uuid("assigned_by", nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["formation_id"], ["formations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assigned_by"], ["accounts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "formation_id", name="uq_enrollments_account_formation"),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_enrollments_progress_range"),
    )
    op.create_index("ix_enrollments_account_id", "enrollments", ["account_id"], unique=False)
    op.create_index("ix_enrollments_formation_id", "enrollments", ["formation_id"], unique=False)

    op.create_table(
        "lesson_progress",
        _uuid("id", nullable=False),
        _uuid("account_id", nullable=False),
        _uuid("lesson_id", nullable=False),
        sa.Column("watched_seconds", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "lesson_id", name="uq_lesson_progress_account_lesson"),
    )
    op.create_index("ix_lesson_progress_account_id", "lesson_progress", ["account_id"], unique=False)
    op.create_index("ix_lesson_progress_lesson_id", "lesson_progress", ["lesson_id"], unique=False)

    op.create_table(
        "quizzes",
        _uuid("id", nullable=False),
        _uuid("lesson_id", nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("passing_score", sa.Integer(), nullable=False, server_default=sa.text("70")),
        sa.Column("time_limit_seconds", sa.Integer(), nullable=True),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("questions", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quizzes_lesson_id", "quizzes", ["lesson_id"], unique=True)

    op.create_table(
        "quiz_results",
        _uuid("id", nullable=False),
        _uuid("account_id", nullable=False),
        _uuid("lesson_id", nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("passed", sa.Boolean(), nullable=False),
        sa.Column("answers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("score >= 0 AND score <= 100", name="ck_quiz_results_score_range"),
    )
    op.create_index("ix_quiz_results_account_id", "quiz_results", ["account_id"], unique=False)
    op.create_index("ix_quiz_results_lesson_id", "quiz_results", ["lesson_id"], unique=False)
    op.create_index("ix_quiz_results_created_at", "quiz_results", ["created_at"], unique=False)

    op.create_table(
        "appointments",
        _uuid("id", nullable=False),
        _uuid("tenant_id", nullable=False),
        _uuid("employee_id", nullable=False),
        _uuid("consultant_id", nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("60")),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("meeting_url", sa.String(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["consultant_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_appointments_tenant_id", "appointments", ["tenant_id"], unique=False)
    op.create_index("ix_appointments_employee_id", "appointments", ["employee_id"], unique=False)
    op.create_index("ix_appointments_consultant_id", "appointments", ["consultant_id"], unique=False)
    op.create_index("ix_appointments_status", "appointments", ["status"], unique=False)

    op.create_table(
        "consultation_feedback",
        _uuid("id", nullable=False),
        _uuid("appointment_id", nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("satisfaction", sa.Integer(), nullable=False),
        sa.Column("would_recommend", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_id", name="uq_consultation_feedback_appointment_id"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
        sa.CheckConstraint("satisfaction >= 1 AND satisfaction <= 5", name="ck_feedback_satisfaction_range"),
    )

    op.create_table(
        "notifications",
        _uuid("id", nullable=False),
        _uuid("account_id", nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_account_id", "notifications", ["account_id"], unique=False)
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_index("ix_notifications_account_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("consultation_feedback")
    for index in ("status", "consultant_id", "employee_id", "tenant_id"):
        op.drop_index(f"ix_appointments_{index}", table_name="appointments")
    op.drop_table("appointments")
    for index in ("created_at", "lesson_id", "account_id"):
        op.drop_index(f"ix_quiz_results_{index}", table_name="quiz_results")
    op.drop_table("quiz_results")
    op.drop_index("ix_quizzes_lesson_id", table_name="quizzes")
    op.drop_table("quizzes")
    op.drop_index("ix_lesson_progress_lesson_id", table_name="lesson_progress")
    op.drop_index("ix_lesson_progress_account_id", table_name="lesson_progress")
    op.drop_table("lesson_progress")
    op.drop_index("ix_enrollments_formation_id", table_name="enrollments")
    op.drop_index("ix_enrollments_account_id", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("ix_lessons_section_id", table_name="lessons")
    op.drop_table("lessons")
    op.drop_index("ix_sections_formation_id", table_name="sections")
    op.drop_table("sections")
    op.drop_index("ix_formations_author_id", table_name="formations")
    op.drop_table("formations")
    op.drop_index("ix_invitations_tenant_email", table_name="invitations")
    op.drop_table("invitations")
    op.drop_index("ix_password_reset_tokens_account_id", table_name="password_reset_tokens")
    op.drop_table("password_reset_tokens")
    op.drop_index("ix_accounts_tenant_id", table_name="accounts")
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
    op.drop_index("ix_subscriptions_external_id", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("tenants")
