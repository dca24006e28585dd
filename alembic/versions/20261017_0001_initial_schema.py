"""Initial schema for roster scheduling.

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "group",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("group_name", sa.String(length=120), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("scheduler_id", sa.String(length=64), nullable=True),
        sa.Column("scheduler_name", sa.String(length=120), nullable=True),
        sa.Column("lease_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lease_version", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_group_org_id", "group", ["org_id"])

    op.create_table(
        "worker",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column(
            "group_id",
            sa.String(length=36),
            sa.ForeignKey("group.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("employee_id", sa.String(length=64), nullable=True),
        sa.Column("joined_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_worker_org_id", "worker", ["org_id"])
    op.create_index("ix_worker_group_id", "worker", ["group_id"])

    op.create_table(
        "shifttype",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("short_code", sa.String(length=16), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("color", sa.String(length=9), nullable=True),
    )
    op.create_index("ix_shifttype_org_id", "shifttype", ["org_id"])
    op.create_index("ix_shifttype_group_id", "shifttype", ["group_id"])

    op.create_table(
        "shiftrequest",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column(
            "worker_id",
            sa.String(length=36),
            sa.ForeignKey("worker.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("worker_name", sa.String(length=120), nullable=True),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_shiftrequest_org_id", "shiftrequest", ["org_id"])
    op.create_index("ix_shiftrequest_worker_id", "shiftrequest", ["worker_id"])
    op.create_index("ix_shiftrequest_date", "shiftrequest", ["date"])

    op.create_table(
        "schedulingruleconfig",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("rule_key", sa.String(length=64), nullable=True),
        sa.Column("rule_name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("rule_type", sa.String(length=16), nullable=False),
        sa.Column("penalty_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("parameters", sa.JSON(), nullable=True),
        sa.Column("template_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_schedulingruleconfig_org_id", "schedulingruleconfig", ["org_id"])
    op.create_index("ix_schedulingruleconfig_group_id", "schedulingruleconfig", ["group_id"])

    op.create_table(
        "manpowerplan",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("requirement_defaults", sa.JSON(), nullable=True),
        sa.Column("daily_requirements", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("org_id", "group_id", "month", name="uq_manpowerplan_scope"),
    )
    op.create_index("ix_manpowerplan_org_id", "manpowerplan", ["org_id"])
    op.create_index("ix_manpowerplan_group_id", "manpowerplan", ["group_id"])
    op.create_index("ix_manpowerplan_month", "manpowerplan", ["month"])

    op.create_table(
        "schedule",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("violated_rules", sa.JSON(), nullable=True),
        sa.Column("generation_method", sa.String(length=32), nullable=False),
    )
    op.create_index("ix_schedule_org_id", "schedule", ["org_id"])
    op.create_index("ix_schedule_group_id", "schedule", ["group_id"])
    op.create_index("ix_schedule_month", "schedule", ["month"])

    op.create_table(
        "assignment",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "schedule_id",
            sa.String(length=36),
            sa.ForeignKey("schedule.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("worker_id", sa.String(length=36), nullable=False),
        sa.Column("worker_name", sa.String(length=120), nullable=True),
        sa.Column("daily_shifts", sa.JSON(), nullable=True),
    )
    op.create_index("ix_assignment_schedule_id", "assignment", ["schedule_id"])
    op.create_index("ix_assignment_worker_id", "assignment", ["worker_id"])


def downgrade() -> None:
    op.drop_table("assignment")
    op.drop_table("schedule")
    op.drop_table("manpowerplan")
    op.drop_table("schedulingruleconfig")
    op.drop_table("shiftrequest")
    op.drop_table("shifttype")
    op.drop_table("worker")
    op.drop_table("group")
