"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLE        = sa.Enum("admin", "technician", "user", name="user_role")
MAINTENANCE_TYPE = sa.Enum(
    "electrical", "civil", "plumbing", "ac", "equipment", "belts", "fire_alarm",
    "ups", "generator", "fire_fighting", "cleaning", "pest_control", "general",
    name="maintenance_type",
)
REQUEST_PRIORITY = sa.Enum("low", "medium", "high", "critical", name="request_priority")
REQUEST_STATUS   = sa.Enum("new", "in_progress", "completed", "cancelled", name="request_status")
REQUEST_SOURCE   = sa.Enum("internal", "external", name="request_source")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("isActive", sa.Boolean(), nullable=False),
        sa.Column("language", sa.String(5), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("department", sa.String(150), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updatedAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "maintenance_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", MAINTENANCE_TYPE, nullable=False),
        sa.Column("category", sa.String(150), nullable=False),
        sa.Column("priority", REQUEST_PRIORITY, nullable=False),
        sa.Column("status", REQUEST_STATUS, nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("createdById", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assignedToId", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("completedAt", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("estimatedHours", sa.Numeric(8, 2), nullable=True),
        sa.Column("actualHours", sa.Numeric(8, 2), nullable=True),
        sa.Column("externalId", sa.String(100), nullable=True, unique=True),
        sa.Column("source", REQUEST_SOURCE, nullable=False),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updatedAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_maintenance_requests_id", "maintenance_requests", ["id"])
    op.create_index("ix_maintenance_requests_type", "maintenance_requests", ["type"])
    op.create_index("ix_maintenance_requests_status_created", "maintenance_requests", ["status", "createdAt"])
    op.create_index("ix_maintenance_requests_creator_created", "maintenance_requests", ["createdById", "createdAt"])
    op.create_index("ix_maintenance_requests_assignee_status", "maintenance_requests", ["assignedToId", "status"])

    op.create_table(
        "request_comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("requestId", sa.Integer(),
                  sa.ForeignKey("maintenance_requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("createdById", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_request_comments_id", "request_comments", ["id"])
    op.create_index("ix_request_comments_requestId", "request_comments", ["requestId"])

    op.create_table(
        "required_parts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("requestId", sa.Integer(),
                  sa.ForeignKey("maintenance_requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("partName", sa.String(200), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("availableInStock", sa.Boolean(), nullable=False),
        sa.Column("requestedAt", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="chk_required_part_quantity"),
    )
    op.create_index("ix_required_parts_id", "required_parts", ["id"])
    op.create_index("ix_required_parts_requestId", "required_parts", ["requestId"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("userId", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entityType", sa.String(100), nullable=False),
        sa.Column("entityId", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("required_parts")
    op.drop_table("request_comments")
    op.drop_table("maintenance_requests")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (REQUEST_SOURCE, REQUEST_STATUS, REQUEST_PRIORITY, MAINTENANCE_TYPE, USER_ROLE):
        enum_type.drop(bind, checkfirst=True)
