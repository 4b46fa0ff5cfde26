"""create acls, api_keys and activity_logs tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the ACL store and the API key / audit tables."""
    op.create_table(
        "acls",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("action", sa.Enum("READ", "EXECUTE", "WRITE", name="aclaction"), nullable=False),
        sa.Column("path", sa.String(1024), nullable=False),
        sa.Column("user", sa.String(255), nullable=False),
        sa.Column("decision", sa.Enum("ALLOW", "DENY", name="acldecision"), nullable=False),
        sa.Column("create_by", sa.String(255), nullable=False),
        sa.Column("create_time", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_acls_id", "acls", ["id"])
    op.create_index("ix_acls_subject", "acls", ["subject"])
    op.create_index("ix_acls_decision", "acls", ["decision"])

    op.create_table(
        "api_keys",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("key_hash", sa.String(255), nullable=False),
        sa.Column("label", sa.String(255), nullable=True),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_api_keys_id", "api_keys", ["id"])
    op.create_index("ix_api_keys_key_hash", "api_keys", ["key_hash"], unique=True)
    op.create_index("ix_api_keys_subject", "api_keys", ["subject"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("api_keys.id"), nullable=True),
        sa.Column("actor_source", sa.String(50), nullable=False),
        sa.Column("actor_subject", sa.String(255), nullable=False),
        sa.Column("actor_role", sa.String(50), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=True),
        sa.Column("resource_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("id", "timestamp", "actor_id", "actor_subject", "action", "resource_type", "resource_id"):
        op.create_index(f"ix_activity_logs_{column}", "activity_logs", [column])


def downgrade() -> None:
    """Drop the tables created by upgrade()."""
    op.drop_table("activity_logs")
    op.drop_table("api_keys")
    op.drop_table("acls")
    sa.Enum(name="aclaction").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="acldecision").drop(op.get_bind(), checkfirst=True)
