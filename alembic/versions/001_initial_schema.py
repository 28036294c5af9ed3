"""Initial schema — territories, team members, rules and the assignment log.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Territories
    op.create_table(
        "territories",
        sa.Column("seq", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(64), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("boundaries", sa.JSON, nullable=True),
        sa.Column("coordinates", sa.JSON, nullable=False),
        sa.Column("radius_km", sa.Float, nullable=True),
        sa.Column("lead_id", sa.String(64), nullable=True),
        sa.Column("max_clients_per_member", sa.Integer, nullable=True),
        sa.Column("target_load_percentage", sa.Float, nullable=True),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False, server_default=""),
        sa.Column("last_modified_by", sa.String(64), nullable=False, server_default=""),
    )

    # Team members (roster rows, ordered by position)
    op.create_table(
        "team_members",
        sa.Column("seq", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "territory_id",
            sa.String(64),
            sa.ForeignKey("territories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("specialties", sa.JSON, nullable=False),
        sa.Column("current_client_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_capacity", sa.Integer, nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("territory_id", "user_id", name="uq_team_members_territory_user"),
        sa.CheckConstraint("current_client_count >= 0", name="ck_team_members_count_non_negative"),
        sa.CheckConstraint("max_capacity > 0", name="ck_team_members_capacity_positive"),
    )
    op.create_index("idx_team_members_user", "team_members", ["user_id"])

    # Assignment rules
    op.create_table(
        "assignment_rules",
        sa.Column("seq", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(64), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("logical_operator", sa.String(3), nullable=False, server_default="AND"),
        sa.Column("conditions", sa.JSON, nullable=False),
        sa.Column("action", sa.JSON, nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False, server_default=""),
    )
    op.create_index("idx_rules_active_priority", "assignment_rules", ["active", "priority"])

    # Assignment log (insert-only)
    op.create_table(
        "assignment_logs",
        sa.Column("seq", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(64), unique=True, nullable=False),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("client_name", sa.String(200), nullable=False),
        sa.Column("previous_assignment", sa.JSON, nullable=True),
        sa.Column("new_user_id", sa.String(64), nullable=True),
        sa.Column("new_user_name", sa.String(200), nullable=True),
        sa.Column("new_territory_id", sa.String(64), nullable=True),
        sa.Column("new_territory_name", sa.String(200), nullable=True),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("applied_rule_id", sa.String(64), nullable=True),
        sa.Column("assigned_by", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("success", sa.Boolean, nullable=False),
        sa.Column("error_message", sa.Text, nullable=True),
    )
    op.create_index("idx_logs_territory", "assignment_logs", ["new_territory_id"])
    op.create_index("idx_logs_client", "assignment_logs", ["client_id"])


def downgrade() -> None:
    op.drop_table("assignment_logs")
    op.drop_table("assignment_rules")
    op.drop_table("team_members")
    op.drop_table("territories")
