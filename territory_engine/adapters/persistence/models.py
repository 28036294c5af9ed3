"""SQLAlchemy ORM models — maps to PostgreSQL tables.

Every table has an integer ``seq`` primary key that records insertion order
and a public string ``id``. Roster order inside a territory is kept in
``team_members.position``.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from territory_engine.adapters.persistence.database import Base


class TerritoryModel(Base):
    __tablename__ = "territories"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    boundaries: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    coordinates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    radius_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    lead_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    max_clients_per_member: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_load_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    last_modified_by: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    members: Mapped[list["TeamMemberModel"]] = relationship(
        back_populates="territory",
        order_by="TeamMemberModel.position",
        cascade="all, delete-orphan",
    )


class TeamMemberModel(Base):
    __tablename__ = "team_members"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    territory_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("territories.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    specialties: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    current_client_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    joined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    territory: Mapped["TerritoryModel"] = relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("territory_id", "user_id", name="uq_team_members_territory_user"),
        CheckConstraint("current_client_count >= 0", name="ck_team_members_count_non_negative"),
        CheckConstraint("max_capacity > 0", name="ck_team_members_capacity_positive"),
        Index("idx_team_members_user", "user_id"),
    )


class AssignmentRuleModel(Base):
    __tablename__ = "assignment_rules"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    logical_operator: Mapped[str] = mapped_column(String(3), nullable=False, default="AND")
    conditions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    action: Mapped[dict] = mapped_column(JSON, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    __table_args__ = (Index("idx_rules_active_priority", "active", "priority"),)


class AssignmentLogModel(Base):
    __tablename__ = "assignment_logs"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False)
    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    previous_assignment: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_user_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    new_territory_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_territory_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    applied_rule_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    assigned_by: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_logs_territory", "new_territory_id"),
        Index("idx_logs_client", "client_id"),
    )
