"""SQLAlchemy ORM models for durable owner snapshots."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class OwnerStateRow(Base):
    __tablename__ = "owner_states"

    owner_id: Mapped[str] = mapped_column(Text, primary_key=True)
    mode: Mapped[str] = mapped_column(
        String,
        CheckConstraint("mode IN ('IDLE','ACTIVE')"),
        default="IDLE",
    )
    profile: Mapped[Optional[dict]] = mapped_column(JSON, default={})
    aura: Mapped[Optional[dict]] = mapped_column(JSON, default={})
    saved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class IntentRow(Base):
    __tablename__ = "intents"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    declaration: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String,
        CheckConstraint("status IN ('declared','in_focus','resolved')"),
        default="declared",
    )
    resolution: Mapped[Optional[str]] = mapped_column(String)
    declared_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_intents_owner", "owner_id", "position"),
    )


class FocusSessionRow(Base):
    __tablename__ = "focus_sessions"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    intent_id: Mapped[str] = mapped_column(Text, nullable=False)
    intent_declaration: Mapped[str] = mapped_column(Text, default="")
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(
        String,
        CheckConstraint("status IN ('active','finished','abandoned')"),
    )
    outcome: Mapped[Optional[str]] = mapped_column(String)
    reflection_submitted: Mapped[bool] = mapped_column(Boolean, default=False)
    reflection_deferred: Mapped[bool] = mapped_column(Boolean, default=False)
    proof: Mapped[Optional[str]] = mapped_column(Text)
    artifacts: Mapped[Optional[list]] = mapped_column(JSON, default=[])

    __table_args__ = (
        Index("idx_focus_sessions_owner", "owner_id", "position"),
        Index("idx_focus_sessions_intent", "intent_id"),
    )


class ReflectionRow(Base):
    __tablename__ = "reflections"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    focus_session_id: Mapped[str] = mapped_column(Text, nullable=False)
    intent_declaration: Mapped[str] = mapped_column(Text, default="")
    outcome: Mapped[str] = mapped_column(
        String,
        CheckConstraint("outcome IN ('finished','abandoned')"),
    )
    outcome_description: Mapped[str] = mapped_column(Text, default="")
    mistake_pattern: Mapped[str] = mapped_column(Text, default="")
    insight: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_reflections_owner", "owner_id", "position"),
    )


class VaultEntryRow(Base):
    __tablename__ = "vault_entries"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    type: Mapped[str] = mapped_column(
        String,
        CheckConstraint("type IN ('learning','solution','mistake','note','code','external')"),
    )
    title: Mapped[str] = mapped_column(Text, default="")
    content: Mapped[str] = mapped_column(Text, default="")
    language: Mapped[Optional[str]] = mapped_column(Text)
    url: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[Optional[list]] = mapped_column(JSON, default=[])
    unverified: Mapped[bool] = mapped_column(Boolean, default=False)
    focus_session_id: Mapped[Optional[str]] = mapped_column(Text)
    intent_id: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_vault_entries_owner", "owner_id", "position"),
        Index("idx_vault_entries_session", "focus_session_id"),
    )


class ProjectLogRow(Base):
    __tablename__ = "project_logs"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    project_name: Mapped[str] = mapped_column(Text, default="")
    idea: Mapped[str] = mapped_column(Text, default="")
    decisions: Mapped[Optional[list]] = mapped_column(JSON, default=[])
    bugs: Mapped[Optional[list]] = mapped_column(JSON, default=[])
    improvements: Mapped[Optional[list]] = mapped_column(JSON, default=[])
    unverified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_project_logs_owner", "owner_id", "position"),
    )
