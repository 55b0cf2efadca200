"""Plan ORM model.

Columns store the flat persisted form of a plan; enum columns hold the stable
wire strings (``period``, ``spring``, ``oneMonth`` ...).
"""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from soonish.db.base import Base


class PlanRecord(Base):
    __tablename__ = "plans"
    __table_args__ = (
        Index("ix_plans_created_at", "created_at"),
        Index("ix_plans_active", "is_completed", "is_archived"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    title = Column(Text, nullable=False)
    time_type = Column(String(length=20), nullable=False, server_default=sa_text("'anytime'"))
    period_preset = Column(String(length=20), nullable=True)
    # Season names only; relative presets are recomputed from the dates.
    period_label = Column(Text, nullable=True)
    deadline_preset = Column(String(length=20), nullable=True)
    custom_deadline_date = Column(DateTime, nullable=True)
    period_start = Column(DateTime, nullable=True)
    period_end = Column(DateTime, nullable=True)
    deadline = Column(DateTime, nullable=True)
    memo = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, server_default=sa_text("false"))
    is_archived = Column(Boolean, nullable=False, server_default=sa_text("false"))
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
