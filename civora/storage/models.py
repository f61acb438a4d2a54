"""
Civora Storage — SQLAlchemy models for citizens, opinions and summaries.

Opinion records are write-once: a (run_id, citizen_id) pair is unique and rows
are never updated. Summaries are keyed by run so every run keeps its own
results. Record payloads are stored as JSON (camelCase, as produced by the
pydantic models) so the tables work on both SQLite and PostgreSQL.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all Civora models."""
    pass


class CitizenDB(Base):
    """A synthetic citizen profile, as last stored for its region."""

    __tablename__ = "citizens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    citizen_id = Column(
        String(100), nullable=False, unique=True,
        comment="External citizen identifier",
    )
    region = Column(String(100), nullable=False, comment="Administrative region")
    profile = Column(JSON, nullable=False, comment="Full CitizenProfile (camelCase JSON)")
    stored_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_citizen_region", "region"),
    )


class OpinionRecordDB(Base):
    """
    One citizen's opinion within one run.

    APPEND-ONLY: the (run_id, citizen_id) constraint rejects a second write.
    """

    __tablename__ = "opinion_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(64), nullable=False, comment="Orchestration run identifier")
    citizen_id = Column(String(100), nullable=False)
    region = Column(String(100), nullable=False)
    opinion = Column(Float, nullable=False, comment="Opinion scalar in [-1, 1]")
    confidence = Column(Float, nullable=False)
    decision = Column(String(10), nullable=False, comment="SUPPORT / OPPOSE / NEUTRAL")
    payload = Column(JSON, nullable=False, comment="Full OpinionRecord (camelCase JSON)")
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        UniqueConstraint("run_id", "citizen_id", name="uq_opinion_run_citizen"),
        Index("ix_opinion_run_region", "run_id", "region"),
        Index("ix_opinion_decision", "decision"),
    )


class RegionSummaryDB(Base):
    """Aggregate over one region's opinions for one run."""

    __tablename__ = "region_summaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(64), nullable=False)
    region = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=False, comment="Full RegionSummary (camelCase JSON)")
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        UniqueConstraint("run_id", "region", name="uq_region_summary_run_region"),
    )


class NationalSummaryDB(Base):
    """Aggregate over every valid opinion of one run."""

    __tablename__ = "national_summaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(64), nullable=False, unique=True)
    policy_title = Column(String(500), nullable=False, default="")
    payload = Column(JSON, nullable=False, comment="Full NationalSummary (camelCase JSON)")
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
