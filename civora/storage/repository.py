"""
Opinion Repository — storage interface used by the orchestrator.

The orchestrator depends only on ``OpinionRepository``; two implementations
are provided:

- ``InMemoryRepository``: dictionaries behind a lock (default, tests)
- ``SqlRepository``: SQLAlchemy engine + session-per-call, any SQLAlchemy URL

Semantics shared by both:
- opinions are write-once per (run_id, citizen_id); a second write raises
  ``OpinionAlreadyRecorded``
- summaries are derived data and are replaced when a run is resumed
- citizen profiles are upserted by citizen id
- storage failures surface as ``PersistenceError``

Usage:
    repo = SqlRepository("sqlite:///civora.db")
    repo.initialize()  # Create tables
    repo.put_opinion(run_id, record)
    records = repo.list_opinions(run_id, region="Kerala")
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable

from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from civora.core.errors import OpinionAlreadyRecorded, PersistenceError
from civora.core.schema import CitizenProfile, NationalSummary, OpinionRecord, RegionSummary
from civora.storage.models import (
    Base,
    CitizenDB,
    NationalSummaryDB,
    OpinionRecordDB,
    RegionSummaryDB,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class OpinionRepository(Protocol):
    def put_citizen(self, citizen: CitizenProfile) -> None: ...

    def get_citizen(self, citizen_id: str) -> CitizenProfile | None: ...

    def put_opinion(self, run_id: str, record: OpinionRecord) -> None: ...

    def get_opinion(self, run_id: str, citizen_id: str) -> OpinionRecord | None: ...

    def list_opinions(self, run_id: str, region: str | None = None) -> list[OpinionRecord]: ...

    def put_region_summary(self, run_id: str, summary: RegionSummary) -> None: ...

    def get_region_summary(self, run_id: str, region: str) -> RegionSummary | None: ...

    def put_national_summary(self, run_id: str, summary: NationalSummary, policy_title: str = "") -> None: ...

    def get_national_summary(self, run_id: str) -> NationalSummary | None: ...


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


# ════════════════════════════════════════════════════════════════
# In-memory
# ════════════════════════════════════════════════════════════════


class InMemoryRepository:
    """Thread-safe dictionary-backed repository."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._citizens: dict[str, CitizenProfile] = {}
        self._opinions: dict[str, dict[str, OpinionRecord]] = {}
        self._region_summaries: dict[tuple[str, str], RegionSummary] = {}
        self._national_summaries: dict[str, NationalSummary] = {}

    def put_citizen(self, citizen: CitizenProfile) -> None:
        with self._lock:
            self._citizens[citizen.citizen_id] = citizen

    def get_citizen(self, citizen_id: str) -> CitizenProfile | None:
        with self._lock:
            return self._citizens.get(citizen_id)

    def put_opinion(self, run_id: str, record: OpinionRecord) -> None:
        with self._lock:
            run = self._opinions.setdefault(run_id, {})
            if record.citizen_id in run:
                raise OpinionAlreadyRecorded(
                    f"Opinion for citizen {record.citizen_id!r} already recorded in run {run_id!r}"
                )
            run[record.citizen_id] = record

    def get_opinion(self, run_id: str, citizen_id: str) -> OpinionRecord | None:
        with self._lock:
            return self._opinions.get(run_id, {}).get(citizen_id)

    def list_opinions(self, run_id: str, region: str | None = None) -> list[OpinionRecord]:
        with self._lock:
            records = list(self._opinions.get(run_id, {}).values())
        if region is not None:
            records = [r for r in records if r.region == region]
        return records

    def put_region_summary(self, run_id: str, summary: RegionSummary) -> None:
        with self._lock:
            self._region_summaries[(run_id, summary.region)] = summary

    def get_region_summary(self, run_id: str, region: str) -> RegionSummary | None:
        with self._lock:
            return self._region_summaries.get((run_id, region))

    def put_national_summary(self, run_id: str, summary: NationalSummary, policy_title: str = "") -> None:
        with self._lock:
            self._national_summaries[run_id] = summary

    def get_national_summary(self, run_id: str) -> NationalSummary | None:
        with self._lock:
            return self._national_summaries.get(run_id)


# ════════════════════════════════════════════════════════════════
# SQLAlchemy
# ════════════════════════════════════════════════════════════════


class SqlRepository:
    """
    SQLAlchemy-backed repository.

    Each call opens its own session, so one instance can be shared by every
    worker thread of a run. For in-process SQLite (``sqlite://``) use a
    file URL when scoring with more than one worker.
    """

    def __init__(self, database_url: str) -> None:
        """
        Initialize the repository.

        Args:
            database_url: SQLAlchemy connection string (sync driver).
        """
        self.database_url = database_url
        self.engine = create_engine(database_url, echo=False)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def initialize(self) -> None:
        """Create all tables that do not exist yet."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not initialize schema: {e}") from e
        logger.info("Civora storage initialized: %s", self.engine.url.render_as_string(hide_password=True))

    # ── Citizens ───────────────────────────────────────────────

    def put_citizen(self, citizen: CitizenProfile) -> None:
        try:
            with self.SessionLocal() as session:
                row = session.execute(
                    select(CitizenDB).where(CitizenDB.citizen_id == citizen.citizen_id)
                ).scalar_one_or_none()
                if row is None:
                    session.add(CitizenDB(
                        citizen_id=citizen.citizen_id,
                        region=citizen.region,
                        profile=_dump(citizen),
                    ))
                else:
                    row.region = citizen.region
                    row.profile = _dump(citizen)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store citizen {citizen.citizen_id!r}: {e}") from e

    def get_citizen(self, citizen_id: str) -> CitizenProfile | None:
        row = self._fetch_one(select(CitizenDB).where(CitizenDB.citizen_id == citizen_id))
        return CitizenProfile.model_validate(row.profile) if row else None

    # ── Opinions ───────────────────────────────────────────────

    def put_opinion(self, run_id: str, record: OpinionRecord) -> None:
        """Insert one opinion. Existing (run, citizen) pairs are never overwritten."""
        row = OpinionRecordDB(
            run_id=run_id,
            citizen_id=record.citizen_id,
            region=record.region,
            opinion=record.opinion,
            confidence=record.confidence,
            decision=record.decision.value,
            payload=_dump(record),
        )
        try:
            with self.SessionLocal() as session:
                session.add(row)
                session.commit()
        except IntegrityError as e:
            raise OpinionAlreadyRecorded(
                f"Opinion for citizen {record.citizen_id!r} already recorded in run {run_id!r}"
            ) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store opinion for {record.citizen_id!r}: {e}") from e

    def get_opinion(self, run_id: str, citizen_id: str) -> OpinionRecord | None:
        row = self._fetch_one(
            select(OpinionRecordDB).where(
                OpinionRecordDB.run_id == run_id,
                OpinionRecordDB.citizen_id == citizen_id,
            )
        )
        return OpinionRecord.model_validate(row.payload) if row else None

    def list_opinions(self, run_id: str, region: str | None = None) -> list[OpinionRecord]:
        stmt = select(OpinionRecordDB).where(OpinionRecordDB.run_id == run_id)
        if region is not None:
            stmt = stmt.where(OpinionRecordDB.region == region)
        stmt = stmt.order_by(OpinionRecordDB.id)
        try:
            with self.SessionLocal() as session:
                rows = session.execute(stmt).scalars().all()
                return [OpinionRecord.model_validate(row.payload) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not list opinions for run {run_id!r}: {e}") from e

    # ── Summaries ──────────────────────────────────────────────

    def put_region_summary(self, run_id: str, summary: RegionSummary) -> None:
        try:
            with self.SessionLocal() as session:
                row = session.execute(
                    select(RegionSummaryDB).where(
                        RegionSummaryDB.run_id == run_id,
                        RegionSummaryDB.region == summary.region,
                    )
                ).scalar_one_or_none()
                if row is None:
                    session.add(RegionSummaryDB(run_id=run_id, region=summary.region, payload=_dump(summary)))
                else:
                    row.payload = _dump(summary)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store summary for {summary.region!r}: {e}") from e

    def get_region_summary(self, run_id: str, region: str) -> RegionSummary | None:
        row = self._fetch_one(
            select(RegionSummaryDB).where(
                RegionSummaryDB.run_id == run_id,
                RegionSummaryDB.region == region,
            )
        )
        return RegionSummary.model_validate(row.payload) if row else None

    def put_national_summary(self, run_id: str, summary: NationalSummary, policy_title: str = "") -> None:
        try:
            with self.SessionLocal() as session:
                row = session.execute(
                    select(NationalSummaryDB).where(NationalSummaryDB.run_id == run_id)
                ).scalar_one_or_none()
                if row is None:
                    session.add(NationalSummaryDB(run_id=run_id, policy_title=policy_title, payload=_dump(summary)))
                else:
                    row.policy_title = policy_title
                    row.payload = _dump(summary)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store national summary for run {run_id!r}: {e}") from e

    def get_national_summary(self, run_id: str) -> NationalSummary | None:
        row = self._fetch_one(select(NationalSummaryDB).where(NationalSummaryDB.run_id == run_id))
        return NationalSummary.model_validate(row.payload) if row else None

    def get_policy_title(self, run_id: str) -> str:
        row = self._fetch_one(select(NationalSummaryDB).where(NationalSummaryDB.run_id == run_id))
        return row.policy_title if row else ""

    def _fetch_one(self, stmt):
        try:
            with self.SessionLocal() as session:
                return session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Storage read failed: {e}") from e
