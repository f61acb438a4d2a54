"""
Civora — Population Orchestrator.

Runs one policy against a synthetic population:

1. Parse the policy (fatal on failure)
2. Allocate the requested population across regions by population share
3. For each region: load its citizens, score them on a bounded worker pool,
   persist every OpinionRecord, summarize the region
4. After every region has finished, summarize the nation

Failures are contained where they occur: a missing region source skips the
region, a citizen that cannot be validated or scored is counted as errored, a
citizen whose opinion cannot be persisted (after retrying) is counted as
unpersisted. Only valid, persisted opinions reach the summaries. A run with
no valid opinions at all reports failure instead of a summary.

Passing the ``run_id`` of an interrupted run resumes it: citizens whose
opinions are already stored for that run are reused, not rescored.

This module is also the ``civora-simulate`` command-line entrypoint.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

import structlog
from pydantic import ValidationError

from civora.analysis.statistics import summarize_nation, summarize_region
from civora.config import settings
from civora.core.errors import (
    AggregationError,
    OpinionAlreadyRecorded,
    PerCitizenScoringError,
    PersistenceError,
    PolicyParseFailure,
    RegionSourceMissing,
    UnknownParameterSet,
)
from civora.core.schema import (
    CitizenProfile,
    OpinionRecord,
    PolicyDescriptor,
    RegionSummary,
    RunResult,
)
from civora.policy.parser import PolicyInput, PolicyParser, StructuredPolicyParser
from civora.population.regions import REGION_POPULATION_SHARES, allocate_population
from civora.population.source import JsonDirectorySource, PopulationSource, RawCitizen
from civora.scoring.opinion import BlendParameters, get_parameters, score_citizen
from civora.storage.repository import InMemoryRepository, OpinionRepository, SqlRepository

logger = logging.getLogger(__name__)

Scorer = Callable[[CitizenProfile, PolicyDescriptor, BlendParameters], OpinionRecord]

UNKNOWN_ID = "<unknown>"


def configure_logging() -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer()
                if settings.log_format != "json"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_repository(backend: str | None = None, database_url: str | None = None) -> OpinionRepository:
    """Create the repository selected by ``backend`` ("memory" or "sql")."""
    backend = (backend or settings.storage_backend).lower()
    if backend == "memory":
        return InMemoryRepository()
    if backend == "sql":
        repository = SqlRepository(database_url or settings.database_url)
        repository.initialize()
        return repository
    raise ValueError(f"Unknown storage backend {backend!r} (expected 'memory' or 'sql')")


# ════════════════════════════════════════════════════════════════
# Per-citizen and per-region outcomes
# ════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CitizenOutcome:
    """Result of scoring and persisting one citizen."""

    status: str  # "scored", "resumed", "errored", "unpersisted"
    citizen_id: str = ""
    record: OpinionRecord | None = None
    error: str = ""

    @property
    def is_valid(self) -> bool:
        return self.record is not None and self.status in ("scored", "resumed")


@dataclass
class RegionOutcome:
    region: str
    outcomes: list[CitizenOutcome]
    summary: RegionSummary | None = None

    @property
    def records(self) -> list[OpinionRecord]:
        return [outcome.record for outcome in self.outcomes if outcome.is_valid]

    def count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)


# ════════════════════════════════════════════════════════════════
# Orchestrator
# ════════════════════════════════════════════════════════════════


class PopulationOrchestrator:
    """
    Scores a population region by region on a bounded thread pool.

    Usage:
        orchestrator = PopulationOrchestrator(
            source=JsonDirectorySource("data/citizens"),
            repository=InMemoryRepository(),
        )
        result = orchestrator.run(10_000, "Increase bus fares by 10% in cities")
    """

    def __init__(
        self,
        source: PopulationSource,
        repository: OpinionRepository,
        parser: PolicyParser | None = None,
        parameters: BlendParameters | str | None = None,
        region_shares: Mapping[str, float] | None = None,
        max_workers: int | None = None,
        scorer: Scorer = score_citizen,
        persistence_retries: int | None = None,
        store_citizens: bool = False,
    ) -> None:
        self.source = source
        self.repository = repository
        self.parser = parser or StructuredPolicyParser()
        self.parameters = get_parameters(parameters or settings.blend_parameters)
        self.region_shares = dict(region_shares or REGION_POPULATION_SHARES)
        self.max_workers = max(1, max_workers or settings.max_workers)
        self.scorer = scorer
        self.persistence_retries = max(
            0, settings.persistence_retries if persistence_retries is None else persistence_retries
        )
        self.store_citizens = store_citizens

    def run(
        self,
        total_population_size: int,
        policy: PolicyInput,
        run_id: str | None = None,
    ) -> RunResult:
        """
        Execute one full orchestration run.

        Args:
            total_population_size: Citizens to score nationwide.
            policy: Raw policy (text, mapping or descriptor).
            run_id: Existing run to resume; a new id is generated when omitted.

        Returns:
            A RunResult. ``success`` is False (with a reason and no national
            summary) when the policy cannot be parsed or no valid opinion exists.
        """
        started = time.perf_counter()
        run_id = run_id or uuid4().hex
        log = structlog.get_logger().bind(run_id=run_id)

        log.info(
            "civora.orchestrator.run_started",
            population=total_population_size,
            parameters=self.parameters.version,
            workers=self.max_workers,
        )

        # Phase 1: Parse policy
        try:
            descriptor = self.parser.parse(policy)
        except PolicyParseFailure as e:
            log.error("civora.orchestrator.policy_parse_failed", error=str(e))
            return RunResult(
                success=False,
                reason=f"Policy could not be parsed: {e}",
                run_id=run_id,
                parameter_version=self.parameters.version,
                duration_seconds=time.perf_counter() - started,
            )
        log.info(
            "civora.orchestrator.policy_parsed",
            title=descriptor.title,
            domain=descriptor.domain.value,
            target_groups=list(descriptor.target_groups),
        )

        # Phase 2: Allocate population
        allocation = allocate_population(total_population_size, self.region_shares)

        # Phase 3: Regions (each region joins its own citizen tasks)
        region_outcomes: list[RegionOutcome] = []
        skipped: list[str] = []
        seen: dict[str, str] = {}  # citizen id -> region that claimed it first
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for region, size in allocation.items():
                if size == 0:
                    continue
                try:
                    raw_citizens = self.source.citizens_of(region)
                except RegionSourceMissing as e:
                    log.warning("civora.orchestrator.region_skipped", region=region, reason=str(e))
                    skipped.append(region)
                    continue

                outcome = self._run_region(executor, run_id, region, raw_citizens[:size], descriptor, seen)
                region_outcomes.append(outcome)
                log.info(
                    "civora.orchestrator.region_complete",
                    region=region,
                    requested=size,
                    available=len(raw_citizens),
                    valid=len(outcome.records),
                    errored=outcome.count("errored"),
                    unpersisted=outcome.count("unpersisted"),
                )

        # Phase 4: National reduction (after every region finished)
        records = [record for outcome in region_outcomes for record in outcome.records]
        counts = {
            "humans_processed": len(records),
            "humans_errored": sum(o.count("errored") for o in region_outcomes),
            "humans_unpersisted": sum(o.count("unpersisted") for o in region_outcomes),
            "humans_resumed": sum(o.count("resumed") for o in region_outcomes),
            "regions_processed": len(region_outcomes),
            "regions_skipped": skipped,
        }
        region_summaries = {o.region: o.summary for o in region_outcomes if o.summary is not None}

        try:
            national = summarize_nation(records)
        except AggregationError as e:
            log.error("civora.orchestrator.aggregation_failed", error=str(e), **counts)
            return RunResult(
                success=False,
                reason=str(e),
                run_id=run_id,
                policy_title=descriptor.title,
                parameter_version=self.parameters.version,
                region_summaries=region_summaries,
                duration_seconds=time.perf_counter() - started,
                **counts,
            )

        try:
            self.repository.put_national_summary(run_id, national, policy_title=descriptor.title)
        except PersistenceError as e:
            log.warning("civora.orchestrator.national_summary_not_stored", error=str(e))

        duration = time.perf_counter() - started
        log.info(
            "civora.orchestrator.run_complete",
            verdict=national.verdict.value,
            average_opinion=round(national.average_opinion, 4),
            duration_seconds=round(duration, 3),
            **counts,
        )
        return RunResult(
            success=True,
            run_id=run_id,
            policy_title=descriptor.title,
            parameter_version=self.parameters.version,
            national_summary=national,
            region_summaries=region_summaries,
            duration_seconds=duration,
            **counts,
        )

    # ── Region ─────────────────────────────────────────────────

    def _run_region(
        self,
        executor: ThreadPoolExecutor,
        run_id: str,
        region: str,
        raw_citizens: Sequence[RawCitizen],
        policy: PolicyDescriptor,
        seen: dict[str, str],
    ) -> RegionOutcome:
        pending: list[Future[CitizenOutcome] | CitizenOutcome] = []
        for raw in raw_citizens:
            citizen_id = _raw_id(raw)
            if citizen_id in seen:
                pending.append(_duplicate(citizen_id, seen[citizen_id]))
                continue
            if citizen_id != UNKNOWN_ID:
                seen[citizen_id] = region
            pending.append(executor.submit(self._process_citizen, run_id, region, raw, policy))
        # Submission order, not completion order, so summaries are reproducible.
        outcome = RegionOutcome(
            region=region,
            outcomes=[item.result() if isinstance(item, Future) else item for item in pending],
        )

        records = outcome.records
        if not records:
            logger.warning("Region %s produced no valid opinions; excluded from summaries", region)
            return outcome

        outcome.summary = summarize_region(region, records)
        try:
            self.repository.put_region_summary(run_id, outcome.summary)
        except PersistenceError as e:
            logger.warning("Region summary for %s not stored: %s", region, e)
        return outcome

    # ── Citizen ────────────────────────────────────────────────

    def _process_citizen(
        self,
        run_id: str,
        region: str,
        raw: RawCitizen,
        policy: PolicyDescriptor,
    ) -> CitizenOutcome:
        try:
            citizen = CitizenProfile.coerce(raw, region)
        except ValidationError as e:
            error = PerCitizenScoringError(_raw_id(raw), e)
            logger.warning("%s", error)
            return CitizenOutcome(status="errored", citizen_id=error.citizen_id, error=str(error))
        if citizen.region != region:
            citizen = citizen.model_copy(update={"region": region})

        try:
            existing = self.repository.get_opinion(run_id, citizen.citizen_id)
        except PersistenceError as e:
            logger.warning("Could not check for a stored opinion of %s: %s", citizen.citizen_id, e)
            existing = None
        if existing is not None:
            if existing.region != region:
                error = PerCitizenScoringError(
                    citizen.citizen_id,
                    ValueError(f"opinion already stored for region {existing.region!r}"),
                )
                logger.warning("%s", error)
                return CitizenOutcome(status="errored", citizen_id=citizen.citizen_id, error=str(error))
            return CitizenOutcome(status="resumed", citizen_id=citizen.citizen_id, record=existing)

        try:
            record = self.scorer(citizen, policy, self.parameters)
        except Exception as e:
            error = PerCitizenScoringError(citizen.citizen_id, e)
            logger.warning("%s", error)
            return CitizenOutcome(status="errored", citizen_id=citizen.citizen_id, error=str(error))

        if self.store_citizens:
            try:
                self.repository.put_citizen(citizen)
            except PersistenceError as e:
                logger.warning("Citizen profile %s not stored: %s", citizen.citizen_id, e)

        return self._persist(run_id, citizen.citizen_id, record)

    def _persist(self, run_id: str, citizen_id: str, record: OpinionRecord) -> CitizenOutcome:
        last_error: PersistenceError | None = None
        for attempt in range(1 + self.persistence_retries):
            try:
                self.repository.put_opinion(run_id, record)
                return CitizenOutcome(status="scored", citizen_id=citizen_id, record=record)
            except OpinionAlreadyRecorded as e:
                # Written concurrently for this run; the stored record is authoritative.
                try:
                    stored = self.repository.get_opinion(run_id, citizen_id)
                except PersistenceError as read_error:
                    logger.warning("Stored opinion of %s could not be read back: %s", citizen_id, read_error)
                    return CitizenOutcome(status="unpersisted", citizen_id=citizen_id, error=str(read_error))
                if stored is None or stored.region != record.region:
                    return CitizenOutcome(status="unpersisted", citizen_id=citizen_id, error=str(e))
                return CitizenOutcome(status="resumed", citizen_id=citizen_id, record=stored)
            except PersistenceError as e:
                last_error = e
                logger.warning(
                    "Persist attempt %d for %s failed: %s", attempt + 1, citizen_id, e
                )
        return CitizenOutcome(status="unpersisted", citizen_id=citizen_id, error=str(last_error))


def _raw_id(raw: RawCitizen) -> str:
    if isinstance(raw, CitizenProfile):
        return raw.citizen_id
    for key in ("citizenId", "humanId", "citizen_id", "id"):
        if isinstance(raw, Mapping) and raw.get(key) is not None:
            return str(raw[key])
    return UNKNOWN_ID


def _duplicate(citizen_id: str, first_region: str) -> CitizenOutcome:
    error = PerCitizenScoringError(
        citizen_id, ValueError(f"duplicate citizen id, first seen in region {first_region!r}")
    )
    logger.warning("%s", error)
    return CitizenOutcome(status="errored", citizen_id=citizen_id, error=str(error))


def orchestrate(
    total_population_size: int,
    policy: PolicyInput,
    *,
    source: PopulationSource | None = None,
    repository: OpinionRepository | None = None,
    parser: PolicyParser | None = None,
    parameters: BlendParameters | str | None = None,
    region_shares: Mapping[str, float] | None = None,
    max_workers: int | None = None,
    run_id: str | None = None,
) -> RunResult:
    """Run the pipeline with settings-based defaults for anything not supplied."""
    orchestrator = PopulationOrchestrator(
        source=source or JsonDirectorySource(settings.citizen_data_dir),
        repository=repository or build_repository(),
        parser=parser,
        parameters=parameters,
        region_shares=region_shares,
        max_workers=max_workers,
    )
    return orchestrator.run(total_population_size, policy, run_id=run_id)


# ════════════════════════════════════════════════════════════════
# CLI
# ════════════════════════════════════════════════════════════════


def _read_policy_argument(value: str) -> str:
    path = Path(value)
    if path.is_file():
        return path.read_text(encoding="utf-8")
    return value


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Civora — simulate public opinion on a policy across a synthetic population"
    )
    parser.add_argument("--population", "-n", type=int, required=True, help="Citizens to score nationwide")
    parser.add_argument("--policy", "-p", required=True, help="Policy JSON file, JSON text or free text")
    parser.add_argument("--citizens-dir", default=None, help="Directory of <region>.json citizen files")
    parser.add_argument("--parameters", default=None, help="Blend parameter set (e.g. baseline-1, cognitive-2)")
    parser.add_argument("--workers", type=int, default=None, help="Scoring worker threads")
    parser.add_argument("--store", choices=["memory", "sql"], default=None, help="Storage backend")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL for --store sql")
    parser.add_argument("--run-id", default=None, help="Resume (or name) a run")
    parser.add_argument("--store-citizens", action="store_true", help="Also persist citizen profiles")
    parser.add_argument("--json", action="store_true", help="Print the RunResult as JSON")
    args = parser.parse_args()

    configure_logging()

    from civora.analysis.report import console, render_run

    try:
        orchestrator = PopulationOrchestrator(
            source=JsonDirectorySource(args.citizens_dir or settings.citizen_data_dir),
            repository=build_repository(args.store, args.database_url),
            parameters=args.parameters,
            max_workers=args.workers,
            store_citizens=args.store_citizens,
        )
    except (UnknownParameterSet, PersistenceError) as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        sys.exit(2)
    result = orchestrator.run(args.population, _read_policy_argument(args.policy), run_id=args.run_id)

    if args.json:
        console.print_json(result.model_dump_json(by_alias=True))
    else:
        render_run(result)
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
