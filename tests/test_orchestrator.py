"""
Tests for the Population Orchestrator — a full run against in-memory data.

Validates:
- Allocation, scoring, persistence and summaries end to end
- Region and national summaries computed from persisted opinions only
- Missing region sources skipped, invalid citizens counted as errored
- Persistence retried once, then counted as unpersisted
- Resuming a run reuses stored opinions from the same region
- Duplicate citizen ids scored once and counted as errored
- Policy parse failure and zero valid opinions reported as failures
- Reproducible results
"""

from __future__ import annotations

import threading

import pytest

from civora.core.errors import OpinionAlreadyRecorded, PersistenceError
from civora.core.schema import (
    AffordabilityStatus,
    CitizenProfile,
    CitizenSegment,
    Decision,
    OpinionBreakdown,
    OpinionRecord,
    RegionVerdict,
    Verdict,
)
from civora.orchestrator import PopulationOrchestrator, build_repository
from civora.population.source import InMemorySource
from civora.storage.repository import InMemoryRepository, SqlRepository

FARE_HIKE = {
    "title": "Bus fare increase",
    "domain": "transport",
    "targetGroups": ["bus_users", "poor", "urban"],
    "impacts": {"economicCost": 1200, "timeChange": -10},
}


def _citizens(prefix: str, count: int, **sections) -> list[dict]:
    return [{"citizenId": f"{prefix}{i}", **sections} for i in range(count)]


def _fixed_record(citizen: CitizenProfile, opinion: float) -> OpinionRecord:
    decision = Decision.SUPPORT if opinion > 0.1 else Decision.OPPOSE if opinion < -0.1 else Decision.NEUTRAL
    return OpinionRecord(
        citizen_id=citizen.citizen_id,
        region=citizen.region,
        opinion=opinion,
        confidence=0.5,
        decision=decision,
        breakdown=OpinionBreakdown(
            relevance=1.0, economic=opinion, social=0.0, health_environment=0.0, convenience=0.0,
            affectedness=1.0, affordability_status=AffordabilityStatus.SUSTAINABLE,
            raw_score=opinion, parameter_version="fixed",
        ),
        segment=CitizenSegment.of(citizen),
    )


class RegionScorer:
    """Scores every citizen of a region with that region's fixed opinion."""

    def __init__(self, opinions: dict[str, float]) -> None:
        self.opinions = opinions
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, citizen, policy, parameters):
        with self._lock:
            self.calls += 1
        if citizen.citizen_id.startswith("boom"):
            raise RuntimeError("scorer exploded")
        return _fixed_record(citizen, self.opinions[citizen.region])


class FlakyRepository(InMemoryRepository):
    """Fails the first ``failures`` opinion writes of every citizen."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.attempts: dict[str, int] = {}

    def put_opinion(self, run_id, record):
        attempt = self.attempts.get(record.citizen_id, 0) + 1
        self.attempts[record.citizen_id] = attempt
        if attempt <= self.failures:
            raise PersistenceError("database unavailable")
        super().put_opinion(run_id, record)


class UnreadableRepository(InMemoryRepository):
    """Reports every opinion as already written but cannot read any back."""

    def put_opinion(self, run_id, record):
        raise OpinionAlreadyRecorded(f"{run_id}/{record.citizen_id}")

    def get_opinion(self, run_id, citizen_id):
        raise PersistenceError("database unavailable")


class TestDivergingRegions:
    """Two regions pulling in opposite directions."""

    def setup_method(self):
        self.source = InMemorySource({"A": _citizens("a", 10), "B": _citizens("b", 10)})
        self.repository = InMemoryRepository()
        self.scorer = RegionScorer({"A": -0.8, "B": 0.8})
        self.orchestrator = PopulationOrchestrator(
            source=self.source,
            repository=self.repository,
            region_shares={"A": 1, "B": 1},
            max_workers=4,
            scorer=self.scorer,
        )

    def test_national_neutral_regions_diverge(self):
        result = self.orchestrator.run(20, FARE_HIKE, run_id="diverge")
        assert result.success
        assert result.humans_processed == 20
        assert result.regions_processed == 2
        assert result.region_summaries["A"].verdict == RegionVerdict.OPPOSE
        assert result.region_summaries["B"].verdict == RegionVerdict.SUPPORT
        national = result.national_summary
        assert national.verdict == Verdict.NEUTRAL
        assert national.oppose == 10
        assert national.support == 10

    def test_everything_persisted(self):
        self.orchestrator.run(20, FARE_HIKE, run_id="persisted")
        assert len(self.repository.list_opinions("persisted")) == 20
        assert len(self.repository.list_opinions("persisted", region="A")) == 10
        assert self.repository.get_region_summary("persisted", "B").count == 10
        assert self.repository.get_national_summary("persisted").count == 20

    def test_policy_title_and_parameters_reported(self):
        result = self.orchestrator.run(20, FARE_HIKE)
        assert result.policy_title == "Bus fare increase"
        assert result.parameter_version == "baseline-1"
        assert result.run_id

    def test_allocation_limits_citizens_per_region(self):
        result = self.orchestrator.run(6, FARE_HIKE)
        assert result.humans_processed == 6
        assert result.region_summaries["A"].count == 3


class TestFailureContainment:
    """Failures stay with the region or citizen that caused them."""

    def test_missing_region_skipped(self):
        source = InMemorySource({"A": _citizens("a", 5), "B": _citizens("b", 5)})
        orchestrator = PopulationOrchestrator(
            source=source,
            repository=InMemoryRepository(),
            region_shares={"A": 1, "B": 1, "C": 1},
            scorer=RegionScorer({"A": 0.5, "B": 0.5}),
        )
        result = orchestrator.run(15, FARE_HIKE)
        assert result.success
        assert result.regions_skipped == ["C"]
        assert result.regions_processed == 2
        assert "C" not in result.region_summaries
        assert result.national_summary.count == 10

    def test_invalid_and_failing_citizens_errored(self):
        citizens = _citizens("a", 3) + [{"demographics": {"age": 30}}] + _citizens("boom", 1)
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": citizens}),
            repository=InMemoryRepository(),
            region_shares={"A": 1},
            scorer=RegionScorer({"A": 0.5}),
        )
        result = orchestrator.run(5, FARE_HIKE)
        assert result.success
        assert result.humans_processed == 3
        assert result.humans_errored == 2
        assert result.national_summary.count == 3

    def test_persistence_retried_once(self):
        repository = FlakyRepository(failures=1)
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 4)}),
            repository=repository,
            region_shares={"A": 1},
            scorer=RegionScorer({"A": 0.5}),
            persistence_retries=1,
        )
        result = orchestrator.run(4, FARE_HIKE, run_id="retry")
        assert result.humans_processed == 4
        assert result.humans_unpersisted == 0
        assert all(attempts == 2 for attempts in repository.attempts.values())

    def test_unpersisted_opinions_excluded(self):
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 4), "B": _citizens("b", 4)}),
            repository=FlakyRepository(failures=5),
            region_shares={"A": 1, "B": 1},
            scorer=RegionScorer({"A": 0.5, "B": 0.5}),
            persistence_retries=1,
        )
        result = orchestrator.run(8, FARE_HIKE)
        assert not result.success
        assert result.humans_unpersisted == 8
        assert result.humans_processed == 0
        assert result.national_summary is None
        assert result.region_summaries == {}

    def test_unreadable_stored_opinion_is_unpersisted(self):
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 3)}),
            repository=UnreadableRepository(),
            region_shares={"A": 1},
            scorer=RegionScorer({"A": 0.5}),
        )
        result = orchestrator.run(3, FARE_HIKE)
        assert not result.success
        assert result.humans_unpersisted == 3
        assert result.humans_resumed == 0

    def test_policy_parse_failure(self):
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 2)}),
            repository=InMemoryRepository(),
            region_shares={"A": 1},
        )
        result = orchestrator.run(2, "   ")
        assert not result.success
        assert "could not be parsed" in result.reason
        assert result.humans_processed == 0

    def test_no_valid_opinions(self):
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({}),
            repository=InMemoryRepository(),
            region_shares={"A": 1},
        )
        result = orchestrator.run(10, FARE_HIKE)
        assert not result.success
        assert result.regions_skipped == ["A"]
        assert result.national_summary is None


class TestDuplicateCitizens:
    """A citizen id is scored at most once per run."""

    def test_same_id_in_two_regions(self):
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": [{"id": 1}], "B": [{"id": 1}]}),
            repository=InMemoryRepository(),
            region_shares={"A": 1, "B": 1},
            scorer=RegionScorer({"A": -0.5, "B": 0.5}),
        )
        result = orchestrator.run(2, FARE_HIKE)
        assert result.success
        assert result.humans_processed == 1
        assert result.humans_errored == 1
        assert result.humans_resumed == 0
        assert result.national_summary.count == 1
        assert result.national_summary.oppose == 1
        assert set(result.national_summary.breakdowns["by_region"]) == {"A"}
        assert "B" not in result.region_summaries

    def test_same_id_twice_in_one_region(self):
        repository = InMemoryRepository()
        scorer = RegionScorer({"A": 0.5})
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 2) + [{"citizenId": "a0"}]}),
            repository=repository,
            region_shares={"A": 1},
            scorer=scorer,
        )
        result = orchestrator.run(3, FARE_HIKE, run_id="twice")
        assert scorer.calls == 2
        assert result.humans_processed == 2
        assert result.humans_errored == 1
        assert result.region_summaries["A"].count == 2
        assert len(repository.list_opinions("twice")) == 2

    def test_stored_opinion_from_another_region_not_reused(self):
        repository = InMemoryRepository()
        elsewhere = CitizenProfile.model_validate({"citizenId": "a0", "region": "B"})
        repository.put_opinion("moved", _fixed_record(elsewhere, -0.5))
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 2)}),
            repository=repository,
            region_shares={"A": 1},
            scorer=RegionScorer({"A": 0.5}),
        )
        result = orchestrator.run(2, FARE_HIKE, run_id="moved")
        assert result.humans_resumed == 0
        assert result.humans_errored == 1
        assert result.humans_processed == 1
        assert result.region_summaries["A"].support == 1


class TestResume:
    """Re-running with the same run id reuses stored opinions."""

    def test_resume_skips_scoring(self):
        repository = InMemoryRepository()
        scorer = RegionScorer({"A": -0.5})
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 6)}),
            repository=repository,
            region_shares={"A": 1},
            scorer=scorer,
        )
        first = orchestrator.run(6, FARE_HIKE, run_id="resume-me")
        second = orchestrator.run(6, FARE_HIKE, run_id="resume-me")
        assert scorer.calls == 6
        assert second.humans_resumed == 6
        assert second.humans_processed == 6
        assert second.national_summary == first.national_summary

    def test_partial_run_completed(self):
        repository = InMemoryRepository()
        scorer = RegionScorer({"A": 0.5})
        done = CitizenProfile.model_validate({"citizenId": "a0", "region": "A"})
        repository.put_opinion("partial", _fixed_record(done, 0.5))
        orchestrator = PopulationOrchestrator(
            source=InMemorySource({"A": _citizens("a", 3)}),
            repository=repository,
            region_shares={"A": 1},
            scorer=scorer,
        )
        result = orchestrator.run(3, FARE_HIKE, run_id="partial")
        assert scorer.calls == 2
        assert result.humans_resumed == 1
        assert len(repository.list_opinions("partial")) == 3


class TestRealScoring:
    """Full pipeline with the real opinion scorer."""

    def setup_method(self):
        poor = {"socioEconomic": {"incomePerCapita": 1500, "povertyStatus": 1},
                "demographics": {"urbanization": "urban"}, "financial": {"incomeStability": 1}}
        rich = {"socioEconomic": {"incomePerCapita": 60000, "educationLevel": 4, "employmentType": "formal"},
                "demographics": {"urbanization": "urban"}, "mobility": {"transportationMode": "car"}}
        self.source = InMemorySource({
            "Delhi": _citizens("poor", 8, region="Elsewhere", **poor) + _citizens("rich", 4, **rich),
            "Kerala": _citizens("k", 12, **poor),
        })

    def _run(self, run_id: str, **kwargs):
        orchestrator = PopulationOrchestrator(
            source=self.source,
            repository=InMemoryRepository(),
            region_shares={"Delhi": 1, "Kerala": 1},
            max_workers=3,
            **kwargs,
        )
        return orchestrator.run(24, FARE_HIKE, run_id=run_id)

    def test_poor_commuters_oppose_fare_hike(self):
        result = self._run("real")
        assert result.success
        assert result.humans_processed == 24
        assert result.region_summaries["Kerala"].oppose == 12
        assert result.national_summary.breakdowns["by_income"]["poor"].oppose_rate == 1.0

    def test_region_forced_to_source_region(self):
        repository = InMemoryRepository()
        orchestrator = PopulationOrchestrator(
            source=self.source,
            repository=repository,
            region_shares={"Delhi": 1},
            store_citizens=True,
        )
        orchestrator.run(12, FARE_HIKE, run_id="forced")
        assert {r.region for r in repository.list_opinions("forced")} == {"Delhi"}
        assert repository.get_citizen("poor0").region == "Delhi"

    def test_reproducible(self):
        first = self._run("one")
        second = self._run("two")
        assert first.national_summary == second.national_summary
        assert first.region_summaries == second.region_summaries

    def test_cognitive_parameters(self):
        result = self._run("cognitive", parameters="cognitive-2")
        assert result.parameter_version == "cognitive-2"
        assert result.success

    def test_sql_backend(self, tmp_path):
        repository = build_repository("sql", f"sqlite:///{tmp_path / 'run.db'}")
        assert isinstance(repository, SqlRepository)
        orchestrator = PopulationOrchestrator(
            source=self.source,
            repository=repository,
            region_shares={"Delhi": 1, "Kerala": 1},
            max_workers=1,
        )
        result = orchestrator.run(24, FARE_HIKE, run_id="sql")
        assert result.success
        assert len(repository.list_opinions("sql")) == 24
        assert repository.get_national_summary("sql") == result.national_summary


class TestBuildRepository:
    """Test repository selection."""

    def test_memory(self):
        assert isinstance(build_repository("memory"), InMemoryRepository)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_repository("mongo")
