"""
Tests for the Opinion Repository.

Validates:
- Write-once opinions per (run, citizen)
- Run and region scoping of opinion listings
- Summary replacement on resumed runs
- Citizen profile upserts
- Same behaviour for the in-memory and SQLAlchemy implementations
"""

from __future__ import annotations

import pytest

from civora.analysis.statistics import summarize_nation, summarize_region
from civora.core.errors import OpinionAlreadyRecorded, PersistenceError
from civora.core.schema import CitizenProfile, PolicyDescriptor
from civora.scoring.opinion import score_citizen
from civora.storage.repository import InMemoryRepository, OpinionRepository, SqlRepository


def _record(citizen_id: str, region: str = "Kerala", income: float = 4000):
    citizen = CitizenProfile.model_validate({
        "citizenId": citizen_id,
        "region": region,
        "socioEconomic": {"incomePerCapita": income},
    })
    policy = PolicyDescriptor(target_groups=("low_income",), impacts={"economicCost": 900})
    return score_citizen(citizen, policy)


@pytest.fixture(params=["memory", "sql"])
def repository(request, tmp_path) -> OpinionRepository:
    if request.param == "memory":
        return InMemoryRepository()
    repo = SqlRepository(f"sqlite:///{tmp_path / 'civora.db'}")
    repo.initialize()
    return repo


class TestOpinions:
    """Test opinion storage."""

    def test_put_and_get(self, repository):
        record = _record("c1")
        repository.put_opinion("run-1", record)
        assert repository.get_opinion("run-1", "c1") == record

    def test_missing_opinion(self, repository):
        assert repository.get_opinion("run-1", "nobody") is None

    def test_write_once(self, repository):
        record = _record("c1")
        repository.put_opinion("run-1", record)
        with pytest.raises(OpinionAlreadyRecorded):
            repository.put_opinion("run-1", _record("c1", income=30000))
        assert repository.get_opinion("run-1", "c1") == record

    def test_already_recorded_is_a_persistence_error(self):
        assert issubclass(OpinionAlreadyRecorded, PersistenceError)

    def test_same_citizen_in_different_runs(self, repository):
        repository.put_opinion("run-1", _record("c1"))
        repository.put_opinion("run-2", _record("c1"))
        assert repository.get_opinion("run-2", "c1") is not None

    def test_list_by_run_and_region(self, repository):
        repository.put_opinion("run-1", _record("a", region="Kerala"))
        repository.put_opinion("run-1", _record("b", region="Goa"))
        repository.put_opinion("run-1", _record("c", region="Kerala"))
        repository.put_opinion("run-2", _record("d", region="Kerala"))
        assert [r.citizen_id for r in repository.list_opinions("run-1")] == ["a", "b", "c"]
        assert [r.citizen_id for r in repository.list_opinions("run-1", region="Kerala")] == ["a", "c"]
        assert repository.list_opinions("run-3") == []


class TestSummaries:
    """Test summary storage."""

    def test_region_summary_replaced(self, repository):
        first = summarize_region("Kerala", [_record("a")])
        second = summarize_region("Kerala", [_record("a"), _record("b", income=30000)])
        repository.put_region_summary("run-1", first)
        repository.put_region_summary("run-1", second)
        assert repository.get_region_summary("run-1", "Kerala") == second
        assert repository.get_region_summary("run-1", "Goa") is None

    def test_national_summary(self, repository):
        summary = summarize_nation([_record("a"), _record("b", income=30000)])
        repository.put_national_summary("run-1", summary, policy_title="Fare hike")
        assert repository.get_national_summary("run-1") == summary
        assert repository.get_national_summary("run-2") is None


class TestCitizens:
    """Test citizen profile storage."""

    def test_upsert(self, repository):
        citizen = CitizenProfile.model_validate({"citizenId": "c1", "region": "Goa"})
        repository.put_citizen(citizen)
        moved = citizen.model_copy(update={"region": "Delhi"})
        repository.put_citizen(moved)
        assert repository.get_citizen("c1") == moved
        assert repository.get_citizen("c2") is None


class TestSqlRepository:
    """SQL-specific behaviour."""

    def test_policy_title_stored(self, tmp_path):
        repo = SqlRepository(f"sqlite:///{tmp_path / 'titles.db'}")
        repo.initialize()
        repo.put_national_summary("run-1", summarize_nation([_record("a")]), policy_title="Fare hike")
        assert repo.get_policy_title("run-1") == "Fare hike"
        assert repo.get_policy_title("run-2") == ""

    def test_read_without_schema_raises_persistence_error(self, tmp_path):
        repo = SqlRepository(f"sqlite:///{tmp_path / 'empty.db'}")
        with pytest.raises(PersistenceError):
            repo.get_opinion("run-1", "c1")

    def test_records_survive_reconnect(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'durable.db'}"
        first = SqlRepository(url)
        first.initialize()
        record = _record("c1")
        first.put_opinion("run-1", record)
        second = SqlRepository(url)
        assert second.list_opinions("run-1") == [record]
