"""
Tests for Statistical Analysis.

Validates:
- Descriptive statistics (population SD, polarization, extremism)
- Empty input raising AggregationError
- Verdict margins for nation and regions
- Risk flags and recommendations
- Region and national summaries with demographic breakdowns
"""

from __future__ import annotations

import math

import pytest

from civora.analysis.statistics import (
    assess_risks,
    breakdown_by,
    confidence_interval,
    extremism_rate,
    interpret_polarization,
    mean,
    polarization_index,
    recommend,
    region_verdict,
    risk_of_division,
    standard_deviation,
    summarize_nation,
    summarize_region,
    verdict,
)
from civora.core.errors import AggregationError
from civora.core.schema import (
    AffordabilityStatus,
    CitizenSegment,
    Decision,
    OpinionBreakdown,
    OpinionRecord,
    PolarizationLevel,
    Priority,
    RegionVerdict,
    RiskLevel,
    Verdict,
)


def _record(citizen_id: str, opinion: float, region: str = "Kerala", income_band: str = "middle",
            vulnerable: bool = False) -> OpinionRecord:
    decision = Decision.SUPPORT if opinion > 0.1 else Decision.OPPOSE if opinion < -0.1 else Decision.NEUTRAL
    return OpinionRecord(
        citizen_id=citizen_id,
        region=region,
        opinion=opinion,
        confidence=0.6,
        decision=decision,
        breakdown=OpinionBreakdown(
            relevance=0.5, economic=0.0, social=0.0, health_environment=0.0, convenience=0.0,
            affectedness=0.0, affordability_status=AffordabilityStatus.SUSTAINABLE,
            raw_score=opinion, parameter_version="baseline-1",
        ),
        segment=CitizenSegment(
            income_band=income_band, urbanization="rural", education_band="low",
            sex="male", age_band="25_44", vulnerable=vulnerable,
        ),
    )


class TestDescriptive:
    """Test descriptive statistics."""

    def test_mean_and_population_sd(self):
        values = [-0.5, 0.5]
        assert mean(values) == 0.0
        assert standard_deviation(values) == pytest.approx(0.5)

    def test_single_value_has_zero_spread(self):
        assert standard_deviation([0.3]) == 0.0

    def test_polarization_index(self):
        values = [0.2, 0.6]
        assert polarization_index(values) == pytest.approx(0.2 * 1.4)

    def test_extremism_strictly_above_threshold(self):
        assert extremism_rate([0.7, -0.71, 0.1, 0.9]) == 0.5

    def test_confidence_interval(self):
        values = [-0.5, 0.5, -0.5, 0.5]
        ci = confidence_interval(values)
        assert ci.margin_of_error == pytest.approx(1.96 * 0.5 / 2)
        assert ci.lower == pytest.approx(-ci.upper)

    def test_empty_input_raises(self):
        for function in (mean, standard_deviation, polarization_index, extremism_rate):
            with pytest.raises(AggregationError):
                function([])


class TestInterpretation:
    """Test verdicts, levels, risks and recommendations."""

    def test_verdict_margin(self):
        assert verdict(55, 45, 100) == Verdict.MAJORITY_SUPPORT
        assert verdict(50, 47, 100) == Verdict.NEUTRAL
        assert verdict(40, 46, 100) == Verdict.MAJORITY_OPPOSE
        assert verdict(10, 10, 20) == Verdict.NEUTRAL

    def test_region_verdict(self):
        assert region_verdict(10, 0, 10) == RegionVerdict.SUPPORT
        assert region_verdict(0, 10, 10) == RegionVerdict.OPPOSE
        assert region_verdict(5, 5, 10) == RegionVerdict.MIXED

    def test_verdict_over_nothing(self):
        with pytest.raises(AggregationError):
            verdict(0, 0, 0)

    def test_polarization_levels(self):
        assert interpret_polarization(0.1) == PolarizationLevel.LOW
        assert interpret_polarization(0.4) == PolarizationLevel.MODERATE
        assert interpret_polarization(0.6) == PolarizationLevel.HIGH
        assert interpret_polarization(0.9) == PolarizationLevel.EXTREME

    def test_risk_of_division(self):
        assert risk_of_division(0.35) == RiskLevel.HIGH
        assert risk_of_division(0.2) == RiskLevel.MEDIUM
        assert risk_of_division(0.1) == RiskLevel.LOW

    def test_risks_for_divided_opposition(self):
        risks = assess_risks(Verdict.MAJORITY_OPPOSE, support_rate=0.2, extremism=0.5, std_dev=0.8)
        categories = {risk.category for risk in risks}
        assert categories == {"POLITICAL", "SOCIAL", "IMPLEMENTATION", "CONSENSUS", "PUBLIC_SUPPORT"}

    def test_monitoring_when_no_risk(self):
        risks = assess_risks(Verdict.MAJORITY_SUPPORT, support_rate=0.8, extremism=0.0, std_dev=0.1)
        assert [risk.category for risk in risks] == ["MONITORING"]

    def test_recommendations_for_opposition(self):
        actions = [r.action for r in recommend(Verdict.MAJORITY_OPPOSE, 0.2, 0.4)]
        assert actions == ["Policy Revision", "Stakeholder Engagement", "Conflict Mitigation"]

    def test_recommendations_for_support(self):
        actions = [r.action for r in recommend(Verdict.MAJORITY_SUPPORT, 0.7, 0.0)]
        assert actions == ["Implementation Planning", "Monitor Opposition", "Coalition Building"]

    def test_targeted_relief_for_opposing_vulnerable(self):
        items = recommend(Verdict.NEUTRAL, 0.4, 0.0, vulnerable_count=8, vulnerable_opposing=2)
        relief = [r for r in items if r.action == "Targeted Relief"]
        assert len(relief) == 1
        assert relief[0].priority == Priority.HIGH
        assert not any(
            r.action == "Targeted Relief"
            for r in recommend(Verdict.NEUTRAL, 0.4, 0.0, vulnerable_count=8, vulnerable_opposing=1)
        )


class TestSummaries:
    """Test region and national summaries."""

    def test_region_summary(self):
        records = [_record("a", 0.5), _record("b", 0.3), _record("c", -0.4), _record("d", 0.0)]
        summary = summarize_region("Kerala", records)
        assert (summary.count, summary.support, summary.oppose, summary.neutral) == (4, 2, 1, 1)
        assert summary.average_opinion == pytest.approx(0.1)
        assert summary.verdict == RegionVerdict.SUPPORT

    def test_empty_region_raises(self):
        with pytest.raises(AggregationError):
            summarize_region("Kerala", [])

    def test_empty_nation_raises(self):
        with pytest.raises(AggregationError):
            summarize_nation([])

    def test_diverging_regions_cancel_nationally(self):
        records = [_record(f"s{i}", 0.8, region="A") for i in range(10)]
        records += [_record(f"o{i}", -0.8, region="B") for i in range(10)]
        national = summarize_nation(records)
        assert national.verdict == Verdict.NEUTRAL
        assert national.average_opinion == pytest.approx(0.0)
        assert national.std_dev == pytest.approx(0.8)
        assert national.extremism_rate == 1.0
        assert national.consensus == 0.0
        assert national.polarization_level == PolarizationLevel.EXTREME
        by_region = national.breakdowns["by_region"]
        assert by_region["A"].support_rate == 1.0
        assert by_region["B"].oppose_rate == 1.0

    def test_national_counts_and_vulnerable(self):
        records = [
            _record("p1", -0.5, income_band="poor", vulnerable=True),
            _record("p2", 0.5, income_band="poor", vulnerable=True),
            _record("r1", 0.5, income_band="rich"),
        ]
        national = summarize_nation(records)
        assert national.count == 3
        assert national.support + national.oppose + national.neutral == 3
        assert national.vulnerable_groups_harmed == 1
        assert set(national.breakdowns["by_income"]) == {"poor", "rich"}
        assert national.variance == pytest.approx(national.std_dev ** 2)
        assert math.isclose(national.confidence_interval.mean, national.average_opinion)

    def test_breakdown_groups_sorted(self):
        records = [_record("x", 0.2, region="Zeta"), _record("y", 0.2, region="Alpha")]
        assert list(breakdown_by(records, lambda r: r.region)) == ["Alpha", "Zeta"]

    def test_summary_is_reproducible(self):
        records = [_record(f"c{i}", (i % 7 - 3) / 4) for i in range(50)]
        assert summarize_nation(records) == summarize_nation(list(records))
