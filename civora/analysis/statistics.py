"""
Statistical Analysis — population-level findings from per-citizen opinions.

Descriptive statistics (mean, population standard deviation, variance),
polarization (``sd * (|mean| + 1)``), extremism (share of ``|opinion| > 0.7``),
a 95% confidence interval for the mean, verdicts, demographic breakdowns,
risk flags and recommendations.

Every function is a pure reduction over an ordered sequence, so summaries of
the same opinion list are bit-identical. Statistics over an empty opinion set
raise ``AggregationError`` instead of returning degenerate values.
"""

from __future__ import annotations

import math
import statistics
from collections import Counter
from collections.abc import Callable, Iterable, Sequence

from civora.core.errors import AggregationError
from civora.core.schema import (
    ConfidenceInterval,
    Decision,
    GroupBreakdown,
    NationalSummary,
    OpinionRecord,
    PolarizationLevel,
    Priority,
    Recommendation,
    RegionSummary,
    RegionVerdict,
    RiskFlag,
    RiskLevel,
    Verdict,
)

EXTREME_OPINION = 0.7
VERDICT_MARGIN = 5.0  # percentage points
Z_95 = 1.96
VULNERABLE_OPPOSITION_SHARE = 0.25


# ════════════════════════════════════════════════════════════════
# Descriptive statistics
# ════════════════════════════════════════════════════════════════


def _require(values: Sequence[float]) -> Sequence[float]:
    if not values:
        raise AggregationError("Cannot compute statistics over an empty opinion set")
    return values


def mean(values: Sequence[float]) -> float:
    return statistics.fmean(_require(values))


def variance(values: Sequence[float]) -> float:
    """Population variance."""
    center = mean(values)
    return statistics.fmean((value - center) ** 2 for value in values)


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (never negative)."""
    return math.sqrt(variance(values))


def polarization_index(values: Sequence[float]) -> float:
    return standard_deviation(values) * (abs(mean(values)) + 1)


def extremism_rate(values: Sequence[float], threshold: float = EXTREME_OPINION) -> float:
    """Fraction of opinions with magnitude above ``threshold``."""
    _require(values)
    return sum(1 for value in values if abs(value) > threshold) / len(values)


def consensus(values: Sequence[float]) -> float:
    return 1 - extremism_rate(values)


def confidence_interval(values: Sequence[float], z: float = Z_95, level: float = 0.95) -> ConfidenceInterval:
    """Normal-approximation interval for the mean: ``mean ± z * sd / sqrt(n)``."""
    center = mean(values)
    margin = z * standard_deviation(values) / math.sqrt(len(values))
    return ConfidenceInterval(
        mean=center,
        margin_of_error=margin,
        lower=center - margin,
        upper=center + margin,
        level=level,
    )


# ════════════════════════════════════════════════════════════════
# Interpretation
# ════════════════════════════════════════════════════════════════


def _shares(support: int, oppose: int, count: int) -> tuple[float, float]:
    if count <= 0:
        raise AggregationError("Cannot compute a verdict over zero opinions")
    return support / count * 100, oppose / count * 100


def verdict(support: int, oppose: int, count: int) -> Verdict:
    """MAJORITY SUPPORT / OPPOSE when one side leads by more than five points."""
    support_pct, oppose_pct = _shares(support, oppose, count)
    if support_pct - oppose_pct > VERDICT_MARGIN:
        return Verdict.MAJORITY_SUPPORT
    if oppose_pct - support_pct > VERDICT_MARGIN:
        return Verdict.MAJORITY_OPPOSE
    return Verdict.NEUTRAL


def region_verdict(support: int, oppose: int, count: int) -> RegionVerdict:
    support_pct, oppose_pct = _shares(support, oppose, count)
    if support_pct - oppose_pct > VERDICT_MARGIN:
        return RegionVerdict.SUPPORT
    if oppose_pct - support_pct > VERDICT_MARGIN:
        return RegionVerdict.OPPOSE
    return RegionVerdict.MIXED


def interpret_polarization(std_dev: float) -> PolarizationLevel:
    if std_dev < 0.3:
        return PolarizationLevel.LOW
    if std_dev < 0.5:
        return PolarizationLevel.MODERATE
    if std_dev < 0.7:
        return PolarizationLevel.HIGH
    return PolarizationLevel.EXTREME


def risk_of_division(extremism: float) -> RiskLevel:
    if extremism > 0.30:
        return RiskLevel.HIGH
    if extremism > 0.15:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def assess_risks(outcome: Verdict, support_rate: float, extremism: float, std_dev: float) -> list[RiskFlag]:
    """
    Threshold-based risk flags.

    Args:
        outcome: National verdict.
        support_rate: Share of SUPPORT decisions (0-1).
        extremism: Extremism rate (0-1).
        std_dev: Opinion standard deviation.

    Returns:
        Every applicable flag, or a single LOW monitoring flag when none apply.
    """
    risks: list[RiskFlag] = []
    if outcome == Verdict.MAJORITY_OPPOSE:
        risks.append(RiskFlag(
            category="POLITICAL", level=RiskLevel.CRITICAL,
            description="Majority opposition - Risk of policy rejection",
        ))
    if extremism > 0.40:
        risks.append(RiskFlag(
            category="SOCIAL", level=RiskLevel.CRITICAL,
            description="Extreme polarization - Risk of social unrest",
        ))
    if extremism > 0.25:
        risks.append(RiskFlag(
            category="IMPLEMENTATION", level=RiskLevel.HIGH,
            description="High polarization - Implementation challenges",
        ))
    if std_dev > 0.6:
        risks.append(RiskFlag(
            category="CONSENSUS", level=RiskLevel.MEDIUM,
            description="Significant disagreement - Need for coalition building",
        ))
    if support_rate < 0.40:
        risks.append(RiskFlag(
            category="PUBLIC_SUPPORT", level=RiskLevel.HIGH,
            description="Low public support - Communication needed",
        ))
    if not risks:
        risks.append(RiskFlag(
            category="MONITORING", level=RiskLevel.LOW,
            description="Continue monitoring implementation",
        ))
    return risks


def recommend(
    outcome: Verdict,
    support_rate: float,
    extremism: float,
    vulnerable_count: int = 0,
    vulnerable_opposing: int = 0,
) -> list[Recommendation]:
    """Prioritized actions derived from verdict, extremism, support and vulnerable-group opposition."""
    recommendations: list[Recommendation] = []
    if outcome == Verdict.MAJORITY_OPPOSE:
        recommendations.append(Recommendation(
            priority=Priority.URGENT, action="Policy Revision",
            details="Review policy design based on opposition feedback",
        ))
        recommendations.append(Recommendation(
            priority=Priority.HIGH, action="Stakeholder Engagement",
            details="Conduct targeted discussions with opposition groups",
        ))
    elif outcome == Verdict.MAJORITY_SUPPORT:
        recommendations.append(Recommendation(
            priority=Priority.HIGH, action="Implementation Planning",
            details="Proceed with phased implementation strategy",
        ))
        recommendations.append(Recommendation(
            priority=Priority.MEDIUM, action="Monitor Opposition",
            details="Track and address concerns from dissenting groups",
        ))
    else:
        recommendations.append(Recommendation(
            priority=Priority.MEDIUM, action="Awareness Campaign",
            details="Launch educational campaign to build understanding",
        ))

    if extremism > 0.30:
        recommendations.append(Recommendation(
            priority=Priority.URGENT, action="Conflict Mitigation",
            details="Implement mediation and dialogue programs",
        ))
    if support_rate > 0.60:
        recommendations.append(Recommendation(
            priority=Priority.MEDIUM, action="Coalition Building",
            details="Strengthen support through stakeholder coordination",
        ))
    if vulnerable_count and vulnerable_opposing / vulnerable_count >= VULNERABLE_OPPOSITION_SHARE:
        recommendations.append(Recommendation(
            priority=Priority.HIGH, action="Targeted Relief",
            details=(
                f"{vulnerable_opposing} of {vulnerable_count} low-income citizens oppose; "
                "consider exemptions or compensation for vulnerable households"
            ),
        ))
    return recommendations


# ════════════════════════════════════════════════════════════════
# Breakdowns
# ════════════════════════════════════════════════════════════════

BREAKDOWN_KEYS: dict[str, Callable[[OpinionRecord], str]] = {
    "by_region": lambda record: record.region,
    "by_income": lambda record: record.segment.income_band,
    "by_urbanization": lambda record: record.segment.urbanization,
    "by_education": lambda record: record.segment.education_band,
}


def group_breakdown(records: Sequence[OpinionRecord]) -> GroupBreakdown:
    decisions = Counter(record.decision for record in records)
    count = len(records)
    return GroupBreakdown(
        count=count,
        average_opinion=mean([record.opinion for record in records]),
        support_rate=decisions[Decision.SUPPORT] / count,
        oppose_rate=decisions[Decision.OPPOSE] / count,
    )


def breakdown_by(records: Iterable[OpinionRecord], key: Callable[[OpinionRecord], str]) -> dict[str, GroupBreakdown]:
    """Group records by ``key`` (groups sorted by name) and summarize each group."""
    groups: dict[str, list[OpinionRecord]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return {name: group_breakdown(groups[name]) for name in sorted(groups)}


def breakdowns(records: Sequence[OpinionRecord]) -> dict[str, dict[str, GroupBreakdown]]:
    return {name: breakdown_by(records, key) for name, key in BREAKDOWN_KEYS.items()}


# ════════════════════════════════════════════════════════════════
# Summaries
# ════════════════════════════════════════════════════════════════


def summarize_region(region: str, records: Sequence[OpinionRecord]) -> RegionSummary:
    """Aggregate one region's valid opinions (raises AggregationError when empty)."""
    if not records:
        raise AggregationError(f"Region {region!r} has no valid opinions")
    opinions = [record.opinion for record in records]
    decisions = Counter(record.decision for record in records)
    count = len(records)
    return RegionSummary(
        region=region,
        count=count,
        support=decisions[Decision.SUPPORT],
        oppose=decisions[Decision.OPPOSE],
        neutral=decisions[Decision.NEUTRAL],
        average_opinion=mean(opinions),
        average_confidence=mean([record.confidence for record in records]),
        std_dev=standard_deviation(opinions),
        verdict=region_verdict(decisions[Decision.SUPPORT], decisions[Decision.OPPOSE], count),
    )


def summarize_nation(records: Sequence[OpinionRecord]) -> NationalSummary:
    """
    Aggregate every valid opinion nationwide.

    Args:
        records: All valid opinion records of the run, in a stable order.

    Returns:
        The national summary with breakdowns, risks and recommendations.

    Raises:
        AggregationError: If ``records`` is empty.
    """
    if not records:
        raise AggregationError("No valid opinions nationwide; cannot summarize")

    opinions = [record.opinion for record in records]
    decisions = Counter(record.decision for record in records)
    count = len(records)
    support = decisions[Decision.SUPPORT]
    oppose = decisions[Decision.OPPOSE]

    sd = standard_deviation(opinions)
    extremism = extremism_rate(opinions)
    outcome = verdict(support, oppose, count)
    support_rate = support / count

    vulnerable = [record for record in records if record.segment.vulnerable]
    vulnerable_opposing = sum(1 for record in vulnerable if record.decision == Decision.OPPOSE)

    return NationalSummary(
        count=count,
        support=support,
        oppose=oppose,
        neutral=decisions[Decision.NEUTRAL],
        average_opinion=mean(opinions),
        average_confidence=mean([record.confidence for record in records]),
        std_dev=sd,
        variance=variance(opinions),
        polarization_index=polarization_index(opinions),
        polarization_level=interpret_polarization(sd),
        extremism_rate=extremism,
        consensus=1 - extremism,
        confidence_interval=confidence_interval(opinions),
        verdict=outcome,
        risk_of_division=risk_of_division(extremism),
        vulnerable_groups_harmed=vulnerable_opposing,
        breakdowns=breakdowns(records),
        risks=assess_risks(outcome, support_rate, extremism, sd),
        recommendations=recommend(outcome, support_rate, extremism, len(vulnerable), vulnerable_opposing),
    )
