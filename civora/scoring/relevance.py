"""
Relevance Scorer — how much a policy concerns a given citizen (0-1).

Relevance says nothing about whether the reaction is positive or negative; it
scales the opinion blend so that people a policy barely touches stay near
neutral. Each domain has its own additive rule table on top of a small base.
The sum is then multiplied by a universal factor built from institutional
trust, risk tolerance, change adaptability and policy awareness, and clamped
to [0, 1].
"""

from __future__ import annotations

from civora.core.schema import CitizenProfile, PolicyDescriptor, PolicyDomain
from civora.scoring.rules import Rule, RuleTable, always, clamp, ladder, ordinal_fraction

BASE_RELEVANCE = 0.02

D = PolicyDomain


def _f(value: float) -> float:
    return ordinal_fraction(value)


# ── Shared predicates ─────────────────────────────────────────

def _unstable_income(c: CitizenProfile) -> bool:
    return _f(c.economic_stability.income_stability) < 0.3


def _risk_averse(c: CitizenProfile) -> bool:
    return _f(c.behavioral.risk_tolerance) < 0.3


def _indebted(c: CitizenProfile) -> bool:
    return c.economic_stability.debt_vulnerability > 50


def _aware(c: CitizenProfile) -> bool:
    return _f(c.information.policy_awareness) > 0.5


def _unaware(c: CitizenProfile) -> bool:
    return _f(c.information.policy_awareness) < 0.3


def _urbanization(c: CitizenProfile) -> str:
    return c.demographics.urbanization


def _occupation(c: CitizenProfile) -> str:
    return c.socio_economic.occupation


def _employment(c: CitizenProfile) -> str:
    return c.socio_economic.employment_type


# ════════════════════════════════════════════════════════════════
# Domain rule tables
# ════════════════════════════════════════════════════════════════

RELEVANCE_RULES: dict[PolicyDomain, RuleTable] = {
    D.TRANSPORT: RuleTable([
        Rule(0.05, label="transport base"),
        ladder(
            (0.65, lambda c: c.mobility.transportation_mode == "car"),
            (0.50, lambda c: c.mobility.transportation_mode == "bus"),
            (0.48, lambda c: c.mobility.transportation_mode == "auto"),
            (0.45, lambda c: c.mobility.transportation_mode == "train"),
            (0.42, lambda c: c.mobility.transportation_mode == "bike"),
            (0.40, lambda c: c.mobility.transportation_mode == "cycle"),
            (0.35, lambda c: c.mobility.transportation_mode == "walk"),
            label="transport mode",
        ),
        ladder(
            (0.30, lambda c: c.mobility.commute_time > 60),
            (0.20, lambda c: c.mobility.commute_time > 30),
            (0.10, always),
            label="commute",
        ),
        ladder(
            (0.25, lambda c: _urbanization(c) == "urban"),
            (0.15, lambda c: _urbanization(c) == "semi-urban"),
            (0.08, always),
            label="urbanization",
        ),
        ladder(
            (0.20, lambda c: _occupation(c) in ("services", "student")),
            (0.15, lambda c: _occupation(c) == "business"),
            label="occupation",
        ),
        ladder(
            (0.25, lambda c: c.income < 5000),
            (0.15, lambda c: c.income < 15000),
            (0.05, always),
            label="income",
        ),
        ladder(
            (0.15, lambda c: _f(c.mobility.geographic_mobility) > 0.7),
            (0.08, lambda c: _f(c.mobility.geographic_mobility) > 0.3),
            label="geographic mobility",
        ),
        Rule(0.12, when=_unstable_income, label="unstable income"),
        Rule(0.10, when=_risk_averse, label="risk averse"),
    ]),
    D.HEALTH: RuleTable([
        Rule(0.05, label="health base"),
        ladder(
            (0.50, lambda c: c.age >= 60),
            (0.35, lambda c: c.age >= 50),
            (0.25, lambda c: c.age >= 40),
            (0.15, lambda c: c.age >= 30),
            (0.08, always),
            label="age",
        ),
        ladder(
            (0.45, lambda c: c.health.disease_risk > 70),
            (0.35, lambda c: c.health.disease_risk > 50),
            (0.20, lambda c: c.health.disease_risk > 30),
            (0.08, always),
            label="disease risk",
        ),
        ladder(
            (0.35, lambda c: c.health.healthcare_access < 25),
            (0.25, lambda c: c.health.healthcare_access < 50),
            (0.15, lambda c: c.health.healthcare_access < 75),
            (0.08, always),
            label="healthcare access",
        ),
        ladder(
            (0.15, lambda c: _f(c.health.health_literacy) > 0.7),
            (0.08, lambda c: _f(c.health.health_literacy) > 0.3),
            label="health literacy",
        ),
        Rule(0.20, when=lambda c: c.health.bmi_category == "underweight", label="undernourished"),
        ladder(
            (0.20, lambda c: c.demographics.dependents >= 4),
            (0.10, lambda c: c.demographics.dependents >= 2),
            label="dependents",
        ),
        Rule(0.15, when=lambda c: c.demographics.is_female, label="female"),
        Rule(0.25, when=lambda c: c.socio_economic.is_poor, label="below poverty line"),
        ladder(
            (0.20, lambda c: c.income < 5000),
            (0.12, lambda c: c.income < 15000),
            label="income",
        ),
        Rule(0.15, when=_indebted, label="indebted"),
        Rule(0.12, when=_risk_averse, label="risk averse"),
    ]),
    D.EDUCATION: RuleTable([
        Rule(0.05, label="education base"),
        Rule(0.45, when=lambda c: c.demographics.dependents > 0, label="has dependents"),
        Rule(0.20, when=lambda c: 25 <= c.age <= 50, label="parenting age"),
        ladder(
            (0.25, lambda c: c.socio_economic.education_level >= 4),
            (0.15, lambda c: c.socio_economic.education_level >= 2),
            label="education level",
        ),
        Rule(0.15, when=lambda c: c.demographics.is_female, label="female"),
        ladder(
            (0.15, lambda c: c.socio_economic.literacy / 3 > 0.7),
            (0.08, lambda c: c.socio_economic.literacy / 3 > 0.3),
            label="literacy",
        ),
        ladder(
            (0.15, lambda c: c.income > 20000),
            (0.20, lambda c: c.income < 5000),
            label="income",
        ),
        Rule(
            0.40,
            when=lambda c: _occupation(c) in ("student", "teacher", "education"),
            label="education occupation",
        ),
        Rule(0.15, when=_aware, label="aware"),
        Rule(0.15, when=_unstable_income, label="unstable income"),
        Rule(0.15, when=_indebted, label="indebted"),
    ]),
    D.AGRICULTURE: RuleTable([
        Rule(0.05, label="agriculture base"),
        ladder(
            (0.85, lambda c: _occupation(c) == "agriculture"),
            (0.50, lambda c: _occupation(c) in ("rural business", "cattle rearing")),
            label="farming occupation",
        ),
        ladder(
            (0.40, lambda c: _urbanization(c) == "rural"),
            (0.20, lambda c: _urbanization(c) == "semi-urban"),
            (0.08, always),
            label="urbanization",
        ),
        Rule(0.15, when=lambda c: c.demographics.dependents >= 4, label="large household"),
        ladder(
            (0.30, lambda c: _f(c.environmental.climate_vulnerability) > 0.6),
            (0.15, lambda c: _f(c.environmental.climate_vulnerability) > 0.3),
            label="climate vulnerability",
        ),
        ladder(
            (0.25, lambda c: c.income < 5000),
            (0.15, lambda c: c.income < 15000),
            label="income",
        ),
        ladder(
            (0.12, lambda c: c.socio_economic.literacy / 3 > 0.6),
            (0.05, always),
            label="literacy",
        ),
        Rule(0.25, when=_unstable_income, label="unstable income"),
        Rule(0.20, when=_indebted, label="indebted"),
        Rule(0.15, when=_risk_averse, label="risk averse"),
        Rule(-0.10, when=_unaware, label="unaware"),
    ]),
    D.TAX: RuleTable([
        Rule(0.03, label="tax base"),
        ladder(
            (0.75, lambda c: c.income > 25000),
            (0.55, lambda c: c.income > 15000),
            (0.35, lambda c: c.income > 8000),
            (0.15, lambda c: c.income > 5000),
            (0.05, always),
            label="income bracket",
        ),
        ladder(
            (0.35, lambda c: _employment(c) == "formal"),
            (0.08, lambda c: _employment(c) == "informal"),
            label="employment",
        ),
        Rule(0.15, when=lambda c: c.socio_economic.education_level >= 4, label="highly educated"),
        Rule(
            0.40,
            when=lambda c: _occupation(c) == "business" or _employment(c) == "self-employed",
            label="business owner",
        ),
        Rule(0.20, when=lambda c: c.economic_stability.savings_rate > 15, label="saver"),
        Rule(0.15, when=lambda c: 25 <= c.age <= 60, label="working age"),
        Rule(0.12, when=lambda c: _f(c.economic_stability.income_stability) > 0.6, label="stable income"),
        Rule(0.15, when=lambda c: c.behavioral.institutional_trust < 40, label="distrustful"),
    ]),
    D.EMPLOYMENT: RuleTable([
        Rule(0.05, label="employment base"),
        ladder(
            (0.70, lambda c: _employment(c) == "unemployed"),
            (0.60, lambda c: _employment(c) == "formal"),
            (0.50, lambda c: _employment(c) in ("informal", "self-employed")),
            label="employment status",
        ),
        Rule(0.30, when=lambda c: 18 <= c.age <= 65, label="working age"),
        ladder(
            (0.20, lambda c: c.socio_economic.education_level >= 3),
            (0.10, always),
            label="education level",
        ),
        ladder(
            (0.30, lambda c: _f(c.economic_stability.income_stability) < 0.3),
            (0.15, lambda c: _f(c.economic_stability.income_stability) < 0.6),
            label="income stability",
        ),
        Rule(0.40, when=lambda c: _occupation(c) == "student", label="student"),
        Rule(0.45, when=lambda c: _occupation(c) == "laborer", label="laborer"),
        Rule(0.20, when=_indebted, label="indebted"),
        Rule(0.15, when=_risk_averse, label="risk averse"),
        Rule(0.12, when=_aware, label="aware"),
    ]),
    D.HOUSING: RuleTable([
        Rule(0.05, label="housing base"),
        ladder(
            (0.70, lambda c: c.housing.housing_type == "informal settlement"),
            (0.60, lambda c: c.housing.housing_type == "rented"),
            (0.55, lambda c: c.housing.housing_type == "government"),
            (0.40, lambda c: c.housing.housing_type == "owned"),
            label="tenure",
        ),
        ladder(
            (0.35, lambda c: c.housing.housing_cost_burden > 40),
            (0.20, lambda c: c.housing.housing_cost_burden > 20),
            label="housing cost burden",
        ),
        ladder(
            (0.35, lambda c: c.income < 5000),
            (0.25, lambda c: c.income < 15000),
            (0.15, lambda c: c.income > 25000),
            label="income",
        ),
        Rule(0.25, when=lambda c: 25 <= c.age <= 50, label="household-forming age"),
        ladder(
            (0.25, lambda c: c.demographics.dependents >= 5),
            (0.15, lambda c: c.demographics.dependents >= 3),
            label="dependents",
        ),
        Rule(0.20, when=lambda c: _urbanization(c) == "urban", label="urban"),
        Rule(0.20, when=lambda c: c.socio_economic.wealth_quintile == "q1", label="poorest quintile"),
        Rule(0.15, when=_unstable_income, label="unstable income"),
    ]),
    D.ENVIRONMENT: RuleTable([
        Rule(0.04, label="environment base"),
        ladder(
            (0.50, lambda c: c.environmental.pollution_exposure > 200),
            (0.30, lambda c: c.environmental.pollution_exposure > 100),
            (0.10, always),
            label="pollution",
        ),
        ladder(
            (0.45, lambda c: _f(c.environmental.climate_vulnerability) > 0.7),
            (0.25, lambda c: _f(c.environmental.climate_vulnerability) > 0.4),
            (0.10, always),
            label="climate vulnerability",
        ),
        ladder(
            (0.25, lambda c: c.environmental.green_space_access < 30),
            (0.15, lambda c: c.environmental.green_space_access < 60),
            (0.08, always),
            label="green space",
        ),
        ladder(
            (0.30, lambda c: c.socio_economic.education_level >= 4),
            (0.15, lambda c: c.socio_economic.education_level >= 2),
            (0.05, always),
            label="education level",
        ),
        ladder(
            (0.20, lambda c: c.age < 35),
            (0.10, lambda c: c.age < 50),
            label="age",
        ),
        Rule(0.20, when=lambda c: _urbanization(c) == "urban", label="urban"),
        Rule(0.20, when=lambda c: c.health.disease_risk > 50, label="disease risk"),
        Rule(0.15, when=_aware, label="aware"),
        Rule(0.12, when=lambda c: c.political.media_reach > 0.6, label="media reach"),
    ]),
    D.INFRASTRUCTURE: RuleTable([
        Rule(0.05, label="infrastructure base"),
        Rule(
            0.35,
            when=lambda c: c.mobility.transportation_mode not in ("walk", "home"),
            label="vehicle user",
        ),
        ladder(
            (0.25, lambda c: c.mobility.commute_time > 45),
            (0.15, lambda c: c.mobility.commute_time > 20),
            label="commute",
        ),
        ladder(
            (0.30, lambda c: _urbanization(c) == "urban"),
            (0.20, lambda c: _urbanization(c) == "semi-urban"),
            (0.10, always),
            label="urbanization",
        ),
        Rule(0.15, when=lambda c: c.income > 15000, label="higher income"),
        Rule(0.25, when=lambda c: _occupation(c) == "business", label="business owner"),
        Rule(0.15, when=lambda c: 25 <= c.age <= 60, label="working age"),
        Rule(0.15, when=lambda c: _f(c.economic_stability.income_stability) < 0.4, label="unstable income"),
        Rule(0.12, when=_risk_averse, label="risk averse"),
    ]),
    D.TECHNOLOGY: RuleTable([
        Rule(0.03, label="technology base"),
        ladder(
            (0.50, lambda c: _f(c.digital.digital_literacy) > 0.6),
            (0.30, lambda c: _f(c.digital.digital_literacy) > 0.3),
            (0.05, always),
            label="digital literacy",
        ),
        ladder(
            (0.35, lambda c: c.digital.connectivity_level > 0.6),
            (0.15, lambda c: c.digital.connectivity_level > 0.3),
            (0.05, always),
            label="connectivity",
        ),
        ladder(
            (0.30, lambda c: c.digital.digital_services_access > 50),
            (0.15, lambda c: c.digital.digital_services_access > 20),
            label="digital services",
        ),
        ladder(
            (0.25, lambda c: c.age < 35),
            (0.15, lambda c: c.age < 55),
            (0.05, always),
            label="age",
        ),
        ladder(
            (0.25, lambda c: _employment(c) == "formal"),
            (0.20, lambda c: _employment(c) == "self-employed"),
            label="employment",
        ),
        ladder(
            (0.20, lambda c: c.socio_economic.education_level >= 4),
            (0.10, lambda c: c.socio_economic.education_level <= 2),
            label="education level",
        ),
        Rule(0.40, when=lambda c: _occupation(c) in ("student", "technology"), label="tech occupation"),
        Rule(0.15, when=_aware, label="aware"),
        Rule(0.12, when=lambda c: _f(c.behavioral.risk_tolerance) > 0.6, label="risk taker"),
    ]),
    D.SOCIAL: RuleTable([
        Rule(0.05, label="social base"),
        ladder(
            (0.60, lambda c: c.socio_economic.is_poor),
            (0.50, lambda c: c.income < 5000),
            (0.30, lambda c: c.income < 15000),
            label="poverty",
        ),
        ladder(
            (0.25, lambda c: c.socio_economic.wealth_quintile == "q1"),
            (0.15, lambda c: c.socio_economic.wealth_quintile == "q2"),
            label="wealth quintile",
        ),
        ladder(
            (0.50, lambda c: c.demographics.caste in ("sc", "st")),
            (0.35, lambda c: c.demographics.caste == "obc"),
            (0.15, always),
            label="caste",
        ),
        ladder(
            (0.25, lambda c: _f(c.behavioral.caste_consciousness) > 0.7),
            (0.12, lambda c: _f(c.behavioral.caste_consciousness) > 0.3),
            label="caste consciousness",
        ),
        Rule(0.25, when=lambda c: c.demographics.is_female, label="female"),
        ladder(
            (0.20, lambda c: c.age < 25),
            (0.25, lambda c: c.age > 60),
            label="age",
        ),
        Rule(0.20, when=lambda c: c.demographics.dependents >= 4, label="large household"),
        Rule(0.20, when=lambda c: c.demographics.religion != "hindu", label="religious minority"),
        Rule(0.15, when=lambda c: c.behavioral.institutional_trust < 40, label="distrustful"),
        Rule(-0.10, when=_unaware, label="unaware"),
        Rule(0.20, when=_unstable_income, label="unstable income"),
    ]),
    D.SECURITY: RuleTable([
        Rule(0.05, label="security base"),
        Rule(0.40, when=lambda c: c.demographics.is_female, label="female"),
        Rule(0.30, when=lambda c: c.age < 25 or c.age > 60, label="young or elderly"),
        ladder(
            (0.25, lambda c: _urbanization(c) == "urban"),
            (0.15, lambda c: _urbanization(c) == "rural"),
            label="urbanization",
        ),
        Rule(0.25, when=lambda c: c.income < 5000 and _urbanization(c) == "urban", label="urban poor"),
        Rule(0.15, when=lambda c: c.socio_economic.education_level >= 3, label="educated"),
        Rule(0.15, when=lambda c: c.demographics.dependents >= 4, label="large household"),
        Rule(0.15, when=lambda c: c.political.civic_participation > 50, label="civically active"),
        Rule(0.35, when=lambda c: c.legal.criminal_record, label="criminal record"),
        Rule(0.12, when=lambda c: c.political.media_reach > 0.6, label="media reach"),
        ladder(
            (0.20, lambda c: c.demographics.gender_imbalance > 0.3),
            (0.15, lambda c: c.demographics.gender_imbalance < 0.1),
            label="gender imbalance",
        ),
    ]),
    D.GENERAL: RuleTable([
        Rule(0.10, label="general base"),
        ladder(
            (0.15, lambda c: _f(c.information.policy_awareness) > 0.6),
            (0.08, lambda c: _f(c.information.policy_awareness) > 0.2),
            label="awareness",
        ),
        Rule(0.15, when=lambda c: c.political.voting_propensity > 0.7, label="regular voter"),
        Rule(0.12, when=lambda c: c.political.media_reach > 0.6, label="media reach"),
        Rule(0.15, when=_unstable_income, label="unstable income"),
    ]),
}


# ════════════════════════════════════════════════════════════════
# Universal multiplier
# ════════════════════════════════════════════════════════════════


def trust_factor(trust: float) -> float:
    """Skeptics pay more attention to policy; trusting citizens less."""
    if trust < 40:
        return 1.3
    if trust < 50:
        return 1.15
    if trust > 70:
        return 0.9
    return 1.0


def _ordinal_factor(value: float, very_low: float, low: float, high: float) -> float:
    fraction = _f(value)
    if fraction < 0.25:
        return very_low
    if fraction < 0.5:
        return low
    if fraction > 0.65:
        return high
    return 1.0


def awareness_factor(awareness: float) -> float:
    """An unaware citizen cannot react to what they do not know about."""
    fraction = _f(awareness)
    if fraction < 0.2:
        return 0.5
    if fraction < 0.4:
        return 0.75
    if fraction > 0.6:
        return 1.25
    return 1.0


def universal_multiplier(citizen: CitizenProfile) -> float:
    behavioral = citizen.behavioral
    return (
        trust_factor(behavioral.institutional_trust)
        * _ordinal_factor(behavioral.risk_tolerance, 1.4, 1.2, 0.85)
        * _ordinal_factor(behavioral.change_adaptability, 1.35, 1.15, 0.9)
        * awareness_factor(citizen.information.policy_awareness)
    )


def cost_burden_relevance(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    """General-domain term: the larger the cost relative to income, the more it matters."""
    cost = abs(policy.impacts.economic_cost)
    if cost <= 0:
        return 0.0
    ratio = cost / (max(citizen.income, 1.0) * 12)
    return min(0.40, ratio * 2)


def relevance(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    """
    Relevance of ``policy`` to ``citizen`` in [0, 1].

    Args:
        citizen: The citizen being evaluated.
        policy: The parsed policy.

    Returns:
        Base relevance plus the domain rule contributions, scaled by the
        universal multiplier and clamped.
    """
    table = RELEVANCE_RULES.get(policy.domain, RELEVANCE_RULES[PolicyDomain.GENERAL])
    score = BASE_RELEVANCE + table.total(citizen, policy)
    if policy.domain == PolicyDomain.GENERAL:
        score += cost_burden_relevance(citizen, policy)
    return clamp(score * universal_multiplier(citizen), 0.0, 1.0)
