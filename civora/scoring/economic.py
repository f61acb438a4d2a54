"""
Economic Impact Scorer — personal cost/benefit of a policy (-1 to +1).

Two stages:

1. ``affectedness`` (0-1.5) matches the policy's target groups against the
   citizen's attributes. Income-bracket and geography tags apply in every
   domain; each domain adds its own tag rules; a vulnerability bonus (poverty
   with unstable income, debt, no savings, large poor household) is added on
   top. Every contribution is non-negative, so matching more tags never lowers
   affectedness.
2. ``economic_impact`` turns macro cost/benefit into personal annual figures
   (macro × affectedness), adds a trust-discounted future benefit, spreads the
   result over the household, normalizes it against monthly income and passes
   it through ``tanh`` scaled by income sensitivity and a vulnerability factor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from civora.core.schema import AffordabilityStatus, CitizenProfile, PolicyDescriptor, PolicyDomain
from civora.scoring.rules import Rule, RuleTable, clamp, ladder

D = PolicyDomain

MAX_AFFECTEDNESS = 1.5
AFFORDABLE_SHARE_OF_INCOME = 0.2
DEPENDENT_BURDEN = 0.12


def _mode(c: CitizenProfile) -> str:
    return c.mobility.transportation_mode


def _occupation(c: CitizenProfile) -> str:
    return c.socio_economic.occupation


def _employment(c: CitizenProfile) -> str:
    return c.socio_economic.employment_type


def _urban(c: CitizenProfile) -> str:
    return c.demographics.urbanization


def _unstable_income(c: CitizenProfile) -> bool:
    return c.economic_stability.income_stability <= 2


# ════════════════════════════════════════════════════════════════
# Target-group rule tables
# ════════════════════════════════════════════════════════════════

INCOME_RULES = RuleTable([
    ladder(
        (0.80, lambda c: c.socio_economic.is_poor),
        (0.75, lambda c: c.income < 3000),
        (0.50, lambda c: c.income < 5000),
        tags=("poor", "bpl", "low_income"),
    ),
    Rule(0.7, tags=("lower_middle", "lower_class"), when=lambda c: 5000 <= c.income < 10000),
    Rule(0.7, tags=("middle_class", "middle_income"), when=lambda c: 10000 <= c.income < 25000),
    Rule(0.7, tags=("upper_middle", "rich", "high_income"), when=lambda c: c.income >= 25000),
    Rule(0.4, tags=("all_income_groups",)),
])

GEOGRAPHY_RULES = RuleTable([
    Rule(0.6, tags=("urban",), when=lambda c: _urban(c) == "urban"),
    Rule(0.6, tags=("semi-urban",), when=lambda c: _urban(c) == "semi-urban"),
    Rule(0.6, tags=("rural",), when=lambda c: _urban(c) == "rural"),
    Rule(0.5, tags=("tier1_cities",), when=lambda c: _urban(c) == "urban"),
    Rule(0.5, tags=("tier2_cities",), when=lambda c: _urban(c) == "semi-urban"),
    Rule(0.3, tags=("all_areas",)),
    Rule(0.4, tags=("long_commute",), when=lambda c: c.mobility.commute_time > 60),
    Rule(0.4, tags=("medium_commute",), when=lambda c: 30 < c.mobility.commute_time <= 60),
])

DOMAIN_RULES = RuleTable([
    # transport
    Rule(0.8, domains=(D.TRANSPORT,), tags=("public_transport_users", "bus_users"),
         when=lambda c: _mode(c) == "bus"),
    Rule(0.8, domains=(D.TRANSPORT,), tags=("train_users", "rail_users"),
         when=lambda c: _mode(c) == "train"),
    Rule(0.7, domains=(D.TRANSPORT,), tags=("auto_users", "rikshaw_users"),
         when=lambda c: _mode(c) == "auto"),
    Rule(0.8, domains=(D.TRANSPORT,), tags=("car_owners", "private_vehicle_users"),
         when=lambda c: _mode(c) == "car"),
    Rule(0.7, domains=(D.TRANSPORT,), tags=("motorcycle_owners", "bike_owners"),
         when=lambda c: _mode(c) == "bike"),
    Rule(0.5, domains=(D.TRANSPORT,), tags=("walking_commuters",),
         when=lambda c: _mode(c) == "walk"),
    Rule(0.5, domains=(D.TRANSPORT,), tags=("commuters",),
         when=lambda c: c.mobility.commute_time > 30),
    Rule(0.3, domains=(D.TRANSPORT,), tags=("all_transport_users",)),
    # housing
    Rule(0.7, domains=(D.HOUSING,), tags=("homeowners", "property_owners"),
         when=lambda c: c.housing.housing_type == "owned"),
    Rule(0.85, domains=(D.HOUSING,), tags=("renters", "tenants", "renting_population"),
         when=lambda c: c.housing.housing_type == "rented"),
    Rule(0.9, domains=(D.HOUSING,), tags=("slum_dwellers", "informal_settlement", "urban_poor"),
         when=lambda c: c.housing.housing_type == "informal settlement"),
    Rule(0.7, domains=(D.HOUSING,), tags=("govt_housing_beneficiaries", "housing_scheme_recipients"),
         when=lambda c: c.housing.housing_type == "government"),
    Rule(0.6, domains=(D.HOUSING,), tags=("high_housing_burden",),
         when=lambda c: c.housing.housing_cost_burden > 40),
    Rule(0.5, domains=(D.HOUSING,), tags=("first_time_buyers",), when=lambda c: 25 <= c.age <= 40),
    Rule(0.5, domains=(D.HOUSING,), tags=("large_families",),
         when=lambda c: c.demographics.household_size >= 5),
    Rule(0.2, domains=(D.HOUSING,), tags=("all_housing_consumers",)),
    # health
    ladder(
        (0.75, lambda c: c.age >= 60),
        (0.40, lambda c: c.age >= 50),
        domains=(D.HEALTH,), tags=("elderly", "seniors", "age_60_plus"),
    ),
    Rule(0.6, domains=(D.HEALTH,), tags=("children", "pediatric"),
         when=lambda c: c.age < 18 or c.demographics.dependents > 0),
    Rule(0.6, domains=(D.HEALTH,), tags=("pregnant_women", "maternal"),
         when=lambda c: c.demographics.is_female and 18 <= c.age <= 45),
    Rule(0.7, domains=(D.HEALTH,), tags=("chronic_patients", "disease_prone"),
         when=lambda c: c.health.disease_risk > 60),
    Rule(0.7, domains=(D.HEALTH,), tags=("low_healthcare_access", "underserved"),
         when=lambda c: c.health.healthcare_access < 30),
    Rule(0.6, domains=(D.HEALTH,), tags=("low_income_health",), when=lambda c: c.income < 5000),
    Rule(0.2, domains=(D.HEALTH,), tags=("all_citizens", "universal_coverage")),
    # education
    Rule(0.85, domains=(D.EDUCATION,), tags=("students",), when=lambda c: c.age < 25),
    Rule(0.7, domains=(D.EDUCATION,), tags=("school_children",),
         when=lambda c: c.age < 18 or c.demographics.dependents > 0),
    Rule(0.75, domains=(D.EDUCATION,), tags=("higher_education_students",),
         when=lambda c: 18 <= c.age <= 25),
    Rule(0.8, domains=(D.EDUCATION,), tags=("low_income_students",), when=lambda c: c.income < 5000),
    Rule(0.6, domains=(D.EDUCATION,), tags=("first_generation",),
         when=lambda c: c.socio_economic.literacy == 0),
    Rule(0.6, domains=(D.EDUCATION,), tags=("parents",), when=lambda c: c.demographics.dependents > 0),
    Rule(0.8, domains=(D.EDUCATION,), tags=("teachers",), when=lambda c: _occupation(c) == "teacher"),
    Rule(0.2, domains=(D.EDUCATION,), tags=("all_students",)),
    # agriculture
    Rule(1.0, domains=(D.AGRICULTURE,), tags=("farmers", "agriculture_workers"),
         when=lambda c: _occupation(c) == "agriculture"),
    Rule(0.6, domains=(D.AGRICULTURE,), tags=("rural_population",), when=lambda c: _urban(c) == "rural"),
    Rule(0.7, domains=(D.AGRICULTURE,), tags=("agricultural_laborers",),
         when=lambda c: _occupation(c) == "laborer"),
    Rule(0.75, domains=(D.AGRICULTURE,), tags=("livestock_owners",),
         when=lambda c: _occupation(c) == "cattle rearing"),
    Rule(0.8, domains=(D.AGRICULTURE,), tags=("climate_vulnerable_farmers",),
         when=lambda c: c.environmental.climate_vulnerability >= 4 and _urban(c) == "rural"),
    Rule(0.7, domains=(D.AGRICULTURE,), tags=("landless_farmers",),
         when=lambda c: c.socio_economic.is_poor and _urban(c) == "rural"),
    # employment
    Rule(0.9, domains=(D.EMPLOYMENT,), tags=("unemployed",), when=lambda c: _employment(c) == "unemployed"),
    Rule(0.8, domains=(D.EMPLOYMENT,), tags=("informal_workers",), when=lambda c: _employment(c) == "informal"),
    Rule(0.5, domains=(D.EMPLOYMENT,), tags=("formal_workers",), when=lambda c: _employment(c) == "formal"),
    Rule(0.7, domains=(D.EMPLOYMENT,), tags=("self_employed",),
         when=lambda c: _employment(c) == "self-employed"),
    Rule(0.8, domains=(D.EMPLOYMENT,), tags=("laborers",), when=lambda c: _occupation(c) == "laborer"),
    Rule(0.6, domains=(D.EMPLOYMENT,), tags=("youth_employment",), when=lambda c: c.age < 30),
    Rule(0.6, domains=(D.EMPLOYMENT,), tags=("women_employment",), when=lambda c: c.demographics.is_female),
    Rule(0.65, domains=(D.EMPLOYMENT,), tags=("marginalized_workers",),
         when=lambda c: c.demographics.caste in ("sc", "st") or c.income < 5000),
    # tax
    Rule(0.8, domains=(D.TAX,), tags=("high_earners",), when=lambda c: c.income > 25000),
    Rule(0.6, domains=(D.TAX,), tags=("middle_income",), when=lambda c: 10000 <= c.income < 25000),
    Rule(0.85, domains=(D.TAX,), tags=("business_owners", "entrepreneurs"),
         when=lambda c: _occupation(c) == "business"),
    Rule(0.7, domains=(D.TAX,), tags=("salaried_workers",), when=lambda c: _employment(c) == "formal"),
    Rule(0.5, domains=(D.TAX,), tags=("property_owners",),
         when=lambda c: c.housing.housing_type != "informal settlement"),
    Rule(0.6, domains=(D.TAX,), tags=("savers",), when=lambda c: c.economic_stability.savings_rate > 10),
    Rule(0.4, domains=(D.TAX,), tags=("taxpayers",), when=lambda c: c.income > 5000),
    # social
    Rule(0.85, domains=(D.SOCIAL,), tags=("scheduled_caste", "sc", "scheduled_tribe", "st"),
         when=lambda c: c.demographics.caste in ("sc", "st")),
    Rule(0.75, domains=(D.SOCIAL,), tags=("obc",), when=lambda c: c.demographics.caste == "obc"),
    Rule(0.7, domains=(D.SOCIAL,), tags=("minorities", "minority_religions"),
         when=lambda c: c.demographics.religion != "hindu"),
    Rule(0.75, domains=(D.SOCIAL,), tags=("women",), when=lambda c: c.demographics.is_female),
    Rule(0.85, domains=(D.SOCIAL,), tags=("women_entrepreneurs",),
         when=lambda c: c.demographics.is_female and _occupation(c) == "business"),
    Rule(0.6, domains=(D.SOCIAL,), tags=("youth",), when=lambda c: c.age < 30),
    Rule(0.8, domains=(D.SOCIAL,), tags=("elderly", "seniors"), when=lambda c: c.age >= 60),
    Rule(0.75, domains=(D.SOCIAL,), tags=("pwd", "disabled"),
         when=lambda c: c.health.disease_risk > 70 or c.health.healthcare_access < 30),
    Rule(0.8, domains=(D.SOCIAL,), tags=("single_mothers",),
         when=lambda c: c.demographics.is_female and c.demographics.dependents > 0),
    Rule(0.7, domains=(D.SOCIAL,), tags=("vulnerable_populations",),
         when=lambda c: c.socio_economic.is_poor or c.income < 5000),
    # security
    Rule(0.8, domains=(D.SECURITY,), tags=("women_safety",), when=lambda c: c.demographics.is_female),
    Rule(0.75, domains=(D.SECURITY,), tags=("child_safety",), when=lambda c: c.age < 18),
    Rule(0.7, domains=(D.SECURITY,), tags=("elderly_safety",), when=lambda c: c.age >= 60),
    Rule(0.7, domains=(D.SECURITY,), tags=("law_enforcement",),
         when=lambda c: c.legal.criminal_record or _occupation(c) == "security"),
    Rule(0.6, domains=(D.SECURITY,), tags=("urban_security",), when=lambda c: _urban(c) == "urban"),
    Rule(0.3, domains=(D.SECURITY,), tags=("all_citizens_safety",)),
    # environment
    Rule(0.7, domains=(D.ENVIRONMENT,), tags=("climate_affected",), when=lambda c: _urban(c) == "rural"),
    Rule(0.6, domains=(D.ENVIRONMENT,), tags=("pollution_affected",), when=lambda c: _urban(c) == "urban"),
    Rule(0.75, domains=(D.ENVIRONMENT,), tags=("climate_vulnerable",),
         when=lambda c: c.environmental.climate_vulnerability >= 4),
    Rule(0.2, domains=(D.ENVIRONMENT,), tags=("all_citizens",)),
    # technology
    Rule(0.8, domains=(D.TECHNOLOGY,), tags=("digital_workers",),
         when=lambda c: _occupation(c) == "technology"),
    Rule(0.6, domains=(D.TECHNOLOGY,), tags=("digital_natives",), when=lambda c: c.age < 30),
    Rule(0.5, domains=(D.TECHNOLOGY,), tags=("digital_divide_affected",),
         when=lambda c: _occupation(c) != "technology" and c.age > 50),
    Rule(0.2, domains=(D.TECHNOLOGY,), tags=("all_citizens",)),
    # infrastructure
    Rule(0.7, domains=(D.INFRASTRUCTURE,), tags=("businesses",), when=lambda c: _occupation(c) == "business"),
    Rule(0.6, domains=(D.INFRASTRUCTURE,), tags=("transport_users",),
         when=lambda c: c.mobility.commute_time > 30),
    Rule(0.6, domains=(D.INFRASTRUCTURE,), tags=("rural_population",), when=lambda c: _urban(c) == "rural"),
    Rule(0.2, domains=(D.INFRASTRUCTURE,), tags=("all_citizens",)),
])

VULNERABILITY_BONUS = RuleTable([
    Rule(0.25, when=lambda c: c.socio_economic.is_poor and _unstable_income(c), label="poor and unstable"),
    Rule(0.15, when=lambda c: c.economic_stability.debt_vulnerability > 60, label="indebted"),
    Rule(0.10, when=lambda c: c.economic_stability.savings_rate < 5, label="no savings"),
    Rule(0.15, when=lambda c: c.demographics.household_size >= 5 and c.income < 5000,
         label="large poor household"),
])

AFFECTEDNESS_RULES = INCOME_RULES + GEOGRAPHY_RULES + DOMAIN_RULES


def affectedness(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    """
    How strongly the policy's target groups match this citizen.

    Returns:
        0.0 (not targeted) to 1.5 (heavily targeted by several criteria).
    """
    score = AFFECTEDNESS_RULES.total(citizen, policy) + VULNERABILITY_BONUS.total(citizen, policy)
    return clamp(score, 0.0, MAX_AFFECTEDNESS)


# ════════════════════════════════════════════════════════════════
# Economic impact
# ════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EconomicImpact:
    """Economic score plus every intermediate figure used to reach it (annual ₹)."""

    economic_score: float
    affectedness: float
    personal_cost: float
    personal_benefit: float
    direct_net_impact: float
    discounted_future_impact: float
    total_net_impact: float
    monthly_impact: float
    monthly_impact_ratio: float
    affordability_status: AffordabilityStatus
    vulnerability_factor: float
    sensitivity_multiplier: float
    household_multiplier: float
    trust_level: float

    @property
    def is_directly_targeted(self) -> bool:
        return self.affectedness > 0.5

    @property
    def can_afford(self) -> bool:
        return self.affordability_status != AffordabilityStatus.UNSUSTAINABLE


def income_sensitivity(income: float) -> float:
    """Poorer citizens feel the same absolute cost far more."""
    if income < 5000:
        return 4.0
    if income < 15000:
        return 2.5
    return 1.0


def future_discount_rate(trust: float) -> float:
    """Share of a promised future benefit a citizen actually counts."""
    return 0.3 + 0.5 * (1 - trust / 100)


def vulnerability_factor(citizen: CitizenProfile) -> float:
    factor = 1.0
    if citizen.economic_stability.debt_vulnerability > 60:
        factor *= 1.4
    if _unstable_income(citizen):
        factor *= 1.3
    if citizen.socio_economic.is_poor:
        factor *= 1.2
    if citizen.economic_stability.savings_rate < 5:
        factor *= 1.15
    return factor


def classify_affordability(monthly_impact: float, monthly_income: float) -> AffordabilityStatus:
    limit = monthly_income * AFFORDABLE_SHARE_OF_INCOME
    if monthly_impact < -limit:
        return AffordabilityStatus.UNSUSTAINABLE
    if monthly_impact < -limit * 0.5:
        return AffordabilityStatus.STRAINED
    if monthly_impact > limit:
        return AffordabilityStatus.MAJOR_BENEFIT
    return AffordabilityStatus.SUSTAINABLE


def economic_impact(citizen: CitizenProfile, policy: PolicyDescriptor) -> EconomicImpact:
    """
    Personalize the policy's macro cost/benefit for one citizen.

    Args:
        citizen: The citizen being evaluated.
        policy: The parsed policy.

    Returns:
        EconomicImpact with ``economic_score`` in [-1, 1] (negative = net cost).
    """
    aff = affectedness(citizen, policy)
    monthly_income = max(citizen.socio_economic.monthly_income, 1.0)
    trust_level = citizen.behavioral.institutional_trust / 100

    personal_cost = policy.impacts.economic_cost * aff
    personal_benefit = policy.impacts.economic_benefit * aff
    direct_net = personal_benefit - personal_cost
    discounted_future = (
        policy.promises.future_economic_benefit
        * aff
        * future_discount_rate(citizen.behavioral.institutional_trust)
    )

    household_multiplier = 1.0 + citizen.demographics.dependents * DEPENDENT_BURDEN
    total_net = (direct_net + discounted_future) / household_multiplier
    monthly_impact = total_net / 12
    impact_ratio = monthly_impact / monthly_income

    sensitivity = income_sensitivity(citizen.income)
    raw_score = math.tanh(impact_ratio * sensitivity)
    vulnerability = vulnerability_factor(citizen)

    return EconomicImpact(
        economic_score=clamp(raw_score * vulnerability),
        affectedness=aff,
        personal_cost=personal_cost,
        personal_benefit=personal_benefit,
        direct_net_impact=direct_net,
        discounted_future_impact=discounted_future,
        total_net_impact=total_net,
        monthly_impact=monthly_impact,
        monthly_impact_ratio=impact_ratio * 100,
        affordability_status=classify_affordability(monthly_impact, monthly_income),
        vulnerability_factor=vulnerability,
        sensitivity_multiplier=sensitivity,
        household_multiplier=household_multiplier,
        trust_level=trust_level,
    )
