"""
Social Impact Scorer — identity, status and community effects (-1 to +1).

The score is a weighted sum of independently clamped components:

    target-group match      40%   average contribution of matched tags
    caste/community         15%   scaled by caste consciousness
    status change           12%
    community effects       10%
    vulnerability needs     13%
    aspiration              10%
    trust / skepticism      remainder, added unweighted

A component only contributes when it is non-zero. Caste consciousness is
applied once more as a final multiplier (>=4 amplifies by 15%, <=2 dampens by
10%).
"""

from __future__ import annotations

from civora.core.schema import CitizenProfile, PolicyDescriptor, PolicyDomain
from civora.scoring.rules import Rule, RuleTable, clamp, ladder

D = PolicyDomain

SECTION_WEIGHTS = {
    "target_match": 0.40,
    "caste": 0.15,
    "status": 0.12,
    "community": 0.10,
    "vulnerability": 0.13,
    "aspiration": 0.10,
}

AFFIRMATIVE_ACTION_TAGS = ("sc", "st", "obc", "reservation", "quota", "backward")
RELIGION_TAGS = ("hindu", "muslim", "sikh", "christian", "minority", "temple", "mosque", "church")


def _employment(c: CitizenProfile) -> str:
    return c.socio_economic.employment_type


def _occupation(c: CitizenProfile) -> str:
    return c.socio_economic.occupation


def _urban(c: CitizenProfile) -> str:
    return c.demographics.urbanization


def _household(c: CitizenProfile) -> int:
    return c.demographics.household_size


TARGET_MATCH_RULES = RuleTable([
    # age and family
    ladder((0.8, lambda c: 18 <= c.age <= 30), (0.3, lambda c: 31 <= c.age <= 40),
           tags=("youth", "young")),
    ladder((0.9, lambda c: c.age >= 60), (0.4, lambda c: c.age >= 50),
           tags=("elderly", "senior", "old_age")),
    Rule(0.6, tags=("working_age", "adults"), when=lambda c: 25 <= c.age <= 55),
    Rule(0.5, tags=("children", "minors"), when=lambda c: _household(c) >= 4),
    Rule(0.6, tags=("parents", "family"), when=lambda c: _household(c) >= 3),
    Rule(0.2, tags=("parents", "family"), when=lambda c: _household(c) >= 5,
         label="large family", counted=False),
    # gender
    Rule(0.9, tags=("women", "female"), when=lambda c: c.demographics.is_female),
    Rule(0.7, tags=("men", "male"), when=lambda c: c.demographics.sex == "male"),
    # income
    ladder(
        (1.0, lambda c: c.socio_economic.is_poor),
        (0.85, lambda c: c.income < 3000),
        (0.5, lambda c: c.income < 5000),
        tags=("poor", "bpl", "low_income"),
    ),
    ladder((0.8, lambda c: 8000 <= c.income <= 25000), (0.5, lambda c: 5000 <= c.income < 8000),
           tags=("middle_class", "middle_income")),
    ladder((0.9, lambda c: c.income > 30000), (0.6, lambda c: c.income > 20000),
           tags=("rich", "wealthy", "high_income", "apl")),
    # occupation
    ladder(
        (1.0, lambda c: _occupation(c) == "agriculture"),
        (0.4, lambda c: _urban(c) == "rural" and _occupation(c) == "informal"),
        tags=("farmer", "agriculture", "kisan"),
    ),
    Rule(0.8, tags=("laborer", "worker", "mazdoor"),
         when=lambda c: _occupation(c) == "manufacturing" or _employment(c) == "informal"),
    ladder(
        (0.9, lambda c: 18 <= c.age <= 25 and _employment(c) == "unemployed"),
        (0.4, lambda c: c.age <= 30 and c.socio_economic.education_level >= 2),
        tags=("student",),
    ),
    Rule(0.85, tags=("entrepreneur", "business", "vyapari"), when=lambda c: _employment(c) == "self-employed"),
    Rule(0.9, tags=("informal_sector", "unorganized"), when=lambda c: _employment(c) == "informal"),
    Rule(0.85, tags=("formal_sector", "organized", "salaried"), when=lambda c: _employment(c) == "formal"),
    Rule(0.9, tags=("self_employed",), when=lambda c: _employment(c) == "self-employed"),
    Rule(1.0, tags=("unemployed", "jobless"),
         when=lambda c: _employment(c) == "unemployed" or _occupation(c) == "unemployed"),
    Rule(0.7, tags=("government_employee", "sarkari"),
         when=lambda c: _occupation(c) == "services" and _employment(c) == "formal"),
    # caste and religion
    Rule(1.0, tags=("sc", "dalit", "scheduled_caste"), when=lambda c: c.demographics.caste == "sc"),
    Rule(0.2, tags=("sc", "dalit", "scheduled_caste"),
         when=lambda c: c.demographics.caste == "sc" and c.behavioral.caste_consciousness >= 4,
         label="caste-conscious sc", counted=False),
    ladder(
        (1.0, lambda c: c.demographics.caste == "st"),
        (0.5, lambda c: c.demographics.tribal_concentration > 20),
        tags=("st", "tribal", "adivasi"),
    ),
    Rule(0.9, tags=("obc", "other_backward"), when=lambda c: c.demographics.caste == "obc"),
    Rule(0.85, tags=("minority", "minorities"), when=lambda c: c.demographics.religion != "hindu"),
    Rule(0.9, tags=("muslim",), when=lambda c: c.demographics.religion == "muslim"),
    Rule(0.7, tags=("hindu",), when=lambda c: c.demographics.religion == "hindu"),
    Rule(0.9, tags=("sikh",), when=lambda c: c.demographics.religion == "sikh"),
    Rule(0.9, tags=("christian",), when=lambda c: c.demographics.religion == "christian"),
    # geography and mobility
    Rule(0.85, tags=("urban", "city", "metro"), when=lambda c: _urban(c) == "urban"),
    Rule(0.9, tags=("rural", "village", "gramin"), when=lambda c: _urban(c) == "rural"),
    Rule(0.85, tags=("semi-urban", "semi_urban", "town"), when=lambda c: _urban(c) == "semi-urban"),
    ladder((0.8, lambda c: c.mobility.commute_time > 45), (0.5, lambda c: c.mobility.commute_time > 30),
           tags=("commuter", "daily_traveler")),
    Rule(0.9, tags=("bus_users", "public_transport"),
         when=lambda c: c.mobility.transportation_mode in ("bus", "train")),
    Rule(0.85, tags=("car_owners", "vehicle_owners"), when=lambda c: c.mobility.transportation_mode == "car"),
    Rule(0.85, tags=("two_wheeler", "bike_owners"), when=lambda c: c.mobility.transportation_mode == "bike"),
    # tax and housing
    Rule(0.8, tags=("taxpayer", "income_tax"), when=lambda c: c.income > 8000),
    Rule(0.85, tags=("homeowner", "property_owner"), when=lambda c: c.housing.housing_type == "owned"),
    Rule(0.9, tags=("tenant", "renter"), when=lambda c: c.housing.housing_type == "rented"),
    Rule(1.0, tags=("slum", "jhuggi", "informal_housing"),
         when=lambda c: c.housing.housing_type == "informal settlement"),
    # health, literacy, digital, debt
    ladder((0.9, lambda c: c.health.disease_risk > 60), (0.5, lambda c: c.health.disease_risk > 40),
           tags=("patients", "sick", "chronically_ill")),
    Rule(0.8, tags=("disabled", "divyang", "handicapped"),
         when=lambda c: c.health.disease_risk > 70 or c.health.healthcare_access < 30),
    Rule(0.7, tags=("literate", "educated"),
         when=lambda c: c.socio_economic.literacy >= 2 or c.socio_economic.education_level >= 2),
    Rule(0.9, tags=("illiterate", "uneducated"), when=lambda c: c.socio_economic.literacy == 0),
    Rule(0.9, tags=("digitally_excluded", "no_internet"),
         when=lambda c: c.digital.internet_connectivity == "none"),
    Rule(0.85, tags=("debt_ridden", "indebted"), when=lambda c: c.economic_stability.debt_vulnerability > 50),
])


def target_match(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    """Average contribution over the target groups this citizen belongs to (0 if none)."""
    matches = TARGET_MATCH_RULES.matches(citizen, policy)
    counted = sum(1 for match in matches if match.counted)
    if counted == 0:
        return 0.0
    return sum(match.contribution for match in matches) / counted


def caste_multiplier(citizen: CitizenProfile) -> float:
    return 1 + (citizen.behavioral.caste_consciousness - 3) * 0.2


def caste_dynamics(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = 0.0
    multiplier = caste_multiplier(citizen)
    caste = citizen.demographics.caste
    religion = citizen.demographics.religion

    if policy.domain in (D.SOCIAL, D.EDUCATION, D.EMPLOYMENT) and policy.has_tag(*AFFIRMATIVE_ACTION_TAGS):
        if caste in ("sc", "st"):
            score += 0.6 * multiplier
        elif caste == "obc":
            score += 0.4 * multiplier
        elif caste == "general":
            score -= 0.3 * multiplier

    if policy.has_tag(*RELIGION_TAGS):
        own_religion = policy.has_tag(religion) or (religion != "hindu" and policy.has_tag("minority"))
        if own_religion:
            score += 0.5
        elif religion == "hindu" and policy.has_tag("minority"):
            score -= 0.1 * multiplier

    if policy.domain == D.ENVIRONMENT or policy.has_tag("tribal", "forest"):
        if caste == "st" or citizen.demographics.tribal_concentration > 20:
            score += 0.5
    return score


def status_change(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = 0.0
    change = policy.impacts.social_status
    if change != 0:
        sensitivity = 0.5
        if citizen.income > 20000:
            sensitivity += 0.2
        if citizen.socio_economic.education_level >= 3:
            sensitivity += 0.2
        if citizen.socio_economic.wealth_quintile in ("q4", "q5"):
            sensitivity += 0.1
        score += change / 100 * sensitivity

    housing_type = citizen.housing.housing_type
    employment = _employment(citizen)
    if policy.domain == D.EDUCATION:
        if _household(citizen) >= 3 and 25 <= citizen.age <= 50:
            score += 0.3
        if citizen.socio_economic.education_level <= 2:
            score += 0.2
    elif policy.domain == D.HOUSING:
        if housing_type in ("rented", "informal settlement") and policy.has_tag("homeowner", "housing_scheme"):
            score += 0.4
        if housing_type == "owned" and policy.has_tag("property_tax"):
            score -= 0.2
    elif policy.domain == D.EMPLOYMENT:
        if employment in ("informal", "unemployed") and policy.has_tag("formal_sector", "government_job"):
            score += 0.4
    return score


def community_effects(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = 0.0
    if _urban(citizen) == "rural":
        if policy.has_tag("rural", "village", "farmer"):
            score += 0.3
        if policy.domain == D.AGRICULTURE:
            score += 0.4
    if _household(citizen) >= 5:
        if policy.has_tag("family", "children", "parents"):
            score += 0.25
        if policy.impacts.economic_cost > 0:
            score -= 0.15
    if citizen.political.civic_participation > 30 and policy.domain in (
        D.INFRASTRUCTURE, D.ENVIRONMENT, D.SOCIAL
    ):
        score += 0.2
    if citizen.political.voting_behavior == "regular":
        score += 0.1
    if citizen.political.media_consumption in ("social media", "both") and citizen.information.policy_awareness >= 3:
        score += 0.1
    return score


def vulnerability_needs(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = 0.0
    health = citizen.health
    stability = citizen.economic_stability
    env = citizen.environmental

    if policy.domain == D.HEALTH:
        if health.disease_risk > 50:
            score += 0.5
        if health.healthcare_access < 40:
            score += 0.4
        if citizen.age > 60:
            score += 0.3
        if health.bmi_category == "underweight":
            score += 0.2

    if policy.domain == D.SOCIAL or policy.has_tag("welfare", "subsidy"):
        if citizen.socio_economic.is_poor:
            score += 0.6
        if stability.income_stability <= 2:
            score += 0.3
        if stability.debt_vulnerability > 50:
            score += 0.3
        if stability.savings_rate < 0:
            score += 0.2

    if policy.domain == D.HOUSING:
        if citizen.housing.housing_type == "informal settlement":
            score += 0.6
        if citizen.housing.housing_cost_burden > 40:
            score += 0.3

    if policy.domain == D.ENVIRONMENT:
        if env.climate_vulnerability >= 4:
            score += 0.5
        if env.pollution_exposure > 200:
            score += 0.4
        if env.green_space_access < 10:
            score += 0.2

    if policy.domain == D.TECHNOLOGY or policy.has_tag("digital"):
        if citizen.digital.internet_connectivity == "none":
            score += -0.4 if policy.has_tag("mandatory", "compulsory") else 0.3
        if citizen.digital.digital_literacy <= 2:
            score -= 0.2

    if policy.domain == D.SECURITY or policy.has_tag("law", "police"):
        if citizen.legal.criminal_record:
            score -= 0.5
        if citizen.legal.citizenship_status != "citizen":
            score -= 0.4
    return score


def aspiration(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = 0.0
    if citizen.age <= 35:
        if policy.domain in (D.EMPLOYMENT, D.EDUCATION, D.TECHNOLOGY):
            score += 0.3
        if policy.has_tag("skill", "training", "startup"):
            score += 0.4
    if citizen.socio_economic.wealth_quintile in ("q1", "q2") and policy.has_tag(
        "upliftment", "welfare", "development"
    ):
        score += 0.35
    if citizen.mobility.geographic_mobility >= 4 and policy.domain in (D.INFRASTRUCTURE, D.EMPLOYMENT):
        score += 0.2
    if citizen.behavioral.change_adaptability >= 4 and policy.domain in (D.TECHNOLOGY, D.INFRASTRUCTURE):
        score += 0.25
    if citizen.behavioral.risk_tolerance >= 4 and policy.has_tag("startup", "entrepreneur", "innovation"):
        score += 0.3
    return score


def trust_adjustment(citizen: CitizenProfile) -> float:
    score = 0.0
    trust = citizen.behavioral.institutional_trust / 100
    if trust < 0.4:
        score -= 0.2
    elif trust > 0.7:
        score += 0.15
    awareness = citizen.information.policy_awareness
    if awareness >= 4:
        score += 0.1
    elif awareness <= 2:
        score -= 0.1
    if citizen.political.voting_behavior == "non-voter":
        score -= 0.15
    return score


def social_components(citizen: CitizenProfile, policy: PolicyDescriptor) -> dict[str, float]:
    """Each component clamped to [-1, 1], before weighting."""
    return {
        "target_match": clamp(target_match(citizen, policy)),
        "caste": clamp(caste_dynamics(citizen, policy)),
        "status": clamp(status_change(citizen, policy)),
        "community": clamp(community_effects(citizen, policy)),
        "vulnerability": clamp(vulnerability_needs(citizen, policy)),
        "aspiration": clamp(aspiration(citizen, policy)),
        "trust": clamp(trust_adjustment(citizen)),
    }


def social_impact(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    """
    Social/identity impact of ``policy`` on ``citizen`` in [-1, 1].

    Args:
        citizen: The citizen being evaluated.
        policy: The parsed policy.

    Returns:
        Weighted component sum, clamped, then scaled by caste consciousness.
    """
    components = social_components(citizen, policy)
    total = components["trust"]
    for name, weight in SECTION_WEIGHTS.items():
        if components[name] != 0:
            total += components[name] * weight

    score = clamp(total)
    consciousness = citizen.behavioral.caste_consciousness
    if consciousness >= 4:
        score *= 1.15
    elif consciousness <= 2:
        score *= 0.9
    return clamp(score)
