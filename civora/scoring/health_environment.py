"""
Health/Environment Impact Scorer — vulnerability-weighted health and
environmental effects of a policy (-1 to +1).

Two latent traits are derived first:

    health vulnerability     base 0.5, capped at 1.5 (age U-curve, disease risk,
                             nutrition, healthcare access, poverty, maternal age)
    environment sensitivity  base 0.3, capped at 1.2 (education, literacy, media,
                             income, urban pollution, tribal/agricultural ties)

Sections are scored independently, each clamped to [-1, 1] and weighted:

    health          50%   domain health or a health tag
    environment     35%   domain environment or an environment tag
    occupational     8%
    housing          5%
    lifestyle        2%
    transport       added unweighted (transport domain only)

A health-literacy modifier and an institutional-trust modifier scale the total.
When no section fired at all, the score is instead the two-term stand-in
``health/100 * vulnerability * 0.6 + env/100 * sensitivity * 0.4``, clamped and
left unmodified.
"""

from __future__ import annotations

from dataclasses import dataclass

from civora.core.schema import CitizenProfile, PolicyDescriptor, PolicyDomain
from civora.scoring.rules import clamp

D = PolicyDomain

SECTION_WEIGHTS = {
    "health": 0.50,
    "environment": 0.35,
    "occupational": 0.08,
    "housing": 0.05,
    "lifestyle": 0.02,
    "transport": 1.0,
}

HEALTH_TAGS = ("health", "hospital", "medicine", "doctor", "patient", "healthcare")
ENVIRONMENT_TAGS = ("environment", "pollution", "climate", "forest", "water", "air")
OCCUPATIONAL_TAGS = ("worker", "occupational", "safety", "labor", "factory")
LIFESTYLE_TAGS = ("fitness", "yoga", "sports", "exercise", "wellness", "prevention")


# ════════════════════════════════════════════════════════════════
# Latent sensitivities
# ════════════════════════════════════════════════════════════════


def health_vulnerability(citizen: CitizenProfile) -> float:
    """How strongly a health change lands on this citizen (0.5 baseline, max 1.5)."""
    health = citizen.health
    demo = citizen.demographics
    age = citizen.age
    value = 0.5

    if age < 5:
        value += 0.4
    elif age < 18:
        value += 0.2
    elif 60 <= age < 70:
        value += 0.25
    elif age >= 70:
        value += 0.4

    if health.disease_risk > 70:
        value += 0.35
    elif health.disease_risk > 50:
        value += 0.2
    elif health.disease_risk > 30:
        value += 0.1

    value += {"underweight": 0.25, "obese": 0.2, "overweight": 0.1}.get(health.bmi_category, 0.0)

    if health.healthcare_access < 30:
        value += 0.25
    elif health.healthcare_access < 50:
        value += 0.15
    elif health.healthcare_access > 80:
        value -= 0.1

    if citizen.socio_economic.is_poor:
        value += 0.2
    elif citizen.income < 5000:
        value += 0.15

    if demo.is_female and 18 <= age <= 45:
        value += 0.1
    if demo.is_female and 20 <= age <= 35 and demo.household_size >= 2:
        value += 0.05

    return min(1.5, value)


def environment_sensitivity(citizen: CitizenProfile) -> float:
    """How much this citizen cares about environmental change (0.3 baseline, max 1.2)."""
    education = citizen.socio_economic.education_level
    literacy = citizen.health.health_literacy
    income = citizen.income
    value = 0.3

    if education >= 4:
        value += 0.35
    elif education >= 3:
        value += 0.25
    elif education >= 2:
        value += 0.1

    if literacy >= 4:
        value += 0.15
    elif literacy >= 3:
        value += 0.08

    if citizen.political.media_consumption in ("both", "social media"):
        value += 0.1
    if citizen.information.policy_awareness >= 4:
        value += 0.1

    if income > 25000:
        value += 0.2
    elif income > 15000:
        value += 0.1
    elif income < 5000:
        value -= 0.15

    if citizen.demographics.urbanization == "urban" and citizen.environmental.pollution_exposure > 100:
        value += 0.15
    if citizen.demographics.caste == "st" or citizen.demographics.tribal_concentration > 20:
        value += 0.2
    if citizen.socio_economic.occupation == "agriculture":
        value += 0.25

    return min(1.2, value)


# ════════════════════════════════════════════════════════════════
# Sections
# ════════════════════════════════════════════════════════════════


def health_section(citizen: CitizenProfile, policy: PolicyDescriptor, vulnerability: float) -> float:
    health = citizen.health
    demo = citizen.demographics
    stability = citizen.economic_stability
    age = citizen.age
    score = 0.0

    if policy.impacts.health_impact:
        score += policy.impacts.health_impact / 100 * vulnerability

    if policy.has_tag("healthcare", "hospital", "clinic"):
        if health.healthcare_access < 40:
            score += 0.5
        elif health.healthcare_access < 60:
            score += 0.3
        else:
            score += 0.15

    if policy.has_tag("free_healthcare", "ayushman", "insurance"):
        if citizen.socio_economic.is_poor:
            score += 0.6
        elif citizen.income < 8000:
            score += 0.45
        elif citizen.income < 15000:
            score += 0.3
        else:
            score += 0.15

    if policy.has_tag("medicine", "drug", "pharmacy"):
        if health.disease_risk > 50:
            score += 0.4
        elif age > 60:
            score += 0.35
        else:
            score += 0.15

    if policy.has_tag("maternal", "pregnancy", "anganwadi"):
        if demo.is_female and 18 <= age <= 45:
            score += 0.5
        if demo.household_size >= 3:
            score += 0.3

    if policy.has_tag("child_health", "immunization", "vaccination"):
        if demo.household_size >= 3 and 20 <= age <= 50:
            score += 0.45

    if policy.has_tag("nutrition", "midday_meal", "ration", "pds"):
        if health.bmi_category == "underweight":
            score += 0.55
        if citizen.socio_economic.is_poor:
            score += 0.45
        if demo.household_size >= 4:
            score += 0.25

    if policy.has_tag("mental_health", "counseling", "stress"):
        if stability.debt_vulnerability > 50:
            score += 0.4
        if stability.income_stability <= 2:
            score += 0.3
        if demo.urbanization == "urban" and citizen.mobility.commute_time > 45:
            score += 0.25

    if policy.has_tag("elderly", "senior", "geriatric"):
        if age >= 60:
            score += 0.55
        elif age >= 50:
            score += 0.25

    if policy.has_tag("diabetes", "heart", "cancer", "tb", "malaria", "chronic"):
        if health.disease_risk > 60:
            score += 0.5
        elif health.disease_risk > 40:
            score += 0.3

    if policy.has_tag("rural_health", "phc", "asha") and demo.urbanization == "rural":
        score += 0.45
        if health.healthcare_access < 50:
            score += 0.2

    return score


def environment_section(citizen: CitizenProfile, policy: PolicyDescriptor, sensitivity: float) -> float:
    env = citizen.environmental
    urbanization = citizen.demographics.urbanization
    poor = citizen.socio_economic.is_poor
    housing_type = citizen.housing.housing_type
    tribal = citizen.demographics.caste == "st" or citizen.demographics.tribal_concentration > 20
    education = citizen.socio_economic.education_level
    score = 0.0

    if policy.impacts.environment_impact:
        score += policy.impacts.environment_impact / 100 * sensitivity

    # Multipliers inside a block scale everything accumulated so far.
    if policy.has_tag("air", "pollution", "emissions", "aqi"):
        aqi = env.pollution_exposure
        if aqi > 200:
            score += 0.6
        elif aqi > 150:
            score += 0.45
        elif aqi > 100:
            score += 0.3
        elif aqi > 50:
            score += 0.15
        if urbanization == "urban":
            score *= 1.2
        if citizen.health.disease_risk > 50 or citizen.age > 60 or citizen.age < 10:
            score *= 1.25

    if policy.has_tag("water", "drinking_water", "sanitation"):
        score += {"rural": 0.5, "semi-urban": 0.35}.get(urbanization, 0.2)
        if poor:
            score += 0.25
        if housing_type == "informal settlement":
            score += 0.4

    if policy.has_tag("climate", "flood", "drought", "cyclone", "disaster"):
        if env.climate_vulnerability >= 4:
            score += 0.55
        elif env.climate_vulnerability >= 3:
            score += 0.35
        else:
            score += 0.15
        if citizen.socio_economic.occupation == "agriculture":
            score += 0.4
        if urbanization == "rural":
            score += 0.2

    if policy.has_tag("forest", "conservation", "wildlife", "biodiversity"):
        if tribal:
            if policy.has_tag("rights", "access"):
                score += 0.5
            elif policy.has_tag("restriction", "eviction"):
                score -= 0.6
            else:
                score += 0.3
        if urbanization == "rural":
            score += 0.2
        if urbanization == "urban" and education >= 3:
            score += 0.25

    if policy.has_tag("park", "green_space", "garden", "plantation", "urban_forest"):
        if env.green_space_access < 15:
            score += 0.45
        elif env.green_space_access < 30:
            score += 0.3
        else:
            score += 0.15
        if urbanization == "urban":
            score *= 1.2
        if citizen.health.disease_risk > 40:
            score += 0.1

    if policy.has_tag("waste", "garbage", "recycling", "swachh", "cleanliness"):
        score += {"urban": 0.35, "semi-urban": 0.25}.get(urbanization, 0.0)
        if housing_type == "informal settlement":
            score += 0.4
        if citizen.health.health_literacy >= 3:
            score += 0.1

    if policy.has_tag("solar", "renewable", "clean_energy", "electric_vehicle"):
        if citizen.income > 20000:
            score += 0.4
        elif citizen.income > 10000:
            score += 0.25
        if urbanization == "rural" and policy.has_tag("solar"):
            score += 0.35
        if education >= 3:
            score += 0.15

    return score


def occupational_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    occupation = citizen.socio_economic.occupation
    employment = citizen.socio_economic.employment_type
    score = 0.0
    if occupation == "manufacturing":
        if policy.has_tag("safety", "protection", "insurance"):
            score += 0.5
        if employment == "informal":
            score += 0.25
    if occupation == "agriculture":
        if policy.has_tag("pesticide", "chemical", "organic"):
            score += 0.4
        if policy.has_tag("heat", "shade", "rest"):
            score += 0.35
    if employment == "informal" and policy.has_tag("informal", "unorganized"):
        score += 0.4
    if policy.has_tag("construction", "builder") and occupation in ("manufacturing", "informal", "laborer"):
        score += 0.45
    return score


def housing_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = 0.0
    if citizen.housing.housing_type == "informal settlement":
        if policy.has_tag("sanitation", "toilet", "sewage"):
            score += 0.55
        if policy.has_tag("drainage", "waterlogging"):
            score += 0.4
    if citizen.demographics.household_size >= 6 and policy.has_tag("housing", "space"):
        score += 0.3
    if policy.has_tag("ventilation", "indoor_air", "lpg", "cooking_fuel"):
        if citizen.socio_economic.is_poor or citizen.demographics.urbanization == "rural":
            score += 0.45
    return score


def lifestyle_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = 0.0
    if citizen.income > 15000 and citizen.socio_economic.education_level >= 3:
        score += 0.35
    if citizen.health.disease_risk > 40:
        score += 0.3
    if 40 <= citizen.age <= 65:
        score += 0.2
    if citizen.demographics.urbanization == "urban":
        score += 0.15
    return score


def transport_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    mobility = citizen.mobility
    mode = mobility.transportation_mode
    score = 0.0
    if mobility.commute_time > 60 and policy.has_tag("reduce_commute", "work_from_home"):
        score += 0.4
    if policy.has_tag("cycle", "walking", "pedestrian"):
        if mode in ("walk", "bike"):
            score += 0.3
        if citizen.health.health_literacy >= 3 and citizen.age < 50:
            score += 0.2
    if policy.has_tag("public_transport", "metro", "bus"):
        if citizen.demographics.urbanization == "urban" and citizen.environmental.pollution_exposure > 100:
            score += 0.25
    if policy.has_tag("safety", "accident", "helmet"):
        if mode == "bike":
            score += 0.35
        if mode == "car":
            score += 0.25
    return score


@dataclass(frozen=True)
class HealthEnvironmentSections:
    """Which sections applied to a (citizen, policy) pair, with their clamped scores."""

    scores: dict[str, float]
    vulnerability: float
    sensitivity: float

    @property
    def fired(self) -> bool:
        return bool(self.scores)


def health_environment_sections(citizen: CitizenProfile, policy: PolicyDescriptor) -> HealthEnvironmentSections:
    vulnerability = health_vulnerability(citizen)
    sensitivity = environment_sensitivity(citizen)
    domain = policy.domain
    scores: dict[str, float] = {}

    if domain == D.HEALTH or policy.has_tag(*HEALTH_TAGS):
        scores["health"] = clamp(health_section(citizen, policy, vulnerability))
    if domain == D.ENVIRONMENT or policy.has_tag(*ENVIRONMENT_TAGS):
        scores["environment"] = clamp(environment_section(citizen, policy, sensitivity))
    if domain == D.EMPLOYMENT or policy.has_tag(*OCCUPATIONAL_TAGS):
        scores["occupational"] = clamp(occupational_section(citizen, policy))
    if domain in (D.HOUSING, D.INFRASTRUCTURE):
        scores["housing"] = clamp(housing_section(citizen, policy))
    if policy.has_tag(*LIFESTYLE_TAGS):
        scores["lifestyle"] = clamp(lifestyle_section(citizen, policy))
    if domain == D.TRANSPORT:
        scores["transport"] = clamp(transport_section(citizen, policy))

    return HealthEnvironmentSections(scores, vulnerability, sensitivity)


def literacy_modifier(health_literacy: float) -> float:
    if health_literacy >= 4:
        return 1.15
    if health_literacy >= 3:
        return 1.05
    return 0.9


def trust_modifier(institutional_trust: float) -> float:
    if institutional_trust < 30:
        return 0.85
    if institutional_trust > 70:
        return 1.1
    return 1.0


def health_environment_impact(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    """
    Health and environmental impact of ``policy`` on ``citizen`` in [-1, 1].

    Args:
        citizen: The citizen being evaluated.
        policy: The parsed policy.

    Returns:
        Weighted section total scaled by health literacy and institutional trust,
        or the unmodified two-term stand-in when no section fired.
    """
    sections = health_environment_sections(citizen, policy)
    if not sections.fired:
        impacts = policy.impacts
        return clamp(
            impacts.health_impact / 100 * sections.vulnerability * 0.6
            + impacts.environment_impact / 100 * sections.sensitivity * 0.4
        )

    total = sum(score * SECTION_WEIGHTS[name] for name, score in sections.scores.items())
    total *= literacy_modifier(citizen.health.health_literacy)
    total *= trust_modifier(citizen.behavioral.institutional_trust)
    return clamp(total)
