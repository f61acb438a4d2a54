"""
Convenience Impact Scorer — time, access and daily-routine effects (-1 to +1).

A time-value multiplier in [0.3, 2.5] captures how precious a citizen's time
is (employment, income, age, family load, commute, health). The policy's daily
time change is scaled by it and by domain context. Further sections cover
mobility, digital access, healthcare access, housing, education, work and
environmental quality of life. Each section is clamped to [-1, 1] before
weighting; a section contributes only when its domain or tag trigger applies.

A change-adaptability modifier is applied last: it multiplies negative totals
and ``2 - modifier`` multiplies positive ones, so adaptable citizens feel both
inconvenience and improvement less. No applicable section yields 0.
"""

from __future__ import annotations

from civora.core.schema import CitizenProfile, PolicyDescriptor, PolicyDomain
from civora.scoring.rules import clamp

D = PolicyDomain

SECTION_WEIGHTS = {
    "time": 0.35,
    "mobility": 0.20,
    "digital": 0.15,
    "healthcare": 0.10,
    "housing": 0.08,
    "education": 0.05,
    "work": 0.05,
    "environment": 0.02,
}

DIGITAL_TAGS = ("digital", "online", "e-governance", "app", "internet")


def time_value_multiplier(citizen: CitizenProfile) -> float:
    """How strongly a minute gained or lost registers for this citizen, in [0.3, 2.5]."""
    demo = citizen.demographics
    age = citizen.age
    income = citizen.income
    value = 1.0

    value += {"formal": 0.5, "self-employed": 0.4, "informal": 0.2, "unemployed": -0.3}.get(
        citizen.socio_economic.employment_type, 0.0
    )

    if income > 25000:
        value += 0.4
    elif income > 15000:
        value += 0.2
    elif income < 3000:
        value -= 0.2

    if age > 60:
        value += 0.3
    elif 25 <= age <= 45:
        value += 0.2
    elif age < 25:
        value -= 0.1

    if demo.household_size >= 5:
        value += 0.25
    elif demo.household_size >= 4:
        value += 0.1
    if demo.is_female and demo.household_size >= 3:
        value += 0.2

    if citizen.mobility.commute_time > 60:
        value += 0.3
    elif citizen.mobility.commute_time > 45:
        value += 0.15

    if citizen.health.disease_risk > 50 or age > 60:
        value += 0.2

    return clamp(value, 0.3, 2.5)


def time_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    score = policy.impacts.time_change / 120 * time_value_multiplier(citizen)
    if policy.domain == D.TRANSPORT:
        if citizen.mobility.transportation_mode in ("bus", "train"):
            score *= 1.3
        if citizen.mobility.commute_time > 45:
            score *= 1.2
    elif policy.domain == D.HEALTH:
        if citizen.health.healthcare_access < 50:
            score *= 1.2
        if citizen.health.disease_risk > 50:
            score *= 1.3
    elif policy.domain == D.INFRASTRUCTURE and citizen.demographics.urbanization == "rural":
        score *= 1.2
    return score


def mobility_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    mode = citizen.mobility.transportation_mode
    costly = policy.impacts.economic_cost > 0
    score = 0.0

    if mode == "bus":
        if policy.has_tag("bus_users", "public_transport"):
            score += 0.5
        if costly:
            score -= 0.3
        if policy.has_tag("frequency", "new_routes"):
            score += 0.4
    elif mode == "train":
        if policy.has_tag("train", "railway", "metro"):
            score += 0.5
    elif mode == "car":
        if policy.has_tag("road", "highway", "parking"):
            score += 0.4
        if policy.has_tag("fuel", "petrol"):
            score += -0.3 if costly else 0.3
    elif mode == "bike":
        if policy.has_tag("bike", "two_wheeler", "cycle_lane"):
            score += 0.4
    elif mode == "walk":
        if policy.has_tag("pedestrian", "footpath", "walkway"):
            score += 0.5

    if score < 0:
        mobility = citizen.mobility.geographic_mobility
        if mobility >= 4:
            score *= 0.8
        elif mobility <= 2:
            score *= 1.2
    if citizen.mobility.commute_time > 60:
        score *= 1.3
    return score


def digital_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    digital = citizen.digital
    connectivity = digital.internet_connectivity
    score = 0.0

    if connectivity == "broadband":
        score += 0.5
    elif connectivity == "mobile only":
        score += 0.3
    elif connectivity == "none":
        score -= 0.6 if policy.has_tag("mandatory", "only_online") else 0.2

    if digital.digital_literacy >= 4:
        score += 0.3
    elif digital.digital_literacy <= 2:
        score -= 0.2

    if digital.digital_services_access > 60:
        score += 0.2
    elif digital.digital_services_access < 30:
        score -= 0.15

    if citizen.age > 55:
        score *= 0.7
    elif citizen.age < 35:
        score *= 1.2

    education = citizen.socio_economic.education_level
    if education >= 3:
        score += 0.15
    elif education <= 1:
        score -= 0.15

    if citizen.demographics.urbanization == "rural" and connectivity != "broadband":
        score -= 0.2
    return score


def healthcare_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    health = citizen.health
    demo = citizen.demographics
    age = citizen.age
    score = 0.0

    if health.healthcare_access < 40:
        if policy.impacts.economic_benefit > 0 or policy.has_tag("free_healthcare"):
            score += 0.6
        if policy.has_tag("new_hospital", "health_center"):
            score += 0.5
    elif health.healthcare_access > 70:
        score += 0.2

    if health.disease_risk > 60:
        score *= 1.4
    elif health.disease_risk > 40:
        score *= 1.2

    if age > 60:
        score *= 1.3
    elif age < 30 and health.disease_risk < 30:
        score *= 0.8

    if health.health_literacy >= 4:
        score += 0.15
    elif health.health_literacy <= 2:
        score -= 0.1

    if demo.is_female and 20 <= age <= 45 and demo.household_size >= 3:
        score *= 1.2
    if demo.urbanization == "rural" and policy.has_tag("rural_health", "mobile_clinic"):
        score += 0.4
    return score


def housing_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    housing_type = citizen.housing.housing_type
    score = 0.0

    if housing_type == "rented":
        if policy.has_tag("rent_control", "tenant_rights"):
            score += 0.5
        if policy.has_tag("eviction", "rent_increase"):
            score -= 0.4
    elif housing_type == "informal settlement":
        if policy.has_tag("slum", "housing_scheme", "regularization"):
            score += 0.6
        if policy.has_tag("demolition", "eviction"):
            score -= 0.8
    elif housing_type == "owned":
        if policy.has_tag("property_tax") and policy.impacts.economic_cost > 0:
            score -= 0.2
        if policy.has_tag("home_improvement", "subsidy"):
            score += 0.3

    if citizen.housing.housing_cost_burden > 40:
        score *= 1.3

    if policy.domain == D.INFRASTRUCTURE:
        if policy.has_tag("water", "electricity", "sanitation"):
            score += 0.4 if citizen.demographics.urbanization == "rural" else 0.2
        if policy.has_tag("road", "street_light"):
            score += 0.2
    return score


def education_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    age = citizen.age
    score = 0.0

    if citizen.demographics.household_size >= 3 and 25 <= age <= 50:
        if policy.has_tag("school", "student", "education"):
            score += 0.4
        if policy.has_tag("nearby_school", "transport_school"):
            score += 0.3
    if 18 <= age <= 30:
        if policy.has_tag("college", "university", "skill"):
            score += 0.5
        if policy.has_tag("scholarship", "fee_reduction"):
            score += 0.4
    if citizen.socio_economic.education_level <= 2 and policy.impacts.economic_benefit > 0:
        score += 0.3
    if policy.has_tag("online_education", "e-learning"):
        online = citizen.digital.internet_connectivity != "none" and citizen.digital.digital_literacy >= 3
        score += 0.3 if online else -0.2
    if citizen.demographics.urbanization == "rural" and policy.has_tag("rural_school", "midday_meal"):
        score += 0.35
    return score


def work_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    employment = citizen.socio_economic.employment_type
    score = 0.0

    if employment == "formal":
        if policy.has_tag("office", "workplace", "parking"):
            score += 0.3
        if policy.has_tag("work_from_home", "flexible") and citizen.digital.internet_connectivity != "none":
            score += 0.4
    elif employment == "informal":
        if policy.has_tag("vendor", "hawker", "street"):
            score += 0.4
        if policy.has_tag("license", "permit") and policy.impacts.economic_cost > 0:
            score -= 0.3
    elif employment == "self-employed":
        if policy.has_tag("small_business", "msme", "shop"):
            score += 0.35
        if policy.has_tag("gst", "compliance", "filing"):
            score -= 0.1 if citizen.digital.digital_literacy >= 3 else 0.3

    if citizen.socio_economic.occupation == "agriculture":
        if policy.has_tag("mandi", "market", "cold_storage"):
            score += 0.4
        if policy.has_tag("irrigation", "water"):
            score += 0.35

    if employment != "unemployed" and policy.has_tag("commute") and citizen.mobility.commute_time > 45:
        score *= 1.3
    return score


def environment_section(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    env = citizen.environmental
    improving = policy.impacts.environment_impact > 0
    score = 0.0

    if env.pollution_exposure > 150:
        if improving or policy.has_tag("pollution_control"):
            score += 0.5
    elif env.pollution_exposure > 100:
        score += 0.3

    if env.climate_vulnerability >= 4 and policy.has_tag("climate", "flood", "drought"):
        score += 0.4
    if env.green_space_access < 15 and policy.has_tag("park", "green_space", "plantation"):
        score += 0.35
    if citizen.health.disease_risk > 50 and improving:
        score += 0.25

    if citizen.socio_economic.education_level >= 3:
        score *= 1.2
    if citizen.demographics.urbanization == "urban" and env.pollution_exposure > 100:
        score *= 1.2
    return score


def convenience_sections(citizen: CitizenProfile, policy: PolicyDescriptor) -> dict[str, float]:
    """Clamped score of every section whose trigger applies."""
    domain = policy.domain
    sections: dict[str, float] = {}

    if policy.impacts.time_change != 0:
        sections["time"] = clamp(time_section(citizen, policy))
    if domain in (D.TRANSPORT, D.INFRASTRUCTURE):
        sections["mobility"] = clamp(mobility_section(citizen, policy))
    if domain == D.TECHNOLOGY or policy.has_tag(*DIGITAL_TAGS):
        sections["digital"] = clamp(digital_section(citizen, policy))
    if domain == D.HEALTH:
        sections["healthcare"] = clamp(healthcare_section(citizen, policy))
    if domain in (D.HOUSING, D.INFRASTRUCTURE):
        sections["housing"] = clamp(housing_section(citizen, policy))
    if domain == D.EDUCATION:
        sections["education"] = clamp(education_section(citizen, policy))
    if domain in (D.EMPLOYMENT, D.INFRASTRUCTURE):
        sections["work"] = clamp(work_section(citizen, policy))
    if domain == D.ENVIRONMENT or policy.impacts.environment_impact != 0:
        sections["environment"] = clamp(environment_section(citizen, policy))
    return sections


def adaptability_modifier(citizen: CitizenProfile) -> float:
    adaptability = citizen.behavioral.change_adaptability
    modifier = 1.0
    if adaptability >= 4:
        modifier = 0.85
    elif adaptability <= 2:
        modifier = 1.2

    if citizen.age > 60:
        modifier *= 1.15
    elif citizen.age < 30:
        modifier *= 0.9

    education = citizen.socio_economic.education_level
    if education >= 3:
        modifier *= 0.9
    elif education <= 1:
        modifier *= 1.1
    return modifier


def convenience_impact(citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
    """
    Convenience impact of ``policy`` on ``citizen`` in [-1, 1].

    Returns 0.0 when no section applies to the policy.
    """
    sections = convenience_sections(citizen, policy)
    if not sections:
        return 0.0

    total = sum(score * SECTION_WEIGHTS[name] for name, score in sections.items())
    modifier = adaptability_modifier(citizen)
    if total < 0:
        total *= modifier
    else:
        total *= 2 - modifier
    return clamp(total)
