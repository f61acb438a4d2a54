"""
Civora Schema — Pydantic models for citizens, policies, opinions and summaries.

These models are the canonical data structures of the pipeline. Inputs
(CitizenProfile, PolicyDescriptor) are immutable and shared read-only by every
scorer; outputs (OpinionRecord, RegionSummary, NationalSummary) are written
once per run and never updated afterwards.

External JSON uses camelCase keys (``socioEconomic.incomePerCapita``); every
model also accepts the snake_case field names.

Scales used throughout the scorers:
    ordinal traits       1-5   (caste consciousness, risk tolerance, adaptability,
                                health literacy, income stability, digital literacy,
                                geographic mobility, climate vulnerability, awareness)
    percentages          0-100 (trust, healthcare access, disease risk, debt,
                                housing cost burden, civic participation, ...)
    savings rate         -50..50 percent
    pollution exposure   AQI 0-500
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# ════════════════════════════════════════════════════════════════
# Enumerations
# ════════════════════════════════════════════════════════════════


class Decision(str, enum.Enum):
    """Discrete reaction of one citizen to a policy."""

    SUPPORT = "SUPPORT"
    OPPOSE = "OPPOSE"
    NEUTRAL = "NEUTRAL"


class PolicyDomain(str, enum.Enum):
    """Policy areas understood by the scorers."""

    TRANSPORT = "transport"
    HEALTH = "health"
    EDUCATION = "education"
    AGRICULTURE = "agriculture"
    TAX = "tax"
    EMPLOYMENT = "employment"
    HOUSING = "housing"
    ENVIRONMENT = "environment"
    INFRASTRUCTURE = "infrastructure"
    TECHNOLOGY = "technology"
    SOCIAL = "social"
    SECURITY = "security"
    GENERAL = "general"


class DataQuality(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AffordabilityStatus(str, enum.Enum):
    """How a policy's monthly impact compares with monthly income."""

    SUSTAINABLE = "sustainable"
    STRAINED = "strained"
    UNSUSTAINABLE = "unsustainable"
    MAJOR_BENEFIT = "major_benefit"


class Verdict(str, enum.Enum):
    """National verdict (support and oppose shares compared with a 5 point margin)."""

    MAJORITY_SUPPORT = "MAJORITY SUPPORT"
    MAJORITY_OPPOSE = "MAJORITY OPPOSE"
    NEUTRAL = "NEUTRAL"


class RegionVerdict(str, enum.Enum):
    SUPPORT = "SUPPORT"
    OPPOSE = "OPPOSE"
    MIXED = "MIXED"


class PolarizationLevel(str, enum.Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Priority(str, enum.Enum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# ════════════════════════════════════════════════════════════════
# Categorical normalization
# ════════════════════════════════════════════════════════════════

# Synonyms seen in generated population files, mapped to the canonical value
# the scorers compare against.
TRANSPORT_MODE_ALIASES = {
    "walking": "walk",
    "on foot": "walk",
    "public bus": "bus",
    "railway": "train",
    "metro": "train",
    "private vehicle": "car",
    "auto rickshaw": "auto",
    "rickshaw": "auto",
    "motorcycle": "bike",
    "scooter": "bike",
    "two wheeler": "bike",
    "bicycle": "cycle",
    "work from home": "home",
}

HOUSING_TYPE_ALIASES = {
    "own": "owned",
    "pucca": "owned",
    "rental": "rented",
    "rent": "rented",
    "slum": "informal settlement",
    "informal": "informal settlement",
    "kutcha": "informal settlement",
    "govt": "government",
}

OCCUPATION_ALIASES = {
    "farmer": "agriculture",
    "farming": "agriculture",
    "service sector": "services",
    "office": "services",
    "service": "services",
    "entrepreneur": "business",
    "it": "technology",
    "construction": "laborer",
    "pastoral": "cattle rearing",
}

EMPLOYMENT_TYPE_ALIASES = {
    "employed": "formal",
    "salaried": "formal",
    "self employed": "self-employed",
    "self_employed": "self-employed",
    "jobless": "unemployed",
}

URBANIZATION_ALIASES = {
    "semi urban": "semi-urban",
    "semi_urban": "semi-urban",
    "semiurban": "semi-urban",
    "city": "urban",
    "village": "rural",
}

MEDIA_REACH = {
    "both": 0.8,
    "social media": 0.7,
    "tv": 0.5,
    "television": 0.5,
    "newspaper": 0.5,
    "radio": 0.3,
    "none": 0.0,
}

VOTING_PROPENSITY = {"regular": 0.9, "occasional": 0.5, "non-voter": 0.0}

CONNECTIVITY_LEVEL = {"broadband": 1.0, "mobile only": 0.6, "none": 0.0}


def _canonical(value: Any, aliases: Mapping[str, str] | None = None) -> Any:
    if not isinstance(value, str):
        return value
    cleaned = value.strip().lower()
    if aliases:
        return aliases.get(cleaned, cleaned)
    return cleaned


class _Section(BaseModel):
    """Base for all profile sections: camelCase aliases, frozen, nulls ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # A null attribute falls back to its default instead of failing validation
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value is not None}
        return data


# ════════════════════════════════════════════════════════════════
# Citizen Profile
# ════════════════════════════════════════════════════════════════


class Demographics(_Section):
    age: float = Field(default=35, ge=0, le=120)
    sex: str = Field(default="male", validation_alias=AliasChoices("sex", "gender"))
    household_size: int = Field(default=4, ge=1, le=30)
    urbanization: str = "rural"
    religion: str = "hindu"
    caste: str = Field(default="general", validation_alias=AliasChoices("caste", "casteGroup"))
    tribal_concentration: float = Field(default=0, ge=0, le=100)
    gender_imbalance: float = Field(default=0.2, ge=0, le=1)

    @field_validator("sex", "religion", "caste", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return _canonical(value)

    @field_validator("urbanization", mode="before")
    @classmethod
    def _urbanization(cls, value: Any) -> Any:
        return _canonical(value, URBANIZATION_ALIASES)

    @property
    def dependents(self) -> int:
        return max(0, self.household_size - 1)

    @property
    def is_female(self) -> bool:
        return self.sex == "female"


class SocioEconomic(_Section):
    income_per_capita: float = Field(default=1000, ge=0)
    poverty_status: int = Field(default=0, ge=0, le=1)
    literacy: int = Field(default=1, ge=0, le=3)
    education_level: int = Field(default=1, ge=0, le=4)
    occupation: str = "informal"
    employment_type: str = "informal"
    wealth_quintile: str = "q3"

    @field_validator("occupation", mode="before")
    @classmethod
    def _occupation(cls, value: Any) -> Any:
        return _canonical(value, OCCUPATION_ALIASES)

    @field_validator("employment_type", mode="before")
    @classmethod
    def _employment(cls, value: Any) -> Any:
        return _canonical(value, EMPLOYMENT_TYPE_ALIASES)

    @field_validator("wealth_quintile", mode="before")
    @classmethod
    def _quintile(cls, value: Any) -> Any:
        return _canonical(value)

    @property
    def is_poor(self) -> bool:
        return self.poverty_status == 1

    @property
    def monthly_income(self) -> float:
        return self.income_per_capita / 12


class Behavioral(_Section):
    caste_consciousness: float = Field(default=3, ge=1, le=5)
    risk_tolerance: float = Field(default=3, ge=1, le=5)
    institutional_trust: float = Field(default=50, ge=0, le=100)
    change_adaptability: float = Field(default=3, ge=1, le=5)


class NutritionalStatus(_Section):
    bmi: float = Field(default=22, ge=5, le=80)
    category: str = "normal"

    @field_validator("category", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return _canonical(value)


class Health(_Section):
    healthcare_access: float = Field(default=50, ge=0, le=100)
    health_literacy: float = Field(default=3, ge=1, le=5)
    disease_risk: float = Field(default=30, ge=0, le=100)
    nutritional_status: NutritionalStatus = Field(default_factory=NutritionalStatus)

    @property
    def bmi_category(self) -> str:
        return self.nutritional_status.category


class EconomicStability(_Section):
    income_stability: float = Field(default=3, ge=1, le=5)
    debt_vulnerability: float = Field(default=30, ge=0, le=100)
    savings_rate: float = Field(default=5, ge=-50, le=50)


class Housing(_Section):
    housing_type: str = "owned"
    housing_cost_burden: float = Field(default=20, ge=0, le=100)

    @field_validator("housing_type", mode="before")
    @classmethod
    def _housing(cls, value: Any) -> Any:
        return _canonical(value, HOUSING_TYPE_ALIASES)


class Mobility(_Section):
    commute_time: float = Field(default=30, ge=0, le=300)
    transportation_mode: str = "bus"
    geographic_mobility: float = Field(default=3, ge=1, le=5)

    @field_validator("transportation_mode", mode="before")
    @classmethod
    def _mode(cls, value: Any) -> Any:
        return _canonical(value, TRANSPORT_MODE_ALIASES)


class Political(_Section):
    voting_behavior: str = "regular"
    civic_participation: float = Field(default=10, ge=0, le=100)
    media_consumption: str = "both"

    @field_validator("voting_behavior", "media_consumption", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return _canonical(value)

    @property
    def voting_propensity(self) -> float:
        return VOTING_PROPENSITY.get(self.voting_behavior, 0.5)

    @property
    def media_reach(self) -> float:
        return MEDIA_REACH.get(self.media_consumption, 0.3)


class Digital(_Section):
    internet_connectivity: str = "mobile only"
    digital_literacy: float = Field(default=2, ge=1, le=5)
    digital_services_access: float = Field(default=30, ge=0, le=100)

    @field_validator("internet_connectivity", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return _canonical(value)

    @property
    def connectivity_level(self) -> float:
        return CONNECTIVITY_LEVEL.get(self.internet_connectivity, 0.3)


class Environmental(_Section):
    pollution_exposure: float = Field(default=50, ge=0, le=500)
    climate_vulnerability: float = Field(default=3, ge=1, le=5)
    green_space_access: float = Field(default=20, ge=0, le=100)


class Legal(_Section):
    citizenship_status: str = "citizen"
    criminal_record: bool = False

    @field_validator("citizenship_status", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return _canonical(value)


class Information(_Section):
    policy_awareness: float = Field(default=2, ge=1, le=5)


class CitizenProfile(_Section):
    """
    One synthetic citizen, as produced by the population generator.

    Sections missing from the input take their defaults, so a bare
    ``{"citizenId": "c1"}`` is a valid (if unremarkable) citizen.
    """

    citizen_id: str = Field(
        validation_alias=AliasChoices("citizenId", "humanId", "citizen_id", "id"),
        serialization_alias="citizenId",
    )
    region: str = Field(
        default="",
        validation_alias=AliasChoices("region", "state"),
        serialization_alias="region",
    )
    demographics: Demographics = Field(default_factory=Demographics)
    socio_economic: SocioEconomic = Field(default_factory=SocioEconomic)
    behavioral: Behavioral = Field(default_factory=Behavioral)
    health: Health = Field(default_factory=Health)
    economic_stability: EconomicStability = Field(
        default_factory=EconomicStability,
        validation_alias=AliasChoices("economicStability", "financial", "economic_stability"),
    )
    housing: Housing = Field(default_factory=Housing)
    mobility: Mobility = Field(default_factory=Mobility)
    political: Political = Field(
        default_factory=Political,
        validation_alias=AliasChoices("political", "civic"),
    )
    digital: Digital = Field(default_factory=Digital)
    environmental: Environmental = Field(
        default_factory=Environmental,
        validation_alias=AliasChoices("environmental", "environment"),
    )
    legal: Legal = Field(default_factory=Legal)
    information: Information = Field(default_factory=Information)

    @field_validator("citizen_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @classmethod
    def coerce(cls, raw: CitizenProfile | Mapping[str, Any], region: str = "") -> CitizenProfile:
        """Validate a raw mapping (or pass a profile through), filling in ``region``."""
        if isinstance(raw, CitizenProfile):
            profile = raw
        else:
            profile = cls.model_validate(raw)
        if region and not profile.region:
            profile = profile.model_copy(update={"region": region})
        return profile

    # ── Shorthands used by the scorers ────────────────────────

    @property
    def age(self) -> float:
        return self.demographics.age

    @property
    def income(self) -> float:
        return self.socio_economic.income_per_capita


# ════════════════════════════════════════════════════════════════
# Policy Descriptor
# ════════════════════════════════════════════════════════════════


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class PolicyImpacts(_Record):
    economic_cost: float = 0.0
    economic_benefit: float = 0.0
    health_impact: float = 0.0
    environment_impact: float = 0.0
    social_status: float = 0.0
    time_change: float = 0.0


class PolicyPromises(_Record):
    future_economic_benefit: float = 0.0
    time_saved: float = 0.0
    implementation_delay: float = 0.0


class PolicyDescriptor(_Record):
    """
    A parsed policy, shared read-only by every citizen evaluation of a run.

    ``target_groups`` are free-text tags ("poor", "bus_users", "women") that the
    scorers match against citizen attributes through rule tables.
    """

    title: str = "Untitled policy"
    domain: PolicyDomain = PolicyDomain.GENERAL
    target_groups: tuple[str, ...] = ()
    impacts: PolicyImpacts = Field(default_factory=PolicyImpacts)
    promises: PolicyPromises = Field(default_factory=PolicyPromises)
    confidence: float = Field(default=0.5, ge=0, le=1)
    data_quality: DataQuality = DataQuality.MEDIUM
    assumptions: tuple[str, ...] = ()

    @field_validator("domain", mode="before")
    @classmethod
    def _domain(cls, value: Any) -> Any:
        if isinstance(value, PolicyDomain):
            return value
        cleaned = _canonical(value) or "general"
        try:
            return PolicyDomain(cleaned)
        except ValueError:
            return PolicyDomain.GENERAL

    @field_validator("target_groups", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ValueError("target groups must be a list of tags")
        seen: dict[str, None] = {}
        for tag in value:
            cleaned = str(tag).strip().lower()
            if cleaned:
                seen.setdefault(cleaned, None)
        return tuple(seen)

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self.target_groups)

    def has_tag(self, *candidates: str) -> bool:
        """True when any of ``candidates`` is among the target groups."""
        tags = self.tags
        return any(candidate in tags for candidate in candidates)


# ════════════════════════════════════════════════════════════════
# Opinion Record
# ════════════════════════════════════════════════════════════════


def income_band(income: float) -> str:
    if income < 2000:
        return "poor"
    if income < 5000:
        return "lower_middle"
    if income < 15000:
        return "middle"
    if income < 25000:
        return "upper_middle"
    return "rich"


def education_band(level: float) -> str:
    if level < 2:
        return "low"
    if level < 4:
        return "medium"
    return "high"


def age_band(age: float) -> str:
    if age < 25:
        return "under_25"
    if age < 45:
        return "25_44"
    if age < 60:
        return "45_59"
    return "60_plus"


class CitizenSegment(_Record):
    """Demographic coordinates of a citizen, kept on the opinion for breakdowns."""

    income_band: str
    urbanization: str
    education_band: str
    sex: str
    age_band: str
    vulnerable: bool = Field(description="Income below 5000 (vulnerable-group tracking)")

    @classmethod
    def of(cls, citizen: CitizenProfile) -> CitizenSegment:
        return cls(
            income_band=income_band(citizen.income),
            urbanization=citizen.demographics.urbanization,
            education_band=education_band(citizen.socio_economic.education_level),
            sex=citizen.demographics.sex,
            age_band=age_band(citizen.age),
            vulnerable=citizen.income < 5000,
        )


class OpinionBreakdown(_Record):
    relevance: float = Field(ge=0, le=1)
    economic: float = Field(ge=-1, le=1)
    social: float = Field(ge=-1, le=1)
    health_environment: float = Field(ge=-1, le=1)
    convenience: float = Field(ge=-1, le=1)
    affectedness: float = Field(ge=0, le=1.5)
    affordability_status: AffordabilityStatus
    raw_score: float = Field(description="Weighted blend before relevance scaling")
    weights: dict[str, float] = Field(default_factory=dict)
    parameter_version: str


class OpinionRecord(_Record):
    """
    One citizen's reaction to one policy run.

    Written exactly once per run. Carries no timestamps so that scoring the
    same inputs twice yields identical records.
    """

    citizen_id: str
    region: str
    opinion: float = Field(ge=-1, le=1)
    confidence: float = Field(ge=0, le=1)
    decision: Decision
    breakdown: OpinionBreakdown
    reasoning: str = ""
    segment: CitizenSegment


# ════════════════════════════════════════════════════════════════
# Summaries
# ════════════════════════════════════════════════════════════════


class RegionSummary(_Record):
    """Aggregate over every valid opinion of one region, recomputed each run."""

    region: str
    count: int = Field(ge=1)
    support: int = Field(ge=0)
    oppose: int = Field(ge=0)
    neutral: int = Field(ge=0)
    average_opinion: float
    average_confidence: float
    std_dev: float = Field(ge=0)
    verdict: RegionVerdict

    @computed_field
    @property
    def support_rate(self) -> float:
        return self.support / self.count

    @computed_field
    @property
    def oppose_rate(self) -> float:
        return self.oppose / self.count


class GroupBreakdown(_Record):
    count: int
    average_opinion: float
    support_rate: float
    oppose_rate: float


class ConfidenceInterval(_Record):
    mean: float
    margin_of_error: float = Field(ge=0)
    lower: float
    upper: float
    level: float = 0.95


class RiskFlag(_Record):
    category: str
    level: RiskLevel
    description: str


class Recommendation(_Record):
    priority: Priority
    action: str
    details: str


class NationalSummary(_Record):
    """Aggregate over every valid opinion nationwide, computed after all regions finished."""

    count: int = Field(ge=1)
    support: int
    oppose: int
    neutral: int
    average_opinion: float
    average_confidence: float
    std_dev: float = Field(ge=0)
    variance: float = Field(ge=0)
    polarization_index: float = Field(ge=0)
    polarization_level: PolarizationLevel
    extremism_rate: float = Field(ge=0, le=1)
    consensus: float = Field(ge=0, le=1)
    confidence_interval: ConfidenceInterval
    verdict: Verdict
    risk_of_division: RiskLevel
    vulnerable_groups_harmed: int = Field(ge=0)
    breakdowns: dict[str, dict[str, GroupBreakdown]] = Field(default_factory=dict)
    risks: list[RiskFlag] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)

    @computed_field
    @property
    def support_rate(self) -> float:
        return self.support / self.count

    @computed_field
    @property
    def oppose_rate(self) -> float:
        return self.oppose / self.count


class RunResult(_Record):
    """Outcome of one orchestration run (success or structured failure)."""

    success: bool
    reason: str = ""
    run_id: str
    policy_title: str = ""
    parameter_version: str = ""
    humans_processed: int = 0
    humans_errored: int = 0
    humans_unpersisted: int = 0
    humans_resumed: int = 0
    regions_processed: int = 0
    regions_skipped: list[str] = Field(default_factory=list)
    national_summary: NationalSummary | None = None
    region_summaries: dict[str, RegionSummary] = Field(default_factory=dict)
    duration_seconds: float = 0.0
