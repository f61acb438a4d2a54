"""
Opinion Aggregator — blends the four impact dimensions into one opinion.

For one (citizen, policy) pair:

1. relevance (0-1) and the economic, social, health/environment and
   convenience impacts (-1 to +1) are computed independently;
2. the impacts are blended with the weights of a versioned ``BlendParameters``
   set (optionally personalized per citizen, optionally passed through
   loss-aversion and status-quo biases);
3. the blend is scaled by relevance, clamped to [-1, 1] and classified
   against the threshold θ: above +θ SUPPORT, below -θ OPPOSE, else NEUTRAL.

Parameter sets are registered by version string so that runs record exactly
which weights produced their opinions. Everything here is pure.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from civora.core.errors import UnknownParameterSet
from civora.core.schema import (
    CitizenProfile,
    CitizenSegment,
    Decision,
    OpinionBreakdown,
    OpinionRecord,
    PolicyDescriptor,
)
from civora.scoring.convenience import convenience_impact
from civora.scoring.economic import EconomicImpact, economic_impact
from civora.scoring.health_environment import health_environment_impact
from civora.scoring.relevance import relevance
from civora.scoring.rules import clamp
from civora.scoring.social import social_impact

DIMENSIONS = ("economic", "health_environment", "social", "convenience")


# ════════════════════════════════════════════════════════════════
# Blend parameters
# ════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BlendParameters:
    """A named, versioned set of blend weights and decision threshold."""

    version: str
    weights: dict[str, float] = field(default_factory=dict)
    threshold: float = 0.1
    personalize: bool = False
    apply_biases: bool = False

    def weights_for(self, citizen: CitizenProfile) -> dict[str, float]:
        if self.personalize:
            return personalized_weights(citizen)
        return dict(self.weights)


BASELINE = BlendParameters(
    version="baseline-1",
    weights={"economic": 0.35, "health_environment": 0.30, "social": 0.20, "convenience": 0.15},
    threshold=0.1,
)

COGNITIVE = BlendParameters(
    version="cognitive-2",
    weights={"economic": 0.60, "health_environment": 0.10, "social": 0.20, "convenience": 0.10},
    threshold=0.1,
    personalize=True,
    apply_biases=True,
)

PARAMETER_SETS: dict[str, BlendParameters] = {
    BASELINE.version: BASELINE,
    COGNITIVE.version: COGNITIVE,
}

DEFAULT_PARAMETERS = BASELINE.version


def get_parameters(version: str | BlendParameters | None = None) -> BlendParameters:
    """Look up a registered parameter set (``None`` selects the default)."""
    if isinstance(version, BlendParameters):
        return version
    key = version or DEFAULT_PARAMETERS
    try:
        return PARAMETER_SETS[key]
    except KeyError:
        known = ", ".join(sorted(PARAMETER_SETS))
        raise UnknownParameterSet(f"Unknown blend parameter set {key!r} (known: {known})") from None


def personalized_weights(citizen: CitizenProfile) -> dict[str, float]:
    """Income- and education-dependent weights, normalized to sum to 1."""
    income = citizen.income
    if income < 3000:
        weights = {"economic": 0.85, "social": 0.10, "convenience": 0.03, "health_environment": 0.02}
    elif income < 15000:
        weights = {"economic": 0.65, "social": 0.20, "convenience": 0.10, "health_environment": 0.05}
    else:
        weights = {"economic": 0.40, "social": 0.30, "convenience": 0.15, "health_environment": 0.15}

    if citizen.socio_economic.education_level >= 3:
        weights["health_environment"] += 0.1
        weights["social"] += 0.1
        weights["economic"] -= 0.2

    total = sum(weights.values())
    return {name: weights[name] / total for name in DIMENSIONS}


def apply_biases(score: float, citizen: CitizenProfile) -> float:
    """Loss aversion on negative scores, then status-quo bias against change."""
    if score < 0:
        score *= 2.0 - 0.1 * citizen.behavioral.risk_tolerance
    status_quo = (6 - citizen.behavioral.change_adaptability) / 10
    if score > 0:
        score *= 1 - status_quo
    else:
        score *= 1 + status_quo
    return clamp(score)


# ════════════════════════════════════════════════════════════════
# Decision, confidence, reasoning
# ════════════════════════════════════════════════════════════════


def classify(opinion: float, threshold: float = 0.1) -> Decision:
    if opinion > threshold:
        return Decision.SUPPORT
    if opinion < -threshold:
        return Decision.OPPOSE
    return Decision.NEUTRAL


def confidence(citizen: CitizenProfile, relevance_score: float) -> float:
    """Certainty of the opinion in [0.2, 0.9]: awareness, relevance and education up, distrust down."""
    value = 0.4
    value += citizen.information.policy_awareness / 5 * 0.2
    value += relevance_score * 0.2
    value += citizen.socio_economic.education_level / 4 * 0.15
    value -= (1 - citizen.behavioral.institutional_trust / 100) * 0.15
    return clamp(value, 0.2, 0.9)


_LEAD = {
    Decision.SUPPORT: "I support this because",
    Decision.OPPOSE: "I oppose this because",
    Decision.NEUTRAL: "I'm neutral because",
}


def reasoning(citizen: CitizenProfile, economic: EconomicImpact, social: float, decision: Decision) -> str:
    """One deterministic first-person sentence explaining the decision."""
    reasons: list[str] = []
    if economic.economic_score < -0.3:
        if citizen.income < 5000:
            reasons.append("I cannot afford this on my limited income")
        else:
            reasons.append("this would strain my household budget")
    elif economic.economic_score > 0.3:
        reasons.append("I would benefit financially from this policy")

    if citizen.behavioral.institutional_trust < 40:
        reasons.append("I don't trust the government will implement this properly")
    if social > 0.2:
        reasons.append("this policy helps people like me")

    if not reasons:
        reasons.append({
            Decision.SUPPORT: "I think this policy makes sense",
            Decision.OPPOSE: "I have concerns about this policy",
            Decision.NEUTRAL: "I am unsure about the effects",
        }[decision])

    return f"{_LEAD[decision]} {' and '.join(reasons)}."


# ════════════════════════════════════════════════════════════════
# Aggregation
# ════════════════════════════════════════════════════════════════


def score_citizen(
    citizen: CitizenProfile,
    policy: PolicyDescriptor,
    parameters: BlendParameters | str | None = None,
) -> OpinionRecord:
    """
    Score one citizen against a policy.

    Args:
        citizen: Validated citizen profile.
        policy: Parsed policy descriptor.
        parameters: A ``BlendParameters`` set or registered version string.

    Returns:
        The citizen's OpinionRecord with its full breakdown.
    """
    params = get_parameters(parameters)

    relevance_score = relevance(citizen, policy)
    economic = economic_impact(citizen, policy)
    scores = {
        "economic": economic.economic_score,
        "social": social_impact(citizen, policy),
        "health_environment": health_environment_impact(citizen, policy),
        "convenience": convenience_impact(citizen, policy),
    }
    weights = params.weights_for(citizen)

    raw = sum(scores[name] * weights.get(name, 0.0) for name in DIMENSIONS)
    blended = apply_biases(raw, citizen) if params.apply_biases else raw
    opinion = clamp(blended * relevance_score)
    decision = classify(opinion, params.threshold)

    breakdown = OpinionBreakdown(
        relevance=relevance_score,
        economic=scores["economic"],
        social=scores["social"],
        health_environment=scores["health_environment"],
        convenience=scores["convenience"],
        affectedness=economic.affectedness,
        affordability_status=economic.affordability_status,
        raw_score=raw,
        weights=weights,
        parameter_version=params.version,
    )
    return OpinionRecord(
        citizen_id=citizen.citizen_id,
        region=citizen.region,
        opinion=opinion,
        confidence=confidence(citizen, relevance_score),
        decision=decision,
        breakdown=breakdown,
        reasoning=reasoning(citizen, economic, scores["social"], decision),
        segment=CitizenSegment.of(citizen),
    )
