"""
Policy Parser — turn raw policy input into a validated PolicyDescriptor.

Accepted inputs:
1. An existing PolicyDescriptor (passed through unchanged)
2. A structured mapping or JSON object string (camelCase or snake_case keys);
   numeric impacts are clamped to their plausible ranges before validation
3. Free text, handled by a rule-based keyword parser that detects the domain,
   target groups and a rough cost/benefit estimate

Free-text parsing with a language model is not part of Civora; any object
with a matching ``parse`` method can be plugged into the orchestrator instead.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from civora.core.errors import PolicyParseFailure
from civora.core.schema import DataQuality, PolicyDescriptor, PolicyDomain

logger = logging.getLogger(__name__)

PolicyInput = str | Mapping[str, Any] | PolicyDescriptor


@runtime_checkable
class PolicyParser(Protocol):
    """Anything that can produce a PolicyDescriptor from raw input."""

    def parse(self, raw: PolicyInput) -> PolicyDescriptor: ...


# ════════════════════════════════════════════════════════════════
# Validation / clamping
# ════════════════════════════════════════════════════════════════

IMPACT_LIMITS: dict[str, tuple[float, float]] = {
    "economicCost": (-1_000_000, 1_000_000),
    "economicBenefit": (0, 1_000_000),
    "timeChange": (-300, 300),
    "healthImpact": (-100, 100),
    "environmentImpact": (-100, 100),
    "socialStatus": (-100, 100),
}

PROMISE_LIMITS: dict[str, tuple[float, float]] = {
    "futureEconomicBenefit": (0, 10_000_000),
    "timeSaved": (0, 300),
    "implementationDelay": (0, 120),
}


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _clamp_section(section: Any, limits: Mapping[str, tuple[float, float]]) -> dict[str, Any]:
    if not isinstance(section, Mapping):
        return {}
    clamped: dict[str, Any] = {}
    for key, value in section.items():
        camel = _to_camel(str(key))
        if camel in limits and value is not None:
            try:
                number = float(value)
            except (TypeError, ValueError) as e:
                raise PolicyParseFailure(f"Impact {camel!r} is not numeric: {value!r}") from e
            low, high = limits[camel]
            clamped[camel] = max(low, min(high, number))
        else:
            clamped[camel] = value
    return clamped


def validate_policy(data: Mapping[str, Any]) -> PolicyDescriptor:
    """
    Clamp numeric impacts/promises and validate into a PolicyDescriptor.

    Args:
        data: Structured policy (camelCase or snake_case keys).

    Returns:
        A validated, immutable PolicyDescriptor.

    Raises:
        PolicyParseFailure: If the structure cannot be validated.
    """
    payload = {_to_camel(str(key)): value for key, value in data.items()}
    payload["impacts"] = _clamp_section(payload.get("impacts"), IMPACT_LIMITS)
    payload["promises"] = _clamp_section(payload.get("promises"), PROMISE_LIMITS)
    if payload.get("confidence") is not None:
        try:
            payload["confidence"] = max(0.0, min(1.0, float(payload["confidence"])))
        except (TypeError, ValueError) as e:
            raise PolicyParseFailure(f"Confidence is not numeric: {payload['confidence']!r}") from e
    if payload.get("title") is None:
        payload.pop("title", None)
    if isinstance(payload.get("dataQuality"), str):
        quality = payload["dataQuality"].strip().lower()
        payload["dataQuality"] = quality if quality in {q.value for q in DataQuality} else DataQuality.MEDIUM

    try:
        return PolicyDescriptor.model_validate(payload)
    except ValidationError as e:
        raise PolicyParseFailure(f"Invalid policy descriptor: {e}") from e


# ════════════════════════════════════════════════════════════════
# Keyword parser (free text)
# ════════════════════════════════════════════════════════════════

# First matching domain wins; dict order is the priority order.
DOMAIN_KEYWORDS: dict[PolicyDomain, tuple[str, ...]] = {
    PolicyDomain.TRANSPORT: ("bus", "train", "road", "metro", "fare", "commute"),
    PolicyDomain.HEALTH: ("hospital", "health", "doctor", "medicine", "vaccine"),
    PolicyDomain.TAX: ("tax", "gst", "income", "rebate", "deduction"),
    PolicyDomain.EDUCATION: ("school", "college", "student", "education"),
    PolicyDomain.AGRICULTURE: ("farmer", "crop", "agriculture", "subsidy"),
    PolicyDomain.HOUSING: ("house", "rent", "housing", "property"),
    PolicyDomain.ENVIRONMENT: ("pollution", "environment", "green", "waste"),
    PolicyDomain.EMPLOYMENT: ("job", "employment", "wage", "work"),
}

GROUP_KEYWORDS: dict[str, tuple[str, ...]] = {
    "youth": ("youth", "young"),
    "elderly": ("elderly", "senior"),
    "women": ("women", "female"),
    "children": ("children", "child"),
    "farmer": ("farmer",),
    "poor": ("poor", "bpl"),
    "middle_class": ("middle class",),
    "urban": ("city", "urban"),
    "rural": ("village", "rural"),
}

FARE_INCREASE_COST = 500
FREE_OR_SUBSIDY_BENEFIT = 1000


class KeywordPolicyParser:
    """Deterministic rule-based parser for free-text policy descriptions."""

    def parse(self, raw: PolicyInput) -> PolicyDescriptor:
        if not isinstance(raw, str):
            raise PolicyParseFailure(f"Keyword parser expects text, got {type(raw).__name__}")
        text = raw.strip()
        if not text:
            raise PolicyParseFailure("Policy text is empty")
        lowered = text.lower()

        domain = PolicyDomain.GENERAL
        confidence = 0.4
        for candidate, keywords in DOMAIN_KEYWORDS.items():
            if any(keyword in lowered for keyword in keywords):
                domain = candidate
                confidence = 0.5
                break

        groups = [group for group, keywords in GROUP_KEYWORDS.items()
                  if any(keyword in lowered for keyword in keywords)]

        assumptions = ["Parsed using rule-based keyword matching"]
        cost = 0.0
        benefit = 0.0
        if "increase" in lowered and "fare" in lowered:
            cost = FARE_INCREASE_COST
            assumptions.append(f"Estimated {FARE_INCREASE_COST}/year fare increase")
        if "free" in lowered or "subsidy" in lowered:
            benefit = FREE_OR_SUBSIDY_BENEFIT
            assumptions.append(f"Estimated {FREE_OR_SUBSIDY_BENEFIT}/year benefit")

        logger.info("Keyword-parsed policy: domain=%s groups=%s", domain.value, groups)
        return validate_policy({
            "title": text[:100],
            "domain": domain.value,
            "targetGroups": groups or ["general_public"],
            "impacts": {"economicCost": cost, "economicBenefit": benefit},
            "promises": {"implementationDelay": 12},
            "confidence": confidence,
            "dataQuality": DataQuality.LOW.value,
            "assumptions": assumptions,
        })


# ════════════════════════════════════════════════════════════════
# Structured parser (dispatching)
# ════════════════════════════════════════════════════════════════


class StructuredPolicyParser:
    """
    Default parser: descriptors pass through, mappings and JSON objects are
    validated, anything else textual goes to the keyword parser.
    """

    def __init__(self, text_parser: PolicyParser | None = None) -> None:
        self.text_parser = text_parser or KeywordPolicyParser()

    def parse(self, raw: PolicyInput) -> PolicyDescriptor:
        if isinstance(raw, PolicyDescriptor):
            return raw
        if isinstance(raw, Mapping):
            return validate_policy(raw)
        if isinstance(raw, str):
            stripped = raw.strip()
            if stripped.startswith("{"):
                try:
                    data = json.loads(stripped)
                except json.JSONDecodeError as e:
                    raise PolicyParseFailure(f"Malformed policy JSON: {e}") from e
                if not isinstance(data, Mapping):
                    raise PolicyParseFailure("Policy JSON must be an object")
                return validate_policy(data)
            return self.text_parser.parse(stripped)
        raise PolicyParseFailure(f"Unsupported policy input type: {type(raw).__name__}")


def parse_policy(raw: PolicyInput, parser: PolicyParser | None = None) -> PolicyDescriptor:
    """Parse ``raw`` with ``parser`` (default: StructuredPolicyParser)."""
    return (parser or StructuredPolicyParser()).parse(raw)
