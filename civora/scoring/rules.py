"""
Declarative target-group rules.

A rule says: for policies in these domains, when one of these target-group
tags is present and the citizen satisfies this predicate, contribute this
amount. Scorers keep their rules as data (``RuleTable``) and evaluate them
generically instead of hand-writing a branch per tag:

    AFFECTEDNESS = RuleTable([
        Ladder(tags=("poor", "bpl"), steps=(
            Step(0.8, lambda c: c.socio_economic.is_poor, "below poverty line"),
            Step(0.75, lambda c: c.income < 3000, "very low income"),
        )),
        Rule(0.6, tags=("urban",), when=lambda c: c.demographics.urbanization == "urban"),
    ])

``Ladder`` models an if/elif chain: its steps share one trigger and only the
first step whose predicate holds contributes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from civora.core.schema import CitizenProfile, PolicyDescriptor, PolicyDomain

Predicate = Callable[[CitizenProfile], bool]


def always(citizen: CitizenProfile) -> bool:
    return True


def _domains(values: Iterable[PolicyDomain | str]) -> frozenset[PolicyDomain]:
    return frozenset(PolicyDomain(value) for value in values)


@dataclass(frozen=True)
class Match:
    """One rule that fired for a (citizen, policy) pair."""

    label: str
    contribution: float
    counted: bool = True


@dataclass(frozen=True)
class Step:
    """A rung of a ``Ladder``: contribution and the predicate that selects it."""

    contribution: float
    when: Predicate = always
    label: str = ""
    counted: bool = True


class _Triggered:
    """Shared domain/tag trigger logic for rules and ladders."""

    domains: frozenset[PolicyDomain]
    tags: frozenset[str]

    def triggered_by(self, policy: PolicyDescriptor) -> bool:
        if self.domains and policy.domain not in self.domains:
            return False
        if self.tags and not (self.tags & policy.tags):
            return False
        return True


@dataclass(frozen=True, init=False)
class Rule(_Triggered):
    """A single ``(domains, tags, predicate, contribution)`` entry."""

    contribution: float
    when: Predicate
    tags: frozenset[str]
    domains: frozenset[PolicyDomain]
    label: str
    counted: bool

    def __init__(
        self,
        contribution: float,
        *,
        when: Predicate = always,
        tags: Iterable[str] = (),
        domains: Iterable[PolicyDomain | str] = (),
        label: str = "",
        counted: bool = True,
    ) -> None:
        object.__setattr__(self, "contribution", contribution)
        object.__setattr__(self, "when", when)
        object.__setattr__(self, "tags", frozenset(tags))
        object.__setattr__(self, "domains", _domains(domains))
        object.__setattr__(self, "label", label or "/".join(sorted(self.tags)) or "rule")
        object.__setattr__(self, "counted", counted)

    def evaluate(self, citizen: CitizenProfile, policy: PolicyDescriptor) -> list[Match]:
        if self.triggered_by(policy) and self.when(citizen):
            return [Match(self.label, self.contribution, self.counted)]
        return []


@dataclass(frozen=True, init=False)
class Ladder(_Triggered):
    """Steps sharing one trigger; the first step whose predicate holds wins."""

    steps: tuple[Step, ...]
    tags: frozenset[str]
    domains: frozenset[PolicyDomain]
    label: str

    def __init__(
        self,
        steps: Iterable[Step],
        *,
        tags: Iterable[str] = (),
        domains: Iterable[PolicyDomain | str] = (),
        label: str = "",
    ) -> None:
        object.__setattr__(self, "steps", tuple(steps))
        object.__setattr__(self, "tags", frozenset(tags))
        object.__setattr__(self, "domains", _domains(domains))
        object.__setattr__(self, "label", label or "/".join(sorted(self.tags)) or "ladder")

    def evaluate(self, citizen: CitizenProfile, policy: PolicyDescriptor) -> list[Match]:
        if not self.triggered_by(policy):
            return []
        for step in self.steps:
            if step.when(citizen):
                return [Match(step.label or self.label, step.contribution, step.counted)]
        return []


@dataclass(frozen=True, init=False)
class RuleTable:
    """An ordered collection of rules and ladders evaluated as one unit."""

    entries: tuple[Rule | Ladder, ...]

    def __init__(self, entries: Iterable[Rule | Ladder] = ()) -> None:
        object.__setattr__(self, "entries", tuple(entries))

    def __add__(self, other: RuleTable) -> RuleTable:
        return RuleTable(self.entries + other.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def matches(self, citizen: CitizenProfile, policy: PolicyDescriptor) -> list[Match]:
        found: list[Match] = []
        for entry in self.entries:
            found.extend(entry.evaluate(citizen, policy))
        return found

    def total(self, citizen: CitizenProfile, policy: PolicyDescriptor) -> float:
        return sum(match.contribution for match in self.matches(citizen, policy))


def ladder(*steps: tuple[float, Predicate], **trigger) -> Ladder:
    """Shorthand: ``ladder((0.8, pred_a), (0.3, pred_b), tags=("youth",))``."""
    return Ladder([Step(value, when) for value, when in steps], **trigger)


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def ordinal_fraction(value: float) -> float:
    """Rescale a 1-5 ordinal trait to 0-1."""
    return clamp((value - 1) / 4, 0.0, 1.0)
