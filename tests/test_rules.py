"""
Tests for declarative target-group rules.

Validates:
- Domain and tag triggers
- Citizen predicates
- Ladder first-match semantics
- Rule table totals and concatenation
- Clamping helpers
"""

from __future__ import annotations

from civora.core.schema import CitizenProfile, PolicyDescriptor, PolicyDomain
from civora.scoring.rules import Ladder, Rule, RuleTable, Step, clamp, ladder, ordinal_fraction


def _citizen(age: float = 35, income: float = 1000) -> CitizenProfile:
    return CitizenProfile.model_validate({
        "citizenId": "r1",
        "demographics": {"age": age},
        "socioEconomic": {"incomePerCapita": income},
    })


class TestRule:
    """Test single rule triggering."""

    def test_tag_trigger(self):
        rule = Rule(0.5, tags=("elderly", "seniors"))
        assert rule.evaluate(_citizen(), PolicyDescriptor(target_groups=("seniors",)))
        assert not rule.evaluate(_citizen(), PolicyDescriptor(target_groups=("youth",)))

    def test_domain_trigger(self):
        rule = Rule(0.5, domains=(PolicyDomain.HEALTH,), tags=("elderly",))
        tagged = ("elderly",)
        assert rule.evaluate(_citizen(), PolicyDescriptor(domain="health", target_groups=tagged))
        assert not rule.evaluate(_citizen(), PolicyDescriptor(domain="transport", target_groups=tagged))

    def test_predicate(self):
        rule = Rule(0.75, tags=("elderly",), when=lambda c: c.age >= 60)
        policy = PolicyDescriptor(target_groups=("elderly",))
        assert rule.evaluate(_citizen(age=70), policy)[0].contribution == 0.75
        assert rule.evaluate(_citizen(age=30), policy) == []

    def test_untriggered_rule_always_applies(self):
        rule = Rule(0.1, label="base")
        matches = rule.evaluate(_citizen(), PolicyDescriptor())
        assert matches[0].label == "base"

    def test_default_label_from_tags(self):
        assert Rule(0.1, tags=("b", "a")).label == "a/b"


class TestLadder:
    """Test if/elif chains."""

    def test_first_matching_step_wins(self):
        chain = ladder(
            (0.8, lambda c: c.income < 3000),
            (0.5, lambda c: c.income < 5000),
            tags=("poor",),
        )
        policy = PolicyDescriptor(target_groups=("poor",))
        assert [m.contribution for m in chain.evaluate(_citizen(income=1000), policy)] == [0.8]
        assert [m.contribution for m in chain.evaluate(_citizen(income=4000), policy)] == [0.5]
        assert chain.evaluate(_citizen(income=9000), policy) == []

    def test_step_labels(self):
        chain = Ladder([Step(0.3, label="low"), Step(0.1, label="fallback")], label="chain")
        assert chain.evaluate(_citizen(), PolicyDescriptor())[0].label == "low"


class TestRuleTable:
    """Test rule table evaluation."""

    def setup_method(self):
        self.table = RuleTable([
            Rule(0.2, label="base"),
            Rule(0.5, tags=("youth",), when=lambda c: c.age < 30),
            Rule(0.1, tags=("youth",), when=lambda c: c.age < 30, counted=False),
        ])

    def test_total_sums_matches(self):
        policy = PolicyDescriptor(target_groups=("youth",))
        assert abs(self.table.total(_citizen(age=20), policy) - 0.8) < 1e-9
        assert abs(self.table.total(_citizen(age=40), policy) - 0.2) < 1e-9

    def test_uncounted_matches_are_flagged(self):
        matches = self.table.matches(_citizen(age=20), PolicyDescriptor(target_groups=("youth",)))
        assert [m.counted for m in matches] == [True, True, False]

    def test_concatenation(self):
        combined = self.table + RuleTable([Rule(1.0)])
        assert len(combined) == 4
        assert len(self.table) == 3


class TestHelpers:
    """Test clamp and ordinal rescaling."""

    def test_clamp(self):
        assert clamp(1.7) == 1.0
        assert clamp(-3) == -1.0
        assert clamp(0.4) == 0.4
        assert clamp(2.0, 0.0, 1.5) == 1.5

    def test_ordinal_fraction(self):
        assert ordinal_fraction(1) == 0.0
        assert ordinal_fraction(3) == 0.5
        assert ordinal_fraction(5) == 1.0
        assert ordinal_fraction(9) == 1.0
