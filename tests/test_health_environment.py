"""
Tests for the Health/Environment Impact Scorer.

Validates:
- Health vulnerability and environment sensitivity traits (with caps)
- Section triggering by domain and tags
- Unmodified two-term stand-in when no section applies
- Literacy and trust modifiers
"""

from __future__ import annotations

import pytest

from civora.core.schema import CitizenProfile, PolicyDescriptor
from civora.scoring.health_environment import (
    environment_sensitivity,
    health_environment_impact,
    health_environment_sections,
    health_vulnerability,
    literacy_modifier,
    trust_modifier,
)


def _citizen(**sections) -> CitizenProfile:
    return CitizenProfile.model_validate({"citizenId": "he", **sections})


class TestLatentTraits:
    """Test vulnerability and sensitivity."""

    def test_default_vulnerability(self):
        # baseline 0.5 + low income 0.15
        assert health_vulnerability(_citizen()) == pytest.approx(0.65)

    def test_vulnerability_capped(self):
        citizen = _citizen(
            demographics={"age": 75},
            health={"diseaseRisk": 80, "healthcareAccess": 10, "nutritionalStatus": {"category": "Underweight"}},
            socioEconomic={"povertyStatus": 1},
        )
        assert health_vulnerability(citizen) == 1.5

    def test_default_sensitivity(self):
        # baseline 0.3 + literacy 0.08 + media 0.1 - low income 0.15
        assert environment_sensitivity(_citizen()) == pytest.approx(0.33)

    def test_sensitivity_capped(self):
        citizen = _citizen(
            socioEconomic={"educationLevel": 4, "incomePerCapita": 40000, "occupation": "agriculture"},
            health={"healthLiteracy": 5},
            information={"policyAwareness": 5},
            demographics={"caste": "st"},
        )
        assert environment_sensitivity(citizen) == 1.2


class TestSections:
    """Test which sections fire."""

    def test_general_policy_fires_nothing(self):
        sections = health_environment_sections(_citizen(), PolicyDescriptor())
        assert sections.scores == {}
        assert not sections.fired

    def test_health_tag_fires_health_section(self):
        sections = health_environment_sections(_citizen(), PolicyDescriptor(target_groups=("hospital",)))
        assert "health" in sections.scores
        assert sections.fired

    def test_transport_domain_section(self):
        policy = PolicyDescriptor(domain="transport", target_groups=("helmet",))
        sections = health_environment_sections(_citizen(mobility={"transportationMode": "bike"}), policy)
        assert sections.scores == pytest.approx({"transport": 0.35})


class TestHealthEnvironmentImpact:
    """Test the final score."""

    def test_no_impacts_is_zero(self):
        assert health_environment_impact(_citizen(), PolicyDescriptor()) == 0.0

    def test_stand_in_when_no_section_fired(self):
        policy = PolicyDescriptor(impacts={"healthImpact": 100})
        # vulnerability 0.65 * 0.6, no literacy or trust modifier
        assert health_environment_impact(_citizen(), policy) == pytest.approx(0.65 * 0.6)

    def test_stand_in_ignores_modifiers(self):
        citizen = _citizen(health={"healthLiteracy": 5}, behavioral={"institutionalTrust": 90})
        policy = PolicyDescriptor(impacts={"healthImpact": 50, "environmentImpact": 50})
        expected = 0.5 * health_vulnerability(citizen) * 0.6 + 0.5 * environment_sensitivity(citizen) * 0.4
        assert health_environment_impact(citizen, policy) == pytest.approx(expected)

    def test_no_stand_in_when_another_section_fired(self):
        """An employment policy fires the occupational section, so raw health impact is not used."""
        policy = PolicyDescriptor(domain="employment", impacts={"healthImpact": 100})
        assert health_environment_sections(_citizen(), policy).fired
        assert health_environment_impact(_citizen(), policy) == 0.0

    def test_health_domain_uses_section(self):
        policy = PolicyDescriptor(domain="health", impacts={"healthImpact": 50})
        # section 0.5 * 0.65, weight 0.5, literacy modifier 1.05
        assert health_environment_impact(_citizen(), policy) == pytest.approx(0.5 * 0.65 * 0.5 * 1.05)

    def test_harmful_environment_policy_negative(self):
        policy = PolicyDescriptor(domain="environment", impacts={"environmentImpact": -80})
        assert health_environment_impact(_citizen(), policy) < 0

    def test_bounded(self):
        citizen = _citizen(
            demographics={"age": 75, "urbanization": "urban"},
            health={"diseaseRisk": 90, "healthLiteracy": 5},
            environment={"pollutionExposure": 400},
            behavioral={"institutionalTrust": 90},
        )
        policy = PolicyDescriptor(
            domain="health",
            target_groups=("hospital", "medicine", "elderly", "air", "pollution", "chronic"),
            impacts={"healthImpact": 100, "environmentImpact": 100},
        )
        assert -1.0 <= health_environment_impact(citizen, policy) <= 1.0

    def test_modifiers(self):
        assert literacy_modifier(5) == 1.15
        assert literacy_modifier(3) == 1.05
        assert literacy_modifier(2) == 0.9
        assert trust_modifier(20) == 0.85
        assert trust_modifier(50) == 1.0
        assert trust_modifier(80) == 1.1
