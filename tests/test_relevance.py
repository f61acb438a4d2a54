"""
Tests for the Relevance Scorer.

Validates:
- Output bounded to [0, 1] in every domain
- Universal multiplier (trust, risk tolerance, adaptability, awareness)
- General-domain cost burden term
- Domain-specific attributes raising relevance
"""

from __future__ import annotations

import pytest

from civora.core.schema import CitizenProfile, PolicyDescriptor, PolicyDomain
from civora.scoring.relevance import (
    awareness_factor,
    cost_burden_relevance,
    relevance,
    trust_factor,
    universal_multiplier,
)


def _citizen(**sections) -> CitizenProfile:
    return CitizenProfile.model_validate({"citizenId": "rel", **sections})


class TestRelevanceBounds:
    """Relevance stays within [0, 1] for extreme citizens in every domain."""

    def setup_method(self):
        self.citizens = [
            _citizen(),
            _citizen(
                demographics={"age": 75, "sex": "female", "householdSize": 9, "caste": "sc",
                              "religion": "muslim", "genderImbalance": 0.5},
                socioEconomic={"incomePerCapita": 500, "povertyStatus": 1, "occupation": "agriculture",
                               "wealthQuintile": "q1"},
                behavioral={"institutionalTrust": 5, "riskTolerance": 1, "changeAdaptability": 1,
                            "casteConsciousness": 5},
                health={"diseaseRisk": 95, "healthcareAccess": 5},
                financial={"incomeStability": 1, "debtVulnerability": 95},
                information={"policyAwareness": 5},
            ),
            _citizen(information={"policyAwareness": 1}, behavioral={"institutionalTrust": 95}),
        ]

    def test_bounded_in_every_domain(self):
        for domain in PolicyDomain:
            policy = PolicyDescriptor(domain=domain, impacts={"economicCost": 1_000_000})
            for citizen in self.citizens:
                score = relevance(citizen, policy)
                assert 0.0 <= score <= 1.0, f"{domain.value}: {score}"


class TestUniversalMultiplier:
    """Test the behavioural multiplier."""

    def test_trust_factor(self):
        assert trust_factor(30) == 1.3
        assert trust_factor(45) == 1.15
        assert trust_factor(60) == 1.0
        assert trust_factor(80) == 0.9

    def test_awareness_factor(self):
        assert awareness_factor(1) == 0.5
        assert awareness_factor(2) == 0.75
        assert awareness_factor(3) == 1.0
        assert awareness_factor(4) == 1.25

    def test_default_citizen_multiplier(self):
        """Neutral traits leave only the default awareness discount."""
        assert universal_multiplier(_citizen()) == pytest.approx(0.75)

    def test_skeptical_risk_averse_citizen_pays_more_attention(self):
        skeptic = _citizen(behavioral={"institutionalTrust": 20, "riskTolerance": 1})
        assert universal_multiplier(skeptic) > universal_multiplier(_citizen())


class TestGeneralDomain:
    """Test the general-domain rule table."""

    def test_default_citizen_zero_cost(self):
        # base 0.02 + general 0.10 + awareness 0.08 + voter 0.15 + media 0.12
        assert relevance(_citizen(), PolicyDescriptor()) == pytest.approx(0.47 * 0.75)

    def test_cost_burden_term(self):
        policy = PolicyDescriptor(impacts={"economicCost": 1200})
        assert cost_burden_relevance(_citizen(), policy) == pytest.approx(0.2)
        assert relevance(_citizen(), policy) == pytest.approx(0.67 * 0.75)

    def test_cost_burden_capped(self):
        policy = PolicyDescriptor(impacts={"economicCost": 500_000})
        assert cost_burden_relevance(_citizen(), policy) == 0.40

    def test_no_cost_no_burden(self):
        assert cost_burden_relevance(_citizen(), PolicyDescriptor()) == 0.0


class TestDomainRules:
    """Domain attributes raise relevance."""

    def test_car_user_more_concerned_by_transport_than_walker(self):
        policy = PolicyDescriptor(domain="transport")
        car = _citizen(mobility={"transportationMode": "car"})
        walker = _citizen(mobility={"transportationMode": "walk"})
        assert relevance(car, policy) > relevance(walker, policy)

    def test_farmer_more_concerned_by_agriculture(self):
        policy = PolicyDescriptor(domain="agriculture")
        farmer = _citizen(socioEconomic={"occupation": "agriculture"})
        clerk = _citizen(socioEconomic={"occupation": "services"}, demographics={"urbanization": "urban"})
        assert relevance(farmer, policy) > relevance(clerk, policy)

    def test_elderly_more_concerned_by_health(self):
        policy = PolicyDescriptor(domain="health")
        assert relevance(_citizen(demographics={"age": 70}), policy) > relevance(
            _citizen(demographics={"age": 22}), policy
        )
