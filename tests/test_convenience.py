"""
Tests for the Convenience Impact Scorer.

Validates:
- Zero when no section applies
- Time-value multiplier and its bounds
- Time change scaling and the adaptability modifier
- Section triggers (digital tags, work licences)
"""

from __future__ import annotations

import pytest

from civora.core.schema import CitizenProfile, PolicyDescriptor
from civora.scoring.convenience import (
    adaptability_modifier,
    convenience_impact,
    convenience_sections,
    time_value_multiplier,
    work_section,
)


def _citizen(**sections) -> CitizenProfile:
    return CitizenProfile.model_validate({"citizenId": "conv", **sections})


class TestTimeValue:
    """Test the time-value multiplier."""

    def test_default_citizen(self):
        # informal +0.2, low income -0.2, age 25-45 +0.2, household of 4 +0.1
        assert time_value_multiplier(_citizen()) == pytest.approx(1.3)

    def test_upper_bound(self):
        citizen = _citizen(
            socioEconomic={"employmentType": "formal", "incomePerCapita": 30000},
            demographics={"age": 65, "householdSize": 6, "sex": "female"},
            mobility={"commuteTime": 90},
        )
        assert time_value_multiplier(citizen) == 2.5


class TestConvenienceImpact:
    """Test the final convenience score."""

    def test_no_section_is_zero(self):
        assert convenience_sections(_citizen(), PolicyDescriptor()) == {}
        assert convenience_impact(_citizen(), PolicyDescriptor()) == 0.0

    def test_time_loss(self):
        policy = PolicyDescriptor(impacts={"timeChange": -60})
        # section -0.65, weight 0.35, modifier 1.1 (low education)
        assert convenience_impact(_citizen(), policy) == pytest.approx(-0.65 * 0.35 * 1.1)

    def test_time_gain(self):
        policy = PolicyDescriptor(impacts={"timeChange": 60})
        assert convenience_impact(_citizen(), policy) == pytest.approx(0.65 * 0.35 * 0.9)

    def test_adaptable_citizen_feels_less_inconvenience(self):
        policy = PolicyDescriptor(impacts={"timeChange": -60})
        rigid = _citizen(behavioral={"changeAdaptability": 1})
        adaptable = _citizen(behavioral={"changeAdaptability": 5}, socioEconomic={"educationLevel": 3})
        assert abs(convenience_impact(adaptable, policy)) < abs(convenience_impact(rigid, policy))

    def test_adaptability_modifier(self):
        assert adaptability_modifier(_citizen()) == pytest.approx(1.1)
        elderly = _citizen(behavioral={"changeAdaptability": 2}, demographics={"age": 70})
        assert adaptability_modifier(elderly) == pytest.approx(1.2 * 1.15 * 1.1)

    def test_digital_tag_fires_digital_section(self):
        sections = convenience_sections(_citizen(), PolicyDescriptor(target_groups=("online",)))
        assert set(sections) == {"digital"}

    def test_bounded(self):
        citizen = _citizen(
            socioEconomic={"employmentType": "formal", "incomePerCapita": 30000},
            mobility={"commuteTime": 120, "transportationMode": "bus"},
        )
        policy = PolicyDescriptor(domain="transport", impacts={"timeChange": -300, "economicCost": 100})
        assert -1.0 <= convenience_impact(citizen, policy) <= 1.0


class TestWorkSection:
    """Licence costs only hurt informal workers when they cost money."""

    def setup_method(self):
        self.citizen = _citizen(socioEconomic={"employmentType": "informal"})

    def test_free_licence(self):
        policy = PolicyDescriptor(domain="employment", target_groups=("license",))
        assert work_section(self.citizen, policy) == 0.0

    def test_paid_licence(self):
        policy = PolicyDescriptor(
            domain="employment", target_groups=("license",), impacts={"economicCost": 100}
        )
        assert work_section(self.citizen, policy) == pytest.approx(-0.3)

    def test_paid_permit(self):
        policy = PolicyDescriptor(
            domain="employment", target_groups=("permit",), impacts={"economicCost": 100}
        )
        assert work_section(self.citizen, policy) == pytest.approx(-0.3)
