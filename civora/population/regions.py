"""
Region population shares and proportional allocation.

``REGION_POPULATION_SHARES`` is the default per-region share table (fractions
of the national population, keyed by the region names used for citizen
source files). Shares need not sum to 1; they are normalized before use.

Allocation gives every region ``floor(total * share)`` citizens and then hands
the remainder out one unit at a time to the largest-share regions (ties broken
by region name) so that the allocations always sum exactly to ``total``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from fractions import Fraction

REGION_POPULATION_SHARES: dict[str, float] = {
    "UP": 0.16833,
    "Bihar": 0.10358,
    "WB": 0.07255,
    "Maharastra": 0.08994,
    "Odissa": 0.04289,
    "Rajasthan": 0.05595,
    "Punjab": 0.02429,
    "Assam": 0.03998,
    "Jharkhand": 0.03233,
    "Uttrakhand": 0.01012,
    "AndhraPradesh": 0.06901,
    "Kerala": 0.02816,
    "haryana": 0.02099,
    "Delhi": 0.01692,
    "Himachal": 0.00540,
    "Jammu_kashmir": 0.01256,
    "GOA": 0.00167,
    "Manipur": 0.00286,
    "Mizoram": 0.00108,
    "Nagaland": 0.00107,
    "Arunachal": 0.00154,
    "AndamanNicobar": 0.00040,
}


def normalize_shares(shares: Mapping[str, float]) -> dict[str, Fraction]:
    """Exact shares summing to 1. Raises ValueError on negative or all-zero input."""
    if not shares:
        raise ValueError("At least one region share is required")
    exact = {region: Fraction(share) for region, share in shares.items()}
    if any(share < 0 for share in exact.values()):
        raise ValueError("Region shares must be non-negative")
    total = sum(exact.values())
    if total == 0:
        raise ValueError("Region shares must not all be zero")
    return {region: share / total for region, share in exact.items()}


def allocate_population(
    total: int,
    shares: Mapping[str, float] | None = None,
) -> dict[str, int]:
    """
    Split ``total`` citizens across regions proportionally to ``shares``.

    Args:
        total: Requested national population (>= 0).
        shares: Region -> share; defaults to REGION_POPULATION_SHARES.

    Returns:
        Region -> allocated count, in the input's region order; values sum to ``total``.
    """
    if total < 0:
        raise ValueError("Population size must be non-negative")
    normalized = normalize_shares(REGION_POPULATION_SHARES if shares is None else shares)

    allocation = {region: math.floor(total * share) for region, share in normalized.items()}
    remainder = total - sum(allocation.values())

    by_share = sorted(normalized, key=lambda region: (-normalized[region], region))
    index = 0
    while remainder > 0:
        allocation[by_share[index % len(by_share)]] += 1
        remainder -= 1
        index += 1
    return allocation
