"""Shared risk policy.

The decoder and the risk assessment engine both score transactions. They read
every tier table and the score -> level thresholds from one ``RiskPolicy`` so
the two risk labels stay consistent for the same transaction.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from .models import RiskLevel


def _frozen(d: dict) -> Mapping:
    return MappingProxyType(d)


@dataclass(frozen=True)
class RiskPolicy:
    tier_scores: Mapping[str, int] = field(
        default_factory=lambda: _frozen({"low": 0, "medium": 2, "high": 3, "critical": 4})
    )
    # (exclusive lower bound in native units, score), highest first
    value_tiers: Tuple[Tuple[float, int], ...] = ((10.0, 4), (5.0, 3), (1.0, 2), (0.1, 1))
    gas_tiers: Tuple[Tuple[int, int], ...] = ((300_000, 2), (200_000, 1))
    name_penalties: Mapping[str, int] = field(
        default_factory=lambda: _frozen(
            {
                "unknown": 4,
                "approve": 2,
                "setApprovalForAll": 2,
                "addLiquidity": 2,
                "addLiquidityETH": 2,
            }
        )
    )
    keyword_penalties: Tuple[Tuple[str, int], ...] = (("swap", 2),)
    # (inclusive lower bound, level), highest first; anything below is "low"
    level_thresholds: Tuple[Tuple[int, RiskLevel], ...] = ((8, "critical"), (5, "high"), (3, "medium"))
    factor_cap: int = 4
    default_tier_score: int = 2

    # Warning / recommendation triggers
    high_value_warning: float = 10.0
    large_value_recommendation: float = 5.0
    high_gas: int = 300_000

    def tier_score(self, tier: str) -> int:
        return self.tier_scores.get(tier, self.default_tier_score)

    def value_score(self, native_value: float) -> int:
        for bound, score in self.value_tiers:
            if native_value > bound:
                return score
        return 0

    def gas_score(self, gas_estimate: int) -> int:
        for bound, score in self.gas_tiers:
            if gas_estimate > bound:
                return score
        return 0

    def name_penalty(self, function_name: str) -> int:
        if function_name in self.name_penalties:
            return self.name_penalties[function_name]
        lowered = function_name.lower()
        return max((p for kw, p in self.keyword_penalties if kw in lowered), default=0)

    def function_score(self, tier: str, function_name: str) -> int:
        """Bounded function factor used by the assessment engine."""
        return min(self.factor_cap, self.tier_score(tier) + self.name_penalty(function_name))

    def composite_score(self, tier: str, function_name: str, native_value: float, gas_estimate: int) -> int:
        """Unbounded quick estimate used by the decoder for its own label."""
        return (
            self.tier_score(tier)
            + self.value_score(native_value)
            + self.name_penalty(function_name)
            + self.gas_score(gas_estimate)
        )

    def level_for(self, score: int) -> RiskLevel:
        for bound, level in self.level_thresholds:
            if score >= bound:
                return level
        return "low"


DEFAULT_POLICY = RiskPolicy()
