from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from .models import ContractInfo, DecodedTransaction, RiskFactors, RiskLevel
from .reputation import DEFAULT_REPUTATION, ReputationLookup
from .schemas import TransactionRequest
from .scoring import DEFAULT_POLICY, RiskPolicy
from .signatures import DEFAULT_REGISTRY, SignatureRegistry
from .units import parse_quantity, parse_wei, wei_to_native

MAX_RECOMMENDATIONS = 5

TxData = Union[TransactionRequest, Mapping[str, Any]]


def _tx_field(tx: TxData, name: str) -> Any:
    if isinstance(tx, TransactionRequest):
        return getattr(tx, name, None)
    return tx.get(name)


def _native_value(tx: TxData) -> float:
    try:
        return wei_to_native(parse_wei(_tx_field(tx, "value")))
    except (TypeError, ValueError):
        return 0.0


def _gas_limit(tx: TxData) -> Optional[int]:
    if isinstance(tx, TransactionRequest):
        raw = tx.gas_limit
    else:
        raw = next((tx[k] for k in ("gasLimit", "gas_limit", "gas") if tx.get(k) is not None), None)
    if raw is None:
        return None
    try:
        return parse_quantity(raw, "gas limit") or None
    except ValueError:
        return None


class RiskAssessment:
    """Multi-factor scoring of a decoded transaction.

    Each factor is an integer in 0..4; the overall level comes from the same
    ``RiskPolicy`` thresholds the decoder uses.
    """

    def __init__(
        self,
        reputation: Optional[ReputationLookup] = None,
        policy: Optional[RiskPolicy] = None,
        registry: Optional[SignatureRegistry] = None,
    ) -> None:
        self.reputation = reputation if reputation is not None else DEFAULT_REPUTATION
        self.policy = policy or DEFAULT_POLICY
        self.registry = registry or DEFAULT_REGISTRY

    def get_contract_info(self, address: Optional[str]) -> Optional[ContractInfo]:
        if not address:
            return None
        return self.reputation.get(address.lower())

    def assess(self, decoded: DecodedTransaction, tx: TxData) -> RiskFactors:
        native_value = _native_value(tx)
        to = _tx_field(tx, "to") or decoded.contract_address

        value_risk = self.policy.value_score(native_value)
        function_risk = self.assess_function_risk(decoded)
        contract_risk = self.assess_contract_risk(to)
        # a caller-supplied gas limit overrides the per-function estimate
        gas = _gas_limit(tx) or decoded.gas_estimate
        gas_risk = self.policy.gas_score(gas)

        overall_score = value_risk + function_risk + contract_risk + gas_risk
        overall_risk = self.policy.level_for(overall_score)

        return RiskFactors(
            value_risk=value_risk,
            function_risk=function_risk,
            contract_risk=contract_risk,
            gas_risk=gas_risk,
            overall_score=overall_score,
            overall_risk=overall_risk,
            recommendations=self.recommendations(decoded, to, native_value, overall_risk, gas),
        )

    def assess_function_risk(self, decoded: DecodedTransaction) -> int:
        selector = decoded.raw_parameters.selector if decoded.raw_parameters else None
        tier = "high"
        if selector is not None:
            descriptor = self.registry.lookup(selector)
            if descriptor.name == decoded.function_name:
                tier = descriptor.base_risk_tier
        return self.policy.function_score(tier, decoded.function_name)

    def assess_contract_risk(self, address: Optional[str]) -> int:
        contract = self.get_contract_info(address)
        if contract is None:
            return 3
        if not contract.verified:
            return 3
        if contract.reputation >= 90:
            return 0
        if contract.reputation >= 70:
            return 1
        if contract.reputation >= 50:
            return 2
        return 3

    def recommendations(
        self,
        decoded: DecodedTransaction,
        to: Optional[str],
        native_value: float,
        risk_level: RiskLevel,
        gas: Optional[int] = None,
    ) -> List[str]:
        out: List[str] = []

        def add(*items: str) -> None:
            for item in items:
                if item not in out:
                    out.append(item)

        name = decoded.function_name or ""

        if risk_level in ("critical", "high"):
            add("🔍 Verify the contract address on Etherscan", "🛡️ Consider testing with a small amount first")

        if self.get_contract_info(to) is None:
            add("📋 Check if the contract is verified on Etherscan", "👥 Research the project and read reviews")

        if name == "approve":
            add("💡 Use limited approvals instead of unlimited amounts", "🔒 Revoke unused approvals regularly")

        if name == "addLiquidity":
            add("📊 Understand impermanent loss before providing liquidity", "⏰ Monitor your position regularly")

        if "swap" in name.lower():
            add("💱 Check slippage tolerance settings", "⏱️ Consider transaction timing during high volatility")

        if native_value > self.policy.large_value_recommendation:
            add(
                "💰 Double-check recipient address for large transfers",
                "🔐 Consider using a hardware wallet for large transactions",
            )

        if (gas if gas is not None else decoded.gas_estimate) > self.policy.high_gas:
            add("⛽ Transaction will use high gas - wait for lower gas prices if not urgent")

        return out[:MAX_RECOMMENDATIONS]


_default_assessment = RiskAssessment()


def assess(decoded: DecodedTransaction, tx: TxData) -> RiskFactors:
    return _default_assessment.assess(decoded, tx)
