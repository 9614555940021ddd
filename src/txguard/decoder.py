"""Selector-based classification of unsigned transactions.

The decoder never raises: any malformed input (bad hex, calldata shorter than
a selector, unparseable value) degrades to a high-risk "unknown transaction"
result.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from eth_utils import decode_hex

from .models import DecodedTransaction, FunctionDescriptor, RawParameters, RiskLevel
from .schemas import TransactionRequest
from .scoring import DEFAULT_POLICY, RiskPolicy
from .signatures import DEFAULT_REGISTRY, NATIVE_TRANSFER_SELECTOR, UNKNOWN_FUNCTION, SignatureRegistry
from .units import format_address, parse_wei, wei_to_native

logger = logging.getLogger(__name__)

SELECTOR_BYTES = 4
WORD_BYTES = 32

APPROVAL_FUNCTIONS = frozenset({"approve", "increaseAllowance", "setApprovalForAll"})
LIQUIDITY_ADD_FUNCTIONS = frozenset({"addLiquidity", "addLiquidityETH"})
SWAP_FUNCTIONS = frozenset(
    {
        "swapExactTokensForTokens",
        "swapExactETHForTokens",
        "swapExactTokensForETH",
        "swapTokensForExactTokens",
    }
)


def split_calldata(data: Optional[str]) -> Tuple[str, bytes]:
    """Split calldata into (selector, parameter bytes).

    Empty calldata yields the native-transfer selector ``0x``. Raises ValueError
    for invalid hex or calldata shorter than a selector.
    """
    if data is None:
        return NATIVE_TRANSFER_SELECTOR, b""
    if not isinstance(data, str):
        raise ValueError(f"calldata must be a hex string, got {type(data).__name__}")
    raw = data.strip()
    if raw.lower() in ("", "0x"):
        return NATIVE_TRANSFER_SELECTOR, b""
    payload = decode_hex(raw)
    if len(payload) < SELECTOR_BYTES:
        raise ValueError(f"calldata too short: {len(payload)} byte(s)")
    return "0x" + payload[:SELECTOR_BYTES].hex(), payload[SELECTOR_BYTES:]


class TransactionDecoder:
    def __init__(
        self,
        registry: Optional[SignatureRegistry] = None,
        policy: Optional[RiskPolicy] = None,
        native_symbol: str = "ETH",
    ) -> None:
        self.registry = registry or DEFAULT_REGISTRY
        self.policy = policy or DEFAULT_POLICY
        self.native_symbol = native_symbol

    def decode_request(self, request: TransactionRequest) -> DecodedTransaction:
        return self.decode(request.to, request.data, request.value, request.from_address)

    def decode(
        self,
        to: Any,
        data: Any,
        value: Any = "0x0",
        from_address: Optional[str] = None,
    ) -> DecodedTransaction:
        try:
            if not isinstance(to, str):
                raise ValueError("recipient address must be a string")
            wei = parse_wei(value)
            native_value = wei_to_native(wei)
            selector, params = split_calldata(data)
            descriptor = self._resolve(selector, wei)

            score = self.policy.composite_score(
                descriptor.base_risk_tier, descriptor.name, native_value, descriptor.gas_estimate
            )
            risk_level = self.policy.level_for(score)

            return DecodedTransaction(
                function_name=descriptor.name,
                contract_address=to,
                protocol=descriptor.protocol,
                risk_level=risk_level,
                explanation=self._explain(descriptor, to, from_address, native_value),
                warnings=self._warnings(descriptor, risk_level, native_value),
                gas_estimate=descriptor.gas_estimate,
                raw_parameters=RawParameters(
                    selector=selector,
                    raw="0x" + params.hex(),
                    byte_length=len(params),
                    param_count=len(params) // WORD_BYTES,
                ),
                category=descriptor.category,
                risk_score=score,
            )
        except Exception as exc:
            logger.warning(
                "Falling back to unknown transaction",
                extra={"context": {"to": to if isinstance(to, str) else None, "error": str(exc)}},
            )
            return self._unknown_transaction(to, value)

    def _resolve(self, selector: str, wei: int) -> FunctionDescriptor:
        if selector == NATIVE_TRANSFER_SELECTOR and wei == 0:
            # Empty call with no value: nothing we can identify
            return UNKNOWN_FUNCTION.model_copy(update={"selector": selector})
        return self.registry.lookup(selector)

    def _with_value(self, native_value: float) -> str:
        return f" with {native_value:.4f} {self.native_symbol}" if native_value > 0 else ""

    def _explain(
        self,
        descriptor: FunctionDescriptor,
        to: str,
        from_address: Optional[str],
        native_value: float,
    ) -> str:
        name = descriptor.name
        protocol = descriptor.protocol
        to_short = format_address(to)

        if name == "ethTransfer":
            return f"You are about to send {native_value:.4f} {self.native_symbol} to {to_short}."
        if name == "transfer":
            return f"You are about to transfer tokens to {to_short}. This is an ERC20 token transfer operation."
        if name == "approve":
            return (
                f"⚠️ You are about to grant approval for {to_short} to spend your tokens. "
                "This contract will be able to move tokens from your wallet without further permission."
            )
        if name == "increaseAllowance":
            return (
                f"⚠️ You are about to increase the amount {to_short} may spend from your wallet "
                "without further permission."
            )
        if name == "transferFrom":
            return f"You are authorizing a transfer of tokens from one address to another through contract {to_short}."
        if name in SWAP_FUNCTIONS:
            return f"You are about to execute a token swap on {protocol}{self._with_value(native_value)}."
        if name in LIQUIDITY_ADD_FUNCTIONS:
            return (
                f"You are about to add liquidity to a {protocol} pool. Your tokens will be locked in the "
                "liquidity pool and you'll receive LP tokens in return."
            )
        if name in ("removeLiquidity", "removeLiquidityETH"):
            return f"You are about to remove liquidity from a {protocol} pool and receive your tokens back."
        if name == "safeTransferFrom":
            origin = f"from {format_address(from_address)} " if from_address else ""
            return f"You are about to transfer an NFT (ERC721 token) {origin}to {to_short}."
        if name == "setApprovalForAll":
            return (
                f"⚠️ You are about to give {to_short} control over every NFT you hold in this collection. "
                "The operator can transfer them without asking again."
            )
        if name == "ownerOf":
            return f"You are about to query the owner of an NFT on {to_short}. This call does not move assets."
        if name in ("mint", "deposit"):
            return f"You are about to deposit funds into {protocol} lending protocol to earn interest."
        if name in ("withdraw", "redeem"):
            return f"You are about to withdraw your deposited funds from {protocol} lending protocol."
        if name == "repayBorrow":
            return f"You are about to repay borrowed funds on {protocol} lending protocol."
        if name == "unknown" or descriptor.protocol == "Unknown":
            return (
                f"⚠️ You are about to execute an unknown function on contract {to_short}"
                f"{self._with_value(native_value)}. This transaction has not been identified by our security system."
            )
        return f"You are about to interact with contract {to_short} on {protocol}{self._with_value(native_value)}."

    def _warnings(self, descriptor: FunctionDescriptor, risk_level: RiskLevel, native_value: float) -> List[str]:
        warnings: List[str] = []
        name = descriptor.name

        if risk_level == "critical":
            warnings.append(
                "🚨 CRITICAL RISK: This transaction has multiple high-risk factors. Please verify all details carefully."
            )
        elif risk_level == "high":
            warnings.append("⚠️ HIGH RISK: This transaction involves significant risk. Double-check before proceeding.")

        if name in APPROVAL_FUNCTIONS:
            warnings.append(
                "🔐 TOKEN APPROVAL: You are granting spending permission. "
                "The contract can move your tokens without further approval."
            )
            warnings.append("💡 TIP: Consider using limited approvals instead of unlimited approvals.")

        if name in LIQUIDITY_ADD_FUNCTIONS:
            warnings.append("💧 LIQUIDITY LOCK: Your tokens will be locked in a liquidity pool.")
            warnings.append("📉 RISK: You may experience impermanent loss if token prices diverge.")

        if name == "unknown":
            warnings.append("❓ UNKNOWN FUNCTION: This function is not recognized by our security system.")
            warnings.append("🔍 RECOMMENDATION: Verify the contract on Etherscan before proceeding.")

        if native_value > self.policy.high_value_warning:
            warnings.append(
                f"💰 HIGH VALUE: You are sending {native_value:.4f} {self.native_symbol}. "
                "Verify the recipient address carefully."
            )

        if descriptor.gas_estimate > self.policy.high_gas:
            warnings.append("⛽ HIGH GAS: This transaction will consume significant gas fees.")

        return warnings

    def _unknown_transaction(self, to: Any, value: Any) -> DecodedTransaction:
        to_str = to if isinstance(to, str) else ""
        try:
            native_value = wei_to_native(parse_wei(value))
        except (TypeError, ValueError):
            native_value = 0.0
        return DecodedTransaction(
            function_name=UNKNOWN_FUNCTION.name,
            contract_address=to_str,
            protocol=UNKNOWN_FUNCTION.protocol,
            risk_level="high",
            explanation=f"Unknown transaction to {format_address(to_str)}{self._with_value(native_value)}",
            warnings=[
                "❓ UNKNOWN TRANSACTION: Could not decode this transaction.",
                "🔍 VERIFY: Check the contract on Etherscan before proceeding.",
            ],
            gas_estimate=UNKNOWN_FUNCTION.gas_estimate,
            raw_parameters=None,
            category=UNKNOWN_FUNCTION.category,
            risk_score=None,
        )


_default_decoder = TransactionDecoder()


def decode(to: Any, data: Any, value: Any = "0x0", from_address: Optional[str] = None) -> DecodedTransaction:
    return _default_decoder.decode(to, data, value, from_address)
