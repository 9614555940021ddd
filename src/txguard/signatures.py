"""Static registry of known function selectors.

Selectors are computed once at import time from canonical signatures
(keccak-256 of the signature text, first 4 bytes), so the table cannot drift
from the signatures it documents. The native value transfer has no calldata
and is keyed by the empty selector ``0x``.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple

from eth_utils import keccak

from .models import FunctionDescriptor

NATIVE_TRANSFER_SELECTOR = "0x"

# signature, protocol, description, base risk tier, gas estimate, category
_KNOWN_FUNCTIONS: Tuple[Tuple[str, str, str, str, int, str], ...] = (
    # ERC-20
    ("transfer(address,uint256)", "ERC20", "Transfer tokens", "low", 65000, "token_transfer"),
    ("approve(address,uint256)", "ERC20", "Approve token spending", "medium", 46000, "token_approval"),
    (
        "transferFrom(address,address,uint256)",
        "ERC20",
        "Transfer tokens from another address",
        "medium",
        70000,
        "token_transfer",
    ),
    (
        "increaseAllowance(address,uint256)",
        "ERC20",
        "Increase an existing token allowance",
        "medium",
        48000,
        "token_approval",
    ),
    # Uniswap V2 router
    (
        "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)",
        "Uniswap",
        "Swap exact amount of tokens for tokens",
        "medium",
        180000,
        "swap",
    ),
    (
        "swapExactETHForTokens(uint256,address[],address,uint256)",
        "Uniswap",
        "Swap exact ETH for tokens",
        "medium",
        160000,
        "swap",
    ),
    (
        "swapExactTokensForETH(uint256,uint256,address[],address,uint256)",
        "Uniswap",
        "Swap exact tokens for ETH",
        "medium",
        170000,
        "swap",
    ),
    (
        "swapTokensForExactTokens(uint256,uint256,address[],address,uint256)",
        "Uniswap",
        "Swap tokens for an exact amount of tokens",
        "medium",
        180000,
        "swap",
    ),
    (
        "addLiquidity(address,address,uint256,uint256,uint256,uint256,address,uint256)",
        "Uniswap",
        "Add liquidity to pool",
        "high",
        200000,
        "liquidity_add",
    ),
    (
        "addLiquidityETH(address,uint256,uint256,uint256,address,uint256)",
        "Uniswap",
        "Add ETH liquidity to pool",
        "high",
        210000,
        "liquidity_add",
    ),
    (
        "removeLiquidity(address,address,uint256,uint256,uint256,address,uint256)",
        "Uniswap",
        "Remove liquidity from pool",
        "medium",
        180000,
        "liquidity_remove",
    ),
    (
        "removeLiquidityETH(address,uint256,uint256,uint256,address,uint256)",
        "Uniswap",
        "Remove ETH liquidity from pool",
        "medium",
        180000,
        "liquidity_remove",
    ),
    # ERC-721
    (
        "safeTransferFrom(address,address,uint256)",
        "ERC721",
        "Safely transfer NFT",
        "medium",
        80000,
        "nft_transfer",
    ),
    (
        "setApprovalForAll(address,bool)",
        "ERC721",
        "Grant an operator control over all NFTs",
        "critical",
        50000,
        "nft_approval",
    ),
    ("ownerOf(uint256)", "ERC721", "Check NFT owner", "low", 25000, "contract_interaction"),
    # Lending
    ("mint()", "Compound", "Deposit and mint cTokens", "medium", 150000, "lending"),
    ("redeem(uint256)", "Compound", "Redeem cTokens for the underlying asset", "low", 130000, "lending"),
    ("repayBorrow(uint256)", "Compound", "Repay borrowed funds", "medium", 140000, "lending"),
    ("withdraw(uint256)", "Compound", "Withdraw deposited funds", "low", 120000, "lending"),
    (
        "deposit(address,uint256,address,uint16)",
        "Aave",
        "Deposit funds into the lending pool",
        "medium",
        180000,
        "lending",
    ),
)

UNKNOWN_FUNCTION = FunctionDescriptor(
    selector="",
    signature="",
    name="unknown",
    protocol="Unknown",
    description="Unknown function call",
    base_risk_tier="high",
    gas_estimate=200000,
    category="contract_interaction",
)

NATIVE_TRANSFER = FunctionDescriptor(
    selector=NATIVE_TRANSFER_SELECTOR,
    signature="",
    name="ethTransfer",
    protocol="Ethereum",
    description="Send native currency",
    base_risk_tier="low",
    gas_estimate=21000,
    category="eth_transfer",
)


def selector_for(signature: str) -> str:
    return "0x" + keccak(text=signature)[:4].hex()


def normalize_selector(selector: str) -> str:
    s = (selector or "").strip().lower()
    if not s.startswith("0x"):
        s = "0x" + s
    return s


class SignatureRegistry(Mapping[str, FunctionDescriptor]):
    """Read-only selector -> FunctionDescriptor table."""

    def __init__(self, descriptors: Mapping[str, FunctionDescriptor]) -> None:
        self._table = MappingProxyType(
            {normalize_selector(sel): desc for sel, desc in descriptors.items()}
        )

    def __getitem__(self, selector: str) -> FunctionDescriptor:
        return self._table[normalize_selector(selector)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, selector: object) -> bool:
        return isinstance(selector, str) and normalize_selector(selector) in self._table

    def lookup(self, selector: str) -> FunctionDescriptor:
        """Return the descriptor for ``selector`` or the unknown sentinel."""
        desc = self._table.get(normalize_selector(selector))
        if desc is None:
            return UNKNOWN_FUNCTION.model_copy(update={"selector": normalize_selector(selector)})
        return desc

    def known_selectors(self) -> Dict[str, str]:
        return {sel: desc.signature for sel, desc in self._table.items() if desc.signature}


def _build_default_registry() -> SignatureRegistry:
    table: Dict[str, FunctionDescriptor] = {NATIVE_TRANSFER_SELECTOR: NATIVE_TRANSFER}
    for signature, protocol, description, tier, gas, category in _KNOWN_FUNCTIONS:
        selector = selector_for(signature)
        table[selector] = FunctionDescriptor(
            selector=selector,
            signature=signature,
            name=signature.split("(")[0],
            protocol=protocol,
            description=description,
            base_risk_tier=tier,
            gas_estimate=gas,
            category=category,
        )
    return SignatureRegistry(table)


DEFAULT_REGISTRY = _build_default_registry()


def lookup(selector: str) -> FunctionDescriptor:
    return DEFAULT_REGISTRY.lookup(selector)
