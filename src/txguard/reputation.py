"""Curated trust data for well-known contract addresses."""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Protocol

from .models import ContractInfo


class ReputationLookup(Protocol):
    def get(self, address: str) -> Optional[ContractInfo]: ...


_KNOWN_CONTRACTS = (
    # DEX routers
    ContractInfo(
        address="0x7a250d5630b4cf539739df2c5dacb4c659f2488d",
        name="Uniswap V2 Router",
        reputation=95,
        verified=True,
        category="DEX",
    ),
    ContractInfo(
        address="0xe592427a0aece92de3edee1f18e0157c05861564",
        name="Uniswap V3 Router",
        reputation=98,
        verified=True,
        category="DEX",
    ),
    ContractInfo(
        address="0x68b3465833fb72a70ecdf485e0e4c7bd8665fc45",
        name="Uniswap V3 Router 2",
        reputation=98,
        verified=True,
        category="DEX",
    ),
    # Lending
    ContractInfo(
        address="0x3d9819210a31b4961b30ef54be2aed79b9c9cd3b",
        name="Compound Comptroller",
        reputation=96,
        verified=True,
        category="Lending",
    ),
    ContractInfo(
        address="0x7d2768de32b0b80b7a3454c06bdac94a69ddc7a9",
        name="Aave Lending Pool",
        reputation=97,
        verified=True,
        category="Lending",
    ),
    # Tokens
    ContractInfo(
        address="0xdac17f958d2ee523a2206206994597c13d831ec7",
        name="Tether (USDT)",
        reputation=90,
        verified=True,
        category="Token",
    ),
    ContractInfo(
        address="0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
        name="USD Coin (USDC)",
        reputation=95,
        verified=True,
        category="Token",
    ),
)


class ReputationRegistry(Mapping[str, ContractInfo]):
    """Read-only table keyed by lowercase address."""

    def __init__(self, contracts: Iterable[ContractInfo]) -> None:
        self._table = MappingProxyType({c.address.lower(): c for c in contracts})

    def __getitem__(self, address: str) -> ContractInfo:
        return self._table[address.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.strip().lower() in self._table

    def get(self, address: Optional[str], default: Optional[ContractInfo] = None) -> Optional[ContractInfo]:  # type: ignore[override]
        if not isinstance(address, str) or not address:
            return default
        return self._table.get(address.strip().lower(), default)


DEFAULT_REPUTATION = ReputationRegistry(_KNOWN_CONTRACTS)


def get_contract_info(address: Optional[str]) -> Optional[ContractInfo]:
    return DEFAULT_REPUTATION.get(address)
