from txguard.models import ContractInfo
from txguard.reputation import DEFAULT_REPUTATION, ReputationRegistry, get_contract_info

from conftest import UNISWAP_V2_ROUTER, UNKNOWN_CONTRACT


def test_known_contract_lookup_ignores_case():
    info = get_contract_info(UNISWAP_V2_ROUTER)
    assert info is not None
    assert info.name == "Uniswap V2 Router"
    assert info.reputation == 95
    assert info.verified is True
    assert info.category == "DEX"
    assert get_contract_info(UNISWAP_V2_ROUTER.lower()) == info


def test_unknown_contract_has_no_trust_signal():
    assert get_contract_info(UNKNOWN_CONTRACT) is None
    assert get_contract_info("") is None
    assert get_contract_info(None) is None


def test_membership():
    assert UNISWAP_V2_ROUTER in DEFAULT_REPUTATION
    assert UNKNOWN_CONTRACT not in DEFAULT_REPUTATION
    assert 42 not in DEFAULT_REPUTATION


def test_keys_are_lowercase():
    assert all(addr == addr.lower() for addr in DEFAULT_REPUTATION)
    assert len(DEFAULT_REPUTATION) == 7


def test_custom_registry():
    registry = ReputationRegistry(
        [ContractInfo(address="0xABCDEF0000000000000000000000000000000001", name="X", reputation=10,
                      verified=False, category="Token")]
    )
    assert registry.get("0xabcdef0000000000000000000000000000000001").name == "X"
