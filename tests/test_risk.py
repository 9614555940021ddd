import pytest

from txguard.decoder import decode
from txguard.models import ContractInfo
from txguard.reputation import ReputationRegistry
from txguard.risk import MAX_RECOMMENDATIONS, RiskAssessment, assess
from txguard.schemas import TransactionRequest

from conftest import ONE_ETH, UNISWAP_V2_ROUTER, UNKNOWN_CONTRACT, calldata


def _contract(address: str, reputation: int, verified: bool = True) -> ContractInfo:
    return ContractInfo(address=address, name="Test", reputation=reputation, verified=verified, category="Token")


def test_swap_on_uniswap_router():
    tx = {"to": UNISWAP_V2_ROUTER, "data": calldata("0x38ed1739", 5), "value": "0x0"}
    decoded = decode(tx["to"], tx["data"], tx["value"])
    factors = assess(decoded, tx)
    assert factors.value_risk == 0
    assert factors.function_risk == 4
    assert factors.contract_risk == 0
    assert factors.gas_risk == 0
    assert factors.overall_score == 4
    assert factors.overall_risk == "medium"
    assert factors.overall_risk == decoded.risk_level
    assert factors.recommendations == [
        "💱 Check slippage tolerance settings",
        "⏱️ Consider transaction timing during high volatility",
    ]


def test_contract_risk_policy():
    addresses = [f"0x{i:040x}" for i in range(5)]
    registry = ReputationRegistry(
        [
            _contract(addresses[0], 95),
            _contract(addresses[1], 75),
            _contract(addresses[2], 55),
            _contract(addresses[3], 40),
            _contract(addresses[4], 99, verified=False),
        ]
    )
    engine = RiskAssessment(reputation=registry)
    assert [engine.assess_contract_risk(a) for a in addresses] == [0, 1, 2, 3, 3]
    assert engine.assess_contract_risk(UNKNOWN_CONTRACT) == 3
    assert engine.assess_contract_risk(None) == 3


def test_reputation_95_is_contract_risk_zero_and_unknown_is_three():
    decoded = decode(UNISWAP_V2_ROUTER, "0xa9059cbb", "0x0")
    assert assess(decoded, {"to": UNISWAP_V2_ROUTER, "value": "0x0"}).contract_risk == 0
    decoded = decode(UNKNOWN_CONTRACT, "0xa9059cbb", "0x0")
    assert assess(decoded, {"to": UNKNOWN_CONTRACT, "value": "0x0"}).contract_risk == 3


def test_recommendations_are_truncated_in_priority_order():
    tx = {"to": UNKNOWN_CONTRACT, "data": "0xdeadbeef", "value": hex(20 * ONE_ETH)}
    decoded = decode(tx["to"], tx["data"], tx["value"])
    factors = assess(decoded, tx)
    assert factors.overall_risk == "critical"
    assert factors.recommendations == [
        "🔍 Verify the contract address on Etherscan",
        "🛡️ Consider testing with a small amount first",
        "📋 Check if the contract is verified on Etherscan",
        "👥 Research the project and read reviews",
        "💰 Double-check recipient address for large transfers",
    ]


@pytest.mark.parametrize(
    "selector", ["0x095ea7b3", "0xe8e33700", "0x38ed1739", "0xdeadbeef", "0xa9059cbb", "0x", "0x12"]
)
@pytest.mark.parametrize("to", [UNISWAP_V2_ROUTER, UNKNOWN_CONTRACT])
@pytest.mark.parametrize("value", ["0x0", hex(6 * ONE_ETH), hex(50 * ONE_ETH)])
def test_recommendations_never_exceed_limit(selector, to, value):
    decoded = decode(to, selector, value)
    factors = assess(decoded, {"to": to, "value": value})
    assert len(factors.recommendations) <= MAX_RECOMMENDATIONS
    assert len(set(factors.recommendations)) == len(factors.recommendations)
    assert factors.overall_score == (
        factors.value_risk + factors.function_risk + factors.contract_risk + factors.gas_risk
    )
    for factor in (factors.value_risk, factors.function_risk, factors.contract_risk, factors.gas_risk):
        assert 0 <= factor <= 4


def test_approve_recommendations():
    decoded = decode(UNISWAP_V2_ROUTER, calldata("0x095ea7b3", 2), "0x0")
    factors = assess(decoded, {"to": UNISWAP_V2_ROUTER, "value": "0x0"})
    assert factors.function_risk == 4
    assert factors.recommendations == [
        "💡 Use limited approvals instead of unlimited amounts",
        "🔒 Revoke unused approvals regularly",
    ]


def test_fallback_decode_scores_as_unknown_function():
    decoded = decode(UNKNOWN_CONTRACT, "0xnothex!", "0x0")
    assert decoded.raw_parameters is None
    factors = assess(decoded, {"to": UNKNOWN_CONTRACT, "data": "0xnothex!", "value": "0x0"})
    assert factors.function_risk == 4
    assert factors.contract_risk == 3
    assert factors.overall_risk == "high"


def test_accepts_transaction_request():
    request = TransactionRequest(to=UNISWAP_V2_ROUTER, data="0x7ff36ab5", value=hex(2 * ONE_ETH))
    decoded = decode(request.to, request.data, request.value)
    factors = RiskAssessment().assess(decoded, request)
    assert factors.value_risk == 2
    assert factors.overall_score == 2 + 4 + 0 + 0


def test_get_contract_info():
    engine = RiskAssessment()
    assert engine.get_contract_info(UNISWAP_V2_ROUTER).name == "Uniswap V2 Router"
    assert engine.get_contract_info(UNKNOWN_CONTRACT) is None
    assert engine.get_contract_info("") is None


def test_supplied_gas_limit_drives_gas_risk():
    decoded = decode(UNISWAP_V2_ROUTER, calldata("0xa9059cbb", 2), "0x0")
    assert assess(decoded, {"to": UNISWAP_V2_ROUTER}).gas_risk == 0

    factors = assess(decoded, {"to": UNISWAP_V2_ROUTER, "gasLimit": hex(350000)})
    assert factors.gas_risk == 2
    assert factors.overall_score == 2
    assert "⛽ Transaction will use high gas - wait for lower gas prices if not urgent" in factors.recommendations

    request = TransactionRequest(to=UNISWAP_V2_ROUTER, data="0xa9059cbb", gas_limit="250000")
    assert RiskAssessment().assess(decoded, request).gas_risk == 1


@pytest.mark.parametrize("gas", ["lots", "0x0", "", None, -5])
def test_unusable_gas_limit_falls_back_to_estimate(gas):
    decoded = decode(UNISWAP_V2_ROUTER, calldata("0xa9059cbb", 2), "0x0")
    factors = assess(decoded, {"to": UNISWAP_V2_ROUTER, "gas": gas})
    assert factors.gas_risk == 0
