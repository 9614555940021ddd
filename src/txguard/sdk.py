"""SDK-style facade over the analysis core (no web server required).

Usage:

    from txguard.sdk import analyze, analyze_batch, decode, assess, narrate

    report = analyze({
        "to": "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
        "data": "0x38ed1739...",
        "value": "0x0",
    })
    print(report.decoded.explanation, report.risk.level)

    decoded = decode(to, data, value)
    factors = assess(decoded, {"to": to, "value": value})
    text = narrate({"type": "swap", "protocol": "Uniswap", "method": "swapExactTokensForTokens"}).text

Environment variables: see txguard.config.Settings for all available options.
"""
from typing import Any, Mapping, Optional, Sequence, Union

from .config import Settings, get_settings
from .models import DecodedTransaction, RiskFactors, TransactionRecord
from .schemas import AnalysisResponse, BatchResponse, ContractLookup, NarrationResult
from .service import RequestLike, TransactionAnalyzer

__all__ = [
    "get_analyzer",
    "decode",
    "assess",
    "narrate",
    "analyze",
    "analyze_batch",
    "lookup_contract",
]

_analyzers: dict = {}


def get_analyzer(settings: Optional[Settings] = None) -> TransactionAnalyzer:
    """Return an analyzer for ``settings``, built once per distinct settings value."""
    settings = settings or get_settings()
    analyzer = _analyzers.get(settings)
    if analyzer is None:
        analyzer = _analyzers[settings] = TransactionAnalyzer(settings)
    return analyzer


def decode(
    to: str,
    data: Optional[str],
    value: Union[int, str] = "0x0",
    from_address: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> DecodedTransaction:
    """Classify a raw transaction. Never raises; malformed input decodes as unknown."""
    return get_analyzer(settings).decoder.decode(to, data, value, from_address)


def assess(
    decoded: DecodedTransaction, tx: Mapping[str, Any], *, settings: Optional[Settings] = None
) -> RiskFactors:
    return get_analyzer(settings).assessment.assess(decoded, tx)


def narrate(
    record: Union[TransactionRecord, Mapping[str, Any]], *, settings: Optional[Settings] = None
) -> NarrationResult:
    return get_analyzer(settings).narrator.narrate(record)


def analyze(request: RequestLike, *, settings: Optional[Settings] = None) -> AnalysisResponse:
    """End-to-end: decode -> assess -> narrate for a single request."""
    return get_analyzer(settings).analyze(request)


def analyze_batch(requests: Sequence[Any], *, settings: Optional[Settings] = None) -> BatchResponse:
    """Analyze up to ``max_batch_size`` requests with per-item isolation."""
    return get_analyzer(settings).analyze_batch(requests)


def lookup_contract(address: str, *, settings: Optional[Settings] = None) -> ContractLookup:
    return get_analyzer(settings).lookup_contract(address)
