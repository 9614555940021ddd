from __future__ import annotations

from .decoder import TransactionDecoder, decode
from .narration import NarrationEngine, narrate
from .reputation import DEFAULT_REPUTATION, ReputationRegistry, get_contract_info
from .risk import RiskAssessment, assess
from .scoring import DEFAULT_POLICY, RiskPolicy
from .service import BatchValidationError, TransactionAnalyzer
from .signatures import DEFAULT_REGISTRY, SignatureRegistry, lookup

__version__ = "0.1.0"

__all__ = [
    "lookup",
    "get_contract_info",
    "decode",
    "assess",
    "narrate",
    "SignatureRegistry",
    "ReputationRegistry",
    "RiskPolicy",
    "TransactionDecoder",
    "RiskAssessment",
    "NarrationEngine",
    "TransactionAnalyzer",
    "BatchValidationError",
    "DEFAULT_REGISTRY",
    "DEFAULT_REPUTATION",
    "DEFAULT_POLICY",
]
