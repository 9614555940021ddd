from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence, Union

from .config import Settings
from .dal import TemplateServiceClient
from .decoder import TransactionDecoder
from .models import ContractInfo, DecodedTransaction, TransactionRecord
from .narration import NarrationEngine
from .reputation import ReputationLookup
from .risk import RiskAssessment
from .schemas import (
    AnalysisResponse,
    BatchItemResult,
    BatchResponse,
    ContractLookup,
    RiskSummary,
    TransactionRequest,
    TransactionSummary,
)
from .scoring import RiskPolicy
from .signatures import SignatureRegistry
from .templates import InMemoryTemplateStore, SqliteTemplateStore, TemplateStore
from .units import parse_wei, wei_to_native

logger = logging.getLogger(__name__)

RequestLike = Union[TransactionRequest, Mapping[str, Any]]

UNKNOWN_CONTRACT_NAME = "Unknown Contract"
UNKNOWN_CONTRACT_REPUTATION = 50


class BatchValidationError(ValueError):
    """Raised when a batch is empty or larger than the configured cap."""


def build_template_store(settings: Settings) -> TemplateStore:
    if settings.template_db_path:
        return SqliteTemplateStore(settings.template_db_path)
    if settings.template_service_url:
        return TemplateServiceClient(settings)
    return InMemoryTemplateStore()


def _truncate_data(data: Optional[str]) -> str:
    data = data or "0x"
    return data[:66] + "..." if len(data) > 66 else data


def build_transaction_record(request: TransactionRequest, decoded: DecodedTransaction) -> TransactionRecord:
    """Describe a pre-signature request in the shape the narration engine expects."""
    try:
        native_value = wei_to_native(parse_wei(request.value))
    except (TypeError, ValueError):
        native_value = 0.0
    if decoded.category == "eth_transfer":
        protocol, method = "ethereum", "transfer"
    else:
        protocol, method = decoded.protocol, decoded.function_name
    return TransactionRecord(
        from_address=request.from_address,
        to_address=request.to,
        value=native_value,
        gas_used=decoded.gas_estimate,
        type=decoded.category,
        protocol="unknown" if protocol == "Unknown" else protocol,
        method=method,
    )


class TransactionAnalyzer:
    """Runs decode -> assess -> narrate over a request."""

    def __init__(
        self,
        settings: Settings,
        *,
        registry: Optional[SignatureRegistry] = None,
        reputation: Optional[ReputationLookup] = None,
        policy: Optional[RiskPolicy] = None,
        template_store: Optional[TemplateStore] = None,
    ) -> None:
        self.settings = settings
        self.decoder = TransactionDecoder(registry=registry, policy=policy, native_symbol=settings.native_symbol)
        self.assessment = RiskAssessment(reputation=reputation, policy=policy, registry=registry)
        self.narrator = NarrationEngine(
            store=template_store if template_store is not None else build_template_store(settings),
            native_symbol=settings.native_symbol,
        )

    @staticmethod
    def _as_request(request: RequestLike) -> TransactionRequest:
        if isinstance(request, TransactionRequest):
            return request
        return TransactionRequest.model_validate(request)

    def lookup_contract(self, address: str) -> ContractLookup:
        info = self.assessment.get_contract_info(address)
        if info is None:
            return ContractLookup(
                address=address,
                name=UNKNOWN_CONTRACT_NAME,
                reputation=UNKNOWN_CONTRACT_REPUTATION,
                verified=False,
                category="Unknown",
                warning="This contract is not in our verified database",
            )
        return ContractLookup(address=address, **info.model_dump(exclude={"address"}))

    def analyze(self, request: RequestLike) -> AnalysisResponse:
        req = self._as_request(request)
        decoded = self.decoder.decode_request(req)
        factors = self.assessment.assess(decoded, req)
        contract = self.assessment.get_contract_info(req.to) or ContractInfo(
            address=req.to.lower(),
            name=UNKNOWN_CONTRACT_NAME,
            reputation=UNKNOWN_CONTRACT_REPUTATION,
            verified=False,
            category="Unknown",
        )
        narration = self.narrator.narrate(build_transaction_record(req, decoded))

        return AnalysisResponse(
            transaction=TransactionSummary(
                to=req.to,
                from_address=req.from_address,
                value=req.value,
                data=_truncate_data(req.data),
            ),
            decoded=decoded,
            risk=RiskSummary(
                level=factors.overall_risk,
                score=factors.overall_score,
                factors=factors,
                recommendations=factors.recommendations,
            ),
            contract=contract,
            narration=narration,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def _analyze_item(self, item: Any) -> BatchItemResult:
        try:
            req = self._as_request(item)
            decoded = self.decoder.decode_request(req)
            factors = self.assessment.assess(decoded, req)
            return BatchItemResult(
                success=True,
                transaction=item,
                decoded=decoded,
                risk=RiskSummary(level=factors.overall_risk, score=factors.overall_score),
                narration=self.narrator.narrate(build_transaction_record(req, decoded)),
            )
        except Exception as exc:
            logger.warning(
                "Batch item analysis failed",
                extra={"context": {"error": str(exc)}},
            )
            return BatchItemResult(success=False, transaction=item, error="Failed to analyze transaction")

    def analyze_batch(self, requests: Sequence[Any]) -> BatchResponse:
        if not isinstance(requests, Sequence) or isinstance(requests, (str, bytes)) or not requests:
            raise BatchValidationError("transactions must be a non-empty array")
        if len(requests) > self.settings.max_batch_size:
            raise BatchValidationError(f"Maximum {self.settings.max_batch_size} transactions per batch")

        workers = min(self.settings.batch_workers, len(requests))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # map() yields in submission order regardless of completion order
            results: List[BatchItemResult] = list(pool.map(self._analyze_item, requests))

        return BatchResponse(
            results=results,
            total=len(requests),
            analyzed=sum(1 for r in results if r.success),
        )
