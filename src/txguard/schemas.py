from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import ContractInfo, DecodedTransaction, GasEfficiency, RiskFactors, RiskLevel


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionRequest(_Schema):
    """Unsigned transaction as handed over by a wallet before signing."""

    to: str = Field(min_length=1)
    data: Optional[str] = None
    value: Union[int, str] = "0x0"
    from_address: Optional[str] = Field(default=None, alias="from")
    gas_limit: Optional[Union[int, str]] = None


class TransactionSummary(_Schema):
    to: str
    from_address: Optional[str] = Field(default=None, alias="from")
    value: Union[int, str]
    data: str


class RiskSummary(_Schema):
    level: RiskLevel
    score: int
    factors: Optional[RiskFactors] = None
    recommendations: List[str] = Field(default_factory=list)


class NarrationMetadata(_Schema):
    category: str
    risk_level: RiskLevel
    gas_efficiency: GasEfficiency
    tags: List[str] = Field(default_factory=list)


class NarrationResult(_Schema):
    text: str
    metadata: NarrationMetadata


class ContractLookup(_Schema):
    address: str
    name: str
    reputation: int
    verified: bool
    category: str
    warning: Optional[str] = None


class AnalysisResponse(_Schema):
    transaction: TransactionSummary
    decoded: DecodedTransaction
    risk: RiskSummary
    contract: ContractInfo
    narration: NarrationResult
    timestamp: str


class BatchItemResult(_Schema):
    success: bool
    transaction: Any = None
    decoded: Optional[DecodedTransaction] = None
    risk: Optional[RiskSummary] = None
    narration: Optional[NarrationResult] = None
    error: Optional[str] = None


class BatchResponse(_Schema):
    results: List[BatchItemResult] = Field(default_factory=list)
    total: int
    analyzed: int

