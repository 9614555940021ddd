from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high", "critical"]
GasEfficiency = Literal["excellent", "good", "fair", "poor"]


class _CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FunctionDescriptor(_CamelModel):
    model_config = ConfigDict(frozen=True)

    selector: str
    signature: str
    name: str
    protocol: str
    description: str
    base_risk_tier: RiskLevel
    gas_estimate: int
    category: str = "contract_interaction"


class ContractInfo(_CamelModel):
    model_config = ConfigDict(frozen=True)

    address: str
    name: str
    reputation: int = Field(ge=0, le=100)
    verified: bool
    category: str


class RawParameters(_CamelModel):
    selector: str
    raw: str = ""
    byte_length: int = 0
    param_count: int = 0


class DecodedTransaction(_CamelModel):
    function_name: str
    contract_address: str
    protocol: str
    risk_level: RiskLevel
    explanation: str
    warnings: List[str] = Field(default_factory=list)
    gas_estimate: int
    raw_parameters: Optional[RawParameters] = None
    category: str = "contract_interaction"
    risk_score: Optional[int] = None


class RiskFactors(_CamelModel):
    value_risk: int = Field(ge=0, le=4)
    function_risk: int = Field(ge=0, le=4)
    contract_risk: int = Field(ge=0, le=4)
    gas_risk: int = Field(ge=0, le=4)
    overall_score: int
    overall_risk: RiskLevel
    recommendations: List[str] = Field(default_factory=list, max_length=5)


class TemplateVariable(_CamelModel):
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True


class NarrationTemplate(_CamelModel):
    protocol: str
    method: str
    function_signature: Optional[str] = None
    template: str
    variables: List[TemplateVariable] = Field(default_factory=list)
    category: str
    risk_level: RiskLevel = "low"
    gas_estimate: int = 0
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True


class TokenTransfer(_CamelModel):
    address: Optional[str] = None
    symbol: Optional[str] = None
    amount: float = 0.0
    decimals: int = 18
    from_address: Optional[str] = Field(default=None, alias="from")
    to_address: Optional[str] = Field(default=None, alias="to")


class TransactionRecord(_CamelModel):
    """A transaction as seen by the narration engine.

    Unknown keys are kept (``extra="allow"``) so templates can reference any
    field the caller supplies, e.g. ``{fee}`` or ``{recipient}``.
    """

    model_config = ConfigDict(extra="allow")

    hash: Optional[str] = None
    from_address: Optional[str] = Field(default=None, alias="from")
    to_address: Optional[str] = Field(default=None, alias="to")
    value: float = 0.0
    gas_used: int = 0
    gas_price: int = 0
    type: str = "contract_interaction"
    protocol: str = "unknown"
    method: str = "unknown"
    tokens: List[TokenTransfer] = Field(default_factory=list)

    def field_value(self, name: str) -> Any:
        """Look a field up by attribute name, wire alias, or extra key."""
        extra: Dict[str, Any] = self.model_extra or {}
        if name in extra:
            return extra[name]
        for field_name, info in type(self).model_fields.items():
            if name in (field_name, info.alias):
                return getattr(self, field_name)
        return None
