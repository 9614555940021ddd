"""Plain-language narration of transactions.

Two paths: a stored template matched by (protocol, method) and then by
category, or a canned sentence chosen by transaction type. A template whose
required variables cannot be filled from the record is skipped, and anything
that goes wrong on the template path falls back to the canned sentence.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from .models import GasEfficiency, NarrationTemplate, RiskLevel, TokenTransfer, TransactionRecord
from .schemas import NarrationMetadata, NarrationResult
from .templates import InMemoryTemplateStore, TemplateStore
from .units import format_address, format_amount

logger = logging.getLogger(__name__)

# doubled braces ({{name}}) are consumed along with the placeholder
PLACEHOLDER = re.compile(r"\{+([^{}]*)\}+")
STRAY_BRACES = re.compile(r"[{}]")

MatchStrategy = Callable[[TemplateStore, TransactionRecord], Optional[NarrationTemplate]]
Resolver = Callable[["NarrationEngine", TransactionRecord], Optional[str]]


def match_by_method(store: TemplateStore, record: TransactionRecord) -> Optional[NarrationTemplate]:
    return store.find_by_method(record.protocol, record.method)


def match_by_category(store: TemplateStore, record: TransactionRecord) -> Optional[NarrationTemplate]:
    return store.find_by_category(record.type)


DEFAULT_STRATEGIES: Sequence[MatchStrategy] = (match_by_method, match_by_category)


def gas_efficiency(gas_used: int) -> GasEfficiency:
    if gas_used < 100_000:
        return "excellent"
    if gas_used < 200_000:
        return "good"
    if gas_used < 300_000:
        return "fair"
    return "poor"


def _first_token(record: TransactionRecord) -> Optional[TokenTransfer]:
    return record.tokens[0] if record.tokens else None


def _explicit(record: TransactionRecord, name: str) -> Any:
    return (record.model_extra or {}).get(name)


def _address(address: Optional[str]) -> Optional[str]:
    return format_address(address) if address else None


# Resolvers return None when the record carries no real data for the name.
# For token operations ``to`` is the token contract, never the counterparty,
# so only an explicit field or a token leg can supply amounts and addresses.


def _resolve_amount(engine: "NarrationEngine", record: TransactionRecord) -> Optional[str]:
    explicit = _explicit(record, "amount")
    if explicit is not None:
        return format_amount(explicit)
    token = _first_token(record)
    return format_amount(token.amount) if token else None


def _resolve_symbol(engine: "NarrationEngine", record: TransactionRecord) -> Optional[str]:
    explicit = _explicit(record, "symbol")
    if explicit:
        return str(explicit)
    token = _first_token(record)
    return token.symbol if token and token.symbol else None


def _resolve_recipient(engine: "NarrationEngine", record: TransactionRecord) -> Optional[str]:
    explicit = _explicit(record, "recipient")
    if explicit:
        return format_address(str(explicit))
    token = _first_token(record)
    if token and token.to_address:
        return format_address(token.to_address)
    if record.type == "eth_transfer":
        return _address(record.to_address)
    return None


def _resolve_spender(engine: "NarrationEngine", record: TransactionRecord) -> Optional[str]:
    explicit = _explicit(record, "spender")
    return format_address(str(explicit)) if explicit else None


def _resolve_token_amount(engine: "NarrationEngine", record: TransactionRecord) -> Optional[str]:
    explicit = _explicit(record, "tokenAmount")
    if explicit is not None:
        return format_amount(explicit)
    token = _first_token(record)
    return format_amount(token.amount) if token else None


def _resolve_token_symbol(engine: "NarrationEngine", record: TransactionRecord) -> Optional[str]:
    explicit = _explicit(record, "tokenSymbol")
    if explicit:
        return str(explicit)
    token = _first_token(record)
    return token.symbol if token and token.symbol else None


RESOLVERS: Dict[str, Resolver] = {
    "value": lambda engine, record: format_amount(record.value),
    "from": lambda engine, record: _address(record.from_address),
    "to": lambda engine, record: _address(record.to_address),
    "protocol": lambda engine, record: record.protocol,
    "method": lambda engine, record: record.method,
    "amount": _resolve_amount,
    "symbol": _resolve_symbol,
    "recipient": _resolve_recipient,
    "spender": _resolve_spender,
    "tokenAmount": _resolve_token_amount,
    "tokenSymbol": _resolve_token_symbol,
}


class NarrationEngine:
    def __init__(
        self,
        store: Optional[TemplateStore] = None,
        strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
        native_symbol: str = "ETH",
    ) -> None:
        self.store = store if store is not None else InMemoryTemplateStore()
        self.strategies = tuple(strategies)
        self.native_symbol = native_symbol

    def narrate(self, record: Union[TransactionRecord, Mapping[str, Any]]) -> NarrationResult:
        tx = self._coerce(record)
        try:
            template = self.find_template(tx)
            if template is not None:
                return self.from_template(template, tx)
        except Exception as exc:
            logger.warning(
                "Template narration failed, using basic narration",
                exc_info=True,
                extra={"context": {"protocol": tx.protocol, "method": tx.method, "error": str(exc)}},
            )
        return self.basic(tx)

    def _coerce(self, record: Union[TransactionRecord, Mapping[str, Any]]) -> TransactionRecord:
        if isinstance(record, TransactionRecord):
            return record
        try:
            return TransactionRecord.model_validate(dict(record))
        except (ValidationError, TypeError, ValueError) as exc:
            logger.warning("Malformed transaction record", extra={"context": {"error": str(exc)}})
            raw_type = record.get("type") if isinstance(record, Mapping) else None
            return TransactionRecord(type=raw_type if isinstance(raw_type, str) and raw_type else "contract_interaction")

    def find_template(self, record: TransactionRecord) -> Optional[NarrationTemplate]:
        """First template from the strategies whose required variables all resolve."""
        for strategy in self.strategies:
            template = strategy(self.store, record)
            if template is None:
                continue
            missing = self.missing_variables(template, record)
            if not missing:
                return template
            logger.debug(
                "Skipping template with unresolved variables",
                extra={"context": {"protocol": template.protocol, "method": template.method, "missing": missing}},
            )
        return None

    def missing_variables(self, template: NarrationTemplate, record: TransactionRecord) -> List[str]:
        return [v.name for v in template.variables if v.required and not self.resolve(v.name, record)]

    def resolve(self, name: str, record: TransactionRecord) -> Optional[str]:
        resolver = RESOLVERS.get(name)
        if resolver is not None:
            return resolver(self, record)
        value = record.field_value(name) if name else None
        return None if value is None else str(value)

    def render(self, template: NarrationTemplate, record: TransactionRecord) -> str:
        text = PLACEHOLDER.sub(lambda m: self.resolve(m.group(1).strip(), record) or "", template.template)
        return STRAY_BRACES.sub("", text)

    def from_template(self, template: NarrationTemplate, record: TransactionRecord) -> NarrationResult:
        tags = list(template.tags)
        for tag in self.tags(record):
            if tag not in tags:
                tags.append(tag)
        return NarrationResult(
            text=self.render(template, record),
            metadata=NarrationMetadata(
                category=template.category,
                risk_level=template.risk_level,
                gas_efficiency=gas_efficiency(record.gas_used),
                tags=tags,
            ),
        )

    def basic(self, record: TransactionRecord) -> NarrationResult:
        kind = record.type
        protocol = record.protocol
        src, dst = format_address(record.from_address), format_address(record.to_address)

        if kind == "eth_transfer":
            text = f"You transferred {record.value:.4f} {self.native_symbol} from {src} to {dst}."
        elif kind == "token_transfer":
            token = _first_token(record)
            if token:
                sender = format_address(token.from_address) if token.from_address else src
                recipient = format_address(token.to_address) if token.to_address else dst
                text = f"You transferred {token.amount:.2f} {token.symbol or 'tokens'} from {sender} to {recipient}."
            else:
                # without a token leg only the token contract is known
                text = f"You transferred tokens using the token contract at {dst}."
        elif kind == "token_approval":
            text = f"You granted a token spending approval on the contract at {dst}."
        elif kind == "swap":
            text = f"You performed a token swap on {protocol}."
        elif kind == "liquidity_add":
            text = f"You added liquidity to a {protocol} pool."
        elif kind == "liquidity_remove":
            text = f"You removed liquidity from a {protocol} pool."
        elif kind == "lending":
            text = f"You interacted with {protocol} lending protocol."
        elif kind == "nft_transfer":
            text = f"You transferred an NFT from {src} to {dst}."
        elif kind == "contract_interaction":
            text = f"You interacted with a smart contract on {protocol}."
        else:
            text = f"You performed a {kind} transaction on {protocol}."

        return NarrationResult(
            text=text,
            metadata=NarrationMetadata(
                category=kind,
                risk_level=self.risk_level(record),
                gas_efficiency=gas_efficiency(record.gas_used),
                tags=self.tags(record),
            ),
        )

    @staticmethod
    def risk_level(record: TransactionRecord) -> RiskLevel:
        if record.type == "contract_interaction" and record.protocol.lower() == "unknown":
            return "high"
        if record.value > 10:
            return "high"
        if record.type in ("swap", "liquidity_add", "liquidity_remove"):
            return "medium"
        if record.value > 1:
            return "medium"
        return "low"

    @staticmethod
    def tags(record: TransactionRecord) -> List[str]:
        tags = [record.type]
        if record.protocol and record.protocol.lower() != "unknown":
            tags.append(record.protocol.lower())
        if record.value > 10:
            tags.append("high-value")
        if record.value < 0.01:
            tags.append("micro-transaction")
        tags.append(f"gas-{gas_efficiency(record.gas_used)}")
        return tags


_default_engine = NarrationEngine()


def narrate(record: Union[TransactionRecord, Mapping[str, Any]]) -> NarrationResult:
    return _default_engine.narrate(record)
