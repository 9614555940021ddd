from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Union

from .models import NarrationTemplate, TemplateVariable


class TemplateStore(Protocol):
    """Read-only template source consulted by the narration engine."""

    def find_by_method(self, protocol: str, method: str) -> Optional[NarrationTemplate]: ...

    def find_by_category(self, category: str) -> Optional[NarrationTemplate]: ...


def _var(name: str, description: str) -> TemplateVariable:
    return TemplateVariable(name=name, type="string", description=description, required=True)


DEFAULT_TEMPLATES: List[NarrationTemplate] = [
    NarrationTemplate(
        protocol="uniswap",
        method="swapExactTokensForTokens",
        function_signature="0x38ed1739",
        template="You swapped {tokenAmount} {tokenSymbol} for {outputAmount} {outputSymbol} on Uniswap.",
        variables=[
            _var("tokenAmount", "Amount of input tokens"),
            _var("tokenSymbol", "Symbol of input token"),
            _var("outputAmount", "Amount of output tokens"),
            _var("outputSymbol", "Symbol of output token"),
        ],
        category="swap",
        risk_level="medium",
        gas_estimate=180000,
        tags=["defi", "swap", "uniswap", "trading"],
    ),
    NarrationTemplate(
        protocol="uniswap",
        method="swapExactETHForTokens",
        function_signature="0x7ff36ab5",
        template="You swapped {value} ETH for {tokenAmount} {tokenSymbol} on Uniswap.",
        variables=[
            _var("value", "Amount of ETH swapped"),
            _var("tokenAmount", "Amount of tokens received"),
            _var("tokenSymbol", "Symbol of token received"),
        ],
        category="swap",
        risk_level="medium",
        gas_estimate=160000,
        tags=["defi", "swap", "uniswap", "eth"],
    ),
    NarrationTemplate(
        protocol="uniswap",
        method="addLiquidity",
        function_signature="0xe8e33700",
        template="You added liquidity to a {tokenA}/{tokenB} pool on Uniswap with {amountA} {tokenA} and {amountB} {tokenB}.",
        variables=[
            _var("tokenA", "First token symbol"),
            _var("tokenB", "Second token symbol"),
            _var("amountA", "Amount of first token"),
            _var("amountB", "Amount of second token"),
        ],
        category="liquidity_add",
        risk_level="high",
        gas_estimate=200000,
        tags=["defi", "liquidity", "uniswap", "lp"],
    ),
    NarrationTemplate(
        protocol="erc20",
        method="transfer",
        function_signature="0xa9059cbb",
        template="You transferred {amount} {symbol} to {recipient}.",
        variables=[
            _var("amount", "Amount transferred"),
            _var("symbol", "Token symbol"),
            _var("recipient", "Recipient address"),
        ],
        category="token_transfer",
        risk_level="low",
        gas_estimate=65000,
        tags=["erc20", "transfer", "token"],
    ),
    NarrationTemplate(
        protocol="erc20",
        method="approve",
        function_signature="0x095ea7b3",
        template="You approved {spender} to spend {amount} {symbol} on your behalf.",
        variables=[
            _var("spender", "Spender address"),
            _var("amount", "Approved amount"),
            _var("symbol", "Token symbol"),
        ],
        category="token_approval",
        risk_level="medium",
        gas_estimate=46000,
        tags=["erc20", "approval", "token"],
    ),
    NarrationTemplate(
        protocol="compound",
        method="mint",
        function_signature="0x1249c58b",
        template="You deposited {amount} {symbol} into Compound to earn interest.",
        variables=[_var("amount", "Amount deposited"), _var("symbol", "Token symbol")],
        category="lending",
        risk_level="medium",
        gas_estimate=150000,
        tags=["defi", "lending", "compound", "yield"],
    ),
    NarrationTemplate(
        protocol="compound",
        method="repayBorrow",
        function_signature="0x0e752702",
        template="You repaid {amount} {symbol} borrowed from Compound.",
        variables=[_var("amount", "Amount repaid"), _var("symbol", "Token symbol")],
        category="lending",
        risk_level="low",
        gas_estimate=140000,
        tags=["defi", "lending", "compound", "repay"],
    ),
    NarrationTemplate(
        protocol="aave",
        method="deposit",
        function_signature="0xe8eda9df",
        template="You deposited {amount} {symbol} into Aave lending pool.",
        variables=[_var("amount", "Amount deposited"), _var("symbol", "Token symbol")],
        category="lending",
        risk_level="medium",
        gas_estimate=180000,
        tags=["defi", "lending", "aave", "yield"],
    ),
    NarrationTemplate(
        protocol="ethereum",
        method="transfer",
        function_signature="0x",
        template="You transferred {value} ETH to {recipient}.",
        variables=[_var("value", "Amount of ETH"), _var("recipient", "Recipient address")],
        category="eth_transfer",
        risk_level="low",
        gas_estimate=21000,
        tags=["ethereum", "transfer", "eth"],
    ),
]


class InMemoryTemplateStore:
    """Template store over a fixed list, matched case-insensitively."""

    def __init__(self, templates: Optional[Iterable[NarrationTemplate]] = None) -> None:
        source = DEFAULT_TEMPLATES if templates is None else templates
        self._templates = tuple(t for t in source if t.is_active)

    def __len__(self) -> int:
        return len(self._templates)

    def find_by_method(self, protocol: str, method: str) -> Optional[NarrationTemplate]:
        p, m = protocol.lower(), method.lower()
        for t in self._templates:
            if t.protocol.lower() == p and t.method.lower() == m:
                return t
        return None

    def find_by_category(self, category: str) -> Optional[NarrationTemplate]:
        for t in self._templates:
            if t.category == category:
                return t
        return None


class SqliteTemplateStore:
    """Templates persisted in a local sqlite database.

    Rows are keyed by (protocol, method), stored lowercase for matching. The
    variables and tags columns hold JSON.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self._conn() as c:
            cur = c.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS templates (
                    protocol TEXT NOT NULL,
                    method TEXT NOT NULL,
                    function_signature TEXT,
                    template TEXT NOT NULL,
                    variables TEXT,
                    category TEXT NOT NULL,
                    risk_level TEXT NOT NULL,
                    gas_estimate INTEGER NOT NULL DEFAULT 0,
                    tags TEXT,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    PRIMARY KEY (protocol, method)
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_templates_category ON templates (category, is_active)")
            c.commit()

    def add_templates(self, templates: Iterable[NarrationTemplate]) -> int:
        self.init_db()
        count = 0
        with self._conn() as c:
            cur = c.cursor()
            for t in templates:
                cur.execute(
                    "INSERT OR REPLACE INTO templates (protocol, method, function_signature, template, variables, "
                    "category, risk_level, gas_estimate, tags, is_active) VALUES (?,?,?,?,?,?,?,?,?,?)",
                    (
                        t.protocol.lower(),
                        t.method.lower(),
                        t.function_signature,
                        t.template,
                        json.dumps([v.model_dump() for v in t.variables]),
                        t.category,
                        t.risk_level,
                        t.gas_estimate,
                        json.dumps(t.tags),
                        int(t.is_active),
                    ),
                )
                count += 1
            c.commit()
        return count

    def seed_defaults(self) -> int:
        return self.add_templates(DEFAULT_TEMPLATES)

    _COLUMNS = "protocol, method, function_signature, template, variables, category, risk_level, gas_estimate, tags"

    @staticmethod
    def _row_to_template(row: tuple) -> NarrationTemplate:
        protocol, method, signature, template, variables_json, category, risk_level, gas, tags_json = row
        variables = [TemplateVariable(**v) for v in json.loads(variables_json)] if variables_json else []
        return NarrationTemplate(
            protocol=protocol,
            method=method,
            function_signature=signature,
            template=template,
            variables=variables,
            category=category,
            risk_level=risk_level,
            gas_estimate=gas or 0,
            tags=json.loads(tags_json) if tags_json else [],
        )

    def find_by_method(self, protocol: str, method: str) -> Optional[NarrationTemplate]:
        self.init_db()
        with self._conn() as c:
            cur = c.cursor()
            cur.execute(
                f"SELECT {self._COLUMNS} FROM templates WHERE protocol=? AND method=? AND is_active=1",
                (protocol.lower(), method.lower()),
            )
            row = cur.fetchone()
        return self._row_to_template(row) if row else None

    def find_by_category(self, category: str) -> Optional[NarrationTemplate]:
        self.init_db()
        with self._conn() as c:
            cur = c.cursor()
            cur.execute(
                f"SELECT {self._COLUMNS} FROM templates WHERE category=? AND is_active=1 "
                "ORDER BY protocol, method LIMIT 1",
                (category,),
            )
            row = cur.fetchone()
        return self._row_to_template(row) if row else None
