from __future__ import annotations

from typing import Any, Optional

from eth_utils import from_wei


def parse_quantity(value: Any, what: str = "quantity") -> int:
    """Parse a non-negative integer given as int, hex string (``0x..``) or decimal string.

    ``None`` and empty strings count as zero. Anything else that does not parse
    raises ValueError.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"boolean is not a {what}")
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return 0
        quantity = int(raw, 16) if raw.lower().startswith("0x") else int(raw)
    else:
        raise ValueError(f"unsupported {what} type: {type(value).__name__}")
    if quantity < 0:
        raise ValueError(f"{what} cannot be negative")
    return quantity


def parse_wei(value: Any) -> int:
    return parse_quantity(value, "wei amount")


def wei_to_native(wei: int) -> float:
    return float(from_wei(wei, "ether"))


def format_address(address: Optional[str]) -> str:
    if not address:
        return "Unknown"
    return f"{address[:6]}...{address[-4:]}"


def format_amount(value: Any, places: int = 4) -> str:
    try:
        return f"{float(value):.{places}f}"
    except (TypeError, ValueError):
        return f"{0:.{places}f}"
