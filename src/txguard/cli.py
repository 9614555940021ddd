import argparse
import json
import sys
from typing import Any, List, Optional

from pydantic import BaseModel, ValidationError

from .config import get_settings
from .logging_conf import init_logging
from .sdk import get_analyzer
from .service import BatchValidationError

# Example invocations:
#   txguard analyze --to 0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D --data 0x38ed1739...
#   txguard batch transactions.json
#   txguard contract 0xdAC17F958D2ee523a2206206994597C13D831ec7
#   txguard narrate record.json
#   txguard selectors


class _InputError(Exception):
    pass


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="txguard",
        description="Explain and risk-score an EVM transaction before you sign it.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Decode, score and narrate one transaction.")
    analyze.add_argument("--to", required=True, help="Recipient / contract address.")
    analyze.add_argument("--data", default="0x", help="0x calldata (default: 0x).")
    analyze.add_argument("--value", default="0x0", help="Value in wei, hex or decimal (default: 0x0).")
    analyze.add_argument("--from", dest="from_address", default=None, help="Sender address.")

    batch = sub.add_parser("batch", help='Analyze a JSON array of transactions (or {"transactions": [...]}).')
    batch.add_argument("path", help="Path to the JSON file.")

    contract = sub.add_parser("contract", help="Show reputation data for a contract address.")
    contract.add_argument("address")

    narrate = sub.add_parser("narrate", help="Narrate a transaction record stored as JSON.")
    narrate.add_argument("path", help="Path to the JSON file.")

    sub.add_parser("selectors", help="List the known function selectors.")
    return parser.parse_args(argv)


def _emit(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", by_alias=True)
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _load_json(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as e:
        raise _InputError(f"Could not read {path}: {e}") from e


def _run(args: argparse.Namespace) -> None:
    analyzer = get_analyzer()

    if args.command == "analyze":
        request = {"to": args.to, "data": args.data, "value": args.value, "from": args.from_address}
        try:
            _emit(analyzer.analyze(request))
        except ValidationError as e:
            raise _InputError(f"Invalid transaction: {e}") from e

    elif args.command == "batch":
        payload = _load_json(args.path)
        if isinstance(payload, dict):
            payload = payload.get("transactions")
        try:
            _emit(analyzer.analyze_batch(payload))
        except BatchValidationError as e:
            raise _InputError(str(e)) from e

    elif args.command == "contract":
        if not args.address.startswith("0x"):
            raise _InputError("Invalid address format")
        _emit(analyzer.lookup_contract(args.address))

    elif args.command == "narrate":
        payload = _load_json(args.path)
        if not isinstance(payload, dict):
            raise _InputError("Transaction record must be a JSON object.")
        _emit(analyzer.narrator.narrate(payload))

    elif args.command == "selectors":
        _emit(analyzer.decoder.registry.known_selectors())


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    init_logging(get_settings().log_level, stream=sys.stderr)
    try:
        _run(args)
    except _InputError as e:
        print(e, file=sys.stderr)
        return 2
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
