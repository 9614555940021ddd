import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parents[1]
src_dir = repo_root / "src"
# src/ layout: make the package importable without an editable install
if src_dir.exists() and str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from txguard import sdk  # noqa: E402
from txguard.config import get_settings  # noqa: E402

UNISWAP_V2_ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
UNKNOWN_CONTRACT = "0x1234567890abcdef1234567890abcdef12345678"
ONE_ETH = 10**18

_ENV_KEYS = [
    "LOG_LEVEL",
    "MAX_BATCH_SIZE",
    "BATCH_WORKERS",
    "TEMPLATE_DB_PATH",
    "TEMPLATE_SERVICE_URL",
    "TEMPLATE_SERVICE_TOKEN",
    "REQUEST_TIMEOUT_SECONDS",
    "REQUEST_VERIFY_TLS",
    "NATIVE_SYMBOL",
]


def calldata(selector: str, words: int = 0) -> str:
    return selector + "00" * 32 * words


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv(key.lower(), raising=False)
    get_settings.cache_clear()
    sdk._analyzers.clear()
    yield
    get_settings.cache_clear()
    sdk._analyzers.clear()
