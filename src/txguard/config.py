# Runtime settings for txguard
#
# A frozen dataclass filled from environment variables by a cached factory.
# Each variable may be given in upper or lower case (MAX_BATCH_SIZE or
# max_batch_size); the upper-case spelling wins when both are set.

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

_FALSY = frozenset({"0", "false", "no", "n", "off"})


def _env(name: str) -> Optional[str]:
    raw = os.getenv(name.upper())
    return raw if raw is not None else os.getenv(name.lower())


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    raw = _env(name)
    return raw if raw else default


def _env_flag(name: str, default: bool) -> bool:
    word = (_env(name) or "").strip().lower()
    if not word:
        return default
    # anything other than an explicit "off" word counts as set
    return word not in _FALSY


def _env_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = _env(name)
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        value = default
    return value if minimum is None else max(minimum, value)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the analysis core.

    Environment variables:
    - LOG_LEVEL
    - MAX_BATCH_SIZE, BATCH_WORKERS
    - TEMPLATE_DB_PATH, TEMPLATE_SERVICE_URL, TEMPLATE_SERVICE_TOKEN
    - REQUEST_TIMEOUT_SECONDS, REQUEST_VERIFY_TLS
    - NATIVE_SYMBOL
    """

    log_level: str = "INFO"

    # Batch analysis
    max_batch_size: int = 10
    batch_workers: int = 4

    # Template store. A database path wins over the service URL; with neither
    # set the built-in templates are used.
    template_db_path: Optional[str] = None
    template_service_url: Optional[str] = None
    template_service_token: Optional[str] = None

    # HTTP behavior for the template service client
    request_timeout_seconds: int = 10
    request_verify_tls: bool = True

    native_symbol: str = "ETH"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings from the environment, cached for the process lifetime.

    Call ``get_settings.cache_clear()`` to pick up changed variables.
    """
    return Settings(
        log_level=_env_str("LOG_LEVEL", "INFO"),
        max_batch_size=_env_int("MAX_BATCH_SIZE", 10, minimum=1),
        batch_workers=_env_int("BATCH_WORKERS", 4, minimum=1),
        template_db_path=_env_str("TEMPLATE_DB_PATH", None),
        template_service_url=_env_str("TEMPLATE_SERVICE_URL", None),
        template_service_token=_env_str("TEMPLATE_SERVICE_TOKEN", None),
        request_timeout_seconds=_env_int("REQUEST_TIMEOUT_SECONDS", 10),
        request_verify_tls=_env_flag("REQUEST_VERIFY_TLS", True),
        native_symbol=_env_str("NATIVE_SYMBOL", "ETH"),
    )
