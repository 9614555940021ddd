import pytest

from txguard.config import Settings, get_settings


def test_defaults():
    s = get_settings()
    assert s == Settings()
    assert s.max_batch_size == 10
    assert s.batch_workers == 4
    assert s.native_symbol == "ETH"
    assert s.template_db_path is None
    assert s.request_verify_tls is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MAX_BATCH_SIZE", "25")
    monkeypatch.setenv("batch_workers", "8")
    monkeypatch.setenv("TEMPLATE_SERVICE_URL", "https://templates.example")
    monkeypatch.setenv("NATIVE_SYMBOL", "MATIC")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.max_batch_size == 25
    assert s.batch_workers == 8
    assert s.template_service_url == "https://templates.example"
    assert s.native_symbol == "MATIC"
    assert s.log_level == "debug"


def test_invalid_and_out_of_range_ints(monkeypatch):
    monkeypatch.setenv("MAX_BATCH_SIZE", "lots")
    monkeypatch.setenv("BATCH_WORKERS", "0")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "")
    s = get_settings()
    assert s.max_batch_size == 10
    assert s.batch_workers == 1
    assert s.request_timeout_seconds == 10


@pytest.mark.parametrize(
    "raw,expected",
    [("1", True), ("yes", True), ("ON", True), ("0", False), ("false", False), ("off", False), ("maybe", True)],
)
def test_bool_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("REQUEST_VERIFY_TLS", raw)
    assert get_settings().request_verify_tls is expected


def test_settings_are_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("NATIVE_SYMBOL", "BNB")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().native_symbol == "BNB"


def test_settings_are_hashable():
    assert {Settings(): 1}[Settings()] == 1


def test_upper_case_wins_over_lower_case(monkeypatch):
    monkeypatch.setenv("NATIVE_SYMBOL", "MATIC")
    monkeypatch.setenv("native_symbol", "BNB")
    monkeypatch.setenv("request_timeout_seconds", "4")
    s = get_settings()
    assert s.native_symbol == "MATIC"
    assert s.request_timeout_seconds == 4


def test_empty_values_use_defaults(monkeypatch):
    monkeypatch.setenv("NATIVE_SYMBOL", "")
    monkeypatch.setenv("TEMPLATE_SERVICE_URL", "")
    monkeypatch.setenv("REQUEST_VERIFY_TLS", "")
    s = get_settings()
    assert s.native_symbol == "ETH"
    assert s.template_service_url is None
    assert s.request_verify_tls is True
