import pytest
import requests

from txguard.config import Settings
from txguard.dal import TemplateServiceClient, TemplateServiceError

TEMPLATE = {
    "protocol": "erc20",
    "method": "transfer",
    "functionSignature": "0xa9059cbb",
    "template": "You transferred {amount} {symbol} to {recipient}.",
    "variables": [{"name": "amount", "type": "string", "description": "Amount", "required": True}],
    "category": "token_transfer",
    "riskLevel": "low",
    "gasEstimate": 65000,
    "tags": ["erc20"],
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text="", json_error=False):
        self._payload = payload
        self.status_code = status_code
        self.text = text
        self._json_error = json_error

    @property
    def ok(self):
        return self.status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self._json_error:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response


def _client(session, **overrides):
    settings = Settings(template_service_url="https://templates.example/api/", **overrides)
    return TemplateServiceClient(settings, session=session)


def test_requires_url():
    with pytest.raises(TemplateServiceError):
        TemplateServiceClient(Settings())


def test_find_by_method():
    session = FakeSession(FakeResponse({"data": TEMPLATE}))
    found = _client(session).find_by_method("ERC20", "Transfer")
    assert found.template == TEMPLATE["template"]
    assert found.risk_level == "low"
    assert found.variables[0].name == "amount"

    url, kwargs = session.calls[0]
    assert url == "https://templates.example/api/templates"
    assert kwargs["params"] == {"protocol": "erc20", "method": "transfer"}
    assert kwargs["timeout"] == 10
    assert kwargs["verify"] is True
    assert "Authorization" not in kwargs["headers"]


def test_find_by_category_with_token():
    session = FakeSession(FakeResponse({"data": TEMPLATE}))
    client = _client(session, template_service_token="s3cret", request_timeout_seconds=3)
    assert client.find_by_category("token_transfer").category == "token_transfer"
    _, kwargs = session.calls[0]
    assert kwargs["params"] == {"category": "token_transfer"}
    assert kwargs["headers"]["Authorization"] == "Bearer s3cret"
    assert kwargs["timeout"] == 3


def test_missing_template_is_none():
    session = FakeSession(FakeResponse({"data": None}))
    assert _client(session).find_by_method("erc20", "burn") is None


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=503, text="unavailable"),
        FakeResponse(json_error=True),
        FakeResponse(["not", "an", "object"]),
        FakeResponse({"data": "transfer"}),
        FakeResponse({"data": {"protocol": "erc20"}}),
    ],
)
def test_bad_responses_raise(response):
    with pytest.raises(TemplateServiceError):
        _client(FakeSession(response)).find_by_method("erc20", "transfer")


def test_request_exception_is_wrapped():
    session = FakeSession(exc=requests.ConnectionError("refused"))
    with pytest.raises(TemplateServiceError, match="unreachable"):
        _client(session).find_by_category("swap")


def test_error_status_is_reported():
    session = FakeSession(FakeResponse(status_code=401, text="bad token"))
    with pytest.raises(TemplateServiceError, match="HTTP 401"):
        _client(session, template_service_token="wrong").find_by_category("swap")
