from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from .config import Settings
from .models import NarrationTemplate


class TemplateServiceError(Exception):
    """Raised when the template service is unreachable or answers with something unusable."""


class TemplateServiceClient:
    """Thin client for a remote template service.

    ``GET {base}/templates?protocol=..&method=..`` and
    ``GET {base}/templates?category=..`` both answer ``{"data": <template> | null}``.
    """

    def __init__(
        self, settings: Settings, session: Optional[requests.Session] = None
    ) -> None:
        if not settings.template_service_url:
            raise TemplateServiceError("template_service_url is not configured")
        self.settings = settings
        self.templates_url = settings.template_service_url.rstrip("/") + "/templates"
        self.session = session or requests.Session()

    def find_by_method(self, protocol: str, method: str) -> Optional[NarrationTemplate]:
        return self._template({"protocol": protocol.lower(), "method": method.lower()})

    def find_by_category(self, category: str) -> Optional[NarrationTemplate]:
        return self._template({"category": category})

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.settings.template_service_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _template(self, params: Dict[str, str]) -> Optional[NarrationTemplate]:
        data = self._fetch(params).get("data")
        if data is None:
            return None
        if not isinstance(data, dict):
            raise TemplateServiceError(f"Expected a template object for {params}, got {type(data).__name__}")
        try:
            return NarrationTemplate.model_validate(data)
        except ValidationError as e:
            raise TemplateServiceError(f"Invalid template for {params}: {e}") from e

    def _fetch(self, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            resp = self.session.get(
                self.templates_url,
                params=params,
                headers=self._headers(),
                timeout=self.settings.request_timeout_seconds,
                verify=self.settings.request_verify_tls,
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            raise TemplateServiceError(f"Template service answered HTTP {status}") from e
        except requests.RequestException as e:
            raise TemplateServiceError(f"Template service unreachable: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise TemplateServiceError(f"Template service sent a non-JSON body ({len(resp.text)} chars)") from e
        if not isinstance(body, dict):
            raise TemplateServiceError("Template service body must be a JSON object")
        return body
