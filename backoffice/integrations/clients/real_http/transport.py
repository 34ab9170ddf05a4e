"""
T-Soft HTTP transport.

Two incompatible request styles share one httpx.AsyncClient:

- legacy (REST1): form-encoded POST, token sent three ways (Bearer header,
  X-Auth-Token header and a `token` form field);
- JSON (V3): GET with query parameters or POST with a JSON body, Bearer only.

Every call returns a TransportResult and never raises for network problems;
deciding what a response means is left to the decoder and the fallback
orchestrator.
"""

from __future__ import annotations

import json
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

import httpx

from backoffice.integrations.policy.flexible_scalars import canonical_number_text

logger = logging.getLogger(__name__)

DEBUG_BODY_LIMIT = 500

LEGACY_ACCEPT = "application/json, text/plain, */*"
LEGACY_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"
JSON_ACCEPT = "application/json"


class TransportResult(NamedTuple):
    ok: bool
    body: str
    status_code: int


FAILED = TransportResult(False, "", 0)


def _truncate(text: str, limit: int = DEBUG_BODY_LIMIT) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _lower_first(key: str) -> str:
    return key[:1].lower() + key[1:] if key else key


def camel_case_payload(value: Any) -> Any:
    """JSON body keys start lowercase; None values are dropped."""
    if isinstance(value, Mapping):
        return {
            _lower_first(str(key)): camel_case_payload(item)
            for key, item in value.items()
            if item is not None
        }
    if isinstance(value, (list, tuple)):
        return [camel_case_payload(item) for item in value]
    return value


def encode_json_body(payload: Any) -> str:
    """
    JSON text for a request body. Decimals are written as number literals with
    all their digits (a float round-trip would drop precision from prices).
    """
    numbers: List[str] = []
    marker = f"__decimal_{uuid.uuid4().hex}_"

    def default(value: Any) -> Any:
        if isinstance(value, Decimal):
            numbers.append(canonical_number_text(value))
            return f"{marker}{len(numbers) - 1}"
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

    text = json.dumps(camel_case_payload(payload), default=default, ensure_ascii=False)
    for index, number in enumerate(numbers):
        text = text.replace(f'"{marker}{index}"', number)
    return text


class UpstreamTransport:
    def __init__(
        self,
        base_url: str,
        token: str,
        debug: bool = False,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.debug = debug
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    def url_for(self, path: str) -> str:
        return self.base_url + ("" if path.startswith("/") else "/") + path

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Legacy form API
    # ------------------------------------------------------------------

    async def post_form(self, path: str, form: Optional[Dict[str, str]] = None) -> TransportResult:
        url = self.url_for(path)
        data = dict(form or {})
        data["token"] = self.token
        headers = {
            "Authorization": f"Bearer {self.token}",
            "X-Auth-Token": self.token,
            "Accept": LEGACY_ACCEPT,
            "Content-Type": LEGACY_CONTENT_TYPE,
        }

        logger.debug("POST (form) %s", path)
        if self.debug:
            logger.debug("POST %s Form: %s", url, "&".join(f"{k}={v}" for k, v in data.items()))

        try:
            response = await self._client.post(url, data=data, headers=headers)
        except Exception as exc:
            logger.warning("Legacy POST failed: %s (%s)", path, exc)
            return FAILED
        return self._result(response)

    # ------------------------------------------------------------------
    # JSON API
    # ------------------------------------------------------------------

    async def get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> TransportResult:
        url = self.url_for(path)
        headers = {"Authorization": f"Bearer {self.token}", "Accept": JSON_ACCEPT}

        logger.debug("GET (json) %s", path)
        if self.debug and params:
            logger.debug("GET %s Params: %s", url, params)

        try:
            response = await self._client.get(url, params=params or None, headers=headers)
        except Exception as exc:
            logger.warning("JSON GET failed: %s (%s)", path, exc)
            return FAILED
        return self._result(response)

    async def post_json(self, path: str, payload: Any) -> TransportResult:
        url = self.url_for(path)
        body = encode_json_body(payload)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": JSON_ACCEPT,
            "Content-Type": "application/json; charset=utf-8",
        }

        logger.debug("POST (json) %s", path)
        if self.debug:
            logger.debug("POST %s JSON: %s", url, body)

        try:
            response = await self._client.post(url, content=body.encode("utf-8"), headers=headers)
        except Exception as exc:
            logger.warning("JSON POST failed: %s (%s)", path, exc)
            return FAILED
        return self._result(response)

    def _result(self, response: httpx.Response) -> TransportResult:
        body = response.text
        if self.debug:
            logger.debug("Response: %d %s", response.status_code, _truncate(body))
        return TransportResult(response.is_success, body, response.status_code)
