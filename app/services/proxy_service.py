# app/services/proxy_service.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import asyncio
import json
import logging

from app.providers import http_fetch
from app.providers.base import IndicatorRequest, ProviderAdapter
from app.providers.errors import MethodNotAllowed, ProxyError, ValidationError
from app.providers.imf_provider import FundAdapter
from app.providers.wb_provider import DevelopmentBankAdapter

logger = logging.getLogger("macro-proxy")

CORS_HEADERS: Mapping[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Content-Type": "application/json",
}

ADAPTERS: Dict[str, ProviderAdapter] = {
    "imf": FundAdapter(),
    "worldbank": DevelopmentBankAdapter(),
}


@dataclass(frozen=True)
class ResponseEnvelope:
    status_code: int
    body: str
    headers: Dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    def as_dict(self) -> Dict[str, Any]:
        """Lambda/Netlify function return shape."""
        return {"statusCode": self.status_code, "headers": dict(self.headers), "body": self.body}


_NO_BODY = object()


def _envelope(status_code: int, payload: Any = _NO_BODY) -> ResponseEnvelope:
    body = "" if payload is _NO_BODY else json.dumps(payload, ensure_ascii=False, allow_nan=False)
    return ResponseEnvelope(status_code=status_code, body=body)


def get_adapter(name: str) -> ProviderAdapter:
    try:
        return ADAPTERS[name]
    except KeyError:
        raise ValueError(f"unknown provider: {name!r}") from None


async def handle_request(
    adapter: ProviderAdapter,
    method: str,
    query: Optional[Mapping[str, Any]],
) -> ResponseEnvelope:
    """
    One inbound call -> at most one upstream GET -> exactly one envelope.

    Pre-flight short-circuits before validation. Every failure after
    validation is converted to a 500 body shaped by the adapter.
    """
    method = (method or "").upper()
    if method == "OPTIONS":
        return _envelope(200)

    try:
        if method != "GET":
            raise MethodNotAllowed("Method not allowed")
        req = IndicatorRequest.from_query(query)
    except (MethodNotAllowed, ValidationError) as e:
        return _envelope(e.status_code, {"error": str(e)})

    try:
        url = adapter.build_url(req)
        logger.info("[%s] GET %s | params=%s", adapter.name, url, adapter.log_params(req))

        result = await http_fetch.fetch_url(url, headers=adapter.headers)
        logger.info("[%s] upstream status %s %s", adapter.name, result.status_code, result.reason)

        adapter.check_status(result)
        payload = adapter.parse(result.body)
        logger.info("[%s] payload: %s", adapter.name, adapter.summarize(payload))
        envelope = _envelope(200, payload)
    except ProxyError as e:
        logger.error("[%s] proxy error: %s: %s", adapter.name, type(e).__name__, e)
        return _envelope(500, adapter.error_body(e))
    except Exception as e:
        logger.exception("[%s] unexpected proxy failure", adapter.name)
        return _envelope(500, adapter.error_body(e))

    return envelope


def run_event(provider: str, event: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Serverless entry: takes a Netlify/Lambda proxy event
    ({"httpMethod", "queryStringParameters", ...}) and returns
    {"statusCode", "headers", "body"}.
    """
    ev = event or {}
    env = asyncio.run(
        handle_request(get_adapter(provider), ev.get("httpMethod") or "", ev.get("queryStringParameters"))
    )
    return env.as_dict()


__all__ = [
    "ADAPTERS",
    "CORS_HEADERS",
    "ResponseEnvelope",
    "get_adapter",
    "handle_request",
    "run_event",
]
