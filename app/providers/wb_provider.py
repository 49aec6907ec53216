# app/providers/wb_provider.py
from __future__ import annotations

from typing import Any, Dict, Optional
import logging
import os
import re

from app.providers.base import IndicatorRequest, ProviderAdapter, debug_stack, load_json, truncate
from app.providers.errors import (
    MalformedUpstreamPayload,
    TransportError,
    UpstreamHttpError,
    UpstreamTimeoutError,
)
from app.providers.http_fetch import FetchResult
from app.utils.code_table import translate

logger = logging.getLogger("macro-proxy")

# -------------------------------------------------------------------
# CONFIG
# -------------------------------------------------------------------
WB_BASE = os.getenv("WB_BASE", "https://api.worldbank.org/v2")

_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "World-Bank-Economic-Dashboard/1.0",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _year_of(date: Any) -> Optional[int]:
    # "2020" -> 2020, "2020Q1" / "2020M03" -> 2020
    m = _LEADING_INT.match(str(date))
    return int(m.group(1)) if m else None


# -------------------------------------------------------------------
# NORMALIZATION
# -------------------------------------------------------------------
def wb_values_from_raw(data: Any) -> Dict[int, Any]:
    """
    Flatten WB's [metadata, observations] into {year: value}.

    Observations without a date or with a null value are dropped, never
    zeroed. Duplicate years: last one wins. Output is ordered by year.
    """
    if not isinstance(data, list) or len(data) < 2:
        raise MalformedUpstreamPayload("Invalid World Bank API response format")

    rows = data[1] or []
    if not isinstance(rows, list):
        raise MalformedUpstreamPayload("Invalid World Bank API response format")

    out: Dict[int, Any] = {}
    for row in rows:
        if not isinstance(row, dict):
            continue
        date = row.get("date")
        value = row.get("value")
        if not date or value is None:
            continue
        year = _year_of(date)
        if year is None:
            continue
        out[year] = value

    return dict(sorted(out.items()))


class DevelopmentBankAdapter(ProviderAdapter):
    name = "worldbank"
    headers = _HEADERS

    def _codes(self, req: IndicatorRequest) -> Dict[str, str]:
        return {
            "wbIndicator": translate("indicator", req.indicator),
            "wbCountry": translate("country", req.country),
        }

    def build_url(self, req: IndicatorRequest) -> str:
        codes = self._codes(req)
        return (
            f"{WB_BASE}/country/{codes['wbCountry']}/indicator/{codes['wbIndicator']}"
            f"?format=json&date={req.start_year}:{req.end_year}"
        )

    def log_params(self, req: IndicatorRequest) -> Dict[str, str]:
        params = super().log_params(req)
        params.update(self._codes(req))
        return params

    def check_status(self, result: FetchResult) -> None:
        # WB answers 200 for every real data page; anything else is an error page.
        if result.status_code == 200:
            return
        logger.error("[wb] error response: %s", truncate(result.body, 500))
        raise UpstreamHttpError(
            f"HTTP {result.status_code}: {result.reason}",
            status=result.status_code,
            reason=result.reason,
            body=result.body,
        )

    def parse(self, body: str) -> Dict[str, Dict[int, Any]]:
        try:
            data = load_json(body)
        except ValueError as e:
            raise MalformedUpstreamPayload(str(e), raw=body) from e
        try:
            values = wb_values_from_raw(data)
        except MalformedUpstreamPayload as e:
            e.raw = body
            raise
        return {"values": values}

    def summarize(self, payload: Any) -> str:
        return f"{len(payload.get('values') or {})} data points"

    def error_body(self, exc: Exception) -> Dict[str, Any]:
        if isinstance(exc, UpstreamHttpError):
            return {
                "error": "World Bank API error",
                "message": str(exc),
                "details": truncate(exc.body, 200),
            }
        if isinstance(exc, MalformedUpstreamPayload):
            return {
                "error": "Failed to parse World Bank API response",
                "message": str(exc),
                "rawData": truncate(exc.raw, 500),
            }
        if isinstance(exc, UpstreamTimeoutError):
            return {"error": "World Bank API request timeout", "message": str(exc)}
        if isinstance(exc, TransportError):
            return {
                "error": "Failed to fetch data from World Bank API",
                "message": str(exc),
                "code": exc.code,
            }
        out: Dict[str, Any] = {"error": "Failed to fetch data from World Bank API", "message": str(exc)}
        out.update(debug_stack(exc))
        return out


__all__ = ["WB_BASE", "DevelopmentBankAdapter", "wb_values_from_raw"]
