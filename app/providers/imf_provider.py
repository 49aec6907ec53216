# app/providers/imf_provider.py
from __future__ import annotations

"""
IMF DataMapper provider.

The dashboard's canonical codes are DataMapper codes, so nothing is
translated and the upstream JSON is handed back untouched:

  GET {IMF_BASE}/{indicator}/{country}?periods={start}-{end}
    -> {"values": {"<indicator>": {"<country>": {"2020": 1.2, ...}}}, "api": {...}}

Any non-2xx status is a hard failure; the error message carries the first
200 characters of the upstream body.
"""

from typing import Any, Dict
import logging
import os

from app.providers.base import IndicatorRequest, ProviderAdapter, load_json, truncate
from app.providers.errors import MalformedUpstreamPayload, UpstreamHttpError
from app.providers.http_fetch import FetchResult

logger = logging.getLogger("macro-proxy")

# ----------------------------
# Config
# ----------------------------
IMF_BASE = os.getenv("IMF_BASE", "https://www.imf.org/external/datamapper/api/v1")

_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "Mozilla/5.0 (compatible; IMF-Dashboard/1.0)",
}


class FundAdapter(ProviderAdapter):
    name = "imf"
    headers = _HEADERS

    def build_url(self, req: IndicatorRequest) -> str:
        return f"{IMF_BASE}/{req.indicator}/{req.country}?periods={req.start_year}-{req.end_year}"

    def check_status(self, result: FetchResult) -> None:
        if result.ok:
            return
        logger.error("[imf] error response: %s", result.body)
        raise UpstreamHttpError(
            f"IMF API error: {result.status_code} {result.reason}. {truncate(result.body, 200)}",
            status=result.status_code,
            reason=result.reason,
            body=result.body,
        )

    def parse(self, body: str) -> Any:
        # DataMapper already answers in the dashboard's shape.
        try:
            return load_json(body)
        except ValueError as e:
            raise MalformedUpstreamPayload(f"Invalid JSON from IMF API: {e}", raw=body) from e

    def error_body(self, exc: Exception) -> Dict[str, Any]:
        return {"error": "Failed to fetch data from IMF API", "message": str(exc)}


__all__ = ["IMF_BASE", "FundAdapter"]
