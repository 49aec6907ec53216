# app/providers/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
import json
import os
import traceback
from types import MappingProxyType

from app.providers.errors import ValidationError
from app.providers.http_fetch import FetchResult

# -------------------------------------------------------------------
# CONFIG
# -------------------------------------------------------------------
PROXY_DEBUG = os.getenv("PROXY_DEBUG", "0") == "1"

REQUIRED_PARAMS = ("indicator", "country", "startYear", "endYear")
MISSING_PARAMS_MESSAGE = "Missing required parameters: indicator, country, startYear, endYear"


@dataclass(frozen=True)
class IndicatorRequest:
    indicator: str
    country: str
    start_year: str
    end_year: str

    @classmethod
    def from_query(cls, query: Optional[Mapping[str, Any]]) -> "IndicatorRequest":
        """
        Build from raw query parameters. All four must be present and
        non-empty. Years are kept as given; the upstream rejects bad ones.
        """
        q = query or {}
        vals = {k: q.get(k) for k in REQUIRED_PARAMS}
        if any(not v for v in vals.values()):
            raise ValidationError(MISSING_PARAMS_MESSAGE)
        return cls(
            indicator=str(vals["indicator"]),
            country=str(vals["country"]),
            start_year=str(vals["startYear"]),
            end_year=str(vals["endYear"]),
        )


def truncate(text: Optional[str], limit: int) -> str:
    return (text or "")[:limit]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unexpected non-JSON constant {name}")


def load_json(body: str) -> Any:
    """json.loads that refuses NaN and Infinity, which browsers cannot parse."""
    return json.loads(body, parse_constant=_reject_constant)


class ProviderAdapter(ABC):
    """
    Everything provider-specific: URL shape, request headers, which upstream
    statuses count as success, how the body maps to the response payload,
    and what a 500 body looks like for each failure kind.
    """

    name: str = ""
    headers: Mapping[str, str] = MappingProxyType({})

    @abstractmethod
    def build_url(self, req: IndicatorRequest) -> str:
        ...

    @abstractmethod
    def check_status(self, result: FetchResult) -> None:
        """Raise UpstreamHttpError if `result` is not acceptable."""

    @abstractmethod
    def parse(self, body: str) -> Any:
        ...

    @abstractmethod
    def error_body(self, exc: Exception) -> Dict[str, Any]:
        ...

    def log_params(self, req: IndicatorRequest) -> Dict[str, str]:
        return {
            "indicator": req.indicator,
            "country": req.country,
            "startYear": req.start_year,
            "endYear": req.end_year,
        }

    def summarize(self, payload: Any) -> str:
        return truncate(json.dumps(payload, ensure_ascii=False), 500)


def debug_stack(exc: BaseException) -> Dict[str, str]:
    # Tracebacks leak file paths, so they are only returned with PROXY_DEBUG=1.
    if not PROXY_DEBUG:
        return {}
    return {"stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))}


__all__ = [
    "IndicatorRequest",
    "ProviderAdapter",
    "MISSING_PARAMS_MESSAGE",
    "REQUIRED_PARAMS",
    "truncate",
    "load_json",
    "debug_stack",
]
