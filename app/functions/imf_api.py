# app/functions/imf_api.py — serverless entrypoint for the IMF proxy
from __future__ import annotations

from typing import Any, Dict, Mapping

from app.services.proxy_service import run_event


def handler(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    return run_event("imf", event)
