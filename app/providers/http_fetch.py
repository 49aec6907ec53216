# app/providers/http_fetch.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import asyncio
import errno
import logging
import os
import socket

import httpx

from app.providers.errors import TransportError, UpstreamTimeoutError

logger = logging.getLogger("macro-proxy")

# -------------------------------------------------------------------
# CONFIG
# -------------------------------------------------------------------
FETCH_TIMEOUT_MS = int(os.getenv("PROXY_TIMEOUT_MS", "30000"))


@dataclass(frozen=True)
class FetchResult:
    status_code: int
    reason: str
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(timeout=seconds, connect=seconds, read=seconds, write=seconds, pool=seconds)


def _error_code(exc: BaseException) -> str:
    """
    Best-effort errno-style code for a connection failure
    (ENOTFOUND, ECONNREFUSED, ECONNRESET, ...). Falls back to the
    exception class name when no OS error sits in the chain.
    """
    cur: Optional[BaseException] = exc
    for _ in range(10):
        if cur is None:
            break
        if isinstance(cur, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(cur, OSError) and cur.errno:
            name = errno.errorcode.get(cur.errno)
            if name:
                return name
        cur = cur.__cause__ or cur.__context__
    return type(exc).__name__


async def fetch_url(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    timeout_ms: int = FETCH_TIMEOUT_MS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchResult:
    """
    Single GET against an upstream provider. No retries.

    Non-2xx responses are returned, not raised; each provider decides what
    status it accepts. The whole call is bounded by `timeout_ms`: on expiry
    the in-flight request is cancelled and UpstreamTimeoutError is raised.
    """
    seconds = timeout_ms / 1000.0
    try:
        async with httpx.AsyncClient(
            timeout=_timeout(seconds),
            headers=dict(headers or {}),
            follow_redirects=True,
            transport=transport,
        ) as client:
            resp = await asyncio.wait_for(client.get(url), timeout=seconds)
            body = resp.text
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        logger.warning("upstream timeout after %sms | url=%s", timeout_ms, url)
        raise UpstreamTimeoutError(f"Request took longer than {seconds:g} seconds", timeout_ms) from e
    except httpx.TransportError as e:
        code = _error_code(e)
        logger.warning("upstream transport error | url=%s code=%s err=%r", url, code, e)
        raise TransportError(str(e) or type(e).__name__, code) from e

    return FetchResult(status_code=resp.status_code, reason=resp.reason_phrase, body=body)


__all__ = ["FETCH_TIMEOUT_MS", "FetchResult", "fetch_url"]
