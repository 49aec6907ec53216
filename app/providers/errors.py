# app/providers/errors.py
from __future__ import annotations

from typing import Optional


class ProxyError(Exception):
    """Base class for every failure the proxy turns into a JSON error body."""

    status_code = 500


class ValidationError(ProxyError):
    status_code = 400


class MethodNotAllowed(ProxyError):
    status_code = 405


class UpstreamHttpError(ProxyError):
    """Provider answered with a status its adapter does not accept."""

    def __init__(self, message: str, status: int, reason: str = "", body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.body = body


class TransportError(ProxyError):
    """DNS failure, refused or reset connection."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class UpstreamTimeoutError(ProxyError):
    def __init__(self, message: str, timeout_ms: int) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms


class MalformedUpstreamPayload(ProxyError):
    """Body could not be decoded, or decoded to an unexpected shape."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


__all__ = [
    "ProxyError",
    "ValidationError",
    "MethodNotAllowed",
    "UpstreamHttpError",
    "TransportError",
    "UpstreamTimeoutError",
    "MalformedUpstreamPayload",
]
