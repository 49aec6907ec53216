# app/routes/proxy.py — CORS proxy endpoints, one adapter per provider
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import Response

from app.services.proxy_service import get_adapter, handle_request

router = APIRouter(tags=["proxy"])

# Every method is routed here so the handler (not the framework) answers 405
# with the CORS headers attached.
_METHODS = ["GET", "OPTIONS", "HEAD", "POST", "PUT", "PATCH", "DELETE"]

# /.netlify/functions/* keeps the paths the dashboard was built against.
_ROUTES = {
    "imf": ("/api/imf", "/.netlify/functions/imf-api"),
    "worldbank": ("/api/worldbank", "/.netlify/functions/worldbank-api"),
}


def _make_endpoint(provider: str):
    adapter = get_adapter(provider)

    async def endpoint(request: Request) -> Response:
        env = await handle_request(adapter, request.method, dict(request.query_params))
        return Response(content=env.body, status_code=env.status_code, headers=env.headers)

    endpoint.__name__ = f"{provider}_proxy"
    return endpoint


def _register() -> None:
    for provider, paths in _ROUTES.items():
        endpoint = _make_endpoint(provider)
        for i, path in enumerate(paths):
            router.add_api_route(
                path,
                endpoint,
                methods=_METHODS,
                summary=f"{provider} proxy",
                include_in_schema=i == 0,
            )


_register()
