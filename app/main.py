# app/main.py
from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from app.routes import proxy

logger = logging.getLogger("macro-proxy")
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

app = FastAPI(
    title="Macro Data Proxy",
    description="CORS proxy for IMF DataMapper and World Bank WDI",
    version="2026.10.19",
)

app.include_router(proxy.router)
logger.info("[init] proxy router mounted: %s", [r.path for r in proxy.router.routes])


@app.get("/")
def root():
    return {
        "ok": True,
        "providers": ["imf", "worldbank"],
        "hint": "GET /api/<provider>?indicator=&country=&startYear=&endYear=",
    }


@app.get("/healthz")
def healthz():
    # keep this super fast
    return {"status": "ok"}
