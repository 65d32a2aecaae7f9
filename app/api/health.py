"""Liveness and readiness endpoints.

  /health: is the process up?  Always 200; "status" says whether the
           credential store is reachable ("ok") or not ("degraded").
  /ready:  may this instance take traffic?  503 when a configured
           database cannot be reached.  The in-memory repo is always ready.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from app.db import engine as db_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _database_check() -> str:
    if db_engine.engine is None:
        return "not_configured"
    try:
        await db_engine.ping_database()
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return "degraded"
    return "ok"


@router.get("/health")
async def health() -> dict:
    database = await _database_check()
    return {
        "status": "degraded" if database == "degraded" else "ok",
        "checks": {"database": database},
    }


@router.get("/ready")
async def ready() -> Response:
    if await _database_check() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
