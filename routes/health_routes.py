"""
Health check endpoint.

GET /health — checks MongoDB and the refresh-token denylist.
Rules:
- MongoDB failure → "unhealthy" (503) — the app cannot function without it.
- Denylist failure or absence → "degraded" (200) — Redis is optional.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from infrastructure.denylist.protocol import TokenDenylist
from schemas.dto.responses.common import HealthChecks, HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


async def _check_mongodb(request: Request) -> str:
    try:
        await request.app.state.db.client.admin.command("ping")
        return "ok"
    except Exception as e:
        log.error("health_check_failed", dependency="mongodb", error=str(e))
        return "error"


async def _check_denylist(denylist: TokenDenylist) -> str:
    if not denylist.enabled:
        return "not_configured"
    try:
        await denylist.ping()
        return "ok"
    except Exception as e:
        log.warning("health_check_failed", dependency="token_denylist", error=str(e))
        return "error"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "MongoDB unreachable"}},
)
async def health_check(request: Request) -> JSONResponse:
    checks = HealthChecks(
        mongodb=await _check_mongodb(request),
        token_denylist=await _check_denylist(request.app.state.token_denylist),
    )

    if checks.mongodb != "ok":
        overall = "unhealthy"
    elif checks.token_denylist != "ok":
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthResponse(status=overall, checks=checks)
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
