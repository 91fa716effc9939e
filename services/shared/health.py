"""Health check endpoints (/health and /ready) for Docker/Kubernetes probes."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

import redis.asyncio as aioredis
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError


def check_database_health(engine: Optional[Engine]) -> bool:
    """Run ``SELECT 1`` against the engine; False when it is missing or down."""
    if engine is None:
        return False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except SQLAlchemyError:
        return False


async def check_redis_health(redis_url: Optional[str]) -> Optional[bool]:
    """True if Redis answers PING, False if configured but down, None if not configured."""
    if not redis_url:
        return None
    client = aioredis.from_url(redis_url)
    try:
        await asyncio.wait_for(client.ping(), timeout=1.0)
        return True
    except (aioredis.RedisError, OSError, asyncio.TimeoutError):
        return False
    finally:
        await client.aclose()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_health_router(service_name: str) -> APIRouter:
    """Cria router FastAPI com endpoints /health e /ready.

    O engine e a URL do Redis são lidos de ``request.app.state`` para que o
    router funcione com a fábrica de sessão injetada pelo app.
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", status_code=status.HTTP_200_OK)
    def health():
        return {"status": "ok", "service": service_name, "timestamp": _timestamp()}

    @router.get("/ready")
    async def ready(request: Request):
        engine = getattr(request.app.state, "engine", None)
        config = getattr(request.app.state, "config", None)
        redis_url = config.redis.url if config is not None else None

        checks = {
            "database": await asyncio.to_thread(check_database_health, engine),
            "redis": await check_redis_health(redis_url),
        }
        # redis None = não configurado, não conta como falha
        healthy = checks["database"] and checks["redis"] is not False

        return JSONResponse(
            content={
                "status": "ready" if healthy else "not_ready",
                "service": service_name,
                "timestamp": _timestamp(),
                "checks": checks,
            },
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return router
