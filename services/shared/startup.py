"""Async lifespan helpers shared by FastAPI services."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.schema import MetaData

logger = logging.getLogger(__name__)


async def wait_for_database(
    *,
    service_name: str,
    metadata: MetaData,
    engine: Engine,
    retries: int = 10,
    wait_seconds: float = 2.0,
) -> None:
    """Ensure database tables exist before the service starts handling requests.

    Retries while the database container is still booting and gives up after
    ``retries`` attempts by re-raising the last error.
    """
    for attempt in range(retries):
        try:
            await asyncio.to_thread(metadata.create_all, bind=engine)
            return
        except OperationalError as exc:
            if attempt == retries - 1:
                logger.error("[%s] Banco indisponível após %d tentativas", service_name, retries)
                raise
            logger.warning(
                "[%s] Banco indisponível, aguardando %ss... tentativa %d: %s",
                service_name,
                wait_seconds,
                attempt + 1,
                exc,
            )
            await asyncio.sleep(wait_seconds)
