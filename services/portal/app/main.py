import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app import models  # noqa: F401  registra as tabelas em Base.metadata
from app.consumers import BILLING_EVENT_TYPES, build_billing_handler
from app.core.database import Base, build_engine, build_session_factory
from app.core.errors import DomainError, domain_error_handler
from app.routers import appointments, auth, companies, consultants, formations, invitations, lessons, notifications
from shared import EventConsumer, ServiceConfig, build_publisher, cleanup_consumer, load_service_config, wait_for_database
from shared.cors import configure_cors
from shared.health import create_health_router
from shared.logging import RequestContextLogMiddleware, configure_logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "portal"

tags_metadata = [
    {"name": "Auth", "description": "Cadastro de empresas, login e redefinição de senha."},
    {"name": "Invitations", "description": "Convites de colaboradores para uma empresa."},
    {"name": "Companies", "description": "Empresas, seus usuários e a assinatura."},
    {"name": "Formations", "description": "Formações, seções, lições e progresso dos colaboradores."},
    {"name": "Lessons", "description": "Progresso por lição, quizzes e resultados."},
    {"name": "Appointments", "description": "Agendamentos de consultoria e feedback."},
    {"name": "Notifications", "description": "Notificações internas do usuário autenticado."},
    {"name": "Consultants", "description": "Perfil dos consultores."},
    {"name": "Health", "description": "Liveness e readiness."},
]


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    config: ServiceConfig = app.state.config
    logger.info("Starting Portal Service...")
    await wait_for_database(service_name=SERVICE_NAME, metadata=Base.metadata, engine=app.state.engine)

    consumer: Optional[EventConsumer] = None
    consumer_task: Optional[asyncio.Task] = None
    if config.redis.url:
        consumer = EventConsumer(
            redis_url=config.redis.url,
            stream_name=config.redis.billing_stream,
            group_name="portal-billing",
            consumer_name=os.getenv("BILLING_CONSUMER_NAME", "portal-billing-worker-1"),
        )
        handler = build_billing_handler(app.state.session_factory)
        for event_type in BILLING_EVENT_TYPES:
            consumer.register_handler(event_type, handler)
        consumer_task = asyncio.create_task(consumer.start())
        logger.info("Billing event consumer started")

    yield

    await cleanup_consumer(consumer, consumer_task, logger)
    app.state.engine.dispose()
    logger.info("Portal Service stopped")


async def integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Violação de integridade não tratada: %s", exc.orig)
    return JSONResponse(status_code=409, content={"detail": "Conflito com o estado atual do recurso"})


def create_app(config: Optional[ServiceConfig] = None) -> FastAPI:
    config = config or load_service_config(SERVICE_NAME)
    configure_logging(SERVICE_NAME)

    app = FastAPI(
        title="Portal Service",
        version="0.1.0",
        description="API do portal de formações e consultorias para empresas (multi-tenant).",
        openapi_tags=tags_metadata,
        root_path=os.getenv("APP_ROOT_PATH", ""),
        lifespan=app_lifespan,
    )

    engine = build_engine(config.database.url)
    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.publisher = build_publisher(config.redis.url, config.redis.stream)

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_middleware(RequestContextLogMiddleware)
    configure_cors(app, config.accounts.public_url)

    def custom_openapi_schema():
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        schema["openapi"] = "3.0.3"
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi_schema

    app.include_router(create_health_router(SERVICE_NAME))
    app.include_router(auth.router)
    app.include_router(invitations.router)
    app.include_router(companies.router)
    app.include_router(formations.router)
    app.include_router(lessons.router)
    app.include_router(appointments.router)
    app.include_router(notifications.router)
    app.include_router(consultants.router)

    @app.get("/", include_in_schema=False)
    def root():
        return {
            "service": SERVICE_NAME,
            "status": "ok",
            "docs_url": "/docs",
            "config": {
                "notification_stream": config.redis.stream,
                "billing_stream": config.redis.billing_stream,
            },
        }

    return app


app = create_app()
