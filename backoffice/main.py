# backoffice/main.py

from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from backoffice.api.v1 import api_router
from backoffice.core.config import Settings, get_settings
from backoffice.core.context import AppContext
from backoffice.core.database import MongoDbContext
from backoffice.core.document_store import DocumentStore
from backoffice.core.exceptions import register_exception_handlers
from backoffice.core.logging_config import add_trace_id_middleware, setup_logging
from backoffice.core.rate_limit import setup_rate_limiting
from backoffice.modules.audit.repository import AuditLogRepository
from backoffice.modules.audit.triggers import register_audit_triggers


def build_context(
    settings: Settings, database: Optional[Any] = None, http_client: Optional[httpx.AsyncClient] = None
) -> AppContext:
    mongo = None
    if database is None:
        mongo = MongoDbContext(settings)
        database = mongo.get_db()
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)

    store = DocumentStore(database)
    audit_repo = AuditLogRepository(store, settings.AUDIT_COLLECTION)
    register_audit_triggers(store, audit_repo, settings.PEDIDOS_COLLECTION)
    return AppContext(settings=settings, store=store, http_client=http_client, mongo=mongo)


@asynccontextmanager
async def lifespan(app: FastAPI):
    context: AppContext = app.state.context
    logger.info(f"Starting {context.settings.PROJECT_NAME}...")
    if context.mongo is not None:
        await context.mongo.connect()
    yield
    logger.info("Shutting down...")
    await context.store.drain()
    await context.http_client.aclose()
    if context.mongo is not None:
        await context.mongo.disconnect()


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Any] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Monta a aplicação. `database` (banco compatível com Motor) e `http_client`
    podem ser injetados; sem eles, usa MongoDB pela URI e um cliente httpx próprio.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )
    app.state.context = build_context(settings, database, http_client)

    register_exception_handlers(app)
    setup_rate_limiting(app, settings)
    # Registrado depois do rate limiter: o trace envolve também as respostas 429
    app.middleware("http")(add_trace_id_middleware)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS != "*" else ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
