"""
FastAPI application entry point.
Configures middleware, routers, and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from alucbam.core.config import get_settings
from alucbam.core.logging import configure_logging, get_logger
from alucbam.core.tasks import PersistenceDispatcher
from alucbam.db.session import close_db, init_db
from alucbam.db.store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from alucbam.modules.emissions.router import router as emissions_router
from alucbam.modules.reports.router import router as reports_router
from alucbam.modules.suppliers.router import router as suppliers_router

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the document store and the background persistence dispatcher on
    startup; drains pending writes before releasing connections on shutdown.
    """
    settings = get_settings()
    logger.info(
        "starting_application",
        environment=settings.environment,
        version=settings.version,
        persistence_backend=settings.persistence_backend,
    )

    store: DocumentStore
    if settings.persistence_backend == "sql":
        store = SqlDocumentStore(await init_db())
        logger.info("database_initialized")
    else:
        store = InMemoryDocumentStore()

    dispatcher = PersistenceDispatcher()
    app.state.store = store
    app.state.dispatcher = dispatcher

    yield

    await dispatcher.drain()
    if dispatcher.failures:
        logger.warning("persistence_failures_at_shutdown", count=len(dispatcher.failures))
    if settings.persistence_backend == "sql":
        await close_db()
    logger.info("application_shutdown_complete")


def create_application() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with middleware,
    routers, and settings applied.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
        docs_url=f"{settings.api_v1_prefix}/docs",
        redoc_url=f"{settings.api_v1_prefix}/redoc",
        lifespan=lifespan,
    )

    # ==========================================================================
    # Middleware Configuration
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-User-Id", "X-User-Email"],
        expose_headers=["Content-Disposition"],
    )

    # ==========================================================================
    # Router Registration
    # ==========================================================================

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, object]:
        dispatcher: PersistenceDispatcher | None = getattr(app.state, "dispatcher", None)
        checks = {
            "store": "ok" if getattr(app.state, "store", None) is not None else "unavailable",
            "persistence": "ok" if dispatcher and not dispatcher.failures else "degraded",
        }
        overall = "healthy" if all(v == "ok" for v in checks.values()) else "degraded"
        return {"status": overall, "version": settings.version, "checks": checks}

    app.include_router(
        emissions_router,
        prefix=f"{settings.api_v1_prefix}/emissions",
        tags=["Emissions"],
    )
    app.include_router(
        reports_router,
        prefix=f"{settings.api_v1_prefix}/reports",
        tags=["CBAM Reports"],
    )
    app.include_router(
        suppliers_router,
        prefix=f"{settings.api_v1_prefix}/suppliers",
        tags=["Suppliers"],
    )

    return app


# Create application instance
app = create_application()
