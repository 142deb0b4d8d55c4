"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from velocity_limits.api.middleware import RequestIDMiddleware, MetricsMiddleware
from velocity_limits.api.v1 import loads, history
from velocity_limits.infrastructure.database.session import init_db
from velocity_limits.infrastructure.observability.logging import setup_logging
from velocity_limits.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Velocity Limits Gateway",
        description="Daily and weekly load velocity limit admission service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(loads.router, prefix="/v1", tags=["loads"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
