"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from risk_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from risk_gateway.api.v1 import customers, rules, transactions
from risk_gateway.infrastructure.database.seed import seed_database
from risk_gateway.infrastructure.database.session import SessionLocal, init_db
from risk_gateway.infrastructure.observability.logging import setup_logging
from risk_gateway.config import settings
from risk_gateway.utils.date_utils import now_in_timezone

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.seed_data:
        db = SessionLocal()
        try:
            seed_database(db, now_in_timezone(settings.processing_timezone))
        finally:
            db.close()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Transaction Risk Gateway",
        description="Rule-based transaction risk scoring service",
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
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(rules.router, prefix="/v1", tags=["rules"])

    return app


app = create_app()
