"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from refi_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from refi_gateway.api.v1 import analysis, market_rates, lender_rates, alerts
from refi_gateway.infrastructure.cache import TTLCache
from refi_gateway.infrastructure.database.session import init_db
from refi_gateway.infrastructure.observability.logging import setup_logging
from refi_gateway.infrastructure.rate_service import RateProvenanceService
from refi_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app(rate_service: RateProvenanceService | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Refinance Gateway",
        description="Refinance decision engine with live market rates and rate alerts",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Per-process caches live on app state
    app.state.rate_service = rate_service or RateProvenanceService()
    app.state.lender_cache = TTLCache(settings.lender_cache_ttl_seconds)

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
    app.include_router(analysis.router, prefix="/v1", tags=["analysis"])
    app.include_router(market_rates.router, prefix="/v1", tags=["market-rates"])
    app.include_router(lender_rates.router, prefix="/v1", tags=["lenders"])
    app.include_router(alerts.router, prefix="/v1", tags=["alerts"])

    return app


app = create_app()
