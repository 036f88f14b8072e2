"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from microloan.api.middleware import RequestIDMiddleware, MetricsMiddleware
from microloan.api.v1 import clients, loans
from microloan.infrastructure.observability.logging import setup_logging
from microloan.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Microloan Service",
        description="Loan amortization schedules and repayment tracking",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(clients.router, prefix="/v1", tags=["clients"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])

    return app


app = create_app()
