"""
Box-plant Operations Dashboard API Server - REST API over the aggregate snapshot.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from datetime import datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.dashboard_router import dashboard_router
from api.response_models import HealthResponse
from boxops import __version__, config
from boxops.observability import REGISTRY, CorrelationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

# FastAPI app initialization
app = FastAPI(
    title="Box-plant Operations Dashboard API",
    description="Job, step and machine statistics for the production dashboards",
    version=__version__,
)

# CORS middleware - configurable via CORS_ORIGINS env var
# Dev default: allow all origins; Production: set CORS_ORIGINS to comma-separated list
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
cors_origins = (
    ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(dashboard_router)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__, "timestamp": datetime.now().isoformat()}


@app.get("/api/metrics", response_class=PlainTextResponse)
async def metrics():
    """Prometheus-format metrics endpoint."""
    return REGISTRY.to_prometheus()


if __name__ == "__main__":
    configure_logging(config.LOG_LEVEL)
    port = int(os.getenv("PORT", "8420"))
    logger.info("Starting dashboard API on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)
