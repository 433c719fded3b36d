"""
Event Planner API Server - REST API for the admin dashboard and client views.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.response_models import HealthResponse
from api.timeline_router import router as timeline_router
from eventplan import __version__
from eventplan import config as app_config
from eventplan.observability import CorrelationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Event Planner API",
    description="Event planning checklists: timeline recalculation, progress and audit",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(timeline_router, prefix="/api")


@app.get("/api/health", response_model=HealthResponse)
def health():
    return {"status": "healthy", "timestamp": datetime.now(UTC).isoformat()}


def main() -> None:
    configure_logging(app_config.LOG_LEVEL)
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8420"))
    logger.info("Starting API server on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
