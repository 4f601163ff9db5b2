"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.config import get_settings
from src.enrichment.engine import EnrichmentEngine
from src.enrichment.errors import EnrichmentError
from src.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Initialize logging FIRST so all subsequent operations produce JSON logs
    setup_logging(settings.log_level)
    logger.info("starting enrichment service")

    # One engine (and one AI agent) per process, shared read-only by requests
    app.state.settings = settings
    app.state.engine = EnrichmentEngine(settings)

    logger.info(
        "enrichment service ready",
        extra={
            "model": settings.model_name,
            "fetch_timeout": settings.fetch_timeout_seconds,
            "request_timeout": settings.request_timeout_seconds,
            "ai_failure_policy": settings.ai_failure_policy,
        },
    )

    yield

    logger.info("shutting down enrichment service")


app = FastAPI(title="Company Enrichment Service", lifespan=lifespan)
app.include_router(router)


@app.exception_handler(EnrichmentError)
async def enrichment_error_handler(request: Request, exc: EnrichmentError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "ok"}
