"""POST /enrich endpoint handler."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from src.api.schemas import EnrichmentResult, EnrichRequest, ErrorResponse
from src.enrichment.engine import EnrichmentEngine

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "InvalidUrl"},
    404: {"model": ErrorResponse, "description": "Unreachable / TooManyRedirects"},
    500: {"model": ErrorResponse, "description": "AiUnavailable / EmptyContent / Internal"},
    504: {"model": ErrorResponse, "description": "Timeout / RequestTimeout"},
}


def _get_engine(request: Request) -> EnrichmentEngine:
    return request.app.state.engine


@router.post("/enrich", response_model=EnrichmentResult, responses=_ERROR_RESPONSES)
async def enrich(
    body: EnrichRequest,
    engine: EnrichmentEngine = Depends(_get_engine),
) -> EnrichmentResult:
    return await engine.run(body.website)
