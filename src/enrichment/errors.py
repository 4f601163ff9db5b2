"""Typed failures surfaced by the enrichment pipeline.

Each error carries a stable ``kind`` and the HTTP ``status_code`` the route
layer should answer with. ``message`` is safe to show to callers; transport
detail (exception text, upstream bodies) stays in the logs.
"""

from __future__ import annotations


class EnrichmentError(Exception):
    """Base class for every classified pipeline failure."""

    kind: str = "Internal"
    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class InvalidUrl(EnrichmentError):
    kind = "InvalidUrl"
    status_code = 400
    default_message = "The website is not a valid public http(s) URL."


class Unreachable(EnrichmentError):
    kind = "Unreachable"
    status_code = 404
    default_message = "The website could not be reached."

    def __init__(self, message: str | None = None, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class TooManyRedirects(EnrichmentError):
    kind = "TooManyRedirects"
    status_code = 404
    default_message = "The website redirected too many times."


class FetchTimeout(EnrichmentError):
    kind = "Timeout"
    status_code = 504
    default_message = "The website took too long to respond."


class EmptyContent(EnrichmentError):
    kind = "EmptyContent"
    status_code = 500
    default_message = "The website returned no readable content."


class AiUnavailable(EnrichmentError):
    kind = "AiUnavailable"
    status_code = 500
    default_message = "The summarization model is unavailable."


class RequestTimeout(EnrichmentError):
    kind = "RequestTimeout"
    status_code = 504
    default_message = "Enrichment did not finish in time."


class InternalError(EnrichmentError):
    kind = "Internal"
    status_code = 500
