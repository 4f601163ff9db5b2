"""Fixtures: settings, sample HTML, fake summarizer, mock transports."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from src.api.schemas import CompanySummary
from src.config import Settings
from src.enrichment.fetcher import Fetcher

LOREM = (
    "Acme builds payment infrastructure for internet businesses. "
    "Millions of companies use Acme to accept payments, send payouts and manage their business online. "
)


def make_html(body: str, title: str = "Acme | Payments", description: str = "Online payments for businesses.") -> str:
    return (
        "<html><head>"
        f"<title>{title}</title>"
        f'<meta name="description" content="{description}">'
        "<script>window.analytics = {track: function () {}};</script>"
        "<style>body { color: red; }</style>"
        f"</head><body>{body}</body></html>"
    )


def make_summary(**overrides) -> CompanySummary:
    defaults = dict(
        summary="Acme provides payment infrastructure for internet businesses.",
        what_they_do=["Online payments", "Payouts", "Billing"],
        keywords=["payments", "fintech", "api", "billing", "saas"],
    )
    defaults.update(overrides)
    return CompanySummary(**defaults)


class FakeSummarizer:
    """Records what it was asked to summarize and returns a canned answer or raises."""

    def __init__(self, result: CompanySummary | None = None, error: Exception | None = None) -> None:
        self.result = result or make_summary()
        self.error = error
        self.calls: list = []

    async def summarize(self, content):
        self.calls.append(content)
        if self.error is not None:
            raise self.error
        return self.result


def make_fetcher(handler: Callable, **kwargs) -> Fetcher:
    return Fetcher(transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture
def settings() -> Settings:
    return Settings(max_extra_pages=0, request_timeout_seconds=5.0, ai_timeout_seconds=1.0)
