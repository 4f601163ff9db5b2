"""Enrichment engine: sequences normalize -> fetch -> extract -> analyze -> assemble."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from urllib.parse import urljoin, urlsplit

from src.api.schemas import CompanySummary, EnrichmentResult
from src.config import Settings
from src.enrichment.errors import (
    AiUnavailable,
    EmptyContent,
    EnrichmentError,
    InternalError,
    RequestTimeout,
)
from src.enrichment.extractor import extract, merge_content
from src.enrichment.fetcher import Fetcher
from src.enrichment.models import ExtractedContent, FetchResult, Signal
from src.enrichment.signals import detect_signals
from src.enrichment.summarizer import AgentSummarizer, Summarizer
from src.enrichment.urls import normalize_url

logger = logging.getLogger(__name__)

_HTML_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}

# Well-known subpaths worth one extra fetch when the seed page links to them
_EXTRA_PAGE_PATHS = ("/about", "/about-us", "/company")


class EnrichmentEngine:
    """Runs one enrichment per call; holds only read-only shared collaborators."""

    def __init__(
        self,
        settings: Settings,
        summarizer: Summarizer | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self._settings = settings
        self._summarizer = summarizer or AgentSummarizer(
            settings.model_name,
            timeout=settings.ai_timeout_seconds,
        )
        self._fetcher = fetcher or Fetcher(
            timeout=settings.fetch_timeout_seconds,
            max_redirects=settings.max_redirects,
            user_agent=settings.user_agent,
            max_response_bytes=settings.max_response_bytes,
        )

    async def run(self, website: str) -> EnrichmentResult:
        """Enrich *website* or raise the first :class:`EnrichmentError` encountered."""
        request_id = uuid.uuid4().hex[:12]
        started = time.monotonic()
        logger.info("enrichment started", extra={"request_id": request_id, "website": website[:200]})

        try:
            async with asyncio.timeout(self._settings.request_timeout_seconds) as scope:
                result = await self._run_stages(website, request_id, scope.when())
        except TimeoutError:
            error: EnrichmentError = RequestTimeout()
        except EnrichmentError as exc:
            error = exc
        except Exception:
            logger.exception("enrichment crashed", extra={"request_id": request_id})
            error = InternalError()
        else:
            logger.info(
                "enrichment completed",
                extra={
                    "request_id": request_id,
                    "signals": len(result.signals),
                    "sources": len(result.sources),
                    "elapsed_ms": int((time.monotonic() - started) * 1000),
                },
            )
            return result

        logger.info(
            "enrichment failed",
            extra={
                "request_id": request_id,
                "kind": error.kind,
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )
        raise error

    async def _run_stages(self, website: str, request_id: str, deadline: float) -> EnrichmentResult:
        self._enter(request_id, "normalizing")
        url = normalize_url(website)

        self._enter(request_id, "fetching")
        page = await self._fetcher.fetch(url)

        self._enter(request_id, "extracting")
        content = self._extract(page)
        sources = [urlsplit(page.final_url).path or "/"]

        if self._settings.max_extra_pages > 0:
            content, extra_paths = await self._add_extra_pages(content, page.final_url, request_id, deadline)
            sources.extend(extra_paths)

        self._enter(request_id, "analyzing")
        summary, signals = await self._analyze(content)

        self._enter(request_id, "assembling")
        return self._assemble(summary, signals, sources)

    def _enter(self, request_id: str, stage: str) -> None:
        logger.debug("stage entered", extra={"request_id": request_id, "stage": stage})

    def _extract(self, page: FetchResult) -> ExtractedContent:
        content_type = page.content_type.split(";")[0].strip().lower()
        if content_type and content_type not in _HTML_CONTENT_TYPES:
            raise EmptyContent("The website did not return an HTML page.")
        return extract(
            page.html,
            page.final_url,
            max_chars=self._settings.max_body_chars,
            min_chars=self._settings.min_content_chars,
            max_links=self._settings.max_internal_links,
        )

    async def _add_extra_pages(
        self,
        content: ExtractedContent,
        base_url: str,
        request_id: str,
        deadline: float,
    ) -> tuple[ExtractedContent, list[str]]:
        """Merge in up to ``max_extra_pages`` about-style pages; failures only cost the extra context.

        Each fetch may only use the time left before *deadline* after reserving
        ``ai_timeout_seconds`` for the summary call.
        """
        loop = asyncio.get_running_loop()
        candidates = [p for p in content.internal_links if p.lower() in _EXTRA_PAGE_PATHS]
        fetched: list[str] = []
        for path in candidates[: self._settings.max_extra_pages]:
            budget = deadline - loop.time() - self._settings.ai_timeout_seconds
            if budget <= 0:
                logger.warning("no time left for supplementary pages", extra={"request_id": request_id})
                break
            try:
                async with asyncio.timeout(budget):
                    page = await self._fetcher.fetch(normalize_url(urljoin(base_url, path)))
                extra = self._extract(page)
            except (TimeoutError, EnrichmentError) as exc:
                logger.warning(
                    "supplementary page skipped",
                    extra={"request_id": request_id, "path": path, "kind": getattr(exc, "kind", "Timeout")},
                )
                continue
            merged = merge_content(
                content,
                extra,
                max_chars=self._settings.max_body_chars,
                max_links=self._settings.max_internal_links,
            )
            # Only cite the page when some of its text made it into the body
            if len(merged.body_text) > len(content.body_text):
                fetched.append(path)
            content = merged
        return content, fetched

    async def _analyze(self, content: ExtractedContent) -> tuple[CompanySummary | None, list[Signal]]:
        """Run the AI call and signal detection side by side; the first failure cancels the other."""
        try:
            async with asyncio.TaskGroup() as group:
                summary_task = group.create_task(self._summarize(content))
                signals_task = group.create_task(asyncio.to_thread(detect_signals, content))
        except ExceptionGroup as exc_group:
            raise exc_group.exceptions[0] from None
        return summary_task.result(), signals_task.result()

    async def _summarize(self, content: ExtractedContent) -> CompanySummary | None:
        try:
            return await self._summarizer.summarize(content)
        except AiUnavailable:
            if self._settings.ai_failure_policy != "partial":
                raise
            logger.warning("ai unavailable, returning partial result")
            return None

    def _assemble(
        self,
        summary: CompanySummary | None,
        signals: list[Signal],
        sources: list[str],
    ) -> EnrichmentResult:
        evidence = [s.evidence for s in signals if s.evidence]
        return EnrichmentResult(
            summary=summary.summary if summary else "",
            what_they_do=list(summary.what_they_do) if summary else [],
            keywords=list(summary.keywords) if summary else [],
            signals=[s.text for s in signals],
            sources=list(dict.fromkeys(sources + evidence)),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
