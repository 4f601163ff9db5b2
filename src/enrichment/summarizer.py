"""AI summarization of extracted website content into a strict schema."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Protocol

from pydantic import ValidationError
from pydantic_ai import Agent

from src.api.schemas import CompanySummary
from src.enrichment.errors import AiUnavailable
from src.enrichment.models import ExtractedContent
from src.enrichment.prompts import SYSTEM_PROMPT, format_summary_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)


class Summarizer(Protocol):
    """Anything that turns extracted content into a validated :class:`CompanySummary`."""

    async def summarize(self, content: ExtractedContent) -> CompanySummary: ...


def _repair(raw: str) -> str | None:
    """Strip markdown code fences and keep the outermost JSON object, if any."""
    text = raw.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def parse_summary(raw: str) -> CompanySummary:
    """Validate a model reply, allowing exactly one repair pass.

    Raises:
        AiUnavailable: the reply does not satisfy the schema even after repair.
    """
    try:
        return CompanySummary.model_validate_json(raw, by_alias=True, by_name=False)
    except ValidationError:
        pass

    repaired = _repair(raw)
    if repaired is None or repaired == raw:
        logger.warning("ai output is not json", extra={"raw_preview": raw[:200]})
        raise AiUnavailable("The summarization model returned an unusable response.")

    try:
        return CompanySummary.model_validate_json(repaired, by_alias=True, by_name=False)
    except ValidationError as exc:
        logger.warning(
            "ai output failed schema validation",
            extra={"errors": exc.error_count(), "raw_preview": raw[:200]},
        )
        raise AiUnavailable("The summarization model returned an unusable response.") from None


class AgentSummarizer:
    """Summarizer backed by a single pydantic-ai agent shared across requests."""

    def __init__(self, model: str, timeout: float = 20.0) -> None:
        self._model = model
        self._timeout = timeout
        self._agent = Agent(
            model,
            system_prompt=SYSTEM_PROMPT,
            model_settings={"temperature": 0.2},
            defer_model_check=True,
        )

    async def summarize(self, content: ExtractedContent) -> CompanySummary:
        prompt = format_summary_prompt(content.title, content.meta_description, content.body_text)
        try:
            async with asyncio.timeout(self._timeout):
                result = await self._agent.run(prompt)
        except TimeoutError:
            logger.warning("ai call timed out", extra={"model": self._model, "timeout": self._timeout})
            raise AiUnavailable("The summarization model took too long to respond.") from None
        except Exception:
            logger.warning("ai call failed", extra={"model": self._model}, exc_info=True)
            raise AiUnavailable() from None

        usage = result.usage()
        logger.info(
            "ai summary received",
            extra={
                "model": self._model,
                "input_tokens": usage.input_tokens or 0,
                "output_tokens": usage.output_tokens or 0,
            },
        )
        return parse_summary(result.output)
