"""AI summarizer tests: schema parsing, repair pass, fail-closed behaviour."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.enrichment.errors import AiUnavailable
from src.enrichment.models import ExtractedContent
from src.enrichment.summarizer import AgentSummarizer, parse_summary

VALID = {
    "summary": "Acme provides payment infrastructure for internet businesses.",
    "whatTheyDo": ["Online payments", "Payouts", "Billing"],
    "keywords": ["payments", "fintech", "api", "billing", "saas"],
}

CONTENT = ExtractedContent(
    title="Acme | Payments",
    meta_description="Online payments for businesses.",
    body_text="Acme builds payment infrastructure for internet businesses.",
)


# --- parse_summary (sync) ---


def test_parse_valid_json():
    summary = parse_summary(json.dumps(VALID))
    assert summary.summary == VALID["summary"]
    assert summary.what_they_do == VALID["whatTheyDo"]
    assert summary.keywords == VALID["keywords"]


def test_parse_strips_item_whitespace():
    payload = dict(VALID, keywords=[" payments ", "fintech", "api", "billing", "saas"])
    assert parse_summary(json.dumps(payload)).keywords[0] == "payments"


def test_parse_repairs_code_fence():
    raw = "```json\n" + json.dumps(VALID, indent=2) + "\n```"
    assert parse_summary(raw).keywords == VALID["keywords"]


def test_parse_repairs_surrounding_prose():
    raw = "Sure! Here is the JSON you asked for:\n" + json.dumps(VALID) + "\nLet me know if you need more."
    assert parse_summary(raw).summary == VALID["summary"]


def test_malformed_text_fails_closed():
    with pytest.raises(AiUnavailable):
        parse_summary("I'm sorry, I cannot help with that request.")


def test_broken_json_fails_closed():
    with pytest.raises(AiUnavailable):
        parse_summary('```json\n{"summary": "Acme", "whatTheyDo": [\n```')


@pytest.mark.parametrize(
    "overrides",
    [
        {"summary": ""},
        {"summary": "   "},
        {"whatTheyDo": ["Payments", "Payouts"]},
        {"whatTheyDo": [f"item {i}" for i in range(7)]},
        {"keywords": ["a", "b", "c", "d"]},
        {"keywords": [f"k{i}" for i in range(11)]},
        {"keywords": ["payments", "", "api", "billing", "saas"]},
        {"whatTheyDo": "Payments"},
        {"keywords": [1, 2, 3, 4, 5]},
        {"confidence": 0.3},
    ],
)
def test_schema_violations_fail_closed(overrides):
    with pytest.raises(AiUnavailable):
        parse_summary(json.dumps(dict(VALID, **overrides)))


def test_snake_case_keys_fail_closed():
    payload = {"summary": VALID["summary"], "what_they_do": VALID["whatTheyDo"], "keywords": VALID["keywords"]}
    with pytest.raises(AiUnavailable):
        parse_summary(json.dumps(payload))


def test_missing_field_fails_closed():
    payload = {k: v for k, v in VALID.items() if k != "keywords"}
    with pytest.raises(AiUnavailable):
        parse_summary(json.dumps(payload))


# --- AgentSummarizer with a mocked pydantic-ai Agent ---


def _mock_agent_result(output: str):
    usage = MagicMock()
    usage.input_tokens = 120
    usage.output_tokens = 40
    result = MagicMock()
    result.output = output
    result.usage = MagicMock(return_value=usage)
    return result


@pytest.mark.asyncio
@patch("src.enrichment.summarizer.Agent")
async def test_agent_summarizer_success(mock_agent_cls):
    agent = MagicMock()
    agent.run = AsyncMock(return_value=_mock_agent_result(json.dumps(VALID)))
    mock_agent_cls.return_value = agent

    summarizer = AgentSummarizer("openai:gpt-4o-mini")
    summary = await summarizer.summarize(CONTENT)

    assert summary.what_they_do == VALID["whatTheyDo"]
    prompt = agent.run.call_args.args[0]
    assert "Acme | Payments" in prompt
    assert "Acme builds payment infrastructure" in prompt
    assert mock_agent_cls.call_args.args[0] == "openai:gpt-4o-mini"


@pytest.mark.asyncio
@patch("src.enrichment.summarizer.Agent")
async def test_agent_is_created_once(mock_agent_cls):
    agent = MagicMock()
    agent.run = AsyncMock(return_value=_mock_agent_result(json.dumps(VALID)))
    mock_agent_cls.return_value = agent

    summarizer = AgentSummarizer("openai:gpt-4o-mini")
    await summarizer.summarize(CONTENT)
    await summarizer.summarize(CONTENT)

    assert mock_agent_cls.call_count == 1
    assert agent.run.call_count == 2


@pytest.mark.asyncio
@patch("src.enrichment.summarizer.Agent")
async def test_agent_error_is_ai_unavailable(mock_agent_cls):
    agent = MagicMock()
    agent.run = AsyncMock(side_effect=RuntimeError("401 invalid api key sk-secret"))
    mock_agent_cls.return_value = agent

    with pytest.raises(AiUnavailable) as exc_info:
        await AgentSummarizer("openai:gpt-4o-mini").summarize(CONTENT)
    assert "sk-secret" not in exc_info.value.message


@pytest.mark.asyncio
@patch("src.enrichment.summarizer.Agent")
async def test_agent_timeout_is_ai_unavailable(mock_agent_cls):
    async def slow_run(prompt):
        await asyncio.sleep(10)

    agent = MagicMock()
    agent.run = slow_run
    mock_agent_cls.return_value = agent

    with pytest.raises(AiUnavailable):
        await AgentSummarizer("openai:gpt-4o-mini", timeout=0.05).summarize(CONTENT)


@pytest.mark.asyncio
@patch("src.enrichment.summarizer.Agent")
async def test_agent_garbage_output_is_ai_unavailable(mock_agent_cls):
    agent = MagicMock()
    agent.run = AsyncMock(return_value=_mock_agent_result("Acme is a company. It does payments."))
    mock_agent_cls.return_value = agent

    with pytest.raises(AiUnavailable):
        await AgentSummarizer("openai:gpt-4o-mini").summarize(CONTENT)
