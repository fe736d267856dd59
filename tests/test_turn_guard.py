"""Tests for the false "no tools available" classifier."""

from __future__ import annotations

from typing import Any, List, Optional

import pytest

from relaybot.agent.turn_guard import TurnGuard
from relaybot.core.providers.base import LLMProvider, LLMResponse
from relaybot.core.providers.errors import InvocationError
from relaybot.utils.json_utils import extract_json_object


class ScriptedProvider(LLMProvider):
    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.calls: List[dict] = []

    async def chat(self, messages, tools=None, model=None, max_tokens=4096, temperature=0.7):
        self.calls.append(
            {
                "messages": list(messages),
                "tools": tools,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    def get_default_model(self) -> str:
        return "scripted"


def _guard(outcome: Any, tools_text: str = "web_search, exec", max_iterations: int = 5):
    provider = ScriptedProvider(outcome)
    return TurnGuard(provider, "gpt-4o", tools_text, max_iterations), provider


@pytest.mark.asyncio
async def test_classifier_detects_claim() -> None:
    guard, provider = _guard(LLMResponse(content='{"claims_no_tools": true}'))

    assert await guard.should_retry_after_false_no_tools_claim("I cannot browse.", 0) is True

    call = provider.calls[0]
    assert call["tools"] is None
    assert call["model"] == "gpt-4o"
    assert call["max_tokens"] == 120
    assert call["temperature"] == 0.0
    assert call["messages"][0]["role"] == "system"
    assert "web_search, exec" in call["messages"][1]["content"]
    assert "I cannot browse." in call["messages"][1]["content"]


@pytest.mark.asyncio
async def test_classifier_reads_fenced_json() -> None:
    guard, _ = _guard(LLMResponse(content='```json\n{"claims_no_tools": false}\n```'))
    assert await guard.should_retry_after_false_no_tools_claim("Here you go.", 1) is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "outcome",
    [
        InvocationError("api_error", "down", model="gpt-4o", primary_error="down"),
        RuntimeError("unexpected"),
        LLMResponse(content=None),
        LLMResponse(content="yes, it claims that"),
        LLMResponse(content='{"claims_no_tools": "true"}'),
    ],
)
async def test_classifier_failures_mean_no_claim(outcome: Any) -> None:
    guard, _ = _guard(outcome)
    assert await guard.should_retry_after_false_no_tools_claim("No tools here.", 0) is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content, iteration, tools_text",
    [
        ("No tools.", 5, "web_search"),
        ("No tools.", 0, "(none)"),
        (None, 0, "web_search"),
        ("   ", 0, "web_search"),
    ],
)
async def test_classifier_is_skipped(
    content: Optional[str], iteration: int, tools_text: str
) -> None:
    guard, provider = _guard(LLMResponse(content='{"claims_no_tools": true}'), tools_text)
    assert await guard.should_retry_after_false_no_tools_claim(content, iteration) is False
    assert provider.calls == []


def test_correction_and_listing_messages() -> None:
    guard, _ = _guard(LLMResponse())
    correction = guard.correction_message()
    assert correction["role"] == "system"
    assert "web_search, exec" in correction["content"]
    assert "- web_search\n- exec" in guard.tools_available_response()

    empty, _ = _guard(LLMResponse(), tools_text="(none)")
    assert empty.tools_available_response() == "No tools are registered in the current runtime."


def test_extract_json_object_parses_plain_json() -> None:
    assert extract_json_object('{"claims_no_tools":true}') == {"claims_no_tools": True}


def test_extract_json_object_parses_embedded_json() -> None:
    raw = 'Sure: {"a": "brace } inside", "b": {"c": 1}} trailing'
    assert extract_json_object(raw) == {"a": "brace } inside", "b": {"c": 1}}
    assert extract_json_object("[1, 2]") is None
    assert extract_json_object("no json at all") is None
