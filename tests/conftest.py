"""Shared fixtures for provider tests."""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest


def make_completion(
    content: Any = "ok",
    *,
    tool_calls: Optional[List[Any]] = None,
    finish_reason: Optional[str] = "stop",
    usage: Any = None,
    reasoning_content: Optional[str] = None,
) -> SimpleNamespace:
    """Build a litellm-like completion response with a single choice."""
    message = SimpleNamespace(
        content=content,
        tool_calls=tool_calls,
        reasoning_content=reasoning_content,
    )
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason=finish_reason)],
        usage=usage,
    )


def make_tool_call(call_id: Optional[str], name: str, arguments: Any) -> SimpleNamespace:
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


class CompletionRecorder:
    """Stand-in for ``litellm.acompletion`` that records calls and replays outcomes."""

    def __init__(self, outcomes: List[Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    @property
    def models(self) -> List[str]:
        return [call["model"] for call in self.calls]

    async def __call__(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def env() -> Dict[str, str]:
    """Isolated environment mapping for provisioning tests."""
    return {}


@pytest.fixture
def patch_completion(monkeypatch):
    """Replace ``litellm.acompletion`` with a recorder returning ``outcomes`` in order."""

    def _install(*outcomes: Any) -> CompletionRecorder:
        recorder = CompletionRecorder(list(outcomes))
        monkeypatch.setattr("relaybot.core.providers.litellm_provider.litellm.acompletion", recorder)
        return recorder

    return _install
