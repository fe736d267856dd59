"""Shared abstractions for provider clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from relaybot.core.providers.messages import ConversationMessage

MessageInput = Union[ConversationMessage, Dict[str, Any]]


@dataclass
class ToolCallRequest:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResponse:
    """Normalized provider response payload."""

    content: Optional[str] = None
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: Dict[str, Any] = field(default_factory=dict)
    reasoning_content: Optional[str] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LLMProvider(ABC):
    """Abstract base for chat-completion providers."""

    @abstractmethod
    async def chat(
        self,
        messages: Sequence[MessageInput],
        tools: Optional[Sequence[Dict[str, Any]]] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Send a conversation and return the normalized reply.

        Raises ``InvocationError`` when the backend call fails.
        """

    @abstractmethod
    def get_default_model(self) -> str:
        """Model used when ``chat`` is called without one."""
