"""Detect and correct replies that wrongly claim no tools are available.

Some models answer "I can't browse the web" or "I have no tools" even when
tools are registered. ``TurnGuard`` asks the same provider to classify such a
reply and, when it does claim that, lets the agent loop inject a correction
and retry the turn.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from relaybot.core.providers.base import LLMProvider
from relaybot.utils.json_utils import extract_json_object
from relaybot.utils.log import get_logger

logger = get_logger()

NO_TOOLS = "(none)"

_CLASSIFIER_PROMPT = (
    "You are a strict classifier. Return ONLY one JSON object with boolean key "
    "claims_no_tools. If the assistant response explicitly or implicitly claims that "
    "tools are unavailable in the current runtime, set claims_no_tools=true. "
    "Otherwise false. Do not output markdown or extra text."
)


class TurnGuard:
    def __init__(
        self,
        provider: LLMProvider,
        model: str,
        tools_text: str,
        max_iterations: int,
    ) -> None:
        self.provider = provider
        self.model = model
        self.tools_text = tools_text
        self.max_iterations = max_iterations

    @property
    def has_tools(self) -> bool:
        return self.tools_text != NO_TOOLS

    def correction_message(self) -> Dict[str, Any]:
        return {
            "role": "system",
            "content": (
                "Correction: tools are available in this runtime. "
                f"Available tools: {self.tools_text}. "
                "Do not claim tools are unavailable; call the appropriate tool directly."
            ),
        }

    def tools_available_response(self) -> str:
        """User-facing answer listing the registered tools."""
        if not self.has_tools:
            return "No tools are registered in the current runtime."
        items = "\n- ".join(self.tools_text.split(", "))
        return (
            f"Tools available in the current runtime:\n- {items}\n"
            "For web access, command execution, file operations or scheduled tasks, "
            "just state the goal."
        )

    async def should_retry_after_false_no_tools_claim(
        self, content: Optional[str], iteration: int
    ) -> bool:
        if iteration >= self.max_iterations or not self.has_tools:
            return False
        if content is None:
            return False
        return await self._response_claims_no_tools(content)

    async def _response_claims_no_tools(self, content: str) -> bool:
        if not content.strip() or not self.has_tools:
            return False

        messages = [
            {"role": "system", "content": _CLASSIFIER_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Runtime tools are available: {self.tools_text}.\n"
                    f"Assistant response:\n{content}"
                ),
            },
        ]
        try:
            response = await self.provider.chat(
                messages, tools=None, model=self.model, max_tokens=120, temperature=0.0
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug(
                "[turn_guard] Classifier call failed; assuming no claim",
                extra={"error_code": getattr(exc, "error_code", type(exc).__name__)},
            )
            return False

        if not response.content:
            return False
        verdict = extract_json_object(response.content)
        if verdict is None:
            logger.debug(
                "[turn_guard] Classifier reply had no JSON object",
                extra={"preview": response.content[:200]},
            )
            return False
        claims = verdict.get("claims_no_tools")
        return claims if isinstance(claims, bool) else False
