"""litellm-backed provider with gateway-aware model resolution."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, MutableMapping, Optional, Sequence
from uuid import uuid4

import litellm

from relaybot.core.providers.base import LLMProvider, LLMResponse, MessageInput, ToolCallRequest
from relaybot.core.providers.environment import configure_litellm, provision_environment
from relaybot.core.providers.error_mapping import classify_invocation_error
from relaybot.core.providers.errors import InvocationError
from relaybot.core.providers.messages import (
    content_to_text,
    parse_tool_definitions,
    to_wire_message,
)
from relaybot.core.providers.registry import ProviderSpec, find_by_model, find_gateway
from relaybot.core.providers.resolution import apply_model_overrides, resolve_model
from relaybot.utils.json_utils import safe_parse_json
from relaybot.utils.log import get_logger

logger = get_logger()

DEFAULT_MODEL = "anthropic/claude-sonnet-4-5"

# litellm routes that post to an OpenAI-style /chat/completions endpoint and
# merge ``extra_body`` into the JSON body. Other routes (Anthropic /v1/messages,
# Gemini, Bedrock) forward ``extra_body`` as a literal field the API rejects.
_OPENAI_COMPATIBLE_ROUTES = frozenset(
    {
        "openai",
        "hosted_vllm",
        "openrouter",
        "dashscope",
        "deepseek",
        "zai",
        "moonshot",
        "minimax",
        "groq",
    }
)


def _normalize_tool_args(raw_args: Any) -> Dict[str, Any]:
    """Parse tool-call arguments into a dict, keeping unparseable input under ``raw``."""
    if isinstance(raw_args, dict):
        return raw_args
    text = raw_args if isinstance(raw_args, str) else ("" if raw_args is None else str(raw_args))
    parsed = safe_parse_json(text, log_error=False)
    if isinstance(parsed, dict):
        return parsed
    preview = text[:200]
    logger.debug(
        "[litellm_provider] Tool arguments are not a JSON object; keeping raw text",
        extra={"preview": preview},
    )
    return {"raw": text}


def _is_openai_compatible_route(model: str) -> bool:
    try:
        _, route, _, _ = litellm.get_llm_provider(model)
    except (litellm.BadRequestError, ValueError):
        logger.debug(
            "[litellm_provider] litellm cannot route model; skipping extra_body tools",
            extra={"model": model},
        )
        return False
    return route in _OPENAI_COMPATIBLE_ROUTES


def _usage_to_dict(usage: Any) -> Dict[str, Any]:
    if usage is None:
        return {}
    if isinstance(usage, dict):
        return dict(usage)
    dump = getattr(usage, "model_dump", None)
    if callable(dump):
        data = dump()
        return dict(data) if isinstance(data, dict) else {}
    try:
        return {key: value for key, value in vars(usage).items() if not key.startswith("_")}
    except TypeError:
        return {}


def _reasoning_from_message(message: Any) -> Optional[str]:
    reasoning = getattr(message, "reasoning_content", None)
    if isinstance(reasoning, str) and reasoning:
        return reasoning
    thinking = getattr(message, "thinking", None)
    if isinstance(thinking, str) and thinking:
        return thinking
    return None


def parse_completion_response(response: Any) -> LLMResponse:
    """Normalize a litellm ``ModelResponse`` (or lookalike) into ``LLMResponse``."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        logger.warning("[litellm_provider] Completion returned no choices")
        return LLMResponse()

    choice = choices[0]
    message = getattr(choice, "message", None)

    tool_calls: List[ToolCallRequest] = []
    for call in getattr(message, "tool_calls", None) or []:
        function = getattr(call, "function", None)
        tool_calls.append(
            ToolCallRequest(
                id=getattr(call, "id", None) or str(uuid4()),
                name=getattr(function, "name", None) or "",
                arguments=_normalize_tool_args(getattr(function, "arguments", None)),
            )
        )

    finish_reason = getattr(choice, "finish_reason", None)
    return LLMResponse(
        content=content_to_text(getattr(message, "content", None)),
        tool_calls=tool_calls,
        finish_reason=str(finish_reason) if finish_reason else "stop",
        usage=_usage_to_dict(getattr(response, "usage", None)),
        reasoning_content=_reasoning_from_message(message),
    )


class LiteLLMProvider(LLMProvider):
    """Provider that routes every model through ``litellm.acompletion``.

    The gateway (OpenRouter, AiHubMix, a local vLLM server, ...) is chosen once
    at construction from the explicit provider name, the key prefix or the base
    URL. Model ids are rewritten per call; when the rewritten id is rejected the
    call is retried once with the id exactly as requested.
    """

    def __init__(
        self,
        api_key: str = "",
        api_base: Optional[str] = None,
        default_model: str = DEFAULT_MODEL,
        extra_headers: Optional[Dict[str, str]] = None,
        provider_name: Optional[str] = None,
        *,
        request_timeout: Optional[float] = None,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base
        self.default_model = default_model
        self.extra_headers: Dict[str, str] = dict(extra_headers or {})
        self.request_timeout = request_timeout
        self.gateway: Optional[ProviderSpec] = find_gateway(
            provider_name, api_key or None, api_base
        )

        if api_key:
            provision_environment(
                self.gateway or find_by_model(default_model),
                api_key=api_key,
                api_base=api_base,
                overwrite_credential=self.gateway is not None,
                environ=environ,
            )

        configure_litellm()

        logger.debug(
            "[litellm_provider] Provider initialized",
            extra={
                "default_model": default_model,
                "gateway": self.gateway.name if self.gateway else None,
                "api_base": api_base,
                "has_api_key": bool(api_key),
            },
        )

    def get_default_model(self) -> str:
        return self.default_model

    def resolve_model(self, model: str) -> str:
        return resolve_model(model, self.gateway)

    def effective_api_base(self, model: str) -> Optional[str]:
        """Explicit base URL, then the gateway default, then the vendor default."""
        if self.api_base:
            return self.api_base
        if self.gateway and self.gateway.default_api_base:
            return self.gateway.default_api_base
        spec = find_by_model(model)
        if spec and spec.default_api_base:
            return spec.default_api_base
        return None

    def _build_request_kwargs(
        self,
        selected_model: str,
        max_tokens: int,
        temperature: float,
        tools: Optional[Sequence[Dict[str, Any]]],
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"max_tokens": max_tokens, "temperature": temperature}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        api_base = self.effective_api_base(selected_model)
        if api_base:
            kwargs["api_base"] = api_base
        if self.extra_headers:
            kwargs["extra_headers"] = dict(self.extra_headers)
        if self.request_timeout and self.request_timeout > 0:
            kwargs["timeout"] = self.request_timeout

        if tools:
            native_tools = parse_tool_definitions(list(tools))
            if native_tools:
                kwargs["tools"] = native_tools
                kwargs["tool_choice"] = "auto"
        return kwargs

    def _with_tool_copy(
        self,
        model: str,
        kwargs: Dict[str, Any],
        tools: Optional[Sequence[Dict[str, Any]]],
    ) -> Dict[str, Any]:
        """Repeat the raw tool list in ``extra_body`` for OpenAI-compatible routes.

        Workaround for litellm adapters that drop the structured ``tools``
        argument (see ``configure_litellm``). Remove once the native field is
        delivered reliably.
        """
        if not tools or not _is_openai_compatible_route(model):
            return kwargs
        return {**kwargs, "extra_body": {"tools": list(tools), "tool_choice": "auto"}}

    async def _complete(
        self, model: str, messages: List[Dict[str, Any]], kwargs: Dict[str, Any]
    ) -> Any:
        return await litellm.acompletion(model=model, messages=messages, **kwargs)

    async def chat(
        self,
        messages: Sequence[MessageInput],
        tools: Optional[Sequence[Dict[str, Any]]] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        selected_model = model or self.default_model
        resolved_model = self.resolve_model(selected_model)
        effective_temperature = apply_model_overrides(resolved_model, temperature)
        wire_messages = [to_wire_message(message) for message in messages]
        kwargs = self._build_request_kwargs(
            selected_model, max_tokens, effective_temperature, tools
        )

        logger.debug(
            "[litellm_provider] Preparing request",
            extra={
                "model": selected_model,
                "resolved_model": resolved_model,
                "temperature": effective_temperature,
                "max_tokens": max_tokens,
                "num_messages": len(wire_messages),
                "num_tools": len(tools or []),
                "api_base": kwargs.get("api_base"),
            },
        )

        start_time = time.time()
        try:
            response = await self._complete(
                resolved_model, wire_messages, self._with_tool_copy(resolved_model, kwargs, tools)
            )
        except asyncio.CancelledError:
            raise
        except Exception as primary_exc:
            if resolved_model == selected_model:
                error_code, error_message = classify_invocation_error(primary_exc)
                logger.error(
                    "[litellm_provider] Completion failed",
                    extra={"model": resolved_model, "error_code": error_code},
                )
                raise InvocationError(
                    error_code,
                    f"Completion call failed: {error_message}",
                    model=resolved_model,
                    primary_error=str(primary_exc),
                ) from primary_exc

            logger.warning(
                "[litellm_provider] Completion failed; retrying with requested model id",
                extra={
                    "resolved_model": resolved_model,
                    "model": selected_model,
                    "error": str(primary_exc),
                },
            )
            try:
                response = await self._complete(
                    selected_model,
                    wire_messages,
                    self._with_tool_copy(selected_model, kwargs, tools),
                )
            except asyncio.CancelledError:
                raise
            except Exception as fallback_exc:
                error_code, _ = classify_invocation_error(fallback_exc)
                logger.error(
                    "[litellm_provider] Completion fallback failed",
                    extra={
                        "resolved_model": resolved_model,
                        "model": selected_model,
                        "error_code": error_code,
                    },
                )
                raise InvocationError(
                    error_code,
                    "Completion call failed: "
                    f"primary={primary_exc} ({resolved_model}); "
                    f"fallback={fallback_exc} ({selected_model})",
                    model=resolved_model,
                    primary_error=str(primary_exc),
                    fallback_model=selected_model,
                    fallback_error=str(fallback_exc),
                ) from fallback_exc

        result = parse_completion_response(response)
        logger.info(
            "[litellm_provider] Response received",
            extra={
                "model": resolved_model,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                "finish_reason": result.finish_reason,
                "tool_calls": len(result.tool_calls),
            },
        )
        return result
