"""Provider construction from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, MutableMapping, Optional

from relaybot.core.providers.base import LLMProvider, LLMResponse, ToolCallRequest
from relaybot.core.providers.errors import ConfigurationError, InvocationError, ProviderError
from relaybot.core.providers.litellm_provider import LiteLLMProvider
from relaybot.utils.log import get_logger

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from relaybot.core.config import Config

logger = get_logger()


def build_provider(
    config: "Config",
    model: Optional[str] = None,
    environ: Optional[MutableMapping[str, str]] = None,
) -> LiteLLMProvider:
    """Construct the session provider for ``model`` (default: the configured model).

    Raises ``ConfigurationError`` when no credential resolves. Bedrock models
    are exempt because they authenticate through the ambient AWS chain.
    """
    defaults = config.agents.defaults
    model = model or defaults.model
    api_key = config.get_api_key(model, environ=environ)
    if not api_key and not model.startswith("bedrock/"):
        logger.warning(
            "[providers] No API key configured",
            extra={"model": model},
        )
        raise ConfigurationError(
            f"No API key configured for model '{model}'. "
            "Set one under providers.<name>.api_key in the config file."
        )

    provider_config = config.get_provider(model)
    return LiteLLMProvider(
        api_key=api_key or "",
        api_base=config.get_api_base(model),
        default_model=model,
        extra_headers=provider_config.extra_headers if provider_config else None,
        provider_name=defaults.provider or config.get_provider_name(model),
        request_timeout=defaults.request_timeout,
        environ=environ,
    )


__all__ = [
    "ConfigurationError",
    "InvocationError",
    "LLMProvider",
    "LLMResponse",
    "LiteLLMProvider",
    "ProviderError",
    "ToolCallRequest",
    "build_provider",
]
