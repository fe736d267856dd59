"""Configuration management for Relaybot.

Credentials and endpoints are configured per provider under ``providers``;
the default model and call parameters live under ``agents.defaults``. The
file is read from ``~/.relaybot/config.json`` unless ``RELAYBOT_CONFIG``
points elsewhere.
"""

import json
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field

from relaybot.core.providers.registry import PROVIDERS, ProviderSpec, find_by_model, find_by_name
from relaybot.utils.log import get_logger


logger = get_logger()


class ProviderConfig(BaseModel):
    """Credential and endpoint for one provider."""

    api_key: str = ""
    api_base: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class ProvidersConfig(BaseModel):
    """One entry per catalog provider."""

    openrouter: ProviderConfig = Field(default_factory=ProviderConfig)
    aihubmix: ProviderConfig = Field(default_factory=ProviderConfig)
    anthropic: ProviderConfig = Field(default_factory=ProviderConfig)
    openai: ProviderConfig = Field(default_factory=ProviderConfig)
    deepseek: ProviderConfig = Field(default_factory=ProviderConfig)
    gemini: ProviderConfig = Field(default_factory=ProviderConfig)
    zhipu: ProviderConfig = Field(default_factory=ProviderConfig)
    dashscope: ProviderConfig = Field(default_factory=ProviderConfig)
    moonshot: ProviderConfig = Field(default_factory=ProviderConfig)
    minimax: ProviderConfig = Field(default_factory=ProviderConfig)
    vllm: ProviderConfig = Field(default_factory=ProviderConfig)
    groq: ProviderConfig = Field(default_factory=ProviderConfig)


class AgentDefaults(BaseModel):
    """Default model and sampling parameters."""

    model: str = "anthropic/claude-sonnet-4-5"
    # Forces a gateway or local server ("openrouter", "vllm", ...) regardless of key/base detection.
    provider: Optional[str] = None
    max_tokens: int = 8192
    temperature: float = 0.7
    max_tool_iterations: int = 20
    request_timeout: Optional[float] = None


class AgentsConfig(BaseModel):
    defaults: AgentDefaults = Field(default_factory=AgentDefaults)


class Config(BaseModel):
    """Root configuration stored in ~/.relaybot/config.json"""

    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)

    def _provider_entry(self, spec: ProviderSpec) -> ProviderConfig:
        return getattr(self.providers, spec.name)

    def get_provider_name(self, model: Optional[str] = None) -> Optional[str]:
        """Name of the provider entry that serves ``model``.

        An explicit ``agents.defaults.provider`` wins. Otherwise the vendor
        matched by model keyword is used when it has a key, then the first
        configured gateway, then any configured provider.
        """
        explicit = self.agents.defaults.provider
        if explicit and find_by_name(explicit):
            return explicit

        model = model or self.agents.defaults.model
        spec = find_by_model(model)
        if spec and self._provider_entry(spec).api_key:
            return spec.name

        for candidate in PROVIDERS:
            if candidate.is_gateway and self._provider_entry(candidate).api_key:
                return candidate.name
        for candidate in PROVIDERS:
            if self._provider_entry(candidate).api_key:
                return candidate.name
        return None

    def get_provider(self, model: Optional[str] = None) -> Optional[ProviderConfig]:
        name = self.get_provider_name(model)
        return getattr(self.providers, name) if name else None

    def get_api_key(
        self, model: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
    ) -> Optional[str]:
        """Configured key for ``model``, else the matched provider's environment variable."""
        provider = self.get_provider(model)
        if provider and provider.api_key:
            return provider.api_key

        env = os.environ if environ is None else environ
        name = self.get_provider_name(model)
        spec = find_by_name(name) if name else find_by_model(model or self.agents.defaults.model)
        if spec and env.get(spec.env_key):
            return env[spec.env_key]
        return None

    def get_api_base(self, model: Optional[str] = None) -> Optional[str]:
        """Configured base URL for ``model``; gateways fall back to their default."""
        name = self.get_provider_name(model)
        if not name:
            return None
        provider: ProviderConfig = getattr(self.providers, name)
        if provider.api_base:
            return provider.api_base
        spec = find_by_name(name)
        if spec and spec.is_gateway and spec.default_api_base:
            return spec.default_api_base
        return None


def get_config_path() -> Path:
    override = os.getenv("RELAYBOT_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".relaybot" / "config.json"


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration, falling back to defaults when missing or invalid."""
    config_path = path or get_config_path()
    if not config_path.exists():
        logger.debug(
            "[config] Config not found; using defaults",
            extra={"path": str(config_path)},
        )
        return Config()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        config = Config(**data)
    except (
        json.JSONDecodeError,
        OSError,
        UnicodeDecodeError,
        ValueError,
        TypeError,
    ) as e:
        logger.warning(
            "Error loading config: %s: %s",
            type(e).__name__,
            e,
            extra={"path": str(config_path)},
        )
        return Config()
    logger.debug(
        "[config] Loaded configuration",
        extra={"path": str(config_path), "model": config.agents.defaults.model},
    )
    return config


def providers_status(config: Config) -> Dict[str, bool]:
    """Report which providers have a credential configured."""
    status: Dict[str, bool] = {}
    for spec in PROVIDERS:
        entry: ProviderConfig = getattr(config.providers, spec.name)
        # Local servers often run without a key; a base URL is enough.
        status[spec.name] = bool(entry.api_key or (spec.is_local and entry.api_base))
    return status
