"""Model id rewriting and per-model parameter overrides."""

from __future__ import annotations

from typing import Optional

from relaybot.core.providers.registry import ProviderSpec, find_by_model


def resolve_model(model: str, gateway: Optional[ProviderSpec] = None) -> str:
    """Return the litellm model id for ``model``.

    Behind a gateway the gateway's prefix is applied (after dropping any vendor
    prefix when the gateway asks for it). Otherwise the keyword-matched vendor's
    prefix is applied unless the id already carries one of its skip prefixes.
    Resolving an already resolved id returns it unchanged.
    """
    if gateway is not None:
        normalized = model.rsplit("/", 1)[-1] if gateway.strip_model_prefix else model
        prefix = gateway.litellm_prefix
        if not prefix or normalized.startswith(f"{prefix}/"):
            return normalized
        return f"{prefix}/{normalized}"

    spec = find_by_model(model)
    if spec and spec.litellm_prefix and not model.startswith(spec.skip_prefixes):
        return f"{spec.litellm_prefix}/{model}"
    return model


def apply_model_overrides(resolved_model: str, temperature: float) -> float:
    """Apply the first matching vendor override to ``temperature``."""
    spec = find_by_model(resolved_model)
    if spec is None:
        return temperature
    model_lower = resolved_model.lower()
    for rule in spec.model_overrides:
        if rule.pattern.lower() in model_lower:
            return rule.temperature
    return temperature
