"""Credential publishing for litellm's environment-based provider discovery.

litellm looks up several vendor credentials and endpoints (``ZHIPUAI_API_KEY``,
``MOONSHOT_API_BASE``, ...) in the process environment instead of taking them
as call arguments. ``provision_environment`` is the only place that writes
them, and ``configure_litellm`` is the only place that touches litellm's
module-level settings. Both run when a provider is constructed and are not
synchronized; construct providers during single-threaded startup.
"""

from __future__ import annotations

import os
from typing import MutableMapping, Optional

import litellm

from relaybot.core.providers.registry import ProviderSpec
from relaybot.utils.log import get_logger

logger = get_logger()


def _set_env_var(
    environ: MutableMapping[str, str], key: str, value: str, overwrite: bool
) -> bool:
    if not key or not value:
        return False
    if not overwrite and key in environ:
        return False
    environ[key] = value
    return True


def provision_environment(
    spec: Optional[ProviderSpec],
    *,
    api_key: str,
    api_base: Optional[str],
    overwrite_credential: bool,
    environ: Optional[MutableMapping[str, str]] = None,
) -> None:
    """Publish ``api_key`` and the spec's extra entries into ``environ``.

    The credential replaces an existing value only when ``overwrite_credential``
    is set (gateway sessions); vendor credentials never clobber what the
    operator already exported. Extra entries are never overwritten.
    """
    if spec is None:
        return
    target = os.environ if environ is None else environ

    if _set_env_var(target, spec.env_key, api_key, overwrite_credential):
        logger.debug(
            "[environment] Published provider credential",
            extra={"provider": spec.name, "env_key": spec.env_key},
        )

    effective_base = api_base or spec.default_api_base
    for extra in spec.env_extras:
        value = extra.value_template.replace("{api_key}", api_key).replace(
            "{api_base}", effective_base
        )
        if _set_env_var(target, extra.key, value, False):
            logger.debug(
                "[environment] Published provider setting",
                extra={"provider": spec.name, "env_key": extra.key},
            )


def configure_litellm() -> None:
    """Apply the process-wide litellm settings every provider relies on.

    ``drop_params`` makes litellm discard request parameters it believes the
    target model does not support instead of raising. That includes ``tools``:
    a model litellm does not list as function-calling capable gets its native
    tool list dropped, and only the ``extra_body`` copy sent on
    OpenAI-compatible routes still reaches the API.
    """
    litellm.suppress_debug_info = True
    litellm.drop_params = True
