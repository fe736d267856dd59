"""JSON helper utilities for Relaybot."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from relaybot.utils.log import get_logger


logger = get_logger()

_DECODER = json.JSONDecoder()


def safe_parse_json(json_text: Optional[str], log_error: bool = True) -> Optional[Any]:
    """Best-effort JSON.parse wrapper that returns None on failure."""
    if not json_text:
        return None
    try:
        return json.loads(json_text)
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        if log_error:
            logger.debug(
                "[json_utils] Failed to parse JSON: %s: %s",
                type(exc).__name__,
                exc,
                extra={"length": len(json_text)},
            )
        return None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first JSON object found in ``text``.

    Model replies often wrap the object in a markdown fence or surround it
    with prose, so every ``{`` is tried as a starting point until one decodes
    to a dict.
    """
    parsed = safe_parse_json(text.strip(), log_error=False)
    if isinstance(parsed, dict):
        return parsed

    start = text.find("{")
    while start != -1:
        try:
            candidate, _end = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            candidate = None
        if isinstance(candidate, dict):
            return candidate
        start = text.find("{", start + 1)
    return None
