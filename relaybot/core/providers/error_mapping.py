"""Classify completion-call exceptions into stable error codes."""

from __future__ import annotations

import asyncio

import litellm

_TIMEOUT_HINTS = ("timed out", "timeout")
_CONTEXT_HINTS = (
    "context",
    "prompt is too long",
    "input is too long",
    "exceeds the model's maximum context length",
)


def is_timeout_message(message: str) -> bool:
    """Return True when an error message describes timeout-like behavior."""
    lowered = message.lower()
    return any(hint in lowered for hint in _TIMEOUT_HINTS)


def _classify_bad_request(message: str) -> tuple[str, str]:
    lowered = message.lower()
    if any(hint in lowered for hint in _CONTEXT_HINTS):
        return "context_length_exceeded", f"Context length exceeded: {message}"
    if "content" in lowered and "policy" in lowered:
        return "content_policy_violation", f"Content policy violation: {message}"
    return "bad_request", f"Invalid request: {message}"


def classify_invocation_error(exc: BaseException) -> tuple[str, str]:
    """Map a litellm (or transport) exception to ``(error_code, message)``."""
    exc_msg = str(exc)

    if isinstance(exc, litellm.AuthenticationError):
        return "authentication_error", f"Authentication failed: {exc_msg}"
    if isinstance(exc, litellm.PermissionDeniedError):
        lowered = exc_msg.lower()
        if "balance" in lowered or "insufficient" in lowered:
            return "insufficient_balance", f"Insufficient balance: {exc_msg}"
        return "permission_denied", f"Permission denied: {exc_msg}"
    if isinstance(exc, litellm.NotFoundError):
        return "model_not_found", f"Model not found: {exc_msg}"
    if isinstance(exc, litellm.ContextWindowExceededError):
        return "context_length_exceeded", f"Context length exceeded: {exc_msg}"
    if isinstance(exc, litellm.ContentPolicyViolationError):
        return "content_policy_violation", f"Content policy violation: {exc_msg}"
    if isinstance(exc, litellm.BadRequestError):
        return _classify_bad_request(exc_msg)
    if isinstance(exc, litellm.RateLimitError):
        return "rate_limit", f"Rate limit exceeded: {exc_msg}"
    if isinstance(exc, (litellm.Timeout, asyncio.TimeoutError)):
        return "timeout", f"Request timed out: {exc_msg}"
    if isinstance(exc, litellm.ServiceUnavailableError):
        return "service_unavailable", f"Service unavailable: {exc_msg}"
    if isinstance(exc, (litellm.APIConnectionError, ConnectionError)):
        if is_timeout_message(exc_msg):
            return "timeout", f"Request timed out: {exc_msg}"
        return "connection_error", f"Connection error: {exc_msg}"
    if isinstance(exc, litellm.APIError):
        status = getattr(exc, "status_code", None)
        return "api_error", f"API error ({status}): {exc_msg}"

    return "unknown_error", f"Unexpected error ({type(exc).__name__}): {exc_msg}"
