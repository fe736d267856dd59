"""Provider error types."""

from __future__ import annotations

from typing import Optional


class ProviderError(Exception):
    """Provider exception with a stable error code."""

    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class ConfigurationError(ProviderError):
    """No usable credential for the requested model; raised before any network call."""

    def __init__(self, message: str) -> None:
        super().__init__("configuration_error", message)


class InvocationError(ProviderError):
    """The completion call failed, including the fallback attempt when one was made."""

    def __init__(
        self,
        error_code: str,
        message: str,
        *,
        model: str,
        primary_error: str,
        fallback_model: Optional[str] = None,
        fallback_error: Optional[str] = None,
    ) -> None:
        super().__init__(error_code, message)
        self.model = model
        self.primary_error = primary_error
        self.fallback_model = fallback_model
        self.fallback_error = fallback_error

    @property
    def attempted_fallback(self) -> bool:
        return self.fallback_model is not None
