from __future__ import annotations

from typing import Optional


class LLMError(Exception):
    """Base error for provider configuration and completion failures."""


class NoBackendConfiguredError(LLMError):
    """Raised when no backend variant is marked active."""

    def __init__(self, message: str = "No completion backend is configured.") -> None:
        super().__init__(message)


class ConfigurationInvalidError(LLMError):
    """Raised when a required backend field is missing or blank."""

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message or f"Backend setting '{field}' must be a non-empty string.")


class ProviderError(LLMError):
    """Raised when a completion call fails."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ProviderSDKMissingError(ProviderError):
    """Raised when the provider SDK is not installed."""
