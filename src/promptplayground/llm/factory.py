from __future__ import annotations

import logging

from .anthropic_adapter import AnthropicClientAdapter
from .azure_adapter import AzureOpenAIClientAdapter
from .base import CompletionProvider
from .config import (
    AnthropicBackend,
    AzureBackend,
    ErnieBackend,
    OpenAIBackend,
    ProviderConfiguration,
)
from .ernie_adapter import ErnieBotClientAdapter
from .errors import ConfigurationInvalidError, NoBackendConfiguredError
from .openai_adapter import OpenAIClientAdapter


def select_provider(
    config: ProviderConfiguration,
    *,
    logger: logging.Logger | None = None,
) -> CompletionProvider:
    """Build the completion provider for the active backend.

    Validates the backend's required fields in declaration order and fails
    on the first blank one. Clients are created lazily, so no network I/O
    happens here.
    """

    backend = config.backend
    if backend is None:
        raise NoBackendConfiguredError()

    backend.validate()
    params = config.generation

    if isinstance(backend, AzureBackend):
        return AzureOpenAIClientAdapter(backend, params, logger=logger)
    if isinstance(backend, ErnieBackend):
        return ErnieBotClientAdapter(backend, params, logger=logger)
    if isinstance(backend, OpenAIBackend):
        return OpenAIClientAdapter(backend, params, logger=logger)
    if isinstance(backend, AnthropicBackend):
        return AnthropicClientAdapter(backend, params, logger=logger)
    raise ConfigurationInvalidError(
        "backend", f"Unsupported backend type '{type(backend).__name__}'."
    )
