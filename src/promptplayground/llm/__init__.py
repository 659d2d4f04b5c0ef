"""Completion provider abstractions, backend variants and adapters."""

from .anthropic_adapter import AnthropicClientAdapter
from .azure_adapter import AzureOpenAIClientAdapter
from .base import CompletionProvider
from .config import (
    AnthropicBackend,
    AzureBackend,
    BackendConfig,
    ErnieBackend,
    OpenAIBackend,
    ProviderConfiguration,
    backend_config_from_mapping,
    backend_from_fields,
)
from .ernie_adapter import ErnieBotClientAdapter, HttpErnieTransport
from .errors import (
    ConfigurationInvalidError,
    LLMError,
    NoBackendConfiguredError,
    ProviderError,
    ProviderSDKMissingError,
)
from .factory import select_provider
from .openai_adapter import OpenAIClientAdapter
from .types import CompletionResult, GenerationParameters

__all__ = [
    "AnthropicBackend",
    "AnthropicClientAdapter",
    "AzureBackend",
    "AzureOpenAIClientAdapter",
    "BackendConfig",
    "CompletionProvider",
    "CompletionResult",
    "ConfigurationInvalidError",
    "ErnieBackend",
    "ErnieBotClientAdapter",
    "GenerationParameters",
    "HttpErnieTransport",
    "LLMError",
    "NoBackendConfiguredError",
    "OpenAIBackend",
    "OpenAIClientAdapter",
    "ProviderConfiguration",
    "ProviderError",
    "ProviderSDKMissingError",
    "backend_config_from_mapping",
    "backend_from_fields",
    "select_provider",
]
