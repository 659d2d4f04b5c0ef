from __future__ import annotations

from typing import Any, Callable
import logging

from .config import AzureBackend, OpenAIBackend
from .errors import ProviderSDKMissingError
from .openai_adapter import OpenAIClientAdapter
from .types import GenerationParameters


class AzureOpenAIClientAdapter(OpenAIClientAdapter):
    """Azure OpenAI chat deployments; the deployment name stands in for the model."""

    provider_name = "azure"

    def __init__(
        self,
        backend: AzureBackend,
        parameters: GenerationParameters,
        client: Any | None = None,
        client_factory: Callable[..., Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(
            OpenAIBackend(model=backend.deployment, api_key=backend.secret),
            parameters,
            client=client,
            client_factory=client_factory or self._default_azure_client_factory,
            logger=logger,
        )
        self._azure = backend

    def _build_client(self) -> Any:
        self._client = self._client_factory(
            azure_endpoint=self._azure.endpoint,
            azure_deployment=self._azure.deployment,
            api_key=self._azure.secret,
            api_version=self._azure.api_version,
        )
        return self._client

    @staticmethod
    def _default_azure_client_factory(**kwargs: Any) -> Any:
        try:
            from openai import AsyncAzureOpenAI
        except ImportError as exc:
            raise ProviderSDKMissingError(
                "openai SDK is required to use AzureOpenAIClientAdapter."
            ) from exc
        return AsyncAzureOpenAI(**kwargs)
