from __future__ import annotations

from typing import Any, Callable
import logging

from promptplayground.cancellation import CancellationToken, OperationCancelledError
from promptplayground.observability import log_completion_success

from .base import CompletionProvider
from .config import OpenAIBackend
from .errors import ProviderError, ProviderSDKMissingError
from .types import CompletionResult, GenerationParameters


class OpenAIClientAdapter(CompletionProvider):
    """
    Adapter for OpenAI-compatible chat completion endpoints.

    Supports:
    - base_url: custom endpoint for local or self-hosted models
      (e.g. http://127.0.0.1:11434/v1)
    - Standard OpenAI SDK interface
    """

    provider_name = "openai"

    def __init__(
        self,
        backend: OpenAIBackend,
        parameters: GenerationParameters,
        client: Any | None = None,
        client_factory: Callable[..., Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(parameters)
        self._backend = backend
        self._client = client
        self._client_factory = client_factory or self._default_client_factory
        self._logger = logger or logging.getLogger(f"promptplayground.llm.{self.provider_name}")

    @property
    def model(self) -> str:
        return self._backend.model

    async def complete(
        self,
        prompt: str,
        params: GenerationParameters,
        cancellation: CancellationToken,
    ) -> CompletionResult:
        client = self._client or self._build_client()
        request = build_chat_request(self.model, prompt, params)
        try:
            response = await cancellation.guard(client.chat.completions.create(**request))
        except (ProviderError, OperationCancelledError):
            raise
        except Exception as exc:
            raise ProviderError(
                f"{self.provider_name} completion request failed: {exc}", cause=exc
            ) from exc

        result = parse_chat_response(response, fallback_model=self.model)
        log_completion_success(self._logger, provider=self.provider_name, result=result)
        return result

    def _build_client(self) -> Any:
        kwargs = {"api_key": self._backend.api_key}
        if self._backend.base_url:
            kwargs["base_url"] = self._backend.base_url

        self._client = self._client_factory(**kwargs)
        return self._client

    @staticmethod
    def _default_client_factory(**kwargs: Any) -> Any:
        try:
            from openai import AsyncOpenAI
        except ImportError as exc:
            raise ProviderSDKMissingError(
                "openai SDK is required to use OpenAIClientAdapter."
            ) from exc
        return AsyncOpenAI(**kwargs)


def build_chat_request(model: str, prompt: str, params: GenerationParameters) -> dict[str, Any]:
    request: dict[str, Any] = {
        "model": model,
        "max_tokens": params.max_tokens,
        "temperature": params.temperature,
        "top_p": params.top_p,
        "presence_penalty": params.presence_penalty,
        "frequency_penalty": params.frequency_penalty,
        "messages": [{"role": "user", "content": prompt}],
    }
    if params.stop_sequences:
        request["stop"] = list(params.stop_sequences)
    return request


def parse_chat_response(response: Any, *, fallback_model: str) -> CompletionResult:
    choices = getattr(response, "choices", None)
    if not choices:
        raise ProviderError("Chat completion response contained no choices.")

    choice = choices[0]
    message = getattr(choice, "message", None)
    text = getattr(message, "content", None) if message is not None else None
    usage = getattr(response, "usage", None)
    model = getattr(response, "model", None)

    return CompletionResult(
        text=text or "",
        model=model if isinstance(model, str) and model.strip() else fallback_model,
        input_tokens=getattr(usage, "prompt_tokens", None) if usage else None,
        output_tokens=getattr(usage, "completion_tokens", None) if usage else None,
        finish_reason=getattr(choice, "finish_reason", None),
    )
