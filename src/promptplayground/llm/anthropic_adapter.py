from __future__ import annotations

from typing import Any, Callable
import logging

from promptplayground.cancellation import CancellationToken, OperationCancelledError
from promptplayground.observability import log_completion_success

from .base import CompletionProvider
from .config import AnthropicBackend
from .errors import ProviderError, ProviderSDKMissingError
from .types import CompletionResult, GenerationParameters


class AnthropicClientAdapter(CompletionProvider):
    def __init__(
        self,
        backend: AnthropicBackend,
        parameters: GenerationParameters,
        client: Any | None = None,
        client_factory: Callable[..., Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(parameters)
        self._backend = backend
        self._client = client
        self._client_factory = client_factory or self._default_client_factory
        self._logger = logger or logging.getLogger("promptplayground.llm.anthropic")

    async def complete(
        self,
        prompt: str,
        params: GenerationParameters,
        cancellation: CancellationToken,
    ) -> CompletionResult:
        client = self._client or self._build_client()
        request: dict[str, Any] = {
            "model": self._backend.model,
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
            "messages": [{"role": "user", "content": prompt}],
        }
        if params.stop_sequences:
            request["stop_sequences"] = list(params.stop_sequences)

        try:
            response = await cancellation.guard(client.messages.create(**request))
        except (ProviderError, OperationCancelledError):
            raise
        except Exception as exc:
            raise ProviderError(f"anthropic completion request failed: {exc}", cause=exc) from exc

        usage = getattr(response, "usage", None)
        result = CompletionResult(
            text=self._extract_text(response),
            model=self._backend.model,
            input_tokens=getattr(usage, "input_tokens", None),
            output_tokens=getattr(usage, "output_tokens", None),
            finish_reason=getattr(response, "stop_reason", None),
        )
        log_completion_success(self._logger, provider="anthropic", result=result)
        return result

    def _build_client(self) -> Any:
        self._client = self._client_factory(api_key=self._backend.api_key)
        return self._client

    @staticmethod
    def _default_client_factory(*, api_key: str) -> Any:
        try:
            from anthropic import AsyncAnthropic
        except ImportError as exc:
            raise ProviderSDKMissingError(
                "anthropic SDK is required to use AnthropicClientAdapter."
            ) from exc
        return AsyncAnthropic(api_key=api_key)

    @staticmethod
    def _extract_text(response: Any) -> str:
        content = getattr(response, "content", None)
        if not content:
            return ""

        parts: list[str] = []
        for block in content:
            if isinstance(block, dict):
                if block.get("type") == "text" and isinstance(block.get("text"), str):
                    parts.append(block["text"])
                continue

            if getattr(block, "type", None) == "text":
                text = getattr(block, "text", None)
                if isinstance(text, str):
                    parts.append(text)

        return "".join(parts)
