from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import asyncio
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from promptplayground.cancellation import CancellationToken, OperationCancelledError
from promptplayground.llm import (
    AzureBackend,
    AzureOpenAIClientAdapter,
    GenerationParameters,
    OpenAIBackend,
    OpenAIClientAdapter,
    ProviderError,
)


@dataclass
class _FakeUsage:
    prompt_tokens: int
    completion_tokens: int


@dataclass
class _FakeMessage:
    content: Optional[str]


@dataclass
class _FakeChoice:
    message: _FakeMessage
    finish_reason: str = "stop"


class _FakeResponse:
    def __init__(self, text: Optional[str] = "bonjour", model: str = "gpt-4o-2024-05-13") -> None:
        self.choices = [_FakeChoice(message=_FakeMessage(content=text))]
        self.usage = _FakeUsage(prompt_tokens=11, completion_tokens=3)
        self.model = model


class _FakeCompletions:
    def __init__(self, response=None, error: Optional[Exception] = None, hang: bool = False) -> None:
        self._response = response or _FakeResponse()
        self._error = error
        self._hang = hang
        self.calls: list[dict] = []
        self.was_cancelled = False

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self._hang:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.was_cancelled = True
                raise
        if self._error is not None:
            raise self._error
        return self._response


class _FakeChat:
    def __init__(self, completions: _FakeCompletions) -> None:
        self.completions = completions


class _FakeClient:
    def __init__(self, completions: _FakeCompletions) -> None:
        self.chat = _FakeChat(completions)


class OpenAIClientAdapterTests(unittest.IsolatedAsyncioTestCase):
    async def test_complete_sends_generation_parameters(self) -> None:
        completions = _FakeCompletions()
        adapter = OpenAIClientAdapter(
            OpenAIBackend(model="gpt-4o", api_key="k"),
            GenerationParameters(),
            client=_FakeClient(completions),
        )
        params = GenerationParameters(
            temperature=0.3,
            max_tokens=64,
            top_p=0.9,
            presence_penalty=0.1,
            frequency_penalty=0.2,
            stop_sequences=("END",),
        )

        result = await adapter.complete("Translate hello to fr", params, CancellationToken())

        self.assertEqual(result.text, "bonjour")
        self.assertEqual(result.model, "gpt-4o-2024-05-13")
        self.assertEqual(result.input_tokens, 11)
        self.assertEqual(result.output_tokens, 3)
        self.assertEqual(result.finish_reason, "stop")

        call = completions.calls[0]
        self.assertEqual(call["model"], "gpt-4o")
        self.assertEqual(call["max_tokens"], 64)
        self.assertEqual(call["temperature"], 0.3)
        self.assertEqual(call["top_p"], 0.9)
        self.assertEqual(call["presence_penalty"], 0.1)
        self.assertEqual(call["frequency_penalty"], 0.2)
        self.assertEqual(call["stop"], ["END"])
        self.assertEqual(call["messages"], [{"role": "user", "content": "Translate hello to fr"}])

    async def test_client_is_built_lazily_with_base_url(self) -> None:
        captured: list[dict] = []
        completions = _FakeCompletions()

        def client_factory(**kwargs):
            captured.append(kwargs)
            return _FakeClient(completions)

        adapter = OpenAIClientAdapter(
            OpenAIBackend(model="llama3", api_key="local", base_url="http://127.0.0.1:11434/v1"),
            GenerationParameters(),
            client_factory=client_factory,
        )
        self.assertEqual(captured, [])

        await adapter.complete("Ping", adapter.parameters, CancellationToken())
        await adapter.complete("Ping", adapter.parameters, CancellationToken())

        self.assertEqual(
            captured,
            [{"api_key": "local", "base_url": "http://127.0.0.1:11434/v1"}],
        )
        self.assertNotIn("stop", completions.calls[0])

    async def test_sdk_failure_is_wrapped_in_provider_error(self) -> None:
        failure = RuntimeError("quota exceeded")
        adapter = OpenAIClientAdapter(
            OpenAIBackend(model="gpt-4o", api_key="k"),
            GenerationParameters(),
            client=_FakeClient(_FakeCompletions(error=failure)),
        )

        with self.assertRaises(ProviderError) as ctx:
            await adapter.complete("Ping", adapter.parameters, CancellationToken())

        self.assertIs(ctx.exception.cause, failure)

    async def test_response_without_choices_raises_provider_error(self) -> None:
        response = _FakeResponse()
        response.choices = []
        adapter = OpenAIClientAdapter(
            OpenAIBackend(model="gpt-4o", api_key="k"),
            GenerationParameters(),
            client=_FakeClient(_FakeCompletions(response=response)),
        )

        with self.assertRaises(ProviderError):
            await adapter.complete("Ping", adapter.parameters, CancellationToken())

    async def test_in_flight_call_is_aborted_on_cancel(self) -> None:
        completions = _FakeCompletions(hang=True)
        adapter = OpenAIClientAdapter(
            OpenAIBackend(model="gpt-4o", api_key="k"),
            GenerationParameters(),
            client=_FakeClient(completions),
        )
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        with self.assertRaises(OperationCancelledError):
            await adapter.complete("Ping", adapter.parameters, token)

        await asyncio.sleep(0.01)
        self.assertTrue(completions.was_cancelled)

    async def test_success_log_contains_token_metrics(self) -> None:
        adapter = OpenAIClientAdapter(
            OpenAIBackend(model="gpt-4o", api_key="k"),
            GenerationParameters(),
            client=_FakeClient(_FakeCompletions()),
        )

        with self.assertLogs("promptplayground.llm.openai", level="INFO") as logs:
            await adapter.complete("Ping", adapter.parameters, CancellationToken())

        self.assertTrue(any("llm_completion_success" in line for line in logs.output), logs.output)
        self.assertTrue(any("input_tokens=11" in line for line in logs.output), logs.output)
        self.assertTrue(any("estimated_cost_usd=" in line for line in logs.output), logs.output)


class AzureOpenAIClientAdapterTests(unittest.IsolatedAsyncioTestCase):
    async def test_builds_azure_client_and_uses_deployment_as_model(self) -> None:
        captured: list[dict] = []
        completions = _FakeCompletions()

        def client_factory(**kwargs):
            captured.append(kwargs)
            return _FakeClient(completions)

        backend = AzureBackend(
            deployment="gpt4o-playground",
            endpoint="https://example.openai.azure.com",
            secret="azure-secret",
        )
        adapter = AzureOpenAIClientAdapter(
            backend,
            GenerationParameters(),
            client_factory=client_factory,
        )

        await adapter.complete("Ping", adapter.parameters, CancellationToken())

        self.assertEqual(
            captured,
            [
                {
                    "azure_endpoint": "https://example.openai.azure.com",
                    "azure_deployment": "gpt4o-playground",
                    "api_key": "azure-secret",
                    "api_version": "2024-02-01",
                }
            ],
        )
        self.assertEqual(completions.calls[0]["model"], "gpt4o-playground")

    async def test_logs_under_azure_logger(self) -> None:
        adapter = AzureOpenAIClientAdapter(
            AzureBackend(deployment="d", endpoint="e", secret="s"),
            GenerationParameters(),
            client=_FakeClient(_FakeCompletions()),
        )

        with self.assertLogs("promptplayground.llm.azure", level="INFO") as logs:
            await adapter.complete("Ping", adapter.parameters, CancellationToken())

        self.assertTrue(any("provider=azure" in line for line in logs.output), logs.output)


if __name__ == "__main__":
    unittest.main()
