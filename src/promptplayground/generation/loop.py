"""Bounded, cancellable repetition of completion calls."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple
import asyncio
import logging

from promptplayground.cancellation import CancellationToken, OperationCancelledError
from promptplayground.llm.base import CompletionProvider
from promptplayground.llm.errors import ProviderError
from promptplayground.llm.types import CompletionResult, GenerationParameters
from promptplayground.template.variables import render_template


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class LoopResult:
    state: LoopState
    results: Tuple[CompletionResult, ...]
    error: Optional[ProviderError] = None


class GenerationLoop:
    """Runs up to ``max_count`` sequential completion calls.

    Cancellation is checked before every dispatch and the token is handed to
    the provider so an in-flight call can be aborted. A result that arrives
    after cancellation was signalled is discarded. A provider failure stops
    the loop and is reported together with the results gathered so far.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        logger: logging.Logger | None = None,
    ) -> None:
        self._provider = provider
        self._logger = logger or logging.getLogger("promptplayground.generation.loop")
        self._state = LoopState.IDLE

    @property
    def state(self) -> LoopState:
        return self._state

    async def run(
        self,
        template: str,
        bindings: Mapping[str, str],
        max_count: int,
        cancellation: CancellationToken,
        params: Optional[GenerationParameters] = None,
    ) -> LoopResult:
        if self._state is not LoopState.IDLE:
            raise RuntimeError("GenerationLoop instances run only once.")
        self._state = LoopState.RUNNING

        effective_params = params or self._provider.parameters
        prompt = render_template(template, bindings)
        results: list[CompletionResult] = []

        for index in range(max(max_count, 0)):
            if cancellation.cancelled:
                return self._finish(LoopState.CANCELLED, results)

            try:
                result = await self._provider.complete(prompt, effective_params, cancellation)
            except OperationCancelledError:
                return self._finish(LoopState.CANCELLED, results)
            except ProviderError as exc:
                return self._fail(index, results, exc)
            except Exception as exc:
                return self._fail(
                    index,
                    results,
                    ProviderError(f"Completion call failed: {exc}", cause=exc),
                )

            if cancellation.cancelled:
                self._logger.info("generation_result_discarded index=%s reason=cancelled", index)
                return self._finish(LoopState.CANCELLED, results)

            results.append(result)
            self._logger.info(
                "generation_call_success index=%s finish_reason=%s",
                index,
                result.finish_reason,
            )
            # Checkpoint so a concurrent cancel() can land between calls.
            await asyncio.sleep(0)

        return self._finish(LoopState.COMPLETED, results)

    def _fail(
        self,
        index: int,
        results: list[CompletionResult],
        error: ProviderError,
    ) -> LoopResult:
        self._logger.warning(
            "generation_call_failed index=%s error_type=%s partial_results=%s",
            index,
            (error.cause or error).__class__.__name__,
            len(results),
        )
        return self._finish(LoopState.FAILED, results, error)

    def _finish(
        self,
        state: LoopState,
        results: list[CompletionResult],
        error: Optional[ProviderError] = None,
    ) -> LoopResult:
        self._state = state
        self._logger.debug("generation_loop_finished state=%s results=%s", state.value, len(results))
        return LoopResult(state=state, results=tuple(results), error=error)
