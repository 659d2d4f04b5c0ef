from __future__ import annotations

from abc import ABC, abstractmethod

from promptplayground.cancellation import CancellationToken

from .types import CompletionResult, GenerationParameters


class CompletionProvider(ABC):
    """A configured backend able to execute one completion call at a time."""

    def __init__(self, parameters: GenerationParameters) -> None:
        self.parameters = parameters

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        params: GenerationParameters,
        cancellation: CancellationToken,
    ) -> CompletionResult:
        """Generate a completion for the rendered prompt."""
