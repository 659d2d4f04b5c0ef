from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple


@dataclass(frozen=True)
class GenerationParameters:
    temperature: float = 0.7
    max_tokens: int = 500
    top_p: float = 1.0
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    stop_sequences: Tuple[str, ...] = ()
    max_count: int = 1

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0.")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("temperature must be between 0.0 and 2.0.")
        if not 0.0 <= self.top_p <= 1.0:
            raise ValueError("top_p must be between 0.0 and 1.0.")
        object.__setattr__(self, "stop_sequences", tuple(self.stop_sequences))

    def with_overrides(self, **overrides: object) -> "GenerationParameters":
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class CompletionResult:
    text: str
    model: str
    input_tokens: int | None = None
    output_tokens: int | None = None
    finish_reason: str | None = None
