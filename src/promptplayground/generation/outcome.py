"""Terminal outcomes of a run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Tuple, Union

from promptplayground.llm.types import CompletionResult
from promptplayground.template.resolver import VariablesAbandonedError


@dataclass(frozen=True)
class Completed:
    status: ClassVar[str] = "completed"

    results: Tuple[CompletionResult, ...]


@dataclass(frozen=True)
class Cancelled:
    status: ClassVar[str] = "cancelled"

    results: Tuple[CompletionResult, ...]


@dataclass(frozen=True)
class Failed:
    status: ClassVar[str] = "failed"

    error: Exception
    results: Tuple[CompletionResult, ...] = ()

    @property
    def abandoned(self) -> bool:
        """True when the operator dismissed variable entry."""

        return isinstance(self.error, VariablesAbandonedError)


RunOutcome = Union[Completed, Cancelled, Failed]
