"""Generation loop and run session."""

from promptplayground.generation.loop import GenerationLoop, LoopResult, LoopState
from promptplayground.generation.outcome import Cancelled, Completed, Failed, RunOutcome
from promptplayground.generation.session import ProviderFactory, RunSession, SessionSpentError

__all__ = [
    "Cancelled",
    "Completed",
    "Failed",
    "GenerationLoop",
    "LoopResult",
    "LoopState",
    "ProviderFactory",
    "RunOutcome",
    "RunSession",
    "SessionSpentError",
]
