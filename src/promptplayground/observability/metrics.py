"""Per-completion usage logging with a rough USD cost estimate."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
import logging

if TYPE_CHECKING:
    from promptplayground.llm.types import CompletionResult


# (model prefix, USD per 1M input tokens, USD per 1M output tokens).
# Checked in order, so "gpt-4o-mini" must precede "gpt-4o".
PRICE_TABLE: tuple[tuple[str, float, float], ...] = (
    ("gpt-4o-mini", 0.15, 0.6),
    ("gpt-4o", 2.5, 10.0),
    ("gpt-35-turbo", 0.5, 1.5),
    ("gpt-3.5-turbo", 0.5, 1.5),
    ("claude-sonnet", 3.0, 15.0),
    ("claude-haiku", 0.8, 4.0),
)


def estimate_completion_cost_usd(
    *,
    model: str,
    input_tokens: int,
    output_tokens: int,
) -> Optional[float]:
    """Return the estimated cost, or None for unpriced models or bad counts."""

    if min(input_tokens, output_tokens) < 0:
        return None

    name = model.strip().lower()
    for prefix, input_rate, output_rate in PRICE_TABLE:
        if name and name.startswith(prefix):
            total = input_tokens * input_rate + output_tokens * output_rate
            return round(total / 1_000_000, 8)
    return None


def log_completion_success(
    logger: logging.Logger,
    *,
    provider: str,
    result: CompletionResult,
) -> None:
    logger.info(
        "llm_completion_success provider=%s model=%s input_tokens=%s output_tokens=%s estimated_cost_usd=%s",
        provider,
        result.model,
        result.input_tokens,
        result.output_tokens,
        estimate_completion_cost_usd(
            model=result.model,
            input_tokens=result.input_tokens or 0,
            output_tokens=result.output_tokens or 0,
        ),
    )
