"""Observability helpers."""

from promptplayground.observability.metrics import (
    estimate_completion_cost_usd,
    log_completion_success,
)

__all__ = ["estimate_completion_cost_usd", "log_completion_success"]
