"""Interactive variable resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Sequence, Tuple

from .variables import Variable, variables_from_names


class VariableResolutionError(Exception):
    """Base error for variable resolution failures."""


class VariablesAbandonedError(VariableResolutionError):
    """Raised when the operator dismisses variable entry."""

    def __init__(self) -> None:
        super().__init__("Variable entry was cancelled.")


class VariablesIncompleteError(VariableResolutionError):
    """Raised when entry completes but leaves variables unset."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names: Tuple[str, ...] = tuple(names)
        super().__init__("Variables are not configured: " + ", ".join(self.names))


@dataclass(frozen=True)
class CollectorResult:
    values: Mapping[str, Optional[str]] = field(default_factory=dict)
    abandoned: bool = False

    @classmethod
    def abandon(cls) -> "CollectorResult":
        return cls(values={}, abandoned=True)


class VariableCollector(Protocol):
    """Gathers values for every variable in one interaction."""

    async def collect(self, variables: Sequence[Variable]) -> CollectorResult:
        ...


async def resolve_variables(
    names: Sequence[str],
    collector: VariableCollector,
) -> dict[str, str]:
    if not names:
        return {}

    variables = variables_from_names(names)
    result = await collector.collect(variables)
    if result.abandoned:
        raise VariablesAbandonedError()

    for variable in variables:
        variable.value = result.values.get(variable.name)

    unset = [variable.name for variable in variables if not variable.is_set]
    if unset:
        raise VariablesIncompleteError(unset)

    return {variable.name: variable.value for variable in variables}
