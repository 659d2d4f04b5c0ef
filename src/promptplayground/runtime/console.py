"""Terminal variable collector."""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Sequence, TextIO
import asyncio
import sys
import threading

from promptplayground.template.resolver import CollectorResult
from promptplayground.template.variables import Variable


class ConsoleVariableCollector:
    """Collects variable values from presets, prompt defaults and stdin.

    Presets win over prompt defaults. Remaining variables are asked for one
    after another on the terminal; end of input abandons the whole entry.
    With ``interactive=False`` unanswered variables stay unset.
    """

    def __init__(
        self,
        *,
        presets: Optional[Mapping[str, str]] = None,
        defaults: Optional[Mapping[str, str]] = None,
        interactive: bool = True,
        input_func: Callable[[str], str] = input,
        output: Optional[TextIO] = None,
    ) -> None:
        self._presets = dict(presets or {})
        self._defaults = dict(defaults or {})
        self._interactive = interactive
        self._input = input_func
        self._output = output or sys.stderr

    async def collect(self, variables: Sequence[Variable]) -> CollectorResult:
        values: dict[str, Optional[str]] = {}
        pending = []
        for variable in variables:
            if variable.name in self._presets:
                values[variable.name] = self._presets[variable.name]
            else:
                pending.append(variable)

        if pending and self._interactive:
            print("Enter values for prompt variables.", file=self._output)

        for variable in pending:
            default = self._defaults.get(variable.name)
            if not self._interactive:
                values[variable.name] = default
                continue

            label = f"${variable.name}"
            if default is not None:
                label += f" [{default}]"
            try:
                answer = await self._ask(f"{label}: ")
            except (EOFError, KeyboardInterrupt):
                return CollectorResult.abandon()

            if answer == "" and default is not None:
                answer = default
            values[variable.name] = answer

        return CollectorResult(values=values)

    async def _ask(self, prompt: str) -> str:
        # A daemon thread keeps a pending read from blocking interpreter exit
        # after the run is cancelled.
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def _settle(value: object, error: Optional[BaseException]) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(value)

        def _read() -> None:
            value: object = None
            error: Optional[BaseException] = None
            try:
                value = self._input(prompt)
            except BaseException as exc:  # relayed to the awaiting coroutine
                error = exc
            # The loop is closed once the run has finished.
            if loop.is_closed():
                return
            try:
                loop.call_soon_threadsafe(_settle, value, error)
            except RuntimeError:
                return

        threading.Thread(target=_read, name="variable-input", daemon=True).start()
        return await future


def parse_variable_assignments(assignments: Sequence[str]) -> dict[str, str]:
    """Parse ``NAME=VALUE`` pairs; a leading ``$`` on the name is ignored."""

    parsed: dict[str, str] = {}
    for assignment in assignments:
        name, separator, value = assignment.partition("=")
        name = name.strip().lstrip("$")
        if not separator or not name:
            raise ValueError(f"Expected NAME=VALUE, got {assignment!r}.")
        parsed[name] = value
    return parsed
