"""Console runtime for running prompts outside a UI."""

from promptplayground.runtime.app import PlaygroundApp, configure_logging
from promptplayground.runtime.console import ConsoleVariableCollector, parse_variable_assignments

__all__ = [
    "ConsoleVariableCollector",
    "PlaygroundApp",
    "configure_logging",
    "parse_variable_assignments",
]
