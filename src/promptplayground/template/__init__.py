"""Prompt template APIs."""

from promptplayground.template.prompt_config import (
    CompletionOverrides,
    PromptConfig,
    PromptConfigError,
    prompt_config_from_mapping,
)
from promptplayground.template.resolver import (
    CollectorResult,
    VariableCollector,
    VariableResolutionError,
    VariablesAbandonedError,
    VariablesIncompleteError,
    resolve_variables,
)
from promptplayground.template.variables import (
    Variable,
    extract_variables,
    render_template,
    variables_from_names,
)

__all__ = [
    "CollectorResult",
    "CompletionOverrides",
    "PromptConfig",
    "PromptConfigError",
    "Variable",
    "VariableCollector",
    "VariableResolutionError",
    "VariablesAbandonedError",
    "VariablesIncompleteError",
    "extract_variables",
    "prompt_config_from_mapping",
    "render_template",
    "resolve_variables",
    "variables_from_names",
]
