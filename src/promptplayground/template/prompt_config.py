"""Per-prompt completion settings read from a ``config.json`` payload."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from promptplayground.llm.types import GenerationParameters


class PromptConfigError(ValueError):
    """Raised when a prompt config payload is malformed."""


@dataclass(frozen=True)
class CompletionOverrides:
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    stop_sequences: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class PromptConfig:
    description: str = ""
    completion: CompletionOverrides = field(default_factory=CompletionOverrides)
    input_defaults: Mapping[str, str] = field(default_factory=dict)

    def apply(self, params: GenerationParameters) -> GenerationParameters:
        """Overlay this prompt's completion settings; ``max_count`` is kept."""

        overrides = self.completion
        try:
            return params.with_overrides(
                temperature=overrides.temperature,
                max_tokens=overrides.max_tokens,
                top_p=overrides.top_p,
                presence_penalty=overrides.presence_penalty,
                frequency_penalty=overrides.frequency_penalty,
                stop_sequences=overrides.stop_sequences,
            )
        except ValueError as exc:
            raise PromptConfigError(str(exc)) from exc


def prompt_config_from_mapping(payload: Mapping[str, Any]) -> PromptConfig:
    description = payload.get("description", "")
    if not isinstance(description, str):
        raise PromptConfigError("'description' must be a string.")

    completion = payload.get("completion", {})
    if not isinstance(completion, Mapping):
        raise PromptConfigError("'completion' must be an object.")

    return PromptConfig(
        description=description.strip(),
        completion=CompletionOverrides(
            temperature=_optional_float(completion, "temperature"),
            max_tokens=_optional_positive_int(completion, "max_tokens"),
            top_p=_optional_float(completion, "top_p"),
            presence_penalty=_optional_float(completion, "presence_penalty"),
            frequency_penalty=_optional_float(completion, "frequency_penalty"),
            stop_sequences=_optional_str_tuple(completion, "stop_sequences"),
        ),
        input_defaults=_input_defaults(payload.get("input")),
    )


def _input_defaults(section: Any) -> Mapping[str, str]:
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise PromptConfigError("'input' must be an object.")

    parameters = section.get("parameters", [])
    if not isinstance(parameters, list):
        raise PromptConfigError("'input.parameters' must be a list.")

    defaults = {}
    for parameter in parameters:
        if not isinstance(parameter, Mapping):
            raise PromptConfigError("'input.parameters' entries must be objects.")
        name = parameter.get("name")
        default = parameter.get("defaultValue")
        if isinstance(name, str) and name.strip() and isinstance(default, str):
            defaults[name.strip()] = default
    return defaults


def _optional_float(payload: Mapping[str, Any], field_name: str) -> Optional[float]:
    value = payload.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PromptConfigError(f"'completion.{field_name}' must be a numeric value.")
    return float(value)


def _optional_positive_int(payload: Mapping[str, Any], field_name: str) -> Optional[int]:
    value = payload.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise PromptConfigError(f"'completion.{field_name}' must be a positive integer.")
    return value


def _optional_str_tuple(payload: Mapping[str, Any], field_name: str) -> Optional[Tuple[str, ...]]:
    value = payload.get(field_name)
    if value is None:
        return None
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise PromptConfigError(f"'completion.{field_name}' must be a list of strings.")
