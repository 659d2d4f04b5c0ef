"""Typed settings loader for Prompt Playground."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Tuple
import json
import os

from promptplayground.llm.config import (
    BACKEND_TYPES,
    BackendConfig,
    ProviderConfiguration,
    backend_config_from_mapping,
)
from promptplayground.llm.errors import ConfigurationInvalidError, NoBackendConfiguredError
from promptplayground.llm.types import GenerationParameters


_MISSING = object()
_VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_ENV_PREFIX = "PROMPT_PLAYGROUND"


class SettingsError(ValueError):
    """Raised when settings cannot be loaded or validated."""


@dataclass(frozen=True)
class RuntimeSettings:
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        log_level = self.log_level.strip().upper()
        if log_level not in _VALID_LOG_LEVELS:
            raise SettingsError(
                "runtime.log_level must be one of: " + ", ".join(sorted(_VALID_LOG_LEVELS))
            )

        object.__setattr__(self, "log_level", log_level)


@dataclass(frozen=True)
class PlaygroundSettings:
    backend: Optional[BackendConfig]
    generation: GenerationParameters
    runtime: RuntimeSettings

    def provider_configuration(self) -> ProviderConfiguration:
        return ProviderConfiguration(backend=self.backend, generation=self.generation)


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PlaygroundSettings:
    """Load validated settings from JSON config and environment overrides.

    Backend credentials are not checked here; the provider selector reports
    missing fields when a run starts.
    """

    env = dict(environ) if environ is not None else dict(os.environ)
    config = _load_config(config_path)

    try:
        generation = GenerationParameters(
            temperature=_read_value(
                config, env, section="generation", key="temperature", caster=_as_float, default=0.7
            ),
            max_tokens=_read_value(
                config, env, section="generation", key="max_tokens", caster=_as_int, default=500
            ),
            top_p=_read_value(
                config, env, section="generation", key="top_p", caster=_as_float, default=1.0
            ),
            presence_penalty=_read_value(
                config,
                env,
                section="generation",
                key="presence_penalty",
                caster=_as_float,
                default=0.0,
            ),
            frequency_penalty=_read_value(
                config,
                env,
                section="generation",
                key="frequency_penalty",
                caster=_as_float,
                default=0.0,
            ),
            max_count=_read_value(
                config, env, section="generation", key="max_count", caster=_as_int, default=1
            ),
        )
    except ValueError as exc:
        if isinstance(exc, SettingsError):
            raise
        raise SettingsError(f"Invalid generation settings: {exc}") from exc

    runtime = RuntimeSettings(
        log_level=_read_value(
            config, env, section="runtime", key="log_level", caster=_as_str, default="INFO"
        ),
    )

    return PlaygroundSettings(
        backend=_load_backend(config, env),
        generation=generation,
        runtime=runtime,
    )


def settings_summary(settings: PlaygroundSettings) -> dict:
    """Render redacted settings for diagnostics."""

    backend = settings.backend
    if backend is None:
        backend_summary = None
    else:
        backend_summary = {"type": backend.kind}
        for item in fields(backend):
            value = getattr(backend, item.name)
            if item.name in backend.secret_fields:
                value = "***" if value else ""
            backend_summary[item.name] = value

    return {
        "backend": backend_summary,
        "generation": {
            "temperature": settings.generation.temperature,
            "max_tokens": settings.generation.max_tokens,
            "top_p": settings.generation.top_p,
            "presence_penalty": settings.generation.presence_penalty,
            "frequency_penalty": settings.generation.frequency_penalty,
            "max_count": settings.generation.max_count,
        },
        "runtime": {
            "log_level": settings.runtime.log_level,
        },
    }


def _load_backend(config: Mapping[str, Any], env: Mapping[str, str]) -> Optional[BackendConfig]:
    backends = config.get("backends", {})
    if not isinstance(backends, Mapping):
        raise SettingsError("Config section 'backends' must be an object.")

    selected = env.get(f"{_ENV_PREFIX}_BACKEND", "").strip().lower()
    if selected and selected not in BACKEND_TYPES:
        raise SettingsError(
            f"{_ENV_PREFIX}_BACKEND must be one of: " + ", ".join(sorted(BACKEND_TYPES))
        )

    merged: dict[str, dict[str, Any]] = {}
    for kind, backend_type in BACKEND_TYPES.items():
        section = backends.get(kind, {})
        if not isinstance(section, Mapping):
            raise SettingsError(f"Config section 'backends.{kind}' must be an object.")

        values: dict[str, Any] = dict(section)
        for item in fields(backend_type):
            env_value = env.get(f"{_ENV_PREFIX}_{kind.upper()}_{item.name.upper()}")
            if env_value not in (None, ""):
                values[item.name] = env_value
        if selected:
            values["enabled"] = kind == selected
        if kind in backends or selected == kind:
            merged[kind] = values

    unknown = sorted(set(backends) - set(BACKEND_TYPES))
    if unknown:
        raise SettingsError("Unknown backend variants: " + ", ".join(unknown))

    try:
        return backend_config_from_mapping(merged)
    except NoBackendConfiguredError:
        return None
    except ConfigurationInvalidError as exc:
        raise SettingsError(str(exc)) from exc


def _load_config(config_path: Optional[Path]) -> Mapping[str, Any]:
    if config_path is None:
        return {}

    resolved = config_path.expanduser()
    if not resolved.exists():
        raise SettingsError(f"Config file does not exist: {resolved}")

    try:
        with resolved.open("r", encoding="utf-8") as handle:
            loaded = json.load(handle)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Config file is not valid JSON: {resolved}") from exc

    if not isinstance(loaded, dict):
        raise SettingsError("Config root must be an object.")

    return loaded


def _read_value(
    config: Mapping[str, Any],
    environ: Mapping[str, str],
    *,
    section: str,
    key: str,
    caster: Callable[[Any], Any],
    default: Any = _MISSING,
) -> Any:
    env_key = f"{_ENV_PREFIX}_{section.upper()}_{key.upper()}"
    raw_value, source = _resolve_raw_value(
        config=config,
        environ=environ,
        section=section,
        key=key,
        env_key=env_key,
        default=default,
    )

    try:
        return caster(raw_value)
    except SettingsError:
        raise
    except Exception as exc:  # pragma: no cover - defensive
        raise SettingsError(
            f"Invalid value for {section}.{key} from {source}: {raw_value!r}"
        ) from exc


def _resolve_raw_value(
    *,
    config: Mapping[str, Any],
    environ: Mapping[str, str],
    section: str,
    key: str,
    env_key: str,
    default: Any,
) -> Tuple[Any, str]:
    env_value = environ.get(env_key)
    if env_value not in (None, ""):
        return env_value, "environment"

    section_map = config.get(section)
    if section_map is not None and not isinstance(section_map, Mapping):
        raise SettingsError(f"Config section '{section}' must be an object.")

    if isinstance(section_map, Mapping) and key in section_map:
        return section_map[key], "config"

    if default is not _MISSING:
        return default, "default"

    raise SettingsError(
        f"Missing required setting '{section}.{key}'. "
        f"Provide it in config or via '{env_key}'."
    )


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise SettingsError("Value cannot be empty.")
        return text

    raise SettingsError("Expected string value.")


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise SettingsError("Boolean is not a valid integer value.")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        return int(value.strip())

    raise SettingsError("Expected integer value.")


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise SettingsError("Boolean is not a valid float value.")

    if isinstance(value, (int, float)):
        return float(value)

    if isinstance(value, str):
        return float(value.strip())

    raise SettingsError("Expected float value.")
