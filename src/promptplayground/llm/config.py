"""Backend variants and provider configuration records."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Optional, Tuple, Union

from .errors import ConfigurationInvalidError, NoBackendConfiguredError
from .types import GenerationParameters


class _Backend:
    kind: ClassVar[str]
    required_fields: ClassVar[Tuple[str, ...]]
    secret_fields: ClassVar[Tuple[str, ...]] = ()

    def validate(self) -> None:
        for name in self.required_fields:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationInvalidError(name)


@dataclass(frozen=True)
class AzureBackend(_Backend):
    kind: ClassVar[str] = "azure"
    required_fields: ClassVar[Tuple[str, ...]] = ("deployment", "endpoint", "secret")
    secret_fields: ClassVar[Tuple[str, ...]] = ("secret",)

    deployment: str = ""
    endpoint: str = ""
    secret: str = field(default="", repr=False)
    api_version: str = "2024-02-01"


@dataclass(frozen=True)
class ErnieBackend(_Backend):
    kind: ClassVar[str] = "ernie"
    required_fields: ClassVar[Tuple[str, ...]] = ("client_id", "secret")
    secret_fields: ClassVar[Tuple[str, ...]] = ("secret",)

    client_id: str = ""
    secret: str = field(default="", repr=False)
    model: str = "ernie-bot-turbo"


@dataclass(frozen=True)
class OpenAIBackend(_Backend):
    kind: ClassVar[str] = "openai"
    required_fields: ClassVar[Tuple[str, ...]] = ("model", "api_key")
    secret_fields: ClassVar[Tuple[str, ...]] = ("api_key",)

    model: str = ""
    api_key: str = field(default="", repr=False)
    base_url: Optional[str] = None


@dataclass(frozen=True)
class AnthropicBackend(_Backend):
    kind: ClassVar[str] = "anthropic"
    required_fields: ClassVar[Tuple[str, ...]] = ("model", "api_key")
    secret_fields: ClassVar[Tuple[str, ...]] = ("api_key",)

    model: str = ""
    api_key: str = field(default="", repr=False)


BackendConfig = Union[AzureBackend, ErnieBackend, OpenAIBackend, AnthropicBackend]

BACKEND_TYPES: Mapping[str, type] = {
    backend.kind: backend
    for backend in (AzureBackend, ErnieBackend, OpenAIBackend, AnthropicBackend)
}


@dataclass(frozen=True)
class ProviderConfiguration:
    backend: Optional[BackendConfig]
    generation: GenerationParameters = field(default_factory=GenerationParameters)


def backend_config_from_mapping(payload: Mapping[str, Any]) -> BackendConfig:
    """Build the active backend from a flag-style ``backends`` mapping.

    Each entry is keyed by variant name and switched on by its own
    ``enabled`` flag. Exactly one entry may be enabled.
    """

    enabled = []
    for key, section in payload.items():
        if key not in BACKEND_TYPES:
            raise ConfigurationInvalidError(
                f"backends.{key}", f"Unknown backend variant '{key}'."
            )
        if not isinstance(section, Mapping):
            raise ConfigurationInvalidError(
                f"backends.{key}", f"Backend section '{key}' must be an object."
            )
        if _as_flag(section.get("enabled", False), f"backends.{key}.enabled"):
            enabled.append(key)

    if not enabled:
        raise NoBackendConfiguredError()
    if len(enabled) > 1:
        raise ConfigurationInvalidError(
            "backends",
            "Exactly one backend may be enabled, got: " + ", ".join(enabled),
        )

    kind = enabled[0]
    return backend_from_fields(kind, payload[kind])


def backend_from_fields(kind: str, section: Mapping[str, Any]) -> BackendConfig:
    backend_type = BACKEND_TYPES.get(kind)
    if backend_type is None:
        raise ConfigurationInvalidError("backend", f"Unknown backend variant '{kind}'.")

    values = {}
    for item in fields(backend_type):
        if item.name not in section:
            continue
        value = section[item.name]
        if value is None:
            continue
        if not isinstance(value, str):
            raise ConfigurationInvalidError(item.name, f"'{item.name}' must be a string.")
        values[item.name] = value.strip()
    return backend_type(**values)


def _as_flag(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigurationInvalidError(field_name, f"'{field_name}' must be a boolean.")
