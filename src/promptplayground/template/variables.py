"""Variable discovery and substitution for prompt templates.

A reference is ``$`` followed by a maximal run of ``[A-Za-z0-9_]``. The
Semantic Kernel block form ``{{$name}}`` names the same variable; rendering
replaces the whole block.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Optional, Tuple
import re


SIGIL = "$"

_REFERENCE_PATTERN = re.compile(
    r"\{\{\s*\$(?P<block>[A-Za-z0-9_]+)\s*\}\}|\$(?P<bare>[A-Za-z0-9_]+)"
)


@dataclass
class Variable:
    name: str
    value: Optional[str] = None

    @property
    def is_set(self) -> bool:
        return self.value is not None


def _iter_references(template: str) -> Iterator[re.Match]:
    return _REFERENCE_PATTERN.finditer(template or "")


def _reference_name(match: re.Match) -> str:
    return match.group("block") or match.group("bare")


def extract_variables(template: str) -> Tuple[str, ...]:
    """Return referenced variable names, deduplicated in first-seen order."""

    names: list[str] = []
    seen = set()
    for match in _iter_references(template):
        name = _reference_name(match)
        if name not in seen:
            seen.add(name)
            names.append(name)
    return tuple(names)


def variables_from_names(names: Iterable[str]) -> list[Variable]:
    return [Variable(name=name.lstrip(SIGIL)) for name in names]


def render_template(template: str, bindings: Mapping[str, str]) -> str:
    """Substitute bound references; unbound references stay as written."""

    def _substitute(match: re.Match) -> str:
        name = _reference_name(match)
        if name in bindings:
            return bindings[name]
        return match.group(0)

    return _REFERENCE_PATTERN.sub(_substitute, template)
