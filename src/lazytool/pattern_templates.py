from __future__ import annotations

import re
from copy import deepcopy
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Any

from .errors import ConfigError
from .utils import load_yaml_file

PLACEHOLDER_RE = re.compile(r"(?<!\?P)<([A-Za-z0-9_]+)>")


@dataclass
class PatternTableData:
    """Raw pattern entries with their regex tokens already expanded."""

    patterns: list[dict[str, Any]] = field(default_factory=list)
    regex_tokens: dict[str, str] = field(default_factory=dict)


def resolve_regex_tokens(raw_tokens: dict[str, str]) -> dict[str, str]:
    """Expand tokens that reference other tokens, rejecting cycles."""
    resolved: dict[str, str] = {}

    def resolve(name: str, stack: list[str]) -> str:
        if name in resolved:
            return resolved[name]
        if name not in raw_tokens:
            raise ConfigError(f"Unknown regex token <{name}> referenced")
        if name in stack:
            cycle = " -> ".join(stack + [name])
            raise ConfigError(f"Circular regex token reference detected: {cycle}")

        def replace(match: re.Match[str]) -> str:
            return resolve(match.group(1), stack + [name])

        expanded = PLACEHOLDER_RE.sub(replace, raw_tokens[name])
        resolved[name] = expanded
        return expanded

    for token_name in raw_tokens:
        resolve(token_name, [])

    return resolved


def expand_placeholders(text: str, tokens: dict[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        token_name = match.group(1)
        if token_name not in tokens:
            raise ConfigError(f"Unknown regex token <{token_name}> referenced in pattern: {text}")
        return tokens[token_name]

    return PLACEHOLDER_RE.sub(replace, text)


def normalize_tokens(raw_tokens: Any, *, source: str) -> dict[str, str]:
    if raw_tokens is None:
        return {}
    if not isinstance(raw_tokens, dict):
        raise ConfigError(f"'regex_tokens' in {source} must be a mapping of token -> regex fragment")
    return {str(key): str(value) for key, value in raw_tokens.items()}


@lru_cache
def _load_builtin_table() -> PatternTableData:
    with resources.as_file(resources.files(__package__) / "pattern_templates.yaml") as path:
        data = load_yaml_file(path)

    tokens = resolve_regex_tokens(normalize_tokens(data.get("regex_tokens"), source="pattern_templates.yaml"))

    raw_patterns = data.get("patterns", [])
    if not isinstance(raw_patterns, list):
        raise ConfigError("Builtin pattern templates must define 'patterns' as a list")

    patterns: list[dict[str, Any]] = []
    for entry in raw_patterns:
        if not isinstance(entry, dict):
            continue
        regex_value = entry.get("regex")
        if isinstance(regex_value, str):
            entry["regex"] = expand_placeholders(regex_value, tokens)
        patterns.append(entry)

    return PatternTableData(patterns=patterns, regex_tokens=tokens)


def load_builtin_patterns() -> list[dict[str, Any]]:
    """Return the built-in pattern entries in precedence order."""
    return deepcopy(_load_builtin_table().patterns)


def builtin_regex_tokens() -> dict[str, str]:
    return dict(_load_builtin_table().regex_tokens)
