from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml

from .errors import ConfigError, PatternError
from .pattern_templates import (
    builtin_regex_tokens,
    expand_placeholders,
    load_builtin_patterns,
    normalize_tokens,
    resolve_regex_tokens,
)
from .utils import load_yaml_file

DEFAULT_SEASON = 1
# Legacy field triples use 0 in the season slot for "no season capture".
NO_SEASON_INDEX = 0

BUILTIN_AFTER = "after"
BUILTIN_BEFORE = "before"
BUILTIN_DISABLED = "disabled"
BUILTIN_POSITIONS = (BUILTIN_AFTER, BUILTIN_BEFORE, BUILTIN_DISABLED)


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@lru_cache(maxsize=256)
def compile_regex(regex: str) -> re.Pattern[str]:
    try:
        return re.compile(regex)
    except re.error as exc:
        raise PatternError(f"Invalid pattern {regex!r}: {exc}", regex=regex) from exc


@dataclass(frozen=True)
class SeasonSource:
    """Where a record's season comes from.

    Either a capture group (``SeasonSource.captured(3)``) or a fixed value
    for patterns that carry no season at all (``SeasonSource.default()``).
    """

    group: int | None = None
    value: int = DEFAULT_SEASON

    def __post_init__(self) -> None:
        if self.group is not None and (not _is_index(self.group) or self.group < 1):
            raise PatternError(f"Season capture group must be a positive integer, got {self.group!r}")
        if not _is_index(self.value) or self.value < 0:
            raise PatternError(f"Default season must be a non-negative integer, got {self.value!r}")

    @classmethod
    def captured(cls, group: int) -> SeasonSource:
        return cls(group=group)

    @classmethod
    def default(cls, value: int = DEFAULT_SEASON) -> SeasonSource:
        return cls(group=None, value=value)

    @property
    def is_captured(self) -> bool:
        return self.group is not None

    def describe(self) -> str:
        if self.group is not None:
            return str(self.group)
        return f"default({self.value})"


@dataclass(frozen=True)
class FieldMap:
    """Capture group positions for title, season and episode."""

    title: int
    season: SeasonSource
    episode: int

    def __post_init__(self) -> None:
        for label, index in (("title", self.title), ("episode", self.episode)):
            if not _is_index(index) or index < 1:
                raise PatternError(f"{label.capitalize()} capture group must be a positive integer, got {index!r}")
        if not isinstance(self.season, SeasonSource):
            raise PatternError(f"Season must be a SeasonSource, got {self.season!r}")

    @classmethod
    def from_indexes(cls, indexes: Sequence[int]) -> FieldMap:
        """Build a mapping from a ``(title, season, episode)`` triple.

        A season index of ``0`` means the pattern has no season capture and
        the default season applies.
        """
        if len(indexes) != 3:
            raise PatternError(f"Field map must hold exactly three indexes, got {list(indexes)!r}")
        title, season, episode = indexes
        if season == NO_SEASON_INDEX and _is_index(season):
            season_source = SeasonSource.default()
        else:
            season_source = SeasonSource.captured(season)
        return cls(title=title, season=season_source, episode=episode)

    def groups(self) -> list[tuple[str, int]]:
        referenced = [("title", self.title)]
        if self.season.group is not None:
            referenced.append(("season", self.season.group))
        referenced.append(("episode", self.episode))
        return referenced

    def describe(self) -> str:
        return f"title={self.title} season={self.season.describe()} episode={self.episode}"


@dataclass(frozen=True)
class PatternSpec:
    """One naming convention: an anchored regex plus its field mapping.

    The regex is compiled on construction so a malformed pattern fails
    here rather than when a path is matched.
    """

    regex: str
    fields: FieldMap
    name: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.regex, str):
            raise PatternError(f"Pattern must be a string, got {type(self.regex).__name__}")
        if not isinstance(self.fields, FieldMap):
            raise PatternError(f"Pattern {self.label!r} needs a FieldMap, got {self.fields!r}", regex=self.regex)
        compiled = compile_regex(self.regex)
        for label, index in self.fields.groups():
            if index > compiled.groups:
                raise PatternError(
                    f"Pattern {self.label!r} maps {label} to group {index} "
                    f"but only defines {compiled.groups} groups",
                    regex=self.regex,
                )

    @classmethod
    def new(
        cls,
        pattern: str,
        field_map: FieldMap | Sequence[int],
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> PatternSpec:
        fields = field_map if isinstance(field_map, FieldMap) else FieldMap.from_indexes(field_map)
        return cls(regex=pattern, fields=fields, name=name, description=description)

    @property
    def label(self) -> str:
        return self.name or self.regex

    def compiled_regex(self) -> re.Pattern[str]:
        return compile_regex(self.regex)


def _parse_season(raw: Any, label: str) -> SeasonSource:
    if raw is None or (isinstance(raw, str) and raw.strip().lower() == "default"):
        return SeasonSource.default()
    if _is_index(raw):
        if raw == NO_SEASON_INDEX:
            return SeasonSource.default()
        return SeasonSource.captured(raw)
    if isinstance(raw, dict):
        if "group" in raw:
            return SeasonSource.captured(raw["group"])
        if "default" in raw:
            return SeasonSource.default(raw["default"])
    raise ConfigError(f"Pattern {label!r}: 'fields.season' must be a group index, 'default', or {{default: N}}")


def _parse_fields(raw: Any, label: str) -> FieldMap:
    if isinstance(raw, (list, tuple)):
        return FieldMap.from_indexes(raw)
    if not isinstance(raw, dict):
        raise ConfigError(f"Pattern {label!r} must declare 'fields' as a mapping or a list of three indexes")

    title = raw.get("title")
    episode = raw.get("episode")
    if not _is_index(title) or not _is_index(episode):
        raise ConfigError(f"Pattern {label!r} must map 'fields.title' and 'fields.episode' to group indexes")
    return FieldMap(title=title, season=_parse_season(raw.get("season"), label), episode=episode)


def build_pattern_spec(entry: Any, tokens: dict[str, str], *, position: int) -> PatternSpec:
    if not isinstance(entry, dict):
        raise ConfigError(f"Pattern entry #{position} must be a mapping")

    regex = entry.get("regex")
    if not isinstance(regex, str) or not regex:
        raise ConfigError(f"Pattern entry #{position} is missing a 'regex' string")

    name = entry.get("name")
    label = str(name) if name else f"#{position}"
    description = entry.get("description")
    return PatternSpec(
        regex=expand_placeholders(regex, tokens),
        fields=_parse_fields(entry.get("fields"), label),
        name=str(name) if name else None,
        description=str(description) if description else None,
    )


@lru_cache
def builtin_pattern_specs() -> tuple[PatternSpec, ...]:
    """The shipped naming conventions, in precedence order."""
    tokens = builtin_regex_tokens()
    return tuple(
        build_pattern_spec(entry, tokens, position=position)
        for position, entry in enumerate(load_builtin_patterns(), start=1)
    )


@dataclass
class AppConfig:
    user_patterns: list[PatternSpec] = field(default_factory=list)
    builtin_patterns: str = BUILTIN_AFTER
    source: Path | None = None

    def patterns(self) -> list[PatternSpec]:
        """Effective pattern list, highest precedence first."""
        if self.builtin_patterns == BUILTIN_DISABLED:
            return list(self.user_patterns)
        builtins = list(builtin_pattern_specs())
        if self.builtin_patterns == BUILTIN_BEFORE:
            return builtins + self.user_patterns
        return self.user_patterns + builtins


def load_pattern_file(path: Path) -> AppConfig:
    try:
        data = load_yaml_file(path)
    except OSError as exc:
        raise ConfigError(f"Unable to read pattern file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Pattern file {path} is not valid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Pattern file {path} must contain a mapping at the top level")

    raw_tokens = builtin_regex_tokens()
    raw_tokens.update(normalize_tokens(data.get("regex_tokens"), source=str(path)))
    tokens = resolve_regex_tokens(raw_tokens)

    position_value = data.get("builtin_patterns", BUILTIN_AFTER)
    if position_value is None:
        builtin_position = BUILTIN_AFTER
    elif position_value is False:
        # YAML reads a bare `off` / `no` as False
        builtin_position = BUILTIN_DISABLED
    else:
        builtin_position = str(position_value).strip().lower()
    if builtin_position not in BUILTIN_POSITIONS:
        raise ConfigError(f"'builtin_patterns' must be one of {', '.join(BUILTIN_POSITIONS)}, got {position_value!r}")

    raw_patterns = data.get("patterns")
    if raw_patterns is None:
        raw_patterns = []
    if not isinstance(raw_patterns, list):
        raise ConfigError("'patterns' must be a list of pattern definitions")

    user_patterns = [
        build_pattern_spec(entry, tokens, position=position) for position, entry in enumerate(raw_patterns, start=1)
    ]
    return AppConfig(user_patterns=user_patterns, builtin_patterns=builtin_position, source=path)
