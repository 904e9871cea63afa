"""Extraction engine: try matchers in order, first match wins.

This module provides the main entry points for the matcher package:
- compile_patterns: Compile pattern specs into PatternMatcher objects
- extract_episode: Match a path against the built-in conventions
- extract_episode_with: Match a path against a caller-supplied list
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Any, Iterable, Optional, Union

from ..config import PatternSpec, builtin_pattern_specs
from ..logging_utils import render_fields_block
from ..models import EpisodeRecord
from ..utils import PathInput, coerce_path_text
from .core import Matcher, PatternMatcher

LOGGER = logging.getLogger(__name__)

MatcherLike = Union[PatternSpec, Matcher]


def compile_patterns(specs: Iterable[PatternSpec]) -> list[PatternMatcher]:
    """Compile pattern specs into matchers, preserving order."""
    return [PatternMatcher.from_spec(spec) for spec in specs]


@lru_cache(maxsize=1)
def _builtin_matchers() -> tuple[PatternMatcher, ...]:
    return tuple(compile_patterns(builtin_pattern_specs()))


def default_matchers() -> list[PatternMatcher]:
    """The built-in matchers in precedence order."""
    return list(_builtin_matchers())


def _as_matcher(candidate: MatcherLike) -> Matcher:
    if isinstance(candidate, PatternSpec):
        return PatternMatcher.from_spec(candidate)
    if isinstance(candidate, Matcher) and not isinstance(candidate, re.Pattern):
        return candidate
    raise TypeError(f"Expected a PatternSpec or an object with match(path), got {type(candidate).__name__}")


def _describe(matcher: Matcher) -> str:
    label = getattr(matcher, "label", None)
    return str(label) if label else type(matcher).__name__


def extract_episode_with(
    path: PathInput,
    matchers: Iterable[MatcherLike],
    *,
    trace: Optional[dict[str, Any]] = None,
) -> Optional[EpisodeRecord]:
    """Return the record from the first matcher that fits ``path``.

    Matchers are tried strictly in order and later ones are never consulted
    once one matches. ``None`` means no matcher fit the path.

    Args:
        path: Full path of the video file (str, bytes or path-like)
        matchers: PatternSpec definitions or objects exposing ``match(path)``
        trace: Optional dict that collects every attempt for debugging

    Raises:
        PathEncodingError: if ``path`` cannot be read as text
    """
    text = coerce_path_text(path)

    attempts: Optional[list[dict[str, Any]]] = None
    if trace is not None:
        trace["path"] = text
        trace["matched_pattern"] = None
        attempts = trace["attempts"] = []

    for candidate in matchers:
        matcher = _as_matcher(candidate)
        descriptor = _describe(matcher)
        record = matcher.match(text)
        if record is None:
            if attempts is not None:
                attempts.append({"pattern": descriptor, "status": "no-match"})
            continue
        if not isinstance(record, EpisodeRecord):
            raise TypeError(f"Matcher {descriptor} returned {type(record).__name__}, expected EpisodeRecord or None")

        if trace is not None and attempts is not None:
            attempts.append({"pattern": descriptor, "status": "matched", "record": record.as_dict()})
            trace["matched_pattern"] = descriptor

        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug(
                render_fields_block(
                    "Episode Pattern Matched",
                    {
                        "Path": text,
                        "Pattern": descriptor,
                        "Title": record.title,
                        "Season": record.season,
                        "Episode": record.episode,
                    },
                )
            )
        return record

    LOGGER.debug("No episode pattern matched %s", text)
    return None


def extract_episode(path: PathInput, *, trace: Optional[dict[str, Any]] = None) -> Optional[EpisodeRecord]:
    """Extract title, season and episode from ``path`` using the built-in conventions."""
    return extract_episode_with(path, _builtin_matchers(), trace=trace)
