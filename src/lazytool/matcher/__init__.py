"""Matcher package for path-based episode extraction.

Public API:
- PatternMatcher: Runtime representation of a compiled pattern
- compile_patterns: Compile pattern specs into matchers
- extract_episode: Match a path against the built-in conventions
- extract_episode_with: Match a path against a custom matcher list

Example:
    from lazytool.matcher import extract_episode

    record = extract_episode("/tv/ShowS01E02.mp4")
    if record:
        season = record.season
        episode = record.episode
"""

from .core import MAX_FIELD_VALUE, Matcher, PatternMatcher, coerce_number
from .orchestrator import compile_patterns, default_matchers, extract_episode, extract_episode_with

__all__ = [
    "MAX_FIELD_VALUE",
    "Matcher",
    "PatternMatcher",
    "coerce_number",
    "compile_patterns",
    "default_matchers",
    "extract_episode",
    "extract_episode_with",
]
