"""Core matcher types.

A PatternMatcher pairs a PatternSpec with its compiled regex and turns a
structural match into an EpisodeRecord. Numeric captures that do not parse
leave their field empty instead of failing the match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Protocol, runtime_checkable

from ..config import PatternSpec
from ..models import EpisodeRecord

# Season and episode are unsigned 16-bit values; larger captures are dropped.
MAX_FIELD_VALUE = 0xFFFF


def coerce_number(value: Optional[str]) -> Optional[int]:
    """Parse captured text as an unsigned integer.

    Leading zeros are dropped (``"01201"`` -> ``1201``). Non-ASCII digits,
    empty text and values above MAX_FIELD_VALUE yield None.
    """
    if value is None or not value.isascii() or not value.isdigit():
        return None
    number = int(value)
    if number > MAX_FIELD_VALUE:
        return None
    return number


@runtime_checkable
class Matcher(Protocol):
    def match(self, path: str) -> Optional[EpisodeRecord]:
        ...


@dataclass(frozen=True)
class PatternMatcher:
    """Runtime representation of one compiled naming convention.

    Attributes:
        spec: The pattern definition
        regex: The compiled regular expression
    """

    spec: PatternSpec
    regex: re.Pattern[str]

    @classmethod
    def from_spec(cls, spec: PatternSpec) -> PatternMatcher:
        return _matcher_for_spec(spec)

    @property
    def label(self) -> str:
        return self.spec.label

    def match(self, path: str) -> Optional[EpisodeRecord]:
        found = self.regex.search(path)
        if found is None:
            return None

        fields = self.spec.fields
        if fields.season.group is None:
            season: Optional[int] = fields.season.value
        else:
            season = coerce_number(found.group(fields.season.group))

        return EpisodeRecord(
            title=found.group(fields.title),
            season=season,
            episode=coerce_number(found.group(fields.episode)),
        )


@lru_cache(maxsize=256)
def _matcher_for_spec(spec: PatternSpec) -> PatternMatcher:
    return PatternMatcher(spec=spec, regex=spec.compiled_regex())
