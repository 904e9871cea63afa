from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class EpisodeRecord:
    title: Optional[str]
    season: Optional[int]
    episode: Optional[int]

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
