"""lazytool core package.

Extracts show title, season and episode numbers from video file paths:

- **matcher**: Ordered pattern matchers and the extraction engine
- **config**: Pattern definitions and YAML pattern files
- **pattern_templates**: The built-in naming conventions
- **utils**: Path helpers (home expansion, text coercion, file names)
- **time_utils**: Timestamp parsing and conversion
- **cli**: The ``lazytool`` command

The main entry point is ``extract_episode``.
"""

from .config import FieldMap, PatternSpec, SeasonSource
from .errors import ConfigError, LazytoolError, PathEncodingError, PatternError, TimeParseError
from .matcher import PatternMatcher, extract_episode, extract_episode_with
from .models import EpisodeRecord
from .time_utils import current_timestamp, to_timestamp
from .utils import expand_user
from .version import __version__

__all__ = [
    "__version__",
    "ConfigError",
    "EpisodeRecord",
    "FieldMap",
    "LazytoolError",
    "PathEncodingError",
    "PatternError",
    "PatternMatcher",
    "PatternSpec",
    "SeasonSource",
    "TimeParseError",
    "current_timestamp",
    "expand_user",
    "extract_episode",
    "extract_episode_with",
    "to_timestamp",
]
