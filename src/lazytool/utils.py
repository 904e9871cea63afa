from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import PathEncodingError

PathInput = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]

HOME_MARKER = "~"

# Boolean true/false string values
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def coerce_path_text(path: PathInput) -> str:
    """Return the text form of ``path``.

    Raises:
        PathEncodingError: if ``path`` is not path-like, holds bytes that are
            not valid UTF-8, or holds surrogate-escaped characters.
    """
    try:
        raw = os.fspath(path)
    except TypeError as exc:
        raise PathEncodingError(path) from exc

    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PathEncodingError(path) from exc

    try:
        raw.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise PathEncodingError(path) from exc
    return raw


def path_to_str(path: PathInput) -> str:
    """Return the text form of ``path``, or an empty string when it has none."""
    try:
        return coerce_path_text(path)
    except PathEncodingError:
        return ""


def file_name(path: PathInput) -> str:
    """Return the final segment of ``path``.

    Raises ValueError when the path ends without a file name (``/``, ``..``).
    """
    name = Path(path_to_str(path)).name
    if not name or name == "..":
        raise ValueError(f"Path has no file name: {path!r}")
    return name


def expand_user(path: PathInput) -> Path:
    """Resolve a leading ``~`` component against ``$HOME``.

    Paths that do not start with ``~`` are returned unchanged, as is the
    path itself when ``HOME`` is unset. ``~user`` forms are not expanded.
    Paths that are not valid text are returned as they are.
    """
    try:
        candidate = Path(coerce_path_text(path))
    except PathEncodingError:
        return Path(os.fsdecode(path))
    parts = candidate.parts
    if not parts or parts[0] != HOME_MARKER:
        return candidate

    home = os.environ.get("HOME")
    if not home:
        return candidate
    return Path(home).joinpath(*parts[1:])


def expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env(val) for key, val in value.items()}
    return value


def load_yaml_file(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return expand_env(data)


def parse_env_bool(value: Optional[str]) -> Optional[bool]:
    """Parse a boolean from an environment variable string.

    Returns None if value is None or not a recognized boolean string.
    """
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def env_bool(name: str) -> Optional[bool]:
    """Get a boolean from an environment variable.

    Returns None if not set or not a recognized boolean string.
    """
    return parse_env_bool(os.getenv(name))


def env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if not raw or not raw.strip():
        return None
    return expand_user(raw.strip())
