from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import AppConfig, load_pattern_file
from .errors import LazytoolError, PathEncodingError
from .logging_utils import configure_logging, render_section_block
from .matcher import compile_patterns, extract_episode_with
from .models import EpisodeRecord
from .time_utils import current_timestamp, to_timestamp
from .utils import env_bool, env_path, expand_user

LOGGER = logging.getLogger(__name__)

CONFIG_ENV = "LAZYTOOL_CONFIG"
VERBOSE_ENV = "LAZYTOOL_VERBOSE"
DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

EXIT_OK = 0
EXIT_UNMATCHED = 1
EXIT_ERROR = 2

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazytool",
        description="Extract show title, season and episode numbers from video file paths.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"YAML pattern file (defaults to ${CONFIG_ENV} when set)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None, help="Explicit log level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Extract episode metadata from one or more paths")
    parse_cmd.add_argument("paths", nargs="+", help="Full paths of video files")
    parse_cmd.add_argument("--json", action="store_true", help="Print one JSON object per path")
    parse_cmd.add_argument("--trace", action="store_true", help="Log every pattern attempt")

    subparsers.add_parser("patterns", help="List the patterns in precedence order")

    timestamp_cmd = subparsers.add_parser("timestamp", help="Print the current or a converted Unix timestamp")
    timestamp_cmd.add_argument("value", nargs="?", help="Time text to convert, e.g. '2025-01-15 18:16:13'")
    timestamp_cmd.add_argument("--format", dest="time_format", default=DEFAULT_TIME_FORMAT, help="strftime format")
    timestamp_cmd.add_argument("--tz", default=None, help="IANA timezone name, e.g. Asia/Shanghai")

    return parser


def resolve_log_level(args: argparse.Namespace) -> int:
    if args.log_level:
        return getattr(logging, args.log_level)
    if args.verbose or env_bool(VERBOSE_ENV):
        return logging.DEBUG
    return logging.INFO


def resolve_config(config_path: Optional[Path]) -> AppConfig:
    path = config_path or env_path(CONFIG_ENV)
    if path is None:
        return AppConfig()
    path = expand_user(path)
    LOGGER.debug("Loading pattern file %s", path)
    return load_pattern_file(path)


def _record_payload(raw_path: str, record: Optional[EpisodeRecord], pattern: Optional[str]) -> dict[str, Any]:
    payload: dict[str, Any] = {"path": raw_path, "matched": record is not None, "pattern": pattern}
    if record is not None:
        payload.update(record.as_dict())
    return payload


def _number_cell(value: Optional[int]) -> Text:
    if value is None:
        return Text("-", style="dim")
    return Text(str(value))


def _log_trace(trace: dict[str, Any]) -> None:
    attempts = [f"{attempt['pattern']}: {attempt['status']}" for attempt in trace.get("attempts", [])]
    LOGGER.info(render_section_block(f"Pattern Trace: {trace.get('path', '')}", [("Attempts", attempts)]))


def run_parse(args: argparse.Namespace, config: AppConfig, console: Console) -> int:
    matchers = compile_patterns(config.patterns())
    exit_code = EXIT_OK

    table = Table(title="Episode Extraction", show_lines=False)
    table.add_column("Path", overflow="fold")
    table.add_column("Title", style="bold")
    table.add_column("Season", justify="right")
    table.add_column("Episode", justify="right")
    table.add_column("Pattern", style="cyan", no_wrap=True)

    for raw_path in args.paths:
        trace: dict[str, Any] = {}
        try:
            record = extract_episode_with(raw_path, matchers, trace=trace)
        except PathEncodingError as exc:
            LOGGER.error("%s", exc)
            exit_code = EXIT_ERROR
            continue

        if args.trace:
            _log_trace(trace)

        pattern = trace.get("matched_pattern")
        if record is None and exit_code == EXIT_OK:
            exit_code = EXIT_UNMATCHED

        if args.json:
            payload = _record_payload(raw_path, record, pattern)
            console.print(
                json.dumps(payload, ensure_ascii=False),
                markup=False,
                highlight=False,
                emoji=False,
                soft_wrap=True,
            )
            continue

        if record is None:
            table.add_row(Text(raw_path), Text("no match", style="yellow"), Text(""), Text(""), Text(""))
        else:
            table.add_row(
                Text(raw_path),
                Text(record.title or "-"),
                _number_cell(record.season),
                _number_cell(record.episode),
                Text(pattern or ""),
            )

    if not args.json and table.row_count:
        console.print(table)
    return exit_code


def run_patterns(config: AppConfig, console: Console) -> int:
    table = Table(title="Episode Patterns (first match wins)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Regex", overflow="fold")
    table.add_column("Fields", style="cyan", no_wrap=True)
    table.add_column("Example", overflow="fold")

    for position, spec in enumerate(config.patterns(), start=1):
        table.add_row(
            str(position),
            Text(spec.name or "-"),
            Text(spec.regex),
            Text(spec.fields.describe()),
            Text(spec.description or ""),
        )

    console.print(table)
    return EXIT_OK


def run_timestamp(args: argparse.Namespace, console: Console) -> int:
    if args.value is None:
        value = current_timestamp()
    else:
        value = to_timestamp(args.value, args.time_format, args.tz)
    console.print(str(value), markup=False, highlight=False)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None, *, console: Optional[Console] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(resolve_log_level(args))
    console = console or Console()

    try:
        if args.command == "timestamp":
            return run_timestamp(args, console)

        config = resolve_config(args.config)
        if args.command == "patterns":
            return run_patterns(config, console)
        return run_parse(args, config, console)
    except LazytoolError as exc:
        LOGGER.error("%s", exc)
        return EXIT_ERROR


if __name__ == "__main__":
    import sys

    sys.exit(main())
