from __future__ import annotations

import argparse
import json
import logging
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from lazytool import cli


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr("lazytool.cli.configure_logging", lambda *args, **kwargs: None)
    monkeypatch.delenv(cli.CONFIG_ENV, raising=False)
    monkeypatch.delenv(cli.VERBOSE_ENV, raising=False)


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, force_terminal=False, width=200), buffer


def _json_lines(buffer: StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]


def test_parse_json_reports_each_path() -> None:
    """--json prints one object per path, matched or not."""
    console, buffer = _console()

    exit_code = cli.main(["parse", "--json", "/a/ShowS01E02.mp4", "/电影/阿凡达.2009.01201.mp4"], console=console)

    assert exit_code == cli.EXIT_OK
    assert _json_lines(buffer) == [
        {"path": "/a/ShowS01E02.mp4", "matched": True, "pattern": "sxxexx", "title": "Show", "season": 1, "episode": 2},
        {
            "path": "/电影/阿凡达.2009.01201.mp4",
            "matched": True,
            "pattern": "dotted-year-serial",
            "title": "阿凡达",
            "season": 2009,
            "episode": 1201,
        },
    ]


def test_parse_flags_unmatched_paths() -> None:
    """Any unmatched path turns the exit code to 1."""
    console, buffer = _console()

    exit_code = cli.main(["parse", "--json", "/a/ShowS01E02.mp4", "/a/random.mkv"], console=console)

    assert exit_code == cli.EXIT_UNMATCHED
    assert _json_lines(buffer)[1] == {"path": "/a/random.mkv", "matched": False, "pattern": None}


def test_parse_renders_table() -> None:
    console, buffer = _console()

    exit_code = cli.main(["parse", "/tv/[Group] Show 2019 WEB/Show.E12.mkv"], console=console)

    output = buffer.getvalue()
    assert exit_code == cli.EXIT_OK
    assert "Episode Extraction" in output
    assert "[Group] Show" in output
    assert "release-group" in output


def test_parse_trace_logs_attempts(caplog) -> None:
    console, _ = _console()

    with caplog.at_level(logging.INFO, logger="lazytool.cli"):
        cli.main(["parse", "--trace", "--json", "/a/ShowS01E02.mp4"], console=console)

    assert "Pattern Trace: /a/ShowS01E02.mp4" in caplog.text
    assert "season-folder-numbered: no-match" in caplog.text
    assert "sxxexx: matched" in caplog.text


def test_parse_reports_unencodable_paths(caplog) -> None:
    """Paths with no text form are logged and exit with 2."""
    console, buffer = _console()

    with caplog.at_level(logging.ERROR, logger="lazytool.cli"):
        exit_code = cli.main(["parse", "--json", "/a/Show\udcffS01E02.mp4", "/a/ShowS01E02.mp4"], console=console)

    assert exit_code == cli.EXIT_ERROR
    assert "not representable as text" in caplog.text
    assert [line["path"] for line in _json_lines(buffer)] == ["/a/ShowS01E02.mp4"]


def _write_config(path: Path) -> Path:
    path.write_text(
        """
builtin_patterns: before
patterns:
  - name: dashed
    regex: '^<parent>/([^/]+) - (\\d+)x(\\d+)\\.<ext>$'
    fields: {title: 2, season: 3, episode: 4}
""",
        encoding="utf-8",
    )
    return path


def test_parse_uses_config_file(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "patterns.yaml")
    console, buffer = _console()

    exit_code = cli.main(["--config", str(config_path), "parse", "--json", "/tv/Show - 2x05.mkv"], console=console)

    assert exit_code == cli.EXIT_OK
    assert _json_lines(buffer)[0]["pattern"] == "dashed"


def test_config_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    """LAZYTOOL_CONFIG is used when --config is absent."""
    config_path = _write_config(tmp_path / "patterns.yaml")
    monkeypatch.setenv(cli.CONFIG_ENV, str(config_path))
    console, buffer = _console()

    assert cli.main(["patterns"], console=console) == cli.EXIT_OK

    output = buffer.getvalue()
    assert "dashed" in output
    assert output.index("sxxexx") < output.index("dashed")


def test_broken_config_exits_with_error(tmp_path: Path) -> None:
    config_path = tmp_path / "patterns.yaml"
    config_path.write_text("patterns:\n  - regex: '(a'\n    fields: {title: 1, episode: 1}\n", encoding="utf-8")
    console, _ = _console()

    assert cli.main(["--config", str(config_path), "parse", "/a/x.mkv"], console=console) == cli.EXIT_ERROR


def test_patterns_lists_builtins_in_order() -> None:
    """The patterns table follows precedence order."""
    console, buffer = _console()

    assert cli.main(["patterns"], console=console) == cli.EXIT_OK

    output = buffer.getvalue()
    names = [
        "season-folder-numbered",
        "sxxexx",
        "season-subfolder",
        "release-group",
        "dotted-year-serial",
        "resolution-folder-episode-count",
    ]
    positions = [output.index(name) for name in names]
    assert positions == sorted(positions)
    assert "season=default(1)" in output


def test_timestamp_converts_text() -> None:
    console, buffer = _console()

    exit_code = cli.main(["timestamp", "2025-01-15 18:16:13", "--tz", "Asia/Shanghai"], console=console)

    assert exit_code == cli.EXIT_OK
    assert buffer.getvalue().strip() == "1736936173"


def test_timestamp_without_value_prints_now(monkeypatch) -> None:
    monkeypatch.setattr("lazytool.cli.current_timestamp", lambda: 1736838663)
    console, buffer = _console()

    assert cli.main(["timestamp"], console=console) == cli.EXIT_OK
    assert buffer.getvalue().strip() == "1736838663"


def test_timestamp_parse_error_exits_with_error() -> None:
    console, _ = _console()

    assert cli.main(["timestamp", "yesterday"], console=console) == cli.EXIT_ERROR


class TestResolveLogLevel:
    def _args(self, **overrides) -> argparse.Namespace:
        defaults = {"log_level": None, "verbose": False}
        defaults.update(overrides)
        return argparse.Namespace(**defaults)

    def test_defaults_to_info(self) -> None:
        assert cli.resolve_log_level(self._args()) == logging.INFO

    def test_verbose_flag_and_env(self, monkeypatch) -> None:
        assert cli.resolve_log_level(self._args(verbose=True)) == logging.DEBUG
        monkeypatch.setenv(cli.VERBOSE_ENV, "1")
        assert cli.resolve_log_level(self._args()) == logging.DEBUG

    def test_explicit_level_wins(self) -> None:
        """--log-level overrides --verbose."""
        assert cli.resolve_log_level(self._args(verbose=True, log_level="WARNING")) == logging.WARNING
