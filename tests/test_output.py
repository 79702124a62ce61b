"""Tests for the output system.

Covers:
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- JSON rendering (compact and pretty)
- print_table in piped and terminal modes
- Logging configuration
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest

from cloudflare_cli import output as output_module
from cloudflare_cli.output import (
    OutputManager,
    _should_disable_color,
    configure_logging,
    dumps_json,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("cloudflare_cli.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("cloudflare_cli.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


# ------------------------------------------------------------------ #
# Color disabling
# ------------------------------------------------------------------ #


class TestColorDisabling:
    def test_no_color_env_disables_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert _should_disable_color() is True

    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_no_env_vars_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False

    def test_no_color_flag_prints_plain_on_tty(self, capsys, tty):
        OutputManager(no_color=True).error("plain [text]")
        assert capsys.readouterr().err == "Error: plain [text]\n"

    def test_no_color_table_is_plain_on_tty(self, capsys, tty):
        OutputManager(no_color=True).print_table(["A"], [["x"]])
        assert capsys.readouterr().out == "x\n"


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    """Data goes to stdout, diagnostics go to stderr."""

    def test_print_data_goes_to_stdout(self, capsys, non_tty):
        OutputManager(no_color=True).print_data("hello world")
        captured = capsys.readouterr()
        assert captured.out == "hello world\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("info", "some text"),
            ("success", "some text"),
            ("warning", "Warning: some text"),
            ("error", "Error: some text"),
            ("suggest", "→ some text"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capsys, non_tty, method, expected):
        mgr = OutputManager(no_color=True)
        getattr(mgr, method)("some text")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == expected + "\n"

    def test_rich_error_goes_to_stderr(self, capfd, non_tty):
        OutputManager().error("something [broke]")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "something [broke]" in captured.err


# ------------------------------------------------------------------ #
# Quiet mode
# ------------------------------------------------------------------ #


class TestQuietMode:
    @pytest.mark.parametrize("method", ["info", "success", "suggest"])
    def test_quiet_suppresses(self, capsys, non_tty, method):
        getattr(OutputManager(no_color=True, quiet=True), method)("hidden")
        assert capsys.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps(self, capsys, non_tty, method):
        getattr(OutputManager(no_color=True, quiet=True), method)("shown")
        assert "shown" in capsys.readouterr().err

    def test_quiet_does_not_suppress_data(self, capsys, non_tty):
        OutputManager(no_color=True, quiet=True).print_data("payload")
        assert capsys.readouterr().out == "payload\n"


# ------------------------------------------------------------------ #
# JSON
# ------------------------------------------------------------------ #


class TestJson:
    def test_compact(self):
        assert dumps_json({"a": [1, 2], "b": None}) == '{"a":[1,2],"b":null}'

    def test_pretty(self):
        assert dumps_json({"a": 1}, pretty=True) == '{\n  "a": 1\n}'

    def test_non_ascii_kept(self):
        assert dumps_json("zürich") == '"zürich"'

    def test_print_json(self, capsys, non_tty):
        OutputManager(no_color=True).print_json([{"id": "Z1"}])
        assert json.loads(capsys.readouterr().out) == [{"id": "Z1"}]


# ------------------------------------------------------------------ #
# Tables
# ------------------------------------------------------------------ #


class TestPrintTable:
    def test_piped_is_tab_separated(self, capsys, non_tty):
        OutputManager(no_color=True).print_table(
            ["Operation", "Method"], [["list", "GET"], ["create", "POST"]], title="Zones"
        )
        assert capsys.readouterr().out == "list\tGET\ncreate\tPOST\n"

    def test_terminal_renders_table(self, capfd, tty):
        OutputManager().print_table(["Operation", "Method"], [["list", "GET"]], title="Zones")
        out = capfd.readouterr().out
        assert "Operation" in out
        assert "list" in out
        assert "Zones" in out


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_default_level_is_warning(self):
        configure_logging()
        logger = logging.getLogger("cloudflare_cli")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_verbose_enables_debug(self):
        configure_logging(verbose=True)
        assert logging.getLogger("cloudflare_cli").level == logging.DEBUG

    def test_repeated_calls_do_not_stack_handlers(self):
        configure_logging()
        configure_logging(verbose=True)
        assert len(logging.getLogger("cloudflare_cli").handlers) == 1


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        mgr = get_output()
        assert isinstance(mgr, OutputManager)
        assert get_output() is mgr

    def test_set_output_replaces(self):
        mgr = OutputManager(quiet=True)
        set_output(mgr)
        assert get_output() is mgr

    def test_set_output_quiet_applies_to_helpers(self, capsys, non_tty):
        set_output(OutputManager(no_color=True, quiet=True))
        output_module.info("hidden")
        output_module.warning("shown")
        assert capsys.readouterr().err == "Warning: shown\n"

    def test_convenience_functions_delegate(self, capsys, non_tty):
        set_output(OutputManager(no_color=True))
        output_module.print_data("data")
        output_module.error("oops")
        captured = capsys.readouterr()
        assert captured.out == "data\n"
        assert captured.err == "Error: oops\n"
