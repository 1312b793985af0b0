"""Tests for log.py: timestamped output, GA formatting, sinks."""

import logging
import re

import pytest


def test_info(capsys):
    from command_utils.log import info

    info("test message")
    out = capsys.readouterr().out
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] test message\n", out)


def test_header(capsys):
    from command_utils.log import header

    header("build")
    out = capsys.readouterr().out
    assert "── build " in out
    assert "─" in out


def test_footer(capsys):
    from command_utils.log import footer

    footer("complete")
    out = capsys.readouterr().out
    assert "── complete " in out


def test_github_actions_header(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    from command_utils.log import header

    header("build")
    out = capsys.readouterr().out
    assert "::group::build" in out


def test_github_actions_footer(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    from command_utils.log import footer

    footer("done")
    out = capsys.readouterr().out
    assert "::endgroup::" in out


def test_error(capsys):
    from command_utils.log import error

    error("something broke")
    err = capsys.readouterr().err
    assert "ERROR: something broke" in err


def test_github_actions_error(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    from command_utils.log import error

    error("job failed")
    out = capsys.readouterr().out
    assert "::error::job failed" in out


def test_warning(capsys, monkeypatch):
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    from command_utils.log import warning

    warning("careful")
    captured = capsys.readouterr()
    assert "WARNING: careful" in captured.err
    assert captured.out == ""


def test_github_actions_warning(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    from command_utils.log import warning

    warning("careful")
    assert "::warning::careful" in capsys.readouterr().out


def test_debug_hidden_by_default(capsys, monkeypatch):
    monkeypatch.delenv("COMMAND_UTILS_DEBUG", raising=False)
    from command_utils.log import debug

    debug("noisy")
    assert capsys.readouterr().err == ""


def test_debug_enabled(capsys, monkeypatch):
    monkeypatch.setenv("COMMAND_UTILS_DEBUG", "1")
    from command_utils.log import debug

    debug("noisy")
    assert "DEBUG: noisy" in capsys.readouterr().err


def test_emit_routes_by_level(capsys):
    from command_utils.log import emit

    emit("info", "to stdout")
    emit("error", "to stderr")
    captured = capsys.readouterr()
    assert "to stdout" in captured.out
    assert "ERROR: to stderr" in captured.err


def test_emit_unknown_level():
    from command_utils.log import emit

    with pytest.raises(ValueError, match="unknown log level"):
        emit("fatal", "x")


def test_logger_sink(caplog):
    from command_utils.log import logger_sink

    sink = logger_sink(logging.getLogger("command_utils.test"))
    with caplog.at_level(logging.DEBUG, logger="command_utils.test"):
        sink("warning", "from child")
    assert caplog.records[0].levelname == "WARNING"
    assert caplog.records[0].getMessage() == "from child"
