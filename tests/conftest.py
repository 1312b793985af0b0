"""Shared test fixtures."""

import pytest


@pytest.fixture
def sink():
    """A (level, message) sink recording every call."""
    calls = []

    def record(level, msg):
        calls.append((level, msg))

    record.calls = calls
    return record


@pytest.fixture
def mock_process(monkeypatch):
    """Mock process.logger_exec for CLI tests."""
    from command_utils import process

    calls = []
    errors = []

    def fake_logger_exec(command, options, env=None):
        calls.append((command, options, env))
        if errors:
            raise errors.pop(0)

    monkeypatch.setattr(process, "logger_exec", fake_logger_exec)

    return type("MockProcess", (), {"calls": calls, "errors": errors})()


@pytest.fixture
def count_waits(monkeypatch):
    """Count os.waitpid calls made by the runner."""
    from command_utils import process

    calls = []
    real_waitpid = process.os.waitpid

    def counting_waitpid(pid, options):
        calls.append(pid)
        return real_waitpid(pid, options)

    monkeypatch.setattr(process.os, "waitpid", counting_waitpid)
    return calls
