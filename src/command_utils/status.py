"""Wait status → typed outcome."""

import os
from dataclasses import dataclass

from command_utils.errors import NonZeroExit, Signaled, StatusError, Stopped, Unknown


@dataclass(frozen=True)
class Success:
    status: int
    command: object

    exit_code = 0


ExitOutcome = Success | StatusError


def _describe(message: str, status: int, command) -> str:
    return f"{message} (status={status}, command={command!r})"


def classify(status: int, command, pid: int | None = None) -> ExitOutcome:
    """Classify a raw status as returned by os.waitpid().

    Returns the error instance for failures instead of raising it; see check().
    """
    if os.WIFEXITED(status):
        code = os.WEXITSTATUS(status)
        if code == 0:
            return Success(status=status, command=command)
        message = _describe(f"Command exited with {code}.", status, command)
        return NonZeroExit(message, status, command, code=code)

    if os.WIFSIGNALED(status):
        sig = os.WTERMSIG(status)
        coredump = os.WCOREDUMP(status)
        message = f"Command was signaled with {sig}."
        if coredump:
            message += " Core dump generated."
        return Signaled(_describe(message, status, command), status, command, signal=sig, coredump=coredump)

    if os.WIFSTOPPED(status):
        sig = os.WSTOPSIG(status)
        message = _describe(f"Command was stopped with signal {sig}, PID={pid}.", status, command)
        return Stopped(message, status, command, signal=sig, pid=pid)

    return Unknown(_describe("Unknown return status.", status, command), status, command)


def check(outcome: ExitOutcome) -> None:
    """Raise the outcome if it is a failure."""
    if isinstance(outcome, StatusError):
        raise outcome
