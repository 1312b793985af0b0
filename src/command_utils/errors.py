"""Error taxonomy for command execution."""

import signal


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


class CommandError(RuntimeError):
    """Base class for every failure running a command."""

    exit_code = 1


class SpawnError(CommandError):
    """The child process could not be created."""

    exit_code = 127

    def __init__(self, message: str, command, errno: int | None = None):
        super().__init__(message)
        self.command = command
        self.errno = errno


class StatusError(CommandError):
    """Parent class for all status errors.

    Carries the raw wait status and the command as it was spawned.
    """

    def __init__(self, message: str, status: int, command):
        super().__init__(message)
        self.status = status
        self.command = command
        self.stdout: bytes | None = None
        self.stderr: bytes | None = None


class NonZeroExit(StatusError):
    """Raised when process exited with non zero status."""

    def __init__(self, message: str, status: int, command, code: int):
        super().__init__(message, status, command)
        self.code = code

    @property
    def exit_code(self) -> int:
        return self.code


class Signaled(StatusError):
    """Raised when process was killed by a signal."""

    def __init__(self, message: str, status: int, command, signal: int, coredump: bool = False):
        super().__init__(message, status, command)
        self.signal = signal
        self.coredump = coredump

    @property
    def signal_name(self) -> str:
        return _signal_name(self.signal)

    @property
    def exit_code(self) -> int:
        return 128 + self.signal


class Stopped(StatusError):
    """Raised when process was stopped by job control."""

    def __init__(self, message: str, status: int, command, signal: int, pid: int | None = None):
        super().__init__(message, status, command)
        self.signal = signal
        self.pid = pid

    @property
    def signal_name(self) -> str:
        return _signal_name(self.signal)

    @property
    def exit_code(self) -> int:
        return 128 + self.signal


class Unknown(StatusError):
    """Raised when process exited with unknown status."""
