"""Process spawning + output streaming: the single process seam."""

import codecs
import os
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import closing
from dataclasses import dataclass
from functools import partial

from command_utils import log, status
from command_utils.errors import SpawnError, StatusError
from command_utils.line_buffer import LineBuffer
from command_utils.multiplexer import STDERR, STDOUT, StreamMultiplexer

SHELL = "/bin/sh"
FD_DIRS = ("/proc/self/fd", "/dev/fd")


def _inheritable_fds() -> list[int]:
    """Descriptors above stderr that would survive exec in the child."""
    for path in FD_DIRS:
        try:
            candidates = [int(name) for name in os.listdir(path)]
            break
        except OSError:
            continue
    else:
        candidates = range(3, os.sysconf("SC_OPEN_MAX"))

    fds = []
    for fd in candidates:
        if fd < 3:
            continue
        try:
            if os.get_inheritable(fd):
                fds.append(fd)
        except OSError:
            # Closed since listing, e.g. the listdir handle itself.
            continue
    return fds


def _close_others_actions() -> list[tuple]:
    """posix_spawn file actions closing every descriptor from 3 up in the child."""
    if hasattr(os, "POSIX_SPAWN_CLOSEFROM"):
        return [(os.POSIX_SPAWN_CLOSEFROM, 3)]
    # Non-inheritable descriptors are closed by exec already.
    return [(os.POSIX_SPAWN_CLOSE, fd) for fd in _inheritable_fds()]


@dataclass
class Result:
    outcome: status.ExitOutcome
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, status.Success)


@dataclass(frozen=True)
class LoggerOptions:
    sink: log.Sink = log.emit
    stdout_level: str = "info"
    stderr_level: str = "error"
    stdout_prefix: str = ""
    stderr_prefix: str = ""


class ProcessRunner:
    """Run an external command, observing its output as it is produced.

    ``command`` is either a single string, run through /bin/sh, or a sequence
    of arguments executed directly. ``env`` is merged over the inherited
    environment.
    """

    def __init__(self, command: str | Sequence[str], env: Mapping[str, str] | None = None):
        if isinstance(command, str):
            self.command = command
        else:
            self.command = tuple(command)
        if not self.command:
            raise ValueError("empty command")
        self.env = dict(env) if env is not None else None
        self.pid: int | None = None
        self.outcome: status.ExitOutcome | None = None

    def _argv(self) -> list[str]:
        if isinstance(self.command, str):
            return [SHELL, "-c", self.command]
        return list(self.command)

    def _environ(self) -> Mapping[str, str]:
        if self.env is None:
            return os.environ
        return {**os.environ, **self.env}

    def _spawn(self) -> StreamMultiplexer:
        """Start the child with stdin closed and stdout/stderr on fresh pipes."""
        stdout_read, stdout_write = os.pipe()
        stderr_read, stderr_write = os.pipe()
        try:
            argv = self._argv()
            file_actions = [
                (os.POSIX_SPAWN_CLOSE, 0),
                (os.POSIX_SPAWN_DUP2, stdout_write, 1),
                (os.POSIX_SPAWN_DUP2, stderr_write, 2),
            ]
            file_actions.extend(_close_others_actions())
            self.pid = os.posix_spawnp(argv[0], argv, self._environ(), file_actions=file_actions)
        except BaseException as e:
            for fd in (stdout_read, stdout_write, stderr_read, stderr_write):
                os.close(fd)
            if isinstance(e, OSError):
                raise SpawnError(
                    f"Could not spawn {self.command!r}: {e.strerror}", self.command, errno=e.errno
                ) from e
            raise

        # The child owns the write ends now; EOF is never seen while we hold them.
        os.close(stdout_write)
        os.close(stderr_write)
        log.debug(f"spawned pid={self.pid} command={self.command!r}")

        mux = StreamMultiplexer()
        mux.add(stdout_read, STDOUT)
        mux.add(stderr_read, STDERR)
        return mux

    def _wait(self) -> status.ExitOutcome:
        _, raw = os.waitpid(self.pid, 0)
        self.outcome = status.classify(raw, self.command, self.pid)
        log.debug(f"pid={self.pid} finished with status={raw}")
        return self.outcome

    def _stream(self) -> Iterator[tuple[str, bytes]]:
        self.outcome = None
        mux = self._spawn()
        try:
            yield from mux
        finally:
            mux.close()
            self._wait()

    def events(self) -> Iterator[tuple[str, bytes]]:
        """Yield (stream, chunk) as output arrives, then raise on failure.

        Closing the generator early still waits for the child; the outcome is
        then only recorded on ``self.outcome``.
        """
        yield from self._stream()
        status.check(self.outcome)

    def each_output(self, callback: Callable[[str, bytes], None]) -> None:
        """Call callback(stream, chunk) each time output is available (not line buffered)."""
        with closing(self._stream()) as stream:
            for name, chunk in stream:
                callback(name, chunk)
        status.check(self.outcome)

    def each_line(
        self,
        callback: Callable[[str, str], None],
        encoding: str = "utf-8",
        stdout_prefix: str = "",
        stderr_prefix: str = "",
    ) -> None:
        """Call callback(stream, line) for each complete line, terminator stripped."""
        prefixes = {STDOUT: stdout_prefix, STDERR: stderr_prefix}
        decoders = {}
        buffers = {}
        for name in (STDOUT, STDERR):
            decoders[name] = codecs.getincrementaldecoder(encoding)(errors="replace")
            buffers[name] = LineBuffer(partial(callback, name), prefixes[name])

        with closing(self._stream()) as stream:
            for name, chunk in stream:
                buffers[name].feed(decoders[name].decode(chunk))

        for name in (STDOUT, STDERR):
            buffers[name].feed(decoders[name].decode(b"", final=True))
            buffers[name].flush()
        status.check(self.outcome)

    def logger_exec(self, options: LoggerOptions) -> None:
        """Log each output line through options.sink at the stream's level."""
        levels = {STDOUT: options.stdout_level, STDERR: options.stderr_level}

        def _log(name: str, line: str) -> None:
            options.sink(levels[name], line)

        self.each_line(
            _log,
            stdout_prefix=options.stdout_prefix,
            stderr_prefix=options.stderr_prefix,
        )

    def capture(self, check: bool = True) -> Result:
        """Run to completion collecting both streams. Raises on failure unless check=False."""
        chunks: dict[str, list[bytes]] = {STDOUT: [], STDERR: []}
        with closing(self._stream()) as stream:
            for name, chunk in stream:
                chunks[name].append(chunk)

        result = Result(
            outcome=self.outcome,
            stdout=b"".join(chunks[STDOUT]),
            stderr=b"".join(chunks[STDERR]),
        )
        if check and isinstance(result.outcome, StatusError):
            result.outcome.stdout = result.stdout
            result.outcome.stderr = result.stderr
            raise result.outcome
        return result


def each_output(
    command: str | Sequence[str],
    callback: Callable[[str, bytes], None],
    env: Mapping[str, str] | None = None,
) -> None:
    ProcessRunner(command, env).each_output(callback)


def each_line(
    command: str | Sequence[str],
    callback: Callable[[str, str], None],
    env: Mapping[str, str] | None = None,
    **kwargs,
) -> None:
    ProcessRunner(command, env).each_line(callback, **kwargs)


def logger_exec(
    command: str | Sequence[str],
    options: LoggerOptions,
    env: Mapping[str, str] | None = None,
) -> None:
    ProcessRunner(command, env).logger_exec(options)


def capture(
    command: str | Sequence[str],
    env: Mapping[str, str] | None = None,
    check: bool = True,
) -> Result:
    return ProcessRunner(command, env).capture(check=check)
