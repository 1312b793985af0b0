"""Readiness-driven drain of several pipe read ends."""

import os
import selectors
from collections.abc import Iterator

STDOUT = "stdout"
STDERR = "stderr"


class StreamMultiplexer:
    """Yield (label, chunk) from whichever descriptor is ready until all hit EOF.

    Owns the registered descriptors: each is closed exactly once, either on
    EOF or by close().
    """

    def __init__(self):
        self._selector = selectors.DefaultSelector()
        self._open: dict[int, str] = {}

    def add(self, fd: int, label: str) -> None:
        os.set_blocking(fd, False)
        self._selector.register(fd, selectors.EVENT_READ, label)
        self._open[fd] = label

    @property
    def open_labels(self) -> list[str]:
        return list(self._open.values())

    def __iter__(self) -> Iterator[tuple[str, bytes]]:
        while self._open:
            for key, _ in self._selector.select():
                yield from self._drain(key.fd, key.data)

    def _drain(self, fd: int, label: str) -> Iterator[tuple[str, bytes]]:
        size = os.fstat(fd).st_blksize
        while fd in self._open:
            try:
                chunk = os.read(fd, size)
            except BlockingIOError:
                return
            if not chunk:
                self._release(fd)
                return
            yield label, chunk

    def _release(self, fd: int) -> None:
        self._selector.unregister(fd)
        del self._open[fd]
        os.close(fd)

    def close(self) -> None:
        for fd in list(self._open):
            self._release(fd)
        self._selector.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
