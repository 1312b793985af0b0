"""Reassemble complete lines from arbitrarily chunked text."""

from collections.abc import Callable

TERMINATOR = "\n"


class LineBuffer:
    """Buffers writes, and calls sink once per complete line.

    Lines are delivered without their terminator, prefixed with ``prefix``.
    Whatever follows the last terminator stays pending until more data or
    flush() arrives.
    """

    def __init__(self, sink: Callable[[str], None], prefix: str = ""):
        self.sink = sink
        self.prefix = prefix
        self._parts: list[str] = []

    @property
    def pending(self) -> str:
        return "".join(self._parts)

    def feed(self, chunk: str) -> None:
        # Only the new chunk is scanned; earlier fragments hold no terminator.
        if TERMINATOR not in chunk:
            if chunk:
                self._parts.append(chunk)
            return
        lines = chunk.split(TERMINATOR)
        lines[0] = self.pending + lines[0]
        # Empty when the chunk ended on a terminator.
        tail = lines.pop()
        self._parts = [tail] if tail else []
        for line in lines:
            self.sink(self.prefix + line)

    def flush(self) -> None:
        if not self._parts:
            return
        line = self.pending
        self._parts = []
        self.sink(self.prefix + line)
