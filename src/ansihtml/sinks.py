"""Byte sinks the router can write to.

A real sink is any object with ``write(bytes)``; ``flush()`` and ``close()``
are used when present. ``NullSink`` is the discard target selected while the
gating policy says output is disabled.
"""

from __future__ import annotations


class NullSink:
    """Accepts and drops everything. Stateless and never raises."""

    __slots__ = ()

    def write(self, data) -> int:
        return len(data)

    def flush(self) -> None:
        return None

    def close(self) -> None:
        return None

    @property
    def closed(self) -> bool:
        return False

    def __repr__(self):
        return "NullSink()"


NULL_SINK = NullSink()


class BufferSink:
    """Collects written bytes in memory.

    Every ``write`` call is kept as its own block in ``writes`` so callers
    can check that markers arrive as a single write.
    """

    __slots__ = ("_buffer", "closed", "writes")

    def __init__(self):
        self._buffer = bytearray()
        self.writes: list[bytes] = []
        self.closed = False

    def write(self, data) -> int:
        if self.closed:
            raise ValueError("write to closed BufferSink")
        block = bytes(data)
        self._buffer += block
        self.writes.append(block)
        return len(block)

    def flush(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self):
        return len(self._buffer)

    def __repr__(self):
        return f"BufferSink({bytes(self._buffer)!r})"
