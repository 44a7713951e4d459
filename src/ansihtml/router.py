"""Per-write routing between the real sink and the discard sink."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .sinks import NULL_SINK

if TYPE_CHECKING:
    from collections.abc import Callable

    from .decoder import AnsiDecoder


class OutputRouter:
    """Selects a sink for every write by asking the gating policy.

    The selection is never cached: a policy change is honored on the very
    next byte, including bytes replayed from a rejected marker.
    """

    __slots__ = ("decoder", "policy", "sink")

    def __init__(self, sink, policy: Callable[[], bool], decoder: AnsiDecoder):
        self.sink = sink
        self.policy = policy
        self.decoder = decoder

    def select(self):
        return self.sink if self.policy() else NULL_SINK

    def route_data(self, byte: int) -> None:
        """Forward one data byte through the escape decoder."""
        self.decoder.feed(byte, self.select())

    def route_block(self, data: bytes) -> None:
        """Write a block straight to the selected sink, bypassing the decoder."""
        self.select().write(data)

    def route_pending(self) -> None:
        """Release any escape bytes the decoder is still holding, as data."""
        if self.decoder.pending():
            self.decoder.flush_pending(self.select())
