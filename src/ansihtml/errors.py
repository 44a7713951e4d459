"""Exceptions raised by the stream and its collaborators.

Sink failures are not wrapped: whatever the sink raises (usually ``OSError``)
reaches the caller of ``write``/``consume``/``close`` unchanged.
"""

from __future__ import annotations


class TranscoderError(Exception):
    """Base class for errors raised by ansihtml itself."""


class InvalidModeError(TranscoderError, RuntimeError):
    """Dispatch reached a mode with no handler. Always a programming error."""

    def __init__(self, mode: object) -> None:
        self.mode = mode
        super().__init__(f"Mode {mode} should not be reached")


class StreamClosedError(TranscoderError, ValueError):
    """An operation was attempted on a stream that was already closed."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} on closed stream")
