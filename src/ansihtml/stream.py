"""Byte stream that passes console notes through and feeds everything else
to the escape decoder.

``AnsiHtmlStream`` is the top of the pipeline. Each byte is dispatched on the
current ``Mode``:

- ``PASS_THROUGH``/``INSIDE_MARKED_REGION``: the byte either starts a marker
  candidate (handed to the recognizer) or is routed as data to the decoder.
- ``ACCUMULATING_*``: the recognizer alone decides what happens.

A rejected candidate gives its rejected byte back; ``consume`` loops on it
instead of recursing, so stack depth never depends on the input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import flags
from .constants import POSTAMBLE, PREAMBLE
from .decoder import AnsiDecoder
from .errors import InvalidModeError, StreamClosedError
from .markers import MarkerRecognizer, MarkerTable, MatchResult
from .modes import Mode
from .processor import Processor
from .router import OutputRouter

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


def _print_debug(message, indent=4):
    print(f"{' ' * indent}{message}")


class StreamOpts:
    __slots__ = ("close_sink", "debug", "flush_pending_on_close", "markers")

    def __init__(
        self,
        open_marker=PREAMBLE,
        close_marker=POSTAMBLE,
        *,
        close_sink=True,
        flush_pending_on_close=None,
        debug=False,
    ):
        self.markers = MarkerTable.console_notes(open_marker, close_marker)
        self.close_sink = bool(close_sink)
        if flush_pending_on_close is None:
            flush_pending_on_close = flags.REPLAY_PENDING_ON_CLOSE
        self.flush_pending_on_close = bool(flush_pending_on_close)
        self.debug = bool(debug)


class AnsiHtmlStream:
    """Write-only byte stream; see the module docstring for the dispatch rules.

    Args:
        sink: real destination, anything with ``write(bytes)``.
        processor: rendering collaborator; defaults to a no-op ``Processor``.
        tags_to_open: elements already open before the first byte, outermost first.
        opts: ``StreamOpts``; defaults to console-note markers.
        enabled: gating policy overriding ``processor.is_writing_enabled``.
        markers: a prebuilt ``MarkerTable`` overriding ``opts.markers``.
        debug_callback: receives ``(message, indent)`` when ``opts.debug`` is set.
    """

    __slots__ = (
        "_closed",
        "_closing",
        "_debug_callback",
        "_decoder",
        "_markers",
        "_mode",
        "_open_tags",
        "_processor",
        "_recognizer",
        "_router",
        "env_debug",
        "opts",
        "sink",
    )

    def __init__(
        self,
        sink,
        processor: Processor | None = None,
        *,
        tags_to_open: Iterable | None = None,
        opts: StreamOpts | None = None,
        enabled: Callable[[], bool] | None = None,
        markers: MarkerTable | None = None,
        debug_callback: Callable[[str, int], None] | None = None,
    ):
        self.opts = opts or StreamOpts()
        self.sink = sink
        self._processor = processor if processor is not None else Processor()
        self._markers = markers if markers is not None else self.opts.markers
        self._open_tags = list(tags_to_open or ())
        self._mode = Mode.UNINITIALIZED
        self._closed = False
        self._closing = False

        policy = enabled if enabled is not None else self._processor.is_writing_enabled
        self._decoder = AnsiDecoder(self._processor)
        self._router = OutputRouter(sink, policy, self._decoder)
        self._recognizer = MarkerRecognizer(self._router, self._set_mode)

        self.env_debug = self.opts.debug
        self._debug_callback = debug_callback or _print_debug

    # --- introspection ---
    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def processor(self) -> Processor:
        return self._processor

    @property
    def markers(self) -> MarkerTable:
        return self._markers

    @property
    def open_tags(self) -> list:
        """A copy of the open elements, outermost first."""
        return list(self._open_tags)

    def push_tag(self, tag) -> None:
        self._check_open("push_tag")
        self._open_tags.append(tag)

    def pop_tag(self):
        self._check_open("pop_tag")
        return self._open_tags.pop()

    def debug(self, message, indent=4):
        if self.env_debug:
            self._debug_callback(message, indent)

    # --- writing ---
    def write(self, data) -> int:
        """Consume ``data`` byte by byte. Returns the number of bytes consumed."""
        if isinstance(data, int):
            self.consume(data)
            return 1
        if not isinstance(data, (bytes, bytearray)):
            data = bytes(data)
        consume = self.consume
        for byte in data:
            consume(byte)
        return len(data)

    def consume(self, byte: int) -> None:
        self._check_open("consume")
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"byte must be in range(0, 256), got {byte!r}")
        if self._mode is Mode.UNINITIALIZED:
            self._start()

        pending = byte
        while pending is not None:
            pending = self._dispatch(pending)

    def emit(self, data) -> None:
        """Write a block (usually markup) through the gate, bypassing the decoder."""
        self._check_open("emit")
        if data:
            self._router.route_block(bytes(data))

    def flush(self) -> None:
        flush = getattr(self.sink, "flush", None)
        if flush is not None:
            flush()

    # --- dispatch ---
    def _dispatch(self, byte):
        """Handle one byte. Returns a byte to re-dispatch, or None."""
        mode = self._mode

        if mode is Mode.PASS_THROUGH or mode is Mode.INSIDE_MARKED_REGION:
            rule = self._markers.trigger(mode, byte)
            if rule is None:
                self._router.route_data(byte)
                return None
            if self.env_debug:
                self.debug(f"[marker:start] {rule.pattern.name} in {mode}")
            self._set_mode(rule.accumulating)
            self._recognizer.start(rule)
            return self._accumulate(byte)

        if self._markers.is_accumulating(mode):
            return self._accumulate(byte)

        raise InvalidModeError(mode)

    def _accumulate(self, byte):
        rule = self._markers.resuming(self._mode)
        matched = self._recognizer.cursor
        result = self._recognizer.accumulate(byte)

        if result is MatchResult.CONTINUE:
            return None

        # The recognizer has already moved the mode on.
        if result is MatchResult.MATCHED_FULLY:
            if self.env_debug:
                self.debug(f"[marker:match] {rule.pattern.name}")
            return None

        if self.env_debug:
            self.debug(f"[marker:mismatch] {rule.pattern.name} replay={matched}")
        # Mismatch: the prefix was replayed; the rejected byte starts over.
        return byte

    def _set_mode(self, mode: Mode) -> None:
        if self.env_debug:
            self.debug(f"[mode] {self._mode} -> {mode}", indent=2)
        self._mode = mode

    # --- lifecycle ---
    def _start(self) -> None:
        if self.env_debug:
            self.debug("[lifecycle:start]", indent=0)
        try:
            self._processor.init_tags()
        finally:
            self._set_mode(Mode.PASS_THROUGH)

    def _flush_pending(self) -> None:
        rule = self._recognizer.abandon()
        if rule is not None and self.env_debug:
            self.debug(f"[marker:abandon] {rule.pattern.name} at end of stream")
        self._router.route_pending()

    def close(self) -> None:
        """Finish the processor and release the sink. Safe to call twice."""
        if self._closed or self._closing:
            return
        self._closing = True
        try:
            try:
                if self._mode is Mode.UNINITIALIZED:
                    self._start()
                if self.opts.flush_pending_on_close:
                    self._flush_pending()
            finally:
                if self.env_debug:
                    self.debug("[lifecycle:close]", indent=0)
                self._processor.finish()
        finally:
            self._closed = True
            self._closing = False
            self._release_sink()

    def _release_sink(self) -> None:
        if self.opts.close_sink:
            close = getattr(self.sink, "close", None)
            if close is not None:
                close()
        else:
            self.flush()

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise StreamClosedError(operation)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        state = "closed" if self._closed else str(self._mode)
        return f"<AnsiHtmlStream {state} open_tags={len(self._open_tags)}>"
