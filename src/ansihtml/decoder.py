"""Escape-sequence decoder sitting below the stream.

Plain bytes are written to whichever sink the caller passes in; escape
sequences are held back until complete and never reach a sink. ``ESC[...m``
is turned into ``Processor`` callbacks, other CSI and OSC sequences are
dropped, and anything that turns out not to be a valid sequence is released
as plain data.

The decoder keeps no reference to a sink, so switching sinks between bytes
(output gating) cannot disturb a half-read sequence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import (
    ATTRIBUTE_CODES,
    BACKGROUND_RANGES,
    BEL,
    CSI_FINAL_BYTES,
    CSI_INTERMEDIATE_BYTES,
    CSI_INTRODUCER,
    CSI_PARAMETER_BYTES,
    ESC,
    EXT_COLOR_INDEXED,
    EXT_COLOR_RGB,
    FOREGROUND_RANGES,
    MAX_CSI_LENGTH,
    OSC_INTRODUCER,
    SGR_BACKGROUND_DEFAULT,
    SGR_BACKGROUND_EXT,
    SGR_FINAL,
    SGR_FOREGROUND_DEFAULT,
    SGR_FOREGROUND_EXT,
    SGR_RESET,
    STRING_TERMINATOR,
)

if TYPE_CHECKING:
    from .processor import Processor

_SINGLE_BYTES = [bytes((value,)) for value in range(256)]
_MAX_OSC_LENGTH = 4096
_PRIVATE_PARAMETER_PREFIXES = frozenset(b"<=>?")


class AnsiDecoder:
    GROUND = 0
    ESCAPE = 1
    CSI = 2
    OSC = 3
    OSC_ESCAPE = 4

    __slots__ = ("processor", "sequence", "state")

    def __init__(self, processor: Processor):
        self.processor = processor
        self.state = self.GROUND
        self.sequence = bytearray()

    def pending(self) -> bytes:
        """Bytes of an escape sequence that has started but not finished."""
        return bytes(self.sequence)

    def flush_pending(self, sink) -> None:
        data = bytes(self.sequence)
        self._reset()
        if data:
            sink.write(data)

    def feed(self, byte: int, sink) -> None:
        state = self.state

        if state == self.GROUND:
            if byte == ESC:
                self.sequence.append(byte)
                self.state = self.ESCAPE
            else:
                sink.write(_SINGLE_BYTES[byte])
            return

        if state == self.ESCAPE:
            if byte == CSI_INTRODUCER:
                self.sequence.append(byte)
                self.state = self.CSI
            elif byte == OSC_INTRODUCER:
                self.sequence.append(byte)
                self.state = self.OSC
            else:
                self._abort(byte, sink)
            return

        if state == self.CSI:
            if byte in CSI_PARAMETER_BYTES or byte in CSI_INTERMEDIATE_BYTES:
                if len(self.sequence) >= MAX_CSI_LENGTH:
                    self._abort(byte, sink)
                else:
                    self.sequence.append(byte)
            elif byte in CSI_FINAL_BYTES:
                body = bytes(self.sequence[2:])
                self._reset()
                if byte == SGR_FINAL:
                    self._dispatch_sgr(body)
            else:
                self._abort(byte, sink)
            return

        if state == self.OSC:
            if byte == BEL:
                self._reset()
            elif byte == ESC:
                self.sequence.append(byte)
                self.state = self.OSC_ESCAPE
            elif len(self.sequence) >= _MAX_OSC_LENGTH:
                self._abort(byte, sink)
            else:
                self.sequence.append(byte)
            return

        if state == self.OSC_ESCAPE:
            if byte == STRING_TERMINATOR:
                self._reset()
            else:
                # ESC cancels the string and begins a new sequence.
                self._reset()
                self.sequence.append(ESC)
                self.state = self.ESCAPE
                self.feed(byte, sink)
            return

        raise RuntimeError(f"Decoder state {state} should not be reached")

    def _reset(self) -> None:
        self.sequence.clear()
        self.state = self.GROUND

    def _abort(self, byte: int, sink) -> None:
        """Release the held bytes as data; ``byte`` is reconsidered from GROUND."""
        data = bytes(self.sequence)
        self._reset()
        sink.write(data)
        self.feed(byte, sink)

    # --- SGR ---
    def _dispatch_sgr(self, body: bytes) -> None:
        if body and body[0] in _PRIVATE_PARAMETER_PREFIXES:
            return
        params = _parse_params(body)
        if params is None:
            return

        processor = self.processor
        count = len(params)
        index = 0
        while index < count:
            code = params[index]
            if code == SGR_RESET:
                processor.attribute_reset()
            elif code == SGR_FOREGROUND_EXT or code == SGR_BACKGROUND_EXT:
                index += self._dispatch_extended(code, params, index)
            elif code == SGR_FOREGROUND_DEFAULT:
                processor.default_foreground()
            elif code == SGR_BACKGROUND_DEFAULT:
                processor.default_background()
            elif code in ATTRIBUTE_CODES:
                processor.set_attribute(code)
            else:
                for base, bright in FOREGROUND_RANGES:
                    if base <= code <= base + 7:
                        processor.set_foreground_color(code - base, bright)
                        break
                else:
                    for base, bright in BACKGROUND_RANGES:
                        if base <= code <= base + 7:
                            processor.set_background_color(code - base, bright)
                            break
            index += 1

    def _dispatch_extended(self, code, params, index) -> int:
        """Handle ``38;5;n``/``38;2;r;g;b`` (and 48). Returns extra params consumed."""
        foreground = code == SGR_FOREGROUND_EXT
        remaining = len(params) - index - 1
        if remaining >= 2 and params[index + 1] == EXT_COLOR_INDEXED:
            value = params[index + 2]
            if 0 <= value <= 255:
                if foreground:
                    self.processor.set_foreground_color_ext(value)
                else:
                    self.processor.set_background_color_ext(value)
            return 2
        if remaining >= 4 and params[index + 1] == EXT_COLOR_RGB:
            r, g, b = params[index + 2 : index + 5]
            if all(0 <= channel <= 255 for channel in (r, g, b)):
                if foreground:
                    self.processor.set_foreground_rgb(r, g, b)
                else:
                    self.processor.set_background_rgb(r, g, b)
            return 4
        # Malformed extended color: the rest of the sequence is unusable.
        return remaining


def _parse_params(body: bytes) -> list[int] | None:
    """Split an SGR body on ``;``/``:``. Empty fields count as 0."""
    if not body:
        return [SGR_RESET]
    params = []
    for field in body.replace(b":", b";").split(b";"):
        if not field:
            params.append(0)
        elif field.isdigit():
            params.append(int(field))
        else:
            return None
    return params
