"""Byte and SGR constants

This module defines the console-note marker bytes and the SGR code tables
shared by the decoder and the stream.

Usage:
    from ansihtml.constants import PREAMBLE, POSTAMBLE, ESC

References:
    - https://www.ecma-international.org/publications-and-standards/standards/ecma-48/
    - https://en.wikipedia.org/wiki/ANSI_escape_code#SGR
"""

# C0 controls that start or terminate escape sequences
ESC = 0x1B
BEL = 0x07
CSI_INTRODUCER = 0x5B  # "["
OSC_INTRODUCER = 0x5D  # "]"
STRING_TERMINATOR = 0x5C  # "\" after ESC

# Console notes are wrapped as ESC[8mha:<payload>ESC[0m. The preamble hides
# the payload on plain terminals; the postamble doubles as an SGR reset.
PREAMBLE = b"\x1b[8mha:"
POSTAMBLE = b"\x1b[0m"

# CSI byte classes (ECMA-48 5.4)
CSI_PARAMETER_BYTES = frozenset(range(0x30, 0x40))  # 0-9 : ; < = > ?
CSI_INTERMEDIATE_BYTES = frozenset(range(0x20, 0x30))
CSI_FINAL_BYTES = frozenset(range(0x40, 0x7F))
SGR_FINAL = 0x6D  # "m"

# Longest CSI body kept before the sequence is abandoned as data
MAX_CSI_LENGTH = 64

# SGR parameters that map to a single attribute callback
ATTRIBUTE_CODES = frozenset(
    [
        1,  # intensity bold
        2,  # intensity faint
        3,  # italic
        4,  # underline
        5,  # blink slow
        6,  # blink fast
        7,  # negative
        8,  # conceal
        9,  # strikethrough
        21,  # underline double
        22,  # intensity normal
        23,  # italic off
        24,  # underline off
        25,  # blink off
        27,  # negative off
        28,  # conceal off
        29,  # strikethrough off
        51,  # framed
        52,  # encircled
        53,  # overlined
        54,  # framed/encircled off
        55,  # overlined off
    ]
)

SGR_RESET = 0
SGR_FOREGROUND_EXT = 38
SGR_FOREGROUND_DEFAULT = 39
SGR_BACKGROUND_EXT = 48
SGR_BACKGROUND_DEFAULT = 49

# Extended color selectors following 38/48
EXT_COLOR_INDEXED = 5
EXT_COLOR_RGB = 2

# (first code, bright) for the 8-color ranges
FOREGROUND_RANGES = ((30, False), (90, True))
BACKGROUND_RANGES = ((40, False), (100, True))
