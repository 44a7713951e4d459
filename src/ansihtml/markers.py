"""Marker patterns and the accumulate-and-replay recognizer.

A marker is a fixed byte sequence embedded in the data stream. The stream
watches for the first byte of a marker while in the marker's *home* mode,
then hands every following byte to the recognizer until the candidate either
completes or is rejected:

    PASS_THROUGH --ESC--> ACCUMULATING_OPEN_MARKER --...:--> INSIDE_MARKED_REGION
    INSIDE_MARKED_REGION --ESC--> ACCUMULATING_CLOSE_MARKER --...m--> PASS_THROUGH

A completed marker is emitted as one block. A rejected candidate replays the
bytes matched so far as ordinary data, in order, and the rejected byte goes
back to the stream for a fresh dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .constants import POSTAMBLE, PREAMBLE
from .modes import Mode

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .router import OutputRouter


class MatchResult(Enum):
    CONTINUE = 0
    MATCHED_FULLY = 1
    MISMATCHED = 2


@dataclass(frozen=True, slots=True)
class MarkerPattern:
    """An immutable, non-empty byte pattern."""

    name: str
    data: bytes

    def __post_init__(self) -> None:
        # Accept bytearray/memoryview/str from user code, normalize to bytes.
        data = self.data
        if isinstance(data, str):
            data = data.encode("latin-1")
        elif not isinstance(data, bytes):
            data = bytes(data)
        if not data:
            raise ValueError(f"Marker pattern {self.name!r} must not be empty")
        object.__setattr__(self, "data", data)

    @property
    def first(self) -> int:
        return self.data[0]

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class MarkerRule:
    """Watch for ``pattern`` while in ``home``; switch to ``target`` on a match."""

    home: Mode
    accumulating: Mode
    target: Mode
    pattern: MarkerPattern


class MarkerTable:
    """Lookup of marker rules by home mode and by accumulating mode."""

    __slots__ = ("_by_accumulating", "_by_home", "rules")

    def __init__(self, rules: Iterable[MarkerRule]):
        self.rules = tuple(rules)
        self._by_home: dict[Mode, MarkerRule] = {}
        self._by_accumulating: dict[Mode, MarkerRule] = {}
        for rule in self.rules:
            if rule.home in self._by_home:
                raise ValueError(f"Two marker rules share home mode {rule.home}")
            if rule.accumulating in self._by_accumulating:
                raise ValueError(f"Two marker rules share accumulating mode {rule.accumulating}")
            self._by_home[rule.home] = rule
            self._by_accumulating[rule.accumulating] = rule

    @classmethod
    def console_notes(cls, open_marker=PREAMBLE, close_marker=POSTAMBLE) -> MarkerTable:
        """Build the two-rule table: open marker in data, close marker in a note.

        The two markers may be identical, in which case each occurrence
        toggles between data and note.
        """
        if not isinstance(open_marker, MarkerPattern):
            open_marker = MarkerPattern("open", open_marker)
        if not isinstance(close_marker, MarkerPattern):
            close_marker = MarkerPattern("close", close_marker)
        return cls(
            [
                MarkerRule(
                    home=Mode.PASS_THROUGH,
                    accumulating=Mode.ACCUMULATING_OPEN_MARKER,
                    target=Mode.INSIDE_MARKED_REGION,
                    pattern=open_marker,
                ),
                MarkerRule(
                    home=Mode.INSIDE_MARKED_REGION,
                    accumulating=Mode.ACCUMULATING_CLOSE_MARKER,
                    target=Mode.PASS_THROUGH,
                    pattern=close_marker,
                ),
            ]
        )

    def is_accumulating(self, mode: Mode) -> bool:
        return mode in self._by_accumulating

    def trigger(self, mode: Mode, byte: int) -> MarkerRule | None:
        """Return the rule whose pattern starts with ``byte`` in ``mode``, if any."""
        rule = self._by_home.get(mode)
        if rule is not None and rule.pattern.first == byte:
            return rule
        return None

    def resuming(self, mode: Mode) -> MarkerRule:
        return self._by_accumulating[mode]


class MarkerRecognizer:
    """Partial-match state for the marker currently being accumulated.

    ``cursor`` is the index of the next pattern byte expected; while
    accumulating, ``0 <= cursor < len(rule.pattern)``.

    Once a candidate resolves, ``set_mode`` is called with the mode the stream
    ends up in *before* anything is written, so a failing sink never leaves
    the stream in an accumulating mode with no candidate behind it.
    """

    __slots__ = ("cursor", "router", "rule", "set_mode")

    def __init__(self, router: OutputRouter, set_mode: Callable[[Mode], None]):
        self.router = router
        self.set_mode = set_mode
        self.rule: MarkerRule | None = None
        self.cursor = 0

    def start(self, rule: MarkerRule) -> None:
        self.rule = rule
        self.cursor = 0

    def accumulate(self, byte: int) -> MatchResult:
        rule = self.rule
        pattern = rule.pattern
        cursor = self.cursor

        if byte != pattern.data[cursor]:
            # Not a marker after all: the matched prefix is plain data.
            self._resolve(rule.home)
            self._replay(pattern.data, cursor)
            return MatchResult.MISMATCHED

        if cursor == len(pattern) - 1:
            self._resolve(rule.target)
            self.router.route_block(pattern.data)
            return MatchResult.MATCHED_FULLY

        self.cursor = cursor + 1
        return MatchResult.CONTINUE

    def abandon(self) -> MarkerRule | None:
        """Give up on the current candidate, replaying its prefix as data.

        Used at end of stream. Returns the rule that was being matched, or
        None when nothing was pending.
        """
        rule = self.rule
        if rule is None:
            return None
        cursor = self.cursor
        self._resolve(rule.home)
        self._replay(rule.pattern.data, cursor)
        return rule

    def _resolve(self, mode: Mode) -> None:
        self.rule = None
        self.cursor = 0
        self.set_mode(mode)

    def _replay(self, data: bytes, count: int) -> None:
        route_data = self.router.route_data
        for index in range(count):
            route_data(data[index])
