from enum import Enum


class Mode(Enum):
    """Dispatch mode of an ``AnsiHtmlStream``. Exactly one is current."""

    UNINITIALIZED = 0
    PASS_THROUGH = 1
    INSIDE_MARKED_REGION = 2
    ACCUMULATING_OPEN_MARKER = 3
    ACCUMULATING_CLOSE_MARKER = 4

    def __str__(self):
        return self.name
