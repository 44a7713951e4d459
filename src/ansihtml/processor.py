"""Collaborator contract between the stream and the rendering layer.

``Processor`` is what the stream talks to: it is asked to open its baseline
tags before the first byte, consulted before every write to decide whether
output is enabled, and told to finish when the stream closes. The decoder
reports each SGR change through the ``set_*``/``default_*`` callbacks.

All methods are no-ops here; renderers override what they care about.
Callbacks may write markup through ``AnsiHtmlStream.emit``.
"""

from __future__ import annotations


class Processor:
    __slots__ = ()

    # --- lifecycle ---
    def init_tags(self) -> None:
        """Open any baseline elements. Called once, before the first byte."""

    def is_writing_enabled(self) -> bool:
        """Gate for the real sink. Must be side-effect free; called per write."""
        return True

    def finish(self) -> None:
        """Close whatever is still open. Called once, from ``close()``."""

    # --- SGR callbacks ---
    def attribute_reset(self) -> None:
        pass

    def set_attribute(self, code: int) -> None:
        pass

    def set_foreground_color(self, color: int, bright: bool = False) -> None:
        pass

    def set_background_color(self, color: int, bright: bool = False) -> None:
        pass

    def set_foreground_color_ext(self, index: int) -> None:
        pass

    def set_background_color_ext(self, index: int) -> None:
        pass

    def set_foreground_rgb(self, r: int, g: int, b: int) -> None:
        pass

    def set_background_rgb(self, r: int, g: int, b: int) -> None:
        pass

    def default_foreground(self) -> None:
        pass

    def default_background(self) -> None:
        pass
