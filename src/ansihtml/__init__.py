from .constants import POSTAMBLE, PREAMBLE
from .decoder import AnsiDecoder
from .errors import InvalidModeError, StreamClosedError, TranscoderError
from .markers import MarkerPattern, MarkerRecognizer, MarkerRule, MarkerTable, MatchResult
from .modes import Mode
from .processor import Processor
from .router import OutputRouter
from .sinks import NULL_SINK, BufferSink, NullSink
from .stream import AnsiHtmlStream, StreamOpts

__all__ = [
    "NULL_SINK",
    "POSTAMBLE",
    "PREAMBLE",
    "AnsiDecoder",
    "AnsiHtmlStream",
    "BufferSink",
    "InvalidModeError",
    "MarkerPattern",
    "MarkerRecognizer",
    "MarkerRule",
    "MarkerTable",
    "MatchResult",
    "Mode",
    "NullSink",
    "OutputRouter",
    "Processor",
    "StreamClosedError",
    "StreamOpts",
    "TranscoderError",
]
