"""Startup/shutdown hooks and end-of-stream handling."""

from __future__ import annotations

import unittest

from ansihtml import PREAMBLE, AnsiHtmlStream, BufferSink, Mode, Processor, StreamOpts, flags


class CountingProcessor(Processor):
    def __init__(self) -> None:
        self.started = 0
        self.finished = 0

    def init_tags(self) -> None:
        self.started += 1

    def finish(self) -> None:
        self.finished += 1


class WrappingProcessor(Processor):
    """Opens a baseline element on start and closes it on finish."""

    def __init__(self) -> None:
        self.stream = None

    def init_tags(self) -> None:
        self.stream.emit(b"<div>")
        self.stream.push_tag("div")

    def finish(self) -> None:
        while self.stream.open_tags:
            self.stream.emit(f"</{self.stream.pop_tag()}>".encode())


class FailingSink:
    def __init__(self, fail_after: int = 0) -> None:
        self.fail_after = fail_after
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.fail_after <= 0:
            raise OSError("disk full")
        self.fail_after -= 1
        return len(data)

    def close(self) -> None:
        self.closed = True


class TestLifecycleHooks(unittest.TestCase):
    def test_start_runs_once_before_first_byte(self) -> None:
        processor = CountingProcessor()
        stream = AnsiHtmlStream(BufferSink(), processor)
        assert processor.started == 0
        assert stream.mode is Mode.UNINITIALIZED
        stream.write(b"a")
        assert processor.started == 1
        assert stream.mode is Mode.PASS_THROUGH
        stream.write(b"bcdef" * 10)
        assert processor.started == 1

    def test_close_without_writes_runs_both_hooks(self) -> None:
        processor = CountingProcessor()
        stream = AnsiHtmlStream(BufferSink(), processor)
        stream.close()
        assert processor.started == 1
        assert processor.finished == 1
        assert stream.mode is Mode.PASS_THROUGH

    def test_close_is_idempotent(self) -> None:
        processor = CountingProcessor()
        stream = AnsiHtmlStream(BufferSink(), processor)
        stream.write(b"x")
        stream.close()
        stream.close()
        assert processor.started == 1
        assert processor.finished == 1

    def test_hooks_write_through_the_stream(self) -> None:
        processor = WrappingProcessor()
        sink = BufferSink()
        stream = AnsiHtmlStream(sink, processor)
        processor.stream = stream
        stream.write(b"hello")
        stream.close()
        assert sink.getvalue() == b"<div>hello</div>"
        assert stream.open_tags == []

    def test_hook_output_is_gated(self) -> None:
        processor = WrappingProcessor()
        sink = BufferSink()
        stream = AnsiHtmlStream(sink, processor, enabled=lambda: False)
        processor.stream = stream
        stream.write(b"hello")
        stream.close()
        assert sink.getvalue() == b""

    def test_seeded_tags_are_visible_to_start_hook(self) -> None:
        seen = []

        class SeedReader(Processor):
            def init_tags(self) -> None:
                seen.extend(stream.open_tags)

        stream = AnsiHtmlStream(BufferSink(), SeedReader(), tags_to_open=["body", "pre"])
        stream.write(b"x")
        assert seen == ["body", "pre"]


class TestEndOfStream(unittest.TestCase):
    def test_pending_open_marker_is_replayed(self) -> None:
        sink = BufferSink()
        stream = AnsiHtmlStream(sink)
        stream.write(b"abc\x1b[")
        assert sink.getvalue() == b"abc"
        assert stream.mode is Mode.ACCUMULATING_OPEN_MARKER
        stream.close()
        assert sink.getvalue() == b"abc\x1b["
        assert stream.mode is Mode.PASS_THROUGH

    def test_pending_prefix_is_decoded_before_release(self) -> None:
        # ESC[8m is a complete SGR; only the trailing "h" is data.
        sink = BufferSink()
        stream = AnsiHtmlStream(sink)
        stream.write(b"abc\x1b[8mh")
        stream.close()
        assert sink.getvalue() == b"abch"

    def test_pending_close_marker_is_replayed(self) -> None:
        sink = BufferSink()
        stream = AnsiHtmlStream(sink)
        stream.write(PREAMBLE + b"xy\x1b")
        stream.close()
        assert sink.getvalue() == PREAMBLE + b"xy\x1b"
        assert stream.mode is Mode.INSIDE_MARKED_REGION

    def test_replay_can_be_disabled(self) -> None:
        sink = BufferSink()
        stream = AnsiHtmlStream(sink, opts=StreamOpts(flush_pending_on_close=False))
        stream.write(b"abc\x1b[")
        stream.close()
        assert sink.getvalue() == b"abc"

    def test_flag_supplies_default(self) -> None:
        saved = flags.REPLAY_PENDING_ON_CLOSE
        flags.REPLAY_PENDING_ON_CLOSE = False
        try:
            assert not StreamOpts().flush_pending_on_close
        finally:
            flags.REPLAY_PENDING_ON_CLOSE = saved
        assert StreamOpts().flush_pending_on_close

    def test_pending_bytes_flushed_before_finish(self) -> None:
        events = []

        class Recorder(Processor):
            def finish(self) -> None:
                events.append(("finish", sink.getvalue()))

        sink = BufferSink()
        stream = AnsiHtmlStream(sink, Recorder())
        stream.write(b"z\x1b")
        stream.close()
        assert events == [("finish", b"z\x1b")]


class TestSinkFailure(unittest.TestCase):
    def test_write_error_propagates(self) -> None:
        stream = AnsiHtmlStream(FailingSink())
        with self.assertRaises(OSError):
            stream.write(b"a")

    def test_marker_block_error_propagates(self) -> None:
        stream = AnsiHtmlStream(FailingSink(fail_after=1))
        stream.write(b"a")
        with self.assertRaises(OSError):
            stream.write(PREAMBLE)

    def test_failed_replay_leaves_home_mode(self) -> None:
        sink = FailingSink()
        stream = AnsiHtmlStream(sink, opts=StreamOpts(b"\x01\x02\x03", b"\x04"))
        stream.write(b"\x01\x02")
        assert stream.mode is Mode.ACCUMULATING_OPEN_MARKER
        with self.assertRaises(OSError):
            stream.write(b"\x09")
        assert stream.mode is Mode.PASS_THROUGH
        sink.fail_after = 10
        stream.write(b"A")
        assert stream.mode is Mode.PASS_THROUGH

    def test_failed_marker_emit_leaves_target_mode(self) -> None:
        sink = FailingSink()
        stream = AnsiHtmlStream(sink, opts=StreamOpts(b"\x01\x02\x03", b"\x04"))
        with self.assertRaises(OSError):
            stream.write(b"\x01\x02\x03")
        assert stream.mode is Mode.INSIDE_MARKED_REGION
        sink.fail_after = 10
        stream.write(b"x\x04")
        assert stream.mode is Mode.PASS_THROUGH

    def test_failed_abandon_at_close_still_finishes(self) -> None:
        processor = CountingProcessor()
        sink = FailingSink()
        stream = AnsiHtmlStream(sink, processor, opts=StreamOpts(b"\x01\x02\x03", b"\x04"))
        stream.write(b"\x01\x02")
        with self.assertRaises(OSError):
            stream.close()
        assert stream.mode is Mode.PASS_THROUGH
        assert processor.finished == 1
        assert stream.closed

    def test_disabled_output_cannot_fail(self) -> None:
        stream = AnsiHtmlStream(FailingSink(), enabled=lambda: False)
        stream.write(b"abc" + PREAMBLE + b"x")
        stream.close()

    def test_finish_and_release_run_after_failure(self) -> None:
        processor = CountingProcessor()
        sink = FailingSink()
        stream = AnsiHtmlStream(sink, processor)
        with self.assertRaises(OSError):
            stream.write(b"a")
        stream.close()
        assert processor.finished == 1
        assert sink.closed
        assert stream.closed

    def test_failure_while_flushing_pending_still_finishes(self) -> None:
        processor = CountingProcessor()
        sink = FailingSink()
        stream = AnsiHtmlStream(sink, processor)
        stream.write(b"\x1b")
        with self.assertRaises(OSError):
            stream.close()
        assert processor.finished == 1
        assert sink.closed
        assert stream.closed


if __name__ == "__main__":
    unittest.main()
