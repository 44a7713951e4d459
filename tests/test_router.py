from __future__ import annotations

import unittest

from ansihtml import NULL_SINK, AnsiDecoder, BufferSink, NullSink, OutputRouter, Processor


class TestNullSink(unittest.TestCase):
    def test_accepts_everything(self) -> None:
        sink = NullSink()
        assert sink.write(b"abc") == 3
        assert sink.write(bytearray(b"")) == 0
        sink.flush()
        sink.close()
        assert not sink.closed
        assert sink.write(b"still fine") == 10

    def test_shared_instance_is_stateless(self) -> None:
        assert NullSink.__slots__ == ()
        assert repr(NULL_SINK) == "NullSink()"


class TestBufferSink(unittest.TestCase):
    def test_keeps_blocks_and_value(self) -> None:
        sink = BufferSink()
        sink.write(b"ab")
        sink.write(bytearray(b"c"))
        assert sink.getvalue() == b"abc"
        assert sink.writes == [b"ab", b"c"]
        assert len(sink) == 3

    def test_write_after_close_fails(self) -> None:
        sink = BufferSink()
        sink.close()
        assert sink.closed
        with self.assertRaises(ValueError):
            sink.write(b"x")


class TestOutputRouter(unittest.TestCase):
    def setUp(self) -> None:
        self.enabled = True
        self.sink = BufferSink()
        self.decoder = AnsiDecoder(Processor())
        self.router = OutputRouter(self.sink, lambda: self.enabled, self.decoder)

    def test_select_follows_policy_on_every_call(self) -> None:
        assert self.router.select() is self.sink
        self.enabled = False
        assert self.router.select() is NULL_SINK
        self.enabled = True
        assert self.router.select() is self.sink

    def test_route_data_goes_through_decoder(self) -> None:
        for byte in b"a\x1b[1mb":
            self.router.route_data(byte)
        assert self.sink.getvalue() == b"ab"

    def test_route_block_bypasses_decoder(self) -> None:
        self.router.route_block(b"\x1b[0m")
        assert self.sink.writes == [b"\x1b[0m"]
        assert self.decoder.pending() == b""

    def test_disabled_output_is_dropped(self) -> None:
        self.enabled = False
        self.router.route_data(ord("x"))
        self.router.route_block(b"block")
        assert self.sink.getvalue() == b""

    def test_route_pending_releases_decoder_bytes(self) -> None:
        for byte in b"\x1b[":
            self.router.route_data(byte)
        assert self.sink.getvalue() == b""
        self.router.route_pending()
        assert self.sink.getvalue() == b"\x1b["
        self.router.route_pending()
        assert self.sink.writes == [b"\x1b["]


if __name__ == "__main__":
    unittest.main()
