#!/usr/bin/env python3
"""Profile ansihtml to find performance bottlenecks."""

import cProfile
import io
import pstats

from ansihtml import POSTAMBLE, PREAMBLE, AnsiHtmlStream, BufferSink

# Sample build log
log = (
    b"\x1b[1m[INFO]\x1b[0m Building module \x1b[32mcore\x1b[0m\n"
    + PREAMBLE + b"H4sIAAAAAAAAAJWQsQ6CQBBEV5UbQ==" + POSTAMBLE
    + b"\x1b[33mWARNING:\x1b[0m deprecated API used in Foo.java:42\n"
    + b"plain output line with no escapes at all\n"
    + b"\x1b[38;5;208mprogress 42%\x1b[39m\r\n"
) * 500  # Repeat for more meaningful results

# Profile
pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    with AnsiHtmlStream(BufferSink()) as stream:
        stream.write(log)

pr.disable()

# Print stats
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
