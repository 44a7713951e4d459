"""Feature flags for stream behavior.

Centralized so tests can toggle behavior deterministically without
sprinkling ad-hoc environment variable reads in hot code paths.

Flags are simple module-level booleans read when a ``StreamOpts`` is built,
never during a write. Tests that need both paths should build fresh
options after flipping a flag.
"""

# Replay a half-matched marker and any buffered escape bytes as data on close
REPLAY_PENDING_ON_CLOSE = True
