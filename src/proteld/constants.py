from __future__ import annotations

DELIMITER = b"*"
DATA_LENGTH = 54  # bytes from the first '*' to the last one, inclusive
DATA_STARS = 8
LAST_STAR_OFFSET = 53
IDENTIFIER_LENGTH = 10

BUFFER_SIZE = 512
MAX_RESETS = 2

CORRUPTION_SCAN_START = 30  # everything before this is preamble
CORRUPTION_MARKERS = (b"\x01\x00\x00", b"\x00\x00\x00")

LISTEN_BACKLOG = 2
