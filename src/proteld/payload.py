from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Callable

from .constants import (
    CORRUPTION_MARKERS,
    CORRUPTION_SCAN_START,
    DATA_LENGTH,
    DATA_STARS,
    DELIMITER,
    IDENTIFIER_LENGTH,
    LAST_STAR_OFFSET,
)

log = logging.getLogger(__name__)

STAR = DELIMITER[0]
_UNSAFE = re.compile(rb"[^0-9A-Za-z]")


class PayloadStatus(enum.Enum):
    INCOMPLETE = "incomplete"
    VALID = "valid"


def is_digit(b: int) -> bool:
    return 0x30 <= b <= 0x39


def is_d(b: int) -> bool:
    return b == ord("D")


def always(b: int) -> bool:
    return True


@dataclass(frozen=True, slots=True)
class AutocorrectRule:
    offset: int
    expected: int
    left: Callable[[int], bool]
    right: Callable[[int], bool]


# A printout looks like:
#   *3115552368*43125*DD8822*1234*032*2312237122028*37090*
# Offsets are relative to the first '*'.
AUTOCORRECT_RULES = (
    AutocorrectRule(11, STAR, is_digit, is_digit),
    AutocorrectRule(17, STAR, is_digit, is_d),
    AutocorrectRule(24, STAR, is_digit, is_digit),
    AutocorrectRule(29, STAR, is_digit, is_digit),
    AutocorrectRule(33, STAR, is_digit, is_digit),
    AutocorrectRule(47, STAR, is_digit, is_digit),
    AutocorrectRule(LAST_STAR_OFFSET, STAR, is_digit, always),
)


def _bounded_end(buf: bytearray | bytes, start: int, length: int) -> int:
    """End of the NUL-terminated string beginning at ``start``."""
    nul = buf.find(b"\x00", start, length)
    return length if nul < 0 else nul


def autocorrect(buf: bytearray, start: int = 0, length: int | None = None) -> list[int]:
    """Rewrite single garbled delimiters in place.

    There is no error correction at 300 baud, so a '*' occasionally arrives
    as some other byte. A position is only repaired when both neighbours look
    the way the printout format says they should; otherwise it is reported and
    left for later checks to reject. Returns the offsets that were rewritten.
    """
    length = len(buf) if length is None else min(length, len(buf))
    end = _bounded_end(buf, start, length)
    if end - start <= DATA_LENGTH:
        # too short, a correction near the end could be premature
        return []

    corrected = []
    for rule in AUTOCORRECT_RULES:
        pos = start + rule.offset
        if buf[pos] == rule.expected:
            continue
        if rule.left(buf[pos - 1]) and rule.right(buf[pos + 1]):
            log.info("Autocorrecting pos %d to %c", rule.offset, rule.expected)
            buf[pos] = rule.expected
            corrected.append(rule.offset)
        else:
            log.warning("Position %d should be %c but could not autocorrect", rule.offset, rule.expected)
    return corrected


def validate(buf: bytearray, length: int | None = None) -> PayloadStatus:
    length = len(buf) if length is None else min(length, len(buf))
    if length < DATA_LENGTH:
        return PayloadStatus.INCOMPLETE

    start = buf.find(DELIMITER, 0, length)
    if start < 0:
        return PayloadStatus.INCOMPLETE
    if length - start < DATA_LENGTH:
        return PayloadStatus.INCOMPLETE

    autocorrect(buf, start, length)

    # 8 stars nominally; the trailing one may not have arrived yet
    end = _bounded_end(buf, start, length)
    stars = buf.count(DELIMITER, start, end)
    if stars < DATA_STARS - 1:
        log.debug("Expecting at least %d stars, got %d", DATA_STARS - 1, stars)
        return PayloadStatus.INCOMPLETE
    if end - start < LAST_STAR_OFFSET:
        log.debug("Payload is not long enough")
        return PayloadStatus.INCOMPLETE
    return PayloadStatus.VALID


def is_corrupted(buf: bytearray | bytes, length: int | None = None) -> bool:
    """True when the terminal has started printing again.

    The preamble carries NUL runs of its own, so only the region from
    CORRUPTION_SCAN_START onwards is searched.
    """
    length = len(buf) if length is None else min(length, len(buf))
    if length <= DATA_LENGTH:
        return False
    return any(buf.find(marker, CORRUPTION_SCAN_START, length) >= 0 for marker in CORRUPTION_MARKERS)


def extract_identifier(data: bytes) -> str:
    """The phone number that follows the first delimiter, as a filename-safe field."""
    start = data.find(DELIMITER)
    if start < 0:
        raise ValueError("no delimiter in payload")
    raw = data[start + 1 : start + 1 + IDENTIFIER_LENGTH]
    return _UNSAFE.sub(b"_", raw).decode("ascii").ljust(IDENTIFIER_LENGTH, "_")
