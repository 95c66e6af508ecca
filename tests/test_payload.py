from __future__ import annotations

import logging

import pytest

from conftest import PREAMBLE, PRINTOUT
from proteld.payload import (
    PayloadStatus,
    autocorrect,
    extract_identifier,
    is_corrupted,
    validate,
)


def test_short_buffer_is_incomplete():
    for n in range(54):
        assert validate(bytearray(PRINTOUT[:n])) is PayloadStatus.INCOMPLETE


def test_printout_alone_is_valid():
    assert len(PRINTOUT) == 54
    assert validate(bytearray(PRINTOUT)) is PayloadStatus.VALID


def test_bytes_before_delimiter_do_not_matter():
    for prefix in (b"", PREAMBLE, b"\x00" * 40, b"garbage \xff\xfe"):
        assert validate(bytearray(prefix + PRINTOUT)) is PayloadStatus.VALID


def test_no_delimiter_is_incomplete():
    assert validate(bytearray(b"x" * 100)) is PayloadStatus.INCOMPLETE


def test_too_little_after_delimiter():
    buf = bytearray(PREAMBLE + PRINTOUT[:-1])
    assert len(buf) >= 54
    assert validate(buf) is PayloadStatus.INCOMPLETE


def test_length_argument_bounds_the_search():
    buf = bytearray(PREAMBLE + PRINTOUT)
    assert validate(buf, len(buf) - 1) is PayloadStatus.INCOMPLETE
    assert validate(buf, len(buf)) is PayloadStatus.VALID


def test_too_few_stars():
    garbled = PRINTOUT.replace(b"*", b"#")
    buf = bytearray(b"*" + garbled[1:])
    assert validate(buf) is PayloadStatus.INCOMPLETE


def test_every_delimiter_can_be_repaired():
    garbled = PRINTOUT.replace(b"*", b"#")
    buf = bytearray(b"*" + garbled[1:] + b"0000")
    assert validate(buf) is PayloadStatus.VALID
    assert bytes(buf[:54]) == PRINTOUT


def test_nul_cuts_the_payload_short():
    # the printout is treated as a C-style string from the first '*'
    buf = bytearray(PRINTOUT[:40] + b"\x00" + PRINTOUT[41:])
    assert validate(buf) is PayloadStatus.INCOMPLETE


def test_autocorrects_garbled_delimiter(caplog):
    garbled = bytearray(PRINTOUT + b"\x01")
    garbled[24] = ord("+")
    with caplog.at_level(logging.INFO, logger="proteld.payload"):
        assert validate(garbled) is PayloadStatus.VALID
    assert garbled[24] == ord("*")
    assert "Autocorrecting pos 24" in caplog.text


def test_autocorrect_needs_more_than_54_bytes():
    garbled = bytearray(PRINTOUT)
    garbled[24] = ord("+")
    assert autocorrect(garbled) == []
    assert garbled[24] == ord("+")


def test_autocorrect_checks_neighbours(caplog):
    garbled = bytearray(PRINTOUT + b"\x01")
    garbled[17] = ord("+")
    garbled[18] = ord("7")  # should be 'D'
    with caplog.at_level(logging.WARNING, logger="proteld.payload"):
        assert autocorrect(garbled) == []
    assert garbled[17] == ord("+")
    assert "Position 17 should be *" in caplog.text


def test_autocorrect_trailing_star_ignores_right_neighbour():
    garbled = bytearray(PRINTOUT + b"\xef")
    garbled[53] = ord("0")
    assert autocorrect(garbled) == [53]
    assert garbled[53] == ord("*")


def test_autocorrect_is_idempotent():
    garbled = bytearray(PRINTOUT + b"\x01\x00")
    garbled[11] = ord("8")
    garbled[47] = ord("?")
    once = bytearray(garbled)
    autocorrect(once)
    twice = bytearray(once)
    assert autocorrect(twice) == []
    assert twice == once


def test_correct_trailing_star_is_left_alone():
    buf = bytearray(PREAMBLE + PRINTOUT + b"\x01\x00\x00")
    before = bytes(buf)
    assert autocorrect(buf, len(PREAMBLE)) == []
    assert bytes(buf) == before


def test_corruption_marker_after_preamble():
    for marker in (b"\x01\x00\x00", b"\x00\x00\x00"):
        buf = b"A" * 40 + marker + b"B" * 12
        assert is_corrupted(buf)


def test_corruption_marker_in_preamble_is_ignored():
    buf = b"A" * 10 + b"\x00\x00\x00" + b"B" * 16 + b"C" * 40
    assert len(buf) > 54
    assert not is_corrupted(buf)


def test_marker_straddling_offset_30_is_ignored():
    buf = b"A" * 29 + b"\x00\x00\x00" + b"B" * 30
    assert not is_corrupted(buf)
    assert is_corrupted(b"A" * 30 + b"\x00\x00\x00" + b"B" * 30)


def test_corruption_needs_more_than_54_bytes():
    buf = b"A" * 40 + b"\x00\x00\x00" + b"B" * 11
    assert len(buf) == 54
    assert not is_corrupted(buf)
    assert is_corrupted(buf + b"B")


def test_clean_printout_is_not_corrupted():
    assert not is_corrupted(PREAMBLE + PRINTOUT)


def test_identifier():
    assert extract_identifier(PREAMBLE + PRINTOUT) == "3115552368"


def test_identifier_is_padded_and_sanitised():
    assert extract_identifier(b"xx*12/4") == "12_4______"


def test_identifier_requires_delimiter():
    with pytest.raises(ValueError):
        extract_identifier(b"no stars here")


def test_length_past_end_of_buffer_is_clamped():
    buf = bytearray(PRINTOUT + b"\x01")
    buf[24] = ord("+")
    assert validate(buf, len(buf) + 10) is PayloadStatus.VALID
    assert buf[24] == ord("*")
    assert not is_corrupted(b"A" * 50, 100)
