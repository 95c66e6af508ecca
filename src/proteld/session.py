from __future__ import annotations

import enum
import logging
import sys
from dataclasses import dataclass
from typing import Protocol, TextIO

from .buffer import CaptureBuffer
from .constants import BUFFER_SIZE, MAX_RESETS
from .payload import PayloadStatus, is_corrupted, validate

log = logging.getLogger(__name__)


class Connection(Protocol):
    def recv(self, bufsize: int) -> bytes: ...

    def close(self) -> None: ...


class SessionState(enum.Enum):
    ACCUMULATING = "accumulating"
    SUCCESS = "success"
    ABORTED = "aborted"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class SessionResult:
    state: SessionState
    data: bytes
    resets: int

    @property
    def success(self) -> bool:
        return self.state is SessionState.SUCCESS


class Reassembler:
    """Accumulates one call's byte stream until the printout is known good or lost.

    A printout looks something like this (byte values in brackets):

        TC! [0] [0] [0] [144] [0] [0] [0] [0] *3115552368*43125*DD8822*1234*032*2312237122028*37090*

    followed by [1] [0] [0] [239]. The terminal repeats it after 10-20
    seconds, so a corrupted first copy is thrown away and the second one is
    awaited. Two corrupted copies mean there will be no third.
    """

    def __init__(self, conn: Connection, capacity: int = BUFFER_SIZE, echo: TextIO | None = None):
        self.conn = conn
        self.buffer = CaptureBuffer(capacity)
        self.echo = echo if echo is not None else sys.stdout
        self.resets = 0
        self.state = SessionState.ACCUMULATING
        self._echo_broken = False

    def _echo(self, chunk: bytes) -> None:
        for b in chunk:
            if not 0x20 <= b <= 0x7E:
                log.info(" [%d] ", b)
            elif not self._echo_broken:
                try:
                    self.echo.write(chr(b))
                    self.echo.flush()
                except OSError as exc:
                    # the echo is for the operator only; the call carries on without it
                    log.warning("echo disabled for this call: %s", exc)
                    self._echo_broken = True

    def feed(self, chunk: bytes) -> SessionState:
        if self.state is not SessionState.ACCUMULATING:
            raise RuntimeError(f"session already finished: {self.state.value}")

        self.buffer.append(chunk)
        self._echo(chunk)

        if validate(self.buffer.data) is PayloadStatus.VALID:
            self.state = SessionState.SUCCESS
        elif is_corrupted(self.buffer.data):
            self.resets += 1
            if self.resets >= MAX_RESETS:
                log.warning("Duplicate corruption, aborting")
                self.state = SessionState.ABORTED
            else:
                log.warning("Resetting buffer (data corrupted)")
                self.buffer.clear()
        elif self.buffer.full:
            log.warning("Buffer truncation occurred")
        return self.state

    def read_once(self) -> SessionState:
        while True:
            try:
                # a full buffer asks for nothing, and gets nothing back
                chunk = self.conn.recv(self.buffer.room)
            except InterruptedError:
                continue
            except OSError as exc:
                log.info("read failed: %s", exc)
                self.state = SessionState.CLOSED
                return self.state
            break

        if not chunk:
            log.info("connection closed after %d bytes", len(self.buffer))
            self.state = SessionState.CLOSED
            return self.state
        return self.feed(chunk)

    def run(self) -> SessionResult:
        try:
            while self.state is SessionState.ACCUMULATING:
                self.read_once()
        finally:
            # hang up now rather than waiting for the far end to
            self.conn.close()

        return SessionResult(state=self.state, data=bytes(self.buffer), resets=self.resets)
