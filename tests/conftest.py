from __future__ import annotations

PREAMBLE = b"TC!\x00\x00\x00\x90\x00\x00\x00\x00"
PRINTOUT = b"*3115552368*43125*DD8822*1234*032*2312237122028*37090*"
TRAILER = b"\x01\x00\x00\xef"


class FakeConn:
    """Stands in for a socket: hands out queued chunks, then EOF."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.closed = False
        self.requested = []

    def recv(self, bufsize: int) -> bytes:
        assert not self.closed
        self.requested.append(bufsize)
        if bufsize == 0 or not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        if isinstance(chunk, BaseException):
            raise chunk
        head, rest = chunk[:bufsize], chunk[bufsize:]
        if rest:
            self.chunks.insert(0, rest)
        return head

    def close(self) -> None:
        self.closed = True


class BrokenEcho:
    """An echo stream whose reader has gone away."""

    def __init__(self):
        self.writes = 0

    def write(self, s: str) -> int:
        self.writes += 1
        raise BrokenPipeError(32, "Broken pipe")

    def flush(self) -> None:
        pass


class FakeListenSock:
    """Stands in for a listening socket: each accept() takes the next queued item."""

    def __init__(self, accepts):
        self.accepts = list(accepts)
        self.closed = False

    def getsockname(self):
        return ("127.0.0.1", 8300)

    def accept(self):
        item = self.accepts.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def shutdown(self, how: int) -> None:
        pass

    def close(self) -> None:
        self.closed = True
