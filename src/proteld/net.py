from __future__ import annotations

import logging
import socket
import sys
import threading
from dataclasses import dataclass
from typing import Callable, TextIO, Tuple

from .constants import BUFFER_SIZE, LISTEN_BACKLOG
from .session import Reassembler, SessionResult
from .stats import CallStats
from .store import PayloadStore

log = logging.getLogger(__name__)

Handler = Callable[[socket.socket, Tuple[str, int]], object]


@dataclass(slots=True)
class CallHandler:
    """Runs one call from accept to hang-up, then files the result."""

    stats: CallStats
    store: PayloadStore | None = None
    echo: TextIO | None = None
    capacity: int = BUFFER_SIZE

    def __call__(self, conn: socket.socket, addr: Tuple[str, int]) -> SessionResult | None:
        call_no = self.stats.call_started()
        log.info("Call # %d: New connection from %s:%d", call_no, addr[0], addr[1])

        result = None
        try:
            result = Reassembler(conn, capacity=self.capacity, echo=self.echo or sys.stdout).run()
            log.info(
                "Call # %d: %s, %d bytes, %d reset(s)", call_no, result.state.value, len(result.data), result.resets
            )
            if self.store is not None:
                self.store.save(result.data, result.success)
        except Exception:
            log.exception("Call # %d: session failed", call_no)
        finally:
            self.stats.call_finished(result is not None and result.success)
        return result


class CallListener:
    def __init__(self, sock: socket.socket):
        self.sock = sock
        self._closing = threading.Event()
        self._accepted = 0

    @classmethod
    def listening(cls, port: int, local_only: bool = False) -> "CallListener":
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            # allow reuse so we can rerun quickly
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if hasattr(socket, "SO_REUSEPORT"):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            sock.bind(("127.0.0.1" if local_only else "0.0.0.0", port))
            sock.listen(LISTEN_BACKLOG)
        except OSError:
            sock.close()
            raise
        return cls(sock)

    @property
    def address(self) -> Tuple[str, int]:
        return self.sock.getsockname()

    def serve_forever(self, handler: Handler) -> None:
        log.info("Listening on port %d", self.address[1])
        while True:
            try:
                conn, addr = self.sock.accept()
            except InterruptedError:
                continue
            except OSError:
                if self._closing.is_set():
                    break
                raise

            self._accepted += 1
            # each thread gets its own socket object; nothing is shared with the next accept
            t = threading.Thread(
                target=handler,
                args=(conn, addr),
                name=f"call-{self._accepted}",
                daemon=True,
            )
            try:
                t.start()
            except RuntimeError as exc:
                log.error("could not start session thread: %s", exc)
                conn.close()
        log.info("Listener has exited")

    def close(self) -> None:
        self._closing.set()
        try:
            # wake a blocked accept()
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            log.debug("shutdown on listening socket: %s", exc)
        self.sock.close()
