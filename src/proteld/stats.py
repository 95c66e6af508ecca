from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(slots=True)
class CallStats:
    """Call counters shared by every session thread."""

    attempted: int = 0
    succeeded: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def call_started(self) -> int:
        with self._lock:
            self.attempted += 1
            return self.attempted

    def call_finished(self, success: bool) -> None:
        if not success:
            return
        with self._lock:
            self.succeeded += 1

    def snapshot(self) -> Tuple[int, int]:
        with self._lock:
            return self.attempted, self.succeeded

    def report(self) -> str:
        attempted, succeeded = self.snapshot()
        return "\n".join(
            [
                "%-16s: %5d" % ("Calls Processed", attempted),
                "%-16s: %5d" % ("Calls Succeeded", succeeded),
            ]
        )
