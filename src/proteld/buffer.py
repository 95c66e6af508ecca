from __future__ import annotations

from .constants import BUFFER_SIZE


class CaptureBuffer:
    """Fixed-capacity, append-only byte buffer for a single call."""

    def __init__(self, capacity: int = BUFFER_SIZE):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive: {capacity}")
        self.capacity = capacity
        self.data = bytearray()

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    @property
    def room(self) -> int:
        return self.capacity - len(self.data)

    @property
    def full(self) -> bool:
        return self.room <= 0

    def append(self, chunk: bytes) -> None:
        if len(chunk) > self.room:
            raise ValueError(f"chunk of {len(chunk)} bytes exceeds remaining room {self.room}")
        self.data += chunk

    def clear(self) -> None:
        self.data.clear()
