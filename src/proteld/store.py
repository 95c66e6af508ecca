from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path

from .payload import extract_identifier

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PayloadStore:
    output_dir: Path

    def success_path(self, data: bytes, now: float | None = None) -> Path:
        ts = int(time.time() if now is None else now)
        return self.output_dir / f"{ts}_{extract_identifier(data)}.txt"

    def failure_path(self, now: float | None = None) -> Path:
        ts = int(time.time() if now is None else now)
        return self.output_dir / f"{ts}_{random.randrange(100000)}_R.txt"

    def save(self, data: bytes, success: bool) -> Path | None:
        """Write one call's bytes to its own file.

        Successful printouts are named after the phone number in them. Anything
        else gets a timestamp plus a random suffix, regenerated until the name
        is unused, since several modems may finish in the same second.
        """
        try:
            if success:
                path = self.success_path(data)
                f = open(path, "wb")
            else:
                while True:
                    path = self.failure_path()
                    try:
                        f = open(path, "xb")
                    except FileExistsError:
                        continue
                    break
        except OSError as exc:
            log.error("open(%s) failed: %s", exc.filename, exc.strerror or exc)
            return None

        try:
            with f:
                written = f.write(data)
        except OSError as exc:
            log.error("write to %s failed: %s", path, exc)
            return None
        if written != len(data):
            log.error("Wanted to write %d bytes to %s, only wrote %d", len(data), path, written)
            return None

        log.info("saved %d bytes to %s", len(data), path)
        return path
