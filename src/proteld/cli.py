from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from .net import CallHandler, CallListener
from .stats import CallStats
from .store import PayloadStore

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s"


@dataclass(frozen=True, slots=True)
class Config:
    port: int
    local_only: bool = False
    output_dir: Path | None = None
    verbosity: int = 0
    log_level: str = "INFO"

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Config":
        return cls(
            port=args.port,
            local_only=args.local,
            output_dir=args.output_dir,
            verbosity=args.verbose,
            log_level=args.log_level,
        )

    @property
    def effective_log_level(self) -> int:
        if self.verbosity > 0:
            return logging.DEBUG
        return getattr(logging, self.log_level)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="proteld",
        description="Capture COCOT printouts from a softmodem bridge, one TCP connection per call.",
    )
    p.add_argument("-p", "--port", type=int, required=True, help="port on which to listen")
    p.add_argument("-l", "--local", action="store_true", help="listen only on localhost")
    p.add_argument("-f", "--output-dir", type=Path, default=None, help="log printouts to this directory")
    p.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = Config.from_args(args)
    logging.basicConfig(level=cfg.effective_log_level, format=LOG_FORMAT)

    store = None
    if cfg.output_dir is not None:
        try:
            cfg.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log.error("Unable to create output directory %s: %s", cfg.output_dir, exc)
            return 1
        store = PayloadStore(cfg.output_dir)

    try:
        listener = CallListener.listening(cfg.port, local_only=cfg.local_only)
    except OSError as exc:
        log.error("Unable to listen on TCP port %d: %s", cfg.port, exc)
        return 1

    stats = CallStats()
    try:
        listener.serve_forever(CallHandler(stats, store))
    except KeyboardInterrupt:
        # in-flight calls are daemon threads and die with the process
        print(file=sys.stderr)
        print(stats.report(), file=sys.stderr)
        return 0
    except OSError as exc:
        log.error("accept failed: %s", exc)
        return 1
    finally:
        listener.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
