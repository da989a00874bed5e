"""
Alarm engine entry point.

Usage:
  python -m alarm_service.dev.run_engine                      # config.yaml, run until stopped
  python -m alarm_service.dev.run_engine --config alarms.yaml
  python -m alarm_service.dev.run_engine --once               # single cycle, then exit
  python -m alarm_service.dev.run_engine --interval-ms 2000 --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from alarm_service.bootstrap import build_app_system

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Process alarm evaluation engine")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--interval-ms", type=int, help="Override engine.interval_ms")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument("--log-file", help="Log to file instead of stderr")
    return parser.parse_args(argv)


def configure_logging(level: str, log_file: Optional[str] = None) -> None:
    log_kwargs = {
        "level": getattr(logging, level),
        "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    }
    if log_file:
        log_kwargs["filename"] = log_file
    logging.basicConfig(**log_kwargs)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    wiring = build_app_system(config_path=args.config, interval_ms=args.interval_ms)

    if args.once:
        try:
            result = wiring.cycle.run_once()
            logger.info(
                "Cycle done: %d configs, %d addresses, %d raised, %d cleared, %d dispatched%s",
                result.configs, result.addresses, len(result.raised), len(result.cleared),
                result.dispatched, " (aborted: read failed)" if result.aborted else "",
            )
        finally:
            wiring.notifier.stop(timeout=15.0)
        return 1 if result.aborted else 0

    done = threading.Event()

    def _handle_signal(sig, frame) -> None:
        done.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    wiring.scheduler.start()
    try:
        while not done.wait(0.5):
            pass
    finally:
        wiring.scheduler.stop(timeout=15.0)
        wiring.notifier.stop(timeout=15.0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
