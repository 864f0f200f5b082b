"""Periodic rates refresh worker.

Each queue item is a base currency code; processing an item stores every rate
the provider returns for that base. `run_forever` re-enqueues the configured
bases every `refresh_interval_seconds` until the stop event is set.

Usage:
    python -m fxcache.worker            # one refresh cycle
    python -m fxcache.worker --loop     # keep refreshing
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Iterable, List, Optional

from fxcache.core.config import get_settings
from fxcache.core.logging import bind_log_context, init_logging
from fxcache.services.rates.cache_service import (
    RateCacheManager,
    RefreshReport,
    build_rate_cache_manager,
)

logger = logging.getLogger("fxcache.worker")


class RatesQueueWorker:
    def __init__(
        self,
        manager: RateCacheManager,
        base_codes: Iterable[str] = ("EUR",),
        interval_seconds: float = 180,
    ):
        self.manager = manager
        self.base_codes = [c.upper() for c in base_codes] or ["EUR"]
        self.interval_seconds = interval_seconds
        self._queue: "queue.Queue[str]" = queue.Queue()

    def enqueue(self, base_codes: Optional[Iterable[str]] = None) -> int:
        codes = list(base_codes) if base_codes is not None else self.base_codes
        for code in codes:
            self._queue.put(code.upper())
        return len(codes)

    def pending(self) -> int:
        return self._queue.qsize()

    def process_item(self, base_code: str) -> RefreshReport:
        return self.manager.save_rates([base_code])

    def run_once(self) -> List[RefreshReport]:
        """Drain the queue, processing items in the order they were enqueued."""
        reports: List[RefreshReport] = []
        while True:
            try:
                code = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                reports.append(self.process_item(code))
            finally:
                self._queue.task_done()
        return reports

    def run_forever(self, stop_event: threading.Event) -> None:
        logger.info(
            "rates worker started (bases=%s, interval=%ss)",
            ",".join(self.base_codes),
            self.interval_seconds,
            extra={"bases": self.base_codes, "interval_seconds": self.interval_seconds},
        )
        cycle = 0
        while not stop_event.is_set():
            cycle += 1
            with bind_log_context(worker_cycle=cycle):
                self.enqueue()
                for report in self.run_once():
                    if report.failed:
                        logger.warning(
                            "refresh failed for %s",
                            ",".join(report.failed),
                            extra={"failed": report.failed},
                        )
            stop_event.wait(self.interval_seconds)
        logger.info("rates worker stopped", extra={"cycles": cycle})


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Refresh cached exchange rates")
    parser.add_argument(
        "bases", nargs="*", help="Base currency codes (defaults to configured bases)"
    )
    parser.add_argument(
        "--loop", action="store_true", help="Keep refreshing every interval"
    )
    parser.add_argument(
        "--symbols",
        action="store_true",
        help="Force a currencies list update before fetching rates",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    init_logging(debug=settings.debug)
    manager = build_rate_cache_manager(settings)
    if args.symbols and manager.get_currencies_list(force_update=True) is None:
        logger.error("currencies list update failed")
    worker = RatesQueueWorker(
        manager,
        args.bases or settings.fixer_base_currencies,
        settings.refresh_interval_seconds,
    )
    if args.loop:
        stop = threading.Event()
        try:
            worker.run_forever(stop)
        except KeyboardInterrupt:
            stop.set()
        return 0
    worker.enqueue()
    reports = worker.run_once()
    return 1 if any(r.failed for r in reports) else 0


if __name__ == "__main__":
    raise SystemExit(main())
