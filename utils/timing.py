"""Progress timing for long migration steps.

`timed_block` logs START/END for a named step and, while the step runs, a
periodic progress line with the number of records the caller has reported
so far. Log lines already carry a UTC timestamp (see `logging_utils`).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from time import perf_counter


@dataclass
class Progress:
    """Counter shared between a running step and its progress thread."""

    records: int = 0

    def advance(self, n: int = 1) -> None:
        self.records += n


@contextmanager
def timed_block(
    name: str,
    *,
    ping_every_seconds: int = 60,
    logger_obj: logging.Logger | None = None,
):
    """Time a step and yield a `Progress` the step can advance.

    Elapsed time and the final record count are logged on exit, also when the
    step raises.
    """

    progress = Progress()
    start = perf_counter()
    stop_event = threading.Event()

    def _ping_loop():
        while not stop_event.wait(ping_every_seconds):
            if logger_obj is not None:
                logger_obj.info(
                    "%s still running: %s record(s) after %.0fs",
                    name,
                    progress.records,
                    perf_counter() - start,
                )

    t = threading.Thread(target=_ping_loop, daemon=True)
    t.start()

    if logger_obj is not None:
        logger_obj.info("START %s", name)

    try:
        yield progress
    finally:
        stop_event.set()
        if logger_obj is not None:
            logger_obj.info(
                "END %s | records=%s elapsed=%.2fs",
                name,
                progress.records,
                perf_counter() - start,
            )


def timed(name: str, *, logger_obj: logging.Logger | None = None):
    """Decorator form of `timed_block`; the wrapped function's int result is the record count."""

    def _decorator(fn):
        @wraps(fn)
        def _wrapped(*args, **kwargs):
            with timed_block(name, logger_obj=logger_obj) as progress:
                result = fn(*args, **kwargs)
                if isinstance(result, int):
                    progress.records = result
                return result

        return _wrapped

    return _decorator
