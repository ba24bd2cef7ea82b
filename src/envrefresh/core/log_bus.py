"""In-process publish/subscribe channel for log records.

Every line the envrefresh logger prints is also published here, so callers
and tests can capture output without scraping stdout. Subscriber failures
never propagate into the publisher.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


Subscriber = Callable[[LogRecord], None]


class LogBus:
    def __init__(self) -> None:
        self._by_level: dict[str, list[Subscriber]] = {}
        self._all: list[Subscriber] = []

    def subscribe(self, level_name: str, cb: Subscriber) -> None:
        self._by_level.setdefault(level_name.upper(), []).append(cb)

    def subscribe_all(self, cb: Subscriber) -> None:
        self._all.append(cb)

    def publish(self, record: LogRecord) -> None:
        for cb in list(self._all):
            self._deliver(cb, record)
        for cb in list(self._by_level.get(record.level_name, [])):
            self._deliver(cb, record)

    def clear(self) -> None:
        self._by_level.clear()
        self._all.clear()

    def _deliver(self, cb: Subscriber, record: LogRecord) -> None:
        try:
            cb(record)
        except Exception:
            # Never route through the logger here: it would publish again.
            msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
            with contextlib.suppress(Exception):
                sys.stderr.write(msg)


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
