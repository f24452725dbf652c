"""Recurring timer used to drive player progress notifications."""

from __future__ import annotations

import logging
import threading
from typing import Callable


class RepeatingTimer:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread.

    The first call happens one interval after ``start()``. ``cancel()`` only
    signals the thread, so it is safe to call from inside the callback.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        *,
        name: str = "audio-player-progress",
        logger=None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = float(interval)
        self.callback = callback
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("timer already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._stop_event.set()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                self.logger.exception("Progress callback failed")
