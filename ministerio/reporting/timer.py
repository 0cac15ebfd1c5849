from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ministerio.reporting.book import ReportBook


logger = logging.getLogger(__name__)


class HourTimer:
    """Adds ``quantum_hours`` to the selected day once per ``interval_s``.

    Edits land in the book's memory only; nothing is saved. The timer stops
    on ``toggle``/``stop`` and whenever the book's selection changes.
    """

    def __init__(
        self,
        book: ReportBook,
        *,
        interval_s: float = 1.0,
        quantum_hours: float = 1.0 / 3600.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._book = book
        self._interval_s = interval_s
        self._quantum_hours = quantum_hours
        self._sleep = sleep
        self._active = False
        self._ticks = 0
        book.on_selection_change(self.stop)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def ticks(self) -> int:
        return self._ticks

    def start(self) -> None:
        self._active = True
        logger.info("timer_started", extra={"fecha": self._book.selected_date})

    def stop(self) -> None:
        if self._active:
            logger.info("timer_stopped", extra={"ticks": self._ticks})
        self._active = False

    def toggle(self) -> bool:
        if self._active:
            self.stop()
        else:
            self.start()
        return self._active

    def tick(self) -> float:
        current = self._book.current_day_record.hours or 0.0
        updated = self._book.update_field("hours", current + self._quantum_hours)
        self._ticks += 1
        return updated.hours

    async def run(self) -> None:
        """Tick until stopped. Starts the timer if it is not active yet."""

        if not self._active:
            self.start()
        while self._active:
            await self._sleep(self._interval_s)
            if not self._active:
                break
            self.tick()
