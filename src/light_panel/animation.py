"""Timing helpers around the panel: the busy window and the dim-swatch pulse.

Neither feeds back into connection or dispatch logic.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from light_panel.logging_abstraction import get_logger

__all__ = ["BrightnessOscillator", "BusyWindow"]

logger = get_logger(__name__)


class BusyWindow:
    """Loading state shown after a dim scene is selected.

    Each `start()` schedules its own timer; timers are never cancelled and
    the window stays active until every started timer has fired.
    """

    lp: str = "busy:"

    def __init__(self, duration: float = 40.0) -> None:
        self.duration: float = duration
        self._pending: int = 0
        self._idle: asyncio.Event = asyncio.Event()
        self._idle.set()

    @property
    def active(self) -> bool:
        return self._pending > 0

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._pending += 1
        self._idle.clear()
        _ = loop.call_later(self.duration, self._finish)
        logger.debug("%s started %.1fs window (pending=%d)", self.lp, self.duration, self._pending)

    def _finish(self) -> None:
        self._pending -= 1
        if self._pending <= 0:
            self._pending = 0
            self._idle.set()
            logger.debug("%s window elapsed", self.lp)

    async def wait(self) -> None:
        """Block until no busy timer is outstanding."""
        _ = await self._idle.wait()


class BrightnessOscillator:
    """Triangle wave between 0 and 100 used as the opacity of dim swatches."""

    def __init__(
        self,
        step: int = 5,
        interval: float = 0.2,
        on_change: Callable[[float], None] | None = None,
    ) -> None:
        self.step: int = step
        self.interval: float = interval
        self.on_change: Callable[[float], None] | None = on_change
        self.brightness: int = 100
        self.dimming: bool = False

    @property
    def opacity(self) -> float:
        return self.brightness / 100

    def tick(self) -> int:
        if self.brightness >= 100:
            self.dimming = True
        elif self.brightness <= 0:
            self.dimming = False
        self.brightness += -self.step if self.dimming else self.step
        self.brightness = min(max(self.brightness, 0), 100)
        if self.on_change is not None:
            self.on_change(self.opacity)
        return self.brightness

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            _ = self.tick()
