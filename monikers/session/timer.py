"""
Turn Timer - Cancellable one-second countdown.

The timer never touches game context. It only sends events:
- Tick(remaining) once at start with the full duration
- Tick(remaining) after every elapsed second
- TimeUp() once the count reaches zero, then it stops itself

stop() is final: no event is sent after it returns.
"""

from __future__ import annotations
from typing import Awaitable, Callable
import asyncio
import logging

from ..engine_core.event import Event, Tick, TimeUp

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class TurnTimer:
    """
    Countdown for one turn.

    Usage:
        timer = TurnTimer(45, actor.send)
        timer.start()     # needs a running event loop
        ...
        timer.stop()
    """

    def __init__(
        self,
        seconds: int,
        send: Callable[[Event], object],
        sleep: Sleep = asyncio.sleep,
    ):
        self.seconds = seconds
        self.remaining = seconds
        self._send = send
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopped

    def start(self) -> None:
        """Schedule the countdown on the running loop."""
        if self._task is not None:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    def stop(self) -> None:
        """Cancel the countdown. Idempotent."""
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def sync(self, remaining: int) -> None:
        """Overwrite the count, e.g. after a skip penalty."""
        self.remaining = max(0, remaining)

    async def wait(self) -> None:
        """Wait for the countdown to finish or be cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    def _emit(self, event: Event) -> bool:
        if self._stopped:
            return False
        self._send(event)
        return True

    async def _run(self) -> None:
        if not self._emit(Tick(remaining=self.remaining)):
            return
        while self.remaining > 0:
            await self._sleep(1)
            self.remaining = max(0, self.remaining - 1)
            if not self._emit(Tick(remaining=self.remaining)):
                return
        logger.debug("Turn timer of %ss expired", self.seconds)
        self._stopped = True
        self._send(TimeUp())
