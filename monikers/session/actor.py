"""
Game Actor - Owns one running game.

The actor:
1. Holds the current MachineSnapshot
2. Applies events one at a time through the Reducer
3. Starts and stops the TurnTimer as the machine enters and leaves playing
4. Notifies subscribers after every change

Events sent while another event is being applied (from a subscriber or
from the timer) are queued and applied afterwards, never interleaved.
"""

from __future__ import annotations
from collections import deque
from typing import Callable, Protocol
import logging
import uuid

from ..engine_core.event import Event
from ..engine_core.reducer import Reducer, TransitionResult
from ..engine_core.rules import GameRules
from ..engine_core.state import MachineSnapshot, MachineState
from .timer import TurnTimer

logger = logging.getLogger(__name__)

Subscriber = Callable[[MachineSnapshot], None]


class Timer(Protocol):
    remaining: int

    def start(self) -> None: ...
    def stop(self) -> None: ...
    def sync(self, remaining: int) -> None: ...


TimerFactory = Callable[[int, Callable[[Event], object]], Timer]

# Most recent applied events kept per game
HISTORY_LIMIT = 200


class GameActor:
    """
    A live game.

    With the default TurnTimer, events that start a turn must be sent
    from a running event loop; otherwise the send raises RuntimeError
    and the game stays where it was.

    Usage:
        async def main():
            actor = GameActor()
            unsubscribe = actor.subscribe(render)
            actor.send(AddTeam(id="a", name="Owls"))
            ...
            actor.snapshot.matches("rounds.turn.playing")
    """

    def __init__(
        self,
        rules: GameRules | None = None,
        timer_factory: TimerFactory = TurnTimer,
        game_id: str | None = None,
    ):
        self.game_id = game_id or str(uuid.uuid4())
        self.reducer = Reducer(rules=rules or GameRules())
        self._timer_factory = timer_factory
        self._snapshot = self.reducer.initial_snapshot()
        self._subscribers: list[Subscriber] = []
        self._queue: deque[Event] = deque()
        self._draining = False
        self._timer: Timer | None = None
        self.history: deque[Event] = deque(maxlen=HISTORY_LIMIT)

    @property
    def snapshot(self) -> MachineSnapshot:
        return self._snapshot

    @property
    def timer(self) -> Timer | None:
        """The live turn timer, if a turn is being played."""
        return self._timer

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register for a snapshot after every change.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def send(self, event: Event) -> MachineSnapshot:
        """
        Apply an event (or queue it if one is being applied).

        Returns the snapshot after the queue has been drained.
        """
        self._queue.append(event)
        if self._draining:
            return self._snapshot

        self._draining = True
        try:
            while self._queue:
                self._process(self._queue.popleft())
        finally:
            self._draining = False
        return self._snapshot

    def stop(self) -> None:
        """Stop the timer and drop subscribers. The snapshot stays readable."""
        self._stop_timer()
        self._subscribers.clear()
        self._queue.clear()

    def _process(self, event: Event) -> None:
        previous = self._snapshot
        result = self.reducer.apply(previous, event)
        if not result.handled:
            return

        pending = len(self._queue)
        try:
            self._supervise_timer(previous, result)
        except Exception:
            # Drop anything the failed timer managed to queue; the
            # snapshot has not moved.
            while len(self._queue) > pending:
                self._queue.pop()
            logger.warning("Game %s: %s not applied, timer failed", self.game_id, event.type.value)
            raise

        self.history.append(event)
        self._snapshot = result.snapshot

        if result.changed:
            self._notify(result.snapshot)

    def _supervise_timer(self, previous: MachineSnapshot, result: TransitionResult) -> None:
        """Keep exactly one timer alive while (and only while) a turn is played."""
        now = result.snapshot
        restarted = MachineState.PLAYING in result.entered

        if previous.state == MachineState.PLAYING and (now.state != MachineState.PLAYING or restarted):
            self._stop_timer()

        if now.state != MachineState.PLAYING:
            return

        if restarted or self._timer is None:
            self._start_timer(now.context.turn_seconds)
        elif self._timer.remaining != now.context.remaining_seconds:
            self._timer.sync(now.context.remaining_seconds)

    def _start_timer(self, seconds: int) -> None:
        self._stop_timer()
        logger.debug("Game %s: starting %ss turn timer", self.game_id, seconds)
        timer = self._timer_factory(seconds, self.send)
        try:
            timer.start()
        except Exception:
            timer.stop()
            raise
        self._timer = timer

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def _notify(self, snapshot: MachineSnapshot) -> None:
        for callback in list(self._subscribers):
            callback(snapshot)
