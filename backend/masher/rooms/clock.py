"""Per-room countdown and round timers driven by asyncio tasks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Coroutine
import logging
from typing import Any

from masher.rooms import machine
from masher.rooms.errors import RoomNotFoundError
from masher.rooms.events import ServerEvent
from masher.rooms.registry import Phase
from masher.rooms.registry import Room
from masher.rooms.registry import RoomRegistry
from masher.rooms.views import game_ended_payload
from masher.rooms.views import room_state_payload

logger = logging.getLogger(__name__)

Publisher = Callable[[str, ServerEvent, dict[str, Any]], Awaitable[None]]


class RoomTimer:
    """Cancellation token for one room process plus the task running it.

    The token flips synchronously on ``cancel``; ticks check it under the room
    lock, so a task that is already past its sleep still cannot mutate.
    """

    def __init__(self, code: str, kind: str, loop: asyncio.AbstractEventLoop) -> None:
        self.code = code
        self.kind = kind
        self.cancelled = False
        self._loop = loop
        self._task: asyncio.Task[None] | None = None

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def cancel(self) -> None:
        self.cancelled = True
        task = self._task
        if task is None or task.done():
            return

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if running_loop is self._loop:
            # A tick that finishes its own round only flips the token.
            if task is not asyncio.current_task():
                task.cancel()
            return
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(task.cancel)

    def __repr__(self) -> str:
        return f"RoomTimer(code={self.code!r}, kind={self.kind!r}, cancelled={self.cancelled})"


class MatchClock:
    """Runs the settle delay, countdown ticks and round ticks for every room."""

    def __init__(
        self,
        registry: RoomRegistry,
        publish: Publisher,
        *,
        tick_interval: float = 1.0,
        settle_delay: float = 1.0,
    ) -> None:
        self._registry = registry
        self._publish = publish
        self._tick_interval = tick_interval
        self._settle_delay = settle_delay
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def active_task_count(self) -> int:
        return len(self._tasks)

    def schedule_start(self, code: str) -> bool:
        """Arm the countdown process for an all-ready room; False when not armed."""
        loop = asyncio.get_running_loop()
        try:
            with self._registry.lock_room(code) as room:
                if room.countdown_timer is not None or not machine.all_ready(room):
                    return False
                timer = RoomTimer(code, "countdown", loop)
                room.countdown_timer = timer
                self._spawn(timer, self._run_countdown(code, timer))
        except RoomNotFoundError:
            return False
        logger.debug("countdown armed room=%s settle=%.2fs", code, self._settle_delay)
        return True

    async def shutdown(self) -> None:
        """Cancel every outstanding room task and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _spawn(self, timer: RoomTimer, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=f"room-{timer.code}-{timer.kind}")
        timer.attach(task)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("room timer task %s crashed", task.get_name(), exc_info=exc)

    @staticmethod
    def _owns(room: Room, timer: RoomTimer, slot: str) -> bool:
        return not timer.cancelled and getattr(room, slot) is timer

    def _start_round_locked(self, room: Room) -> RoomTimer:
        timer = RoomTimer(room.code, "round", asyncio.get_running_loop())
        room.round_timer = timer
        self._spawn(timer, self._run_round(room.code, timer))
        return timer

    async def _run_countdown(self, code: str, timer: RoomTimer) -> None:
        try:
            await asyncio.sleep(self._settle_delay)
            with self._registry.lock_room(code) as room:
                if not self._owns(room, timer, "countdown_timer"):
                    return
                if not machine.all_ready(room):
                    room.countdown_timer = None
                    logger.info("countdown aborted, readiness changed room=%s", code)
                    return
                machine.start_countdown(room)
                state = machine.snapshot(room)
            await self._publish(code, ServerEvent.GAME_STARTING, room_state_payload(state))

            while True:
                await asyncio.sleep(self._tick_interval)
                round_timer = None
                with self._registry.lock_room(code) as room:
                    if not self._owns(room, timer, "countdown_timer"):
                        return
                    if not machine.tick_countdown(room):
                        room.countdown_timer = None
                        return
                    countdown_value = room.countdown_value
                    if room.phase is Phase.PLAYING:
                        room.countdown_timer = None
                        round_timer = self._start_round_locked(room)

                await self._publish(code, ServerEvent.COUNTDOWN_UPDATE, {"countdownValue": countdown_value})
                if round_timer is not None:
                    # A reset may land while the last countdown update is being sent.
                    with self._registry.lock_room(code) as room:
                        if not self._owns(room, round_timer, "round_timer"):
                            return
                        started_state = machine.snapshot(room)
                    await self._publish(code, ServerEvent.GAME_STARTED, room_state_payload(started_state))
                    return
        except RoomNotFoundError:
            logger.debug("countdown stopped, room gone room=%s", code)

    async def _run_round(self, code: str, timer: RoomTimer) -> None:
        try:
            while True:
                await asyncio.sleep(self._tick_interval)
                with self._registry.lock_room(code) as room:
                    if not self._owns(room, timer, "round_timer"):
                        return
                    if not machine.tick_round(room):
                        room.round_timer = None
                        return
                    time_left = room.time_left
                    finished = room.phase is Phase.FINISHED

                await self._publish(code, ServerEvent.TIMER_UPDATE, {"timeLeft": time_left})
                if finished:
                    with self._registry.lock_room(code) as room:
                        if room.phase is not Phase.FINISHED:
                            return
                        results = machine.compute_results(room)
                    await self._publish(code, ServerEvent.GAME_ENDED, game_ended_payload(results))
                    return
        except RoomNotFoundError:
            logger.debug("round stopped, room gone room=%s", code)


__all__ = [
    "MatchClock",
    "Publisher",
    "RoomTimer",
]
