"""Match clock contract tests with fast tick intervals."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from masher.rooms import machine
from masher.rooms.clock import MatchClock
from masher.rooms.clock import RoomTimer
from masher.rooms.events import ServerEvent
from masher.rooms.registry import Phase
from masher.rooms.registry import Room
from masher.rooms.registry import RoomRegistry

TICK = 0.01


class _RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[tuple[str, ServerEvent, dict[str, Any]]] = []

    async def __call__(self, code: str, event: ServerEvent, payload: dict[str, Any]) -> None:
        self.events.append((code, event, payload))

    def types(self) -> list[ServerEvent]:
        return [event for _, event, _ in self.events]


def _ready_room(registry: RoomRegistry, *player_ids: str) -> Room:
    room = registry.create_room()
    for player_id in player_ids:
        machine.add_player(room, player_id, player_id.upper(), "#abcdef")
        machine.toggle_ready(room, player_id)
    return room


def _new_clock(registry: RoomRegistry, publisher: _RecordingPublisher) -> MatchClock:
    return MatchClock(registry, publisher, tick_interval=TICK, settle_delay=TICK)


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(TICK / 2)


def test_full_match_publishes_countdown_round_and_results(registry: RoomRegistry) -> None:
    """Input: two ready players -> Output: starting, 2-1-0, started, 9..0, ended in order."""
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")

    async def _scenario() -> None:
        clock = _new_clock(registry, publisher)
        assert clock.schedule_start(room.code) is True
        await _wait_for(lambda: room.phase is Phase.PLAYING)
        with registry.lock_room(room.code) as locked:
            machine.register_click(locked, "b")
            machine.register_click(locked, "b")
            machine.register_click(locked, "a")
        await _wait_for(lambda: ServerEvent.GAME_ENDED in publisher.types())
        await _wait_for(lambda: clock.active_task_count == 0)

    asyncio.run(_scenario())

    types = publisher.types()
    assert types[0] is ServerEvent.GAME_STARTING
    assert publisher.events[0][2]["status"] == "countdown"
    assert publisher.events[0][2]["countdownValue"] == 3
    countdowns = [payload["countdownValue"] for _, event, payload in publisher.events if event is ServerEvent.COUNTDOWN_UPDATE]
    assert countdowns == [2, 1, 0]
    assert types.count(ServerEvent.GAME_STARTED) == 1
    started_index = types.index(ServerEvent.GAME_STARTED)
    assert types[started_index - 1] is ServerEvent.COUNTDOWN_UPDATE
    timer_values = [payload["timeLeft"] for _, event, payload in publisher.events if event is ServerEvent.TIMER_UPDATE]
    assert timer_values == list(range(9, -1, -1))
    assert types[-1] is ServerEvent.GAME_ENDED
    ended = publisher.events[-1][2]
    assert [(item["id"], item["score"]) for item in ended["results"]] == [("b", 2), ("a", 1)]
    assert ended["winner"]["id"] == "b"
    assert room.phase is Phase.FINISHED
    assert room.countdown_timer is None
    assert room.round_timer is None


def test_schedule_start_arms_only_once(registry: RoomRegistry) -> None:
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")

    async def _scenario() -> tuple[bool, bool]:
        clock = _new_clock(registry, publisher)
        first = clock.schedule_start(room.code)
        second = clock.schedule_start(room.code)
        await clock.shutdown()
        return first, second

    assert asyncio.run(_scenario()) == (True, False)


def test_schedule_start_refuses_rooms_not_all_ready(registry: RoomRegistry) -> None:
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")
    machine.toggle_ready(room, "b")

    async def _scenario() -> tuple[bool, bool]:
        clock = _new_clock(registry, publisher)
        return clock.schedule_start(room.code), clock.schedule_start("ZZZZ")

    assert asyncio.run(_scenario()) == (False, False)
    assert room.countdown_timer is None


def test_readiness_change_during_settle_delay_aborts_countdown(registry: RoomRegistry) -> None:
    """Input: a player un-readies before the settle delay elapses -> Output: no countdown, room still waiting."""
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")

    async def _scenario() -> None:
        clock = MatchClock(registry, publisher, tick_interval=TICK, settle_delay=0.05)
        assert clock.schedule_start(room.code) is True
        with registry.lock_room(room.code) as locked:
            machine.toggle_ready(locked, "a")
        await _wait_for(lambda: clock.active_task_count == 0)

    asyncio.run(_scenario())

    assert publisher.events == []
    assert room.phase is Phase.WAITING
    assert room.countdown_timer is None


def test_reset_mid_round_stops_ticks(registry: RoomRegistry) -> None:
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")

    async def _scenario() -> int:
        clock = _new_clock(registry, publisher)
        clock.schedule_start(room.code)
        await _wait_for(lambda: ServerEvent.TIMER_UPDATE in publisher.types())
        with registry.lock_room(room.code) as locked:
            machine.reset_to_waiting(locked)
        published_at_reset = len(publisher.events)
        await _wait_for(lambda: clock.active_task_count == 0)
        await asyncio.sleep(TICK * 5)
        return published_at_reset

    published_at_reset = asyncio.run(_scenario())

    assert len(publisher.events) == published_at_reset
    assert ServerEvent.GAME_ENDED not in publisher.types()
    assert room.phase is Phase.WAITING
    assert room.time_left == 10
    assert room.round_timer is None


def test_reset_during_countdown_cancels_countdown(registry: RoomRegistry) -> None:
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")

    async def _scenario() -> None:
        clock = _new_clock(registry, publisher)
        clock.schedule_start(room.code)
        await _wait_for(lambda: ServerEvent.GAME_STARTING in publisher.types())
        with registry.lock_room(room.code) as locked:
            machine.reset_to_waiting(locked)
        await _wait_for(lambda: clock.active_task_count == 0)

    asyncio.run(_scenario())

    assert ServerEvent.GAME_STARTED not in publisher.types()
    assert room.phase is Phase.WAITING
    assert room.countdown_timer is None


def test_reset_while_final_countdown_update_is_sent_suppresses_game_started(registry: RoomRegistry) -> None:
    """Input: reset lands during the countdownValue=0 send -> Output: no game-started after the reset."""
    room = _ready_room(registry, "a", "b")
    events: list[tuple[str, str]] = []

    async def _resetting_publisher(code: str, event: ServerEvent, payload: dict[str, Any]) -> None:
        events.append((event.value, payload.get("status", "")))
        if event is ServerEvent.COUNTDOWN_UPDATE and payload["countdownValue"] == 0:
            with registry.lock_room(code) as locked:
                machine.reset_to_waiting(locked)
            events.append(("room-update", locked.phase.value))
            await asyncio.sleep(0)

    async def _scenario() -> None:
        clock = MatchClock(registry, _resetting_publisher, tick_interval=TICK, settle_delay=TICK)
        clock.schedule_start(room.code)
        await _wait_for(lambda: ("room-update", "waiting") in events)
        await _wait_for(lambda: clock.active_task_count == 0)
        await asyncio.sleep(TICK * 3)

    asyncio.run(_scenario())

    assert events[-1] == ("room-update", "waiting")
    assert ("game-started", "playing") not in events
    assert room.phase is Phase.WAITING
    assert room.round_timer is None


def test_reset_while_final_timer_update_is_sent_suppresses_game_ended(registry: RoomRegistry) -> None:
    """Input: reset lands during the timeLeft=0 send -> Output: no game-ended after the reset."""
    room = _ready_room(registry, "a", "b")
    events: list[str] = []

    async def _resetting_publisher(code: str, event: ServerEvent, payload: dict[str, Any]) -> None:
        events.append(event.value)
        if event is ServerEvent.TIMER_UPDATE and payload["timeLeft"] == 0:
            with registry.lock_room(code) as locked:
                machine.reset_to_waiting(locked)
            events.append("room-update")
            await asyncio.sleep(0)

    async def _scenario() -> None:
        clock = MatchClock(registry, _resetting_publisher, tick_interval=TICK, settle_delay=TICK)
        clock.schedule_start(room.code)
        await _wait_for(lambda: "room-update" in events)
        await _wait_for(lambda: clock.active_task_count == 0)

    asyncio.run(_scenario())

    assert events[-1] == "room-update"
    assert "game-ended" not in events
    assert room.phase is Phase.WAITING


def test_removing_last_player_mid_round_makes_ticks_noops(registry: RoomRegistry) -> None:
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")

    async def _scenario() -> int:
        clock = _new_clock(registry, publisher)
        clock.schedule_start(room.code)
        await _wait_for(lambda: ServerEvent.TIMER_UPDATE in publisher.types())
        machine.remove_player(registry, "a")
        machine.remove_player(registry, "b")
        published_at_removal = len(publisher.events)
        await _wait_for(lambda: clock.active_task_count == 0)
        return published_at_removal

    published_at_removal = asyncio.run(_scenario())

    assert registry.get_room(room.code) is None
    assert len(publisher.events) == published_at_removal


def test_shutdown_cancels_outstanding_tasks(registry: RoomRegistry) -> None:
    publisher = _RecordingPublisher()
    room = _ready_room(registry, "a", "b")

    async def _scenario() -> int:
        clock = MatchClock(registry, publisher, tick_interval=10.0, settle_delay=10.0)
        clock.schedule_start(room.code)
        await clock.shutdown()
        return clock.active_task_count

    assert asyncio.run(_scenario()) == 0
    assert publisher.events == []


def test_room_timer_cancel_flips_token_without_task() -> None:
    async def _scenario() -> RoomTimer:
        timer = RoomTimer("ABCD", "round", asyncio.get_running_loop())
        timer.cancel()
        return timer

    timer = asyncio.run(_scenario())
    assert timer.cancelled is True


def test_room_timer_cancel_from_worker_thread_cancels_task() -> None:
    """Input: cancel() called off the loop thread -> Output: token flipped and task cancelled on its loop."""

    async def _scenario() -> tuple[RoomTimer, asyncio.Task[None]]:
        loop = asyncio.get_running_loop()
        timer = RoomTimer("ABCD", "round", loop)
        task = loop.create_task(asyncio.sleep(10.0))
        timer.attach(task)
        await asyncio.to_thread(timer.cancel)
        await asyncio.gather(task, return_exceptions=True)
        return timer, task

    timer, task = asyncio.run(_scenario())

    assert timer.cancelled is True
    assert task.cancelled() is True
