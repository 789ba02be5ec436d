"""Wire payload builders shared by REST responses and room broadcasts."""

from __future__ import annotations

from masher.rooms.machine import PlayerResult
from masher.rooms.machine import PlayerView
from masher.rooms.machine import RoomState


def player_detail(player: PlayerView) -> dict[str, object]:
    return {
        "id": player.player_id,
        "name": player.name,
        "color": player.color,
        "ready": player.ready,
    }


def room_state_payload(state: RoomState) -> dict[str, object]:
    return {
        "code": state.code,
        "status": state.phase.value,
        "players": [player_detail(player) for player in state.players],
        "scores": dict(state.scores),
        "timeLeft": state.time_left,
        "countdownValue": state.countdown_value,
        "maxPlayers": state.max_players,
    }


def result_detail(result: PlayerResult) -> dict[str, object]:
    return {
        "id": result.player_id,
        "name": result.name,
        "color": result.color,
        "score": result.score,
    }


def game_ended_payload(results: list[PlayerResult]) -> dict[str, object]:
    ranked = [result_detail(result) for result in results]
    return {"results": ranked, "winner": ranked[0] if ranked else None}
