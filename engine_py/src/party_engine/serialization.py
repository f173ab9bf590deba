"""
Room state serialization for transmission to clients.

Views are plain dictionaries with camelCase keys. Game views are rendered per
recipient: only the viewer's own hand is included.
"""

from typing import Any, Dict, Optional

from .models import Player, Room


def serialize_player_for_list(player: Player) -> Dict[str, Any]:
    """Serialize player for the lobby player list."""
    return {
        "id": player.id,
        "name": player.name,
        "ready": player.ready,
        "disconnected": player.disconnected,
        "reconnectSecondsLeft": player.reconnect_seconds_left if player.disconnected else 0,
        "isHost": player.is_host,
        "score": player.score,
    }


def lobby_view(room: Room) -> Dict[str, Any]:
    active = room.active_players()
    return {
        "code": room.code,
        "kind": room.kind.value,
        "phase": room.phase,
        "players": [serialize_player_for_list(p) for p in room.players.values()],
        "totalPlayers": len(active),
        "minPlayers": room.min_players,
        "readyCount": len([p for p in active if p.ready]),
        "countdownSeconds": room.countdown_seconds,
        "countdownActive": room.countdown_timer is not None,
        "started": room.started,
    }


def trick_view(room: Room, viewer_id: Optional[str]) -> Dict[str, Any]:
    """
    Sanitize trick-card state for one viewer.

    Submissions stay hidden until every non-judge player has submitted; from
    then on they are listed in their shuffled judging order.
    """
    state = room.trick
    judge = room.players.get(state.judge_id) if state.judge_id else None
    viewer = room.players.get(viewer_id) if viewer_id else None

    sanitized = {
        "code": room.code,
        "kind": room.kind.value,
        "started": room.started,
        "round": state.round_number,
        "prompt": state.prompt,
        "judgeId": judge.id if judge else None,
        "judgeName": judge.name if judge else None,
        "judgeIndex": state.judge_index,
        "submissionCount": len(state.submissions),
        "allSubmitted": state.judging,
        "submissions": [],
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "score": p.score,
                "isJudge": p.is_judge,
                "hasSubmitted": p.has_submitted,
                "disconnected": p.disconnected,
                "handCount": len(p.hand),
            }
            for p in room.players.values()
        ],
    }

    if state.judging:
        sanitized["submissions"] = [
            {"card": s.card, "playerId": s.player_id} for s in state.submissions
        ]

    if viewer is not None:
        sanitized["myId"] = viewer.id
        sanitized["myHand"] = list(viewer.hand)
        sanitized["isJudge"] = viewer.is_judge
        sanitized["hasSubmitted"] = viewer.has_submitted

    return sanitized


def shedding_view(room: Room, viewer_id: Optional[str]) -> Dict[str, Any]:
    """Sanitize shedding-card state for one viewer."""
    state = room.shedding
    viewer = room.players.get(viewer_id) if viewer_id else None
    current = state.current_card

    sanitized = {
        "code": room.code,
        "kind": room.kind.value,
        "started": room.started,
        "currentCard": current.to_dict() if current else None,
        "currentPlayerId": state.current_player_id,
        "turnIndex": state.turn_index,
        "direction": state.direction,
        "drawStack": state.draw_stack,
        "deckCount": len(state.draw_pile),
        "discardCount": len(state.discard_pile),
        "winnerId": state.winner_id,
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "handCount": len(p.hand),
                "declaredLowCard": p.declared_low_card,
                "disconnected": p.disconnected,
            }
            for p in room.players.values()
        ],
    }

    if viewer is not None:
        sanitized["myId"] = viewer.id
        sanitized["myHand"] = [card.to_dict() for card in viewer.hand]
        sanitized["isMyTurn"] = viewer.id == state.current_player_id

    return sanitized
