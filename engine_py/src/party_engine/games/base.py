"""
Game engine interface shared by both card games.

An engine is selected by room kind and plugs into the same lobby and
reconnection lifecycle through start / handle_action / on_player_removed.
"""

import logging
from abc import ABC, abstractmethod
from bisect import bisect_right
from typing import Any, Callable, Dict, Optional

from ..constants import GameKind, min_players_for
from ..errors import (
    GameError, ACTION_NOT_ALLOWED, GAME_NOT_STARTED, NOT_IN_ROOM,
)
from ..models import Player, Room
from ..ws.events import OutboundEventType

logger = logging.getLogger(__name__)

ActionHandler = Callable[[Room, str, Any], None]


def next_active_player(room: Room, from_seat: int, direction: int = 1, steps: int = 1) -> Optional[Player]:
    """
    Walk the seat ring from a seat, counting only active players.

    The starting seat may belong to a player who is disconnected or already
    gone; the walk then starts from the gap that player left.
    """
    active = room.active_players()
    if not active:
        return None
    seats = [p.seat for p in active]
    count = len(active)
    if from_seat in seats:
        return active[(seats.index(from_seat) + direction * steps) % count]
    after = bisect_right(seats, from_seat)
    if direction > 0:
        return active[(after + steps - 1) % count]
    return active[(after - steps) % count]


class GameEngine(ABC):
    kind: GameKind
    view_event: OutboundEventType

    def __init__(self, manager):
        self.manager = manager

    @property
    def min_players(self) -> int:
        return min_players_for(self.kind)

    @property
    def rules(self):
        return self.manager.rules

    @property
    def rng(self):
        return self.manager.rng

    @property
    def registry(self):
        return self.manager.registry

    @property
    def gateway(self):
        return self.manager.gateway

    # ------------------------------------------------------------------
    # Capability interface
    # ------------------------------------------------------------------
    @abstractmethod
    def start(self, room: Room) -> None:
        """Deal, pick the first role holder and mark the room started."""

    @abstractmethod
    def actions(self) -> Dict[str, ActionHandler]:
        """Map inbound event types to handlers taking (room, player_id, event)."""

    def handle_action(self, room: Room, player_id: str, action) -> None:
        handler = self.actions().get(action.type)
        if handler is None:
            raise GameError(ACTION_NOT_ALLOWED, f"{action.type.value} is not a {self.kind.value} action")
        self.require_started(room)
        handler(room, player_id, action)

    @abstractmethod
    def on_player_removed(self, room: Room, player: Player, held_role: bool) -> None:
        """Repair game state after a seat is permanently removed. Does not publish."""

    def on_player_disconnected(self, room: Room, player_id: str) -> None:
        """Repair game state when a seat goes into its grace period. Does not publish."""

    def on_player_reconnected(self, room: Room, player_id: str) -> None:
        """Repair game state when a seat comes back. Does not publish."""

    @abstractmethod
    def holds_role(self, room: Room, player_id: str) -> bool:
        """True if the player is the judge / current turn holder."""

    @abstractmethod
    def clear_round_state(self, room: Room) -> None:
        """Drop round-scoped state when a game ends early."""

    @abstractmethod
    def reset_state(self, room: Room) -> None:
        """Drop all game state for a full room reset."""

    @abstractmethod
    def render_view(self, room: Room, viewer_id: Optional[str]) -> Dict[str, Any]:
        """Per-recipient game view."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------
    def publish(self, room: Room):
        self.gateway.game(room, self)

    def require_started(self, room: Room):
        if not room.started:
            raise GameError(GAME_NOT_STARTED, "The game has not started")

    def require_player(self, room: Room, player_id: str) -> Player:
        player = room.players.get(player_id)
        if player is None:
            raise GameError(NOT_IN_ROOM, "You are not seated in this room")
        if player.disconnected:
            raise GameError(ACTION_NOT_ALLOWED, "Disconnected players cannot act")
        return player

    def announce_game_start(self, room: Room):
        room.started = True
        room.game_number += 1
        logger.info(f"Starting {self.kind.value} game #{room.game_number} in {room.code} "
                    f"with {len(room.active_players())} players")
        self.gateway.to_room(room, OutboundEventType.GAME_STARTED, {"kind": self.kind.value})

    def schedule_reset(self, room: Room, delay: float):
        """Reset the room after a win unless another game has begun meanwhile."""
        code, game_number = room.code, room.game_number

        def reset_if_current():
            current = self.registry.get(code)
            if current is None or current.game_number != game_number or not current.started:
                logger.debug(f"Stale reset for {code} ignored")
                return
            self.manager.lobby.reset_room(current)

        self.registry.schedule_delayed(code, delay, reset_if_current)
