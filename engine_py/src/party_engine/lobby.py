"""
Lobby coordinator: joining, ready-up, the start countdown and the transitions
back to the lobby (early end, full reset).
"""

import logging
import uuid

from .errors import GameError, GAME_IN_PROGRESS, NAME_REQUIRED, NAME_TAKEN
from .models import Player, Room
from .timers import TimerHandle
from .ws.events import OutboundEventType

logger = logging.getLogger(__name__)


class LobbyCoordinator:
    def __init__(self, manager):
        self.manager = manager

    @property
    def rules(self):
        return self.manager.rules

    @property
    def gateway(self):
        return self.manager.gateway

    @property
    def registry(self):
        return self.manager.registry

    def clean_name(self, name: str) -> str:
        return (name or "").strip()[:self.rules.max_name_length].strip()

    # ------------------------------------------------------------------
    # Seats
    # ------------------------------------------------------------------
    def join(self, room: Room, name: str, connection_id: str) -> Player:
        """Seat a new player in a room that has not started."""
        name = self.clean_name(name)
        if not name:
            raise GameError(NAME_REQUIRED, "Please enter a name")
        if room.started:
            raise GameError(GAME_IN_PROGRESS, "Game already in progress")
        if room.find_by_name(name, disconnected=False) is not None:
            raise GameError(NAME_TAKEN, "Name taken")

        player = Player(
            id=uuid.uuid4().hex[:8],
            name=name,
            seat=room.next_seat,
            connection_id=connection_id,
            is_host=not any(p.is_host for p in room.players.values()),
        )
        room.next_seat += 1
        room.players[player.id] = player
        self.manager.connections.bind(connection_id, room.code, player.id)
        logger.info(f"{name} joined room {room.code} ({len(room.active_players())} active)")

        self.evaluate_start(room)
        self.gateway.lobby(room)
        return player

    def ensure_host(self, room: Room):
        if room.players and not any(p.is_host for p in room.players.values()):
            next(iter(room.players.values())).is_host = True

    def toggle_ready(self, room: Room, player_id: str):
        player = room.players.get(player_id)
        if player is None or player.disconnected or room.started:
            return
        player.ready = not player.ready
        logger.info(f"{player.name} is {'ready' if player.ready else 'not ready'} in {room.code}")
        self.evaluate_start(room)
        self.gateway.lobby(room)

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------
    def can_start(self, room: Room) -> bool:
        active = room.active_players()
        return len(active) >= room.min_players and all(p.ready for p in active)

    def evaluate_start(self, room: Room):
        """Start or cancel the countdown to match the current ready set."""
        if room.started:
            return
        if self.can_start(room):
            if room.countdown_timer is None:
                self.start_countdown(room)
        elif room.countdown_timer is not None:
            self.cancel_countdown(room)

    def start_countdown(self, room: Room):
        code = room.code
        room.countdown_seconds = self.rules.countdown_seconds

        def tick():
            self._countdown_tick(code, handle)

        handle = self.registry.scheduler.call_every(1, tick)
        room.countdown_timer = handle
        logger.info(f"Countdown started in {code} ({room.countdown_seconds}s)")
        self.gateway.to_room(room, OutboundEventType.COUNTDOWN_TICK, {"seconds": room.countdown_seconds})

    def cancel_countdown(self, room: Room):
        if room.countdown_timer is None:
            return
        room.countdown_timer.cancel()
        room.countdown_timer = None
        room.countdown_seconds = 0
        logger.info(f"Countdown cancelled in {room.code}")
        self.gateway.to_room(room, OutboundEventType.COUNTDOWN_CANCELLED)

    def _countdown_tick(self, code: str, handle: TimerHandle):
        room = self.registry.get(code)
        if room is None or room.countdown_timer is not handle or room.started:
            handle.cancel()
            return
        if not self.can_start(room):
            self.cancel_countdown(room)
            self.gateway.lobby(room)
            return

        room.countdown_seconds -= 1
        if room.countdown_seconds > 0:
            self.gateway.to_room(room, OutboundEventType.COUNTDOWN_TICK, {"seconds": room.countdown_seconds})
            return

        handle.cancel()
        room.countdown_timer = None
        room.countdown_seconds = 0
        self.manager.engine_for(room).start(room)
        self.gateway.lobby(room)

    # ------------------------------------------------------------------
    # Back to the lobby
    # ------------------------------------------------------------------
    def end_game(self, room: Room, reason: str):
        """Abort a running game, keeping scores, and return the room to the lobby."""
        engine = self.manager.engine_for(room)
        room.started = False
        self.registry.cancel_delayed(room.code)
        self.cancel_countdown(room)
        engine.clear_round_state(room)
        for player in room.players.values():
            player.ready = False
        logger.info(f"Game ended in {room.code}: {reason}")
        self.gateway.to_room(room, OutboundEventType.GAME_ENDED, {"reason": reason})
        self.gateway.lobby(room)

    def reset_room(self, room: Room):
        """Full reset: drop reserved seats, clear scores and hands, back to the lobby."""
        self.registry.cancel_delayed(room.code)
        self.cancel_countdown(room)

        for player in [p for p in room.players.values() if p.disconnected]:
            if player.reconnect_timer is not None:
                player.reconnect_timer.cancel()
                player.reconnect_timer = None
            self.registry.discard_disconnected(room.code, player.name)
            del room.players[player.id]
            room.skip_votes.discard(player.id)
            self.gateway.to_room(room, OutboundEventType.PLAYER_REMOVED, {"name": player.name})

        if not room.players:
            self.registry.delete(room.code)
            return

        for player in room.players.values():
            player.reset_for_new_game()
        room.started = False
        self.ensure_host(room)
        self.manager.engine_for(room).reset_state(room)
        logger.info(f"Room {room.code} reset")
        self.gateway.to_room(room, OutboundEventType.GAME_RESET)
        self.gateway.lobby(room)
