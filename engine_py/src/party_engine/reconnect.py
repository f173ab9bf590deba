"""
Reconnection manager: the per-seat grace period between a dropped
connection and permanent removal.
"""

import logging
import time
from typing import Optional

from .models import DisconnectedPlayerRecord, Player, Room
from .timers import TimerHandle
from .ws.events import OutboundEventType

logger = logging.getLogger(__name__)


class ReconnectionManager:
    def __init__(self, manager):
        self.manager = manager

    @property
    def registry(self):
        return self.manager.registry

    @property
    def gateway(self):
        return self.manager.gateway

    @property
    def lobby(self):
        return self.manager.lobby

    def disconnect(self, room: Room, player_id: str):
        """Reserve a dropped player's seat for the grace period."""
        player = room.players.get(player_id)
        if player is None or player.disconnected:
            return

        grace = self.manager.rules.reconnect_grace_seconds
        player.disconnected = True
        player.disconnected_at = time.time()
        player.reconnect_seconds_left = grace
        player.connection_id = None
        self.registry.store_disconnected(DisconnectedPlayerRecord.snapshot(room.code, player))

        engine = self.manager.engine_for(room)
        self.lobby.cancel_countdown(room)
        if room.started:
            engine.on_player_disconnected(room, player.id)
        self.lobby.evaluate_start(room)

        code, pid = room.code, player.id

        def tick():
            self._grace_tick(code, pid, handle)

        handle = self.registry.scheduler.call_every(1, tick)
        player.reconnect_timer = handle
        logger.info(f"{player.name} disconnected from {code}, holding seat for {grace}s")

        self.gateway.to_room(room, OutboundEventType.PLAYER_DISCONNECTED, {"name": player.name, "secondsToReconnect": grace})
        self.gateway.lobby(room)
        if room.started:
            engine.publish(room)

    def _grace_tick(self, code: str, player_id: str, handle: TimerHandle):
        room = self.registry.get(code)
        player = room.players.get(player_id) if room else None
        if player is None or not player.disconnected or player.reconnect_timer is not handle:
            handle.cancel()
            return

        player.reconnect_seconds_left -= 1
        if player.reconnect_seconds_left <= 0:
            handle.cancel()
            player.reconnect_timer = None
            logger.info(f"{player.name} did not return to {code} in time")
            self.remove_permanently(room, player_id)
            return
        self.gateway.to_room(room, OutboundEventType.RECONNECT_TIMER,
                             {"name": player.name, "secondsLeft": player.reconnect_seconds_left})

    def reconnect(self, code: str, name: str, connection_id: str) -> Optional[Player]:
        """
        Rebind a disconnected seat to a new connection.

        Returns None when this is not a reconnection: no record, no room, or no
        matching disconnected player.
        """
        room = self.registry.get(code)
        if room is None or not name:
            return None
        record = self.registry.get_disconnected(room.code, name.strip())
        if record is None:
            return None
        player = room.players.get(record.player_id)
        if player is None or not player.disconnected:
            return None

        if player.reconnect_timer is not None:
            player.reconnect_timer.cancel()
            player.reconnect_timer = None
        player.disconnected = False
        player.disconnected_at = None
        player.reconnect_seconds_left = 0
        player.connection_id = connection_id
        self.registry.discard_disconnected(room.code, player.name)
        self.manager.connections.bind(connection_id, room.code, player.id)

        engine = self.manager.engine_for(room)
        if room.started:
            engine.on_player_reconnected(room, player.id)
        logger.info(f"{player.name} reconnected to {room.code}")

        self.gateway.to_room(room, OutboundEventType.PLAYER_RECONNECTED, {"name": player.name})
        self.lobby.evaluate_start(room)
        self.gateway.lobby(room)
        if room.started:
            engine.publish(room)
        return player

    def remove_permanently(self, room: Room, player_id: str):
        player = room.players.get(player_id)
        if player is None:
            return

        if player.reconnect_timer is not None:
            player.reconnect_timer.cancel()
            player.reconnect_timer = None
        self.registry.discard_disconnected(room.code, player.name)

        engine = self.manager.engine_for(room)
        held_role = room.started and engine.holds_role(room, player.id)
        del room.players[player.id]
        room.skip_votes.discard(player.id)
        if player.connection_id:
            self.manager.connections.unbind(player.connection_id)
        logger.info(f"{player.name} removed from {room.code}")
        self.gateway.to_room(room, OutboundEventType.PLAYER_REMOVED, {"name": player.name})

        if not room.players:
            self.registry.delete(room.code)
            self.manager.connections.drop_room(room.code)
            return

        self.lobby.ensure_host(room)
        if room.started and len(room.active_players()) < room.min_players:
            self.lobby.end_game(room, "Not enough players")
            return

        engine.on_player_removed(room, player, held_role)
        self.lobby.evaluate_start(room)
        self.gateway.lobby(room)
        if room.started:
            engine.publish(room)
