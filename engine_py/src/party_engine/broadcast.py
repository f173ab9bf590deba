"""Connection bookkeeping and room-scoped fan-out of outbound events"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .models import Room
from .serialization import lobby_view
from .ws.events import OutboundEventType

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Delivers one outbound message to one connection without blocking."""

    def send(self, connection_id: str, message: Dict[str, Any]) -> None:
        ...


class ConnectionManager:
    """Maps transport connections to the (room code, player id) seat they drive."""

    def __init__(self):
        self.connection_rooms: Dict[str, str] = {}
        self.connection_players: Dict[str, str] = {}
        self.room_connections: Dict[str, List[str]] = {}

    def bind(self, connection_id: str, room_code: str, player_id: str):
        self.unbind(connection_id)
        self.connection_rooms[connection_id] = room_code
        self.connection_players[connection_id] = player_id
        self.room_connections.setdefault(room_code, []).append(connection_id)
        logger.debug(f"Connection {connection_id} bound to {player_id} in room {room_code}")

    def unbind(self, connection_id: str) -> Optional[Tuple[str, str]]:
        room_code = self.connection_rooms.pop(connection_id, None)
        player_id = self.connection_players.pop(connection_id, None)
        if room_code is None:
            return None

        connections = self.room_connections.get(room_code, [])
        if connection_id in connections:
            connections.remove(connection_id)
        if not connections:
            self.room_connections.pop(room_code, None)
        return room_code, player_id

    def binding(self, connection_id: str) -> Optional[Tuple[str, str]]:
        room_code = self.connection_rooms.get(connection_id)
        if room_code is None:
            return None
        return room_code, self.connection_players[connection_id]

    def connections_in(self, room_code: str) -> List[str]:
        return list(self.room_connections.get(room_code, []))

    def drop_room(self, room_code: str):
        for connection_id in self.connections_in(room_code):
            self.unbind(connection_id)

    def __len__(self) -> int:
        return len(self.connection_rooms)


class BroadcastGateway:
    """Renders room state into per-recipient messages and hands them to the transport."""

    def __init__(self, transport: Transport, connections: ConnectionManager):
        self.transport = transport
        self.connections = connections

    @staticmethod
    def message(event: OutboundEventType, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {"type": event.value, **(payload or {})}

    def to_connection(self, connection_id: Optional[str], event: OutboundEventType,
                      payload: Optional[Dict[str, Any]] = None):
        if not connection_id:
            return
        self.transport.send(connection_id, self.message(event, payload))

    def to_room(self, room: Room, event: OutboundEventType, payload: Optional[Dict[str, Any]] = None):
        message = self.message(event, payload)
        for connection_id in self.connections.connections_in(room.code):
            self.transport.send(connection_id, message)
        logger.debug(f"[{room.code}] -> {event.value}")

    def to_player(self, room: Room, player_id: str, event: OutboundEventType,
                  payload: Optional[Dict[str, Any]] = None):
        player = room.players.get(player_id)
        if player is None or player.disconnected:
            return
        self.to_connection(player.connection_id, event, payload)

    def lobby(self, room: Room):
        self.to_room(room, OutboundEventType.LOBBY_VIEW, lobby_view(room))

    def game(self, room: Room, engine):
        """Send every connected player their own view of the game."""
        for player in room.active_players():
            self.game_for(room, engine, player.id)

    def game_for(self, room: Room, engine, player_id: str):
        player = room.players.get(player_id)
        if player is None or player.disconnected or not player.connection_id:
            return
        self.to_connection(player.connection_id, engine.view_event, engine.render_view(room, player_id))
