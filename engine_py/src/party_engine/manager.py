"""
Game manager: owns the registry, connections and engines, and routes every
inbound event to the lobby, the reconnection manager or the room's engine.
"""

import hmac
import logging
import math
import random
from typing import Any, Dict, Optional, Tuple

from .broadcast import BroadcastGateway, ConnectionManager, Transport
from .errors import (
    GameError, INTERNAL_ERROR, INVALID_EVENT, NOT_IN_ROOM, ROOM_NOT_FOUND,
)
from .games import ENGINE_CLASSES, GameEngine
from .lobby import LobbyCoordinator
from .models import Player, Room
from .reconnect import ReconnectionManager
from .registry import RoomRegistry, normalize_code
from .rules import RuleConfig, default_rules
from .sanitize import Sanitizer, clean
from .shuffle import CardTexts
from .timers import AsyncioScheduler, Scheduler
from .ws.events import (
    AdminEvent, ChatEvent, CreateRoomEvent, EventType, JoinRoomEvent, OutboundEventType,
    create_error_payload, parse_inbound_event,
)

logger = logging.getLogger(__name__)


class GameManager:
    def __init__(self, transport: Transport, rules: Optional[RuleConfig] = None,
                 scheduler: Optional[Scheduler] = None, rng: Optional[random.Random] = None,
                 card_texts: Optional[CardTexts] = None, sanitizer: Optional[Sanitizer] = None):
        self.rules = rules or default_rules
        self.rng = rng or random.Random()
        self.card_texts = card_texts or CardTexts()
        self.sanitize = sanitizer or clean
        self.registry = RoomRegistry(scheduler or AsyncioScheduler(), self.rng)
        self.connections = ConnectionManager()
        self.gateway = BroadcastGateway(transport, self.connections)
        self.lobby = LobbyCoordinator(self)
        self.reconnection = ReconnectionManager(self)
        self.engines: Dict[str, GameEngine] = {kind: cls(self) for kind, cls in ENGINE_CLASSES.items()}

    def engine_for(self, room: Room) -> GameEngine:
        return self.engines[room.kind]

    def stats(self) -> Dict[str, int]:
        return {"rooms": len(self.registry), "connections": len(self.connections)}

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------
    def handle_event(self, connection_id: str, data: Any) -> Dict[str, Any]:
        """Apply one inbound frame and acknowledge it on the same connection."""
        event_name = data.get("type") if isinstance(data, dict) else None
        try:
            event = parse_inbound_event(data)
        except ValueError as e:
            return self.reject(connection_id, event_name, GameError(INVALID_EVENT, str(e)))

        try:
            result = self._dispatch(connection_id, event) or {}
        except GameError as e:
            return self.reject(connection_id, event.type.value, e)
        except Exception as e:
            logger.exception(f"Error handling {event.type.value} from {connection_id}: {e}")
            return self.reject(connection_id, event.type.value, GameError(INTERNAL_ERROR, "Internal server error"))

        ack = {"for": event.type.value, "success": True, **result}
        self.gateway.to_connection(connection_id, OutboundEventType.ACK, ack)
        return ack

    def reject(self, connection_id: str, event_name: Optional[str], error: GameError) -> Dict[str, Any]:
        logger.debug(f"Rejected {event_name} from {connection_id}: {error}")
        payload = create_error_payload(error.code, error.message)
        self.gateway.to_connection(connection_id, OutboundEventType.ACTION_ERROR, payload)
        ack = {"for": event_name, "success": False, **payload}
        self.gateway.to_connection(connection_id, OutboundEventType.ACK, ack)
        return ack

    def _dispatch(self, connection_id: str, event) -> Optional[Dict[str, Any]]:
        if event.type == EventType.CREATE_ROOM:
            return self.create_room(event)
        if event.type == EventType.JOIN_ROOM:
            return self.join_room(connection_id, event)
        if event.type == EventType.ADMIN:
            return self.admin(connection_id, event)

        room, player = self.seat_for(connection_id)
        if event.type == EventType.READY_TOGGLE:
            self.lobby.toggle_ready(room, player.id)
            return {"ready": player.ready}
        if event.type == EventType.CHAT:
            return self.chat(room, player, event)
        if event.type == EventType.VOTE_SKIP:
            return self.vote_skip(room, player)

        self.engine_for(room).handle_action(room, player.id, event)
        return None

    def seat_for(self, connection_id: str) -> Tuple[Room, Player]:
        binding = self.connections.binding(connection_id)
        if binding is None:
            raise GameError(NOT_IN_ROOM, "Join a room first")
        room, player = self._bound_seat(binding)
        if player is None:
            self.connections.unbind(connection_id)
            raise GameError(NOT_IN_ROOM, "Join a room first")
        return room, player

    # ------------------------------------------------------------------
    # Rooms and seats
    # ------------------------------------------------------------------
    def create_room(self, event: CreateRoomEvent) -> Dict[str, Any]:
        room = self.registry.create(event.kind)
        return {"code": room.code, "kind": room.kind.value}

    def join_room(self, connection_id: str, event: JoinRoomEvent) -> Dict[str, Any]:
        """Reconnect to a reserved seat if there is one, otherwise take a new seat."""
        code = normalize_code(event.code)

        # one seat per connection; the old seat is released only once the new one is taken
        previous = self.connections.binding(connection_id)
        if previous is not None:
            room, player = self._bound_seat(previous)
            if room is not None and room.code == code and player.key == self.lobby.clean_name(event.name).lower():
                return self._join_result(room, player, reconnected=False)

        player = self.reconnection.reconnect(code, event.name, connection_id)
        reconnected = player is not None
        room = self.registry.get(code)

        if player is None:
            created = False
            if room is None:
                if event.kind is None:
                    raise GameError(ROOM_NOT_FOUND, "Room not found")
                room = self.registry.create(event.kind, code)
                created = True
            try:
                player = self.lobby.join(room, event.name, connection_id)
            except GameError:
                if created:
                    self.registry.delete(room.code)
                raise

        if previous is not None:
            self._release_seat(previous, connection_id)
        return self._join_result(room, player, reconnected)

    @staticmethod
    def _join_result(room: Room, player: Player, reconnected: bool) -> Dict[str, Any]:
        return {
            "code": room.code,
            "kind": room.kind.value,
            "playerId": player.id,
            "reconnected": reconnected,
        }

    def _bound_seat(self, binding: Tuple[str, str]) -> Tuple[Optional[Room], Optional[Player]]:
        code, player_id = binding
        room = self.registry.get(code)
        player = room.players.get(player_id) if room else None
        if player is None:
            return None, None
        return room, player

    def _release_seat(self, binding: Tuple[str, str], connection_id: str):
        room, player = self._bound_seat(binding)
        if player is not None and player.connection_id == connection_id:
            self.reconnection.disconnect(room, player.id)

    def disconnect(self, connection_id: str):
        """Transport closed: put the bound seat into its grace period."""
        binding = self.connections.unbind(connection_id)
        if binding is None:
            return
        self._release_seat(binding, connection_id)

    # ------------------------------------------------------------------
    # Chat, music and admin
    # ------------------------------------------------------------------
    def chat(self, room: Room, player: Player, event: ChatEvent) -> Dict[str, Any]:
        text = self.sanitize(event.text[:self.rules.max_chat_length])
        if text:
            self.gateway.to_room(room, OutboundEventType.CHAT, {"name": player.name, "text": text})
        return {}

    def vote_skip(self, room: Room, player: Player) -> Dict[str, Any]:
        active_ids = {p.id for p in room.active_players()}
        room.skip_votes &= active_ids
        room.skip_votes.add(player.id)
        needed = math.ceil(len(active_ids) / 2)
        votes = len(room.skip_votes)
        if votes >= needed:
            logger.info(f"Music skipped in {room.code} ({votes}/{len(active_ids)} votes)")
            room.skip_votes.clear()
            room.current_music = None
            self.gateway.to_room(room, OutboundEventType.MUSIC_SKIP)
        return {"votes": votes, "needed": needed}

    def admin(self, connection_id: str, event: AdminEvent) -> Dict[str, Any]:
        if not hmac.compare_digest(event.password.encode(), self.rules.admin_password.encode()):
            logger.warning(f"Failed admin login from {connection_id}")
            self.gateway.to_connection(connection_id, OutboundEventType.ADMIN_FAIL)
            return {"authorized": False}

        if event.command == "login":
            self.gateway.to_connection(connection_id, OutboundEventType.ADMIN_OK)
            return {"authorized": True}

        room, _ = self.seat_for(connection_id)
        logger.info(f"Admin {event.command} in {room.code}")
        if event.command == "reset":
            self.lobby.reset_room(room)
        elif event.command == "wipe-chat":
            self.gateway.to_room(room, OutboundEventType.WIPE_CHAT)
        elif event.command == "start-music":
            if not event.url:
                raise GameError(INVALID_EVENT, "start-music needs a url")
            room.current_music = event.url
            room.skip_votes.clear()
            self.gateway.to_room(room, OutboundEventType.MUSIC_START, {"url": event.url})
        return {"authorized": True}
