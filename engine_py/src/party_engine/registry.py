"""
Room registry: the process-wide table of rooms, the disconnected-player side
table, and the delayed round/reset tasks keyed by room code.
"""

import logging
import random
import string
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .constants import GameKind
from .models import DisconnectedPlayerRecord, Room
from .timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6

RecordKey = Tuple[str, str]


def normalize_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


class RoomRegistry:
    def __init__(self, scheduler: Scheduler, rng: Optional[random.Random] = None):
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.rooms: Dict[str, Room] = {}
        self.disconnected: Dict[RecordKey, DisconnectedPlayerRecord] = {}
        self.delayed: Dict[str, TimerHandle] = {}

    def __len__(self) -> int:
        return len(self.rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self.rooms.values()))

    def __contains__(self, code: str) -> bool:
        return normalize_code(code) in self.rooms

    def generate_code(self) -> str:
        """Generate a room code not currently in use."""
        while True:
            code = ''.join(self.rng.choices(CODE_ALPHABET, k=CODE_LENGTH))
            if code not in self.rooms:
                return code

    def create(self, kind: GameKind, code: Optional[str] = None) -> Room:
        code = normalize_code(code) or self.generate_code()
        if code in self.rooms:
            return self.rooms[code]
        room = Room(code=code, kind=GameKind(kind))
        self.rooms[code] = room
        logger.info(f"Created room {code} for {room.kind.value}")
        return room

    def get(self, code: Optional[str]) -> Optional[Room]:
        code = normalize_code(code)
        if code is None:
            return None
        return self.rooms.get(code)

    def delete(self, code: str) -> None:
        """Remove a room after cancelling every timer it owns."""
        code = normalize_code(code)
        room = self.rooms.pop(code, None)
        if room is None:
            return
        if room.countdown_timer is not None:
            room.countdown_timer.cancel()
            room.countdown_timer = None
        for player in room.players.values():
            if player.reconnect_timer is not None:
                player.reconnect_timer.cancel()
                player.reconnect_timer = None
        self.cancel_delayed(code)
        for key in [k for k in self.disconnected if k[0] == code]:
            del self.disconnected[key]
        logger.info(f"Room {code} deleted")

    # ------------------------------------------------------------------
    # Disconnected-player side table
    # ------------------------------------------------------------------
    @staticmethod
    def record_key(code: str, name: str) -> RecordKey:
        return normalize_code(code), name.strip().lower()

    def store_disconnected(self, record: DisconnectedPlayerRecord) -> None:
        self.disconnected[self.record_key(record.room_code, record.name)] = record

    def get_disconnected(self, code: str, name: str) -> Optional[DisconnectedPlayerRecord]:
        return self.disconnected.get(self.record_key(code, name))

    def discard_disconnected(self, code: str, name: str) -> Optional[DisconnectedPlayerRecord]:
        return self.disconnected.pop(self.record_key(code, name), None)

    def records_for(self, code: str) -> List[DisconnectedPlayerRecord]:
        code = normalize_code(code)
        return [r for k, r in self.disconnected.items() if k[0] == code]

    # ------------------------------------------------------------------
    # Delayed tasks (next round, room reset)
    # ------------------------------------------------------------------
    def schedule_delayed(self, code: str, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule the room's single pending delayed task, replacing any earlier one."""
        code = normalize_code(code)
        self.cancel_delayed(code)

        def fire():
            if self.delayed.get(code) is handle:
                del self.delayed[code]
            callback()

        handle = self.scheduler.call_later(delay, fire)
        self.delayed[code] = handle
        return handle

    def cancel_delayed(self, code: str) -> None:
        handle = self.delayed.pop(normalize_code(code), None)
        if handle is not None:
            handle.cancel()

    def has_delayed(self, code: str) -> bool:
        return normalize_code(code) in self.delayed
