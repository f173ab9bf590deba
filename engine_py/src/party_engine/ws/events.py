"""
WebSocket event models and validation.
"""

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import GameKind


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create-room"
    JOIN_ROOM = "join-room"
    READY_TOGGLE = "ready-toggle"
    SUBMIT_CARD = "submit-card"
    PICK_WINNER = "pick-winner"
    PLAY_CARD = "play-card"
    DRAW_CARD = "draw-card"
    DECLARE_LOW_CARD = "declare-low-card"
    CHALLENGE = "challenge"
    CHAT = "chat"
    ADMIN = "admin"
    VOTE_SKIP = "vote-skip"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ACK = "ack"
    ACTION_ERROR = "action-error"
    LOBBY_VIEW = "lobby-view"
    COUNTDOWN_TICK = "countdown-tick"
    COUNTDOWN_CANCELLED = "countdown-cancelled"
    GAME_STARTED = "game-started"
    TRICK_CARD_VIEW = "trick-card-view"
    SHEDDING_CARD_VIEW = "shedding-card-view"
    ROUND_WINNER = "round-winner"
    GAME_WINNER = "game-winner"
    PLAYER_DISCONNECTED = "player-disconnected"
    RECONNECT_TIMER = "reconnect-timer"
    PLAYER_RECONNECTED = "player-reconnected"
    PLAYER_REMOVED = "player-removed"
    GAME_ENDED = "game-ended"
    GAME_RESET = "game-reset"
    CHAT = "chat"
    ADMIN_OK = "admin-ok"
    ADMIN_FAIL = "admin-fail"
    WIPE_CHAT = "wipe-chat"
    MUSIC_START = "music-start"
    MUSIC_SKIP = "music-skip"
    LOW_CARD_DECLARED = "low-card-declared"
    LOW_CARD_PENALTY = "low-card-penalty"
    DRAWN_CARD_PLAYABLE = "drawn-card-playable"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model. Fields accept their camelCase wire names."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: EventType


class CreateRoomEvent(BaseEvent):
    type: EventType = EventType.CREATE_ROOM
    kind: GameKind


class JoinRoomEvent(BaseEvent):
    type: EventType = EventType.JOIN_ROOM
    code: str = Field(..., min_length=1, max_length=12)
    name: str = Field(..., min_length=1, max_length=50)
    kind: Optional[GameKind] = None


class ReadyToggleEvent(BaseEvent):
    type: EventType = EventType.READY_TOGGLE


class SubmitCardEvent(BaseEvent):
    """Trick-card submission; freeText is only read for the blank card."""
    type: EventType = EventType.SUBMIT_CARD
    card: str = Field(..., min_length=1)
    free_text: Optional[str] = Field(default=None, alias="freeText", max_length=1000)


class PickWinnerEvent(BaseEvent):
    type: EventType = EventType.PICK_WINNER
    target_id: str = Field(..., alias="targetId", min_length=1)


class PlayCardEvent(BaseEvent):
    type: EventType = EventType.PLAY_CARD
    card_index: int = Field(..., alias="cardIndex", ge=0)
    chosen_color: Optional[str] = Field(default=None, alias="chosenColor")

    @field_validator('chosen_color')
    @classmethod
    def normalize_color(cls, v):
        return v.strip().lower() if v else None


class DrawCardEvent(BaseEvent):
    type: EventType = EventType.DRAW_CARD


class DeclareLowCardEvent(BaseEvent):
    type: EventType = EventType.DECLARE_LOW_CARD


class ChallengeEvent(BaseEvent):
    type: EventType = EventType.CHALLENGE
    target_id: str = Field(..., alias="targetId", min_length=1)


class ChatEvent(BaseEvent):
    type: EventType = EventType.CHAT
    text: str = Field(..., min_length=1, max_length=1000)


class AdminEvent(BaseEvent):
    type: EventType = EventType.ADMIN
    password: str = ""
    command: Literal["login", "reset", "wipe-chat", "start-music"] = "login"
    url: Optional[str] = Field(default=None, max_length=500)


class VoteSkipEvent(BaseEvent):
    type: EventType = EventType.VOTE_SKIP


InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    ReadyToggleEvent,
    SubmitCardEvent,
    PickWinnerEvent,
    PlayCardEvent,
    DrawCardEvent,
    DeclareLowCardEvent,
    ChallengeEvent,
    ChatEvent,
    AdminEvent,
    VoteSkipEvent,
]

EVENT_MODELS = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.READY_TOGGLE: ReadyToggleEvent,
    EventType.SUBMIT_CARD: SubmitCardEvent,
    EventType.PICK_WINNER: PickWinnerEvent,
    EventType.PLAY_CARD: PlayCardEvent,
    EventType.DRAW_CARD: DrawCardEvent,
    EventType.DECLARE_LOW_CARD: DeclareLowCardEvent,
    EventType.CHALLENGE: ChallengeEvent,
    EventType.CHAT: ChatEvent,
    EventType.ADMIN: AdminEvent,
    EventType.VOTE_SKIP: VoteSkipEvent,
}


def parse_inbound_event(data: Any) -> InboundEvent:
    """
    Parse raw event data into the matching event model.

    Args:
        data: Decoded JSON frame from the WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If the event type is unknown or the data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    try:
        return EVENT_MODELS[event_type].model_validate(data)
    except ValueError as e:
        raise ValueError(f"Invalid event data: {e}")


def create_error_payload(code: str, message: str) -> Dict[str, Any]:
    return {"code": code, "message": message}
