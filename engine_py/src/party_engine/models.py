"""Room, player and card data structures"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .constants import (
    GameKind, WILD, PHASE_EMPTY, PHASE_FILLING, PHASE_COUNTDOWN,
    PHASE_IN_PROGRESS, min_players_for,
)
from .timers import TimerHandle


@dataclass
class ShedCard:
    color: str  # red|yellow|green|blue|wild
    value: str  # 0-9, skip, reverse, draw-two, wild, wild-draw-four
    active_color: Optional[str] = None  # chosen color once a wild is played

    @property
    def is_wild(self) -> bool:
        return self.color == WILD

    def to_dict(self) -> Dict[str, Any]:
        data = {"color": self.color, "value": self.value}
        if self.active_color:
            data["activeColor"] = self.active_color
        return data


@dataclass
class Submission:
    card: str  # display text (sanitized free text for the blank card)
    player_id: str


@dataclass
class Player:
    id: str
    name: str
    seat: int
    connection_id: Optional[str] = None
    is_host: bool = False
    ready: bool = False
    disconnected: bool = False
    disconnected_at: Optional[float] = None
    reconnect_seconds_left: int = 0
    reconnect_timer: Optional[TimerHandle] = None
    score: int = 0
    hand: List[Any] = field(default_factory=list)  # str for trick-card, ShedCard for shedding-card
    is_judge: bool = False
    has_submitted: bool = False
    declared_low_card: bool = False

    @property
    def key(self) -> str:
        return self.name.lower()

    def reset_for_new_game(self):
        self.ready = False
        self.score = 0
        self.hand = []
        self.is_judge = False
        self.has_submitted = False
        self.declared_low_card = False


@dataclass
class DisconnectedPlayerRecord:
    """Snapshot of a seat taken when its client drops."""
    player_id: str
    room_code: str
    name: str
    hand: List[Any]
    score: int
    ready: bool
    is_judge: bool
    has_submitted: bool
    declared_low_card: bool
    disconnected_at: float

    @classmethod
    def snapshot(cls, room_code: str, player: Player) -> 'DisconnectedPlayerRecord':
        return cls(
            player_id=player.id,
            room_code=room_code,
            name=player.name,
            hand=list(player.hand),
            score=player.score,
            ready=player.ready,
            is_judge=player.is_judge,
            has_submitted=player.has_submitted,
            declared_low_card=player.declared_low_card,
            disconnected_at=player.disconnected_at or 0.0,
        )


@dataclass
class TrickState:
    white_pile: List[str] = field(default_factory=list)
    black_pile: List[str] = field(default_factory=list)
    prompt: str = ""
    submissions: List[Submission] = field(default_factory=list)
    judge_index: int = 0  # position of the judge among active players
    judge_id: Optional[str] = None
    judge_seat: int = 0
    judging: bool = False  # submissions complete and shuffled
    winner_picked: bool = False
    round_number: int = 0


@dataclass
class SheddingState:
    draw_pile: List[ShedCard] = field(default_factory=list)
    discard_pile: List[ShedCard] = field(default_factory=list)
    turn_index: int = 0  # position of the turn holder among active players
    current_player_id: Optional[str] = None
    direction: int = 1
    draw_stack: int = 0
    winner_id: Optional[str] = None

    @property
    def current_card(self) -> Optional[ShedCard]:
        return self.discard_pile[-1] if self.discard_pile else None


@dataclass
class Room:
    code: str
    kind: GameKind
    started: bool = False
    players: Dict[str, Player] = field(default_factory=dict)  # insertion order == join order
    countdown_timer: Optional[TimerHandle] = None
    countdown_seconds: int = 0
    trick: TrickState = field(default_factory=TrickState)
    shedding: SheddingState = field(default_factory=SheddingState)
    next_seat: int = 0
    game_number: int = 0
    current_music: Optional[str] = None
    skip_votes: Set[str] = field(default_factory=set)

    @property
    def min_players(self) -> int:
        return min_players_for(self.kind)

    @property
    def phase(self) -> str:
        if not self.players:
            return PHASE_EMPTY
        if self.started:
            return PHASE_IN_PROGRESS
        if self.countdown_timer is not None:
            return PHASE_COUNTDOWN
        return PHASE_FILLING

    def active_players(self) -> List[Player]:
        return [p for p in self.players.values() if not p.disconnected]

    def ready_players(self) -> List[Player]:
        return [p for p in self.active_players() if p.ready]

    def find_by_name(self, name: str, disconnected: Optional[bool] = None) -> Optional[Player]:
        key = name.lower()
        for player in self.players.values():
            if player.key != key:
                continue
            if disconnected is None or player.disconnected == disconnected:
                return player
        return None

    def player_for_connection(self, connection_id: str) -> Optional[Player]:
        for player in self.players.values():
            if player.connection_id == connection_id:
                return player
        return None
