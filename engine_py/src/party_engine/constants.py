"""Game constants and utilities"""

from enum import Enum
from typing import Dict, List


class GameKind(str, Enum):
    TRICK_CARD = "trick-card"
    SHEDDING_CARD = "shedding-card"


MIN_PLAYERS: Dict[GameKind, int] = {
    GameKind.TRICK_CARD: 3,
    GameKind.SHEDDING_CARD: 2,
}

# Lobby phases
PHASE_EMPTY = "empty"
PHASE_FILLING = "filling"
PHASE_COUNTDOWN = "countdown"
PHASE_IN_PROGRESS = "in_progress"

# Trick-card game
BLANK_CARD = "__BLANK__"

DEFAULT_PROMPT_CARDS = [
    "What's Batman's guilty pleasure? ___",
    "What's worse than stubbing your toe? ___",
    "In 2025, the hottest trend is ___",
    "The secret ingredient is ___",
    "What ruined the family reunion? ___",
]

DEFAULT_FILL_IN_CARDS = [
    "A disappointing birthday party",
    "Grandma's secret recipe",
    "An awkward high five",
    "Poor life choices",
    "The meaning of life",
    "A frozen burrito",
    "Puppies!",
    "A really cool hat",
    "Darth Vader",
    "A romantic comedy",
]

# Shedding-card game
COLORS = ["red", "yellow", "green", "blue"]
WILD = "wild"

SKIP = "skip"
REVERSE = "reverse"
DRAW_TWO = "draw-two"
WILD_DRAW_FOUR = "wild-draw-four"

NUMBER_VALUES = [str(n) for n in range(10)]
ACTION_VALUES = [SKIP, REVERSE, DRAW_TWO]
DRAW_VALUES = {DRAW_TWO: 2, WILD_DRAW_FOUR: 4}

WILD_COPIES = 4


def min_players_for(kind: GameKind) -> int:
    return MIN_PLAYERS[GameKind(kind)]


def is_action_value(value: str) -> bool:
    return value in ACTION_VALUES


def is_draw_value(value: str) -> bool:
    return value in DRAW_VALUES


def deck_values_for_color() -> List[str]:
    """One zero plus two copies of every other colored value."""
    values = ["0"]
    for _ in range(2):
        values.extend(NUMBER_VALUES[1:])
        values.extend(ACTION_VALUES)
    return values
