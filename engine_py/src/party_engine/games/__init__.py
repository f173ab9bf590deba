"""Game engines, one per room kind"""

from ..constants import GameKind
from .base import GameEngine, next_active_player
from .shedding import SheddingCardEngine
from .trick import TrickCardEngine

ENGINE_CLASSES = {
    GameKind.TRICK_CARD: TrickCardEngine,
    GameKind.SHEDDING_CARD: SheddingCardEngine,
}

__all__ = [
    "ENGINE_CLASSES",
    "GameEngine",
    "SheddingCardEngine",
    "TrickCardEngine",
    "next_active_player",
]
