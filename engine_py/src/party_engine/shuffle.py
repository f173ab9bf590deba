"""
Card shuffling, card-text loading and draw-pile utilities.
"""

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, TypeVar, Union

from .constants import (
    BLANK_CARD, COLORS, DEFAULT_FILL_IN_CARDS, DEFAULT_PROMPT_CARDS, WILD,
    WILD_COPIES, WILD_DRAW_FOUR, deck_values_for_color,
)
from .models import SheddingState, ShedCard, TrickState

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROMPT_FILE = "black_cards.txt"
FILL_IN_FILE = "white_cards.txt"


@dataclass
class CardTexts:
    """Ordered prompt and fill-in card lists for the trick-card game."""
    prompts: List[str] = field(default_factory=lambda: list(DEFAULT_PROMPT_CARDS))
    fill_ins: List[str] = field(default_factory=lambda: list(DEFAULT_FILL_IN_CARDS))


def _read_lines(path: Path) -> List[str]:
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def load_card_texts(directory: Optional[Union[str, Path]] = None) -> CardTexts:
    """
    Load card texts from a directory, one card per non-blank line.

    Missing files (or a missing directory) fall back to the built-in lists.
    """
    texts = CardTexts()
    if directory is None:
        return texts

    base = Path(directory)
    prompt_path = base / PROMPT_FILE
    fill_in_path = base / FILL_IN_FILE
    try:
        if prompt_path.exists():
            texts.prompts = _read_lines(prompt_path) or texts.prompts
        if fill_in_path.exists():
            texts.fill_ins = _read_lines(fill_in_path) or texts.fill_ins
    except OSError as e:
        logger.warning(f"Card files unreadable in {base}, using defaults: {e}")

    logger.info(f"Loaded {len(texts.fill_ins)} fill-in cards, {len(texts.prompts)} prompt cards")
    return texts


def shuffle_deck(deck: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Shuffle a deck, deterministically if a seeded rng is provided.

    Args:
        deck: Cards to shuffle
        rng: Optional random source

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = list(deck)
    (rng or random).shuffle(deck_copy)
    return deck_copy


def create_shedding_deck() -> List[ShedCard]:
    """Create the 108 card shedding deck, unshuffled."""
    deck = []
    for color in COLORS:
        for value in deck_values_for_color():
            deck.append(ShedCard(color=color, value=value))
    for _ in range(WILD_COPIES):
        deck.append(ShedCard(color=WILD, value=WILD))
        deck.append(ShedCard(color=WILD, value=WILD_DRAW_FOUR))
    return deck


def can_play(card: ShedCard, top: Optional[ShedCard]) -> bool:
    """Wilds always match; otherwise color (honoring a wild's chosen color) or value."""
    if card is None or top is None:
        return False
    if card.is_wild:
        return True
    active_color = top.active_color or top.color
    return card.color == active_color or card.value == top.value


# ---------------------------------------------------------------------------
# Trick-card piles
# ---------------------------------------------------------------------------

def draw_fill_in(state: TrickState, texts: CardTexts, rng: random.Random,
                 blank_chance: float = 0.0) -> str:
    """Pop a fill-in card, reshuffling the full list when the pile runs out."""
    if not state.white_pile:
        state.white_pile = shuffle_deck(texts.fill_ins, rng)
    card = state.white_pile.pop()
    if blank_chance and rng.random() < blank_chance:
        return BLANK_CARD
    return card


def draw_prompt(state: TrickState, texts: CardTexts, rng: random.Random) -> str:
    if not state.black_pile:
        state.black_pile = shuffle_deck(texts.prompts, rng)
    return state.black_pile.pop()


# ---------------------------------------------------------------------------
# Shedding-card piles
# ---------------------------------------------------------------------------

def reshuffle_discard(state: SheddingState, rng: random.Random) -> None:
    """Turn every discard except the top card into a fresh draw pile."""
    if len(state.discard_pile) <= 1:
        return
    top = state.discard_pile[-1]
    recycled = state.discard_pile[:-1]
    for card in recycled:
        card.active_color = None
    state.draw_pile = shuffle_deck(recycled, rng) + state.draw_pile
    state.discard_pile = [top]
    logger.debug(f"Reshuffled {len(recycled)} discards into the draw pile")


def draw_shedding_card(state: SheddingState, rng: random.Random) -> Optional[ShedCard]:
    """Draw from the pile; None only when every card is held in hands."""
    if not state.draw_pile:
        reshuffle_discard(state, rng)
    if not state.draw_pile:
        return None
    return state.draw_pile.pop()


def draw_shedding_cards(state: SheddingState, rng: random.Random, count: int) -> List[ShedCard]:
    cards = []
    for _ in range(count):
        card = draw_shedding_card(state, rng)
        if card is None:
            break
        cards.append(card)
    return cards
