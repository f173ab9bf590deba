"""
Tests for the shedding-card engine and its deck helpers.
"""

import random
from collections import Counter

import pytest

from party_engine.constants import REVERSE, SKIP, WILD, WILD_DRAW_FOUR, is_action_value
from party_engine.errors import (
    ACTION_NOT_ALLOWED, DRAW_PENDING, ILLEGAL_CARD, INVALID_CARD, INVALID_EVENT,
    NOT_YOUR_TURN,
)
from party_engine.models import SheddingState, ShedCard
from party_engine.shuffle import can_play, create_shedding_deck, draw_shedding_card

KIND = "shedding-card"


def card(text):
    """'red 5' -> ShedCard('red', '5'); 'wild' / 'wild-draw-four' are wilds."""
    if text in (WILD, WILD_DRAW_FOUR):
        return ShedCard(color=WILD, value=text)
    color, value = text.split(" ", 1)
    return ShedCard(color=color, value=value)


def deal(table, top, **hands):
    """Replace the discard top and the named players' hands."""
    state = table.room.shedding
    state.discard_pile = [card(top)]
    for name, specs in hands.items():
        table.player(name.capitalize()).hand = [card(s) for s in specs]


def current(table):
    return table.room.players[table.room.shedding.current_player_id].name


@pytest.fixture
def trio(table):
    return table.start(["Alice", "Bob", "Carol"], kind=KIND)


@pytest.fixture
def duo(table):
    return table.start(["Alice", "Bob"], kind=KIND)


def test_deck_composition():
    deck = create_shedding_deck()
    counts = Counter(c.color for c in deck)

    assert len(deck) == 108
    assert counts[WILD] == 8
    assert all(counts[color] == 25 for color in ["red", "yellow", "green", "blue"])
    assert len([c for c in deck if c.value == WILD_DRAW_FOUR]) == 4
    assert len([c for c in deck if c.color == "red" and c.value == "0"]) == 1
    assert len([c for c in deck if c.color == "red" and c.value == SKIP]) == 2


def test_can_play_matches_color_value_or_wild():
    assert can_play(card("red 3"), card("red 9"))
    assert can_play(card("blue 9"), card("red 9"))
    assert not can_play(card("blue 3"), card("red 9"))
    assert can_play(card(WILD), card("red 9"))

    top = card(WILD)
    top.active_color = "green"
    assert can_play(card("green 1"), top)
    assert not can_play(card("red 1"), top)


def test_start_deals_and_opens_with_a_number_card(table, trio, rules):
    state = trio.shedding

    assert state.current_player_id == table.player("Alice").id
    assert state.direction == 1
    assert state.draw_stack == 0
    top = state.current_card
    assert not top.is_wild and not is_action_value(top.value)
    for name in ["Alice", "Bob", "Carol"]:
        assert len(table.player(name).hand) == rules.shedding_hand_size
    total = len(state.draw_pile) + len(state.discard_pile) + sum(len(p.hand) for p in trio.players.values())
    assert total == 108
    assert table.view("Alice")["isMyTurn"] is True
    assert table.view("Bob")["isMyTurn"] is False


def test_draw_two_forces_stack_or_draw(table, trio):
    """A draw-two leaves the next player to answer with a draw card or take two."""
    deal(table, "red 5",
         alice=["red draw-two", "blue 3", "blue 4"],
         bob=["red 7", "yellow draw-two", "green 1"])

    assert table.send("Alice", "play-card", cardIndex=0)["success"]
    assert trio.shedding.draw_stack == 2
    assert current(table) == "Bob"

    ack = table.send("Bob", "play-card", cardIndex=0)
    assert ack["code"] == DRAW_PENDING
    ack = table.send("Bob", "play-card", cardIndex=2)
    assert ack["code"] == ILLEGAL_CARD

    table.send("Bob", "draw-card")

    assert len(table.player("Bob").hand) == 5
    assert trio.shedding.draw_stack == 0
    assert current(table) == "Carol"


def test_draw_cards_stack(table, trio):
    deal(table, "red 5",
         alice=["red draw-two", "blue 3", "blue 4"],
         bob=["yellow draw-two", "green 1", "green 2"])
    table.send("Alice", "play-card", cardIndex=0)

    assert table.send("Bob", "play-card", cardIndex=0)["success"]

    assert trio.shedding.draw_stack == 4
    assert current(table) == "Carol"


def test_wrong_turn_and_bad_index(table, trio):
    assert table.send("Bob", "play-card", cardIndex=0)["code"] == NOT_YOUR_TURN
    assert table.send("Bob", "draw-card")["code"] == NOT_YOUR_TURN
    assert table.send("Alice", "play-card", cardIndex=50)["code"] == INVALID_CARD
    assert table.send("Alice", "play-card", cardIndex=-1)["code"] == INVALID_EVENT


def test_skip_passes_over_the_next_player(table, trio):
    deal(table, "red 5", alice=["red skip", "blue 1", "blue 2"])

    table.send("Alice", "play-card", cardIndex=0)

    assert current(table) == "Carol"


def test_reverse_flips_direction(table, trio):
    deal(table, "red 5", alice=["red reverse", "blue 1", "blue 2"])

    table.send("Alice", "play-card", cardIndex=0)

    assert trio.shedding.direction == -1
    assert current(table) == "Carol"


def test_reverse_acts_as_skip_with_two_players(table, duo):
    deal(table, "red 5", alice=["red reverse", "blue 1", "blue 2"])

    table.send("Alice", "play-card", cardIndex=0)

    assert current(table) == "Alice"
    assert duo.shedding.current_card.value == REVERSE


def test_turn_order_skips_disconnected_players(table, trio):
    deal(table, "red 5", alice=["red 1", "blue 1", "blue 2"])
    table.drop("Bob")

    table.send("Alice", "play-card", cardIndex=0)

    assert current(table) == "Carol"


def test_wild_records_chosen_color(table, trio):
    deal(table, "red 5", alice=[WILD, "blue 1", "blue 2"], bob=["green 3", "red 3", "red 4"])

    table.send("Alice", "play-card", cardIndex=0, chosenColor="Green")

    top = trio.shedding.current_card
    assert top.active_color == "green"
    assert table.view("Bob")["currentCard"] == {"color": WILD, "value": WILD, "activeColor": "green"}
    assert table.send("Bob", "play-card", cardIndex=1)["code"] == ILLEGAL_CARD
    assert table.send("Bob", "play-card", cardIndex=0)["success"]


def test_wild_without_color_defaults_to_red(table, trio):
    deal(table, "blue 5", alice=[WILD, "blue 1", "blue 2"])

    table.send("Alice", "play-card", cardIndex=0)

    assert trio.shedding.current_card.active_color == "red"


def test_playable_draw_keeps_the_turn(table, trio):
    deal(table, "red 5", alice=["blue 1", "blue 2"])
    trio.shedding.draw_pile.append(card("red 9"))

    table.send("Alice", "draw-card")

    assert current(table) == "Alice"
    assert table.transport.last(table.cid("Alice"), "drawn-card-playable") == {"type": "drawn-card-playable", "cardIndex": 2}
    assert table.transport.messages(table.cid("Bob"), "drawn-card-playable") == []


def test_unplayable_draw_passes_the_turn(table, trio):
    deal(table, "red 5", alice=["blue 1", "blue 2"])
    trio.shedding.draw_pile.append(card("green 9"))

    table.send("Alice", "draw-card")

    assert len(table.player("Alice").hand) == 3
    assert current(table) == "Bob"


def test_missing_low_card_declaration_is_penalized(table, trio, rules):
    deal(table, "red 5", alice=["red 1", "blue 2"])

    table.send("Alice", "play-card", cardIndex=0)

    assert len(table.player("Alice").hand) == 1 + rules.low_card_penalty
    penalty = table.transport.last(table.cid("Bob"), "low-card-penalty")
    assert penalty == {"type": "low-card-penalty", "name": "Alice", "reason": "Forgot to declare low card"}


def test_declared_low_card_avoids_penalty(table, trio):
    deal(table, "red 5", alice=["red 1", "blue 2"])

    table.send("Alice", "declare-low-card")
    table.send("Alice", "play-card", cardIndex=0)

    assert len(table.player("Alice").hand) == 1
    assert table.transport.last(table.cid("Bob"), "low-card-declared") == {"type": "low-card-declared", "name": "Alice"}
    assert table.transport.messages(event="low-card-penalty") == []


def test_challenge(table, trio, rules):
    deal(table, "red 5", bob=["blue 2"], carol=["blue 3"])
    table.player("Carol").declared_low_card = True

    table.send("Alice", "challenge", targetId=table.player("Carol").id)
    assert len(table.player("Carol").hand) == 1

    table.send("Alice", "challenge", targetId=table.player("Bob").id)
    assert len(table.player("Bob").hand) == 1 + rules.low_card_penalty

    table.send("Alice", "challenge", targetId=table.player("Bob").id)
    assert len(table.player("Bob").hand) == 1 + rules.low_card_penalty


def test_emptying_the_hand_wins_and_resets(table, trio, rules):
    deal(table, "red 5", alice=["red 1"])

    table.send("Alice", "play-card", cardIndex=0)

    assert trio.shedding.winner_id == table.player("Alice").id
    assert table.transport.last(table.cid("Carol"), "game-winner") == {"type": "game-winner", "name": "Alice"}
    assert table.send("Alice", "draw-card")["code"] == ACTION_NOT_ALLOWED

    table.scheduler.advance(rules.shedding_reset_delay)

    assert not trio.started
    assert table.transport.last(table.cid("Bob"), "game-reset") == {"type": "game-reset"}
    assert all(p.hand == [] for p in trio.players.values())
    assert trio.shedding.discard_pile == []


def test_trick_actions_are_rejected_in_a_shedding_room(table, trio):
    assert table.send("Alice", "submit-card", card="x")["code"] == ACTION_NOT_ALLOWED


def test_reshuffle_keeps_the_top_card():
    state = SheddingState()
    used_wild = card(WILD)
    used_wild.active_color = "blue"
    top = card("red 4")
    state.discard_pile = [card("green 1"), used_wild, top]

    drawn = draw_shedding_card(state, random.Random(3))

    assert {drawn.value, state.draw_pile[0].value} == {"1", WILD}
    assert state.discard_pile == [top]
    assert len(state.draw_pile) == 1
    assert used_wild.active_color is None


def test_draw_from_an_exhausted_deck_returns_none():
    state = SheddingState(discard_pile=[card("red 4")])

    assert draw_shedding_card(state, random.Random(3)) is None
