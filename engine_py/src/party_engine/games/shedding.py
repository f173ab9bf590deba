"""
Shedding-card engine: match colour or value, race to an empty hand.
"""

import logging
from typing import Any, Dict, Optional

from ..constants import COLORS, DRAW_VALUES, GameKind, REVERSE, SKIP, is_action_value, is_draw_value
from ..errors import (
    GameError, ACTION_NOT_ALLOWED, DRAW_PENDING, ILLEGAL_CARD, INVALID_CARD,
    NOT_YOUR_TURN,
)
from ..models import Player, Room, SheddingState
from ..serialization import shedding_view
from ..shuffle import (
    can_play, create_shedding_deck, draw_shedding_card, draw_shedding_cards,
    shuffle_deck,
)
from ..ws.events import EventType, OutboundEventType
from .base import GameEngine, next_active_player

logger = logging.getLogger(__name__)


class SheddingCardEngine(GameEngine):
    kind = GameKind.SHEDDING_CARD
    view_event = OutboundEventType.SHEDDING_CARD_VIEW

    def actions(self):
        return {
            EventType.PLAY_CARD: lambda room, pid, e: self.play_card(room, pid, e.card_index, e.chosen_color),
            EventType.DRAW_CARD: lambda room, pid, e: self.draw_card(room, pid),
            EventType.DECLARE_LOW_CARD: lambda room, pid, e: self.declare_low_card(room, pid),
            EventType.CHALLENGE: lambda room, pid, e: self.challenge(room, pid, e.target_id),
        }

    def start(self, room: Room):
        active = room.active_players()
        if not active:
            return
        state = SheddingState()
        room.shedding = state
        state.draw_pile = shuffle_deck(create_shedding_deck(), self.rng)

        for player in room.players.values():
            player.hand = draw_shedding_cards(state, self.rng, self.rules.shedding_hand_size)
            player.declared_low_card = False

        # the opening card must be a plain number card
        rejected = []
        first = draw_shedding_card(state, self.rng)
        while first is not None and (first.is_wild or is_action_value(first.value)):
            rejected.append(first)
            first = draw_shedding_card(state, self.rng)
        state.draw_pile[0:0] = rejected
        if first is not None:
            state.discard_pile.append(first)

        self._set_turn(room, active[0])
        self.announce_game_start(room)
        self.publish(room)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def play_card(self, room: Room, player_id: str, card_index: int, chosen_color: Optional[str] = None):
        state = room.shedding
        player = self._require_turn(room, player_id)

        if not isinstance(card_index, int) or card_index < 0 or card_index >= len(player.hand):
            raise GameError(INVALID_CARD, "Invalid card")
        card = player.hand[card_index]
        if not can_play(card, state.current_card):
            raise GameError(ILLEGAL_CARD, "Cannot play that card!")
        if state.draw_stack > 0 and not is_draw_value(card.value):
            raise GameError(DRAW_PENDING, "Must play a draw card or draw!")

        two_players = len(room.active_players()) == 2
        player.hand.pop(card_index)
        if card.is_wild:
            card.active_color = chosen_color if chosen_color in COLORS else COLORS[0]
        state.discard_pile.append(card)

        steps = 1
        if card.value == SKIP:
            steps = 2
        elif card.value == REVERSE:
            state.direction *= -1
            if two_players:
                steps = 2
        elif is_draw_value(card.value):
            state.draw_stack += DRAW_VALUES[card.value]
        logger.debug(f"{player.name} played {card.color} {card.value} in {room.code}")

        if not player.hand:
            state.winner_id = player.id
            logger.info(f"{player.name} wins the shedding game in {room.code}")
            self.gateway.to_room(room, OutboundEventType.GAME_WINNER, {"name": player.name})
            self.schedule_reset(room, self.rules.shedding_reset_delay)
            self.publish(room)
            return

        if len(player.hand) == 1 and not player.declared_low_card:
            self._penalize(room, player, "Forgot to declare low card")

        self._advance(room, steps)
        self.publish(room)

    def draw_card(self, room: Room, player_id: str):
        state = room.shedding
        player = self._require_turn(room, player_id)

        if state.draw_stack > 0:
            player.hand.extend(draw_shedding_cards(state, self.rng, state.draw_stack))
            logger.debug(f"{player.name} takes the draw stack of {state.draw_stack} in {room.code}")
            state.draw_stack = 0
            player.declared_low_card = False
            self._advance(room, 1)
            self.publish(room)
            return

        card = draw_shedding_card(state, self.rng)
        if card is None:
            self._advance(room, 1)
        else:
            player.hand.append(card)
            player.declared_low_card = False
            if can_play(card, state.current_card):
                self.gateway.to_player(room, player.id, OutboundEventType.DRAWN_CARD_PLAYABLE,
                                       {"cardIndex": len(player.hand) - 1})
            else:
                self._advance(room, 1)
        self.publish(room)

    def declare_low_card(self, room: Room, player_id: str):
        player = self.require_player(room, player_id)
        player.declared_low_card = True
        self.gateway.to_room(room, OutboundEventType.LOW_CARD_DECLARED, {"name": player.name})
        self.publish(room)

    def challenge(self, room: Room, challenger_id: str, target_id: str):
        self.require_player(room, challenger_id)
        target = room.players.get(target_id)
        if target is None or len(target.hand) != 1 or target.declared_low_card:
            return
        self._penalize(room, target, "Caught not declaring low card")
        self.publish(room)

    # ------------------------------------------------------------------
    # Seat changes
    # ------------------------------------------------------------------
    def on_player_removed(self, room: Room, player: Player, held_role: bool):
        state = room.shedding
        state.draw_pile[0:0] = player.hand
        player.hand = []
        if not room.started:
            return
        if held_role:
            self._set_turn(room, next_active_player(room, player.seat, state.direction, 1))
        else:
            self._refresh_turn_index(room)

    def on_player_disconnected(self, room: Room, player_id: str):
        state = room.shedding
        if not room.started or state.winner_id:
            return
        if state.current_player_id == player_id:
            player = room.players[player_id]
            self._set_turn(room, next_active_player(room, player.seat, state.direction, 1))
        else:
            self._refresh_turn_index(room)

    def on_player_reconnected(self, room: Room, player_id: str):
        state = room.shedding
        if not room.started:
            return
        holder = room.players.get(state.current_player_id) if state.current_player_id else None
        if holder is None or holder.disconnected:
            self._set_turn(room, room.players[player_id])
        else:
            self._refresh_turn_index(room)

    def holds_role(self, room: Room, player_id: str) -> bool:
        return room.shedding.current_player_id == player_id

    def clear_round_state(self, room: Room):
        room.shedding = SheddingState()
        for player in room.players.values():
            player.hand = []
            player.declared_low_card = False

    def reset_state(self, room: Room):
        room.shedding = SheddingState()

    def render_view(self, room: Room, viewer_id: Optional[str]) -> Dict[str, Any]:
        return shedding_view(room, viewer_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_turn(self, room: Room, player_id: str) -> Player:
        player = self.require_player(room, player_id)
        if room.shedding.winner_id:
            raise GameError(ACTION_NOT_ALLOWED, "The game is over")
        if room.shedding.current_player_id != player.id:
            raise GameError(NOT_YOUR_TURN, "Not your turn!")
        return player

    def _penalize(self, room: Room, player: Player, reason: str):
        player.hand.extend(draw_shedding_cards(room.shedding, self.rng, self.rules.low_card_penalty))
        logger.info(f"{player.name} penalized in {room.code}: {reason}")
        self.gateway.to_room(room, OutboundEventType.LOW_CARD_PENALTY, {"name": player.name, "reason": reason})

    def _advance(self, room: Room, steps: int):
        state = room.shedding
        current = room.players.get(state.current_player_id)
        if current is None:
            return
        self._set_turn(room, next_active_player(room, current.seat, state.direction, steps))

    def _set_turn(self, room: Room, player: Optional[Player]):
        room.shedding.current_player_id = player.id if player else None
        self._refresh_turn_index(room)

    def _refresh_turn_index(self, room: Room):
        state = room.shedding
        active_ids = [p.id for p in room.active_players()]
        if state.current_player_id in active_ids:
            state.turn_index = active_ids.index(state.current_player_id)
        else:
            state.turn_index = 0
