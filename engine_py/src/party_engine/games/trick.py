"""
Trick-card engine: a rotating judge reads a prompt, everyone else submits a
fill-in card, the judge picks a winner.
"""

import logging
from typing import Any, Dict, Optional

from ..constants import BLANK_CARD, GameKind
from ..errors import (
    GameError, ACTION_NOT_ALLOWED, ALREADY_SUBMITTED, BLANK_TEXT_REQUIRED,
    INVALID_CARD, NOT_JUDGE, UNKNOWN_TARGET,
)
from ..models import Player, Room, Submission, TrickState
from ..serialization import trick_view
from ..shuffle import draw_fill_in, draw_prompt, shuffle_deck
from ..ws.events import EventType, OutboundEventType
from .base import GameEngine, next_active_player

logger = logging.getLogger(__name__)


class TrickCardEngine(GameEngine):
    kind = GameKind.TRICK_CARD
    view_event = OutboundEventType.TRICK_CARD_VIEW

    def actions(self):
        return {
            EventType.SUBMIT_CARD: lambda room, pid, e: self.submit(room, pid, e.card, e.free_text),
            EventType.PICK_WINNER: lambda room, pid, e: self.pick(room, pid, e.target_id),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, room: Room):
        active = room.active_players()
        if not active:
            return
        state = room.trick
        state.submissions = []
        state.judging = False
        state.winner_picked = False
        state.round_number = 1

        self._assign_judge(room, active[0])
        for player in room.players.values():
            player.has_submitted = False
            self._top_up(room, player)
        state.prompt = draw_prompt(state, self.manager.card_texts, self.rng)

        self.announce_game_start(room)
        self.publish(room)

    def next_round(self, room: Room):
        if self._advance_round(room):
            self.publish(room)

    def _advance_round(self, room: Room) -> bool:
        """Rotate the judge and open a new round. False if the game had to end instead."""
        if len(room.active_players()) < self.min_players:
            self.manager.lobby.end_game(room, "Not enough players")
            return False

        state = room.trick
        state.submissions = []
        state.judging = False
        state.winner_picked = False
        state.round_number += 1
        state.prompt = draw_prompt(state, self.manager.card_texts, self.rng)

        self._assign_judge(room, next_active_player(room, state.judge_seat, 1, 1))
        for player in room.players.values():
            player.has_submitted = False
            self._top_up(room, player)

        logger.info(f"Room {room.code} round {state.round_number}, judge {state.judge_id}")
        return True

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def submit(self, room: Room, player_id: str, card: str, free_text: Optional[str] = None):
        state = room.trick
        player = self.require_player(room, player_id)

        if player.is_judge:
            raise GameError(NOT_JUDGE, "The judge does not submit a card")
        if player.has_submitted:
            raise GameError(ALREADY_SUBMITTED, "You already submitted a card this round")
        if state.judging or state.winner_picked:
            raise GameError(ACTION_NOT_ALLOWED, "Submissions are closed for this round")
        if card not in player.hand:
            raise GameError(INVALID_CARD, "You don't hold that card")

        if card == BLANK_CARD:
            text = (free_text or "").strip()
            if not text:
                raise GameError(BLANK_TEXT_REQUIRED, "The blank card needs your own text")
            shown = self.manager.sanitize(text[:self.rules.max_free_text_length])
        else:
            shown = card

        player.hand.remove(card)
        player.hand.append(self._draw(room))
        state.submissions.append(Submission(card=shown, player_id=player.id))
        player.has_submitted = True
        logger.info(f"{player.name} submitted in {room.code} "
                    f"({len(state.submissions)}/{self._expected_submissions(room)})")

        self._close_submissions_if_complete(room)
        self.publish(room)

    def pick(self, room: Room, judge_id: str, target_id: str):
        state = room.trick
        judge = self.require_player(room, judge_id)

        if not judge.is_judge:
            raise GameError(NOT_JUDGE, "Only the judge can pick the winner")
        if state.winner_picked:
            raise GameError(ACTION_NOT_ALLOWED, "A winner was already picked this round")
        if not state.judging:
            raise GameError(ACTION_NOT_ALLOWED, "Still waiting for submissions")
        winner = room.players.get(target_id)
        if winner is None or not any(s.player_id == target_id for s in state.submissions):
            raise GameError(UNKNOWN_TARGET, "That player has no submission this round")

        winner.score += 1
        state.winner_picked = True
        logger.info(f"Room {room.code} round {state.round_number} won by {winner.name} ({winner.score})")
        self.gateway.to_room(room, OutboundEventType.ROUND_WINNER, {"name": winner.name, "score": winner.score})

        if winner.score >= self.rules.win_points:
            logger.info(f"{winner.name} wins the game in {room.code}")
            self.gateway.to_room(room, OutboundEventType.GAME_WINNER, {"name": winner.name})
            self.schedule_reset(room, self.rules.trick_reset_delay)
        else:
            self._schedule_next_round(room)
        self.publish(room)

    def _schedule_next_round(self, room: Room):
        code, game_number, round_number = room.code, room.game_number, room.trick.round_number

        def advance_if_current():
            current = self.registry.get(code)
            if (current is None or not current.started or current.game_number != game_number
                    or current.trick.round_number != round_number):
                return
            self.next_round(current)

        self.registry.schedule_delayed(code, self.rules.round_advance_delay, advance_if_current)

    # ------------------------------------------------------------------
    # Seat changes
    # ------------------------------------------------------------------
    def on_player_removed(self, room: Room, player: Player, held_role: bool):
        state = room.trick
        state.submissions = [s for s in state.submissions if s.player_id != player.id]
        if not room.started:
            return
        if held_role and not state.winner_picked:
            # a pending advance already rotates from the removed judge's seat
            self._advance_round(room)
        else:
            self._close_submissions_if_complete(room)

    def on_player_disconnected(self, room: Room, player_id: str):
        if room.started:
            self._close_submissions_if_complete(room)

    def holds_role(self, room: Room, player_id: str) -> bool:
        return room.trick.judge_id == player_id

    def clear_round_state(self, room: Room):
        state = room.trick
        state.submissions = []
        state.prompt = ""
        state.judging = False
        state.winner_picked = False
        state.judge_id = None
        for player in room.players.values():
            player.is_judge = False
            player.has_submitted = False

    def reset_state(self, room: Room):
        room.trick = TrickState()

    def render_view(self, room: Room, viewer_id: Optional[str]) -> Dict[str, Any]:
        return trick_view(room, viewer_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _draw(self, room: Room) -> str:
        return draw_fill_in(room.trick, self.manager.card_texts, self.rng, self.rules.blank_card_chance)

    def _top_up(self, room: Room, player: Player):
        while len(player.hand) < self.rules.trick_hand_size:
            player.hand.append(self._draw(room))

    def _assign_judge(self, room: Room, judge: Optional[Player]):
        state = room.trick
        for player in room.players.values():
            player.is_judge = judge is not None and player.id == judge.id
        if judge is None:
            state.judge_id = None
            return
        state.judge_id = judge.id
        state.judge_seat = judge.seat
        active_ids = [p.id for p in room.active_players()]
        state.judge_index = active_ids.index(judge.id) if judge.id in active_ids else 0

    def _expected_submissions(self, room: Room) -> int:
        return len([p for p in room.active_players() if not p.is_judge])

    def _close_submissions_if_complete(self, room: Room):
        """Freeze the judging order once every active non-judge has submitted."""
        state = room.trick
        if state.judging or not state.submissions:
            return
        if len(state.submissions) < self._expected_submissions(room):
            return
        state.submissions = shuffle_deck(state.submissions, self.rng)
        state.judging = True
        logger.info(f"All cards in for {room.code}, judging {len(state.submissions)} submissions")
