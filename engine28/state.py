"""Game state data model for 28."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .bidding import Auction, Bid
from .cards import Card, GameMode, card_points
from .errors import InconsistentTrumpState
from .rules_schema import RuleSet
from .trick import Trick
from .trump import TrumpState


class GamePhase(Enum):
    SETUP = "setup"
    BIDDING1_START = "bidding1_start"
    BIDDING1_IN_PROGRESS = "bidding1_in_progress"
    BIDDING1_COMPLETE = "bidding1_complete"
    BIDDING2_START = "bidding2_start"
    BIDDING2_IN_PROGRESS = "bidding2_in_progress"
    BIDDING2_COMPLETE = "bidding2_complete"
    PLAYING_START_TRICK = "playing_start_trick"
    PLAYING_IN_PROGRESS = "playing_in_progress"
    TRICK_AWAITING_CONFIRMATION = "trick_completed_awaiting_confirmation"
    ROUND_OVER = "round_over"
    GAME_OVER = "game_over"


@dataclass
class Player:
    id: str
    name: str
    position: int
    hand: List[Card] = field(default_factory=list)
    initial_hand: List[Card] = field(default_factory=list)
    team: Optional[int] = None
    is_dealer: bool = False
    is_original_bidder: bool = False
    has_passed_current_round: bool = False
    has_passed_round1: bool = False
    tricks_won: List[Trick] = field(default_factory=list)

    def card_points(self) -> int:
        return sum(trick.points for trick in self.tricks_won)


@dataclass
class RoundScore:
    round_number: int
    declarer_id: str
    declarer_points: int
    opponent_points: int
    contract: int
    contract_round: int
    is_honors: bool
    declarer_won: bool
    game_points_change: int
    awarded_to: List[str]
    bid1_amount: Optional[int] = None
    bid2_amount: Optional[int] = None
    timestamp: int = 0


@dataclass
class GameScore:
    player_points: Dict[str, int] = field(default_factory=dict)
    team_points: Optional[List[int]] = None

    def leader_total(self) -> int:
        if self.team_points is not None:
            return max(self.team_points)
        return max(self.player_points.values(), default=0)


@dataclass
class GameState:
    id: str
    mode: GameMode
    rules: RuleSet
    players: List[Player]
    target_score: int
    game_scores: GameScore
    phase: GamePhase = GamePhase.SETUP
    round_number: int = 1
    current_player_index: int = 1
    dealer_index: int = 0
    original_bidder_index: int = 1
    deck: List[Card] = field(default_factory=list)
    folded_card: Optional[Card] = None
    auction: Optional[Auction] = None
    bids1: List[Bid] = field(default_factory=list)
    bids2: List[Bid] = field(default_factory=list)
    highest_bid1: Optional[Bid] = None
    highest_bid2: Optional[Bid] = None
    final_bid: Optional[Bid] = None
    trump: TrumpState = field(default_factory=TrumpState)
    current_trick: Optional[Trick] = None
    completed_tricks: List[Trick] = field(default_factory=list)
    trick_awaiting_confirmation: Optional[Trick] = None
    round_scores: List[RoundScore] = field(default_factory=list)
    clock: int = 0

    def tick(self) -> int:
        """Advance the logical clock used to order bids, tricks and scores."""
        self.clock += 1
        return self.clock

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def player(self, player_id: Optional[str]) -> Player:
        for player in self.players:
            if player.id == player_id:
                return player
        raise InconsistentTrumpState(f"Unknown player id {player_id!r}.")

    def player_index(self, player_id: str) -> int:
        return self.player(player_id).position

    def next_index(self, index: int) -> int:
        return (index + 1) % self.player_count

    def declarer(self) -> Optional[Player]:
        if self.trump.final_declarer_id is None:
            return None
        return self.player(self.trump.final_declarer_id)

    def is_round_finished(self) -> bool:
        return all(not player.hand for player in self.players) and self.folded_card is None


def cards_in_play(state: GameState) -> List[Card]:
    """Every card of the round, wherever it currently sits."""
    cards: List[Card] = list(state.deck)
    for player in state.players:
        cards.extend(player.hand)
    if state.folded_card is not None:
        cards.append(state.folded_card)
    if state.current_trick is not None:
        cards.extend(state.current_trick.cards)
    if state.trick_awaiting_confirmation is not None:
        cards.extend(state.trick_awaiting_confirmation.cards)
    for trick in state.completed_tricks:
        cards.extend(trick.cards)
    return cards


def assert_consistent(state: GameState) -> None:
    """Check the invariants no validated action sequence can break.

    Raises:
        InconsistentTrumpState: cards duplicated or lost, the folded card
            sitting in a hand, or a revealed trump whose card never came back.
    """
    cards = cards_in_play(state)
    if state.phase is not GamePhase.SETUP or cards:
        if len(cards) != state.mode.deck_size or len(set(cards)) != len(cards):
            raise InconsistentTrumpState(
                f"Card conservation broken: {len(cards)} cards tracked, {len(set(cards))} distinct."
            )

    folded = state.folded_card
    if folded is not None:
        holders = [player.id for player in state.players if folded in player.hand]
        if holders:
            raise InconsistentTrumpState(f"Folded card {folded} is also held by {holders}.")

    trump = state.trump
    if trump.revealed and not trump.folded_card_returned:
        raise InconsistentTrumpState("Trump revealed but folded card never returned.")
    if trump.folded_card_returned and folded is not None:
        raise InconsistentTrumpState("Folded card marked returned while still folded.")

    won = sum(player.card_points() for player in state.players)
    if won > sum(card.point_value() for card in cards):
        raise InconsistentTrumpState("Players hold more trick points than the deck contains.")


def total_trick_points(tricks: List[Trick]) -> int:
    return sum(card_points(trick.cards) for trick in tricks)
