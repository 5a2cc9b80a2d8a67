"""Convenience service layer for UI and agents."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from random import Random
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from .bidding import Bid
from .cards import Card, GameMode, Suit, card_from_id, card_label, serialize_card
from .deck import shuffled_deck
from .game import (
    can_declarer_reveal,
    can_request_reveal,
    confirm_trick,
    declarer_reveal_trump,
    deal_initial_cards,
    finalize_trump,
    initialize_game,
    legal_plays,
    play_card,
    process_bid,
    request_trump_reveal,
    select_provisional_trump,
    start_next_round,
)
from .rules_schema import RuleSet
from .state import GamePhase, GameState
from .trick import Trick


@dataclass
class TrickPlayView:
    player: str
    card: dict
    label: str


@dataclass
class TrickView:
    leader: str
    plays: list[TrickPlayView]
    winner: Optional[str]
    points: int
    trump_asked_by: Optional[str]


@dataclass
class PlayerView:
    id: str
    name: str
    position: int
    team: Optional[int]
    is_dealer: bool
    cards_in_hand: int
    tricks_won: int
    card_points: int


@dataclass
class GameView:
    game_id: str
    mode: str
    phase: str
    round_number: int
    perspective: Optional[str]
    current_player: str
    dealer: str
    players: list[PlayerView]
    hand: list[dict]
    hand_labels: list[str]
    legal_moves: list[dict]
    legal_move_labels: list[str]
    bids1: list[dict]
    bids2: list[dict]
    highest_bid: Optional[int]
    contract: Optional[int]
    provisional_bidder: Optional[str]
    declarer: Optional[str]
    trump: Optional[str]
    trump_revealed: bool
    folded_card: Optional[dict]
    can_request_reveal: bool
    can_declarer_reveal: bool
    trick: Optional[TrickView]
    trick_awaiting_confirmation: Optional[TrickView]
    completed_tricks: int
    scores: dict[str, int]
    team_scores: Optional[list[int]]
    target_score: int
    round_scores: list[dict] = field(default_factory=list)


@dataclass
class LogEntry:
    action: str
    args: Dict[str, Any]
    state: GameState


class ActionLog:
    """Append-only record of applied actions and the states they produced."""

    def __init__(self, entries: Iterable[LogEntry] = ()) -> None:
        self._entries: List[LogEntry] = list(entries)

    def record(self, action: str, args: Dict[str, Any], state: GameState) -> LogEntry:
        entry = LogEntry(action=action, args=dict(args), state=state)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)


def _deal_from_ids(state: GameState, deck: Sequence[str]) -> GameState:
    return deal_initial_cards(state, deck=[card_from_id(card_id) for card_id in deck])


ACTIONS: Dict[str, Callable[..., GameState]] = {
    "deal": _deal_from_ids,
    "bid": process_bid,
    "select_provisional_trump": select_provisional_trump,
    "finalize_trump": finalize_trump,
    "play_card": play_card,
    "request_trump_reveal": request_trump_reveal,
    "declarer_reveal_trump": declarer_reveal_trump,
    "confirm_trick": confirm_trick,
    "start_next_round": start_next_round,
}


def replay(entries: Iterable[LogEntry], initial: GameState) -> GameState:
    """Re-apply logged actions to ``initial``; a deterministic function of the log."""
    state = initial
    for entry in entries:
        state = ACTIONS[entry.action](state, **entry.args)
    return state


class GameService:
    """Facade owning one game's state value and its action log."""

    def __init__(
        self,
        player_names: Sequence[str],
        mode: Union[GameMode, str] = GameMode.FOUR_PLAYER,
        *,
        target_score: Optional[int] = None,
        rules: Optional[RuleSet] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.rng = Random(seed)
        self.initial = initialize_game(player_names, mode, target_score=target_score, rules=rules)
        self.state = self.initial
        self.log = ActionLog()

    def _apply(self, action: str, **args: Any) -> GameState:
        new_state = ACTIONS[action](self.state, **args)
        self.log.record(action, args, new_state)
        self.state = new_state
        return new_state

    # Actions -----------------------------------------------------------

    def deal(self, deck: Optional[Sequence[Card]] = None) -> GameView:
        cards = list(deck) if deck is not None else shuffled_deck(self.state.mode, self.rng)
        self._apply("deal", deck=[card.id for card in cards])
        return self.get_view(self.state.current_player.id)

    def place_bid(self, player_id: str, amount: int, is_honors: Optional[bool] = None) -> GameView:
        self._apply("bid", player_id=player_id, amount=amount, is_honors=is_honors)
        return self.get_view(player_id)

    def pass_bid(self, player_id: str) -> GameView:
        self._apply("bid", player_id=player_id, amount=None)
        return self.get_view(player_id)

    def select_provisional_trump(self, player_id: str, card_id: str) -> GameView:
        self._apply("select_provisional_trump", card_id=card_id, player_id=player_id)
        return self.get_view(player_id)

    def finalize_trump(
        self,
        player_id: str,
        keep_provisional: bool,
        new_trump_card_id: Optional[str] = None,
    ) -> GameView:
        self._apply(
            "finalize_trump",
            keep_provisional=keep_provisional,
            new_trump_card_id=new_trump_card_id,
            player_id=player_id,
        )
        return self.get_view(player_id)

    def play_card(self, player_id: str, card_id: str) -> GameView:
        self._apply("play_card", player_id=player_id, card_id=card_id)
        return self.get_view(player_id)

    def request_trump_reveal(self, player_id: str) -> GameView:
        self._apply("request_trump_reveal", player_id=player_id)
        return self.get_view(player_id)

    def declarer_reveal_trump(self, player_id: str) -> GameView:
        self._apply("declarer_reveal_trump", player_id=player_id)
        return self.get_view(player_id)

    def confirm_trick(self) -> GameView:
        self._apply("confirm_trick")
        return self.get_view(self.state.current_player.id)

    def start_next_round(self) -> GameView:
        self._apply("start_next_round")
        return self.get_view(self.state.current_player.id)

    def undo(self) -> GameView:
        """Drop the last action and rebuild the state by replaying the rest."""
        entries = self.log.entries
        if not entries:
            raise RuntimeError("Nothing to undo.")
        self.log = ActionLog(entries[:-1])
        self.state = replay(self.log, self.initial)
        return self.get_view(self.state.current_player.id)

    # Views -------------------------------------------------------------

    def get_view(self, perspective: Optional[str] = None) -> GameView:
        """Snapshot of the game as ``perspective`` may see it (None for a spectator)."""
        state = self.state
        trump = state.trump
        hand: list[Card] = []
        legal: list[Card] = []
        if perspective is not None:
            hand = list(state.player(perspective).hand)
            legal = legal_plays(state, perspective)

        playing = state.phase in (GamePhase.PLAYING_START_TRICK, GamePhase.PLAYING_IN_PROGRESS)
        is_turn = perspective is not None and state.current_player.id == perspective
        hidden_card = _folded_card_for(state, perspective)

        return GameView(
            game_id=state.id,
            mode=state.mode.value,
            phase=state.phase.value,
            round_number=state.round_number,
            perspective=perspective,
            current_player=state.current_player.id,
            dealer=state.players[state.dealer_index].id,
            players=[
                PlayerView(
                    id=player.id,
                    name=player.name,
                    position=player.position,
                    team=player.team,
                    is_dealer=player.is_dealer,
                    cards_in_hand=len(player.hand),
                    tricks_won=len(player.tricks_won),
                    card_points=player.card_points(),
                )
                for player in state.players
            ],
            hand=[serialize_card(card) for card in hand],
            hand_labels=[card_label(card) for card in hand],
            legal_moves=[serialize_card(card) for card in legal],
            legal_move_labels=[card_label(card) for card in legal],
            bids1=[_bid_payload(bid) for bid in state.bids1],
            bids2=[_bid_payload(bid) for bid in state.bids2],
            highest_bid=_highest_amount(state),
            contract=state.final_bid.amount if state.final_bid else None,
            provisional_bidder=trump.provisional_bidder_id,
            declarer=trump.final_declarer_id,
            trump=_visible_trump(state, perspective),
            trump_revealed=trump.revealed,
            folded_card=serialize_card(hidden_card) if hidden_card is not None else None,
            can_request_reveal=playing and is_turn and can_request_reveal(state, perspective),
            can_declarer_reveal=playing and is_turn and can_declarer_reveal(state, perspective),
            trick=_trick_view(state.current_trick),
            trick_awaiting_confirmation=_trick_view(state.trick_awaiting_confirmation),
            completed_tricks=len(state.completed_tricks),
            scores=dict(state.game_scores.player_points),
            team_scores=list(state.game_scores.team_points) if state.game_scores.team_points is not None else None,
            target_score=state.target_score,
            round_scores=[asdict(score) for score in state.round_scores],
        )

    def get_game_view(self, perspective: Optional[str] = None) -> dict:
        return asdict(self.get_view(perspective))


# Helpers -----------------------------------------------------------------


def _bid_payload(bid: Bid) -> dict:
    return {
        "player": bid.player_id,
        "amount": None if bid.is_pass else bid.amount,
        "pass": bid.is_pass,
        "honors": bid.is_honors,
    }


def _highest_amount(state: GameState) -> Optional[int]:
    standing = [bid.amount for bid in (state.highest_bid1, state.highest_bid2) if bid is not None]
    return max(standing) if standing else None


def _trick_view(trick: Optional[Trick]) -> Optional[TrickView]:
    if trick is None or trick.is_empty():
        return None
    return TrickView(
        leader=trick.leader,
        plays=[TrickPlayView(player=player, card=serialize_card(card), label=card_label(card)) for player, card in trick.plays],
        winner=trick.winner,
        points=trick.points,
        trump_asked_by=trick.trump_asked_by,
    )


def _visible_trump(state: GameState, perspective: Optional[str]) -> Optional[str]:
    suit = _known_trump_suit(state, perspective)
    return suit.value if suit is not None else None


def _known_trump_suit(state: GameState, perspective: Optional[str]) -> Optional[Suit]:
    trump = state.trump
    if trump.revealed:
        return trump.final_suit
    if perspective is None:
        return None
    if trump.final_suit is not None:
        return trump.final_suit if perspective == trump.final_declarer_id else None
    if perspective == trump.provisional_bidder_id:
        return trump.provisional_suit
    return None


def _folded_card_for(state: GameState, perspective: Optional[str]) -> Optional[Card]:
    """The face-down card, shown only to whoever folded it."""
    trump = state.trump
    if state.folded_card is None or perspective is None:
        return None
    owner = trump.final_declarer_id if trump.final_suit is not None else trump.provisional_bidder_id
    return state.folded_card if perspective == owner else None
