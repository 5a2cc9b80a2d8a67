"""High-level game orchestration for 28.

Every action is a function ``(state, ...) -> new state``. The input state is
never mutated: work happens on a deep copy that is only returned once the
action has fully applied, so a raised ``RulesError`` leaves the caller with
the unchanged prior state.
"""

from __future__ import annotations

import copy
import logging
import uuid
from enum import Enum, auto
from random import Random
from typing import List, Optional, Sequence, Union

from .bidding import Auction, Bid, opening_order
from .cards import Card, GameMode, find_card
from .deck import deal_batch, shuffled_deck, validate_deck
from .errors import CardNotInHand, IllegalPlay, InconsistentTrumpState, RulesError, WrongPhase, WrongTurn
from .mechanics import legal_moves
from .rules_schema import RuleSet
from .scoring import apply_round, score_round
from .state import GamePhase, GameScore, GameState, Player, RoundScore, assert_consistent
from .trick import Trick
from .trump import (
    TrumpState,
    conceal_provisional,
    declarer_reveal,
    finalize,
    forced_reveal_due,
    request_reveal,
    return_folded_card,
)

log = logging.getLogger(__name__)


class Action(Enum):
    DEAL = auto()
    BID = auto()
    SELECT_PROVISIONAL_TRUMP = auto()
    FINALIZE_TRUMP = auto()
    PLAY_CARD = auto()
    REQUEST_REVEAL = auto()
    DECLARER_REVEAL = auto()
    CONFIRM_TRICK = auto()
    START_NEXT_ROUND = auto()


ACTION_PHASES: dict[Action, frozenset[GamePhase]] = {
    Action.DEAL: frozenset({GamePhase.SETUP}),
    Action.BID: frozenset(
        {
            GamePhase.BIDDING1_START,
            GamePhase.BIDDING1_IN_PROGRESS,
            GamePhase.BIDDING2_START,
            GamePhase.BIDDING2_IN_PROGRESS,
        }
    ),
    Action.SELECT_PROVISIONAL_TRUMP: frozenset({GamePhase.BIDDING1_COMPLETE}),
    Action.FINALIZE_TRUMP: frozenset({GamePhase.BIDDING2_COMPLETE}),
    Action.PLAY_CARD: frozenset({GamePhase.PLAYING_START_TRICK, GamePhase.PLAYING_IN_PROGRESS}),
    Action.REQUEST_REVEAL: frozenset({GamePhase.PLAYING_IN_PROGRESS}),
    Action.DECLARER_REVEAL: frozenset({GamePhase.PLAYING_START_TRICK, GamePhase.PLAYING_IN_PROGRESS}),
    Action.CONFIRM_TRICK: frozenset({GamePhase.TRICK_AWAITING_CONFIRMATION}),
    Action.START_NEXT_ROUND: frozenset({GamePhase.ROUND_OVER}),
}

ROUND1_PHASES = frozenset({GamePhase.BIDDING1_START, GamePhase.BIDDING1_IN_PROGRESS})


def _verify_transition_table() -> None:
    missing = set(Action) - set(ACTION_PHASES)
    if missing:
        raise InconsistentTrumpState(f"Actions without a phase entry: {sorted(a.name for a in missing)}")
    reachable = set().union(*ACTION_PHASES.values())
    # GAME_OVER is terminal, every other phase must accept at least one action.
    unhandled = set(GamePhase) - reachable - {GamePhase.GAME_OVER}
    if unhandled:
        raise InconsistentTrumpState(f"Phases no action handles: {sorted(p.value for p in unhandled)}")


_verify_transition_table()


def _require_phase(state: GameState, action: Action) -> None:
    if state.phase not in ACTION_PHASES[action]:
        raise WrongPhase(f"{action.name.lower()} is not allowed in phase {state.phase.value}.")


def _require_turn(state: GameState, player_id: str) -> None:
    if state.current_player.id != player_id:
        raise WrongTurn(f"Not {player_id}'s turn; waiting on {state.current_player.id}.")


def _commit(before: GameState, after: GameState) -> GameState:
    if before.round_number == after.round_number:
        if before.trump.revealed and not after.trump.revealed:
            raise InconsistentTrumpState("Trump reveal cannot be undone within a round.")
        if before.trump.folded_card_returned and not after.trump.folded_card_returned:
            raise InconsistentTrumpState("Folded card return cannot be undone within a round.")
    assert_consistent(after)
    if before.phase is not after.phase:
        log.debug("Round %d: %s -> %s", after.round_number, before.phase.value, after.phase.value)
    return after


# Setup -----------------------------------------------------------------


def initialize_game(
    player_names: Sequence[str],
    mode: Union[GameMode, str],
    target_score: Optional[int] = None,
    rules: Optional[RuleSet] = None,
) -> GameState:
    """Create a fresh game in the ``setup`` phase with seat 0 dealing."""
    mode = GameMode(mode)
    if len(player_names) != mode.player_count:
        raise ValueError(f"{mode.value} mode needs {mode.player_count} players, got {len(player_names)}.")
    rules = rules or RuleSet()
    target = rules.scoring.default_target_score if target_score is None else target_score
    if target <= 0:
        raise ValueError("Target score must be positive.")

    four_player = mode is GameMode.FOUR_PLAYER
    players = [
        Player(
            id=f"player-{index}",
            name=name,
            position=index,
            team=index % 2 if four_player else None,
            is_dealer=index == 0,
            is_original_bidder=index == 1,
        )
        for index, name in enumerate(player_names)
    ]
    scores = GameScore(
        player_points={player.id: 0 for player in players},
        team_points=[0, 0] if four_player else None,
    )
    state = GameState(
        id=uuid.uuid4().hex,
        mode=mode,
        rules=rules,
        players=players,
        target_score=target,
        game_scores=scores,
        dealer_index=0,
        original_bidder_index=1,
        current_player_index=1,
    )
    log.info("New %s game %s for %s, target %d", mode.value, state.id, ", ".join(player_names), target)
    return state


def deal_initial_cards(
    state: GameState,
    *,
    rng: Optional[Random] = None,
    deck: Optional[Sequence[Card]] = None,
) -> GameState:
    """Shuffle (or take the preset ``deck``) and deal the first four cards each."""
    _require_phase(state, Action.DEAL)
    new = copy.deepcopy(state)

    if deck is not None:
        cards = list(deck)
        validate_deck(cards, new.mode)
    else:
        cards = shuffled_deck(new.mode, rng)

    hands, remaining = deal_batch(cards, new.player_count)
    for player, hand in zip(new.players, hands):
        player.hand = list(hand)
        player.initial_hand = list(hand)
    new.deck = remaining

    _open_auction(new, round_number=1)
    new.phase = GamePhase.BIDDING1_START
    return _commit(state, new)


# Bidding ---------------------------------------------------------------


def _open_auction(state: GameState, round_number: int) -> None:
    seats = opening_order([player.id for player in state.players], state.original_bidder_index)
    floor = None
    if round_number == 2:
        if state.rules.bidding.round2_eligibility == "unpassed":
            seats = [seat for seat in seats if not state.player(seat).has_passed_round1]
        floor = state.highest_bid1.amount if state.highest_bid1 is not None else None

    bidding = state.rules.bidding
    state.auction = Auction(
        round_number=round_number,
        seats=seats,
        min_bid=bidding.min_bid,
        max_bid=bidding.max_bid,
        honors_threshold=bidding.honors_threshold(state.mode),
        floor=floor,
    )
    state.current_player_index = state.player_index(state.auction.current_player)


def process_bid(
    state: GameState,
    player_id: str,
    amount: Optional[int],
    is_honors: Optional[bool] = None,
) -> GameState:
    """Place a bid, or pass when ``amount`` is None."""
    _require_phase(state, Action.BID)
    _require_turn(state, player_id)
    new = copy.deepcopy(state)
    auction = new.auction
    if auction is None:
        raise InconsistentTrumpState("Bidding phase without an open auction.")

    first_round = new.phase in ROUND1_PHASES
    player = new.player(player_id)
    timestamp = new.tick()

    if amount is None:
        bid = auction.pass_bid(player_id, timestamp)
        player.has_passed_current_round = True
        if first_round:
            player.has_passed_round1 = True
    else:
        bid = auction.bid(player_id, amount, is_honors, timestamp)

    if first_round:
        new.bids1.append(bid)
        new.highest_bid1 = auction.highest
    else:
        new.bids2.append(bid)
        new.highest_bid2 = auction.highest

    if not auction.is_complete():
        new.phase = GamePhase.BIDDING1_IN_PROGRESS if first_round else GamePhase.BIDDING2_IN_PROGRESS
        new.current_player_index = new.player_index(auction.current_player)
    elif first_round:
        _close_round1(new, auction)
    else:
        _close_round2(new, auction)
    return _commit(state, new)


def _close_round1(state: GameState, auction: Auction) -> None:
    winner = auction.winner()
    if winner is None:
        raise InconsistentTrumpState("Round 1 closed without a bid.")
    state.trump.provisional_bidder_id = winner
    state.auction = None
    state.phase = GamePhase.BIDDING1_COMPLETE
    state.current_player_index = state.player_index(winner)
    log.info("Round 1 bidding won by %s at %d", winner, state.highest_bid1.amount)


def _close_round2(state: GameState, auction: Auction) -> None:
    declarer = auction.winner() or state.trump.provisional_bidder_id
    standing: List[Bid] = [bid for bid in (state.highest_bid1, state.highest_bid2) if bid is not None]
    state.final_bid = max(standing, key=lambda bid: bid.amount)
    state.trump.final_declarer_id = declarer
    state.auction = None
    state.phase = GamePhase.BIDDING2_COMPLETE
    state.current_player_index = state.player_index(declarer)
    log.info("Final declarer %s with contract %d", declarer, state.final_bid.amount)


# Trump selection -------------------------------------------------------


def select_provisional_trump(state: GameState, card_id: str, player_id: Optional[str] = None) -> GameState:
    """Provisional bidder folds ``card_id``; the second batch is dealt and round 2 opens."""
    _require_phase(state, Action.SELECT_PROVISIONAL_TRUMP)
    if player_id is not None:
        _require_turn(state, player_id)
    new = copy.deepcopy(state)

    bidder = new.player(new.trump.provisional_bidder_id)
    conceal_provisional(new, bidder, card_id)

    hands, remaining = deal_batch(new.deck, new.player_count)
    for player, extra in zip(new.players, hands):
        player.hand.extend(extra)
        player.has_passed_current_round = False
    new.deck = remaining

    _open_auction(new, round_number=2)
    new.phase = GamePhase.BIDDING2_START
    return _commit(state, new)


def finalize_trump(
    state: GameState,
    keep_provisional: bool,
    new_trump_card_id: Optional[str] = None,
    player_id: Optional[str] = None,
) -> GameState:
    """Fix the final trump and open the first trick at the seat right of the dealer."""
    _require_phase(state, Action.FINALIZE_TRUMP)
    if player_id is not None:
        _require_turn(state, player_id)
    new = copy.deepcopy(state)

    finalize(new, keep_provisional, new_trump_card_id)

    leader = new.players[new.original_bidder_index]
    new.current_player_index = leader.position
    new.current_trick = Trick(leader=leader.id)
    new.phase = GamePhase.PLAYING_START_TRICK
    return _commit(state, new)


# Trick play ------------------------------------------------------------


def play_card(state: GameState, player_id: str, card_id: str) -> GameState:
    """Play ``card_id``; a due forced reveal is applied before validation."""
    _require_phase(state, Action.PLAY_CARD)
    _require_turn(state, player_id)
    new = copy.deepcopy(state)
    trick = new.current_trick
    if trick is None:
        raise InconsistentTrumpState("Playing phase without an active trick.")

    player = new.player(player_id)
    if forced_reveal_due(new, player):
        log.info("Forced trump reveal for declarer %s", player.id)
        return_folded_card(new)

    card = find_card(player.hand, card_id)
    if card is None:
        raise CardNotInHand(f"Card {card_id} not found in {player.name}'s hand.")
    if card not in legal_moves(player.hand, trick, player.id, new.trump):
        raise IllegalPlay(f"Card {card_id} is not legal in this context.")

    player.hand.remove(card)
    trick.add_play(player.id, card)

    if trick.is_full(new.player_count):
        _complete_trick(new, trick)
    else:
        new.current_player_index = new.next_index(new.current_player_index)
        new.phase = GamePhase.PLAYING_IN_PROGRESS
    return _commit(state, new)


def _complete_trick(state: GameState, trick: Trick) -> None:
    winner = state.player(trick.complete(state.trump.visible_suit()))
    winner.tricks_won.append(trick)
    state.trick_awaiting_confirmation = trick
    state.current_trick = None
    state.current_player_index = winner.position
    state.phase = GamePhase.TRICK_AWAITING_CONFIRMATION
    log.debug("Trick won by %s for %d points", winner.id, trick.points)
    if state.rules.play.auto_confirm_tricks:
        _confirm(state)


def confirm_trick(state: GameState) -> GameState:
    """Move the displayed trick into history; start the next trick or score the round."""
    _require_phase(state, Action.CONFIRM_TRICK)
    new = copy.deepcopy(state)
    _confirm(new)
    return _commit(state, new)


def _confirm(state: GameState) -> None:
    trick = state.trick_awaiting_confirmation
    if trick is None or trick.winner is None:
        raise InconsistentTrumpState("No completed trick awaiting confirmation.")
    state.completed_tricks.append(trick)
    state.trick_awaiting_confirmation = None

    if state.is_round_finished():
        _score_round(state)
        return

    state.current_trick = Trick(leader=trick.winner)
    state.current_player_index = state.player_index(trick.winner)
    state.phase = GamePhase.PLAYING_START_TRICK


def _score_round(state: GameState) -> None:
    declarer = state.declarer()
    final_bid = state.final_bid
    if declarer is None or final_bid is None:
        raise InconsistentTrumpState("Round finished without a declarer and contract.")

    contract_round = 2 if state.highest_bid2 is not None and final_bid == state.highest_bid2 else 1
    teams = {player.id: player.team for player in state.players} if state.mode is GameMode.FOUR_PLAYER else None
    result = score_round(
        mode=state.mode,
        declarer_id=declarer.id,
        contract=final_bid.amount,
        contract_round=contract_round,
        is_honors=final_bid.is_honors,
        card_points={player.id: player.card_points() for player in state.players},
        config=state.rules.scoring,
        teams=teams,
    )
    apply_round(state.game_scores.player_points, state.game_scores.team_points, result, teams)
    state.round_scores.append(
        RoundScore(
            round_number=state.round_number,
            declarer_id=declarer.id,
            declarer_points=result.declarer_points,
            opponent_points=result.opponent_points,
            contract=final_bid.amount,
            contract_round=contract_round,
            is_honors=final_bid.is_honors,
            declarer_won=result.made,
            game_points_change=result.award,
            awarded_to=list(result.awarded_to),
            bid1_amount=state.highest_bid1.amount if state.highest_bid1 else None,
            bid2_amount=state.highest_bid2.amount if state.highest_bid2 else None,
            timestamp=state.tick(),
        )
    )
    state.phase = GamePhase.GAME_OVER if state.game_scores.leader_total() >= state.target_score else GamePhase.ROUND_OVER


# Trump reveal ----------------------------------------------------------


def request_trump_reveal(state: GameState, player_id: Optional[str] = None) -> GameState:
    """The player to act, unable to follow suit, asks the declarer to reveal."""
    _require_phase(state, Action.REQUEST_REVEAL)
    if player_id is not None:
        _require_turn(state, player_id)
    new = copy.deepcopy(state)
    request_reveal(new, new.current_player)
    log.info("Trump reveal requested by %s", new.current_player.id)
    return _commit(state, new)


def declarer_reveal_trump(state: GameState, player_id: str) -> GameState:
    _require_phase(state, Action.DECLARER_REVEAL)
    _require_turn(state, player_id)
    new = copy.deepcopy(state)
    declarer_reveal(new, new.player(player_id))
    log.info("Declarer %s revealed trump", player_id)
    return _commit(state, new)


# Rounds ----------------------------------------------------------------


def start_next_round(state: GameState) -> GameState:
    """Rotate the dealer one seat and reset all round state."""
    _require_phase(state, Action.START_NEXT_ROUND)
    new = copy.deepcopy(state)
    new.round_number += 1
    new.dealer_index = new.next_index(new.dealer_index)
    new.original_bidder_index = new.next_index(new.dealer_index)

    for player in new.players:
        player.hand = []
        player.initial_hand = []
        player.tricks_won = []
        player.has_passed_current_round = False
        player.has_passed_round1 = False
        player.is_dealer = player.position == new.dealer_index
        player.is_original_bidder = player.position == new.original_bidder_index

    new.deck = []
    new.folded_card = None
    new.auction = None
    new.bids1 = []
    new.bids2 = []
    new.highest_bid1 = None
    new.highest_bid2 = None
    new.final_bid = None
    new.trump = TrumpState()
    new.current_trick = None
    new.completed_tricks = []
    new.trick_awaiting_confirmation = None
    new.current_player_index = new.original_bidder_index
    new.phase = GamePhase.SETUP
    return _commit(state, new)


# Queries ---------------------------------------------------------------


def current_player(state: GameState) -> Player:
    return state.current_player


def legal_plays(state: GameState, player_id: str) -> List[Card]:
    """Cards ``player_id`` could play right now, the folded card included when forced."""
    if state.phase not in ACTION_PHASES[Action.PLAY_CARD] or state.current_player.id != player_id:
        return []
    probe = copy.deepcopy(state)
    player = probe.player(player_id)
    if forced_reveal_due(probe, player):
        return_folded_card(probe)
    assert probe.current_trick is not None
    return legal_moves(player.hand, probe.current_trick, player.id, probe.trump)


def can_request_reveal(state: GameState, player_id: Optional[str] = None) -> bool:
    try:
        request_trump_reveal(state, player_id)
    except RulesError:
        return False
    return True


def can_declarer_reveal(state: GameState, player_id: str) -> bool:
    try:
        declarer_reveal_trump(state, player_id)
    except RulesError:
        return False
    return True
