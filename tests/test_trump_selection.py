import pytest

from engine28.cards import Suit, card_from_id
from engine28.errors import CardNotInHand, InvalidTrumpSelection, MissingTrumpSelection, WrongPhase
from engine28.game import finalize_trump, process_bid, select_provisional_trump
from engine28.rules_schema import BiddingConfig, RuleSet
from engine28.state import GamePhase
from engine28.trump import FinalSelection, final_selection_case


def provisional(dealt_game, rules=None, card_id="HJ"):
    state = dealt_game(rules)
    state = process_bid(state, "player-1", 16)
    for player_id in ("player-2", "player-3", "player-0"):
        state = process_bid(state, player_id, None)
    return select_provisional_trump(state, card_id)


def test_provisional_trump_is_concealed(dealt_game):
    state = provisional(dealt_game)
    hj = card_from_id("HJ")
    assert state.folded_card == hj
    assert hj not in state.player("player-1").hand
    assert state.trump.provisional_suit is Suit.HEARTS
    assert state.trump.final_suit is None
    assert not state.trump.revealed


def test_provisional_card_must_be_in_hand(dealt_game):
    state = dealt_game()
    state = process_bid(state, "player-1", 16)
    for player_id in ("player-2", "player-3", "player-0"):
        state = process_bid(state, player_id, None)
    with pytest.raises(CardNotInHand):
        select_provisional_trump(state, "DJ")
    assert state.phase is GamePhase.BIDDING1_COMPLETE


def test_must_keep_when_no_second_round_bid(dealt_game):
    state = provisional(dealt_game)
    state = process_bid(state, "player-1", None)
    assert final_selection_case(state) is FinalSelection.MUST_KEEP

    with pytest.raises(InvalidTrumpSelection):
        finalize_trump(state, False, "SJ")

    state = finalize_trump(state, True)
    assert state.trump.final_suit is Suit.HEARTS
    assert state.trump.declarer_chose_keep
    assert not state.trump.revealed
    assert state.phase is GamePhase.PLAYING_START_TRICK
    assert state.current_trick.leader == "player-1"


def test_same_declarer_may_change_after_raising(dealt_game):
    state = provisional(dealt_game)
    state = process_bid(state, "player-1", 18)
    assert final_selection_case(state) is FinalSelection.MAY_CHANGE

    with pytest.raises(MissingTrumpSelection):
        finalize_trump(state, False)

    kept = finalize_trump(state, True)
    assert kept.trump.final_suit is Suit.HEARTS

    changed = finalize_trump(state, False, "SJ")
    declarer = changed.player("player-1")
    assert changed.trump.final_suit is Suit.SPADES
    assert changed.trump.declarer_chose_new
    assert changed.folded_card == card_from_id("SJ")
    assert card_from_id("HJ") in declarer.hand
    assert len(declarer.hand) == 7


def test_new_declarer_must_fold_own_card(dealt_game):
    rules = RuleSet(bidding=BiddingConfig(round2_eligibility="all"))
    state = provisional(dealt_game, rules)
    state = process_bid(state, "player-1", None)
    state = process_bid(state, "player-2", 17)
    state = process_bid(state, "player-3", None)
    state = process_bid(state, "player-0", None)
    assert final_selection_case(state) is FinalSelection.MUST_FOLD_NEW

    with pytest.raises(MissingTrumpSelection):
        finalize_trump(state, True)
    with pytest.raises(CardNotInHand):
        finalize_trump(state, False, "SJ")

    state = finalize_trump(state, False, "DJ")
    assert state.trump.final_suit is Suit.DIAMONDS
    assert state.trump.final_declarer_id == "player-2"
    assert card_from_id("HJ") in state.player("player-1").hand
    assert len(state.player("player-1").hand) == 8
    assert len(state.player("player-2").hand) == 7
    assert (state.final_bid.amount, state.final_bid.player_id) == (17, "player-2")


def test_finalize_out_of_phase(dealt_game):
    state = provisional(dealt_game)
    with pytest.raises(WrongPhase):
        finalize_trump(state, True)
