from random import Random

import pytest

from engine28.bidding import Auction, opening_order, validate_bid_amount
from engine28.errors import InvalidBid, WrongPhase, WrongTurn
from engine28.game import deal_initial_cards, initialize_game, process_bid, select_provisional_trump
from engine28.rules_schema import BiddingConfig, RuleSet
from engine28.state import GamePhase

NAMES_3P = ["Asha", "Bo", "Chen"]


def dealt_three_player(seed: int = 3):
    state = initialize_game(NAMES_3P, "3p")
    return deal_initial_cards(state, rng=Random(seed))


def test_opening_order_starts_left_of_dealer():
    assert opening_order(["a", "b", "c", "d"], 1) == ["b", "c", "d", "a"]


def test_validate_bid_amount_bounds():
    validate_bid_amount(14, min_bid=14, max_bid=28, to_beat=None)
    with pytest.raises(InvalidBid):
        validate_bid_amount(13, min_bid=14, max_bid=28, to_beat=None)
    with pytest.raises(InvalidBid):
        validate_bid_amount(29, min_bid=14, max_bid=28, to_beat=None)
    with pytest.raises(InvalidBid):
        validate_bid_amount(16, min_bid=14, max_bid=28, to_beat=16)


def test_first_round_closes_on_passes():
    state = dealt_three_player()
    assert state.phase is GamePhase.BIDDING1_START
    assert state.current_player.id == "player-1"

    state = process_bid(state, "player-1", 14)
    assert state.phase is GamePhase.BIDDING1_IN_PROGRESS
    state = process_bid(state, "player-2", None)
    state = process_bid(state, "player-0", None)

    assert state.phase is GamePhase.BIDDING1_COMPLETE
    assert state.trump.provisional_bidder_id == "player-1"
    assert state.highest_bid1.amount == 14
    assert state.current_player.id == "player-1"
    assert state.player("player-2").has_passed_round1


def test_bidding_war_passes_turn_around_the_table():
    state = dealt_three_player()
    state = process_bid(state, "player-1", 14)
    state = process_bid(state, "player-2", 15)
    state = process_bid(state, "player-0", None)
    state = process_bid(state, "player-1", 16)
    assert state.current_player.id == "player-2"
    state = process_bid(state, "player-2", None)

    assert state.phase is GamePhase.BIDDING1_COMPLETE
    assert state.trump.provisional_bidder_id == "player-1"
    assert [bid.amount for bid in state.bids1 if not bid.is_pass] == [14, 15, 16]


def test_invalid_bids_leave_state_untouched():
    state = dealt_three_player()
    for amount in (13, 29):
        with pytest.raises(InvalidBid):
            process_bid(state, "player-1", amount)
    with pytest.raises(WrongTurn):
        process_bid(state, "player-2", 15)

    state = process_bid(state, "player-1", 15)
    with pytest.raises(InvalidBid):
        process_bid(state, "player-2", 15)
    assert state.phase is GamePhase.BIDDING1_IN_PROGRESS
    assert len(state.bids1) == 1


def test_honors_flag_is_derived_from_threshold():
    state = dealt_three_player()
    with pytest.raises(InvalidBid):
        process_bid(state, "player-1", 15, is_honors=True)
    state = process_bid(state, "player-1", 18)
    assert state.highest_bid1.is_honors


def test_last_player_cannot_pass_without_a_bid():
    state = dealt_three_player()
    state = process_bid(state, "player-1", None)
    state = process_bid(state, "player-2", None)
    with pytest.raises(InvalidBid):
        process_bid(state, "player-0", None)

    state = process_bid(state, "player-0", 14)
    assert state.phase is GamePhase.BIDDING1_COMPLETE
    assert state.trump.provisional_bidder_id == "player-0"


def test_bid_outside_bidding_phase_is_rejected():
    state = initialize_game(NAMES_3P, "3p")
    with pytest.raises(WrongPhase):
        process_bid(state, "player-1", 14)


def test_second_round_only_unpassed_players_by_default(dealt_game):
    state = dealt_game()
    state = process_bid(state, "player-1", 16)
    for player_id in ("player-2", "player-3", "player-0"):
        state = process_bid(state, player_id, None)
    state = select_provisional_trump(state, "HJ")

    assert state.phase is GamePhase.BIDDING2_START
    assert state.auction.seats == ["player-1"]
    assert all(len(player.hand) == 8 for player in state.players if player.id != "player-1")
    assert len(state.player("player-1").hand) == 7

    with pytest.raises(InvalidBid):
        process_bid(state, "player-1", 16)
    state = process_bid(state, "player-1", 18)
    assert state.phase is GamePhase.BIDDING2_COMPLETE
    assert state.final_bid.amount == 18
    assert state.trump.final_declarer_id == "player-1"


def test_second_round_open_to_everyone(dealt_game):
    rules = RuleSet(bidding=BiddingConfig(round2_eligibility="all"))
    state = dealt_game(rules)
    state = process_bid(state, "player-1", 16)
    for player_id in ("player-2", "player-3", "player-0"):
        state = process_bid(state, player_id, None)
    state = select_provisional_trump(state, "HJ")

    assert state.auction.seats == ["player-1", "player-2", "player-3", "player-0"]
    state = process_bid(state, "player-1", None)
    state = process_bid(state, "player-2", 17)
    state = process_bid(state, "player-3", None)
    state = process_bid(state, "player-0", None)

    assert state.phase is GamePhase.BIDDING2_COMPLETE
    assert state.trump.final_declarer_id == "player-2"
    assert state.final_bid.amount == 17
    assert not state.final_bid.is_honors


def test_auction_rejects_actions_after_close():
    auction = Auction(round_number=2, seats=["a"], min_bid=14, max_bid=28, honors_threshold=20, floor=16)
    auction.pass_bid("a", timestamp=1)
    assert auction.is_complete()
    assert auction.winner() is None
    with pytest.raises(WrongPhase):
        auction.bid("a", 17, None, timestamp=2)
