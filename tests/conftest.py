from typing import Callable, List, Optional, Sequence

import pytest

from engine28.cards import Card, GameMode, card_from_id
from engine28.deck import BATCH_SIZE, build_deck
from engine28.game import (
    deal_initial_cards,
    finalize_trump,
    initialize_game,
    process_bid,
    select_provisional_trump,
)
from engine28.rules_schema import RuleSet
from engine28.state import GameState

NAMES_4P = ["North", "East", "South", "West"]

# player-1 opens and holds a single heart (HJ), which it folds as trump.
FIRST_BATCH = [
    ["H7", "H8", "C7", "C8"],
    ["HJ", "SJ", "S9", "SA"],
    ["DJ", "D9", "CJ", "C9"],
    ["H9", "HA", "DA", "CA"],
]
SECOND_BATCH = [
    ["D7", "D8", "S7", "S8"],
    ["S10", "D10", "C10", "SK"],
    ["HK", "HQ", "DK", "DQ"],
    ["H10", "SQ", "CK", "CQ"],
]


def stack_deck(mode: GameMode, first: Sequence[Sequence[str]], second: Sequence[Sequence[str]]) -> List[Card]:
    """Order a deck so the round-robin deal hands each seat the listed cards."""
    ordered: List[Card] = []
    for batch in (first, second):
        for slot in range(BATCH_SIZE):
            for hand in batch:
                ordered.append(card_from_id(hand[slot]))
    return ordered + [card for card in build_deck(mode) if card not in ordered]


@pytest.fixture
def stacked_deck() -> List[Card]:
    return stack_deck(GameMode.FOUR_PLAYER, FIRST_BATCH, SECOND_BATCH)


@pytest.fixture
def dealt_game(stacked_deck) -> Callable[..., GameState]:
    def build(rules: Optional[RuleSet] = None) -> GameState:
        state = initialize_game(NAMES_4P, "4p", rules=rules)
        return deal_initial_cards(state, deck=stacked_deck)

    return build


@pytest.fixture
def hearts_game(dealt_game) -> Callable[..., GameState]:
    """player-1 wins round 1 at 16, folds HJ, passes round 2 and keeps hearts."""

    def build(rules: Optional[RuleSet] = None) -> GameState:
        state = dealt_game(rules)
        state = process_bid(state, "player-1", 16)
        for player_id in ("player-2", "player-3", "player-0"):
            state = process_bid(state, player_id, None)
        state = select_provisional_trump(state, "HJ")
        state = process_bid(state, "player-1", None)
        return finalize_trump(state, True)

    return build
