"""Deck creation and dealing utilities for 28."""

from __future__ import annotations

from collections import Counter
from random import Random
from typing import List, Optional, Sequence, Tuple

from .cards import Card, GameMode, Suit

BATCH_SIZE = 4


def build_deck(mode: GameMode) -> List[Card]:
    """Return the ordered 24-card (3p) or 32-card (4p) deck."""
    return [Card(rank, suit) for suit in Suit for rank in mode.ranks]


def shuffled_deck(mode: GameMode, rng: Optional[Random] = None) -> List[Card]:
    cards = build_deck(mode)
    if rng is None:
        rng = Random()
    rng.shuffle(cards)
    return cards


def validate_deck(cards: Sequence[Card], mode: GameMode) -> None:
    """Ensure a preset deck is a permutation of the full deck for the mode."""
    if len(cards) != mode.deck_size:
        raise ValueError(f"Deck must contain exactly {mode.deck_size} cards for {mode.value}.")
    if Counter(cards) != Counter(build_deck(mode)):
        raise ValueError(f"Deck is not a permutation of the {mode.value} deck.")


def deal_batch(
    deck: Sequence[Card],
    player_count: int,
    cards_per_player: int = BATCH_SIZE,
) -> Tuple[List[List[Card]], List[Card]]:
    """Deal one card at a time to each player; return the hands and the remaining deck."""
    needed = player_count * cards_per_player
    assert len(deck) >= needed, f"Deck holds {len(deck)} cards, {needed} required."

    remaining = list(deck)
    hands: List[List[Card]] = [[] for _ in range(player_count)]
    for _ in range(cards_per_player):
        for hand in hands:
            hand.append(remaining.pop(0))
    return hands, remaining
