"""Legal move generation for 28."""

from __future__ import annotations

from typing import Iterable, List

from .cards import Card, sort_cards
from .trick import Trick
from .trump import TrumpState


def legal_moves(hand: Iterable[Card], trick: Trick, player_id: str, trump: TrumpState) -> List[Card]:
    """Return the subset of ``hand`` that ``player_id`` may legally play.

    Precedence: the hidden-trump declarer may not lead trump; otherwise follow
    the lead suit; a hand of nothing but trump must trump; the player who
    asked for the reveal this trick must trump; anything else goes.
    """
    cards = list(hand)
    if trick.is_empty():
        hidden_declarer = player_id == trump.final_declarer_id and not trump.revealed
        if hidden_declarer and trump.final_suit is not None:
            return sort_cards(card for card in cards if card.suit is not trump.final_suit)
        return sort_cards(cards)

    led = trick.lead_suit
    assert led is not None

    in_led = [card for card in cards if card.suit is led]
    if in_led:
        return sort_cards(in_led)

    if trump.final_suit is not None:
        trump_cards = [card for card in cards if card.suit is trump.final_suit]
        if trump_cards and len(trump_cards) == len(cards):
            return sort_cards(trump_cards)
        if trump_cards and trump.revealed and trick.trump_asked_by == player_id:
            return sort_cards(trump_cards)

    return sort_cards(cards)
