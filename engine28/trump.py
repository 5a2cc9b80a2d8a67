"""Folded-trump concealment and reveal protocol."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from .cards import Card, Suit, find_card
from .errors import (
    CardNotInHand,
    InconsistentTrumpState,
    InvalidRevealRequest,
    InvalidTrumpSelection,
    MissingTrumpSelection,
)

if TYPE_CHECKING:
    from .state import GameState, Player

log = logging.getLogger(__name__)


@dataclass
class TrumpState:
    provisional_suit: Optional[Suit] = None
    provisional_card_id: Optional[str] = None
    final_suit: Optional[Suit] = None
    final_card_id: Optional[str] = None
    revealed: bool = False
    provisional_bidder_id: Optional[str] = None
    final_declarer_id: Optional[str] = None
    declarer_chose_keep: bool = False
    declarer_chose_new: bool = False
    folded_card_returned: bool = False

    def reveal(self) -> None:
        if self.final_suit is None:
            raise InconsistentTrumpState("Cannot reveal before the final trump suit is fixed.")
        self.revealed = True

    def mark_returned(self) -> None:
        self.folded_card_returned = True

    def visible_suit(self) -> Optional[Suit]:
        """Trump suit as it counts for trick resolution."""
        return self.final_suit if self.revealed else None


class FinalSelection(Enum):
    MUST_KEEP = auto()
    MAY_CHANGE = auto()
    MUST_FOLD_NEW = auto()


def conceal_provisional(state: GameState, player: Player, card_id: str) -> Card:
    """Fold ``card_id`` out of the provisional bidder's hand."""
    card = _take_from_hand(player, card_id)
    state.folded_card = card
    state.trump.provisional_suit = card.suit
    state.trump.provisional_card_id = card.id
    log.debug("Provisional trump concealed by %s", player.id)
    return card


def final_selection_case(state: GameState) -> FinalSelection:
    trump = state.trump
    if trump.final_declarer_id != trump.provisional_bidder_id:
        return FinalSelection.MUST_FOLD_NEW
    if state.highest_bid2 is None:
        return FinalSelection.MUST_KEEP
    return FinalSelection.MAY_CHANGE


def finalize(state: GameState, keep_provisional: bool, new_card_id: Optional[str]) -> None:
    """Resolve the final trump choice so exactly one card stays folded."""
    trump = state.trump
    if trump.provisional_suit is None or state.folded_card is None:
        raise InconsistentTrumpState("No provisional trump to keep or change.")

    case = final_selection_case(state)
    declarer = state.player(trump.final_declarer_id)

    if case is FinalSelection.MUST_KEEP:
        if not keep_provisional or new_card_id is not None:
            raise InvalidTrumpSelection("Declarer won both rounds without a new bid and must keep the provisional trump.")
        _keep(trump)
        return

    if case is FinalSelection.MAY_CHANGE:
        if keep_provisional:
            if new_card_id is not None:
                raise InvalidTrumpSelection("Cannot both keep the provisional trump and fold a new card.")
            _keep(trump)
            return
        if new_card_id is None:
            raise MissingTrumpSelection("Must provide a new trump card id when changing trump.")
        new_card = _take_from_hand(declarer, new_card_id)
        declarer.hand.append(state.folded_card)
        _fold_final(state, new_card)
        return

    if keep_provisional or new_card_id is None:
        raise MissingTrumpSelection("A new declarer must fold a trump card of their own.")
    new_card = _take_from_hand(declarer, new_card_id)
    provisional_bidder = state.player(trump.provisional_bidder_id)
    provisional_bidder.hand.append(state.folded_card)
    _fold_final(state, new_card)


def _keep(trump: TrumpState) -> None:
    trump.final_suit = trump.provisional_suit
    trump.final_card_id = trump.provisional_card_id
    trump.declarer_chose_keep = True


def _fold_final(state: GameState, card: Card) -> None:
    state.folded_card = card
    state.trump.final_suit = card.suit
    state.trump.final_card_id = card.id
    state.trump.declarer_chose_new = True


def _take_from_hand(player: Player, card_id: str) -> Card:
    card = find_card(player.hand, card_id)
    if card is None:
        raise CardNotInHand(f"Card {card_id} not found in {player.name}'s hand.")
    player.hand.remove(card)
    return card


def return_folded_card(state: GameState) -> None:
    """Move the folded card into the declarer's hand and reveal the trump."""
    trump = state.trump
    if state.folded_card is None or trump.folded_card_returned:
        raise InconsistentTrumpState("Folded card already returned.")
    declarer = state.player(trump.final_declarer_id)
    declarer.hand.append(state.folded_card)
    state.folded_card = None
    trump.mark_returned()
    trump.reveal()
    log.debug("Trump %s revealed; folded card back with %s", trump.final_suit, declarer.id)


def _check_reveal_possible(state: GameState) -> None:
    trump = state.trump
    if trump.final_suit is None:
        raise InvalidRevealRequest("Final trump suit has not been selected.")
    if trump.revealed:
        raise InvalidRevealRequest("Trump is already revealed.")


def cannot_follow(player: Player, lead_suit: Optional[Suit]) -> bool:
    return lead_suit is not None and not any(card.suit is lead_suit for card in player.hand)


def request_reveal(state: GameState, asker: Player) -> None:
    """An opponent who cannot follow the led suit asks for the trump."""
    _check_reveal_possible(state)
    trick = state.current_trick
    if asker.id == state.trump.final_declarer_id:
        raise InvalidRevealRequest("The declarer reveals trump voluntarily instead of requesting it.")
    if trick is None or trick.is_empty():
        raise InvalidRevealRequest("Trump can only be requested after a suit has been led.")
    if not cannot_follow(asker, trick.lead_suit):
        raise InvalidRevealRequest("Trump can only be requested when unable to follow suit.")
    return_folded_card(state)
    trick.trump_asked_by = asker.id


def declarer_reveal(state: GameState, declarer: Player) -> None:
    """The declarer reveals trump when leading or when unable to follow suit."""
    _check_reveal_possible(state)
    if declarer.id != state.trump.final_declarer_id:
        raise InvalidRevealRequest("Only the declarer may reveal trump.")
    trick = state.current_trick
    leading = trick is None or trick.is_empty()
    if not leading and not cannot_follow(declarer, trick.lead_suit):
        raise InvalidRevealRequest("The declarer can only reveal when leading or unable to follow suit.")
    return_folded_card(state)


def forced_reveal_due(state: GameState, player: Player) -> bool:
    """True when the declarer's turn leaves no legal play without the folded card."""
    trump = state.trump
    if player.id != trump.final_declarer_id or trump.revealed or state.folded_card is None:
        return False
    if not player.hand:
        return True

    trick = state.current_trick
    leading = trick is None or trick.is_empty()
    if leading:
        return all(card.suit is trump.final_suit for card in player.hand)

    if state.rules.trump.forced_reveal == "trump_led":
        return trick.lead_suit is trump.final_suit and cannot_follow(player, trick.lead_suit)
    return False
