"""Trick representation and resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .cards import Card, Suit, card_points


class TrickError(RuntimeError):
    """Raised when trick play breaks ordering constraints."""


@dataclass
class Trick:
    leader: str
    plays: List[Tuple[str, Card]] = field(default_factory=list)
    winner: Optional[str] = None
    trump_asked_by: Optional[str] = None
    points: int = 0

    def is_empty(self) -> bool:
        return not self.plays

    def add_play(self, player: str, card: Card) -> None:
        if not self.plays and player != self.leader:
            raise TrickError("Only the leader can start the trick.")
        if any(played_by == player for played_by, _ in self.plays):
            raise TrickError("A player cannot play twice in the same trick.")
        self.plays.append((player, card))

    @property
    def lead_suit(self) -> Optional[Suit]:
        return self.plays[0][1].suit if self.plays else None

    @property
    def cards(self) -> List[Card]:
        return [card for _, card in self.plays]

    def is_full(self, player_count: int) -> bool:
        return len(self.plays) == player_count

    def winning_play(self, trump: Optional[Suit]) -> Tuple[str, Card]:
        """Resolve the winner; pass ``trump`` only once it has been revealed."""
        if not self.plays:
            raise TrickError("Cannot determine winner on empty trick.")
        led = self.lead_suit
        assert led is not None

        if trump is not None:
            trumps = [(player, card) for player, card in self.plays if card.suit is trump]
            if trumps:
                return _highest(trumps, key=lambda card: card.order)

        followers = [(player, card) for player, card in self.plays if card.suit is led]
        if followers:
            return _highest(followers, key=lambda card: card.order)

        # Only reachable if nobody followed the lead, which the lead card itself prevents.
        return _highest(self.plays, key=lambda card: (card.point_value(), card.order))

    def complete(self, trump: Optional[Suit]) -> str:
        winner, _ = self.winning_play(trump)
        self.winner = winner
        self.points = card_points(self.cards)
        return winner


def _highest(plays: List[Tuple[str, Card]], key) -> Tuple[str, Card]:
    best = plays[0]
    for play in plays[1:]:
        # Strictly greater keeps the earliest play on ties.
        if key(play[1]) > key(best[1]):
            best = play
    return best
