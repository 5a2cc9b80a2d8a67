"""Two-round pass-elimination bidding for 28."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Sequence

from .errors import InvalidBid, WrongPhase, WrongTurn


@dataclass(frozen=True)
class Bid:
    amount: int
    player_id: str
    is_pass: bool
    is_honors: bool
    timestamp: int


def validate_bid_amount(
    amount: int,
    *,
    min_bid: int,
    max_bid: int,
    to_beat: Optional[int],
) -> None:
    """Validate the size of a bid against the range and the standing high bid.

    Raises:
        InvalidBid: amount outside ``[min_bid, max_bid]`` or not above ``to_beat``.
    """
    if amount < min_bid or amount > max_bid:
        raise InvalidBid(f"Bid {amount} must lie between {min_bid} and {max_bid}.")
    if to_beat is not None and amount <= to_beat:
        raise InvalidBid(f"Bid {amount} must exceed the current high bid of {to_beat}.")


def opening_order(player_ids: Sequence[str], opener_index: int) -> List[str]:
    """Return player ids in clockwise turn order starting at ``opener_index``."""
    count = len(player_ids)
    return [player_ids[(opener_index + offset) % count] for offset in range(count)]


class AuctionPhase(Enum):
    ACTIVE = auto()
    COMPLETE = auto()


@dataclass
class Auction:
    """A single bidding round among the eligible seats.

    ``seats`` lists eligible player ids in turn order, opener first. ``floor``
    is the standing contract a bid has to beat on top of this round's own bids
    (the round-1 high bid when this is round 2).
    """

    round_number: int
    seats: List[str]
    min_bid: int
    max_bid: int
    honors_threshold: int
    floor: Optional[int] = None
    phase: AuctionPhase = AuctionPhase.ACTIVE
    current_player: Optional[str] = field(init=False)
    highest: Optional[Bid] = None
    passed: List[str] = field(default_factory=list)
    bids: List[Bid] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.seats:
            raise InvalidBid("An auction needs at least one eligible player.")
        self.current_player = self.seats[0]

    def to_beat(self) -> Optional[int]:
        standing = [value for value in (self.floor, self.highest.amount if self.highest else None) if value is not None]
        return max(standing) if standing else None

    def bid(self, player: str, amount: int, is_honors: Optional[bool], timestamp: int) -> Bid:
        self._ensure_active(player)

        validate_bid_amount(amount, min_bid=self.min_bid, max_bid=self.max_bid, to_beat=self.to_beat())
        derived = amount >= self.honors_threshold
        if is_honors is not None and is_honors != derived:
            raise InvalidBid(
                f"Bid {amount} {'is' if derived else 'is not'} an honors bid (threshold {self.honors_threshold})."
            )

        placed = Bid(amount=amount, player_id=player, is_pass=False, is_honors=derived, timestamp=timestamp)
        self.bids.append(placed)
        self.highest = placed
        self._advance_turn()
        return placed

    def pass_bid(self, player: str, timestamp: int) -> Bid:
        self._ensure_active(player)

        active = self.active_players()
        if self.round_number == 1 and self.highest is None and active == [player]:
            raise InvalidBid("Everyone else has passed; the last player must place the minimum bid.")

        placed = Bid(amount=0, player_id=player, is_pass=True, is_honors=False, timestamp=timestamp)
        self.bids.append(placed)
        self.passed.append(player)
        self._advance_turn()
        return placed

    def active_players(self) -> List[str]:
        return [seat for seat in self.seats if seat not in self.passed]

    def _advance_turn(self) -> None:
        active = self.active_players()
        if not active:
            self._close()
            return
        if len(active) == 1 and self.highest is not None and self.highest.player_id == active[0]:
            self._close()
            return

        assert self.current_player is not None
        index = self.seats.index(self.current_player)
        for offset in range(1, len(self.seats) + 1):
            candidate = self.seats[(index + offset) % len(self.seats)]
            if candidate not in self.passed:
                self.current_player = candidate
                return

    def _close(self) -> None:
        self.phase = AuctionPhase.COMPLETE
        self.current_player = None

    def _ensure_active(self, player: str) -> None:
        if self.phase is AuctionPhase.COMPLETE:
            raise WrongPhase("Auction already complete.")
        if player != self.current_player:
            raise WrongTurn("Not this player's turn to act in the auction.")

    def is_complete(self) -> bool:
        return self.phase is AuctionPhase.COMPLETE

    def winner(self) -> Optional[str]:
        """Owner of the highest bid, or None when the round closed on passes only."""
        if not self.is_complete():
            raise WrongPhase("Auction not yet complete.")
        return self.highest.player_id if self.highest is not None else None
