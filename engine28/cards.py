"""Card-related data structures and helpers for 28."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Mapping


class Suit(Enum):
    HEARTS = "Hearts"
    DIAMONDS = "Diamonds"
    CLUBS = "Clubs"
    SPADES = "Spades"

    def __str__(self) -> str:
        return self.value

    @property
    def initial(self) -> str:
        return self.value[0]


class Rank(Enum):
    ACE = "A"
    KING = "K"
    QUEEN = "Q"
    JACK = "J"
    TEN = "10"
    NINE = "9"
    EIGHT = "8"
    SEVEN = "7"

    def __str__(self) -> str:
        return self.value


class GameMode(Enum):
    THREE_PLAYER = "3p"
    FOUR_PLAYER = "4p"

    @property
    def player_count(self) -> int:
        return 3 if self is GameMode.THREE_PLAYER else 4

    @property
    def ranks(self) -> List[Rank]:
        if self is GameMode.THREE_PLAYER:
            return [rank for rank in RANK_ORDER if rank not in (Rank.EIGHT, Rank.SEVEN)]
        return list(RANK_ORDER)

    @property
    def deck_size(self) -> int:
        return len(Suit) * len(self.ranks)


# Card point values: J=3, 9=2, A=1, 10=1, everything else 0.
CARD_POINTS: dict[Rank, int] = {
    Rank.JACK: 3,
    Rank.NINE: 2,
    Rank.ACE: 1,
    Rank.TEN: 1,
    Rank.KING: 0,
    Rank.QUEEN: 0,
    Rank.EIGHT: 0,
    Rank.SEVEN: 0,
}

# Rank order from highest to lowest for trick resolution.
RANK_ORDER: list[Rank] = [
    Rank.JACK,
    Rank.NINE,
    Rank.ACE,
    Rank.TEN,
    Rank.KING,
    Rank.QUEEN,
    Rank.EIGHT,
    Rank.SEVEN,
]

CARD_ORDER: dict[Rank, int] = {rank: len(RANK_ORDER) - index for index, rank in enumerate(RANK_ORDER)}

SUIT_BY_INITIAL: dict[str, Suit] = {suit.initial: suit for suit in Suit}
RANK_BY_VALUE: dict[str, Rank] = {rank.value: rank for rank in Rank}

TOTAL_POINTS = 28


@dataclass(frozen=True, order=True)
class Card:
    """Immutable representation of a playing card."""

    rank: Rank
    suit: Suit

    @property
    def id(self) -> str:
        return f"{self.suit.initial}{self.rank.value}"

    @property
    def order(self) -> int:
        return CARD_ORDER[self.rank]

    def point_value(self) -> int:
        return CARD_POINTS[self.rank]

    def __str__(self) -> str:
        return self.id


def card_points(cards: Iterable[Card]) -> int:
    return sum(card.point_value() for card in cards)


def card_from_id(card_id: str) -> Card:
    """Parse an id such as ``HJ`` or ``S10`` back into a Card."""
    if len(card_id) < 2:
        raise ValueError(f"Malformed card id: {card_id!r}")
    try:
        suit = SUIT_BY_INITIAL[card_id[0]]
        rank = RANK_BY_VALUE[card_id[1:]]
    except KeyError as exc:
        raise ValueError(f"Unknown card id: {card_id!r}") from exc
    return Card(rank, suit)


def find_card(cards: Iterable[Card], card_id: str) -> Card | None:
    for card in cards:
        if card.id == card_id:
            return card
    return None


def sort_cards(cards: Iterable[Card]) -> List[Card]:
    suit_index = {suit: index for index, suit in enumerate(Suit)}
    return sorted(cards, key=lambda card: (suit_index[card.suit], -card.order))


def serialize_card(card: Card) -> dict[str, object]:
    return {
        "id": card.id,
        "rank": card.rank.value,
        "suit": card.suit.value,
        "pointValue": card.point_value(),
        "order": card.order,
    }


def deserialize_card(payload: Mapping[str, object]) -> Card:
    if "id" in payload:
        return card_from_id(str(payload["id"]))
    return Card(RANK_BY_VALUE[str(payload["rank"])], Suit(str(payload["suit"])))


def card_label(card: Card) -> str:
    return f"{card.rank.name.title()} of {card.suit.value}"
