from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Suit = Literal["♠", "♥", "♦", "♣"]
Rank = Literal["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

SUITS: tuple[Suit, ...] = ("♠", "♥", "♦", "♣")
RANKS: tuple[Rank, ...] = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")

# Ace, 2, Jack and Queen carry effects and can never close out a hand.
POWER_RANKS: frozenset[Rank] = frozenset({"A", "2", "J", "Q"})

DECK_SIZE = len(SUITS) * len(RANKS)

RejectReason = Literal[
    "no_match",
    "penalty_pending",
    "skip_pending",
    "illegal_pair",
    "not_your_turn",
    "not_in_hand",
    "suit_required",
    "empty_play",
    "nothing_to_pass",
    "no_color_choice",
    "invalid_suit",
    "game_over",
]


@dataclass(frozen=True)
class Card:
    id: str
    suit: Suit
    rank: Rank

    @staticmethod
    def of(rank: Rank, suit: Suit) -> "Card":
        return Card(id=f"{rank}{suit}", suit=suit, rank=rank)

    @property
    def is_power(self) -> bool:
        return self.rank in POWER_RANKS

    def __str__(self) -> str:
        return self.id


def full_deck() -> list[Card]:
    """All 52 cards in canonical suit-major order."""
    return [Card.of(rank, suit) for suit in SUITS for rank in RANKS]


@dataclass(frozen=True)
class ColorChoiceEffect:
    type: Literal["color_choice"]
    suit: Suit


@dataclass(frozen=True)
class QueenPenaltyEffect:
    type: Literal["queen_penalty"]
    count: int


@dataclass(frozen=True)
class QueenPairEffect:
    type: Literal["queen_pair"]
    queen: Card


@dataclass(frozen=True)
class SkipEffect:
    type: Literal["skip"]


@dataclass(frozen=True)
class PenaltyStackEffect:
    type: Literal["penalty_stack"]
    amount: int


@dataclass(frozen=True)
class PlainEffect:
    type: Literal["plain"]


Effect = (
    ColorChoiceEffect | QueenPenaltyEffect | QueenPairEffect | SkipEffect | PenaltyStackEffect | PlainEffect
)
