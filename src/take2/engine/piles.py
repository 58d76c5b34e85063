from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from .types import Card, full_deck


class Shuffler(Protocol):
    def shuffle(self, items: Sequence[Card]) -> list[Card]: ...


class RandomShuffler:
    """Uniform shuffle driven by a private `random.Random`."""

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    @staticmethod
    def seeded(seed: int | None) -> "RandomShuffler":
        return RandomShuffler(random.Random(seed))

    def shuffle(self, items: Sequence[Card]) -> list[Card]:
        out = list(items)
        self.rng.shuffle(out)
        return out


@dataclass(frozen=True)
class DealResult:
    hands: list[list[Card]]
    start_card: Card


@dataclass(frozen=True)
class DrawResult:
    cards: list[Card]
    requested: int
    recycled: bool = False

    @property
    def exhausted(self) -> bool:
        return len(self.cards) < self.requested


@dataclass
class PileManager:
    shuffler: Shuffler
    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)

    def deal(self, num_players: int, hand_size: int, order: Sequence[int] | None = None) -> DealResult:
        """Shuffle a fresh deck and deal `hand_size` cards per seat.

        Seats are served in `order` (seating order), one full hand at a time.
        The next card becomes the start card and the remainder is the draw pile.
        """
        seats = list(order) if order is not None else list(range(num_players))
        deck = self.shuffler.shuffle(full_deck())
        if num_players * hand_size + 1 > len(deck):
            raise ValueError("Not enough cards for that many players and hand size.")

        hands: list[list[Card]] = [[] for _ in range(num_players)]
        pos = 0
        for seat in seats:
            hands[seat] = deck[pos : pos + hand_size]
            pos += hand_size
        start_card = deck[pos]
        self.draw_pile = deck[pos + 1 :]
        self.discard_pile = []
        return DealResult(hands=hands, start_card=start_card)

    def recycle(self) -> bool:
        if not self.discard_pile:
            return False
        self.draw_pile.extend(self.shuffler.shuffle(self.discard_pile))
        self.discard_pile = []
        return True

    def draw(self, count: int) -> DrawResult:
        """Take up to `count` cards from the front of the draw pile.

        Recycles the discard pile first when the draw pile cannot cover the
        request. Returns fewer cards when both piles run dry.
        """
        if count <= 0:
            return DrawResult(cards=[], requested=0)
        recycled = False
        if len(self.draw_pile) < count:
            recycled = self.recycle()
        cards = self.draw_pile[:count]
        del self.draw_pile[:count]
        return DrawResult(cards=cards, requested=count, recycled=recycled)

    def discard(self, card: Card) -> None:
        self.discard_pile.append(card)

    def card_count(self) -> int:
        return len(self.draw_pile) + len(self.discard_pile)
