from __future__ import annotations

from dataclasses import dataclass

from .types import Card, Suit


@dataclass(frozen=True)
class PlayAction:
    seat: int
    cards: tuple[Card, ...]
    chosen_suit: Suit | None = None


@dataclass(frozen=True)
class DrawAction:
    seat: int


@dataclass(frozen=True)
class PassAction:
    """Accept a pending skip and forfeit the turn."""

    seat: int


@dataclass(frozen=True)
class ChooseSuitAction:
    """Opening color choice when the start card is an Ace."""

    seat: int
    suit: Suit


Action = PlayAction | DrawAction | PassAction | ChooseSuitAction
