from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .types import (
    Card,
    ColorChoiceEffect,
    Effect,
    PenaltyStackEffect,
    PlainEffect,
    QueenPairEffect,
    QueenPenaltyEffect,
    RejectReason,
    SkipEffect,
    Suit,
)


@dataclass
class TableState:
    active_card: Card
    active_color: Suit
    pending_penalty: int = 0
    pending_skip: bool = False
    queen_pair_shadow: Card | None = None
    color_choice_pending: bool = False


@dataclass(frozen=True)
class Verdict:
    ok: bool
    reason: RejectReason | None = None

    @staticmethod
    def accept() -> "Verdict":
        return Verdict(ok=True)

    @staticmethod
    def reject(reason: RejectReason) -> "Verdict":
        return Verdict(ok=False, reason=reason)


def matches_table(card: Card, table: TableState) -> bool:
    """Single-card match against active color, active rank or the Queen-pair shadow.

    Ace-on-Ace falls out of the rank match; the shadow never enables it since
    the shadow is always a Queen.
    """
    if card.suit == table.active_color:
        return True
    if card.rank == table.active_card.rank:
        return True
    shadow = table.queen_pair_shadow
    if shadow is not None and (card.suit == shadow.suit or card.rank == shadow.rank):
        return True
    return False


def normalize_pair(cards: Sequence[Card]) -> tuple[Card, ...]:
    """Put the Queen first in a two-card play so either order can be submitted."""
    if len(cards) == 2 and cards[1].rank == "Q" and cards[0].rank != "Q":
        return (cards[1], cards[0])
    return tuple(cards)


def is_queen_pair(cards: Sequence[Card], table: TableState) -> bool:
    if len(cards) != 2:
        return False
    queen, partner = normalize_pair(cards)
    if queen.rank != "Q" or partner.is_power:
        return False
    if partner.suit != queen.suit:
        return False
    return queen.suit == table.active_color


def validate_play(cards: Sequence[Card], table: TableState) -> Verdict:
    """Decide whether `cards` may be played on `table`.

    Rules in priority order: owed penalty, owed skip, two-card Queen pair,
    single-card match.
    """
    if not cards:
        return Verdict.reject("empty_play")
    if table.color_choice_pending:
        return Verdict.reject("suit_required")

    if table.pending_penalty > 0:
        if len(cards) == 1 and cards[0].rank == "2":
            return Verdict.accept()
        return Verdict.reject("penalty_pending")

    if table.pending_skip:
        if len(cards) == 1 and cards[0].rank == "J":
            return Verdict.accept()
        return Verdict.reject("skip_pending")

    if len(cards) > 1:
        if is_queen_pair(cards, table):
            return Verdict.accept()
        return Verdict.reject("illegal_pair")

    if matches_table(cards[0], table):
        return Verdict.accept()
    return Verdict.reject("no_match")


def classify_play(cards: Sequence[Card], chosen_suit: Suit | None) -> Effect:
    """Map a legal play onto its effect variant."""
    cards = normalize_pair(cards)
    if len(cards) == 2:
        return QueenPairEffect(type="queen_pair", queen=cards[0])

    card = cards[-1]
    if card.rank == "A":
        if chosen_suit is None:
            raise ValueError("An Ace needs a chosen suit.")
        return ColorChoiceEffect(type="color_choice", suit=chosen_suit)
    if card.rank == "Q":
        return QueenPenaltyEffect(type="queen_penalty", count=1)
    if card.rank == "J":
        return SkipEffect(type="skip")
    if card.rank == "2":
        twos = sum(1 for c in cards if c.rank == "2")
        return PenaltyStackEffect(type="penalty_stack", amount=2 * twos)
    return PlainEffect(type="plain")


def legal_singles(hand: Sequence[Card], table: TableState) -> list[Card]:
    return [c for c in hand if validate_play((c,), table).ok]


def legal_pairs(hand: Sequence[Card], table: TableState) -> list[tuple[Card, Card]]:
    pairs: list[tuple[Card, Card]] = []
    for queen in hand:
        if queen.rank != "Q":
            continue
        for partner in hand:
            if partner is queen:
                continue
            if validate_play((queen, partner), table).ok:
                pairs.append((queen, partner))
    return pairs
