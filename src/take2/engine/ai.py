from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from typing import Callable, Sequence

from .actions import Action, ChooseSuitAction, DrawAction, PassAction, PlayAction
from .match import GameState, step
from .rules import legal_pairs, legal_singles
from .types import SUITS, Card, Rank, Suit


@dataclass(frozen=True)
class AISpec:
    """Tuning thresholds for the computer opponent.

    endgame_hand_size: at or below this, shed power cards before normal ones
    pressure_hand_size: next seat at or below this gets a Jack or a 2
    human_low_hand: a human this close to finishing is treated as a target
    struggling_draw_streak / struggling_draw_ratio: when the human counts as struggling
    """

    endgame_hand_size: int = 3
    pressure_hand_size: int = 2
    human_low_hand: int = 4
    struggling_draw_streak: int = 2
    struggling_draw_ratio: float = 0.4


@dataclass(frozen=True)
class PlayHistory:
    """What the computer seats have observed about the human seat."""

    suits_played: tuple[Suit, ...] = ()
    plays: int = 0
    draws: int = 0
    draw_streak: int = 0

    @property
    def draw_ratio(self) -> float:
        return self.draws / max(self.plays, 1)

    def is_struggling(self, spec: AISpec) -> bool:
        return (
            self.draw_streak >= spec.struggling_draw_streak
            or self.draw_ratio > spec.struggling_draw_ratio
        )

    def favorite_suit(self) -> Suit | None:
        if not self.suits_played:
            return None
        counts = Counter(self.suits_played)
        best = max(SUITS, key=lambda s: counts.get(s, 0))
        return best


def record_play(history: PlayHistory, cards: Sequence[Card]) -> PlayHistory:
    return replace(
        history,
        suits_played=history.suits_played + tuple(c.suit for c in cards),
        plays=history.plays + 1,
        draw_streak=0,
    )


def record_draw(history: PlayHistory) -> PlayHistory:
    return replace(history, draws=history.draws + 1, draw_streak=history.draw_streak + 1)


# Order in which power cards are spent when nothing better applies.
POWER_PREFERENCE: tuple[Rank, ...] = ("2", "J", "Q", "A")


def choose_suit(cards: Sequence[Card], history: PlayHistory, fallback: Suit) -> Suit:
    """Most common suit in `cards`; the human's favorite suit breaks ties."""
    counts = Counter(c.suit for c in cards)
    top = max(counts.values(), default=0)
    leaders = [s for s in SUITS if top > 0 and counts.get(s, 0) == top]
    if len(leaders) == 1:
        return leaders[0]
    favorite = history.favorite_suit()
    if favorite is not None:
        return favorite
    if leaders:
        return leaders[0]
    return fallback


@dataclass(frozen=True)
class _Turn:
    state: GameState
    seat: int
    hand: list[Card]
    singles: list[Card]
    pairs: list[tuple[Card, Card]]
    history: PlayHistory
    spec: AISpec
    human_seat: int | None

    def play(self, card: Card) -> PlayAction:
        if card.rank == "A":
            remaining = [c for c in self.hand if c != card]
            suit = choose_suit(remaining, self.history, fallback=card.suit)
            return PlayAction(seat=self.seat, cards=(card,), chosen_suit=suit)
        return PlayAction(seat=self.seat, cards=(card,))

    def first_of_rank(self, *ranks: Rank) -> Card | None:
        for rank in ranks:
            for c in self.singles:
                if c.rank == rank:
                    return c
        return None

    def largest_group(self, candidates: Sequence[Card]) -> Card | None:
        if not candidates:
            return None
        sizes = Counter(c.suit for c in self.hand)
        return max(candidates, key=lambda c: sizes[c.suit])


def _forced_response(state: GameState, seat: int) -> Action | None:
    table = state.table
    hand = state.hand(seat)
    if table.pending_skip:
        for c in hand:
            if c.rank == "J":
                return PlayAction(seat=seat, cards=(c,))
        return PassAction(seat=seat)
    if table.pending_penalty > 0:
        for c in hand:
            if c.rank == "2":
                return PlayAction(seat=seat, cards=(c,))
        return DrawAction(seat=seat)
    return None


def _endgame(t: _Turn) -> Action | None:
    normals = [c for c in t.hand if not c.is_power]
    if len(t.hand) == 1 and normals and normals[0] in t.singles:
        return t.play(normals[0])
    if len(t.hand) <= t.spec.endgame_hand_size and normals:
        power = t.first_of_rank(*POWER_PREFERENCE)
        if power is not None:
            return t.play(power)
    return None


def _pressure(t: _Turn) -> Action | None:
    nxt = t.state.next_seat(t.seat)
    if nxt is None or len(t.state.hand(nxt)) > t.spec.pressure_hand_size:
        return None
    card = t.first_of_rank("J", "2")
    return t.play(card) if card is not None else None


def _target_human(t: _Turn) -> Action | None:
    human = t.human_seat
    if human is None or human == t.seat or t.state.players[human].finished:
        return None
    low = len(t.state.hand(human)) <= t.spec.human_low_hand
    if not (low or t.history.is_struggling(t.spec)):
        return None
    if t.state.next_seat(t.seat) == human:
        card = t.first_of_rank("J", "2")
        if card is not None:
            return t.play(card)
    weak = t.history.favorite_suit()
    if weak is not None:
        card = t.largest_group([c for c in t.singles if not c.is_power and c.suit == weak])
        if card is not None:
            return t.play(card)
    return None


def _queen_pair(t: _Turn) -> Action | None:
    if not t.pairs:
        return None
    sizes = Counter(c.suit for c in t.hand)
    queen, partner = max(t.pairs, key=lambda p: sizes[p[0].suit])
    return PlayAction(seat=t.seat, cards=(queen, partner))


def _strategic_ace(t: _Turn) -> Action | None:
    for ace in (c for c in t.singles if c.rank == "A"):
        action = t.play(ace)
        remaining = [c for c in t.hand if c != ace]
        if sum(1 for c in remaining if c.suit == action.chosen_suit) >= 2:
            return action
    return None


def _fallback(t: _Turn) -> Action | None:
    normals = [c for c in t.singles if not c.is_power]
    if normals:
        weak = t.history.favorite_suit()
        in_weak = [c for c in normals if c.suit == weak]
        card = t.largest_group(in_weak) or t.largest_group(normals)
        assert card is not None
        return t.play(card)
    # Only power cards left; an Ace here is the necessary case.
    card = t.first_of_rank(*POWER_PREFERENCE)
    return t.play(card) if card is not None else None


_STRATEGIES: tuple[Callable[[_Turn], Action | None], ...] = (
    _endgame,
    _pressure,
    _target_human,
    _queen_pair,
    _strategic_ace,
    _fallback,
)


def choose_action(
    state: GameState,
    seat: int,
    history: PlayHistory | None = None,
    spec: AISpec | None = None,
    human_seat: int | None = 0,
) -> Action:
    """Pick the computer seat's next action; first applicable strategy wins."""
    history = history or PlayHistory()
    spec = spec or AISpec()
    hand = state.hand(seat)

    if state.table.color_choice_pending:
        return ChooseSuitAction(
            seat=seat, suit=choose_suit(hand, history, fallback=state.table.active_color)
        )

    forced = _forced_response(state, seat)
    if forced is not None:
        return forced

    turn = _Turn(
        state=state,
        seat=seat,
        hand=hand,
        singles=legal_singles(hand, state.table),
        pairs=legal_pairs(hand, state.table),
        history=history,
        spec=spec,
        human_seat=human_seat,
    )
    if not turn.singles and not turn.pairs:
        return DrawAction(seat=seat)

    for strategy in _STRATEGIES:
        action = strategy(turn)
        if action is not None:
            return action
    return DrawAction(seat=seat)


def ai_take_turn(
    state: GameState,
    seat: int,
    history: PlayHistory | None = None,
    spec: AISpec | None = None,
    human_seat: int | None = 0,
) -> list[Action]:
    """Advance the game through one computer turn and return the actions taken.

    An opening color choice does not end the turn, so it may be followed by
    a move.
    """
    taken: list[Action] = []
    while not state.over and state.current_seat == seat:
        action = choose_action(state, seat, history, spec, human_seat)
        result = step(state, action)
        if not result.ok:
            action = PassAction(seat=seat) if state.table.pending_skip else DrawAction(seat=seat)
            step(state, action)
        taken.append(action)
        if not isinstance(action, ChooseSuitAction):
            break
    return taken
