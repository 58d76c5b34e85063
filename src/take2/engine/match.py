from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .actions import Action, ChooseSuitAction, DrawAction, PassAction, PlayAction
from .piles import PileManager, RandomShuffler, Shuffler
from .rules import TableState, classify_play, normalize_pair, validate_play
from .scheduler import next_turn, seating_order
from .types import (
    DECK_SIZE,
    SUITS,
    Card,
    ColorChoiceEffect,
    PenaltyStackEffect,
    PlainEffect,
    QueenPairEffect,
    QueenPenaltyEffect,
    RejectReason,
    SkipEffect,
    Suit,
)

Event = dict[str, object]

MIN_PLAYERS = 2
MAX_PLAYERS = 4


@dataclass(frozen=True)
class MatchConfig:
    num_players: int = 2
    hand_size: int = 7
    first_seat: int = 0

    def validate(self) -> None:
        if not MIN_PLAYERS <= self.num_players <= MAX_PLAYERS:
            raise ValueError(f"Player count must be between {MIN_PLAYERS} and {MAX_PLAYERS}.")
        if self.hand_size < 1:
            raise ValueError("Hand size must be at least 1.")
        if self.num_players * self.hand_size + 1 > DECK_SIZE:
            raise ValueError("Not enough cards for that many players and hand size.")
        if not 0 <= self.first_seat < self.num_players:
            raise ValueError("First seat is out of range.")


@dataclass
class PlayerState:
    seat: int
    hand: list[Card]
    finished: bool = False
    finish_rank: int | None = None
    moves_played: int = 0


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None
    reason: RejectReason | None = None
    drawn: list[Card] = field(default_factory=list)


_REASON_TEXT: dict[RejectReason, str] = {
    "no_match": "Card matches neither the active color nor the active rank.",
    "penalty_pending": "A penalty is owed: play a 2 or draw.",
    "skip_pending": "You are skipped: play a Jack or pass.",
    "illegal_pair": "Only a Queen with a same-suit normal card can be paired.",
    "not_your_turn": "Not your turn.",
    "not_in_hand": "Card is not in your hand.",
    "suit_required": "Choose a suit first.",
    "empty_play": "Select at least one card.",
    "nothing_to_pass": "Nothing to pass on.",
    "no_color_choice": "No color choice is pending.",
    "invalid_suit": "Unknown suit.",
    "game_over": "Match already ended.",
}


def _reject(reason: RejectReason) -> StepResult:
    return StepResult(ok=False, events=[], error=_REASON_TEXT[reason], reason=reason)


@dataclass
class GameState:
    config: MatchConfig
    seed: int | None
    piles: PileManager
    table: TableState
    players: list[PlayerState]
    order: tuple[int, ...]
    current_seat: int = 0
    rankings: list[int] = field(default_factory=list)
    over: bool = False
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    @property
    def num_players(self) -> int:
        return len(self.players)

    def hand(self, seat: int) -> list[Card]:
        return self.players[seat].hand

    def next_seat(self, seat: int) -> int | None:
        return next_turn(self.order, seat, self.rankings)

    def card_total(self) -> int:
        """Cards accounted for across piles, hands, table and shadow. Always 52."""
        total = self.piles.card_count() + sum(len(p.hand) for p in self.players) + 1
        if self.table.queen_pair_shadow is not None:
            total += 1
        return total


def _log(state: GameState, event: Event) -> None:
    state.event_log.append(event)


def draw_cards(state: GameState, seat: int, count: int, reason: str) -> list[Card]:
    """Move up to `count` cards from the stock into `seat`'s hand."""
    result = state.piles.draw(count)
    state.players[seat].hand.extend(result.cards)
    if result.recycled:
        _log(state, {"type": "DECK_RECYCLED", "draw_pile": len(state.piles.draw_pile)})
    _log(
        state,
        {
            "type": "CARDS_DRAWN",
            "player": seat,
            "count": len(result.cards),
            "reason": reason,
            "card_ids": [c.id for c in result.cards],
        },
    )
    if result.exhausted:
        _log(
            state,
            {
                "type": "STOCK_EXHAUSTED",
                "player": seat,
                "requested": result.requested,
                "received": len(result.cards),
            },
        )
    return result.cards


def _release_shadow(state: GameState) -> None:
    shadow = state.table.queen_pair_shadow
    if shadow is None:
        return
    state.piles.discard(shadow)
    state.table.queen_pair_shadow = None


def _finish(state: GameState, seat: int) -> None:
    ps = state.players[seat]
    state.rankings.append(seat)
    ps.finished = True
    ps.finish_rank = len(state.rankings)
    _log(state, {"type": "PLAYER_FINISHED", "player": seat, "rank": ps.finish_rank})


def _check_finishers(state: GameState) -> None:
    for seat in state.order:
        ps = state.players[seat]
        if not ps.finished and not ps.hand:
            _finish(state, seat)

    if state.num_players - len(state.rankings) == 1:
        last = next(s for s in state.order if s not in state.rankings)
        _finish(state, last)
    if len(state.rankings) == state.num_players and not state.over:
        state.over = True
        _log(state, {"type": "GAME_ENDED", "rankings": list(state.rankings)})


def _advance_turn(state: GameState, from_seat: int) -> None:
    if state.over:
        return
    nxt = next_turn(state.order, from_seat, state.rankings)
    if nxt is None:
        return
    state.current_seat = nxt
    _log(state, {"type": "TURN_STARTED", "player": nxt})


def _resolve_play(state: GameState, seat: int, cards: tuple[Card, ...], chosen_suit: Suit | None) -> None:
    table = state.table
    ps = state.players[seat]
    effect = classify_play(cards, chosen_suit)

    for c in cards:
        ps.hand.remove(c)
    _release_shadow(state)
    state.piles.discard(table.active_card)
    table.active_card = cards[-1]
    ps.moves_played += 1
    _log(state, {"type": "CARD_PLAYED", "player": seat, "card_ids": [c.id for c in cards]})

    drew_for_queen = False
    if isinstance(effect, ColorChoiceEffect):
        table.active_color = effect.suit
        _log(state, {"type": "COLOR_CHOSEN", "player": seat, "suit": effect.suit})
    elif isinstance(effect, QueenPairEffect):
        # Color is retained; the Queen stays on the table as a second match target.
        table.queen_pair_shadow = effect.queen
        _log(state, {"type": "QUEEN_PAIR", "player": seat, "queen": effect.queen.id})
    elif isinstance(effect, QueenPenaltyEffect):
        table.active_color = table.active_card.suit
        draw_cards(state, seat, effect.count, reason="queen_penalty")
        drew_for_queen = True
    elif isinstance(effect, SkipEffect):
        table.active_color = table.active_card.suit
        table.pending_skip = True
        _log(state, {"type": "SKIP_PENDING", "player": seat})
    elif isinstance(effect, PenaltyStackEffect):
        table.active_color = table.active_card.suit
        table.pending_penalty += effect.amount
        _log(state, {"type": "PENALTY_INCREASED", "player": seat, "total": table.pending_penalty})
    elif isinstance(effect, PlainEffect):
        table.active_color = table.active_card.suit

    if not ps.hand and any(c.is_power for c in cards):
        _log(state, {"type": "POWER_CARD_FINISH", "player": seat})
        if not drew_for_queen:
            draw_cards(state, seat, 1, reason="power_finish")

    _check_finishers(state)
    _advance_turn(state, seat)


def _holds_all(hand: Sequence[Card], cards: Sequence[Card]) -> bool:
    if len({c.id for c in cards}) != len(cards):
        return False
    ids = {c.id for c in hand}
    return all(c.id in ids for c in cards)


def _play(state: GameState, action: PlayAction) -> StepResult:
    ps = state.players[action.seat]
    if not _holds_all(ps.hand, action.cards):
        return _reject("not_in_hand")
    cards = normalize_pair(action.cards)
    verdict = validate_play(cards, state.table)
    if not verdict.ok:
        assert verdict.reason is not None
        return _reject(verdict.reason)
    if len(cards) == 1 and cards[0].rank == "A":
        if action.chosen_suit is None:
            return _reject("suit_required")
        if action.chosen_suit not in SUITS:
            return _reject("invalid_suit")

    mark = len(state.event_log)
    _resolve_play(state, action.seat, cards, action.chosen_suit)
    return StepResult(ok=True, events=state.event_log[mark:])


def _draw(state: GameState, action: DrawAction) -> StepResult:
    table = state.table
    if table.color_choice_pending:
        return _reject("suit_required")
    if table.pending_skip:
        return _reject("skip_pending")

    mark = len(state.event_log)
    if table.pending_penalty > 0:
        owed = table.pending_penalty
        drawn = draw_cards(state, action.seat, owed, reason="penalty")
        table.pending_penalty = 0
        _log(state, {"type": "PENALTY_ABSORBED", "player": action.seat, "owed": owed})
    else:
        drawn = draw_cards(state, action.seat, 1, reason="no_play")
    _release_shadow(state)
    _advance_turn(state, action.seat)
    return StepResult(ok=True, events=state.event_log[mark:], drawn=drawn)


def _pass(state: GameState, action: PassAction) -> StepResult:
    table = state.table
    if table.color_choice_pending:
        return _reject("suit_required")
    if not table.pending_skip:
        return _reject("nothing_to_pass")

    mark = len(state.event_log)
    table.pending_skip = False
    _log(state, {"type": "SKIP_CONSUMED", "player": action.seat})
    _release_shadow(state)
    _advance_turn(state, action.seat)
    return StepResult(ok=True, events=state.event_log[mark:])


def _choose_suit(state: GameState, action: ChooseSuitAction) -> StepResult:
    if not state.table.color_choice_pending:
        return _reject("no_color_choice")
    if action.suit not in SUITS:
        return _reject("invalid_suit")
    mark = len(state.event_log)
    state.table.active_color = action.suit
    state.table.color_choice_pending = False
    _log(state, {"type": "COLOR_CHOSEN", "player": action.seat, "suit": action.suit})
    return StepResult(ok=True, events=state.event_log[mark:])


def step(state: GameState, action: Action) -> StepResult:
    """Apply a single seat action to the game state.

    Mutates `state` in place and is deterministic for a given
    (shuffle sequence, action sequence). Rejected actions leave the state
    untouched apart from the action log.
    """
    if state.over:
        return _reject("game_over")
    if action.seat != state.current_seat:
        return _reject("not_your_turn")

    # Log first so replay has a full record of attempted actions
    state.action_log.append(action)

    if isinstance(action, PlayAction):
        return _play(state, action)
    if isinstance(action, DrawAction):
        return _draw(state, action)
    if isinstance(action, PassAction):
        return _pass(state, action)
    if isinstance(action, ChooseSuitAction):
        return _choose_suit(state, action)
    return StepResult(ok=False, events=[], error="Unknown action.")


def _apply_start_card(state: GameState) -> None:
    table = state.table
    first = state.current_seat
    rank = table.active_card.rank
    if rank == "A":
        table.color_choice_pending = True
        _log(state, {"type": "OPENING_COLOR_CHOICE", "player": first})
    elif rank == "2":
        table.pending_penalty = 2
        _log(state, {"type": "PENALTY_INCREASED", "player": None, "total": 2})
        draw_cards(state, first, table.pending_penalty, reason="penalty")
        table.pending_penalty = 0
        _log(state, {"type": "TURN_SKIPPED", "player": first})
        _advance_turn(state, first)
    elif rank == "Q":
        draw_cards(state, first, 1, reason="queen_penalty")
    elif rank == "J":
        _log(state, {"type": "TURN_SKIPPED", "player": first})
        _advance_turn(state, first)


def new_game(
    num_players: int,
    hand_size: int,
    seed: int | None = None,
    shuffler: Shuffler | None = None,
    first_seat: int = 0,
) -> GameState:
    cfg = MatchConfig(num_players=num_players, hand_size=hand_size, first_seat=first_seat)
    cfg.validate()

    if shuffler is None:
        if seed is None:
            seed = random.randrange(1, 2**31 - 1)
        shuffler = RandomShuffler.seeded(seed)

    order = seating_order(cfg.num_players)
    piles = PileManager(shuffler=shuffler)
    dealt = piles.deal(cfg.num_players, cfg.hand_size, order)

    players = [PlayerState(seat=i, hand=list(dealt.hands[i])) for i in range(cfg.num_players)]
    table = TableState(active_card=dealt.start_card, active_color=dealt.start_card.suit)
    state = GameState(
        config=cfg,
        seed=seed,
        piles=piles,
        table=table,
        players=players,
        order=order,
        current_seat=cfg.first_seat,
    )
    _log(
        state,
        {
            "type": "GAME_STARTED",
            "players": cfg.num_players,
            "hand_size": cfg.hand_size,
            "start_card": dealt.start_card.id,
        },
    )
    _apply_start_card(state)
    return state


def replay(
    num_players: int,
    hand_size: int,
    seed: int,
    actions: Iterable[Action],
    first_seat: int = 0,
) -> GameState:
    state = new_game(num_players, hand_size, seed=seed, first_seat=first_seat)
    for a in actions:
        step(state, a)
        if state.over:
            break
    return state


def get_rankings(state: GameState) -> list[int]:
    return list(state.rankings)


def is_game_over(state: GameState) -> bool:
    return state.over
