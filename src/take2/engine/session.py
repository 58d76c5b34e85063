from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Protocol, Sequence

from .actions import Action, ChooseSuitAction, DrawAction, PassAction, PlayAction
from .ai import AISpec, PlayHistory, ai_take_turn, record_draw, record_play
from .match import Event, GameState, StepResult, new_game, step
from .piles import Shuffler
from .rules import legal_singles
from .types import Card, RejectReason, Suit


@dataclass(frozen=True)
class SeatResult:
    seat: int
    rank: int | None
    is_ai: bool
    moves_played: int

    def to_dict(self) -> dict[str, object]:
        return {"seat": self.seat, "rank": self.rank, "is_ai": self.is_ai, "moves_played": self.moves_played}


@dataclass(frozen=True)
class MatchReport:
    seat_results: tuple[SeatResult, ...]
    start_timestamp: datetime
    end_timestamp: datetime
    hand_size: int
    num_players: int

    @property
    def rankings(self) -> list[int]:
        ranked = [r for r in self.seat_results if r.rank is not None]
        return [r.seat for r in sorted(ranked, key=lambda r: r.rank or 0)]

    @property
    def duration_ms(self) -> int:
        return int((self.end_timestamp - self.start_timestamp).total_seconds() * 1000)

    def to_dict(self) -> dict[str, object]:
        return {
            "seat_results": [r.to_dict() for r in self.seat_results],
            "start_timestamp": self.start_timestamp.isoformat(),
            "end_timestamp": self.end_timestamp.isoformat(),
            "hand_size": self.hand_size,
            "num_players": self.num_players,
        }


class MatchReporter(Protocol):
    def report(self, report: MatchReport) -> None: ...


class NotificationSink(Protocol):
    def notify(self, message: str) -> None: ...


@dataclass(frozen=True)
class MoveResult:
    accepted: bool
    reason: RejectReason | None = None
    message: str | None = None


def describe_event(event: Event) -> str | None:
    """Human-readable status line for an engine event, or None if not worth showing."""
    t = event.get("type")
    p = event.get("player")
    if t == "PENALTY_INCREASED":
        return f"Penalty increased to {event['total']}"
    if t == "PENALTY_ABSORBED":
        return f"Seat {p} took the {event['owed']}-card penalty"
    if t == "DECK_RECYCLED":
        return "Discard pile reshuffled into the deck"
    if t == "STOCK_EXHAUSTED":
        return f"Deck exhausted: seat {p} drew {event['received']} of {event['requested']}"
    if t == "SKIP_PENDING":
        return "Next player is skipped"
    if t in ("SKIP_CONSUMED", "TURN_SKIPPED"):
        return f"Seat {p} is skipped"
    if t == "COLOR_CHOSEN":
        return f"Active color is now {event['suit']}"
    if t == "OPENING_COLOR_CHOICE":
        return f"Seat {p} chooses the opening color"
    if t == "QUEEN_PAIR":
        return "Queen pair! The next player may match either card"
    if t == "CARDS_DRAWN" and event.get("reason") == "queen_penalty":
        return f"Seat {p} draws a Queen penalty card"
    if t == "POWER_CARD_FINISH":
        return f"Power cards can't finish the game: seat {p} draws a card"
    if t == "PLAYER_FINISHED":
        return f"Seat {p} finished in place {event['rank']}"
    if t == "GAME_ENDED":
        return "Game over"
    return None


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class GameSession:
    """Host-facing facade over one match.

    Routes every move through the engine, keeps the human play history for
    the computer seats, forwards status lines to the notification sink and
    hands the finished match to the reporter exactly once.
    """

    def __init__(
        self,
        state: GameState,
        ai_seats: Iterable[int] | None = None,
        reporter: MatchReporter | None = None,
        notifier: NotificationSink | None = None,
        spec: AISpec | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.state = state
        if ai_seats is None:
            ai_seats = range(1, state.num_players)
        self.ai_seats = frozenset(ai_seats)
        humans = [s for s in range(state.num_players) if s not in self.ai_seats]
        self.human_seat: int | None = humans[0] if humans else None
        self.reporter = reporter
        self.notifier = notifier
        self.spec = spec or AISpec()
        self.history = PlayHistory()
        self._clock = clock
        self.started_at = clock()
        self.ended_at: datetime | None = None
        self._reported = False
        self._busy = False
        self._publish(state.event_log)

    @classmethod
    def new_game(
        cls,
        num_players: int,
        hand_size: int,
        seed: int | None = None,
        *,
        shuffler: Shuffler | None = None,
        ai_seats: Iterable[int] | None = None,
        reporter: MatchReporter | None = None,
        notifier: NotificationSink | None = None,
        spec: AISpec | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> "GameSession":
        state = new_game(num_players, hand_size, seed=seed, shuffler=shuffler)
        return cls(state, ai_seats=ai_seats, reporter=reporter, notifier=notifier, spec=spec, clock=clock)

    # -------- Queries --------
    @property
    def current_seat(self) -> int:
        return self.state.current_seat

    def is_ai(self, seat: int) -> bool:
        return seat in self.ai_seats

    def is_game_over(self) -> bool:
        return self.state.over

    def get_rankings(self) -> list[int]:
        return list(self.state.rankings)

    def playable_cards(self, seat: int) -> list[Card]:
        return legal_singles(self.state.hand(seat), self.state.table)

    # -------- Moves --------
    def submit_move(self, seat: int, cards: Sequence[Card], chosen_suit: Suit | None = None) -> MoveResult:
        result = self._run(PlayAction(seat=seat, cards=tuple(cards), chosen_suit=chosen_suit))
        return MoveResult(accepted=result.ok, reason=result.reason, message=result.error)

    def choose_suit(self, seat: int, suit: Suit) -> MoveResult:
        result = self._run(ChooseSuitAction(seat=seat, suit=suit))
        return MoveResult(accepted=result.ok, reason=result.reason, message=result.error)

    def pass_turn(self, seat: int) -> MoveResult:
        result = self._run(PassAction(seat=seat))
        return MoveResult(accepted=result.ok, reason=result.reason, message=result.error)

    def request_draw(self, seat: int) -> list[Card]:
        """Voluntary, penalty or no-legal-move draw. Returns the cards received."""
        return self._run(DrawAction(seat=seat)).drawn

    def advance_ai_turn(self, seat: int) -> Action | None:
        """Let a computer seat take its turn. Returns the move taken, if any."""
        if not self.is_ai(seat):
            raise ValueError(f"Seat {seat} is not computer-controlled.")
        if self.state.over or self.state.current_seat != seat:
            return None
        self._enter()
        mark = len(self.state.event_log)
        try:
            taken = ai_take_turn(self.state, seat, self.history, self.spec, self.human_seat)
        finally:
            self._busy = False
        self._publish(self.state.event_log[mark:])
        self._maybe_report()
        return taken[-1] if taken else None

    def run_ai_until_human(self, max_turns: int = 5000) -> list[Action]:
        """Play computer seats until a human seat is up or the match ends.

        `max_turns` bounds all-computer tables, which can deadlock once every
        card sits in a hand and nobody can follow the active color.
        """
        taken: list[Action] = []
        while not self.state.over and self.is_ai(self.state.current_seat) and len(taken) < max_turns:
            action = self.advance_ai_turn(self.state.current_seat)
            if action is None:
                break
            taken.append(action)
        return taken

    # -------- Internals --------
    def _enter(self) -> None:
        if self._busy:
            raise RuntimeError("A move is already being resolved.")
        self._busy = True

    def _run(self, action: Action) -> StepResult:
        self._enter()
        try:
            result = step(self.state, action)
        finally:
            self._busy = False
        if result.ok:
            self._observe(action)
            self._publish(result.events)
        elif result.error and self.notifier is not None:
            self.notifier.notify(result.error)
        self._maybe_report()
        return result

    def _observe(self, action: Action) -> None:
        if action.seat != self.human_seat:
            return
        if isinstance(action, PlayAction):
            self.history = record_play(self.history, action.cards)
        elif isinstance(action, DrawAction):
            self.history = record_draw(self.history)

    def _publish(self, events: Iterable[Event]) -> None:
        if self.notifier is None:
            return
        for ev in events:
            msg = describe_event(ev)
            if msg is not None:
                self.notifier.notify(msg)

    def _maybe_report(self) -> None:
        if not self.state.over or self._reported:
            return
        self._reported = True
        self.ended_at = self._clock()
        if self.reporter is None:
            return
        results = tuple(
            SeatResult(
                seat=p.seat,
                rank=p.finish_rank,
                is_ai=self.is_ai(p.seat),
                moves_played=p.moves_played,
            )
            for p in self.state.players
        )
        self.reporter.report(
            MatchReport(
                seat_results=results,
                start_timestamp=self.started_at,
                end_timestamp=self.ended_at,
                hand_size=self.state.config.hand_size,
                num_players=self.state.num_players,
            )
        )
