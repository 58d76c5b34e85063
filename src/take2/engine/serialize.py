from __future__ import annotations


from .actions import Action, ChooseSuitAction, DrawAction, PassAction, PlayAction
from .match import GameState, PlayerState
from .rules import TableState
from .types import Card


def _card_id(c: Card | None) -> str | None:
    if c is None:
        return None
    return c.id


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, PlayAction):
        return {
            "type": "play",
            "seat": a.seat,
            "cards": [c.id for c in a.cards],
            "chosen_suit": a.chosen_suit,
        }
    if isinstance(a, DrawAction):
        return {"type": "draw", "seat": a.seat}
    if isinstance(a, PassAction):
        return {"type": "pass", "seat": a.seat}
    if isinstance(a, ChooseSuitAction):
        return {"type": "choose_suit", "seat": a.seat, "suit": a.suit}
    # should be unreachable
    return {"type": "unknown"}


def _table_to_dict(t: TableState) -> dict[str, object]:
    return {
        "active_card": _card_id(t.active_card),
        "active_color": t.active_color,
        "pending_penalty": t.pending_penalty,
        "pending_skip": t.pending_skip,
        "queen_pair_shadow": _card_id(t.queen_pair_shadow),
        "color_choice_pending": t.color_choice_pending,
    }


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    return {
        "seat": p.seat,
        "hand": [c.id for c in p.hand],
        "finished": p.finished,
        "finish_rank": p.finish_rank,
        "moves_played": p.moves_played,
    }


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current game state."""
    return {
        "seed": state.seed,
        "order": list(state.order),
        "current_seat": state.current_seat,
        "rankings": list(state.rankings),
        "over": state.over,
        "table": _table_to_dict(state.table),
        "draw_pile": [c.id for c in state.piles.draw_pile],
        "discard_pile": [c.id for c in state.piles.discard_pile],
        "players": [_player_to_dict(p) for p in state.players],
        "action_log": [action_to_dict(a) for a in state.action_log],
    }
