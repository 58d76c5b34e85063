from __future__ import annotations

from typing import Sequence

from take2.engine.actions import ChooseSuitAction, DrawAction, PassAction, PlayAction
from take2.engine.ai import (
    AISpec,
    PlayHistory,
    ai_take_turn,
    choose_action,
    choose_suit,
    record_draw,
    record_play,
)
from take2.engine.match import GameState, new_game
from take2.engine.rules import TableState
from take2.engine.types import Card


def _card(cid: str) -> Card:
    return Card.of(cid[:-1], cid[-1])  # type: ignore[arg-type]


def _cards(*cids: str) -> tuple[Card, ...]:
    return tuple(_card(c) for c in cids)


def _rig(
    hands: Sequence[Sequence[str]],
    active: str,
    *,
    current: int = 0,
    penalty: int = 0,
    skip: bool = False,
    color_choice: bool = False,
) -> GameState:
    """A table where only hands and table state matter to the strategist."""
    state = new_game(len(hands), 1, seed=1)
    for seat, ids in enumerate(hands):
        state.players[seat].hand = [_card(c) for c in ids]
    top = _card(active)
    state.table = TableState(
        active_card=top,
        active_color=top.suit,
        pending_penalty=penalty,
        pending_skip=skip,
        color_choice_pending=color_choice,
    )
    state.current_seat = current
    return state


_BIG = ["3♦", "4♦", "5♦", "6♦", "7♦", "8♦"]


def test_history_accumulators_are_pure() -> None:
    h0 = PlayHistory()
    h1 = record_play(h0, _cards("5♥"))
    h2 = record_draw(record_draw(h1))

    assert h0 == PlayHistory()
    assert h1.plays == 1 and h1.suits_played == ("♥",)
    assert h2.draws == 2 and h2.draw_streak == 2
    assert h2.draw_ratio == 2.0
    assert record_play(h2, _cards("6♥")).draw_streak == 0


def test_struggling_and_favorite_suit() -> None:
    spec = AISpec()
    h = PlayHistory()
    assert not h.is_struggling(spec)
    assert h.favorite_suit() is None

    h = record_play(h, _cards("5♥"))
    h = record_play(h, _cards("6♥"))
    h = record_play(h, _cards("7♣"))
    assert h.favorite_suit() == "♥"

    h = record_draw(h)
    assert not h.is_struggling(spec)  # 1 draw / 3 plays
    h = record_draw(h)
    assert h.is_struggling(spec)


def test_choose_suit_prefers_majority_then_history() -> None:
    assert choose_suit(_cards("5♦", "6♦", "7♠"), PlayHistory(), fallback="♣") == "♦"
    assert choose_suit(_cards("5♥", "5♦"), PlayHistory(), fallback="♣") == "♥"
    favors_diamonds = record_play(PlayHistory(), _cards("9♦"))
    assert choose_suit(_cards("5♥", "5♠"), favors_diamonds, fallback="♣") == "♦"
    assert choose_suit((), PlayHistory(), fallback="♣") == "♣"


def test_forced_skip_plays_jack_or_passes() -> None:
    state = _rig([["J♥", "5♥"], _BIG], "J♠", skip=True)
    assert choose_action(state, 0) == PlayAction(seat=0, cards=_cards("J♥"))

    state2 = _rig([["5♥", "6♥"], _BIG], "J♠", skip=True)
    assert choose_action(state2, 0) == PassAction(seat=0)


def test_forced_penalty_stacks_or_draws() -> None:
    state = _rig([["2♥", "5♥"], _BIG], "2♠", penalty=2)
    assert choose_action(state, 0) == PlayAction(seat=0, cards=_cards("2♥"))

    state2 = _rig([["5♥", "6♥"], _BIG], "2♠", penalty=4)
    assert choose_action(state2, 0) == DrawAction(seat=0)


def test_draws_without_a_legal_card() -> None:
    state = _rig([["5♥", "6♥", "7♥", "8♥"], _BIG], "9♠")
    assert choose_action(state, 0, human_seat=None) == DrawAction(seat=0)


def test_endgame_sheds_power_cards_first() -> None:
    state = _rig([["7♠", "2♠"], _BIG], "9♠")
    assert choose_action(state, 0, human_seat=None) == PlayAction(seat=0, cards=_cards("2♠"))


def test_endgame_plays_last_normal_card() -> None:
    state = _rig([["7♠"], _BIG], "9♠")
    assert choose_action(state, 0, human_seat=None) == PlayAction(seat=0, cards=_cards("7♠"))


def test_pressure_on_next_seat_with_few_cards() -> None:
    state = _rig([["5♠", "J♠", "6♠", "7♠"], ["3♦", "4♦"]], "9♠")
    assert choose_action(state, 0, human_seat=None) == PlayAction(seat=0, cards=_cards("J♠"))

    state2 = _rig([["5♠", "2♠", "6♠", "7♠"], ["3♦", "4♦"]], "9♠")
    assert choose_action(state2, 0, human_seat=None) == PlayAction(seat=0, cards=_cards("2♠"))


def test_targets_human_close_to_finishing() -> None:
    hands = [["3♥", "4♥", "5♥"], _BIG, ["5♠", "J♠", "6♠", "7♠"]]
    state = _rig(hands, "9♠", current=2)
    assert state.next_seat(2) == 0
    assert choose_action(state, 2, human_seat=0) == PlayAction(seat=2, cards=_cards("J♠"))


def test_struggling_human_weak_suit_is_preferred() -> None:
    hands = [_BIG, ["5♣", "6♣", "7♣", "9♦", "10♥"], _BIG]
    state = _rig(hands, "9♣", current=1)
    history = record_draw(record_draw(record_play(PlayHistory(), _cards("K♦"))))

    assert choose_action(state, 1, history=history, human_seat=0) == PlayAction(seat=1, cards=_cards("9♦"))
    # without the history the largest suit group wins
    assert choose_action(state, 1, human_seat=0).cards[0].suit == "♣"


def test_queen_pair_is_played_together() -> None:
    state = _rig([["Q♠", "5♠", "6♥", "8♥"], _BIG], "9♠")
    assert choose_action(state, 0, human_seat=None) == PlayAction(seat=0, cards=_cards("Q♠", "5♠"))


def test_ace_played_when_suit_backs_it() -> None:
    state = _rig([["A♠", "5♥", "6♥", "8♦"], _BIG], "9♠")
    action = choose_action(state, 0, human_seat=None)
    assert action == PlayAction(seat=0, cards=_cards("A♠"), chosen_suit="♥")


def test_ace_held_back_without_suit_support() -> None:
    state = _rig([["A♠", "5♠", "6♥", "8♦"], _BIG], "9♠")
    assert choose_action(state, 0, human_seat=None) == PlayAction(seat=0, cards=_cards("5♠"))


def test_power_only_fallback_order() -> None:
    state = _rig([["Q♠", "J♠", "5♥", "6♦"], _BIG], "9♠")
    assert choose_action(state, 0, human_seat=None) == PlayAction(seat=0, cards=_cards("J♠"))


def test_opening_color_choice_then_move() -> None:
    state = _rig([["5♥", "6♥", "7♥", "8♠"], _BIG], "A♣", color_choice=True)
    taken = ai_take_turn(state, 0, human_seat=None)

    assert taken[0] == ChooseSuitAction(seat=0, suit="♥")
    assert isinstance(taken[1], PlayAction)
    assert taken[1].cards[0].suit == "♥"
    assert state.current_seat == 1


def test_ai_only_match_conserves_cards() -> None:
    state = new_game(4, 7, seed=2024)
    for _ in range(3000):
        if state.over:
            break
        ai_take_turn(state, state.current_seat)
        assert state.card_total() == 52
        assert all(not p.hand for p in state.players if p.finished and p.finish_rank != state.num_players)
