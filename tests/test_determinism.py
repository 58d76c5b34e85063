from __future__ import annotations

from take2.engine.ai import choose_action
from take2.engine.match import new_game, replay, step
from take2.engine.serialize import snapshot


def test_engine_determinism_replay() -> None:
    seed = 424242
    state1 = new_game(3, 6, seed=seed)

    actions = []
    for _ in range(60):
        if state1.over:
            break
        a = choose_action(state1, state1.current_seat)
        actions.append(a)
        step(state1, a)

    snap1 = snapshot(state1)

    state2 = replay(3, 6, seed=seed, actions=actions)
    snap2 = snapshot(state2)

    assert snap1 == snap2


def test_same_seed_same_deal() -> None:
    a = snapshot(new_game(4, 7, seed=5))
    b = snapshot(new_game(4, 7, seed=5))
    assert a == b
    assert a["table"] is not None
