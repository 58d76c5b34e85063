from __future__ import annotations

from typing import Collection, Sequence


def seating_order(num_players: int) -> tuple[int, ...]:
    """Counterclockwise turn order.

    Four seats sit around the table so play runs 0 -> 3 -> 1 -> 2; with two
    or three seats the natural order already is counterclockwise.
    """
    if num_players == 4:
        return (0, 3, 1, 2)
    return tuple(range(num_players))


def next_turn(order: Sequence[int], current: int, finished: Collection[int]) -> int | None:
    """Walk `order` from `current` to the next seat that has not finished.

    Returns None when every other seat has finished.
    """
    pos = order.index(current)
    n = len(order)
    for step in range(1, n + 1):
        seat = order[(pos + step) % n]
        if seat == current:
            break
        if seat not in finished:
            return seat
    return None


def active_seats(order: Sequence[int], finished: Collection[int]) -> list[int]:
    return [s for s in order if s not in finished]
