"""Sparse order values for boards, columns and cards.

Siblings carry a float rank rather than an index, so an entity can be placed
between two others without rewriting the rest of the list. Appends leave a
``GAP`` after the largest rank; inserts take the midpoint of the neighbours.

Repeated midpoint inserts between the same two neighbours halve the gap each
time and reach float precision after roughly fifty inserts. ``needs_renumber``
and ``has_room`` detect that point; ``renumber`` produces fresh evenly spaced
ranks for the whole sibling list.
"""

from __future__ import annotations

from collections.abc import Iterable

GAP = 100.0
PRECISION_THRESHOLD = 1e-9


def append_order(existing_orders: Iterable[float]) -> float:
    """Return a rank after every existing one, or ``GAP`` for an empty list."""
    orders = list(existing_orders)
    if not orders:
        return GAP
    return max(orders) + GAP


def insert_between(prev_order: float | None, next_order: float | None) -> float:
    """Return a rank strictly between two neighbours.

    A missing neighbour means the entity goes at that end of the list.
    """
    if prev_order is None and next_order is None:
        return GAP
    if prev_order is None:
        return next_order - GAP
    if next_order is None:
        return prev_order + GAP
    if prev_order >= next_order:
        raise ValueError(
            f"Previous order {prev_order} must be below next order {next_order}"
        )
    return (prev_order + next_order) / 2


def has_room(prev_order: float | None, next_order: float | None) -> bool:
    """True if ``insert_between`` can still produce a usable distinct rank."""
    if prev_order is None or next_order is None:
        return True
    if next_order - prev_order < PRECISION_THRESHOLD:
        return False
    middle = (prev_order + next_order) / 2
    return prev_order < middle < next_order


def needs_renumber(orders: Iterable[float]) -> bool:
    """True if any two adjacent ranks are closer than the precision threshold."""
    ordered = sorted(orders)
    return any(b - a < PRECISION_THRESHOLD for a, b in zip(ordered, ordered[1:]))


def renumber(count: int) -> list[float]:
    """Evenly spaced ranks for ``count`` siblings: GAP, 2*GAP, ..."""
    return [(i + 1) * GAP for i in range(count)]
