"""Exact verification of wolf-finding strategies.

A strategy for (n, d) is valid iff every set of exactly d marked items yields
a different outcome pattern, where a test comes back positive when it holds
at least one marked item. Each column is turned into a bitmask over the rows
so an arrangement's outcome is the OR of its columns' masks.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple


@dataclass
class Collision:
    """Two arrangements of marked items that the tests cannot tell apart."""

    first: Tuple[int, ...]
    second: Tuple[int, ...]
    n: int

    def patterns(self) -> Tuple[str, str]:
        return arrangement_pattern(self.n, self.first), arrangement_pattern(
            self.n, self.second
        )


@dataclass
class VerifyResult:
    success: bool
    w1: str = ""
    w2: str = ""


def arrangement_pattern(n: int, marked: Sequence[int]) -> str:
    chosen = set(marked)
    return "".join("1" if i in chosen else "." for i in range(n))


def check_rows(n: int, rows: Sequence[str]) -> None:
    for r, row in enumerate(rows):
        if len(row) != n:
            raise ValueError(f"row {r} has {len(row)} characters, expected {n}")
        if set(row) - {".", "1"}:
            raise ValueError(f"row {r} contains characters other than '.' and '1'")


def column_masks(n: int, rows: Sequence[str]) -> List[int]:
    """Bit r of masks[c] is set iff row r tests item c."""
    masks = [0] * n
    for r, row in enumerate(rows):
        for c, ch in enumerate(row):
            if ch == "1":
                masks[c] |= 1 << r
    return masks


def find_collision(n: int, d: int, rows: Sequence[str]) -> Optional[Collision]:
    """Return two d-subsets with equal outcomes, or None if the rows separate.

    Exhaustive over all C(n, d) arrangements; the first arrangement seen for
    each outcome is kept and any later match is a collision.
    """
    if not (0 <= d <= n):
        raise ValueError(f"invalid pair n={n} d={d}")
    check_rows(n, rows)
    masks = column_masks(n, rows)
    seen: Dict[int, Tuple[int, ...]] = {}
    for combo in itertools.combinations(range(n), d):
        outcome = 0
        for c in combo:
            outcome |= masks[c]
        if outcome in seen:
            return Collision(first=seen[outcome], second=combo, n=n)
        seen[outcome] = combo
    return None


def verify_strategy(
    n: int,
    d: int,
    rows: Sequence[str],
    finder: Optional[Callable[[int, int, Sequence[str]], Optional[Collision]]] = None,
) -> VerifyResult:
    """Check `rows` for (n, d); on failure report two colliding arrangements."""
    collision = (finder or find_collision)(n, d, rows)
    if collision is None:
        return VerifyResult(success=True)
    w1, w2 = collision.patterns()
    return VerifyResult(success=False, w1=w1, w2=w2)
