"""The (n, d) -> best known strategy table, its replacement policy and seeds."""

from __future__ import annotations

from typing import Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

from strategy import (
    Strategy,
    empty_strategy,
    one_marked_strategy,
    worst_case_strategy,
)

TRIANGLE_MAX_N = 30


class GuaranteedBestViolation(AssertionError):
    """A strategy claimed to beat an entry that is proven optimal.

    This can only happen if a seed rule or a derivation rule is unsound, or if
    the solution file lies, so it is never caught inside the engine.
    """


class ND(NamedTuple):
    n: int
    d: int

    def sort_key(self) -> Tuple[int, int]:
        return (self.d, self.n)


class SolutionTable:
    """Best known strategy per (n, d), iterated in (d, n) order.

    Entries are created by seeding or `insert_if_absent` and afterwards only
    replaced through `overwrite_if_better`. Strategies are shared between
    entries and never modified.
    """

    def __init__(self) -> None:
        self._entries: Dict[ND, Strategy] = {}
        self._improved: Set[ND] = set()

    def __contains__(self, key: Tuple[int, int]) -> bool:
        return ND(*key) in self._entries

    def __getitem__(self, key: Tuple[int, int]) -> Strategy:
        return self._entries[ND(*key)]

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, n: int, d: int) -> Optional[Strategy]:
        return self._entries.get(ND(n, d))

    def items(self) -> Iterator[Tuple[ND, Strategy]]:
        for key in sorted(self._entries, key=ND.sort_key):
            yield key, self._entries[key]

    def insert_if_absent(self, n: int, d: int, strategy: Strategy) -> bool:
        if not (0 <= d <= n):
            raise ValueError(f"invalid key n={n} d={d}")
        key = ND(n, d)
        if key in self._entries:
            return False
        self._entries[key] = strategy
        return True

    def overwrite_if_better(self, n: int, d: int, candidate: Strategy) -> bool:
        """Install `candidate` at (n, d) if it strictly beats the current entry.

        Keys that are not in the table are left alone. Provenance is kept: if
        the replaced entry came from the solution file, the installed strategy
        is flagged to be written back in its place.
        """
        if not (0 <= d <= n):
            raise ValueError(f"invalid key n={n} d={d}")
        key = ND(n, d)
        current = self._entries.get(key)
        if current is None or not candidate.is_better_than(current):
            return False
        if current.guaranteed_best:
            raise GuaranteedBestViolation(
                f"found something better than the guaranteed best: replacing "
                f"t({n},{d})<={current.t} with t({n},{d})<={candidate.t}"
            )
        if current.belongs_in_file and not candidate.belongs_in_file:
            candidate = candidate.with_flags(belongs_in_file=True)
        self._entries[key] = candidate
        self._improved.add(key)
        return True

    def was_improved(self, n: int, d: int) -> bool:
        """True if (n, d) has been replaced since it was first inserted."""
        return ND(n, d) in self._improved

    def mark_for_file(self, n: int, d: int) -> None:
        key = ND(n, d)
        current = self._entries[key]
        if not current.belongs_in_file:
            self._entries[key] = current.with_flags(belongs_in_file=True)


def closed_form_strategy(n: int, d: int) -> Strategy:
    if d == 0 or d == n:
        return empty_strategy()
    if d == 1:
        return one_marked_strategy(n)
    if d >= n // 2:
        return worst_case_strategy(n, guaranteed_best=True)
    return worst_case_strategy(n, guaranteed_best=False)


def seed_closed_forms(table: SolutionTable, max_n: int) -> None:
    """Fill every 0 <= d <= n <= max_n that is still empty with its closed form."""
    for n in range(max_n + 1):
        for d in range(n + 1):
            table.insert_if_absent(n, d, closed_form_strategy(n, d))


def summary_triangle(table: SolutionTable, max_n: int = TRIANGLE_MAX_N) -> str:
    """Triangle of known t(n, d) values for a human reader.

    A row stops after the first value equal to n-1, since every larger d is
    n-1 as well.
    """
    lines: List[str] = [
        "    d=       1  2  3  4  5  6  ...",
        "          .",
        "    n=1   .  0",
        "    n=2   .  1  0",
        "    n=3   .  2  2",
    ]
    for n in range(4, max_n + 1):
        line = f"    n={n:<2}   "
        for d in range(1, n):
            strategy = table.get(n, d)
            if strategy is None:
                line += f"{'?':>3}"
                continue
            line += f" {strategy.t:>2}"
            if strategy.t == n - 1:
                break
        lines.append(line)
    return "\n".join(lines) + "\n"
