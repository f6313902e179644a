"""Strategy values for the wolf-finding (separating matrix) problem.

A strategy for the pair (n, d) is an ordered list of t tests. Each test is a
string of n characters; '1' means the item takes part in the test, '.' means
it does not. Rows are never stored for derived strategies: each strategy
carries a small row producer that rebuilds its rows from the strategy it was
derived from, so a propagated table of thousands of entries stays cheap.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Protocol, Sequence, Tuple

PACKED_WRAP = 75


class InconsistentStrategyError(RuntimeError):
    """Raised when a derivation is applied to rows that cannot support it."""


class RowProducer(Protocol):
    def rows(self) -> List[str]:
        """Return a fresh list of test rows."""


@dataclass(frozen=True)
class ExplicitRows:
    stored: Tuple[str, ...]

    def rows(self) -> List[str]:
        return list(self.stored)


@dataclass(frozen=True)
class WorstCaseRows:
    """n-1 tests, test i holds only item i."""

    n: int

    def rows(self) -> List[str]:
        out: List[str] = []
        for i in range(self.n - 1):
            out.append("." * i + "1" + "." * (self.n - i - 1))
        return out


@dataclass(frozen=True)
class AppendedColumnRows:
    """Source rows plus `count` new items, each tested alone by one extra row.

    `n` is the width of the source rows.
    """

    source: "Strategy"
    n: int
    count: int = 1

    def rows(self) -> List[str]:
        pad = "." * self.count
        out = [row + pad for row in self.source.tests()]
        for j in range(self.count):
            out.append("." * (self.n + j) + "1" + "." * (self.count - 1 - j))
        return out


@dataclass(frozen=True)
class DeletedColumnRows:
    """Source rows restricted to `kept_rows`, with `columns` removed in order."""

    source: "Strategy"
    columns: Tuple[int, ...]
    kept_rows: Tuple[int, ...]

    def rows(self) -> List[str]:
        src = self.source.tests()
        out: List[str] = []
        for r in self.kept_rows:
            row = src[r]
            for c in self.columns:
                row = row[:c] + row[c + 1 :]
            out.append(row)
        return out


@dataclass(frozen=True)
class Strategy:
    t: int
    guaranteed_best: bool
    belongs_in_file: bool
    producer: RowProducer

    @classmethod
    def from_rows(
        cls, rows: Sequence[str], guaranteed_best: bool, belongs_in_file: bool
    ) -> "Strategy":
        return cls(
            t=len(rows),
            guaranteed_best=guaranteed_best,
            belongs_in_file=belongs_in_file,
            producer=ExplicitRows(tuple(rows)),
        )

    def tests(self) -> List[str]:
        return self.producer.rows()

    def is_better_than(self, other: "Strategy") -> bool:
        """Fewer tests wins; at equal t a proven bound beats an unproven one."""
        if self.t != other.t:
            return self.t < other.t
        if self.guaranteed_best != other.guaranteed_best:
            return self.guaranteed_best
        return False

    def with_flags(self, **changes: bool) -> "Strategy":
        return replace(self, **changes)

    def header(self, n: int, d: int) -> str:
        return f"N={n} D={d} T={self.t} guaranteed_best={int(self.guaranteed_best)}"

    def to_text(self, n: int, d: int) -> str:
        lines = [self.header(n, d)]
        lines.extend(self.tests())
        return "\n".join(lines) + "\n"

    def to_packed_text(self, n: int, d: int) -> str:
        """Column-major hex format (the "emathgroup" layout).

        Column c becomes one hex token whose bit r is set iff row r tests item
        c. Tokens are wrapped so no line exceeds PACKED_WRAP characters.
        """
        rows = self.tests()
        parts = [self.header(n, d) + "\n", "emathgroup"]
        width = len("emathgroup")
        for c in range(n):
            bits = 0
            for r in range(self.t - 1, -1, -1):
                bits = (bits << 1) | (rows[r][c] == "1")
            token = format(bits, "x")
            if width + 1 + len(token) > PACKED_WRAP:
                parts.append("\n" + token)
                width = len(token)
            else:
                parts.append(" " + token)
                width += 1 + len(token)
        parts.append("\n")
        return "".join(parts)


def empty_strategy() -> Strategy:
    return Strategy.from_rows([], guaranteed_best=True, belongs_in_file=False)


def one_marked_strategy(n: int) -> Strategy:
    """Binary indexing: test r holds item i iff bit r of i is set."""
    rows: List[str] = []
    bit = 1
    while bit < n:
        rows.append("".join("1" if i & bit else "." for i in range(n)))
        bit <<= 1
    return Strategy.from_rows(rows, guaranteed_best=True, belongs_in_file=False)


def worst_case_strategy(n: int, guaranteed_best: bool) -> Strategy:
    return Strategy(
        t=n - 1,
        guaranteed_best=guaranteed_best,
        belongs_in_file=False,
        producer=WorstCaseRows(n),
    )


def add_individually_tested_item(n: int, source: Strategy) -> Strategy:
    """Strategy for n+1 items: keep `source` and test the new item on its own."""
    producer = source.producer
    if isinstance(producer, AppendedColumnRows):
        # Extend the existing run of appended items instead of nesting.
        appended = AppendedColumnRows(producer.source, producer.n, producer.count + 1)
    else:
        appended = AppendedColumnRows(source, n)
    return Strategy(
        t=source.t + 1,
        guaranteed_best=False,
        belongs_in_file=False,
        producer=appended,
    )


def relaxed_strategy(source: Strategy) -> Strategy:
    """Same rows, offered for a smaller d; minimality does not carry over."""
    return Strategy(
        t=source.t,
        guaranteed_best=False,
        belongs_in_file=False,
        producer=source.producer,
    )


def most_tested_column(rows: Sequence[str]) -> Tuple[int, int]:
    """Return (column, hit count) for the column used by the most rows.

    Ties go to the lowest column index.
    """
    n = len(rows[0])
    counts = [0] * n
    for row in rows:
        for i, ch in enumerate(row):
            if ch == "1":
                counts[i] += 1
    best = max(range(n), key=lambda i: counts[i])
    return best, counts[best]


def delete_most_tested_item(source: Strategy, as_marked: bool) -> Strategy:
    """Drop the most tested item from `source`.

    With `as_marked` the dropped item is treated as one of the marked items:
    every row containing it is removed as well, giving a strategy for
    (n-1, d-1). Otherwise the item is treated as innocent and all rows stay,
    giving a strategy for (n-1, d).
    """
    rows = source.tests()
    if not rows:
        raise InconsistentStrategyError("cannot delete a column from an empty strategy")
    column, count = most_tested_column(rows)
    if count < 2:
        raise InconsistentStrategyError(
            f"most tested item {column} appears in only {count} test(s)"
        )
    if as_marked:
        kept = tuple(r for r, row in enumerate(rows) if row[column] != "1")
    else:
        kept = tuple(range(len(rows)))
    producer = source.producer
    if isinstance(producer, DeletedColumnRows):
        deleted = DeletedColumnRows(
            producer.source,
            producer.columns + (column,),
            tuple(producer.kept_rows[r] for r in kept),
        )
    else:
        deleted = DeletedColumnRows(source, (column,), kept)
    return Strategy(
        t=len(kept),
        guaranteed_best=False,
        belongs_in_file=False,
        producer=deleted,
    )
