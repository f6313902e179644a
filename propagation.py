"""Derivation rules and the propagation wave over a SolutionTable.

Every installed entry (n, d, S) implies candidates for neighbouring pairs:

- innocent item removed:  (n-1, d)   same rows, most tested column deleted
- marked item removed:    (n-1, d-1) rows hitting that column dropped as well
- fewer marked items:     (n, d-1)   same rows
- one more item:          (n+1, d)   extra row testing the new item alone
- worst-case diagonal:    (n+2, d+1) when S is the trivial n-1 design

Column deletion is trusted, not proven here; use the verifier to spot-check.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from strategy import (
    Strategy,
    add_individually_tested_item,
    delete_most_tested_item,
    relaxed_strategy,
    worst_case_strategy,
)
from table import ND, SolutionTable, seed_closed_forms

DEFAULT_WINDOW_EXTRA = 100


class InconsistentTableError(RuntimeError):
    """Raised when known solutions cannot be installed as the data promises."""


@dataclass
class Candidate:
    rule: str
    n: int
    d: int
    strategy: Strategy


@dataclass
class PropagationStats:
    installs: Counter = field(default_factory=Counter)
    rejected: int = 0
    superseded: int = 0

    @property
    def total_installs(self) -> int:
        return sum(self.installs.values())


def derive_candidates(n: int, d: int, strategy: Strategy) -> List[Candidate]:
    """All candidates implied by (n, d, strategy), in rule order."""
    t = strategy.t
    out: List[Candidate] = []
    improves_trivial = t < n - 1
    if 2 <= d < n and improves_trivial:
        out.append(
            Candidate("drop-innocent", n - 1, d, delete_most_tested_item(strategy, False))
        )
        if d - 1 >= 2:
            out.append(
                Candidate(
                    "drop-marked", n - 1, d - 1, delete_most_tested_item(strategy, True)
                )
            )
    if 2 < d < n - 1 and improves_trivial:
        out.append(Candidate("relax-d", n, d - 1, relaxed_strategy(strategy)))
    if 2 <= d < n and improves_trivial:
        out.append(
            Candidate("add-item", n + 1, d, add_individually_tested_item(n, strategy))
        )
    if t == n - 1:
        out.append(
            Candidate(
                "worst-case-diagonal",
                n + 2,
                d + 1,
                worst_case_strategy(n + 2, strategy.guaranteed_best),
            )
        )
    return out


def propagate(
    table: SolutionTable, n: int, d: int, stats: Optional[PropagationStats] = None
) -> PropagationStats:
    """Run the propagation wave that starts at the current entry for (n, d).

    Worklist version of a depth-first cascade: each successful install is
    pushed and processed in turn. An item whose table entry was replaced
    after it was pushed is skipped; the replacement has its own item.
    """
    if stats is None:
        stats = PropagationStats()
    pending: List[Tuple[ND, Strategy]] = [(ND(n, d), table[n, d])]
    while pending:
        key, strategy = pending.pop()
        if table[key] is not strategy:
            stats.superseded += 1
            continue
        installed: List[Tuple[ND, Strategy]] = []
        for cand in derive_candidates(key.n, key.d, strategy):
            if table.overwrite_if_better(cand.n, cand.d, cand.strategy):
                stats.installs[cand.rule] += 1
                installed.append((ND(cand.n, cand.d), table[cand.n, cand.d]))
            else:
                stats.rejected += 1
        # Reversed so the first rule's install is popped first.
        pending.extend(reversed(installed))
    return stats


def preserve_from_file(table: SolutionTable, n: int, d: int, strategy: Strategy) -> bool:
    """Install a known strategy, creating an unproven placeholder if needed.

    Returns True if `strategy` was installed. If an earlier propagation wave
    already improved (n, d) to the same number of tests, that entry takes
    over the file slot and False is returned. Any other failure to install
    means the solution data contradicts the table.
    """
    table.insert_if_absent(n, d, worst_case_strategy(n, guaranteed_best=False))
    if table.overwrite_if_better(n, d, strategy):
        return True
    current = table[n, d]
    if table.was_improved(n, d) and current.t == strategy.t:
        table.mark_for_file(n, d)
        return False
    raise InconsistentTableError(
        f"known solution t({n},{d})<={strategy.t} does not improve on "
        f"t({n},{d})<={current.t} (guaranteed_best={int(current.guaranteed_best)})"
    )


def build_table(
    known: Iterable[Tuple[ND, Strategy]], window: int
) -> Tuple[SolutionTable, PropagationStats]:
    """Seed closed forms up to `window`, then install and propagate `known`."""
    table = SolutionTable()
    seed_closed_forms(table, window)
    stats = PropagationStats()
    for key, strategy in sorted(known, key=lambda kv: kv[0].sort_key()):
        if preserve_from_file(table, key.n, key.d, strategy):
            propagate(table, key.n, key.d, stats)
    return table, stats


def format_propagation_summary(stats: PropagationStats, table: SolutionTable) -> str:
    """One-line summary of a propagation run."""
    parts = [
        f"[propagate] entries={len(table)}",
        f"installs={stats.total_installs}",
        f"by_rule={dict(sorted(stats.installs.items()))}",
        f"rejected={stats.rejected}",
        f"superseded={stats.superseded}",
    ]
    return " | ".join(parts)
