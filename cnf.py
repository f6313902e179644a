"""CNF encoding of "two arrangements collide" for SAT-based verification.

The formula is satisfiable iff there are two distinct sets A, B of exactly d
items that produce the same outcome on every test. Variables:

  a_i = i            item i is in A         (1..n)
  b_i = n + i        item i is in B         (n+1..2n)
  o_r = 2n + 1 + r   test r is positive     (shared by A and B)
  e_i                item i is in A but not in B
  then the cardinality counter auxiliaries.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple


def sequential_counter_at_most(
    lits: List[int], k: int, start_var: int
) -> Tuple[List[List[int]], int]:
    """Sinz sequential counter encoding for sum(lits) <= k.

    Carsten Sinz, "Towards an Optimal CNF Encoding of Boolean Cardinality
    Constraints", CP 2005. Literals may be negative, which turns the same
    encoding into an at-least constraint on the complements.

    Returns (clauses, next_free_var).
    """
    n = len(lits)
    if k >= n:
        return [], start_var
    if k < 0:
        return [[]], start_var
    if k == 0:
        return [[-v] for v in lits], start_var

    # s[i][j]: among the first i+1 literals at least j+1 are true.
    s: List[List[int]] = []
    next_var = start_var
    for _ in range(n - 1):
        s.append(list(range(next_var, next_var + k)))
        next_var += k

    clauses: List[List[int]] = [[-lits[0], s[0][0]]]
    for j in range(1, k):
        clauses.append([-s[0][j]])
    for i in range(1, n - 1):
        x = lits[i]
        clauses.append([-x, s[i][0]])
        clauses.append([-s[i - 1][0], s[i][0]])
        for j in range(1, k):
            clauses.append([-s[i - 1][j], s[i][j]])
            clauses.append([-x, -s[i - 1][j - 1], s[i][j]])
        clauses.append([-x, -s[i - 1][k - 1]])
    clauses.append([-lits[n - 1], -s[n - 2][k - 1]])
    return clauses, next_var


def exactly(lits: List[int], k: int, start_var: int) -> Tuple[List[List[int]], int]:
    at_most, next_var = sequential_counter_at_most(lits, k, start_var)
    at_least, next_var = sequential_counter_at_most(
        [-v for v in lits], len(lits) - k, next_var
    )
    return at_most + at_least, next_var


def build_collision_cnf(
    n: int, d: int, rows: Sequence[str]
) -> Tuple[List[List[int]], int, List[int], List[int]]:
    """Return (clauses, num_vars, a_vars, b_vars) for the collision question."""
    a_vars = list(range(1, n + 1))
    b_vars = list(range(n + 1, 2 * n + 1))
    o_vars = [2 * n + 1 + r for r in range(len(rows))]
    e_vars = [2 * n + 1 + len(rows) + i for i in range(n)]
    next_var = 2 * n + len(rows) + n + 1

    clauses: List[List[int]] = []
    for o, row in zip(o_vars, rows):
        members = [i for i, ch in enumerate(row) if ch == "1"]
        for side in (a_vars, b_vars):
            for i in members:
                clauses.append([-side[i], o])
            clauses.append([-o] + [side[i] for i in members])

    # A != B; with |A| == |B| some item must be in A only.
    for a, b, e in zip(a_vars, b_vars, e_vars):
        clauses.append([-e, a])
        clauses.append([-e, -b])
    clauses.append(list(e_vars))

    for side in (a_vars, b_vars):
        card, next_var = exactly(side, d, next_var)
        clauses.extend(card)

    return clauses, next_var - 1, a_vars, b_vars


def to_dimacs(clauses: List[List[int]], num_vars: int) -> str:
    lines = [f"p cnf {num_vars} {len(clauses)}"]
    for cl in clauses:
        lines.append(" ".join(str(lit) for lit in cl) + " 0")
    return "\n".join(lines) + "\n"
