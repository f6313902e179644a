"""Verifier backends: exhaustive enumeration, CP-SAT, and SAT."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from cnf import build_collision_cnf
from verify import (
    Collision,
    check_rows,
    find_collision,
)

try:
    from ortools.sat.python import cp_model
except ImportError as exc:  # pragma: no cover - import guard
    cp_model = None  # type: ignore[assignment]
    _ORTOOLS_CP_ERROR = exc
else:  # pragma: no cover - import guard
    _ORTOOLS_CP_ERROR = None

try:
    from pysat.solvers import Solver as SatSolver
except ImportError as exc:  # pragma: no cover - import guard
    SatSolver = None  # type: ignore[assignment]
    _PYSAT_ERROR = exc
else:  # pragma: no cover - import guard
    _PYSAT_ERROR = None


CPSAT_AVAILABLE = cp_model is not None
SAT_AVAILABLE = SatSolver is not None

BACKEND_NAMES = ("exhaustive", "cpsat", "sat")

CollisionFinder = Callable[[int, int, Sequence[str]], Optional[Collision]]


class BackendNotAvailable(RuntimeError):
    """Raised when the requested backend is missing a dependency or unavailable."""


def _require_ortools_cp() -> None:
    if cp_model is None:
        raise BackendNotAvailable(
            "CP-SAT verifier requires ortools; install with `pip install ortools`."
        ) from _ORTOOLS_CP_ERROR


def _require_pysat() -> None:
    if SatSolver is None:
        raise BackendNotAvailable(
            "SAT verifier requires python-sat; install with `pip install python-sat`."
        ) from _PYSAT_ERROR


def _trivially_separated(n: int, d: int) -> bool:
    if not (0 <= d <= n):
        raise ValueError(f"invalid pair n={n} d={d}")
    # Only one arrangement exists.
    return d == 0 or d == n


def cpsat_find_collision(
    n: int, d: int, rows: Sequence[str], threads: int = 1
) -> Optional[Collision]:
    _require_ortools_cp()
    check_rows(n, rows)
    if _trivially_separated(n, d):
        return None
    model = cp_model.CpModel()
    a = [model.NewBoolVar(f"a_{i}") for i in range(n)]
    b = [model.NewBoolVar(f"b_{i}") for i in range(n)]
    model.Add(sum(a) == d)
    model.Add(sum(b) == d)
    for r, row in enumerate(rows):
        members = [i for i, ch in enumerate(row) if ch == "1"]
        if not members:
            continue
        out = model.NewBoolVar(f"o_{r}")
        model.AddMaxEquality(out, [a[i] for i in members])
        model.AddMaxEquality(out, [b[i] for i in members])
    only_a: List[cp_model.IntVar] = []
    for i in range(n):
        e = model.NewBoolVar(f"e_{i}")
        model.AddImplication(e, a[i])
        model.AddImplication(e, b[i].Not())
        only_a.append(e)
    model.AddBoolOr(only_a)

    solver = cp_model.CpSolver()
    solver.parameters.num_search_workers = threads
    status = solver.Solve(model)
    if status == cp_model.INFEASIBLE:
        return None
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        raise RuntimeError(f"CP-SAT failed with status {solver.StatusName(status)}")
    first = tuple(i for i in range(n) if solver.Value(a[i]) == 1)
    second = tuple(i for i in range(n) if solver.Value(b[i]) == 1)
    return Collision(first=first, second=second, n=n)


def sat_find_collision(
    n: int, d: int, rows: Sequence[str], solver_name: str = "glucose4"
) -> Optional[Collision]:
    _require_pysat()
    check_rows(n, rows)
    if _trivially_separated(n, d):
        return None
    clauses, _, a_vars, b_vars = build_collision_cnf(n, d, rows)
    with SatSolver(name=solver_name, bootstrap_with=clauses) as solver:
        if not solver.solve():
            return None
        assignment = {lit for lit in solver.get_model() if lit > 0}
    first = tuple(i for i, v in enumerate(a_vars) if v in assignment)
    second = tuple(i for i, v in enumerate(b_vars) if v in assignment)
    return Collision(first=first, second=second, n=n)


def create_verifier(name: str) -> CollisionFinder:
    """Return a collision finder for the backend `name`."""
    name = name.lower()
    if name == "exhaustive":
        return find_collision
    if name in ("cpsat", "cp-sat", "cp_sat"):
        _require_ortools_cp()
        return cpsat_find_collision
    if name == "sat":
        _require_pysat()
        return sat_find_collision
    raise ValueError(f"Unknown verifier backend {name}")


def cross_check(
    n: int, d: int, rows: Sequence[str], names: Sequence[str]
) -> Dict[str, bool]:
    """Verdict of each named backend on the same rows (True = separates)."""
    return {name: create_verifier(name)(n, d, rows) is None for name in names}


def available_backends() -> Tuple[str, ...]:
    flags = {"exhaustive": True, "cpsat": CPSAT_AVAILABLE, "sat": SAT_AVAILABLE}
    return tuple(name for name in BACKEND_NAMES if flags[name])
