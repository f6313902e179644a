"""Print the smallest known D-separable test design for N items.

Problem: N items, exactly D of them are "wolves". A test is a subset of the
items and comes back positive iff it holds at least one wolf. t(N, D) is the
fewest tests whose outcomes always identify the wolves.

Method:
- Seed every (n, d) up to N+100 with closed forms (d=0, d=n, d=1, d>=n/2).
- Install each record of the solution file and propagate it through the
  derivation rules (drop an item, lower d, add an item, worst-case diagonal)
  until nothing improves.
- Rewrite the output file: summary triangle plus every record that came from
  the file or replaced one.

Example commands:
  python wolfy.py 4 2
  python wolfy.py --file wolfy-out.txt --verify 12 3
  python wolfy.py --verify-all --verifier sat 40 4
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from propagation import DEFAULT_WINDOW_EXTRA, build_table, format_propagation_summary
from solution_file import DEFAULT_FILE, load_known_solutions, write_solutions
from strategy import Strategy
from table import ND, SolutionTable
from verify import VerifyResult, verify_strategy
from verify_backends import (
    BACKEND_NAMES,
    CollisionFinder,
    available_backends,
    create_verifier,
    cross_check,
)


def report_invalid(result: VerifyResult, strategy: Strategy, key: ND) -> None:
    print("INVALID! (This should never happen unless the solution file is bad.)")
    print(strategy.to_text(key.n, key.d))
    print("These two wolf arrangements cannot be distinguished:")
    print(result.w1)
    print(result.w2)


def verify_all(known: SolutionTable, finder: CollisionFinder) -> int:
    """Verify every record from the file; return how many failed."""
    failures = 0
    for key, strategy in known.items():
        result = verify_strategy(key.n, key.d, strategy.tests(), finder)
        if not result.success:
            failures += 1
            report_invalid(result, strategy, key)
    print(f"[verify-all] records={len(known)} invalid={failures}")
    return failures


def report_cross_check(n: int, d: int, tests: Sequence[str]) -> bool:
    """Run every installed backend on `tests`; True if they all agree."""
    verdicts = cross_check(n, d, tests, available_backends())
    parts = [f"{name}={'ok' if ok else 'collision'}" for name, ok in verdicts.items()]
    agree = len(set(verdicts.values())) == 1
    print(f"[cross-check] {' '.join(parts)} agree={int(agree)}")
    return agree


def parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print the smallest known D-separable matrix with N columns."
    )
    parser.add_argument("N", type=int, help="Number of items (columns)")
    parser.add_argument("D", type=int, help="Number of marked items")
    parser.add_argument(
        "--file",
        type=Path,
        default=DEFAULT_FILE,
        help="Read best known solutions from this file.",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=DEFAULT_FILE,
        help="Write the updated solutions file here.",
    )
    parser.add_argument(
        "--window",
        type=int,
        default=DEFAULT_WINDOW_EXTRA,
        help="Seed and propagate up to N+WINDOW items.",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verbosely verify the solution that is printed.",
    )
    parser.add_argument(
        "--verify-all",
        action="store_true",
        help="Verify every solution in the input file.",
    )
    parser.add_argument(
        "--cross-check",
        action="store_true",
        help="With --verify, also check the solution with every installed backend.",
    )
    parser.add_argument(
        "--verifier",
        choices=BACKEND_NAMES,
        default="exhaustive",
        help="Verification backend (default: exhaustive enumeration).",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Print propagation statistics."
    )
    args = parser.parse_args(argv)
    if args.N < args.D or args.D < 0:
        parser.error("need N >= D >= 0")
    if args.window < 0:
        parser.error("--window must be non-negative")
    if args.cross_check and not args.verify:
        parser.error("--cross-check needs --verify")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    n, d = args.N, args.D
    finder = create_verifier(args.verifier) if (args.verify or args.verify_all) else None

    try:
        known = load_known_solutions(args.file)
    except OSError as exc:
        print(f"Failed to open solution file {args.file}: {exc}", file=sys.stderr)
        return 1

    if args.verify_all:
        verify_all(known, finder)

    t0 = time.perf_counter()
    table, stats = build_table(known.items(), n + args.window)
    if args.verbose:
        print(format_propagation_summary(stats, table))
        print(f"time {time.perf_counter() - t0:.3f}s")

    write_solutions(args.out, table)

    strategy = table[n, d]
    tests = strategy.tests()
    if args.verify:
        print("Candidate is")
        print(strategy.to_text(n, d))
        result = verify_strategy(n, d, tests, finder)
        if result.success:
            print(f"Verified. This is a solution for t({n}, {d}) <= {len(tests)}.")
        else:
            report_invalid(result, strategy, ND(n, d))
        if args.cross_check:
            report_cross_check(n, d, tests)
    else:
        for line in tests:
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
